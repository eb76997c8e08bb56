import threading
import time
from concurrent.futures import ThreadPoolExecutor

from washbook.services.slots import SlotLocks


def test_same_slot_is_serialized():
    locks = SlotLocks()
    active = 0
    peak = 0
    guard = threading.Lock()

    def work():
        nonlocal active, peak
        with locks.hold("slot-1"):
            with guard:
                active += 1
                peak = max(peak, active)
            time.sleep(0.01)
            with guard:
                active -= 1

    with ThreadPoolExecutor(max_workers=8) as pool:
        for f in [pool.submit(work) for _ in range(16)]:
            f.result()

    assert peak == 1
    assert len(locks) == 0


def test_different_slots_do_not_block_each_other():
    locks = SlotLocks()
    with locks.hold("a"):
        acquired = threading.Event()

        def other():
            with locks.hold("b"):
                acquired.set()

        t = threading.Thread(target=other)
        t.start()
        assert acquired.wait(timeout=1)
        t.join()

    assert len(locks) == 0


def test_entry_released_after_exception():
    locks = SlotLocks()
    try:
        with locks.hold("x"):
            raise RuntimeError("boom")
    except RuntimeError:
        pass
    assert len(locks) == 0
