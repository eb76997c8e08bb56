# backend/washbook/services/slots/locks.py
"""
Per-slot mutual exclusion.

A TimeSlot row is the unit of mutual exclusion: every read-modify-write of
a slot's occupancy or status runs while holding the lock for that slot id.

Two layers cooperate:
✓ SlotLocks: process-local mutex per slot id (FastAPI runs sync
  endpoints in a thread pool, so requests for one slot meet here)
✓ SELECT ... FOR UPDATE on the slot row (PostgreSQL; serializes
  across processes; SQLite serializes writers on its own)

Allocation and release additionally use guarded UPDATEs, so a stale read
can never push booked_count past max_capacity or below zero.
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator


@dataclass
class _Entry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class SlotLocks:
    """Registry of mutexes keyed by slot id; entries vanish when unused."""

    def __init__(self):
        self._guard = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    @contextmanager
    def hold(self, slot_id: str) -> Iterator[None]:
        with self._guard:
            entry = self._entries.get(slot_id)
            if entry is None:
                entry = self._entries[slot_id] = _Entry()
            entry.users += 1

        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._entries[slot_id]

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)


slot_locks = SlotLocks()
