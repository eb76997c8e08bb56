from datetime import date, time, timedelta
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from washbook.database import get_db, init_db, make_engine
from washbook.main import app
from washbook.models.generated import OperatingHours, Services, Tenants, TimeSlots, Users
from washbook.redis_client import get_redis
from washbook.services.slots import SlotLocks


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'washbook.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def redis():
    """Redis stand-in: every cache read is a miss, writes are accepted."""
    client = MagicMock()
    client.mget.side_effect = lambda keys: [None] * len(keys)
    client.delete.return_value = 0
    return client


@pytest.fixture
def locks():
    return SlotLocks()


@pytest.fixture
def tenant(db):
    obj = Tenants(name="Blue Wave", slug="blue-wave", status="approved", timezone="UTC")
    db.add(obj)
    db.commit()
    return obj


@pytest.fixture
def other_tenant(db):
    obj = Tenants(name="Red Foam", slug="red-foam", status="approved", timezone="UTC")
    db.add(obj)
    db.commit()
    return obj


@pytest.fixture
def customer(db):
    obj = Users(full_name="Ivan Petrov", role="customer", email="ivan@example.com")
    db.add(obj)
    db.commit()
    return obj


@pytest.fixture
def manager(db, tenant):
    obj = Users(full_name="Olga Manager", role="manager", tenant_id=tenant.id)
    db.add(obj)
    db.commit()
    return obj


@pytest.fixture
def admin(db):
    obj = Users(full_name="Platform Admin", role="super_admin")
    db.add(obj)
    db.commit()
    return obj


@pytest.fixture
def service(db, tenant):
    obj = Services(tenant_id=tenant.id, name="Exterior wash", price=25.0, duration_min=30)
    db.add(obj)
    db.commit()
    return obj


@pytest.fixture
def weekly_hours(db, tenant):
    """Mon–Sat 08:00–18:00, Sunday closed."""
    for day in range(7):
        db.add(OperatingHours(
            tenant_id=tenant.id,
            day_of_week=day,
            open_time=time(8, 0),
            close_time=time(18, 0),
            is_closed=1 if day == 0 else 0,
        ))
    db.commit()


def next_weekday(weekday: int, start: date | None = None) -> date:
    """Next date (after `start`, default today) with date.weekday() == weekday."""
    start = start or date.today()
    days = (weekday - start.weekday()) % 7 or 7
    return start + timedelta(days=days)


@pytest.fixture
def client(session_factory, redis):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: redis
    # no lifespan: tables come from the engine fixture
    yield TestClient(app)
    app.dependency_overrides.clear()


def headers_for(user) -> dict:
    h = {"X-User-Id": user.id, "X-User-Role": user.role}
    if user.tenant_id:
        h["X-Tenant-Id"] = user.tenant_id
    return h


def make_slot(db, tenant_id, slot_date, start=time(10, 0), capacity=1, booked=0, status="available"):
    slot = TimeSlots(
        tenant_id=tenant_id,
        slot_date=slot_date,
        start_time=start,
        end_time=time(start.hour + 1, start.minute),
        max_capacity=capacity,
        booked_count=booked,
        status=status,
    )
    db.add(slot)
    db.commit()
    return slot
