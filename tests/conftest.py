import os
import tempfile
from datetime import datetime, timedelta

# Must be set before the app modules configure logging and the engine
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="hotel-logs-"))
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.pop("REDIS_URL", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.dependencies import get_db, get_notifier, get_store
from app.core.redis import InMemoryStore
from app.db.init_db import init_db
from app.main import app
from app.models.discounts import Coupon, Package, Promotion
from app.models.room import Room
from app.services.notifications import NotificationEmitter


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


class RecordingEmitter(NotificationEmitter):
    def __init__(self):
        super().__init__()
        self.events = []

    def emit(self, event, payload):
        self.events.append((event, payload))
        super().emit(event, payload)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def notifier():
    return RecordingEmitter()


@pytest.fixture
def client(session_factory, store, notifier):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_notifier] = lambda: notifier

    yield TestClient(app)

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------
# FACTORIES
# ---------------------------------------------------------------------
@pytest.fixture
def make_room(db):
    counter = {"n": 0}

    def _make(**kwargs):
        counter["n"] += 1
        fields = dict(
            room_number=f"R{100 + counter['n']}",
            price=1000.0,
            max_adults=2,
            max_children=1,
            allow_children=True,
            status="available",
        )
        fields.update(kwargs)
        room = Room(**fields)
        db.add(room)
        db.commit()
        db.refresh(room)
        return room

    return _make


def _window(days_back=1, days_forward=30):
    now = datetime.utcnow()
    return now - timedelta(days=days_back), now + timedelta(days=days_forward)


@pytest.fixture
def make_coupon(db):
    def _make(**kwargs):
        valid_from, valid_to = _window()
        fields = dict(
            code="SAVE10",
            discount_type="percent",
            discount_value=10.0,
            usage_limit=None,
            used_count=0,
            valid_from=valid_from,
            valid_to=valid_to,
            active=True,
        )
        fields.update(kwargs)
        coupon = Coupon(**fields)
        db.add(coupon)
        db.commit()
        db.refresh(coupon)
        return coupon

    return _make


@pytest.fixture
def make_package(db):
    def _make(**kwargs):
        valid_from, valid_to = _window()
        fields = dict(name="Weekend", type="percent", value=10.0,
                      valid_from=valid_from, valid_to=valid_to, active=True)
        fields.update(kwargs)
        package = Package(**fields)
        db.add(package)
        db.commit()
        db.refresh(package)
        return package

    return _make


@pytest.fixture
def make_promotion(db):
    def _make(**kwargs):
        valid_from, valid_to = _window()
        fields = dict(name="Winter", discount_type="fixed", discount_value=100.0,
                      valid_from=valid_from, valid_to=valid_to, active=True,
                      applicable_rooms=None)
        fields.update(kwargs)
        promotion = Promotion(**fields)
        db.add(promotion)
        db.commit()
        db.refresh(promotion)
        return promotion

    return _make


@pytest.fixture
def booking_body():
    def _body(room_id, check_in="2024-01-10", check_out="2024-01-12", **kwargs):
        body = {
            "roomId": room_id,
            "checkIn": check_in,
            "checkOut": check_out,
            "adults": 1,
            "children": 0,
            "firstName": "Jane",
            "lastName": "Doe",
            "email": "jane@example.com",
            "phone": "9800000000",
        }
        body.update(kwargs)
        return body

    return _body
