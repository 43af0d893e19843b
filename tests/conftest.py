"""Shared test fixtures and helpers."""

from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from threading import Barrier
from types import SimpleNamespace

import pytest
from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from app import create_app
from config import Config
from models import db
from models.artist import Artist
from models.availability import AvailabilityRecord, AvailabilitySlot
from models.location import Location
from models.user import User
from security.password import hash_password
from services.errors import LedgerError
from services.reservation import reserve_slot

ADMIN_EMAIL = "admin@salonslot.test"
ADMIN_PASSWORD = "admin-pass-123"
SCENARIO_DATE = "2024-06-01"


class LedgerTestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    BCRYPT_ROUNDS = 4
    CREATE_TABLES_ON_STARTUP = True
    ADMIN_EMAIL = ADMIN_EMAIL
    ADMIN_PASSWORD = ADMIN_PASSWORD
    SEED_DEMO_DATA = False
    LOG_LEVEL = "DEBUG"


@pytest.fixture
def app(tmp_path):
    # a file database so concurrent claims really go through sqlite's locking
    class _Config(LedgerTestConfig):
        SQLALCHEMY_DATABASE_URI = "sqlite:///" + str(tmp_path / "ledger.db")
        SQLALCHEMY_ENGINE_OPTIONS = {
            "connect_args": {"timeout": 30, "check_same_thread": False},
            "pool_size": 10,
            "max_overflow": 60,
        }

    app = create_app(_Config)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(email: str, full_name: str = None, phone: str = None) -> int:
    user = User(email=email, password_hash=hash_password("password-123"), full_name=full_name, phone_number=phone)
    db.session.add(user)
    db.session.commit()
    return user.id


@pytest.fixture
def ledger(app):
    """Artist A at salon L with SCENARIO_DATE slots 10:00 and 11:30, both free."""
    with app.app_context():
        salon = Location(name="Salon L", slug="salon-l", sort_order=1)
        other = Location(name="Salon M", slug="salon-m", sort_order=2)
        artist = Artist(name="Artist A", specialties=["Haircut"], locations=[salon])
        db.session.add_all([salon, other, artist])
        db.session.flush()

        db.session.add(AvailabilityRecord(
            artist_id=artist.id,
            location_id=salon.id,
            date=SCENARIO_DATE,
            slots=[AvailabilitySlot(time="10:00"), AvailabilitySlot(time="11:30")],
        ))
        db.session.commit()

        owners = [make_user(f"customer{i}@salonslot.test") for i in range(3)]
        return SimpleNamespace(
            artist_id=artist.id,
            location_id=salon.id,
            other_location_id=other.id,
            date=SCENARIO_DATE,
            owner_ids=owners,
        )


def race_claims(app, ledger, n: int, time: str = "10:00"):
    """Fire n concurrent reserve_slot calls for one slot; returns (bookings, errors)."""
    with app.app_context():
        owners = [make_user(f"racer{n}-{i}@salonslot.test") for i in range(n)]
    barrier = Barrier(n)

    def attempt(owner_id):
        with app.app_context():
            barrier.wait()
            try:
                booking = reserve_slot(owner_id, ledger.artist_id, ledger.location_id, ledger.date, time)
                return ("ok", booking.timeslot)
            except LedgerError as err:
                return ("error", err.kind)

    with ThreadPoolExecutor(max_workers=n) as pool:
        results = list(pool.map(attempt, owners))

    bookings = [value for status, value in results if status == "ok"]
    errors = [value for status, value in results if status == "error"]
    return bookings, errors


def register_and_login(client, email: str, password: str = "password-123", **profile) -> dict:
    resp = client.post("/auth/register", json={"email": email, "password": password, **profile})
    assert resp.status_code == 201, resp.get_json()
    return login(client, email, password)


def login(client, email: str, password: str) -> dict:
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.get_json()
    return {"Authorization": f"Bearer {resp.get_json()['token']}"}


@pytest.fixture
def customer_headers(client):
    return register_and_login(client, "alice@salonslot.test", full_name="Alice", phone_number="7010-0001")


@pytest.fixture
def admin_headers(client):
    return login(client, ADMIN_EMAIL, ADMIN_PASSWORD)


@contextmanager
def datastore_down(app):
    """Every statement fails as if the database connection had dropped."""
    def refuse(conn, cursor, statement, parameters, context, executemany):
        raise OperationalError(statement, parameters, Exception("server closed the connection unexpectedly"))

    with app.app_context():
        engine = db.engine
    event.listen(engine, "before_cursor_execute", refuse)
    try:
        yield
    finally:
        event.remove(engine, "before_cursor_execute", refuse)
