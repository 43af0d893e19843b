"""Bootstrap: one-shot initializer, admin account and demo data."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import ADMIN_EMAIL
from models import db
from models.artist import Artist
from models.availability import AvailabilityRecord
from models.location import Location
from models.user import User, Role
from security.password import verify_password
from utils.once import OnceInitializer
from utils.seed import DEMO_DAYS, DEMO_SLOT_TEMPLATE, ensure_admin_user, ensure_demo_data, seed_roles


class TestOnceInitializer:

    def test_concurrent_callers_share_one_run(self):
        calls = []
        release = threading.Event()

        def slow_init():
            calls.append(1)
            release.wait(timeout=5)
            return "ready"

        init = OnceInitializer(slow_init)
        with ThreadPoolExecutor(max_workers=8) as pool:
            futures = [pool.submit(init) for _ in range(8)]
            deadline = time.monotonic() + 5
            while not init.in_flight and time.monotonic() < deadline:
                time.sleep(0.01)
            time.sleep(0.2)
            release.set()
            results = [f.result() for f in futures]

        assert results == ["ready"] * 8
        assert len(calls) == 1
        assert not init.in_flight

    def test_failure_clears_marker_so_retry_runs(self):
        attempts = []

        def flaky():
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("datastore not ready")
            return "ok"

        init = OnceInitializer(flaky)
        with pytest.raises(RuntimeError):
            init()
        assert not init.in_flight
        assert init() == "ok"
        assert len(attempts) == 2


class TestSeeding:

    def test_seed_roles_is_idempotent(self, app):
        with app.app_context():
            seed_roles()
            seed_roles()
            assert sorted(r.name for r in Role.query.all()) == ["ADMIN", "CUSTOMER", "SUPER_ADMIN"]

    def test_admin_password_resynced(self, app):
        with app.app_context():
            user_id = ensure_admin_user(ADMIN_EMAIL, "rotated-pass-456")
            user = db.session.get(User, user_id)
            assert verify_password("rotated-pass-456", user.password_hash)
            assert "ADMIN" in user.role_names
            assert User.query.filter_by(email=ADMIN_EMAIL).count() == 1

    def test_admin_unconfigured_is_noop(self, app):
        app.config["ADMIN_EMAIL"] = None
        with app.app_context():
            assert ensure_admin_user() is None

    def test_demo_data_only_on_empty_database(self, app):
        with app.app_context():
            assert ensure_demo_data() is True
            assert Location.query.count() == 2
            assert Artist.query.count() == 3
            # four artist/salon pairs, a week each
            assert AvailabilityRecord.query.count() == 4 * DEMO_DAYS
            record = AvailabilityRecord.query.first()
            assert [s.time for s in record.slots] == DEMO_SLOT_TEMPLATE

            assert ensure_demo_data() is False
            assert Location.query.count() == 2

    def test_seed_demo_cli(self, app):
        result = app.test_cli_runner().invoke(args=["seed-demo"])
        assert "Demo data created" in result.output
        result = app.test_cli_runner().invoke(args=["seed-demo"])
        assert "nothing to do" in result.output
