"""Availability store and read-side queries."""

from datetime import date, timedelta

import pytest

from conftest import SCENARIO_DATE
from models import db
from models.availability import AvailabilitySlot
from models.booking import Booking
from services.availability import clamp_days, date_range, list_slots, upsert_record
from services.errors import InvalidInput, NotFound, ResourceNotAvailable
from services.queries import get_availability, list_artists, list_bookings_for_owner, list_locations
from services.reservation import reserve_slot


class TestDayRange:

    @pytest.mark.parametrize("raw, expected", [
        (0, 1),
        (500, 30),
        (-3, 1),
        ("14", 14),
        (None, 7),
        ("", 7),
        ("lots", 7),
    ])
    def test_clamp_days(self, app, raw, expected):
        with app.app_context():
            assert clamp_days(raw) == expected

    def test_range_is_consecutive_days(self, app):
        with app.app_context():
            assert date_range("2024-02-28", 3) == ["2024-02-28", "2024-02-29", "2024-03-01"]

    def test_range_defaults_to_today(self, app):
        with app.app_context():
            assert date_range(None, 1) == [date.today().isoformat()]

    def test_malformed_from_date(self, app):
        with app.app_context():
            with pytest.raises(InvalidInput):
                date_range("01/06/2024", 3)

    def test_range_past_the_calendar_end(self, app):
        with app.app_context():
            assert date_range("9999-12-31", 1) == ["9999-12-31"]
            with pytest.raises(InvalidInput):
                date_range("9999-12-31", 3)


class TestListSlots:

    def test_missing_days_are_empty(self, app, ledger):
        with app.app_context():
            slots = list_slots(ledger.artist_id, ledger.location_id, ["2024-05-31", SCENARIO_DATE])
            assert slots["2024-05-31"] == []
            assert [s.time for s in slots[SCENARIO_DATE]] == ["10:00", "11:30"]


class TestGetAvailability:

    def test_projection_shape(self, app, ledger):
        with app.app_context():
            result = get_availability(ledger.artist_id, ledger.location_id, SCENARIO_DATE, 2)

        assert result["location"]["name"] == "Salon L"
        assert result["artist"]["name"] == "Artist A"
        assert result["days"] == [
            {
                "date": "2024-06-01",
                "weekday": "Saturday",
                "slots": [{"time": "10:00", "available": True}, {"time": "11:30", "available": True}],
            },
            {"date": "2024-06-02", "weekday": "Sunday", "slots": []},
        ]

    @pytest.mark.parametrize("days, expected", [(0, 1), (500, 30)])
    def test_days_are_clamped(self, app, ledger, days, expected):
        with app.app_context():
            result = get_availability(ledger.artist_id, ledger.location_id, SCENARIO_DATE, days)
        assert len(result["days"]) == expected

    def test_repeated_reads_are_identical(self, app, ledger):
        with app.app_context():
            first = get_availability(ledger.artist_id, ledger.location_id, SCENARIO_DATE, 5)
            second = get_availability(ledger.artist_id, ledger.location_id, SCENARIO_DATE, 5)
        assert first == second

    def test_claim_shows_up_as_unavailable(self, app, ledger):
        with app.app_context():
            reserve_slot(ledger.owner_ids[0], ledger.artist_id, ledger.location_id, SCENARIO_DATE, "10:00")
            day = get_availability(ledger.artist_id, ledger.location_id, SCENARIO_DATE, 1)["days"][0]
        assert day["slots"] == [{"time": "10:00", "available": False}, {"time": "11:30", "available": True}]

    def test_unknown_location_and_foreign_artist(self, app, ledger):
        with app.app_context():
            with pytest.raises(NotFound):
                get_availability(ledger.artist_id, 4242, SCENARIO_DATE, 1)
            with pytest.raises(ResourceNotAvailable):
                get_availability(ledger.artist_id, ledger.other_location_id, SCENARIO_DATE, 1)

    def test_malformed_ids(self, app, ledger):
        with app.app_context():
            with pytest.raises(InvalidInput):
                get_availability("x1", ledger.location_id)


class TestUpsertRecord:

    def test_creates_and_replaces_free_slots(self, app, ledger):
        with app.app_context():
            record = upsert_record(ledger.artist_id, ledger.location_id, "2024-06-03", ["09:00", "13:00"])
            assert [s.time for s in record.slots] == ["09:00", "13:00"]

            record = upsert_record(ledger.artist_id, ledger.location_id, "2024-06-03", ["13:00", "15:00"])
            assert [s.time for s in record.slots] == ["13:00", "15:00"]

    def test_reserved_slots_survive(self, app, ledger):
        with app.app_context():
            reserve_slot(ledger.owner_ids[0], ledger.artist_id, ledger.location_id, SCENARIO_DATE, "10:00")
            record = upsert_record(ledger.artist_id, ledger.location_id, SCENARIO_DATE, ["16:00"])
            assert {(s.time, s.reserved) for s in record.slots} == {("10:00", True), ("16:00", False)}

    @pytest.mark.parametrize("times", [["10:00", "10:00"], ["10:00", "noon"], ["10:00\n"], "10:00"])
    def test_rejects_bad_slot_lists(self, app, ledger, times):
        with app.app_context():
            with pytest.raises(InvalidInput):
                upsert_record(ledger.artist_id, ledger.location_id, "2024-06-04", times)
            assert AvailabilitySlot.query.count() == 2


class TestBrowse:

    def test_locations_are_ordered_and_active_only(self, app, ledger):
        with app.app_context():
            assert [loc["name"] for loc in list_locations()] == ["Salon L", "Salon M"]

    def test_artists_for_location(self, app, ledger):
        with app.app_context():
            assert [a["name"] for a in list_artists(ledger.location_id)] == ["Artist A"]
            assert list_artists(ledger.other_location_id) == []
            with pytest.raises(InvalidInput):
                list_artists(None)


class TestBookingHistory:

    def test_newest_first_and_capped(self, app, ledger):
        owner = ledger.owner_ids[0]
        with app.app_context():
            start = date(2024, 7, 1)
            for i in range(25):
                day = (start + timedelta(days=i)).isoformat()
                upsert_record(ledger.artist_id, ledger.location_id, day, ["10:00"])
                reserve_slot(owner, ledger.artist_id, ledger.location_id, day, "10:00")

            history = list_bookings_for_owner(owner)
            assert len(history) == 20
            assert history[0]["date"] == "2024-07-25"
            assert history[0]["artist"] == {"id": ledger.artist_id, "name": "Artist A"}
            assert history[0]["location"] == {"id": ledger.location_id, "name": "Salon L"}

            assert len(list_bookings_for_owner(owner, limit=5)) == 5
            assert len(list_bookings_for_owner(owner, limit=999)) == 20
            assert list_bookings_for_owner(ledger.owner_ids[1]) == []
            assert Booking.query.count() == 25
