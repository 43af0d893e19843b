"""
Availability store: the per (artist, salon, day) slot lists.

``claim_slot`` is the only code path that flips ``reserved``; it is a single
conditional UPDATE so concurrent claims on one slot are serialized by the
database, not by this process.
"""
from datetime import date, timedelta

from flask import current_app
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from models import db
from models.availability import AvailabilityRecord, AvailabilitySlot
from services.errors import InvalidInput
from services.validation import parse_time, to_day


def clamp_days(value) -> int:
    default = current_app.config.get("AVAILABILITY_DEFAULT_DAYS", 7)
    maximum = current_app.config.get("AVAILABILITY_MAX_DAYS", 30)
    if value is None or value == "":
        days = default
    else:
        try:
            days = int(value)
        except (TypeError, ValueError):
            days = default
    return min(max(days, 1), maximum)


def date_range(from_date=None, days=None) -> list:
    start = to_day(from_date) if from_date else date.today()
    count = clamp_days(days)
    try:
        return [(start + timedelta(days=i)).isoformat() for i in range(count)]
    except OverflowError:
        raise InvalidInput("fromDate out of range")


def get_record(artist_id: int, location_id: int, day: str):
    return (
        AvailabilityRecord.query
        .filter_by(artist_id=artist_id, location_id=location_id, date=day)
        .first()
    )


def list_slots(artist_id: int, location_id: int, dates) -> dict:
    """
    Returns {date: [AvailabilitySlot, ...]} for every requested date.
    A day without a record maps to an empty list: no slots defined, not a fault.
    """
    dates = list(dates)
    out = {d: [] for d in dates}
    if not dates:
        return out

    records = (
        AvailabilityRecord.query
        .filter(
            AvailabilityRecord.artist_id == artist_id,
            AvailabilityRecord.location_id == location_id,
            AvailabilityRecord.date.in_(dates),
        )
        .all()
    )
    for record in records:
        out[record.date] = list(record.slots)
    return out


def claim_slot(artist_id: int, location_id: int, day: str, time: str) -> bool:
    """
    Flip one free slot to reserved inside the caller's transaction.
    Returns False when no record/slot matched or the slot was already reserved.
    """
    record_id = (
        select(AvailabilityRecord.id)
        .where(
            AvailabilityRecord.artist_id == artist_id,
            AvailabilityRecord.location_id == location_id,
            AvailabilityRecord.date == day,
        )
        .scalar_subquery()
    )
    stmt = (
        update(AvailabilitySlot)
        .where(
            AvailabilitySlot.record_id == record_id,
            AvailabilitySlot.time == time,
            AvailabilitySlot.reserved.is_(False),
        )
        .values(reserved=True)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    return result.rowcount == 1


def upsert_record(artist_id: int, location_id: int, day: str, times) -> AvailabilityRecord:
    """
    Admin seeding: make the day's free slots equal ``times``.
    Reserved slots are never dropped or reset.
    """
    if not isinstance(times, list):
        raise InvalidInput("slots must be a list of HH:MM strings")
    times = [parse_time(t, "slot time") for t in times]
    if len(set(times)) != len(times):
        raise InvalidInput("Duplicate slot times")

    record = get_record(artist_id, location_id, day)
    if record is None:
        record = AvailabilityRecord(artist_id=artist_id, location_id=location_id, date=day)
        db.session.add(record)
        try:
            db.session.flush()
        except IntegrityError:
            # Another writer created the same day first
            db.session.rollback()
            record = get_record(artist_id, location_id, day)

    wanted = set(times)
    existing = {s.time: s for s in record.slots}
    for slot in list(record.slots):
        if not slot.reserved and slot.time not in wanted:
            record.slots.remove(slot)
    for t in times:
        if t not in existing:
            record.slots.append(AvailabilitySlot(time=t, reserved=False))

    db.session.commit()
    return record
