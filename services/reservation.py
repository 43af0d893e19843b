"""
Reservation engine: claim a slot exactly once, then record the booking.

Protocol, in order:

1. reject malformed ids/date/time before touching the database
2. advisory check that the artist is active at the salon (clear 404s only,
   this is not the concurrency guard)
3. one conditional UPDATE flipping the slot from free to reserved
   (``services.availability.claim_slot``); zero rows updated means the
   caller lost the race or the slot never existed
4. insert the Booking in the same transaction as the claim, so a failed
   insert rolls the slot back to free instead of leaving it orphaned; an
   insert refused by the (artist, timeslot) key means the artist is already
   booked at that time, which is a conflict and not a server fault

``find_unbooked_reservations`` reports any reserved slot with no booking
behind it, which can only come from writes made outside this module.
"""
from flask import current_app
from sqlalchemy import and_
from sqlalchemy.exc import DisconnectionError, IntegrityError, OperationalError, SQLAlchemyError

from models import db
from models.availability import AvailabilityRecord, AvailabilitySlot
from models.booking import BOOKING_CONFIRMED, Booking
from services.availability import claim_slot, get_record
from services.errors import BookingFailed, NotFound, ServiceUnavailable, SlotAlreadyReserved
from services.queries import resolve_artist_at_location
from services.validation import clean_note, parse_date, parse_id, parse_time


def reserve_slot(owner_id, artist_id, location_id, day, time, note=None, customer=None) -> Booking:
    artist_id = parse_id(artist_id, "artistId")
    location_id = parse_id(location_id, "locationId")
    day = parse_date(day)
    time = parse_time(time)
    note = clean_note(note)
    customer = customer or {}

    try:
        resolve_artist_at_location(artist_id, location_id)

        if not claim_slot(artist_id, location_id, day, time):
            db.session.rollback()
            if get_record(artist_id, location_id, day) is None:
                raise NotFound("No availability defined for that day")
            # missing time and already reserved time fail the same match
            raise SlotAlreadyReserved("That time slot is already reserved")

        timeslot = Booking.make_timeslot(day, time)
        booking = Booking(
            user_id=owner_id,
            artist_id=artist_id,
            location_id=location_id,
            date=day,
            time=time,
            timeslot=timeslot,
            status=BOOKING_CONFIRMED,
            note=note,
            customer_name=customer.get("name"),
            customer_phone=customer.get("phone"),
        )
        db.session.add(booking)
        try:
            db.session.commit()
        except (OperationalError, DisconnectionError):
            raise
        except IntegrityError as exc:
            db.session.rollback()
            if artist_is_booked(artist_id, timeslot):
                # the artist already holds this timeslot, possibly at another salon
                current_app.logger.info(
                    "Artist %s already booked at %s; claim rolled back (location=%s)",
                    artist_id, timeslot, location_id,
                )
                raise SlotAlreadyReserved("The artist is already booked at that time") from exc
            _log_rolled_back(artist_id, location_id, day, time, exc)
            raise BookingFailed("Could not confirm the booking. Please try again.") from exc
        except SQLAlchemyError as exc:
            db.session.rollback()
            _log_rolled_back(artist_id, location_id, day, time, exc)
            raise BookingFailed("Could not confirm the booking. Please try again.") from exc

    except (OperationalError, DisconnectionError) as exc:
        db.session.rollback()
        current_app.logger.warning("Datastore unavailable during booking: %s", exc)
        raise ServiceUnavailable("Booking service temporarily unavailable") from exc

    current_app.logger.info(
        "Booking %s confirmed (artist=%s timeslot=%s)", booking.id, booking.artist_id, booking.timeslot
    )
    return booking


def _log_rolled_back(artist_id, location_id, day, time, exc):
    current_app.logger.error(
        "Booking insert failed after claiming slot; claim rolled back "
        "(artist=%s location=%s date=%s time=%s): %s",
        artist_id, location_id, day, time, exc,
    )


def artist_is_booked(artist_id: int, timeslot: str) -> bool:
    # any booking row holds the (artist, timeslot) key, cancelled ones included
    return db.session.query(
        Booking.query.filter_by(artist_id=artist_id, timeslot=timeslot).exists()
    ).scalar()


def find_unbooked_reservations() -> list:
    """
    Reserved slots with no booking on the same artist, salon, date and time.
    Any row here needs manual reconciliation.
    """
    rows = (
        db.session.query(AvailabilitySlot, AvailabilityRecord)
        .join(AvailabilityRecord, AvailabilitySlot.record_id == AvailabilityRecord.id)
        .outerjoin(
            Booking,
            and_(
                Booking.artist_id == AvailabilityRecord.artist_id,
                Booking.location_id == AvailabilityRecord.location_id,
                Booking.date == AvailabilityRecord.date,
                Booking.time == AvailabilitySlot.time,
            ),
        )
        .filter(AvailabilitySlot.reserved.is_(True), Booking.id.is_(None))
        .order_by(AvailabilityRecord.date.asc(), AvailabilitySlot.time.asc())
        .all()
    )
    return [
        {
            "slot_id": slot.id,
            "artist_id": record.artist_id,
            "location_id": record.location_id,
            "date": record.date,
            "time": slot.time,
        }
        for slot, record in rows
    ]
