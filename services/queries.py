"""
Read-side projections of the ledger.

Reads may be slightly stale; a client still has to win the claim in
``services.reservation`` before it owns a slot.
"""
from datetime import date

from flask import current_app

from models import db
from models.artist import Artist, artist_locations
from models.booking import Booking
from models.location import Location
from services.availability import date_range, list_slots
from services.errors import NotFound, ResourceNotAvailable
from services.serializers import (
    WEEKDAYS,
    artist_to_dict,
    booking_to_dict,
    location_to_dict,
    slot_to_dict,
)
from services.validation import parse_id


def resolve_artist_at_location(artist_id: int, location_id: int):
    """Returns (location, artist) or raises NotFound / ResourceNotAvailable."""
    location = db.session.get(Location, location_id)
    if not location or not location.is_active:
        raise NotFound("Location not found")

    artist = (
        Artist.query
        .join(artist_locations, artist_locations.c.artist_id == Artist.id)
        .filter(
            Artist.id == artist_id,
            Artist.is_active.is_(True),
            artist_locations.c.location_id == location_id,
        )
        .first()
    )
    if not artist:
        raise ResourceNotAvailable("Artist not available at this location")
    return location, artist


def list_locations():
    rows = (
        Location.query
        .filter(Location.is_active.is_(True))
        .order_by(Location.sort_order.asc(), Location.name.asc())
        .all()
    )
    return [location_to_dict(loc) for loc in rows]


def list_artists(location_id):
    location_id = parse_id(location_id, "locationId")
    rows = (
        Artist.query
        .join(artist_locations, artist_locations.c.artist_id == Artist.id)
        .filter(artist_locations.c.location_id == location_id, Artist.is_active.is_(True))
        .order_by(Artist.name.asc())
        .all()
    )
    return [artist_to_dict(a) for a in rows]


def get_availability(artist_id, location_id, from_date=None, days=None) -> dict:
    artist_id = parse_id(artist_id, "artistId")
    location_id = parse_id(location_id, "locationId")
    dates = date_range(from_date, days)

    location, artist = resolve_artist_at_location(artist_id, location_id)
    slots_by_date = list_slots(artist.id, location.id, dates)
    # an artist booked at one salon is not free at the same time at another
    held = {
        timeslot
        for (timeslot,) in db.session.query(Booking.timeslot)
        .filter(Booking.artist_id == artist.id, Booking.date.in_(dates))
    }

    return {
        "location": location_to_dict(location),
        "artist": artist_to_dict(artist),
        "days": [
            {
                "date": d,
                "weekday": WEEKDAYS[date.fromisoformat(d).weekday()],
                "slots": [
                    slot_to_dict(s, held=Booking.make_timeslot(d, s.time) in held)
                    for s in slots_by_date[d]
                ],
            }
            for d in dates
        ],
    }


def list_bookings_for_owner(owner_id: int, limit=None) -> list:
    cap = current_app.config.get("BOOKING_HISTORY_LIMIT", 20)
    try:
        limit = int(limit) if limit is not None else cap
    except (TypeError, ValueError):
        limit = cap
    limit = min(max(limit, 1), cap)

    rows = (
        Booking.query
        .filter_by(user_id=owner_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .limit(limit)
        .all()
    )
    return [booking_to_dict(b) for b in rows]
