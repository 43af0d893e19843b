from flask import Blueprint, request, jsonify, g

from services.errors import BookingFailed, SlotAlreadyReserved
from services.queries import get_availability, list_artists, list_bookings_for_owner, list_locations
from services.reservation import reserve_slot
from services.serializers import booking_to_dict
from utils.auth_context import login_required
from utils.audit import log_event

booking_bp = Blueprint("booking", __name__)


def _first(source, *names):
    for name in names:
        value = source.get(name)
        if value not in (None, ""):
            return value
    return None


# ---------- PUBLIC: browse salons and artists ----------
@booking_bp.get("/locations")
def locations():
    return jsonify(locations=list_locations()), 200


@booking_bp.get("/artists")
def artists():
    location_id = _first(request.args, "locationId", "location_id")
    return jsonify(artists=list_artists(location_id)), 200


# ---------- PUBLIC: free slots for an artist at a salon ----------
@booking_bp.get("/availability")
def availability():
    args = request.args
    result = get_availability(
        artist_id=_first(args, "artistId", "resourceId", "artist_id"),
        location_id=_first(args, "locationId", "location_id"),
        from_date=_first(args, "fromDate", "from_date"),
        days=args.get("days"),
    )
    return jsonify(result), 200


# ---------- CUSTOMERS: book a slot (one winner per slot) ----------
@booking_bp.post("/bookings")
@login_required
def create_booking():
    data = request.get_json(silent=True) or {}
    artist_id = _first(data, "artistId", "resourceId", "artist_id")
    location_id = _first(data, "locationId", "location_id")
    slot = {"artist_id": artist_id, "location_id": location_id, "date": data.get("date"), "time": data.get("time")}

    try:
        booking = reserve_slot(
            owner_id=g.user.id,
            artist_id=artist_id,
            location_id=location_id,
            day=data.get("date"),
            time=data.get("time"),
            note=_first(data, "note", "notes"),
            customer={"name": g.user.full_name, "phone": g.user.phone_number},
        )
    except SlotAlreadyReserved:
        log_event("BOOKING_FAIL_ALREADY_RESERVED", user_id=g.user.id, entity="availability_slot", metadata=slot)
        raise
    except BookingFailed:
        log_event("BOOKING_FAIL_ROLLBACK", user_id=g.user.id, entity="availability_slot", metadata=slot)
        raise

    log_event(
        "BOOKING_CREATE",
        user_id=g.user.id,
        entity="booking",
        entity_id=booking.id,
        metadata={"timeslot": booking.timeslot, "artist_id": booking.artist_id},
    )
    return jsonify(booking=booking_to_dict(booking)), 201


# ---------- CUSTOMERS: my booking history ----------
@booking_bp.get("/bookings/mine")
@login_required
def my_bookings():
    return jsonify(bookings=list_bookings_for_owner(g.user.id, request.args.get("limit"))), 200
