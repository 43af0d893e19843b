import re
from datetime import datetime

from flask import Blueprint, jsonify, g, request
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from models import db
from models.artist import Artist, artist_locations
from models.availability import AvailabilityRecord
from models.booking import BOOKING_CANCELLED, BOOKING_CONFIRMED, Booking
from models.location import Location
from security.rbac import require_roles
from services.availability import upsert_record
from services.errors import InvalidInput, NotFound
from services.queries import resolve_artist_at_location
from services.reservation import find_unbooked_reservations
from services.serializers import artist_to_dict, booking_to_dict, location_to_dict, slot_to_dict
from services.validation import parse_date, parse_id
from utils.audit import log_event

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")

LOCATION_FIELDS = ("name", "city", "district", "address", "phone", "working_hours", "description", "image_url")


def _slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", (text or "").strip().lower()).strip("-") or None


def _parse_iso_arg(name: str):
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        raise InvalidInput(f"Invalid {name}. Use ISO e.g. 2026-01-20T00:00:00")


def _sort_order(value) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        raise InvalidInput("sort_order must be an integer")


def _locations_from_ids(raw_ids):
    if not isinstance(raw_ids, list):
        raise InvalidInput("locationIds must be a list")
    ids = [parse_id(v, "locationId") for v in raw_ids]
    found = Location.query.filter(Location.id.in_(ids)).all() if ids else []
    if len(found) != len(set(ids)):
        raise InvalidInput("Some selected locations were not found")
    return found


# ---------- ADMIN: salons ----------
@admin_bp.get("/locations")
@require_roles("ADMIN")
def list_all_locations():
    rows = Location.query.order_by(Location.sort_order.asc(), Location.name.asc()).all()
    return jsonify(locations=[dict(location_to_dict(loc), is_active=loc.is_active) for loc in rows]), 200


@admin_bp.post("/locations")
@require_roles("ADMIN")
def create_location():
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip()
    if not name:
        return jsonify(error="Location name required", kind="InvalidInput"), 400

    loc = Location(slug=_slugify(name), sort_order=_sort_order(data.get("sort_order")))
    for field in LOCATION_FIELDS:
        value = data.get(field)
        if isinstance(value, str):
            setattr(loc, field, value.strip() or None)
    loc.name = name

    db.session.add(loc)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify(error="Location already exists", kind="Conflict"), 409

    log_event("LOCATION_CREATE", user_id=g.user.id, entity="location", entity_id=loc.id)
    return jsonify(location=location_to_dict(loc)), 201


@admin_bp.put("/locations/<int:location_id>")
@require_roles("ADMIN")
def update_location(location_id: int):
    data = request.get_json(silent=True) or {}
    loc = db.session.get(Location, location_id)
    if not loc:
        raise NotFound("Location not found")

    for field in LOCATION_FIELDS:
        if field in data and isinstance(data[field], str):
            setattr(loc, field, data[field].strip() or None)
    if data.get("name"):
        loc.slug = _slugify(data["name"])
    if "sort_order" in data:
        loc.sort_order = _sort_order(data["sort_order"])
    if "is_active" in data:
        loc.is_active = bool(data["is_active"])
    if not loc.name:
        return jsonify(error="Location name required", kind="InvalidInput"), 400

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify(error="Location already exists", kind="Conflict"), 409

    log_event("LOCATION_UPDATE", user_id=g.user.id, entity="location", entity_id=loc.id)
    return jsonify(location=dict(location_to_dict(loc), is_active=loc.is_active)), 200


@admin_bp.delete("/locations/<int:location_id>")
@require_roles("ADMIN")
def delete_location(location_id: int):
    loc = db.session.get(Location, location_id)
    if not loc:
        raise NotFound("Location not found")

    linked = db.session.query(artist_locations).filter(artist_locations.c.location_id == location_id).count()
    if linked or Booking.query.filter_by(location_id=location_id).count():
        return jsonify(error="Location still has artists or bookings; deactivate it instead", kind="Conflict"), 409

    for record in AvailabilityRecord.query.filter_by(location_id=location_id).all():
        db.session.delete(record)
    db.session.delete(loc)
    db.session.commit()

    log_event("LOCATION_DELETE", user_id=g.user.id, entity="location", entity_id=location_id)
    return jsonify(message="Location deleted"), 200


# ---------- ADMIN: artists ----------
@admin_bp.get("/artists")
@require_roles("ADMIN")
def list_all_artists():
    rows = Artist.query.order_by(Artist.name.asc()).all()
    return jsonify(artists=[artist_to_dict(a, with_locations=True) for a in rows]), 200


@admin_bp.post("/artists")
@require_roles("ADMIN")
def create_artist():
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip()
    if not name:
        return jsonify(error="Artist name required", kind="InvalidInput"), 400

    specialties = data.get("specialties")
    artist = Artist(
        name=name,
        bio=(data.get("bio") or "").strip() or None,
        specialties=[s for s in specialties if isinstance(s, str) and s.strip()] if isinstance(specialties, list) else [],
        avatar_url=(data.get("avatar_url") or "").strip() or None,
        is_active=bool(data.get("is_active", True)),
        locations=_locations_from_ids(data.get("locationIds") or []),
    )
    db.session.add(artist)
    db.session.commit()

    log_event("ARTIST_CREATE", user_id=g.user.id, entity="artist", entity_id=artist.id)
    return jsonify(artist=artist_to_dict(artist, with_locations=True)), 201


@admin_bp.put("/artists/<int:artist_id>")
@require_roles("ADMIN")
def update_artist(artist_id: int):
    data = request.get_json(silent=True) or {}
    artist = db.session.get(Artist, artist_id)
    if not artist:
        raise NotFound("Artist not found")

    if isinstance(data.get("name"), str) and data["name"].strip():
        artist.name = data["name"].strip()
    if "bio" in data:
        artist.bio = (data.get("bio") or "").strip() or None
    if isinstance(data.get("specialties"), list):
        artist.specialties = [s for s in data["specialties"] if isinstance(s, str) and s.strip()]
    if "avatar_url" in data:
        artist.avatar_url = (data.get("avatar_url") or "").strip() or None
    if "is_active" in data:
        artist.is_active = bool(data["is_active"])
    if "locationIds" in data:
        artist.locations = _locations_from_ids(data["locationIds"])

    db.session.commit()
    log_event("ARTIST_UPDATE", user_id=g.user.id, entity="artist", entity_id=artist.id)
    return jsonify(artist=artist_to_dict(artist, with_locations=True)), 200


@admin_bp.post("/artists/<int:artist_id>/locations")
@require_roles("ADMIN")
def assign_artist_locations(artist_id: int):
    data = request.get_json(silent=True) or {}
    artist = db.session.get(Artist, artist_id)
    if not artist:
        raise NotFound("Artist not found")

    artist.locations = _locations_from_ids(data.get("locationIds") or [])
    db.session.commit()

    log_event(
        "ARTIST_LOCATIONS_SET",
        user_id=g.user.id,
        entity="artist",
        entity_id=artist.id,
        metadata={"locationIds": [loc.id for loc in artist.locations]},
    )
    return jsonify(artist=artist_to_dict(artist, with_locations=True)), 200


@admin_bp.delete("/artists/<int:artist_id>")
@require_roles("ADMIN")
def delete_artist(artist_id: int):
    artist = db.session.get(Artist, artist_id)
    if not artist:
        raise NotFound("Artist not found")

    # bookings keep pointing at the artist, so booked artists are only deactivated
    if Booking.query.filter_by(artist_id=artist_id).count():
        return jsonify(error="Artist has bookings; deactivate instead", kind="Conflict"), 409

    for record in AvailabilityRecord.query.filter_by(artist_id=artist_id).all():
        db.session.delete(record)
    db.session.delete(artist)
    db.session.commit()

    log_event("ARTIST_DELETE", user_id=g.user.id, entity="artist", entity_id=artist_id)
    return jsonify(message="Artist deleted"), 200


# ---------- ADMIN: seed a day's slots ----------
@admin_bp.put("/availability")
@require_roles("ADMIN")
def put_availability():
    data = request.get_json(silent=True) or {}
    artist_id = parse_id(data.get("artistId"), "artistId")
    location_id = parse_id(data.get("locationId"), "locationId")
    day = parse_date(data.get("date"))

    resolve_artist_at_location(artist_id, location_id)
    record = upsert_record(artist_id, location_id, day, data.get("slots"))

    log_event(
        "AVAILABILITY_UPSERT",
        user_id=g.user.id,
        entity="availability_record",
        entity_id=record.id,
        metadata={"date": day, "slots": [s.time for s in record.slots]},
    )
    return jsonify(
        id=record.id,
        date=record.date,
        slots=[slot_to_dict(s) for s in record.slots],
    ), 200


# ---------- ADMIN: bookings ----------
@admin_bp.get("/bookings")
@require_roles("ADMIN")
def list_all_bookings():
    status = request.args.get("status")
    q = Booking.query
    if status:
        q = q.filter_by(status=status)

    rows = q.order_by(Booking.created_at.desc(), Booking.id.desc()).limit(200).all()
    return jsonify(bookings=[dict(booking_to_dict(b), user_id=b.user_id) for b in rows]), 200


@admin_bp.post("/bookings/<int:booking_id>/cancel")
@require_roles("ADMIN")
def admin_cancel_booking(booking_id: int):
    booking = db.session.get(Booking, booking_id)
    if not booking:
        raise NotFound("Booking not found")

    if booking.status != BOOKING_CONFIRMED:
        return jsonify(error="Booking not cancellable", kind="InvalidInput"), 400

    # the slot stays reserved: releasing it is not part of this flow
    booking.status = BOOKING_CANCELLED
    booking.cancelled_at = datetime.utcnow()
    db.session.commit()

    log_event("ADMIN_BOOKING_CANCEL", user_id=g.user.id, entity="booking", entity_id=booking.id)
    return jsonify(booking=booking_to_dict(booking)), 200


# ---------- ADMIN: ledger consistency ----------
@admin_bp.get("/ledger/orphans")
@require_roles("ADMIN")
def ledger_orphans():
    orphans = find_unbooked_reservations()
    if orphans:
        log_event("LEDGER_ORPHANS_FOUND", user_id=g.user.id, metadata={"count": len(orphans)})
    return jsonify(orphans=orphans, count=len(orphans)), 200


@admin_bp.get("/analytics/artists")
@require_roles("ADMIN")
def artist_analytics():
    q = (
        db.session.query(
            Artist.id,
            Artist.name,
            func.count(Booking.id).label("total"),
            func.max(Booking.created_at).label("latest"),
        )
        .join(Booking, Booking.artist_id == Artist.id)
        .filter(Booking.status == BOOKING_CONFIRMED)
    )
    start = _parse_iso_arg("start")
    end = _parse_iso_arg("end")
    if start:
        q = q.filter(Booking.created_at >= start)
    if end:
        q = q.filter(Booking.created_at <= end)

    rows = q.group_by(Artist.id, Artist.name).order_by(func.count(Booking.id).desc()).all()
    return jsonify(stats=[
        {
            "id": r.id,
            "name": r.name,
            "total_bookings": r.total,
            "latest_booking": r.latest.isoformat() if r.latest else None,
        }
        for r in rows
    ]), 200
