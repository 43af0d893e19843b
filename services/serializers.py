WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def location_to_dict(loc):
    return {
        "id": loc.id,
        "name": loc.name,
        "city": loc.city,
        "district": loc.district,
        "address": loc.address,
        "phone": loc.phone,
        "working_hours": loc.working_hours,
        "description": loc.description,
        "image_url": loc.image_url,
    }


def artist_to_dict(artist, with_locations=False):
    out = {
        "id": artist.id,
        "name": artist.name,
        "bio": artist.bio,
        "specialties": list(artist.specialties or []),
        "avatar_url": artist.avatar_url,
    }
    if with_locations:
        out["locations"] = [{"id": loc.id, "name": loc.name} for loc in artist.locations]
        out["is_active"] = artist.is_active
    return out


def slot_to_dict(slot, held=False):
    # clients only ever see availability, never the reservation flag itself
    return {"time": slot.time, "available": not (slot.reserved or held)}


def booking_to_dict(b):
    return {
        "id": b.id,
        "status": b.status,
        "date": b.date,
        "time": b.time,
        "timeslot": b.timeslot,
        "note": b.note,
        "location": {"id": b.location_id, "name": b.location.name if b.location else None},
        "artist": {"id": b.artist_id, "name": b.artist.name if b.artist else None},
        "created_at": b.created_at.isoformat() if b.created_at else None,
        "cancelled_at": b.cancelled_at.isoformat() if b.cancelled_at else None,
    }
