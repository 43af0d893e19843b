from datetime import date, timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError

from models import db
from models.artist import Artist
from models.availability import AvailabilityRecord, AvailabilitySlot
from models.location import Location
from models.user import User, Role
from security.password import hash_password, verify_password
from utils.once import OnceInitializer

DEFAULT_ROLES = ["CUSTOMER", "ADMIN", "SUPER_ADMIN"]

DEMO_SLOT_TEMPLATE = ["10:00", "11:30", "14:00", "16:00", "18:00"]
DEMO_DAYS = 7


def seed_roles():
    existing = {r.name for r in Role.query.all()}
    for name in DEFAULT_ROLES:
        if name not in existing:
            db.session.add(Role(name=name))
    db.session.commit()


def _ensure_admin_user(email=None, password=None):
    """
    Create the configured admin account, or resync its password hash when the
    configured password changed. Returns the user id, or None when unconfigured.
    """
    email = (email or current_app.config.get("ADMIN_EMAIL") or "").strip().lower()
    password = password or current_app.config.get("ADMIN_PASSWORD")
    if not email or not password:
        return None

    seed_roles()
    admin_role = Role.query.filter_by(name="ADMIN").first()

    user = User.query.filter_by(email=email).first()
    if user is None:
        user = User(email=email, password_hash=hash_password(password), full_name="Administrator")
        db.session.add(user)
        current_app.logger.info("Created admin account %s", email)
    elif not verify_password(password, user.password_hash):
        user.password_hash = hash_password(password)
        current_app.logger.info("Admin password for %s resynced from configuration", email)

    if admin_role not in user.roles:
        user.roles.append(admin_role)

    db.session.commit()
    return user.id


def _ensure_demo_data(days=DEMO_DAYS):
    """Two salons, three artists and a week of slots, only on an empty database."""
    if Location.query.count() > 0:
        return False

    downtown = Location(
        name="Downtown Glam Studio",
        slug="downtown-glam",
        city="Ulaanbaatar",
        district="Sukhbaatar",
        address="1st khoroo, Peace Avenue",
        phone="7010-1234",
        working_hours="Mon-Sun 10:00 - 20:00",
        description="Hair and make-up studio in the city centre.",
        sort_order=1,
    )
    riverside = Location(
        name="Riverside Beauty Loft",
        slug="riverside-beauty",
        city="Ulaanbaatar",
        district="Bayanzurkh",
        address="3rd khoroo, Amar Street",
        phone="7010-5678",
        working_hours="Mon-Sun 11:00 - 21:00",
        description="Quiet salon by the river.",
        sort_order=2,
    )
    artists = [
        Artist(name="Naraa", bio="Master stylist, 10+ years.",
               specialties=["Haircut", "Make-up"], locations=[downtown]),
        Artist(name="Temuujin", bio="Colour and balayage specialist.",
               specialties=["Hair colour", "Men's cuts"], locations=[downtown, riverside]),
        Artist(name="Khishgee", bio="Make-up and brow expert.",
               specialties=["Make-up", "Brows"], locations=[riverside]),
    ]
    db.session.add_all([downtown, riverside, *artists])
    db.session.flush()

    today = date.today()
    for artist in artists:
        for location in artist.locations:
            for offset in range(days):
                db.session.add(AvailabilityRecord(
                    artist_id=artist.id,
                    location_id=location.id,
                    date=(today + timedelta(days=offset)).isoformat(),
                    slots=[AvailabilitySlot(time=t) for t in DEMO_SLOT_TEMPLATE],
                ))
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        current_app.logger.warning("Demo data already present, skipped")
        return False

    current_app.logger.info("Seeded demo salons, artists and %s days of slots", days)
    return True


ensure_admin_user = OnceInitializer(_ensure_admin_user, name="ensure_admin_user")
ensure_demo_data = OnceInitializer(_ensure_demo_data, name="ensure_demo_data")


def bootstrap():
    """Called once from create_app inside an app context."""
    seed_roles()
    if current_app.config.get("ADMIN_EMAIL") and current_app.config.get("ADMIN_PASSWORD"):
        ensure_admin_user()
    if current_app.config.get("SEED_DEMO_DATA"):
        ensure_demo_data()
