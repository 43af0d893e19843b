from datetime import datetime
from models.db import db

BOOKING_CONFIRMED = "confirmed"
BOOKING_CANCELLED = "cancelled"

class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    artist_id = db.Column(db.Integer, db.ForeignKey("artists.id"), nullable=False)
    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False)

    date = db.Column(db.String(10), nullable=False)
    time = db.Column(db.String(5), nullable=False)
    timeslot = db.Column(db.String(16), nullable=False)  # "<date>T<time>"

    status = db.Column(db.String(20), nullable=False, default=BOOKING_CONFIRMED)
    # status values: confirmed, cancelled

    note = db.Column(db.Text, nullable=True)
    customer_name = db.Column(db.String(120), nullable=True)
    customer_phone = db.Column(db.String(30), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    artist = db.relationship("Artist", lazy="joined")
    location = db.relationship("Location", lazy="joined")

    __table_args__ = (
        # Hard business-rule: an artist holds at most one booking per instant
        db.UniqueConstraint("artist_id", "timeslot", name="uq_booking_artist_timeslot"),
        db.Index("ix_bookings_user_created", "user_id", "created_at"),
    )

    @staticmethod
    def make_timeslot(date: str, time: str) -> str:
        return f"{date}T{time}"
