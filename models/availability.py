from datetime import datetime
from models.db import db

class AvailabilityRecord(db.Model):
    __tablename__ = "availability_records"

    id = db.Column(db.Integer, primary_key=True)

    artist_id = db.Column(db.Integer, db.ForeignKey("artists.id"), nullable=False)
    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False)
    date = db.Column(db.String(10), nullable=False)  # YYYY-MM-DD

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    slots = db.relationship(
        "AvailabilitySlot",
        back_populates="record",
        order_by="AvailabilitySlot.id",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        # One record per artist, salon and calendar day
        db.UniqueConstraint("artist_id", "location_id", "date", name="uq_availability_artist_location_date"),
    )


class AvailabilitySlot(db.Model):
    __tablename__ = "availability_slots"

    id = db.Column(db.Integer, primary_key=True)
    record_id = db.Column(db.Integer, db.ForeignKey("availability_records.id"), nullable=False, index=True)

    time = db.Column(db.String(5), nullable=False)  # HH:MM
    reserved = db.Column(db.Boolean, default=False, nullable=False)

    record = db.relationship("AvailabilityRecord", back_populates="slots")

    __table_args__ = (
        db.UniqueConstraint("record_id", "time", name="uq_availability_slot_time"),
    )
