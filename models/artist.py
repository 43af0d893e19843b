from datetime import datetime
from models.db import db

# association table for many-to-many Artist <-> Location (which salons an artist serves)
artist_locations = db.Table(
    "artist_locations",
    db.Column("artist_id", db.Integer, db.ForeignKey("artists.id"), primary_key=True),
    db.Column("location_id", db.Integer, db.ForeignKey("locations.id"), primary_key=True),
)

class Artist(db.Model):
    __tablename__ = "artists"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    bio = db.Column(db.Text, nullable=True)
    specialties = db.Column(db.JSON, nullable=False, default=list)
    avatar_url = db.Column(db.String(255), nullable=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    locations = db.relationship("Location", secondary=artist_locations, lazy="selectin")
