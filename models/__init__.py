from .db import db
from .user import User, Role, user_roles
from .audit_log import AuditLog
from .session import Session
from .location import Location
from .artist import Artist, artist_locations
from .availability import AvailabilityRecord, AvailabilitySlot
from .booking import Booking
