from .health import health_bp
from .auth import auth_bp
from .admin import admin_bp
from .booking import booking_bp
