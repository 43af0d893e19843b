import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to app.py as salonslot.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "salonslot.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # sqlite waits this long for a competing writer before "database is locked"
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "connect_args": {"timeout": 30} if os.getenv("DATABASE_URL", "sqlite").startswith("sqlite") else {},
    }

    # Session cookie name for our auth token
    AUTH_COOKIE_NAME = "salonslot_session"

    # 12 hours session lifetime
    SESSION_LIFETIME_SECONDS = 12 * 60 * 60

    # Idle timeout: 2 hours
    IDLE_TIMEOUT_SECONDS = 2 * 60 * 60

    # Session/cookie security defaults
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() == "true"

    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # Availability / history paging
    AVAILABILITY_DEFAULT_DAYS = 7
    AVAILABILITY_MAX_DAYS = 30
    BOOKING_HISTORY_LIMIT = 20

    # Admin bootstrap (both must be set for the admin account to be ensured)
    ADMIN_EMAIL = os.getenv("ADMIN_EMAIL")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")

    # Seed two demo salons with a week of slots when the database is empty
    SEED_DEMO_DATA = os.getenv("SEED_DEMO_DATA", "false").lower() == "true"

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Production schemas come from `flask db upgrade`; tests and quick demos create them directly
    CREATE_TABLES_ON_STARTUP = os.getenv("CREATE_TABLES_ON_STARTUP", "false").lower() == "true"

    # Basic app settings
    DEBUG = False
