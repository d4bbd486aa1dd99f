import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the app as foamly.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "foamly.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session cookie name for our auth token
    AUTH_COOKIE_NAME = "foamly_session"

    # 8 hours session lifetime
    SESSION_LIFETIME_SECONDS = 8 * 60 * 60

    # Idle timeout: 30 minutes
    IDLE_TIMEOUT_SECONDS = 30 * 60

    # Session/cookie security defaults
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() == "true"

    # Registration
    PASSWORD_MIN_LEN = int(os.getenv("PASSWORD_MIN_LEN", "8"))
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # Proximity search
    DEFAULT_SERVICE_RADIUS_METERS = int(os.getenv("DEFAULT_SERVICE_RADIUS_METERS", "10000"))

    # Booking rules
    BOOKING_LOCATION_MIN_LEN = 5
    ENFORCE_BOOKING_TRANSITIONS = os.getenv("ENFORCE_BOOKING_TRANSITIONS", "true").lower() == "true"

    # Bookable time grid (provider local day)
    SLOT_DAY_START_HOUR = 8
    SLOT_DAY_END_HOUR = 18
    SLOT_INTERVAL_MINUTES = 30

    # Pricing
    PRICING_CURRENCY = os.getenv("PRICING_CURRENCY", "USD")

    # Chat polling page size
    CHAT_POLL_MAX_MESSAGES = 200

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Basic app settings
    DEBUG = False


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SECRET_KEY = "test-secret"
    BCRYPT_ROUNDS = 4
