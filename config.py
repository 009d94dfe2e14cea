import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def _csv(value):
    return [v.strip() for v in (value or "").split(",") if v.strip()]


class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the app as studio.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "studio.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    # Admin auth (bearer JWT)
    JWT_SECRET = os.getenv("JWT_SECRET")
    JWT_ALGORITHM = "HS256"
    JWT_EXPIRES_HOURS = int(os.getenv("JWT_EXPIRES_HOURS", "24"))
    ALLOWED_ADMINS = _csv(os.getenv("ALLOWED_ADMINS"))
    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # Stripe
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
    CHECKOUT_CURRENCY = os.getenv("CHECKOUT_CURRENCY", "gbp")

    # Frontend used for checkout success/cancel redirects
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

    # Recorded with every booking that accepted the terms
    TERMS_VERSION = os.getenv("TERMS_VERSION", "v1-feb-2026")

    # Email (SMTP)
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL")
    SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"

    # Booking/contact notifications go here (defaults to SMTP_FROM_EMAIL)
    ADMIN_EMAIL = os.getenv("ADMIN_EMAIL")
    BUSINESS_NAME = os.getenv("BUSINESS_NAME", "Bruna Alves Photography")

    # Contact form
    CONTACT_MAX_MESSAGE_LENGTH = 1000

    # Basic app settings
    DEBUG = False
