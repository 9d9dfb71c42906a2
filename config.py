"""Application configuration module."""

import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y"}


class Config:
    """Base configuration for the Flask application."""

    # Core
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", SECRET_KEY)
    # Bearer tokens are valid until the signing key changes.
    JWT_ACCESS_TOKEN_EXPIRES = False
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///review_app.db")
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # CORS
    _raw_origins = os.getenv("ORIGINS", "*")
    if _raw_origins.strip() == "*":
        CORS_ORIGINS = "*"
    else:
        CORS_ORIGINS = [o.strip() for o in _raw_origins.split(",") if o.strip()]

    # Rate limiting
    RATE_LIMIT = os.getenv("RATE_LIMIT", "60 per minute")
    RATELIMIT_HEADERS_ENABLED = True
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_KEY_PREFIX = os.getenv("RATELIMIT_KEY_PREFIX", "")

    # One-time tokens (TTL in seconds)
    OTP_LENGTH = int(os.getenv("OTP_LENGTH", "6"))
    EMAIL_VERIFICATION_TOKEN_TTL = int(os.getenv("EMAIL_VERIFICATION_TOKEN_TTL", "3600"))
    PASSWORD_RESET_TOKEN_TTL = int(os.getenv("PASSWORD_RESET_TOKEN_TTL", "3600"))
    RESET_PASSWORD_URL = os.getenv(
        "RESET_PASSWORD_URL", "http://localhost:3000/auth/reset-password"
    )

    # Outbound mail
    MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.mailtrap.io")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "2525"))
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS", False)
    MAIL_SUPPRESS_SEND = _env_bool("MAIL_SUPPRESS_SEND", False)
    MAIL_MAX_WORKERS = int(os.getenv("MAIL_MAX_WORKERS", "2"))
    MAIL_QUEUE_SIZE = int(os.getenv("MAIL_QUEUE_SIZE", "100"))
    MAIL_VERIFICATION_SENDER = os.getenv(
        "MAIL_VERIFICATION_SENDER", "verification@reviewapp.com"
    )
    MAIL_SECURITY_SENDER = os.getenv("MAIL_SECURITY_SENDER", "security@reviewapp.com")
