import os
from datetime import timedelta
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent  # project root (where wsgi.py is)
load_dotenv(BASE_DIR / ".env")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///pollcircle.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Identity: tokens are issued by the identity provider, we only verify them
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "jwt-dev-secret")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(
        minutes=int(os.getenv("JWT_ACCESS_TOKEN_EXPIRES_MIN", "30"))
    )

    # Mail (SMTP)
    MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.gmail.com")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS", "true")
    MAIL_USE_SSL = _env_bool("MAIL_USE_SSL", "false")
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", MAIL_USERNAME)

    # Links in outbound notifications
    APP_BASE_URL = os.getenv("APP_BASE_URL", "http://localhost:5000")
    MAIL_SUBJECT_PREFIX = os.getenv("MAIL_SUBJECT_PREFIX", "[PollCircle]")

    # Communities
    JOIN_CODE_MAX_ATTEMPTS = int(os.getenv("JOIN_CODE_MAX_ATTEMPTS", "5"))

    # Resolution notifier
    NOTIFIER_MAX_WORKERS = int(os.getenv("NOTIFIER_MAX_WORKERS", "8"))
    NOTIFIER_DISPATCH_WORKERS = int(os.getenv("NOTIFIER_DISPATCH_WORKERS", "2"))

    # Retention
    RETENTION_DAYS = int(os.getenv("RETENTION_DAYS", "30"))
    RETENTION_CASCADE_COMMENTS = _env_bool("RETENTION_CASCADE_COMMENTS", "true")
    RETENTION_SWEEP_INTERVAL_HOURS = int(os.getenv("RETENTION_SWEEP_INTERVAL_HOURS", "24"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    SWAGGER = {"title": "PollCircle API", "uiversion": 3}


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-length"
    MAIL_DEFAULT_SENDER = "noreply@pollcircle.test"
    MAIL_SUPPRESS_SEND = True
    NOTIFIER_MAX_WORKERS = 2
    LOG_LEVEL = "DEBUG"
