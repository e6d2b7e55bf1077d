# config.py
import os
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()

SESSION_TTL = timedelta(days=7)
SESSION_COOKIE = "cs-examtest-session"
DEV_SECRET = "fallback-dev-secret-change-in-production"


def cookie_policy(production):
    """Cookie flags for the session cookie; cross-site only in production."""
    return {
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SECURE": production,
        "SESSION_COOKIE_SAMESITE": "None" if production else "Lax",
    }


def _split(value):
    return [item.strip() for item in value.split(",") if item.strip()]


class Config:
    PRODUCTION = os.environ.get("APP_ENV", "development") == "production"
    SECRET_KEY = os.environ.get("SESSION_SECRET")

    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///exam.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    SESSION_TYPE = "sqlalchemy"
    SESSION_SQLALCHEMY_TABLE = "sessions"
    SESSION_PERMANENT = True
    SESSION_COOKIE_NAME = SESSION_COOKIE
    PERMANENT_SESSION_LIFETIME = SESSION_TTL

    CORS_ORIGINS = _split(os.environ.get("CORS_ORIGINS", "http://localhost:5173"))


class TestingConfig(Config):
    TESTING = True
    PRODUCTION = False
    SECRET_KEY = "testing-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    CORS_ORIGINS = []
