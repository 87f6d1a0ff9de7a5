# spa_booking/settings.py
#
# Purpose:
# - Django settings for the spa booking project.
# - Values come from the environment (optionally a .env file at the repo root).
#
# Notes for developers:
# - BOOKING_ENGINE holds the tunables of the booking constraint engine.
#   Business hours can also be overridden at runtime via configmgr.SystemSetting
#   (keys BUSINESS_OPEN / BUSINESS_CLOSE).
#
import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(dotenv_path=BASE_DIR / ".env")

SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-insecure-key-change-me")
DEBUG = os.getenv("DEBUG", "true").lower() in ("1", "true", "yes")
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "*").split(",") if h.strip()]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "configmgr",
    "booking",
    "staff",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "spa_booking.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "spa_booking.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.getenv("DB_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.getenv("TIME_ZONE", "Pacific/Guam")
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
    ],
}

# -------------------------
# Booking engine tunables
# -------------------------
BOOKING_ENGINE = {
    "BUSINESS_OPEN": os.getenv("BUSINESS_OPEN", "09:00"),
    "BUSINESS_CLOSE": os.getenv("BUSINESS_CLOSE", "19:00"),
    "SLOT_MINUTES": 15,
    "MAX_ADVANCE_DAYS": int(os.getenv("MAX_ADVANCE_DAYS", "30")),
    "COUPLES_MAX_ATTEMPTS": 3,
    "COUPLES_BACKOFF_MS": int(os.getenv("COUPLES_BACKOFF_MS", "1000")),
    "CANCEL_CUTOFF_MINUTES": 120,
}

# -------------------------
# Logging
# -------------------------
BOOKING_LOG_LEVEL = os.getenv("BOOKING_LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "booking": {"handlers": ["console"], "level": BOOKING_LOG_LEVEL, "propagate": False},
        "staff": {"handlers": ["console"], "level": BOOKING_LOG_LEVEL, "propagate": False},
    },
}
