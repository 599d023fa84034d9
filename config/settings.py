import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-secret-change-me")
DEBUG = os.environ.get("DJANGO_DEBUG", "0") == "1"
ALLOWED_HOSTS = os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "wagers",
]

MIDDLEWARE = [
    "django.middleware.common.CommonMiddleware",
    "wagers.middleware.RequestResponseLoggingMiddleware",
]

ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"

# Account and log state live in process memory; the database is only here
# for the contrib apps DRF relies on.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "Africa/Luanda"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

REST_FRAMEWORK = {
    # Identity is resolved upstream; the account id arrives in the URL.
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": [],
    "UNAUTHENTICATED_USER": None,
    "DEFAULT_RENDERER_CLASSES": ["rest_framework.renderers.JSONRenderer"],
    "DEFAULT_PARSER_CLASSES": ["rest_framework.parsers.JSONParser"],
}

# Wager engine policy
WAGERS_MIN_STAKE = int(os.environ.get("WAGERS_MIN_STAKE", "100"))
WAGERS_MIN_DEPOSIT = int(os.environ.get("WAGERS_MIN_DEPOSIT", "1000"))
WAGERS_MIN_WITHDRAWAL = int(os.environ.get("WAGERS_MIN_WITHDRAWAL", "1000"))
WAGERS_BET_HISTORY_LIMIT = int(os.environ.get("WAGERS_BET_HISTORY_LIMIT", "50"))
WAGERS_WELCOME_BONUS = int(os.environ.get("WAGERS_WELCOME_BONUS", "100000"))
WAGERS_LOG_CAPACITY = (
    int(os.environ["WAGERS_LOG_CAPACITY"]) if os.environ.get("WAGERS_LOG_CAPACITY") else None
)
WAGERS_RANDOM_SEED = (
    int(os.environ["WAGERS_RANDOM_SEED"]) if os.environ.get("WAGERS_RANDOM_SEED") else None
)
WAGERS_MAINTENANCE_TOKEN = os.environ.get("WAGERS_MAINTENANCE_TOKEN") or None

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{asctime} {levelname} {name} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "wagers": {
            "handlers": ["console"],
            "level": os.environ.get("WAGERS_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}
