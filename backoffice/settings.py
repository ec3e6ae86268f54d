"""
Django settings for the fuel-station back office.

Everything deployment-specific is read from the environment; the defaults
are suitable for local development and the test suite.
"""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name, default=None):
    value = os.environ.get(name)
    if not value:
        return default
    return int(value)


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-only-not-for-production")
DEBUG = _env_bool("DJANGO_DEBUG", False)
ALLOWED_HOSTS = [h for h in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h]

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "org",
    "inventory",
    "shifts",
    "ledger",
    "billing",
    "reports",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
]

ROOT_URLCONF = "backoffice.urls"
WSGI_APPLICATION = "backoffice.wsgi.application"

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

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("BACKOFFICE_DB_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = os.environ.get("BACKOFFICE_TIME_ZONE", "Asia/Dhaka")
USE_I18N = True
USE_TZ = True

LOGIN_URL = "/accounts/login/"

LOG_LEVEL = os.environ.get("BACKOFFICE_LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        app: {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False}
        for app in ("backoffice", "shifts", "ledger", "billing", "reports")
    },
}

# Back-office posting and reporting configuration.
# Control accounts are looked up by ac_number; when unset the first active
# account of the natural group is used (CASH_IN_HAND, INCOME, EXPENSE).
BACKOFFICE = {
    "COMPANY_SETTING_ID": _env_int("BACKOFFICE_COMPANY_SETTING_ID"),
    "CASH_ACCOUNT_NUMBER": os.environ.get("BACKOFFICE_CASH_ACCOUNT_NUMBER") or None,
    "SALES_ACCOUNT_NUMBER": os.environ.get("BACKOFFICE_SALES_ACCOUNT_NUMBER") or None,
    "PURCHASE_ACCOUNT_NUMBER": os.environ.get("BACKOFFICE_PURCHASE_ACCOUNT_NUMBER") or None,
    "LEDGER_PER_PAGE": _env_int("BACKOFFICE_LEDGER_PER_PAGE", 10),
    "LEDGER_MAX_PER_PAGE": _env_int("BACKOFFICE_LEDGER_MAX_PER_PAGE", 100),
}
