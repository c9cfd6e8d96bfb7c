"""
Django settings for the sheet row editor.

Everything deployment-specific comes from the environment; the defaults are
good enough for local runs and the test suite.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def env_bool(name, default=False):
    return os.environ.get(name, str(default)).lower() in ("1", "true", "yes", "on")


SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-only-insecure-key")
DEBUG = env_bool("DJANGO_DEBUG", False)
ALLOWED_HOSTS = [h for h in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "sheetrows.apps.SheetrowsConfig",
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

ROOT_URLCONF = "sheetsite.urls"

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

WSGI_APPLICATION = "sheetsite.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("DJANGO_DB_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

LOGIN_URL = "login"
LOGIN_REDIRECT_URL = "sheet"

# the update endpoint is CSRF-exempt and trusts session cookies only same-site
SESSION_COOKIE_SAMESITE = "Lax"

# lifetime of the bearer tokens handed out by /api/token/
API_TOKEN_MAX_AGE = int(os.environ.get("API_TOKEN_MAX_AGE", str(60 * 60 * 12)))

# ==============================================================
# EMAIL (sign-up verification codes)
# ==============================================================

EMAIL_BACKEND = os.environ.get("EMAIL_BACKEND", "django.core.mail.backends.console.EmailBackend")
EMAIL_HOST = os.environ.get("EMAIL_HOST", "localhost")
EMAIL_PORT = int(os.environ.get("EMAIL_PORT", "25"))
EMAIL_HOST_USER = os.environ.get("EMAIL_HOST_USER", "")
EMAIL_HOST_PASSWORD = os.environ.get("EMAIL_HOST_PASSWORD", "")
EMAIL_USE_TLS = env_bool("EMAIL_USE_TLS", False)
DEFAULT_FROM_EMAIL = os.environ.get("DEFAULT_FROM_EMAIL", "no-reply@localhost")

# ==============================================================
# SHEET + APPS SCRIPT
# ==============================================================

SHEET_ID = os.environ.get("SHEET_ID", "1AOGXNkuKCz4udYDyqvpyJSGpxi_Ro6WVwI2sV_RCTho")
SHEET_GID = os.environ.get("SHEET_GID", "862163295")

# used when a user has not saved their own script URL
DEFAULT_SCRIPT_URL = os.environ.get("DEFAULT_SCRIPT_URL", "")

SHEET_FETCH_TIMEOUT = float(os.environ.get("SHEET_FETCH_TIMEOUT", "20"))
SCRIPT_POST_TIMEOUT = float(os.environ.get("SCRIPT_POST_TIMEOUT", "30"))

# ==============================================================
# LOGGING
# ==============================================================

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
        "sheetrows": {
            "handlers": ["console"],
            "level": os.environ.get("SHEETROWS_LOG_LEVEL", "INFO"),
            "propagate": True,
        },
    },
}
