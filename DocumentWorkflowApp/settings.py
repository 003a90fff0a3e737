"""Django settings for the document workflow API.

Values come from the environment (or a ``.env`` file beside ``manage.py``)
once at startup. ``JWT_SECRET`` and ``DB_NAME`` are required: without them
the settings module refuses to load, so nothing can serve traffic with a
guessable signing key.
"""

import os
from datetime import timedelta
from pathlib import Path

import environ
from django.core.exceptions import ImproperlyConfigured

BASE_DIR = Path(__file__).resolve().parent.parent

env = environ.Env()
environ.Env.read_env(os.path.join(BASE_DIR, ".env"))


def require_env(name: str) -> str:
    """Like ``env(name)`` but a blank value counts as missing too."""
    value = env.str(name).strip()
    if not value:
        raise ImproperlyConfigured(f"Set the {name} environment variable")
    return value


JWT_SECRET = require_env("JWT_SECRET")
SECRET_KEY = env("DJANGO_SECRET_KEY", default=JWT_SECRET)
DEBUG = env.bool("DEBUG", default=False)
ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=["localhost", "127.0.0.1"])

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "rest_framework",
    "drf_spectacular",
    "DocumentWorkflowApp.core",
    "DocumentWorkflowApp.users",
    "DocumentWorkflowApp.documents",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "DocumentWorkflowApp.urls"
WSGI_APPLICATION = "DocumentWorkflowApp.wsgi.application"
ASGI_APPLICATION = "DocumentWorkflowApp.asgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {"context_processors": ["django.template.context_processors.request"]},
    },
]

DB_ENGINE = env.str("DB_ENGINE", default="sqlite").strip().lower()
if DB_ENGINE == "postgresql":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": require_env("DB_NAME"),
            "USER": env("DB_USER", default=""),
            "PASSWORD": env("DB_PASSWORD", default=""),
            "HOST": env("DB_HOST", default="localhost"),
            "PORT": env("DB_PORT", default="5432"),
            "CONN_MAX_AGE": env.int("DB_CONN_MAX_AGE", default=60),
        }
    }
elif DB_ENGINE == "sqlite":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": require_env("DB_NAME"),
        }
    }
else:
    raise ImproperlyConfigured(f"Unsupported DB_ENGINE {DB_ENGINE!r}; use 'sqlite' or 'postgresql'.")

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
AUTH_USER_MODEL = "users.User"

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator", "OPTIONS": {"min_length": 6}},
]

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "DocumentWorkflowApp.api.authentication.PrincipalJWTAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.IsAuthenticated"],
    "DEFAULT_PAGINATION_CLASS": "DocumentWorkflowApp.api.pagination.EnvelopePagination",
    "PAGE_SIZE": 50,
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "EXCEPTION_HANDLER": "DocumentWorkflowApp.api.exceptions.envelope_exception_handler",
    "UNAUTHENTICATED_USER": None,
    # ?format= selects the download encoding, not a DRF renderer
    "URL_FORMAT_OVERRIDE": None,
    "DEFAULT_THROTTLE_RATES": {
        "login": env("LOGIN_THROTTLE_RATE", default="20/minute"),
    },
}

SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=env.int("JWT_ACCESS_TTL_MINUTES", default=1440)),
    "ALGORITHM": "HS256",
    "SIGNING_KEY": JWT_SECRET,
    "AUTH_HEADER_TYPES": ("Bearer",),
    "USER_ID_FIELD": "id",
    "USER_ID_CLAIM": "id",
    "UPDATE_LAST_LOGIN": False,
}

SPECTACULAR_SETTINGS = {
    "TITLE": "Document Workflow API",
    "DESCRIPTION": "Student -> teacher -> curator approval pipeline for templated documents.",
    "VERSION": "1.0.0",
}

DOCUMENT_TEMPLATES_DIR = Path(
    env("DOCUMENT_TEMPLATES_DIR", default=str(BASE_DIR / "DocumentWorkflowApp" / "templating" / "definitions"))
)

LOG_LEVEL = env("LOG_LEVEL", default="INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        },
    },
    "handlers": {
        "console": {
            "level": LOG_LEVEL,
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "loggers": {
        "": {
            "handlers": ["console"],
            "level": "WARNING",
        },
        "DocumentWorkflowApp": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
        "django.request": {
            "handlers": ["console"],
            "level": "ERROR",
            "propagate": False,
        },
    },
}
