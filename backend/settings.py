import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _getenv(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


SECRET_KEY = _getenv("DJANGO_SECRET_KEY", "dev-insecure-change-me")
DEBUG = _getenv("DJANGO_DEBUG", "1") == "1"
ALLOWED_HOSTS = [h for h in _getenv("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "content",
    "autotag",
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

ROOT_URLCONF = "backend.urls"

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

WSGI_APPLICATION = "backend.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": _getenv("DB_ENGINE", "django.db.backends.sqlite3"),
        "NAME": _getenv("DB_NAME", str(BASE_DIR / "db.sqlite3")),
        "USER": _getenv("DB_USER"),
        "PASSWORD": _getenv("DB_PASSWORD"),
        "HOST": _getenv("DB_HOST"),
        "PORT": _getenv("DB_PORT"),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "es"
TIME_ZONE = "America/La_Paz"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
        "rest_framework.authentication.BasicAuthentication",
    ],
}

# =========================
# Image auto tag (Azure Face API)
# =========================
IMAGE_AUTO_TAG = {
    "AZURE_ENDPOINT": _getenv("AZURE_FACE_ENDPOINT"),
    "AZURE_SERVICE_KEY": _getenv("AZURE_FACE_KEY"),
    "PERSON_GROUP_ID": _getenv("AZURE_PERSON_GROUP_ID", "django_image_auto_tag_people"),
    "PERSON_ENTITY_BUNDLE": "content.person",
    "PERSON_IMAGE_FIELD": "faces",
    "FILE_ENTITY_MODEL": "content.imagefile",
    "DETECTION_FIELDS": {
        "content.article": {"image": "people"},
    },
    "SYNCHRONOUS": _getenv("IMAGE_AUTO_TAG_SYNCHRONOUS", "1") == "1",
    "MIN_CONFIDENCE": None,
    "MAX_RETRIES": int(_getenv("AZURE_FACE_MAX_RETRIES", "3")),
    "RETRY_BASE_DELAY": 1.0,
    "TIMEOUT": 30.0,
    "QUEUE_MAX_ATTEMPTS": 5,
    "QUEUE_CLAIM_TIMEOUT": 3600.0,
}

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
        "autotag": {
            "handlers": ["console"],
            "level": _getenv("AUTOTAG_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}
