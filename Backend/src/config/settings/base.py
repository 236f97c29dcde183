import os
from datetime import timedelta
from pathlib import Path

# ----- Paths -----
# Base du projet (Backend/src)
BASE_DIR = Path(__file__).resolve().parent.parent.parent
DATA_DIR = BASE_DIR / "data"
DATA_DIR.mkdir(parents=True, exist_ok=True)

# Racine des fichiers uploades (medias d'audit)
STORAGE_ROOT = Path(os.getenv("STORAGE_ROOT", str(DATA_DIR / "storage")))

# ----- Core -----
SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev_only_change_me")
DEBUG = os.getenv("DJANGO_DEBUG", "0") == "1"

# ALLOWED_HOSTS par defaut + env
_default_hosts = {"localhost", "127.0.0.1", "[::1]"}
ALLOWED_HOSTS = [h for h in os.getenv("DJANGO_ALLOWED_HOSTS", "").split(",") if h] or list(_default_hosts)

# ----- Applications -----
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    # 3rd party
    "rest_framework",
    "corsheaders",

    # project apps
    "common",
    "users",
    "audits",
    "reports",
]

AUTH_USER_MODEL = "users.User"

# ----- Middleware -----
MIDDLEWARE = [
    "common.middleware.RequestIDMiddleware",

    "django.middleware.security.SecurityMiddleware",

    # cors avant CommonMiddleware
    "corsheaders.middleware.CorsMiddleware",

    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "config.wsgi.application"
ASGI_APPLICATION = "config.asgi.application"

# ----- Database -----
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.getenv("SQLITE_PATH", str(DATA_DIR / "django.sqlite3")),
    }
}

# ----- Passwords -----
# bcrypt cout 10 en premier: les nouveaux mots de passe sont hashes avec lui
PASSWORD_HASHERS = [
    "users.hashers.BCrypt10PasswordHasher",
    "django.contrib.auth.hashers.BCryptSHA256PasswordHasher",
    "django.contrib.auth.hashers.PBKDF2PasswordHasher",
]

AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
        "OPTIONS": {"min_length": 8},
    },
]

# ----- Internationalization -----
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# ----- Static files -----
STATIC_URL = "/static/"
STATIC_ROOT = str(BASE_DIR / "static")

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ----- DRF -----
REST_FRAMEWORK = {
    # Un seul authenticator: son header WWW-Authenticate garantit des 401 (et non 403)
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "users.authentication.BearerAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": ("rest_framework.permissions.IsAuthenticated",),
    "DEFAULT_RENDERER_CLASSES": ("rest_framework.renderers.JSONRenderer",),
    "EXCEPTION_HANDLER": "common.exceptions.api_exception_handler",
    "DATETIME_FORMAT": "%Y-%m-%dT%H:%M:%S%z",
}

# ----- JWT -----
SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(hours=int(os.getenv("JWT_EXPIRES_HOURS", "12"))),
    "ALGORITHM": "HS256",
    "SIGNING_KEY": os.getenv("JWT_SECRET") or SECRET_KEY,
    "AUTH_HEADER_TYPES": ("Bearer",),
    "USER_ID_FIELD": "id",
    "USER_ID_CLAIM": "sub",
    "UPDATE_LAST_LOGIN": False,
}

# ----- CORS / CSRF -----
CORS_ALLOW_CREDENTIALS = True
CORS_ALLOW_ALL_ORIGINS = False

# CORS_ORIGINS="https://app.example.com,https://admin.example.com"
CORS_ALLOWED_ORIGINS = [u.strip() for u in os.getenv("CORS_ORIGINS", "").split(",") if u.strip()]
if not CORS_ALLOWED_ORIGINS:
    # fallback dev: n'importe quel port local
    CORS_ALLOWED_ORIGIN_REGEXES = [r"^http://localhost:\d+$", r"^http://127\.0\.0\.1:\d+$"]

CSRF_TRUSTED_ORIGINS = list(CORS_ALLOWED_ORIGINS)

# ----- Uploads & rapports -----
MEDIA_UPLOAD_MAX_BYTES = int(os.getenv("MEDIA_UPLOAD_MAX_BYTES", str(50 * 1024 * 1024)))
REPORT_UPLOAD_MAX_BYTES = int(os.getenv("REPORT_UPLOAD_MAX_BYTES", str(10 * 1024 * 1024)))
REPORT_PDF_MAX_ITEMS = int(os.getenv("REPORT_PDF_MAX_ITEMS", "500"))
REPORT_TEMPLATE_PATH = Path(
    os.getenv("REPORT_TEMPLATE_PATH", str(DATA_DIR / "templates" / "report_template.docx"))
)

# ----- Logs simples -----
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {"simple": {"format": "[%(levelname)s] %(name)s: %(message)s"}},
    "handlers": {"console": {"class": "logging.StreamHandler", "formatter": "simple"}},
    "root": {"handlers": ["console"], "level": "INFO"},
}
