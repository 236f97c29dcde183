from .base import *

# Tests
DEBUG = True

# DB sqlite en mémoire par défaut pour rapidité
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

# Auth plus légère en test (bcrypt est volontairement lent)
PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

# Les tests remplacent STORAGE_ROOT / REPORT_TEMPLATE_PATH par des dossiers temporaires
STORAGE_ROOT = BASE_DIR / "data" / "test-storage"

SIMPLE_JWT = {**SIMPLE_JWT, "SIGNING_KEY": "test-signing-key"}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {"null": {"class": "logging.NullHandler"}},
    "root": {"handlers": ["null"], "level": "WARNING"},
}
