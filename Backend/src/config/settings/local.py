from .base import *  # noqa

# --- Charger .env (Backend/.env) et ÉCRASER les variables OS si besoin -----
import logging
import os
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_PATH = Path(__file__).resolve().parents[3] / ".env"  # -> dossier Backend/
if ENV_PATH.exists():
    load_dotenv(ENV_PATH, override=True)
    logger.info(f"[settings] .env chargé depuis {ENV_PATH}")

# --- Dev local ---
DEBUG = True
ALLOWED_HOSTS = ["127.0.0.1", "localhost", "host.docker.internal"]

# Relire les valeurs qui peuvent venir du .env
STORAGE_ROOT = Path(os.getenv("STORAGE_ROOT", str(DATA_DIR / "storage")))
MEDIA_UPLOAD_MAX_BYTES = int(os.getenv("MEDIA_UPLOAD_MAX_BYTES", str(MEDIA_UPLOAD_MAX_BYTES)))
REPORT_UPLOAD_MAX_BYTES = int(os.getenv("REPORT_UPLOAD_MAX_BYTES", str(REPORT_UPLOAD_MAX_BYTES)))
REPORT_TEMPLATE_PATH = Path(os.getenv("REPORT_TEMPLATE_PATH", str(REPORT_TEMPLATE_PATH)))
SIMPLE_JWT["SIGNING_KEY"] = os.getenv("JWT_SECRET") or SIMPLE_JWT["SIGNING_KEY"]
SIMPLE_JWT["ACCESS_TOKEN_LIFETIME"] = timedelta(hours=int(os.getenv("JWT_EXPIRES_HOURS", "12")))
REPORT_PDF_MAX_ITEMS = int(os.getenv("REPORT_PDF_MAX_ITEMS", str(REPORT_PDF_MAX_ITEMS)))
DATABASES["default"]["NAME"] = os.getenv("SQLITE_PATH", DATABASES["default"]["NAME"])

_cors = [u.strip() for u in os.getenv("CORS_ORIGINS", "").split(",") if u.strip()]
if _cors:
    CORS_ALLOWED_ORIGINS = _cors
    CORS_ALLOWED_ORIGIN_REGEXES = []
    CSRF_TRUSTED_ORIGINS = list(_cors)

# -> pas de INSTALLED_APPS ni de MIDDLEWARE supplémentaires dans local.py

# API navigable en dev
REST_FRAMEWORK.update({
    "DEFAULT_RENDERER_CLASSES": (
        "rest_framework.renderers.JSONRenderer",
        "rest_framework.renderers.BrowsableAPIRenderer",
    ),
})
