from .base import *

# Production
DEBUG = False

# IMPORTANT: définir DJANGO_ALLOWED_HOSTS via variables d'env
# Exemple: export DJANGO_ALLOWED_HOSTS="audit.example.com"
ALLOWED_HOSTS = [h for h in os.getenv("DJANGO_ALLOWED_HOSTS", "").split(",") if h] or ["*"]

# CORS: uniquement les origines déclarées, pas de fallback localhost
CORS_ALLOW_ALL_ORIGINS = False
CORS_ALLOWED_ORIGIN_REGEXES = []

if os.getenv("JWT_SECRET") is None and SECRET_KEY == "dev_only_change_me":
    raise RuntimeError("JWT_SECRET ou DJANGO_SECRET_KEY doit être défini en production.")

# Sécurité HTTP
CSRF_COOKIE_SECURE = True
SESSION_COOKIE_SECURE = True
SECURE_SSL_REDIRECT = os.getenv("DJANGO_SSL_REDIRECT", "1") == "1"
SECURE_HSTS_SECONDS = 31536000
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_HSTS_PRELOAD = True
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

# Logs simples vers stdout (WARNING pour django.request: les 4xx sont attendues)
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {"simple": {"format": "[%(levelname)s] %(name)s: %(message)s"}},
    "handlers": {"console": {"class": "logging.StreamHandler", "formatter": "simple"}},
    "loggers": {"django.request": {"handlers": ["console"], "level": "ERROR", "propagate": False}},
    "root": {"handlers": ["console"], "level": "INFO"},
}
