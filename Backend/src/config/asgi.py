import os

from dotenv import load_dotenv

# Charger les variables d'environnement depuis .env (si present)
load_dotenv()

from django.core.asgi import get_asgi_application

# uvicorn config.asgi:application -> prod par defaut
os.environ.setdefault(
    "DJANGO_SETTINGS_MODULE",
    os.getenv("DJANGO_SETTINGS_MODULE", "config.settings.prod"),
)

application = get_asgi_application()
