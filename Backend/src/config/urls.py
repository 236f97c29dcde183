from django.contrib import admin
from django.urls import path, include

from common.views import not_found, server_error

urlpatterns = [
    path("admin/", admin.site.urls),

    # APIs (chemins sans slash final, contrat du front)
    path("", include("common.urls")),
    path("auth/", include("users.urls")),
    path("", include("audits.urls")),
    path("", include("reports.urls")),
]

# Erreurs hors DRF (route inconnue, crash middleware) -> meme enveloppe JSON
handler404 = not_found
handler500 = server_error
