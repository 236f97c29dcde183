from pathlib import Path

from django.conf import settings
from django.db import connection
from django.http import JsonResponse


def health(request):
    """
    Endpoint de sante + echo de configuration (sans secrets).
    GET /health -> {"ok": true, "status": "running", ...}
    """
    return JsonResponse({
        "ok": True,
        "service": "audit-backend",
        "status": "running",
        "database": connection.vendor,
        "storageReady": Path(settings.STORAGE_ROOT).is_dir(),
        "mediaUploadMaxBytes": settings.MEDIA_UPLOAD_MAX_BYTES,
        "templateConfigured": Path(settings.REPORT_TEMPLATE_PATH).is_file(),
    })
