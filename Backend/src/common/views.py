from django.http import JsonResponse


def not_found(request, exception=None):
    """handler404: route inconnue -> {"ok": false, "message": "not found"}"""
    return JsonResponse({"ok": False, "message": "not found"}, status=404)


def server_error(request):
    """handler500: crash hors DRF, aucun detail renvoye au client."""
    return JsonResponse({"ok": False, "message": "internal error"}, status=500)
