import logging
import time
import uuid
from typing import Callable

from django.http import HttpRequest, HttpResponse

logger = logging.getLogger("common.requests")


class RequestIDMiddleware:
    """
    Ajoute un identifiant de requete a chaque reponse et trace la requete.
    - Header d'entree respecte: X-Request-ID (sinon uuid4)
    - Header de sortie: X-Request-ID
    - Accessible via request.request_id
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.request_id = request_id

        started = time.monotonic()
        response = self.get_response(request)
        elapsed_ms = (time.monotonic() - started) * 1000

        response.headers["X-Request-ID"] = request_id
        logger.info(
            f"{request.method} {request.path} -> {response.status_code} "
            f"({elapsed_ms:.1f} ms) rid={request_id}"
        )
        return response
