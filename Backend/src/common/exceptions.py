import logging
from typing import Any, Optional

from django.core.exceptions import PermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback

logger = logging.getLogger(__name__)


class ServiceError(exceptions.APIException):
    """
    Erreur metier avec un message court destine au client.
    Les sous-classes fixent uniquement le status HTTP.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "request failed"
    default_code = "error"


class BadRequest(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "bad request"
    default_code = "bad_request"


class Unauthorized(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "unauthorized"
    default_code = "unauthorized"


class Forbidden(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "forbidden"
    default_code = "forbidden"


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "not found"
    default_code = "not_found"


class Conflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "conflict"
    default_code = "conflict"


class PayloadTooLarge(ServiceError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    default_detail = "upload too large"
    default_code = "payload_too_large"


class UniqueConstraintViolation(Exception):
    """
    Levee par les repositories quand un insert viole une contrainte d'unicite.
    Les vues la traduisent en Conflict; on ne parse jamais le message de la DB.
    """

    def __init__(self, constraint: str, message: str = "") -> None:
        super().__init__(message or constraint)
        self.constraint = constraint


def _first_message(detail: Any) -> str:
    """Aplatit les erreurs DRF (dict/list imbriques) en un message lisible."""
    if isinstance(detail, dict):
        for key, value in detail.items():
            msg = _first_message(value)
            if key in ("detail", "non_field_errors"):
                return msg
            return f"{key}: {msg}"
        return "invalid request"
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else "invalid request"
    return str(detail)


def api_exception_handler(exc, context) -> Optional[Response]:
    """
    Enveloppe toutes les erreurs dans {"ok": false, "message": "..."}.
    Active via REST_FRAMEWORK['EXCEPTION_HANDLER'].
    """
    if isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
        # token absent / invalide / expire -> meme reponse
        auth_header = getattr(exc, "auth_header", None)
        exc = Unauthorized()
        exc.auth_header = auth_header

    response = exception_handler(exc, context)

    if response is not None:
        if isinstance(exc, ServiceError):
            message = str(exc.detail)
        elif isinstance(exc, Http404):
            message = "not found"
        elif isinstance(exc, PermissionDenied):
            message = "forbidden"
        else:
            message = _first_message(response.data)
        response.data = {"ok": False, "message": message}
        return response

    # Erreur non geree -> 500, details seulement dans les logs
    view = context.get("view")
    logger.exception(f"Erreur inattendue dans {view.__class__.__name__ if view else '?'}")
    set_rollback()
    return Response(
        {"ok": False, "message": "internal error"},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
