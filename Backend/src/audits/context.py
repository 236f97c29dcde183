from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from django.conf import settings

from .access import AuditGate
from .repository import AuditRepository
from .storage import FileStorage


@dataclass
class ServiceContext:
    """Dependances des vues audit/rapport, passees explicitement."""

    repository: AuditRepository
    storage: FileStorage
    media_max_bytes: int
    report_max_bytes: int
    pdf_max_items: int
    template_path: Path
    gate: AuditGate = field(init=False)

    def __post_init__(self) -> None:
        self.gate = AuditGate(self.repository)


def build_context() -> ServiceContext:
    """Contexte par defaut, relu depuis les settings a chaque requete."""
    return ServiceContext(
        repository=AuditRepository(),
        storage=FileStorage(settings.STORAGE_ROOT),
        media_max_bytes=settings.MEDIA_UPLOAD_MAX_BYTES,
        report_max_bytes=settings.REPORT_UPLOAD_MAX_BYTES,
        pdf_max_items=settings.REPORT_PDF_MAX_ITEMS,
        template_path=Path(settings.REPORT_TEMPLATE_PATH),
    )


class ServicesMixin:
    """
    Donne aux vues DRF un ServiceContext:
        MyView.as_view(services=ServiceContext(...))  # injection explicite (tests)
        MyView.as_view()                               # contexte par defaut
    """

    services: Optional[ServiceContext] = None

    def get_services(self) -> ServiceContext:
        if self.services is None:
            self.services = build_context()
        return self.services
