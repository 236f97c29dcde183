"""
Acces base de donnees pour les audits et leurs objets enfants.

Les vues ne touchent jamais l'ORM directement: elles recoivent un
AuditRepository via le ServiceContext (remplacable en test).
"""
from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional

from django.db import IntegrityError, transaction
from django.db.models import Prefetch

from common.exceptions import UniqueConstraintViolation

from .models import Audit, Finding, FindingEvidence, MediaFile


def _as_uuid(value) -> Optional[uuid.UUID]:
    """Identifiant mal forme -> None (traite comme introuvable)."""
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


class AuditRepository:
    # ----- Audits -----
    def find_audit_by_id(self, audit_id) -> Optional[Audit]:
        pk = _as_uuid(audit_id)
        if pk is None:
            return None
        return Audit.objects.filter(pk=pk).first()

    def list_audits(self, owner_id=None, take: int = 20, skip: int = 0) -> List[Audit]:
        """owner_id=None -> tous les audits (admin)."""
        qs = Audit.objects.defer("report_json", "mapping_json").order_by("-created_at")
        if owner_id is not None:
            qs = qs.filter(user_id=owner_id)
        return list(qs[skip:skip + take])

    def create_audit(self, owner, **fields) -> Audit:
        return Audit.objects.create(user=owner, **fields)

    def save_report(self, audit: Audit, report: Dict[str, Any], source_file: Optional[str]) -> Audit:
        """Remplace integralement le rapport stocke (pas de fusion)."""
        audit.report_json = report
        audit.source_file = source_file
        audit.save(update_fields=["report_json", "source_file", "updated_at"])
        return audit

    # ----- Medias -----
    def list_media(self, audit: Audit) -> List[MediaFile]:
        return list(MediaFile.objects.filter(audit=audit).order_by("-created_at"))

    def find_media_by_id(self, media_id) -> Optional[MediaFile]:
        pk = _as_uuid(media_id)
        if pk is None:
            return None
        return MediaFile.objects.filter(pk=pk).first()

    def create_media(self, audit: Audit, **fields) -> MediaFile:
        return MediaFile.objects.create(audit=audit, **fields)

    # ----- Findings -----
    def list_findings(self, audit: Audit, with_evidence: bool = True) -> List[Finding]:
        qs = Finding.objects.filter(audit=audit).order_by("-created_at")
        if with_evidence:
            qs = qs.prefetch_related(
                Prefetch(
                    "evidence",
                    queryset=FindingEvidence.objects.select_related("media").order_by("-created_at"),
                )
            )
        return list(qs)

    def find_finding_by_id(self, finding_id) -> Optional[Finding]:
        pk = _as_uuid(finding_id)
        if pk is None:
            return None
        return Finding.objects.filter(pk=pk).first()

    def create_finding(self, audit: Audit, **fields) -> Finding:
        return Finding.objects.create(audit=audit, **fields)

    # ----- Evidence -----
    def create_evidence(self, finding: Finding, media: MediaFile, note: Optional[str] = None) -> FindingEvidence:
        try:
            # savepoint: une violation ne casse pas la transaction englobante
            with transaction.atomic():
                return FindingEvidence.objects.create(finding=finding, media=media, note=note)
        except IntegrityError as exc:
            if FindingEvidence.objects.filter(finding=finding, media=media).exists():
                raise UniqueConstraintViolation("uniq_finding_media", "evidence already attached") from exc
            raise
