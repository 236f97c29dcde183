"""
Controle d'acces unique pour tout ce qui depend d'un audit.

Regle: un admin accede a tout; sinon l'appelant doit etre le proprietaire
de l'audit. Les objets enfants (media, finding) sont toujours resolus vers
leur audit parent avant la verification; on ne controle jamais l'enfant seul.
"""
from __future__ import annotations

import logging

from common.exceptions import Forbidden, NotFound

from .models import Audit, Finding, MediaFile
from .repository import AuditRepository

logger = logging.getLogger(__name__)


def is_admin(caller) -> bool:
    return getattr(caller, "role", None) == "admin"


class AuditGate:
    def __init__(self, repository: AuditRepository) -> None:
        self.repository = repository

    def check(self, caller, audit: Audit) -> Audit:
        if is_admin(caller):
            return audit
        # audit sans proprietaire (anciennes lignes): admin uniquement
        if audit.user_id is None or str(audit.user_id) != str(caller.pk):
            logger.info(f"[gate] acces refuse audit={audit.pk} user={caller.pk}")
            raise Forbidden("forbidden")
        return audit

    def authorize_audit(self, caller, audit_id) -> Audit:
        """Renvoie l'audit (reutilisable par la vue) ou leve NotFound / Forbidden."""
        audit = self.repository.find_audit_by_id(audit_id)
        if audit is None:
            raise NotFound("audit not found")
        return self.check(caller, audit)

    def authorize_media(self, caller, media_id) -> MediaFile:
        media = self.repository.find_media_by_id(media_id)
        if media is None:
            raise NotFound("media not found")
        self.authorize_audit(caller, media.audit_id)
        return media

    def authorize_finding(self, caller, finding_id) -> Finding:
        finding = self.repository.find_finding_by_id(finding_id)
        if finding is None:
            raise NotFound("finding not found")
        finding.audit = self.authorize_audit(caller, finding.audit_id)
        return finding
