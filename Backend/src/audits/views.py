import logging

from django.http import FileResponse
from rest_framework import status
from rest_framework.parsers import FormParser
from rest_framework.response import Response
from rest_framework.views import APIView

from common.exceptions import BadRequest, Conflict, NotFound, UniqueConstraintViolation
from common.negotiation import IgnoreClientContentNegotiation
from common.uploads import SingleFileMultiPartParser, StorageUploadHandler, single_upload
from common.utils import clamp, parse_int

from .access import is_admin
from .context import ServicesMixin
from .models import MediaFile, kind_for_mime
from .serializers import (
    AuditCreateSerializer,
    AuditDetailSerializer,
    AuditSerializer,
    EvidenceCreateSerializer,
    EvidenceSerializer,
    FindingCreateSerializer,
    FindingSerializer,
    FindingWithEvidenceSerializer,
    MediaFileSerializer,
)

logger = logging.getLogger(__name__)

DEFAULT_TAKE = 20
MAX_TAKE = 100


# ---------------------------------------------------------------------------
# Audits
# ---------------------------------------------------------------------------

class AuditListCreateView(ServicesMixin, APIView):
    """
    GET  /audits?take&skip -> audits de l'appelant (tous pour un admin), plus recents d'abord
    POST /audits           -> cree un audit dont l'appelant est proprietaire
    """

    def get(self, request):
        take = clamp(parse_int(request.query_params.get("take"), DEFAULT_TAKE), 1, MAX_TAKE)
        skip = clamp(parse_int(request.query_params.get("skip"), 0), 0)
        owner_id = None if is_admin(request.user) else request.user.pk

        audits = self.get_services().repository.list_audits(owner_id=owner_id, take=take, skip=skip)
        return Response({
            "ok": True,
            "take": take,
            "skip": skip,
            "audits": AuditSerializer(audits, many=True).data,
        })

    def post(self, request):
        serializer = AuditCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        audit = self.get_services().repository.create_audit(request.user, **serializer.validated_data)
        logger.info(f"[audits] audit cree id={audit.pk} owner={request.user.pk}")
        return Response({"ok": True, "audit": AuditSerializer(audit).data}, status=status.HTTP_201_CREATED)


class AuditDetailView(ServicesMixin, APIView):
    """GET /audits/<id> (proprietaire ou admin)."""

    def get(self, request, audit_id):
        audit = self.get_services().gate.authorize_audit(request.user, audit_id)
        return Response({"ok": True, "audit": AuditDetailSerializer(audit).data})


# ---------------------------------------------------------------------------
# Medias
# ---------------------------------------------------------------------------

class AuditMediaView(ServicesMixin, APIView):
    """
    GET  /audits/<id>/media        -> medias de l'audit
    POST /audits/<id>/media?kind=  -> upload multipart d'un seul fichier, ecrit en flux dans le stockage
    """

    parser_classes = [SingleFileMultiPartParser, FormParser]

    # fixes par post() avant la lecture du corps
    upload_audit = None
    upload_kind = None

    def get_upload_max_bytes(self) -> int:
        return self.get_services().media_max_bytes

    def get_upload_handlers(self, request):
        services = self.get_services()
        audit_id = self.upload_audit.pk
        requested = self.upload_kind

        def key_for(file_name, content_type):
            return services.storage.make_key(audit_id, requested or kind_for_mime(content_type), file_name)

        return [
            StorageUploadHandler(
                request,
                storage=services.storage,
                key_for=key_for,
                max_bytes=services.media_max_bytes,
            )
        ]

    def get(self, request, audit_id):
        services = self.get_services()
        audit = services.gate.authorize_audit(request.user, audit_id)
        media = services.repository.list_media(audit)
        return Response({
            "ok": True,
            "auditId": str(audit.pk),
            "media": MediaFileSerializer(media, many=True).data,
        })

    def post(self, request, audit_id):
        services = self.get_services()
        # autorisation AVANT de lire le corps: rien n'est ecrit pour un appelant refuse
        audit = services.gate.authorize_audit(request.user, audit_id)

        requested = (request.query_params.get("kind") or "").strip().lower() or None
        if requested and requested not in MediaFile.Kind.values:
            raise BadRequest(f"kind must be one of: {', '.join(MediaFile.Kind.values)}")
        self.upload_audit, self.upload_kind = audit, requested

        upload = single_upload(request)

        try:
            media = services.repository.create_media(
                audit,
                kind=requested or kind_for_mime(upload.content_type),
                filename=upload.name,
                mime=upload.content_type or "application/octet-stream",
                size_bytes=services.storage.size(upload.storage_key),
                storage_key=upload.storage_key,
                notes=request.data.get("notes") or None,
            )
        except Exception:
            # pas de fichier orphelin si l'insert echoue
            services.storage.delete(upload.storage_key)
            raise

        logger.info(f"[media] {media.storage_key} ({media.size_bytes} octets) audit={audit.pk}")
        return Response(
            {"ok": True, "auditId": str(audit.pk), "media": MediaFileSerializer(media).data},
            status=status.HTTP_201_CREATED,
        )


class MediaDownloadView(ServicesMixin, APIView):
    """GET /media/<id>/download -> flux du fichier (acces via l'audit parent)."""

    content_negotiation_class = IgnoreClientContentNegotiation

    def get(self, request, media_id):
        services = self.get_services()
        media = services.gate.authorize_media(request.user, media_id)

        path = services.storage.path_for(media.storage_key)
        try:
            handle = path.open("rb")
        except (FileNotFoundError, IsADirectoryError):
            logger.warning(f"[media] ligne {media.pk} presente mais fichier absent: {media.storage_key}")
            raise NotFound("file not found")

        return FileResponse(handle, as_attachment=True, filename=media.filename, content_type=media.mime)


# ---------------------------------------------------------------------------
# Findings & evidence
# ---------------------------------------------------------------------------

class AuditFindingsView(ServicesMixin, APIView):
    """
    GET  /audits/<id>/findings[?evidence=0] -> findings, plus recents d'abord, avec evidence
    POST /audits/<id>/findings              -> {title, description?, severity?, area?, clauseRef?}
    """

    def get(self, request, audit_id):
        services = self.get_services()
        audit = services.gate.authorize_audit(request.user, audit_id)

        with_evidence = request.query_params.get("evidence", "1").lower() not in {"0", "false", "no"}
        findings = services.repository.list_findings(audit, with_evidence=with_evidence)
        serializer_class = FindingWithEvidenceSerializer if with_evidence else FindingSerializer
        return Response({
            "ok": True,
            "auditId": str(audit.pk),
            "findings": serializer_class(findings, many=True).data,
        })

    def post(self, request, audit_id):
        services = self.get_services()
        audit = services.gate.authorize_audit(request.user, audit_id)

        serializer = FindingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        finding = services.repository.create_finding(audit, **serializer.validated_data)
        return Response(
            {"ok": True, "auditId": str(audit.pk), "finding": FindingWithEvidenceSerializer(finding).data},
            status=status.HTTP_201_CREATED,
        )


class FindingEvidenceView(ServicesMixin, APIView):
    """POST /findings/<id>/evidence {mediaId, note?} -> lie un media du MEME audit."""

    def post(self, request, finding_id):
        services = self.get_services()
        finding = services.gate.authorize_finding(request.user, finding_id)

        serializer = EvidenceCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        media = services.repository.find_media_by_id(data["mediaId"])
        if media is None:
            raise NotFound("media not found")
        if media.audit_id != finding.audit_id:
            raise BadRequest("media must belong to the same audit as the finding")

        try:
            evidence = services.repository.create_evidence(finding, media, note=data.get("note"))
        except UniqueConstraintViolation:
            raise Conflict("evidence already attached")

        return Response(
            {"ok": True, "findingId": str(finding.pk), "evidence": EvidenceSerializer(evidence).data},
            status=status.HTTP_201_CREATED,
        )
