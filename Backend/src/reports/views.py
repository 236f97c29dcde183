import logging

from django.http import HttpResponse
from rest_framework.parsers import FormParser
from rest_framework.response import Response
from rest_framework.views import APIView

from audits.context import ServicesMixin
from common.exceptions import NotFound
from common.negotiation import IgnoreClientContentNegotiation
from common.uploads import MemoryUploadHandler, SingleFileMultiPartParser, single_upload

from .services import build_docx, build_pdf, build_report, build_xlsx, parse_csv

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    "pdf": "application/pdf",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


def stored_report(audit):
    report = audit.report_json
    if not isinstance(report, dict) or "items" not in report:
        raise NotFound("no report uploaded")
    return report.get("summary") or {}, report.get("items") or []


class ReportUploadView(ServicesMixin, APIView):
    """POST /audits/<id>/report/upload (multipart, un CSV) -> remplace le rapport stocke."""

    parser_classes = [SingleFileMultiPartParser, FormParser]

    def get_upload_max_bytes(self) -> int:
        return self.get_services().report_max_bytes

    def get_upload_handlers(self, request):
        # le CSV doit etre entierement en memoire pour etre parse
        return [MemoryUploadHandler(request, max_bytes=self.get_services().report_max_bytes)]

    def post(self, request, audit_id):
        services = self.get_services()
        audit = services.gate.authorize_audit(request.user, audit_id)

        upload = single_upload(request)

        report = build_report(parse_csv(upload.read()))
        services.repository.save_report(audit, report, upload.name)
        logger.info(f"[reports] audit={audit.pk} fichier={upload.name} summary={report['summary']}")

        return Response({
            "ok": True,
            "auditId": str(audit.pk),
            "summary": report["summary"],
            "items": report["items"],
        })


class ReportDetailView(ServicesMixin, APIView):
    """GET /audits/<id>/report -> rapport stocke."""

    def get(self, request, audit_id):
        audit = self.get_services().gate.authorize_audit(request.user, audit_id)
        summary, items = stored_report(audit)
        return Response({
            "ok": True,
            "auditId": str(audit.pk),
            "sourceFile": audit.source_file,
            "summary": summary,
            "items": items,
        })


class ReportExportView(ServicesMixin, APIView):
    """
    GET /audits/<id>/report.pdf | .xlsx | .docx

    Une instance par format: ReportExportView.as_view(fmt="pdf").
    """

    content_negotiation_class = IgnoreClientContentNegotiation
    fmt = "pdf"

    def build_content(self, audit, summary, items) -> bytes:
        services = self.get_services()
        if self.fmt == "pdf":
            return build_pdf(audit, summary, items, max_items=services.pdf_max_items)
        if self.fmt == "xlsx":
            return build_xlsx(audit, summary, items)
        if self.fmt == "docx":
            return build_docx(services.template_path, audit, summary, items)
        raise NotFound(f"unknown report format: {self.fmt}")

    def get(self, request, audit_id):
        audit = self.get_services().gate.authorize_audit(request.user, audit_id)
        summary, items = stored_report(audit)

        content = self.build_content(audit, summary, items)
        response = HttpResponse(content, content_type=CONTENT_TYPES[self.fmt])
        response["Content-Disposition"] = f'attachment; filename="audit-{audit.pk}.{self.fmt}"'
        return response
