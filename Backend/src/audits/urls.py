from django.urls import path
from . import views

urlpatterns = [
    # Audits
    path("audits", views.AuditListCreateView.as_view(), name="audits"),
    path("audits/<str:audit_id>", views.AuditDetailView.as_view(), name="audit_detail"),

    # Medias
    path("audits/<str:audit_id>/media", views.AuditMediaView.as_view(), name="audit_media"),
    path("media/<str:media_id>/download", views.MediaDownloadView.as_view(), name="media_download"),

    # Findings / evidence
    path("audits/<str:audit_id>/findings", views.AuditFindingsView.as_view(), name="audit_findings"),
    path("findings/<str:finding_id>/evidence", views.FindingEvidenceView.as_view(), name="finding_evidence"),
]
