from django.urls import path
from . import views

urlpatterns = [
    path("audits/<str:audit_id>/report", views.ReportDetailView.as_view(), name="report_detail"),
    path("audits/<str:audit_id>/report/upload", views.ReportUploadView.as_view(), name="report_upload"),
    path("audits/<str:audit_id>/report.pdf", views.ReportExportView.as_view(fmt="pdf"), name="report_pdf"),
    path("audits/<str:audit_id>/report.xlsx", views.ReportExportView.as_view(fmt="xlsx"), name="report_xlsx"),
    path("audits/<str:audit_id>/report.docx", views.ReportExportView.as_view(fmt="docx"), name="report_docx"),
]
