from django.contrib import admin
from .models import Audit, Finding, FindingEvidence, MediaFile


class MediaFileInline(admin.TabularInline):
    model = MediaFile
    extra = 0
    fields = ("kind", "filename", "mime", "size_bytes", "storage_key", "created_at")
    readonly_fields = fields


@admin.register(Audit)
class AuditAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "site", "standard", "auditor", "user", "created_at")
    list_filter = ("standard",)
    search_fields = ("title", "site", "auditor", "user__email")
    ordering = ("-created_at",)
    readonly_fields = ("created_at", "updated_at")
    inlines = [MediaFileInline]


@admin.register(Finding)
class FindingAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "severity", "area", "clause_ref", "audit", "created_at")
    list_filter = ("severity",)
    search_fields = ("title", "description", "clause_ref")


@admin.register(FindingEvidence)
class FindingEvidenceAdmin(admin.ModelAdmin):
    list_display = ("id", "finding", "media", "created_at")
