from rest_framework import serializers

from .models import Audit, Finding, FindingEvidence, MediaFile


# ----- Lecture (camelCase, contrat du front) -----

class AuditSerializer(serializers.ModelSerializer):
    userId = serializers.UUIDField(source="user_id", read_only=True)
    sourceFile = serializers.CharField(source="source_file", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Audit
        fields = ["id", "title", "site", "standard", "auditor", "userId", "sourceFile", "createdAt", "updatedAt"]
        read_only_fields = fields


class AuditDetailSerializer(AuditSerializer):
    reportJson = serializers.JSONField(source="report_json", read_only=True)
    mappingJson = serializers.JSONField(source="mapping_json", read_only=True)

    class Meta(AuditSerializer.Meta):
        fields = AuditSerializer.Meta.fields + ["reportJson", "mappingJson"]
        read_only_fields = fields


class MediaFileSerializer(serializers.ModelSerializer):
    auditId = serializers.UUIDField(source="audit_id", read_only=True)
    sizeBytes = serializers.IntegerField(source="size_bytes", read_only=True)
    storageKey = serializers.CharField(source="storage_key", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = MediaFile
        fields = ["id", "auditId", "kind", "filename", "mime", "sizeBytes", "storageKey", "notes", "createdAt"]
        read_only_fields = fields


class EvidenceSerializer(serializers.ModelSerializer):
    findingId = serializers.UUIDField(source="finding_id", read_only=True)
    mediaId = serializers.UUIDField(source="media_id", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    media = MediaFileSerializer(read_only=True)

    class Meta:
        model = FindingEvidence
        fields = ["id", "findingId", "mediaId", "note", "createdAt", "media"]
        read_only_fields = fields


class FindingSerializer(serializers.ModelSerializer):
    auditId = serializers.UUIDField(source="audit_id", read_only=True)
    clauseRef = serializers.CharField(source="clause_ref", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Finding
        fields = [
            "id", "auditId", "title", "description", "severity", "area", "clauseRef",
            "createdAt", "updatedAt",
        ]
        read_only_fields = fields


class FindingWithEvidenceSerializer(FindingSerializer):
    evidence = EvidenceSerializer(many=True, read_only=True)

    class Meta(FindingSerializer.Meta):
        fields = FindingSerializer.Meta.fields + ["evidence"]
        read_only_fields = fields


# ----- Ecriture -----

class AuditCreateSerializer(serializers.Serializer):
    """Tous les champs sont optionnels et stockes tels quels."""

    title = serializers.CharField(required=False, allow_null=True, allow_blank=True, trim_whitespace=False)
    site = serializers.CharField(required=False, allow_null=True, allow_blank=True, trim_whitespace=False)
    standard = serializers.CharField(required=False, allow_null=True, allow_blank=True, trim_whitespace=False)
    auditor = serializers.CharField(required=False, allow_null=True, allow_blank=True, trim_whitespace=False)


class FindingCreateSerializer(serializers.Serializer):
    title = serializers.CharField()
    description = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    severity = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    area = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    clauseRef = serializers.CharField(required=False, allow_null=True, allow_blank=True, source="clause_ref")

    def validate_severity(self, value):
        return value or "medium"


class EvidenceCreateSerializer(serializers.Serializer):
    mediaId = serializers.CharField()
    note = serializers.CharField(required=False, allow_null=True, allow_blank=True)
