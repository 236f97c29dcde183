import uuid

from django.conf import settings
from django.db import models


class Audit(models.Model):
    """
    Un exercice d'audit / d'inspection.

    `user` est le proprietaire (NULL pour les anciennes lignes, visibles des
    admins uniquement). Tous les objets enfants heritent de cette propriete.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="audits",
    )
    title = models.TextField(null=True, blank=True)
    site = models.TextField(null=True, blank=True)
    standard = models.TextField(null=True, blank=True)
    auditor = models.TextField(null=True, blank=True)
    source_file = models.TextField(null=True, blank=True)

    # {"summary": {...}, "items": [...]} issu du dernier CSV importe
    report_json = models.JSONField(null=True, blank=True)
    mapping_json = models.JSONField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["user", "created_at"], name="audit_user_created_idx")]

    def __str__(self) -> str:
        return self.title or str(self.id)


class MediaFile(models.Model):
    class Kind(models.TextChoices):
        IMAGE = "image", "Image"
        VIDEO = "video", "Video"
        AUDIO = "audio", "Audio"
        FILE = "file", "File"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    audit = models.ForeignKey(Audit, on_delete=models.CASCADE, related_name="media")
    kind = models.CharField(max_length=16, choices=Kind.choices, default=Kind.FILE)
    filename = models.CharField(max_length=255)
    mime = models.CharField(max_length=255)
    size_bytes = models.PositiveBigIntegerField()
    # chemin relatif sous STORAGE_ROOT
    storage_key = models.CharField(max_length=512, unique=True)
    notes = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.filename


class Finding(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    audit = models.ForeignKey(Audit, on_delete=models.CASCADE, related_name="findings")
    title = models.TextField()
    description = models.TextField(null=True, blank=True)
    severity = models.CharField(max_length=32, default="medium")
    area = models.TextField(null=True, blank=True)
    clause_ref = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.title


class FindingEvidence(models.Model):
    """Lien Finding <-> MediaFile; les deux appartiennent au meme audit."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    finding = models.ForeignKey(Finding, on_delete=models.CASCADE, related_name="evidence")
    media = models.ForeignKey(MediaFile, on_delete=models.CASCADE, related_name="evidence_links")
    note = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["finding", "media"], name="uniq_finding_media"),
        ]

    def __str__(self) -> str:
        return f"{self.finding_id} <- {self.media_id}"


def kind_for_mime(mime) -> str:
    """image/* -> image, video/* -> video, audio/* -> audio, sinon file."""
    major = str(mime or "").split("/", 1)[0].lower()
    if major in (MediaFile.Kind.IMAGE, MediaFile.Kind.VIDEO, MediaFile.Kind.AUDIO):
        return major
    return MediaFile.Kind.FILE
