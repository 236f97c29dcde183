import uuid
from datetime import timedelta

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse
from rest_framework.test import APIRequestFactory, force_authenticate

from audits.access import AuditGate
from audits.context import build_context
from audits.models import Audit, Finding, FindingEvidence, MediaFile, kind_for_mime
from audits.repository import AuditRepository
from audits.storage import FileStorage
from audits.views import FindingEvidenceView
from common.exceptions import BadRequest, Forbidden, NotFound, UniqueConstraintViolation
from common.utils import now_utc


def stored_files(root):
    return [p for p in root.rglob("*") if p.is_file()]


def upload(name="photo.jpg", content=b"\xff\xd8\xff fake jpeg", content_type="image/jpeg"):
    return SimpleUploadedFile(name, content, content_type=content_type)


@pytest.fixture
def audit(alice):
    return Audit.objects.create(user=alice, title="DC Audit", site="Paris-1")


# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------

@pytest.mark.django_db
def test_gate_owner_admin_and_stranger(audit, alice, bob, admin_user):
    gate = AuditGate(AuditRepository())

    assert gate.authorize_audit(alice, audit.pk) == audit
    assert gate.authorize_audit(admin_user, str(audit.pk)) == audit
    with pytest.raises(Forbidden):
        gate.authorize_audit(bob, audit.pk)


@pytest.mark.django_db
def test_gate_legacy_audit_without_owner_is_admin_only(alice, admin_user):
    legacy = Audit.objects.create(user=None, title="old")
    gate = AuditGate(AuditRepository())

    assert gate.authorize_audit(admin_user, legacy.pk) == legacy
    with pytest.raises(Forbidden):
        gate.authorize_audit(alice, legacy.pk)


@pytest.mark.django_db
@pytest.mark.parametrize("audit_id", [uuid.uuid4(), "not-a-uuid", ""])
def test_gate_unknown_or_malformed_id_is_not_found(alice, audit_id):
    with pytest.raises(NotFound):
        AuditGate(AuditRepository()).authorize_audit(alice, audit_id)


@pytest.mark.django_db
def test_gate_children_resolve_to_parent(audit, bob):
    gate = AuditGate(AuditRepository())
    media = MediaFile.objects.create(
        audit=audit, kind="image", filename="a.jpg", mime="image/jpeg", size_bytes=1, storage_key="audits/x/a.jpg"
    )
    finding = Finding.objects.create(audit=audit, title="Cable mess")

    with pytest.raises(Forbidden):
        gate.authorize_media(bob, media.pk)
    with pytest.raises(Forbidden):
        gate.authorize_finding(bob, finding.pk)
    with pytest.raises(NotFound):
        gate.authorize_media(bob, uuid.uuid4())
    with pytest.raises(NotFound):
        gate.authorize_finding(bob, uuid.uuid4())


# ---------------------------------------------------------------------------
# Audits
# ---------------------------------------------------------------------------

@pytest.mark.django_db
def test_create_and_get_audit(alice, client_for):
    client = client_for(alice)

    r = client.post(reverse("audits"), {"title": "DC Audit", "standard": "ISO 27001"}, format="json")
    assert r.status_code == 201, r.content
    created = r.data["audit"]
    assert created["title"] == "DC Audit"
    assert created["site"] is None
    assert created["userId"] == str(alice.pk)

    r = client.get(reverse("audit_detail", args=[created["id"]]))
    assert r.status_code == 200
    assert r.data["audit"]["standard"] == "ISO 27001"
    assert r.data["audit"]["reportJson"] is None


@pytest.mark.django_db
def test_audit_list_is_scoped_to_owner(alice, bob, admin_user, client_for):
    Audit.objects.create(user=alice, title="a1")
    Audit.objects.create(user=alice, title="a2")
    Audit.objects.create(user=bob, title="b1")

    r = client_for(alice).get(reverse("audits"))
    assert r.status_code == 200
    assert sorted(a["title"] for a in r.data["audits"]) == ["a1", "a2"]

    r = client_for(admin_user).get(reverse("audits"))
    assert len(r.data["audits"]) == 3


@pytest.mark.django_db
def test_audit_list_pagination_newest_first(alice, client_for):
    base = now_utc()
    for i in range(3):
        a = Audit.objects.create(user=alice, title=f"a{i}")
        Audit.objects.filter(pk=a.pk).update(created_at=base + timedelta(minutes=i))
    client = client_for(alice)

    r = client.get(reverse("audits"), {"take": 1, "skip": 1})
    assert [a["title"] for a in r.data["audits"]] == ["a1"]

    r = client.get(reverse("audits"), {"take": 1000, "skip": -5})
    assert (r.data["take"], r.data["skip"]) == (100, 0)

    r = client.get(reverse("audits"), {"take": "abc"})
    assert r.data["take"] == 20

    r = client.get(reverse("audits"), {"take": 0})
    assert r.data["take"] == 1


@pytest.mark.django_db
def test_audit_access_denied_and_not_found(audit, bob, client_for):
    client = client_for(bob)

    r = client.get(reverse("audit_detail", args=[audit.pk]))
    assert r.status_code == 403
    assert r.json() == {"ok": False, "message": "forbidden"}

    assert client.get(reverse("audit_detail", args=[uuid.uuid4()])).status_code == 404
    assert client.get(reverse("audit_detail", args=["nope"])).status_code == 404


# ---------------------------------------------------------------------------
# Medias
# ---------------------------------------------------------------------------

@pytest.mark.django_db
def test_media_upload_list_and_download(audit, alice, client_for, storage_root):
    client = client_for(alice)
    content = b"\xff\xd8\xff" + b"x" * 2048

    r = client.post(
        reverse("audit_media", args=[audit.pk]),
        {"file": upload("rack photo.jpg", content), "notes": "front view"},
        format="multipart",
    )
    assert r.status_code == 201, r.content
    media = r.data["media"]
    assert media["kind"] == "image"
    assert media["filename"] == "rack photo.jpg"
    assert media["sizeBytes"] == len(content)
    assert media["notes"] == "front view"
    assert media["storageKey"].startswith(f"audits/{audit.pk}/image/")
    assert (storage_root / media["storageKey"]).read_bytes() == content

    r = client.get(reverse("audit_media", args=[audit.pk]))
    assert [m["id"] for m in r.data["media"]] == [media["id"]]

    r = client.get(reverse("media_download", args=[media["id"]]), HTTP_ACCEPT="image/jpeg")
    assert r.status_code == 200
    assert r["Content-Type"] == "image/jpeg"
    assert "attachment" in r["Content-Disposition"]
    assert b"".join(r.streaming_content) == content


@pytest.mark.django_db
@pytest.mark.parametrize(
    "content_type,query,expected",
    [
        ("video/mp4", "", "video"),
        ("audio/mpeg", "", "audio"),
        ("application/pdf", "", "file"),
        ("image/png", "?kind=file", "file"),
    ],
)
def test_media_kind_from_mime_or_query(audit, alice, client_for, content_type, query, expected):
    url = reverse("audit_media", args=[audit.pk]) + query
    r = client_for(alice).post(url, {"file": upload("clip.bin", b"data", content_type)}, format="multipart")
    assert r.status_code == 201, r.content
    assert r.data["media"]["kind"] == expected
    assert f"/{expected}/" in r.data["media"]["storageKey"]


@pytest.mark.django_db
def test_media_upload_rejects_unknown_kind(audit, alice, client_for, storage_root):
    url = reverse("audit_media", args=[audit.pk]) + "?kind=hologram"
    r = client_for(alice).post(url, {"file": upload()}, format="multipart")
    assert r.status_code == 400
    assert stored_files(storage_root) == []


@pytest.mark.django_db
def test_media_upload_requires_file(audit, alice, client_for):
    r = client_for(alice).post(reverse("audit_media", args=[audit.pk]), {"notes": "x"}, format="multipart")
    assert r.status_code == 400
    assert r.json()["message"] == "file is required"


@pytest.mark.django_db
def test_media_upload_non_multipart_body(audit, alice, client_for, storage_root):
    r = client_for(alice).post(reverse("audit_media", args=[audit.pk]), {"file": "photo.jpg"}, format="json")
    assert r.status_code == 400
    assert r.json()["message"] == "file is required"
    assert stored_files(storage_root) == []


@pytest.mark.django_db
def test_media_upload_by_stranger_writes_nothing(audit, bob, client_for, storage_root):
    r = client_for(bob).post(reverse("audit_media", args=[audit.pk]), {"file": upload()}, format="multipart")
    assert r.status_code == 403
    assert stored_files(storage_root) == []
    assert MediaFile.objects.count() == 0


@pytest.mark.django_db
def test_media_upload_declared_length_too_large(audit, alice, client_for, settings, storage_root):
    settings.MEDIA_UPLOAD_MAX_BYTES = 10
    big = upload("big.jpg", b"x" * (100 * 1024))

    r = client_for(alice).post(reverse("audit_media", args=[audit.pk]), {"file": big}, format="multipart")
    assert r.status_code == 413
    assert stored_files(storage_root) == []


@pytest.mark.django_db
def test_media_upload_stream_over_limit_is_cleaned_up(audit, alice, client_for, settings, storage_root):
    # Content-Length sous la marge multipart: c'est le comptage en flux qui coupe
    settings.MEDIA_UPLOAD_MAX_BYTES = 1000
    r = client_for(alice).post(
        reverse("audit_media", args=[audit.pk]),
        {"file": upload("big.jpg", b"x" * 5000)},
        format="multipart",
    )
    assert r.status_code == 413
    assert stored_files(storage_root) == []
    assert MediaFile.objects.count() == 0


@pytest.mark.django_db
def test_media_upload_single_file_only(audit, alice, client_for, storage_root):
    r = client_for(alice).post(
        reverse("audit_media", args=[audit.pk]),
        {"file": upload("a.jpg"), "other": upload("b.jpg")},
        format="multipart",
    )
    assert r.status_code == 400
    assert r.json()["message"] == "exactly one file per request"
    assert stored_files(storage_root) == []


@pytest.mark.django_db
def test_media_file_removed_when_insert_fails(audit, alice, client_for, storage_root, monkeypatch):
    def boom(self, audit, **fields):
        raise RuntimeError("insert failed")

    monkeypatch.setattr(AuditRepository, "create_media", boom)
    r = client_for(alice).post(reverse("audit_media", args=[audit.pk]), {"file": upload()}, format="multipart")
    assert r.status_code == 500
    assert r.json() == {"ok": False, "message": "internal error"}
    assert stored_files(storage_root) == []


@pytest.mark.django_db
def test_media_download_missing_file_and_bad_key(audit, alice, client_for):
    client = client_for(alice)
    missing = MediaFile.objects.create(
        audit=audit, kind="file", filename="gone.txt", mime="text/plain", size_bytes=3,
        storage_key=f"audits/{audit.pk}/file/gone.txt",
    )
    escaping = MediaFile.objects.create(
        audit=audit, kind="file", filename="passwd", mime="text/plain", size_bytes=3,
        storage_key="../../etc/passwd",
    )

    r = client.get(reverse("media_download", args=[missing.pk]))
    assert r.status_code == 404
    assert r.json()["message"] == "file not found"

    r = client.get(reverse("media_download", args=[escaping.pk]))
    assert r.status_code == 400
    assert r.json()["message"] == "invalid storage key"


@pytest.mark.django_db
def test_media_download_by_stranger(audit, bob, client_for):
    media = MediaFile.objects.create(
        audit=audit, kind="file", filename="a.txt", mime="text/plain", size_bytes=1, storage_key="audits/a.txt"
    )
    assert client_for(bob).get(reverse("media_download", args=[media.pk])).status_code == 403


# ---------------------------------------------------------------------------
# Findings & evidence
# ---------------------------------------------------------------------------

@pytest.mark.django_db
def test_findings_create_and_list(audit, alice, client_for):
    client = client_for(alice)
    url = reverse("audit_findings", args=[audit.pk])

    r = client.post(url, {"title": "Unlabelled cables", "clauseRef": "A.11.2.3"}, format="json")
    assert r.status_code == 201, r.content
    finding = r.data["finding"]
    assert finding["severity"] == "medium"
    assert finding["clauseRef"] == "A.11.2.3"
    assert finding["evidence"] == []

    r = client.post(url, {"description": "no title"}, format="json")
    assert r.status_code == 400
    assert r.json()["message"].startswith("title:")

    r = client.get(url)
    assert [f["id"] for f in r.data["findings"]] == [finding["id"]]
    assert "evidence" in r.data["findings"][0]

    r = client.get(url, {"evidence": "0"})
    assert "evidence" not in r.data["findings"][0]


@pytest.mark.django_db
def test_evidence_link_duplicate_and_cross_audit(audit, alice, client_for):
    client = client_for(alice)
    other_audit = Audit.objects.create(user=alice, title="other")
    finding = Finding.objects.create(audit=audit, title="Door open")
    media = MediaFile.objects.create(
        audit=audit, kind="image", filename="door.jpg", mime="image/jpeg", size_bytes=1, storage_key="audits/d.jpg"
    )
    foreign = MediaFile.objects.create(
        audit=other_audit, kind="image", filename="x.jpg", mime="image/jpeg", size_bytes=1, storage_key="audits/x.jpg"
    )
    url = reverse("finding_evidence", args=[finding.pk])

    r = client.post(url, {"mediaId": str(media.pk), "note": "see photo"}, format="json")
    assert r.status_code == 201, r.content
    assert r.data["findingId"] == str(finding.pk)
    assert r.data["evidence"]["media"]["filename"] == "door.jpg"

    r = client.post(url, {"mediaId": str(media.pk)}, format="json")
    assert r.status_code == 409
    assert r.json()["message"] == "evidence already attached"

    r = client.post(url, {"mediaId": str(foreign.pk)}, format="json")
    assert r.status_code == 400
    assert r.json()["message"] == "media must belong to the same audit as the finding"

    assert client.post(url, {"mediaId": str(uuid.uuid4())}, format="json").status_code == 404
    assert client.post(url, {}, format="json").status_code == 400
    assert FindingEvidence.objects.count() == 1

    r = client.get(reverse("audit_findings", args=[audit.pk]))
    assert r.data["findings"][0]["evidence"][0]["note"] == "see photo"


@pytest.mark.django_db
def test_evidence_by_stranger(audit, bob, client_for):
    finding = Finding.objects.create(audit=audit, title="x")
    r = client_for(bob).post(reverse("finding_evidence", args=[finding.pk]), {"mediaId": str(uuid.uuid4())}, format="json")
    assert r.status_code == 403


@pytest.mark.django_db
def test_duplicate_evidence_raises_typed_error_and_keeps_transaction(audit):
    repo = AuditRepository()
    finding = Finding.objects.create(audit=audit, title="x")
    media = MediaFile.objects.create(
        audit=audit, kind="file", filename="a", mime="text/plain", size_bytes=1, storage_key="audits/a"
    )
    repo.create_evidence(finding, media)

    with pytest.raises(UniqueConstraintViolation) as exc_info:
        repo.create_evidence(finding, media)
    assert exc_info.value.constraint == "uniq_finding_media"
    # la transaction du test reste utilisable apres la violation
    assert FindingEvidence.objects.count() == 1


@pytest.mark.django_db
def test_injected_context_maps_unique_violation_to_conflict(audit, alice):
    class RacingRepository(AuditRepository):
        def create_evidence(self, finding, media, note=None):
            raise UniqueConstraintViolation("uniq_finding_media")

    finding = Finding.objects.create(audit=audit, title="x")
    media = MediaFile.objects.create(
        audit=audit, kind="file", filename="a", mime="text/plain", size_bytes=1, storage_key="audits/a"
    )
    context = build_context()
    context.repository = RacingRepository()
    view = FindingEvidenceView.as_view(services=context)

    request = APIRequestFactory().post("/", {"mediaId": str(media.pk)}, format="json")
    force_authenticate(request, user=alice)
    response = view(request, finding_id=str(finding.pk))
    assert response.status_code == 409


# ---------------------------------------------------------------------------
# Stockage
# ---------------------------------------------------------------------------

def test_storage_keys_stay_under_root(tmp_path):
    storage = FileStorage(tmp_path)
    key = storage.make_key("a1", "image", "../../evil name.jpg")
    assert key.startswith("audits/a1/image/")
    assert key.endswith("-evil_name.jpg")
    assert storage.path_for(key).is_relative_to(tmp_path.resolve())

    for bad in ["", "/etc/passwd", "../x", "audits/../../x"]:
        with pytest.raises(BadRequest):
            storage.path_for(bad)


def test_storage_write_size_and_delete(tmp_path):
    storage = FileStorage(tmp_path)
    key = storage.make_key("a1", "file", "notes.txt")
    with storage.open_for_write(key) as fh:
        fh.write(b"hello")

    assert storage.exists(key)
    assert storage.size(key) == 5
    storage.delete(key)
    assert not storage.exists(key)
    storage.delete(key)


def test_kind_for_mime():
    assert kind_for_mime("image/png") == "image"
    assert kind_for_mime("VIDEO/mp4") == "video"
    assert kind_for_mime("audio/ogg") == "audio"
    assert kind_for_mime("text/csv") == "file"
    assert kind_for_mime(None) == "file"
