import io

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import CommandError, call_command
from django.urls import reverse
from docx import Document
from openpyxl import load_workbook
from rest_framework.test import APIClient

from audits.models import Audit
from common.exceptions import BadRequest
from reports.services import (
    TemplateMissing,
    build_docx,
    build_pdf,
    build_report,
    build_xlsx,
    compute_summary,
    item_from_row,
    normalize_status,
    parse_csv,
)

CSV = b"Item,Status,Comment\nRack-1,Pass,ok\nRack-2,OK,\nUPS-1,Fail,battery low\n"


def csv_upload(content=CSV, name="results.csv"):
    return SimpleUploadedFile(name, content, content_type="text/csv")


@pytest.fixture
def audit(alice):
    return Audit.objects.create(user=alice, title="DC Audit", site="Paris-1", auditor="Alice")


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "raw,expected",
    [
        ("Pass", "PASS"), (" ok ", "PASS"), ("YES", "PASS"),
        ("fail", "FAIL"), ("No", "FAIL"),
        ("na", "NA"), ("N-A", "NA"), ("n/a", "NA"),
        ("", "UNKNOWN"), (None, "UNKNOWN"), ("   ", "UNKNOWN"),
        ("partial", "PARTIAL"),
    ],
)
def test_normalize_status(raw, expected):
    assert normalize_status(raw) == expected


def test_item_from_row_example():
    assert item_from_row({"Item": "Rack-1", "Status": "Pass", "Comment": "ok"}, 1) == {
        "idx": 1, "id": "Rack-1", "status": "PASS", "comment": "ok",
    }


def test_item_from_row_column_fallbacks():
    assert item_from_row({"ID": "X9", "result": "no", "notes": "n"}, 4) == {
        "idx": 4, "id": "X9", "status": "FAIL", "comment": "n",
    }
    assert item_from_row({"Whatever": "1"}, 7) == {"idx": 7, "id": "Row7", "status": "UNKNOWN", "comment": ""}


def test_summary_counts_always_add_up():
    items = [{"status": s} for s in ["PASS", "PASS", "FAIL", "NA", "UNKNOWN", "PARTIAL"]]
    summary = compute_summary(items)
    assert summary == {"total": 6, "pass": 2, "fail": 1, "na": 1, "unknown": 2}
    assert summary["pass"] + summary["fail"] + summary["na"] + summary["unknown"] == summary["total"]


def test_parse_csv_quotes_and_missing_cells():
    data = b'Item,Status,Comment\n"Rack, 1",Pass,"said ""fine"""\nRack-2,Fail\n'
    rows = parse_csv(data)
    assert rows[0] == {"Item": "Rack, 1", "Status": "Pass", "Comment": 'said "fine"'}
    assert rows[1]["Comment"] == ""


def test_parse_csv_keeps_cells_as_text():
    rows = parse_csv(b"Item,Status\n007,NA\n")
    assert rows == [{"Item": "007", "Status": "NA"}]


def test_parse_csv_bom_and_latin1():
    assert list(parse_csv("\ufeffItem,Status\nA,ok\n".encode("utf-8"))[0]) == ["Item", "Status"]
    rows = parse_csv("Item,Comment\nBaie-1,câblage à revoir\n".encode("latin-1"))
    assert rows[0]["Comment"] == "câblage à revoir"


@pytest.mark.parametrize("data", [b"", b"   \n", b"Item,Status,Comment\n"])
def test_parse_csv_rejects_empty(data):
    with pytest.raises(BadRequest):
        parse_csv(data)


def test_build_report():
    report = build_report(parse_csv(CSV))
    assert report["summary"] == {"total": 3, "pass": 2, "fail": 1, "na": 0, "unknown": 0}
    assert [it["id"] for it in report["items"]] == ["Rack-1", "Rack-2", "UPS-1"]
    assert [it["idx"] for it in report["items"]] == [1, 2, 3]


# ---------------------------------------------------------------------------
# Generateurs
# ---------------------------------------------------------------------------

@pytest.mark.django_db
def test_build_pdf_with_item_cap(audit):
    report = build_report([{"Item": f"R{i}", "Status": "ok"} for i in range(1, 200)])
    content = build_pdf(audit, report["summary"], report["items"], max_items=120)
    assert content.startswith(b"%PDF")
    assert b"%%EOF" in content[-64:]


@pytest.mark.django_db
def test_build_xlsx(audit):
    report = build_report(parse_csv(CSV))
    wb = load_workbook(io.BytesIO(build_xlsx(audit, report["summary"], report["items"])))
    ws = wb["Report"]
    rows = list(ws.iter_rows(values_only=True))
    assert rows[0] == ("#", "Item", "Status", "Comment")
    assert rows[1] == (1, "Rack-1", "PASS", "ok")
    assert rows[3] == (3, "UPS-1", "FAIL", "battery low")
    assert ws["A1"].font.bold


@pytest.mark.django_db
def test_build_xlsx_writes_cells_as_plain_text(audit):
    items = [
        {"idx": 1, "id": "+SUM(A1)", "status": "PASS", "comment": '=HYPERLINK("http://example.com","x")'},
        {"idx": 2, "id": "R2", "status": "FAIL", "comment": "bad\x01char"},
    ]
    ws = load_workbook(io.BytesIO(build_xlsx(audit, compute_summary(items), items)))["Report"]

    assert ws["D2"].data_type == "s"
    assert ws["D2"].value == '=HYPERLINK("http://example.com","x")'
    assert ws["B2"].data_type == "s"
    assert ws["B2"].value == "+SUM(A1)"
    assert ws["D3"].value == "badchar"
    assert ws["A3"].value == 2


@pytest.mark.django_db
def test_build_docx_requires_template(audit, tmp_path):
    with pytest.raises(TemplateMissing):
        build_docx(tmp_path / "missing.docx", audit, {"total": 0}, [])


@pytest.mark.django_db
def test_build_docx_from_starter_template(audit, settings):
    call_command("make_report_template")
    report = build_report(parse_csv(CSV))

    content = build_docx(settings.REPORT_TEMPLATE_PATH, audit, report["summary"], report["items"])
    text = "\n".join(p.text for p in Document(io.BytesIO(content)).paragraphs)
    assert "DC Audit" in text
    assert "Total: 3  Pass: 2  Fail: 1" in text
    assert "3. UPS-1 [FAIL] battery low" in text


@pytest.mark.django_db
def test_make_report_template_does_not_overwrite(settings):
    call_command("make_report_template")
    with pytest.raises(CommandError):
        call_command("make_report_template")
    call_command("make_report_template", "--force")
    assert settings.REPORT_TEMPLATE_PATH.is_file()


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@pytest.mark.django_db
def test_end_to_end_report_scenario():
    client = APIClient()
    password = "StrongPassw0rd!"

    r = client.post(reverse("register"), {"email": "alice@example.com", "password": password}, format="json")
    assert r.status_code == 201
    r = client.post(reverse("login"), {"email": "alice@example.com", "password": password}, format="json")
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['token']}")

    r = client.post(reverse("audits"), {"title": "DC Audit"}, format="json")
    audit_id = r.data["audit"]["id"]

    csv = b"Item,Status,Comment\nRack-1,Pass,ok\nRack-2,pass,\nUPS-1,Fail,battery low\n"
    r = client.post(reverse("report_upload", args=[audit_id]), {"file": csv_upload(csv)}, format="multipart")
    assert r.status_code == 200, r.content
    assert r.data["summary"] == {"total": 3, "pass": 2, "fail": 1, "na": 0, "unknown": 0}

    r = client.get(reverse("report_detail", args=[audit_id]))
    assert r.status_code == 200
    assert r.data["summary"] == {"total": 3, "pass": 2, "fail": 1, "na": 0, "unknown": 0}
    assert r.data["sourceFile"] == "results.csv"

    r = client.get(reverse("report_pdf", args=[audit_id]), HTTP_ACCEPT="application/pdf")
    assert r.status_code == 200
    assert r["Content-Type"] == "application/pdf"
    assert len(r.content) > 0
    assert r["Content-Disposition"] == f'attachment; filename="audit-{audit_id}.pdf"'


@pytest.mark.django_db
def test_report_upload_replaces_previous_report(audit, alice, client_for):
    client = client_for(alice)
    url = reverse("report_upload", args=[audit.pk])

    client.post(url, {"file": csv_upload()}, format="multipart")
    r = client.post(url, {"file": csv_upload(b"Item,Status\nOnly,na\n", "second.csv")}, format="multipart")
    assert r.status_code == 200

    audit.refresh_from_db()
    assert audit.source_file == "second.csv"
    assert audit.report_json["summary"] == {"total": 1, "pass": 0, "fail": 0, "na": 1, "unknown": 0}
    assert len(audit.report_json["items"]) == 1


@pytest.mark.django_db
def test_report_upload_errors(audit, alice, bob, client_for, settings):
    url = reverse("report_upload", args=[audit.pk])

    assert client_for(bob).post(url, {"file": csv_upload()}, format="multipart").status_code == 403

    client = client_for(alice)
    r = client.post(url, {}, format="multipart")
    assert r.status_code == 400
    assert r.json()["message"] == "file is required"

    r = client.post(url, {"file": "Item,Status"}, format="json")
    assert r.status_code == 400
    assert r.json()["message"] == "file is required"

    r = client.post(url, {"file": csv_upload(b"Item,Status\n")}, format="multipart")
    assert r.status_code == 400

    settings.REPORT_UPLOAD_MAX_BYTES = 16
    r = client.post(url, {"file": csv_upload()}, format="multipart")
    assert r.status_code == 413

    audit.refresh_from_db()
    assert audit.report_json is None


@pytest.mark.django_db
@pytest.mark.parametrize("name", ["report_detail", "report_pdf", "report_xlsx", "report_docx"])
def test_report_routes_without_report(audit, alice, client_for, name):
    r = client_for(alice).get(reverse(name, args=[audit.pk]))
    assert r.status_code == 404
    assert r.json() == {"ok": False, "message": "no report uploaded"}


@pytest.mark.django_db
def test_report_exports(audit, alice, client_for):
    client = client_for(alice)
    client.post(reverse("report_upload", args=[audit.pk]), {"file": csv_upload()}, format="multipart")

    r = client.get(reverse("report_xlsx", args=[audit.pk]))
    assert r.status_code == 200
    assert r["Content-Type"] == "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    assert load_workbook(io.BytesIO(r.content))["Report"].max_row == 4

    # pas de modele -> erreur explicite, jamais de modele par defaut
    r = client.get(reverse("report_docx", args=[audit.pk]))
    assert r.status_code == 400
    assert r.json()["message"] == "report template not found"

    call_command("make_report_template")
    r = client.get(reverse("report_docx", args=[audit.pk]))
    assert r.status_code == 200
    assert r["Content-Type"].endswith("wordprocessingml.document")
    assert r.content.startswith(b"PK")


@pytest.mark.django_db
def test_report_export_by_stranger(audit, bob, client_for):
    assert client_for(bob).get(reverse("report_pdf", args=[audit.pk])).status_code == 403


@pytest.mark.django_db
def test_xlsx_export_with_control_characters(audit, alice, client_for):
    client = client_for(alice)
    csv = b"Item,Status,Comment\nR1,pass,bad\x01char\n"
    r = client.post(reverse("report_upload", args=[audit.pk]), {"file": csv_upload(csv)}, format="multipart")
    assert r.status_code == 200

    r = client.get(reverse("report_xlsx", args=[audit.pk]))
    assert r.status_code == 200
    assert load_workbook(io.BytesIO(r.content))["Report"]["D2"].value == "badchar"
