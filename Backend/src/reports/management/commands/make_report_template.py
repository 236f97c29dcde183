from pathlib import Path

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from docx import Document


def write_starter_template(path: Path) -> Path:
    """Modele docxtpl minimal: en-tete, compteurs et une ligne par item."""
    doc = Document()
    doc.add_heading("Audit Report", level=0)
    doc.add_paragraph("{{ title }}")
    doc.add_paragraph("Site: {{ site }}  |  Standard: {{ standard }}  |  Auditor: {{ auditor }}")
    doc.add_paragraph("Audit {{ audit_id }}, generated {{ generated_at }}")

    doc.add_heading("Summary", level=1)
    doc.add_paragraph(
        "Total: {{ total }}  Pass: {{ passed }}  Fail: {{ failed }}  NA: {{ na }}  Unknown: {{ unknown }}"
    )

    doc.add_heading("Items", level=1)
    doc.add_paragraph("{%p for item in items %}")
    doc.add_paragraph("{{ item.idx }}. {{ item.id }} [{{ item.status }}] {{ item.comment }}")
    doc.add_paragraph("{%p endfor %}")

    path.parent.mkdir(parents=True, exist_ok=True)
    doc.save(str(path))
    return path


class Command(BaseCommand):
    help = "Ecrit un modele DOCX de depart pour les rapports (REPORT_TEMPLATE_PATH par defaut)."

    def add_arguments(self, parser):
        parser.add_argument("--path", type=str, default=None, help="Chemin de sortie du modele")
        parser.add_argument("--force", action="store_true", help="Ecraser un modele existant")

    def handle(self, *args, **opts):
        path = Path(opts["path"] or settings.REPORT_TEMPLATE_PATH)
        if path.exists() and not opts["force"]:
            raise CommandError(f"{path} existe deja (utiliser --force pour l'ecraser)")

        write_starter_template(path)
        self.stdout.write(self.style.SUCCESS(f"Modele ecrit: {path}"))
