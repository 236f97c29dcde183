"""
Rapport Word a partir d'un modele docxtpl (syntaxe Jinja dans le .docx).

Le modele est fourni par le deploiement (REPORT_TEMPLATE_PATH, ou la
commande `make_report_template`); s'il manque, on echoue: aucun modele par
defaut n'est substitue.
"""
from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from docxtpl import DocxTemplate

from common.exceptions import BadRequest
from common.utils import now_utc

logger = logging.getLogger(__name__)


class TemplateMissing(BadRequest):
    default_detail = "report template not found"
    default_code = "template_missing"


def make_context(audit, summary: Dict[str, int], items: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "audit_id": str(audit.pk),
        "title": getattr(audit, "title", None) or "",
        "site": getattr(audit, "site", None) or "",
        "standard": getattr(audit, "standard", None) or "",
        "auditor": getattr(audit, "auditor", None) or "",
        "generated_at": now_utc().strftime("%Y-%m-%d %H:%M UTC"),
        "summary": summary,
        "items": items,
        "total": summary.get("total", 0),
        "passed": summary.get("pass", 0),
        "failed": summary.get("fail", 0),
        "na": summary.get("na", 0),
        "unknown": summary.get("unknown", 0),
    }


def build_docx(template_path: Union[str, Path], audit, summary: Dict[str, int], items: List[Dict[str, Any]]) -> bytes:
    path = Path(template_path)
    if not path.is_file():
        logger.error(f"Modele DOCX introuvable: {path}")
        raise TemplateMissing()

    tpl = DocxTemplate(str(path))
    tpl.render(make_context(audit, summary, items), autoescape=True)

    buf = io.BytesIO()
    tpl.save(buf)
    return buf.getvalue()
