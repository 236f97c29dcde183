"""Rendu PDF d'un rapport d'audit (reportlab, canvas pagine)."""
from __future__ import annotations

import io
from typing import Any, Dict, List

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.pdfgen import canvas

from common.utils import now_utc

DEFAULT_MAX_ITEMS = 500
_COMMENT_WIDTH = 70


def _truncate(text: Any, width: int) -> str:
    s = str(text or "")
    return s if len(s) <= width else s[: width - 3] + "..."


def build_pdf(audit, summary: Dict[str, int], items: List[Dict[str, Any]], max_items: int = DEFAULT_MAX_ITEMS) -> bytes:
    """Titre, metadonnees, compteurs puis au plus `max_items` lignes d'items."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    width, height = A4
    bottom = 2 * cm

    c.setTitle(f"Audit Report {getattr(audit, 'title', None) or audit.pk}")
    c.setFont("Helvetica-Bold", 16)
    c.drawString(2 * cm, height - 2 * cm, "Audit Report")

    c.setFont("Helvetica", 10)
    y = height - 3 * cm
    for label, value in (
        ("Audit", audit.pk),
        ("Title", getattr(audit, "title", None)),
        ("Site", getattr(audit, "site", None)),
        ("Standard", getattr(audit, "standard", None)),
        ("Auditor", getattr(audit, "auditor", None)),
        ("Generated", now_utc().strftime("%Y-%m-%d %H:%M UTC")),
    ):
        c.drawString(2 * cm, y, f"{label}: {value if value not in (None, '') else '-'}")
        y -= 0.55 * cm

    y -= 0.3 * cm
    c.setFont("Helvetica-Bold", 11)
    c.drawString(
        2 * cm,
        y,
        f"Total: {summary.get('total', 0)}   Pass: {summary.get('pass', 0)}   "
        f"Fail: {summary.get('fail', 0)}   NA: {summary.get('na', 0)}   "
        f"Unknown: {summary.get('unknown', 0)}",
    )
    y -= 0.9 * cm

    c.setFont("Helvetica", 9)
    shown = items[: max(0, max_items)]
    for it in shown:
        if y < bottom:
            c.showPage()
            c.setFont("Helvetica", 9)
            y = height - 2 * cm
        line = f"{it.get('idx')}. {_truncate(it.get('id'), 40)}  [{it.get('status')}]  {_truncate(it.get('comment'), _COMMENT_WIDTH)}"
        c.drawString(2 * cm, y, line)
        y -= 0.5 * cm

    hidden = len(items) - len(shown)
    if hidden > 0:
        if y < bottom:
            c.showPage()
            y = height - 2 * cm
        c.setFont("Helvetica-Oblique", 9)
        c.drawString(2 * cm, y, f"{hidden} more items not shown")

    # le buffer n'est complet qu'apres save()
    c.save()
    return buf.getvalue()
