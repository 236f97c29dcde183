"""Export tableur d'un rapport (openpyxl)."""
from __future__ import annotations

import io
from typing import Any, Dict, List

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

HEADERS = ["#", "Item", "Status", "Comment"]
MAX_COLUMN_WIDTH = 80


def _text(value: Any) -> str:
    """Texte de cellule sans les caracteres de controle refuses par openpyxl."""
    return ILLEGAL_CHARACTERS_RE.sub("", str(value if value is not None else ""))


def build_xlsx(audit, summary: Dict[str, int], items: List[Dict[str, Any]]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Report"

    ws.append(HEADERS)
    for col_idx in range(1, len(HEADERS) + 1):
        cell = ws.cell(row=1, column=col_idx)
        cell.font = Font(bold=True)
        cell.alignment = Alignment(vertical="top")

    for row_idx, it in enumerate(items, start=2):
        ws.cell(row=row_idx, column=1, value=it.get("idx"))
        for col_idx, key in ((2, "id"), (3, "status"), (4, "comment")):
            cell = ws.cell(row=row_idx, column=col_idx, value=_text(it.get(key)))
            # "=..." reste du texte, jamais une formule
            cell.data_type = "s"

    # largeur = plus long contenu de la colonne (borne)
    for col_idx in range(1, len(HEADERS) + 1):
        longest = max(
            (len(str(ws.cell(row=r, column=col_idx).value or "")) for r in range(1, ws.max_row + 1)),
            default=0,
        )
        ws.column_dimensions[get_column_letter(col_idx)].width = min(longest + 2, MAX_COLUMN_WIDTH)

    ws.freeze_panes = "A2"

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()
