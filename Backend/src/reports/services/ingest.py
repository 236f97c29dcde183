"""
CSV de resultats d'audit -> rapport {summary, items}.

Une ligne = un item controle:
    Item,Status,Comment
    Rack-1,Pass,ok        -> {"idx": 1, "id": "Rack-1", "status": "PASS", "comment": "ok"}
"""
from __future__ import annotations

import io
import logging
from typing import Any, Dict, Iterable, List

import pandas as pd

from common.exceptions import BadRequest

logger = logging.getLogger(__name__)

# Variantes de noms de colonnes acceptees, dans l'ordre de priorite
ID_KEYS = ("Item", "item", "ITEM", "ID", "Id", "id")
STATUS_KEYS = ("Status", "status", "STATUS", "Result", "result")
COMMENT_KEYS = ("Comment", "comment", "COMMENT", "Comments", "comments", "Notes", "notes")

PASS, FAIL, NA, UNKNOWN = "PASS", "FAIL", "NA", "UNKNOWN"
_SYNONYMS = {
    "pass": PASS, "ok": PASS, "yes": PASS,
    "fail": FAIL, "no": FAIL,
    "na": NA, "n-a": NA, "n/a": NA,
}


def _read(data: bytes, encoding: str) -> pd.DataFrame:
    # tout en texte: "007" reste "007", "NA" n'est pas converti en NaN
    return pd.read_csv(
        io.BytesIO(data),
        sep=",",
        quotechar='"',
        dtype=str,
        keep_default_na=False,
        skipinitialspace=False,
        encoding=encoding,
    )


def parse_csv(data: bytes) -> List[Dict[str, str]]:
    """Lignes du CSV (en-tete = cles). UTF-8 (BOM tolere), sinon latin-1."""
    if not data or not data.strip():
        raise BadRequest("csv is empty")
    try:
        try:
            df = _read(data, "utf-8-sig")
        except UnicodeDecodeError:
            logger.info("CSV non UTF-8, relecture en latin-1")
            df = _read(data, "latin-1")
    except pd.errors.EmptyDataError:
        raise BadRequest("csv is empty")
    except pd.errors.ParserError as e:
        raise BadRequest(f"invalid csv: {e}")

    if df.empty:
        raise BadRequest("csv has no data rows")

    df.columns = [str(c).strip() for c in df.columns]
    # cellules manquantes en fin de ligne -> ""
    df = df.fillna("")
    return df.to_dict(orient="records")


def _first(row: Dict[str, Any], keys: Iterable[str]) -> str:
    for key in keys:
        value = row.get(key)
        if value is not None and str(value).strip() != "":
            return str(value).strip()
    return ""


def normalize_status(raw: Any) -> str:
    text = str(raw if raw is not None else "").strip()
    if not text:
        return UNKNOWN
    return _SYNONYMS.get(text.lower(), text.upper())


def item_from_row(row: Dict[str, Any], idx: int) -> Dict[str, Any]:
    return {
        "idx": idx,
        "id": _first(row, ID_KEYS) or f"Row{idx}",
        "status": normalize_status(_first(row, STATUS_KEYS)),
        "comment": _first(row, COMMENT_KEYS),
    }


def compute_summary(items: List[Dict[str, Any]]) -> Dict[str, int]:
    """pass + fail + na + unknown == total (tout statut hors PASS/FAIL/NA compte comme unknown)."""
    total = len(items)
    passed = sum(1 for it in items if it.get("status") == PASS)
    failed = sum(1 for it in items if it.get("status") == FAIL)
    na = sum(1 for it in items if it.get("status") == NA)
    return {"total": total, "pass": passed, "fail": failed, "na": na, "unknown": total - passed - failed - na}


def build_report(rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    items = [item_from_row(row, idx) for idx, row in enumerate(rows, start=1)]
    return {"summary": compute_summary(items), "items": items}
