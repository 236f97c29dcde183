from .docx import TemplateMissing, build_docx
from .ingest import build_report, compute_summary, item_from_row, normalize_status, parse_csv
from .pdf import build_pdf
from .xlsx import build_xlsx

__all__ = [
    "TemplateMissing",
    "build_docx",
    "build_pdf",
    "build_report",
    "build_xlsx",
    "compute_summary",
    "item_from_row",
    "normalize_status",
    "parse_csv",
]
