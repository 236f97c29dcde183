import re
from datetime import datetime, timezone
from pathlib import PurePath
from typing import Any, Optional

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def parse_int(value: Any, default: int) -> int:
    """int(value) ou default si absent / non numerique."""
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def clamp(value: int, low: int, high: Optional[int] = None) -> int:
    value = max(low, value)
    return min(value, high) if high is not None else value


def safe_filename(name: Optional[str], fallback: str = "upload") -> str:
    """Nom de fichier sans chemin ni caracteres exotiques (utilisable dans une cle de stockage)."""
    base = PurePath((name or "").replace("\\", "/")).name
    cleaned = _UNSAFE_CHARS.sub("_", base).strip("._")
    return cleaned[:120] or fallback
