"""
Stockage disque des medias d'audit.

Une cle de stockage est un chemin relatif POSIX sous STORAGE_ROOT:
    audits/<audit_id>/<kind>/<horodatage>-<aleatoire>-<nom_nettoye>
Toute cle est re-validee a la resolution: elle ne doit jamais sortir de la racine.
"""
from __future__ import annotations

import logging
import secrets
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Union

from common.exceptions import BadRequest
from common.utils import now_utc, safe_filename

logger = logging.getLogger(__name__)


class FileStorage:
    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root).resolve()

    def make_key(self, audit_id, kind: str, filename: str) -> str:
        stamp = now_utc().strftime("%Y%m%dT%H%M%S%f")
        suffix = secrets.token_hex(6)
        return f"audits/{audit_id}/{kind}/{stamp}-{suffix}-{safe_filename(filename)}"

    def path_for(self, key: str) -> Path:
        """Chemin absolu d'une cle; BadRequest si la cle tente de sortir de la racine."""
        rel = PurePosixPath(str(key or ""))
        if not key or rel.is_absolute() or ".." in rel.parts:
            raise BadRequest("invalid storage key")
        path = self.root.joinpath(*rel.parts).resolve()
        if path != self.root and self.root not in path.parents:
            raise BadRequest("invalid storage key")
        return path

    def open_for_write(self, key: str) -> BinaryIO:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        # "xb": une cle deja utilisee n'est jamais ecrasee
        return path.open("xb")

    def exists(self, key: str) -> bool:
        return self.path_for(key).is_file()

    def size(self, key: str) -> int:
        return self.path_for(key).stat().st_size

    def delete(self, key: str) -> None:
        try:
            self.path_for(key).unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Suppression impossible pour {key}: {e}")
