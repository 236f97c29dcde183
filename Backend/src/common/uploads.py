"""
Upload multipart en flux borne.

Django ecrit les fichiers uploades via des "upload handlers". On en fournit
deux, tous deux limites a un seul fichier par requete et a un plafond
d'octets compte pendant la lecture du flux:

- StorageUploadHandler: ecrit directement dans le stockage final (medias);
- MemoryUploadHandler: garde le fichier en memoire (CSV de rapport, petits).

SingleFileMultiPartParser demande ses handlers a la vue et refuse un
Content-Length annonce trop grand avant d'ecrire le moindre octet.
"""
from __future__ import annotations

import io
import logging
from typing import Callable, List, Optional

from django.conf import settings
from django.core.files.uploadedfile import InMemoryUploadedFile, UploadedFile
from django.core.files.uploadhandler import FileUploadHandler
from django.http.multipartparser import MultiPartParser as DjangoMultiPartParser
from django.http.multipartparser import MultiPartParserError
from rest_framework.exceptions import ParseError, UnsupportedMediaType
from rest_framework.parsers import DataAndFiles, MultiPartParser

from .exceptions import BadRequest, PayloadTooLarge
from .utils import parse_int

logger = logging.getLogger(__name__)

# Marge pour les boundaries / en-tetes multipart dans le Content-Length annonce
MULTIPART_SLACK_BYTES = 64 * 1024


class SingleFileUploadHandler(FileUploadHandler):
    """Base commune: un seul fichier, plafond d'octets, nettoyage si abandon."""

    def __init__(self, request=None, max_bytes: int = 0):
        super().__init__(request)
        self.max_bytes = max_bytes
        self.received = 0
        self.files_seen = 0

    # -- hooks des sous-classes --
    def open_destination(self) -> None:
        raise NotImplementedError

    def write(self, chunk: bytes) -> None:
        raise NotImplementedError

    def discard(self) -> None:
        raise NotImplementedError

    # -- API FileUploadHandler --
    def new_file(self, field_name, file_name, content_type, content_length, charset=None, content_type_extra=None):
        super().new_file(field_name, file_name, content_type, content_length, charset, content_type_extra)
        self.files_seen += 1
        if self.files_seen > 1:
            self.discard()
            raise BadRequest("exactly one file per request")
        self.received = 0
        self.open_destination()

    def receive_data_chunk(self, raw_data, start):
        self.received += len(raw_data)
        if self.max_bytes and self.received > self.max_bytes:
            self.discard()
            raise PayloadTooLarge(f"file exceeds the {self.max_bytes} bytes limit")
        self.write(raw_data)
        return None

    def upload_interrupted(self):
        self.discard()


class StoredUploadedFile(UploadedFile):
    """Fichier deja ecrit a sa place definitive; `storage_key` le designe."""

    def __init__(self, file, storage_key: str, name, content_type, size, charset, content_type_extra=None):
        super().__init__(file, name, content_type, size, charset, content_type_extra)
        self.storage_key = storage_key


class StorageUploadHandler(SingleFileUploadHandler):
    """
    Ecrit le fichier au fil de l'eau dans `storage` sous la cle renvoyee par
    `key_for(file_name, content_type)`. La taille retenue est celle ecrite.
    """

    def __init__(self, request=None, *, storage, key_for: Callable[[str, str], str], max_bytes: int = 0):
        super().__init__(request, max_bytes)
        self.storage = storage
        self.key_for = key_for
        self.storage_key: Optional[str] = None
        self.completed_key: Optional[str] = None
        self._fh = None

    def open_destination(self) -> None:
        self.storage_key = self.key_for(self.file_name, self.content_type)
        self._fh = self.storage.open_for_write(self.storage_key)

    def write(self, chunk: bytes) -> None:
        self._fh.write(chunk)

    def discard(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None
        for key in {self.storage_key, self.completed_key}:
            if key:
                self.storage.delete(key)
                logger.info(f"Upload abandonne, fichier supprime: {key}")

    def file_complete(self, file_size):
        self._fh.close()
        self._fh = None
        self.completed_key = self.storage_key
        return StoredUploadedFile(
            file=self.storage.path_for(self.storage_key).open("rb"),
            storage_key=self.storage_key,
            name=self.file_name,
            content_type=self.content_type,
            size=file_size,
            charset=self.charset,
            content_type_extra=self.content_type_extra,
        )


class MemoryUploadHandler(SingleFileUploadHandler):
    """Garde le fichier en memoire (borne par max_bytes)."""

    def __init__(self, request=None, max_bytes: int = 0):
        super().__init__(request, max_bytes)
        self._buffer: Optional[io.BytesIO] = None

    def open_destination(self) -> None:
        self._buffer = io.BytesIO()

    def write(self, chunk: bytes) -> None:
        self._buffer.write(chunk)

    def discard(self) -> None:
        self._buffer = None

    def file_complete(self, file_size):
        self._buffer.seek(0)
        return InMemoryUploadedFile(
            file=self._buffer,
            field_name=self.field_name,
            name=self.file_name,
            content_type=self.content_type,
            size=file_size,
            charset=self.charset,
            content_type_extra=self.content_type_extra,
        )


class SingleFileMultiPartParser(MultiPartParser):
    """
    Parser multipart dont les handlers viennent de la vue:
        view.get_upload_handlers(request) -> [handler]
        view.get_upload_max_bytes() -> int
    """

    def parse(self, stream, media_type=None, parser_context=None):
        parser_context = parser_context or {}
        request = parser_context["request"]
        view = parser_context.get("view")
        encoding = parser_context.get("encoding", settings.DEFAULT_CHARSET)
        meta = request.META.copy()
        meta["CONTENT_TYPE"] = media_type

        max_bytes = view.get_upload_max_bytes() if hasattr(view, "get_upload_max_bytes") else 0
        declared = parse_int(meta.get("CONTENT_LENGTH"), 0)
        if max_bytes and declared > max_bytes + MULTIPART_SLACK_BYTES:
            # rien n'a encore ete lu ni ecrit
            raise PayloadTooLarge(f"file exceeds the {max_bytes} bytes limit")

        handlers: List[FileUploadHandler]
        if hasattr(view, "get_upload_handlers"):
            handlers = view.get_upload_handlers(request)
        else:
            handlers = request.upload_handlers

        try:
            parser = DjangoMultiPartParser(meta, stream, handlers, encoding)
            data, files = parser.parse()
            return DataAndFiles(data, files)
        except MultiPartParserError as exc:
            raise ParseError(f"Multipart form parse error - {exc}")


def single_upload(request):
    """
    Le fichier unique de la requete; BadRequest si aucun fichier.
    Un corps non multipart (JSON, vide...) est traite comme "pas de fichier".
    """
    try:
        upload = next(iter(request.FILES.values()), None)
    except UnsupportedMediaType:
        upload = None
    if upload is None:
        raise BadRequest("file is required")
    return upload
