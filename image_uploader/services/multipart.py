"""Multipart request sources and the file extractor.

``MultipartSource`` is the narrow view of a parsed form the upload pipeline
needs. ``FormDataSource`` adapts a Starlette request; ``InMemorySource``
lets other callers (and tests) drive the pipeline without HTTP.
"""

from __future__ import annotations

import io
import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import BinaryIO

from starlette.datastructures import FormData, UploadFile
from starlette.requests import Request

from image_uploader.services.errors import ExtractionError

logger = logging.getLogger(__name__)

# Checked in order; a group wins as soon as it holds at least one file.
FILE_GROUP_FIELDS = (("files", "files[]"), ("images", "images[]"))
SINGLE_FILE_FIELDS = ("file", "image")


@dataclass(frozen=True)
class CandidateFile:
    """One uploaded file: its client filename, declared size and byte source."""

    filename: str
    size: int
    opener: Callable[[], BinaryIO]

    def open(self) -> BinaryIO:
        """Return a fresh reader positioned at the first byte."""
        return self.opener()

    @classmethod
    def from_bytes(cls, filename: str, content: bytes) -> CandidateFile:
        return cls(
            filename=filename,
            size=len(content),
            opener=lambda: io.BytesIO(content),
        )


class MultipartSource(ABC):
    """Read access to a parsed multipart form."""

    @abstractmethod
    def get_field(self, name: str) -> str | None:
        """Return the text value of ``name``, or ``None`` when absent."""

    @abstractmethod
    def get_files(self, name: str) -> list[CandidateFile]:
        """Return every file posted under ``name`` in request order."""


class InMemorySource(MultipartSource):
    def __init__(
        self,
        fields: Mapping[str, str] | None = None,
        files: Mapping[str, Sequence[CandidateFile]] | None = None,
    ) -> None:
        self.fields = dict(fields or {})
        self.files = {name: list(group) for name, group in (files or {}).items()}

    def get_field(self, name: str) -> str | None:
        return self.fields.get(name)

    def get_files(self, name: str) -> list[CandidateFile]:
        return list(self.files.get(name, []))


class _UploadFileView(io.RawIOBase):
    """Reader over an ``UploadFile``'s spooled file.

    Closing the view leaves the underlying file open so the upload can be
    read again (sniffed first, then saved).
    """

    def __init__(self, raw: BinaryIO) -> None:
        super().__init__()
        self._raw = raw
        self._raw.seek(0)

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:  # type: ignore[override]
        data = self._raw.read(len(buffer))
        size = len(data)
        buffer[:size] = data
        return size


def _declared_size(upload: UploadFile) -> int:
    if upload.size is not None:
        return upload.size
    position = upload.file.tell()
    upload.file.seek(0, os.SEEK_END)
    size = upload.file.tell()
    upload.file.seek(position)
    return size


def candidate_from_upload(upload: UploadFile) -> CandidateFile:
    return CandidateFile(
        filename=upload.filename or "",
        size=_declared_size(upload),
        opener=lambda: _UploadFileView(upload.file),
    )


class FormDataSource(MultipartSource):
    """``MultipartSource`` over a Starlette ``FormData``.

    Build it with ``await FormDataSource.from_request(request)``; a body that
    cannot be parsed yields a source with no fields whose file lookups raise
    ``ExtractionError``.
    """

    def __init__(
        self, form: FormData | None = None, parse_error: Exception | None = None
    ) -> None:
        self.form = form if form is not None else FormData()
        self.parse_error = parse_error

    @classmethod
    async def from_request(cls, request: Request) -> FormDataSource:
        try:
            form = await request.form()
        except Exception as exc:
            logger.warning("Could not parse multipart body: %s", exc)
            return cls(parse_error=exc)
        return cls(form)

    def get_field(self, name: str) -> str | None:
        value = self.form.get(name)
        if isinstance(value, str):
            return value
        return None

    def get_files(self, name: str) -> list[CandidateFile]:
        if self.parse_error is not None:
            raise ExtractionError(f"failed to parse multipart form: {self.parse_error}")
        return [
            candidate_from_upload(item)
            for item in self.form.getlist(name)
            if isinstance(item, UploadFile)
        ]

    async def aclose(self) -> None:
        await self.form.close()


def extract_files(source: MultipartSource) -> list[CandidateFile]:
    """Pull candidate files out of ``source`` using the known field names.

    Priority: the ``files`` group, the ``images`` group, then a single
    ``file`` or ``image``. Raises ``ExtractionError`` when none has a file.
    """
    for names in FILE_GROUP_FIELDS:
        for name in names:
            files = source.get_files(name)
            if files:
                return files
    for name in SINGLE_FILE_FIELDS:
        files = source.get_files(name)
        if files:
            return files[:1]
    raise ExtractionError("no files found in request")
