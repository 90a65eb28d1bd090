"""Persistence for accepted uploads.

The pipeline only needs "write this upload to path P"; ``UploadSink`` is that
primitive. ``LocalFileSink`` writes to the local filesystem through a
temporary file in the destination directory, so a file only appears under
its final name once it is complete.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from image_uploader.services.multipart import CandidateFile

logger = logging.getLogger(__name__)

DIRECTORY_MODE = 0o755
FILE_MODE = 0o644


def ensure_directory(path: Path) -> None:
    """Create ``path`` and its parents; safe when another worker races us."""
    path.mkdir(mode=DIRECTORY_MODE, parents=True, exist_ok=True)


class UploadSink(ABC):
    """Abstract interface for persisting an upload."""

    @abstractmethod
    def save(self, file: CandidateFile, destination: Path) -> None:
        """Write the bytes of ``file`` to the absolute path ``destination``."""


class LocalFileSink(UploadSink):
    """Store uploads on the local filesystem."""

    chunk_size = 64 * 1024

    def save(self, file: CandidateFile, destination: Path) -> None:
        destination = Path(destination)
        fd, tmp_name = tempfile.mkstemp(
            dir=destination.parent, prefix=".upload-", suffix=".part"
        )
        try:
            with os.fdopen(fd, "wb") as out, file.open() as src:
                shutil.copyfileobj(src, out, self.chunk_size)
            os.chmod(tmp_name, FILE_MODE)
            os.replace(tmp_name, destination)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
        logger.info("Saved file: %s (%d bytes)", destination, file.size)
