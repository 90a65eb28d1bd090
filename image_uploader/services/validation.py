"""Per-file upload checks: size limit, extension and sniffed media type."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from image_uploader.services.errors import (
    DisallowedExtensionError,
    DisallowedMimeTypeError,
    FileTooLargeError,
    MimeReadError,
)
from image_uploader.services.multipart import CandidateFile
from image_uploader.services.paths import split_extension
from image_uploader.services.sizes import format_size
from image_uploader.services.sniffing import SNIFF_LENGTH, sniff_content_type
from image_uploader.services.upload_config import normalize_extensions

logger = logging.getLogger(__name__)

# Fixed regardless of the configured extensions; see validate_settings for
# the warning emitted when the two disagree.
ALLOWED_MIME_TYPES = frozenset(
    {
        "image/jpeg",
        "image/png",
        "image/webp",
        "image/gif",
        "image/bmp",
        "image/svg+xml",
    }
)

EXTENSION_MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "jpe": "image/jpeg",
    "jfif": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "dib": "image/bmp",
    "svg": "image/svg+xml",
}


def file_extension(filename: str) -> str:
    """Lowercase extension of ``filename`` without its dot (``""`` if none)."""
    return split_extension(filename)[1].lstrip(".").lower()


def unsniffable_extensions(extensions: Iterable[str]) -> list[str]:
    """Extensions whose files can never pass the media-type whitelist."""
    return [
        ext
        for ext in normalize_extensions(extensions)
        if EXTENSION_MIME_TYPES.get(ext) not in ALLOWED_MIME_TYPES
    ]


class ImageValidator:
    def __init__(self, allowed_extensions: Iterable[str]) -> None:
        self.allowed_extensions = normalize_extensions(allowed_extensions)

    def validate(self, file: CandidateFile, max_size: int) -> str:
        """Run every check on ``file`` and return its sniffed media type.

        Raises a ``FileValidationError`` subclass on the first failing check.
        """
        if file.size > max_size:
            raise FileTooLargeError(
                f"file {file.filename} exceeds maximum size of {format_size(max_size)}"
            )

        if file_extension(file.filename) not in self.allowed_extensions:
            allowed = ", ".join(self.allowed_extensions)
            raise DisallowedExtensionError(
                f"file {file.filename} has disallowed extension. Allowed: {allowed}"
            )

        media_type = self.detect_media_type(file)
        if media_type not in ALLOWED_MIME_TYPES:
            raise DisallowedMimeTypeError(
                f"file {file.filename} has disallowed MIME type: {media_type}"
            )
        return media_type

    def detect_media_type(self, file: CandidateFile) -> str:
        try:
            with file.open() as handle:
                head = handle.read(SNIFF_LENGTH)
        except OSError as exc:
            raise MimeReadError(
                f"failed to read MIME type for {file.filename}: {exc}"
            ) from exc
        if not head:
            raise MimeReadError(
                f"failed to read MIME type for {file.filename}: file is empty"
            )
        media_type = sniff_content_type(head)
        logger.debug("Sniffed %s as %s", file.filename, media_type)
        return media_type
