"""Upload pipeline errors.

Every error raised while handling an upload derives from ``UploadError``;
the orchestrator converts them into unsuccessful ``UploadResult`` values
instead of letting them reach the HTTP error handlers.
"""

from __future__ import annotations


class UploadError(ValueError):
    """Base class for upload pipeline failures."""


class InvalidSizeError(UploadError):
    """A size string could not be parsed."""


class InvalidSubDirError(UploadError):
    """The requested sub directory resolves outside the storage root."""


class ExtractionError(UploadError):
    """No candidate files could be read from the request."""


class FileValidationError(UploadError):
    """A candidate file failed validation."""


class FileTooLargeError(FileValidationError):
    pass


class DisallowedExtensionError(FileValidationError):
    pass


class MimeReadError(FileValidationError):
    pass


class DisallowedMimeTypeError(FileValidationError):
    pass
