"""Image upload service: validates a batch of uploads and stores them."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from image_uploader.schemas.upload import UploadResult
from image_uploader.services.errors import (
    ExtractionError,
    FileValidationError,
    InvalidSizeError,
    InvalidSubDirError,
)
from image_uploader.services.multipart import MultipartSource, extract_files
from image_uploader.services.paths import UploadPaths
from image_uploader.services.sizes import parse_size
from image_uploader.services.storage import (
    LocalFileSink,
    UploadSink,
    ensure_directory,
)
from image_uploader.services.upload_config import UploadConfig
from image_uploader.services.validation import ImageValidator

logger = logging.getLogger(__name__)

SUB_DIR_FIELD = "sub_dir"
MAX_SIZE_FIELD = "max_size"


class ImageUploader:
    """Runs the upload pipeline for one request at a time.

    Files are validated and saved one by one in request order. The first
    failure ends the request; files saved before it stay on disk.
    """

    def __init__(
        self,
        config: UploadConfig | None = None,
        sink: UploadSink | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config or UploadConfig()
        self.sink = sink or LocalFileSink()
        self.paths = UploadPaths(self.config)
        self.validator = ImageValidator(self.config.allowed_extensions)
        self._clock = clock

    def effective_max_size(self, override: str | None) -> int:
        """Per-request limit: a positive ``max_size`` override, else the config."""
        if override:
            try:
                custom = parse_size(override)
            except InvalidSizeError:
                logger.debug("Ignoring unparseable max_size %r", override)
            else:
                if custom > 0:
                    return custom
        return self.config.max_file_size

    def _prepare_directory(self, sub_dir: str, now: datetime) -> Path:
        directory = self.paths.target_directory(sub_dir, now)
        ensure_directory(directory)
        return directory

    @staticmethod
    def _directory_failure(exc: Exception) -> UploadResult:
        if isinstance(exc, InvalidSubDirError):
            logger.warning("Rejected sub directory: %s", exc)
            return UploadResult.failure("Invalid sub directory", str(exc))
        logger.error("Failed to create upload directory: %s", exc)
        return UploadResult.failure("Failed to create directory", str(exc))

    def handle_upload(self, source: MultipartSource) -> tuple[UploadResult, int]:
        """Process ``source`` and pair the result with its HTTP status."""
        result = self.process_upload(source)
        return result, 200 if result.success else 400

    def process_upload(self, source: MultipartSource) -> UploadResult:
        sub_dir = source.get_field(SUB_DIR_FIELD) or ""
        max_size = self.effective_max_size(source.get_field(MAX_SIZE_FIELD))

        try:
            self._prepare_directory(sub_dir, self._clock())
        except (InvalidSubDirError, OSError) as exc:
            return self._directory_failure(exc)

        try:
            files = extract_files(source)
        except ExtractionError as exc:
            return UploadResult.failure("Failed to get files from request", str(exc))
        if not files:
            return UploadResult.failure("No files provided")

        file_paths: list[str] = []
        file_urls: list[str] = []
        for file in files:
            try:
                self.validator.validate(file, max_size)
            except FileValidationError as exc:
                logger.info("Rejected upload: %s", exc)
                return UploadResult.failure(str(exc))

            # The clock is read once per file; a batch may straddle two dates.
            now = self._clock()
            try:
                directory = self._prepare_directory(sub_dir, now)
            except (InvalidSubDirError, OSError) as exc:
                return self._directory_failure(exc)

            filename = self.paths.generate_filename(file.filename, now)
            try:
                self.sink.save(file, directory / filename)
            except (OSError, ValueError) as exc:
                # Names with embedded NUL bytes raise ValueError.
                logger.error("Failed to save %s: %s", file.filename, exc)
                return UploadResult.failure(
                    f"Failed to save file: {file.filename}", str(exc)
                )

            relative_path = self.paths.relative_path(sub_dir, filename, now)
            file_paths.append(relative_path)
            file_urls.append(self.paths.public_url(relative_path))

        logger.info("Uploaded %d file(s)", len(file_paths))
        return UploadResult(
            success=True,
            message=f"Successfully uploaded {len(file_paths)} file(s)",
            file_paths=file_paths,
            file_urls=file_urls,
        )
