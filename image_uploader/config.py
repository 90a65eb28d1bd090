import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

from dotenv import load_dotenv

from image_uploader.services.errors import InvalidSizeError
from image_uploader.services.sizes import parse_size
from image_uploader.services.upload_config import (
    DEFAULT_ALLOWED_EXTENSIONS,
    DEFAULT_BASE_URL,
    DEFAULT_MAX_FILE_SIZE,
    DEFAULT_STORAGE_PATH,
    UploadConfig,
)
from image_uploader.services.validation import unsniffable_extensions

load_dotenv()

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    # Uploads
    upload_max_size: str = os.getenv("UPLOAD_MAX_SIZE", "10mb")
    upload_allowed_extensions: str = os.getenv(
        "UPLOAD_ALLOWED_EXTENSIONS", ",".join(DEFAULT_ALLOWED_EXTENSIONS)
    )
    upload_storage_path: str = os.getenv("UPLOAD_STORAGE_PATH", DEFAULT_STORAGE_PATH)
    upload_base_url: str = os.getenv("UPLOAD_BASE_URL", DEFAULT_BASE_URL)
    upload_enable_timestamp: bool = _env_bool("UPLOAD_ENABLE_TIMESTAMP")
    upload_create_date_dir: bool = _env_bool("UPLOAD_CREATE_DATE_DIR")

    # Routes
    upload_route_prefix: str = os.getenv("UPLOAD_ROUTE_PREFIX", "/upload")
    static_route: str = os.getenv("STATIC_ROUTE", "/storage")

    # CORS
    cors_origins: str = os.getenv("CORS_ORIGINS", "")  # Comma-separated origins

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    def max_file_size_bytes(self) -> int:
        try:
            return parse_size(self.upload_max_size)
        except InvalidSizeError:
            return DEFAULT_MAX_FILE_SIZE

    def allowed_extensions(self) -> tuple[str, ...]:
        return tuple(
            ext.strip() for ext in self.upload_allowed_extensions.split(",") if ext.strip()
        )

    def upload_config(self) -> UploadConfig:
        return UploadConfig(
            max_file_size=self.max_file_size_bytes(),
            allowed_extensions=self.allowed_extensions(),
            storage_path=self.upload_storage_path,
            base_url=self.upload_base_url,
            enable_timestamp=self.upload_enable_timestamp,
            create_date_dir=self.upload_create_date_dir,
        )


def validate_settings(s: Settings) -> list[str]:
    """Validate upload settings at startup. Returns list of warnings."""
    warnings: list[str] = []

    try:
        if parse_size(s.upload_max_size) <= 0:
            warnings.append(
                f"UPLOAD_MAX_SIZE {s.upload_max_size!r} is not positive; using 10.0 MB"
            )
    except InvalidSizeError:
        warnings.append(
            f"UPLOAD_MAX_SIZE {s.upload_max_size!r} is not a valid size; using 10.0 MB"
        )

    unmatched = unsniffable_extensions(s.allowed_extensions())
    if unmatched:
        warnings.append(
            "UPLOAD_ALLOWED_EXTENSIONS contains extensions no allowed media type "
            f"matches, so those uploads are always rejected: {', '.join(unmatched)}"
        )

    if urlparse(s.upload_base_url).scheme not in {"http", "https"}:
        warnings.append(
            f"UPLOAD_BASE_URL {s.upload_base_url!r} is not an http(s) URL; "
            "public file URLs will not resolve"
        )

    return warnings


settings = Settings()
