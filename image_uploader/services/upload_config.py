from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

DEFAULT_MAX_FILE_SIZE = 10 << 20  # 10MB
DEFAULT_ALLOWED_EXTENSIONS = ("jpg", "jpeg", "png", "webp", "gif", "bmp", "svg")
DEFAULT_STORAGE_PATH = "storage/app/public/uploads/images"
DEFAULT_BASE_URL = "http://localhost:5220"


def normalize_extensions(extensions: Iterable[str] | None) -> tuple[str, ...]:
    """Lowercase, strip leading dots and drop blanks/duplicates, keeping order."""
    seen: dict[str, None] = {}
    for ext in extensions or ():
        token = str(ext).strip().lstrip(".").lower()
        if token:
            seen.setdefault(token, None)
    return tuple(seen)


@dataclass(frozen=True)
class UploadConfig:
    """Upload policy. Unset (zero/empty) values fall back to the defaults."""

    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    allowed_extensions: tuple[str, ...] = field(
        default=DEFAULT_ALLOWED_EXTENSIONS
    )
    storage_path: str = DEFAULT_STORAGE_PATH
    base_url: str = DEFAULT_BASE_URL
    enable_timestamp: bool = False
    create_date_dir: bool = False

    def __post_init__(self) -> None:
        if not self.max_file_size or self.max_file_size <= 0:
            object.__setattr__(self, "max_file_size", DEFAULT_MAX_FILE_SIZE)
        extensions = normalize_extensions(self.allowed_extensions)
        object.__setattr__(
            self, "allowed_extensions", extensions or DEFAULT_ALLOWED_EXTENSIONS
        )
        if not self.storage_path:
            object.__setattr__(self, "storage_path", DEFAULT_STORAGE_PATH)
        object.__setattr__(self, "storage_path", str(self.storage_path))
        if not self.base_url:
            object.__setattr__(self, "base_url", DEFAULT_BASE_URL)
