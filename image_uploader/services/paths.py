"""Target directories, saved filenames, relative paths and public URLs."""

from __future__ import annotations

import os
import posixpath
from datetime import datetime
from pathlib import Path

from image_uploader.services.errors import InvalidSubDirError
from image_uploader.services.upload_config import UploadConfig

DATE_DIR_FORMAT = "%Y/%m/%d"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


def sanitize_sub_dir(sub_dir: str | None) -> str:
    """Clean a client-supplied sub directory so it cannot climb above its base.

    The value is cleaned as if it were rooted, so ``..`` components stop at
    the root and absolute paths become relative. Returns ``""`` when nothing
    is left. Raises ``InvalidSubDirError`` for values no filesystem accepts.
    """
    if not sub_dir:
        return ""
    if "\x00" in sub_dir:
        raise InvalidSubDirError("sub directory contains a NUL byte")
    cleaned = posixpath.normpath("/" + sub_dir.replace("\\", "/"))
    return cleaned.lstrip("/")


def split_extension(filename: str) -> tuple[str, str]:
    """Split ``filename`` at its last dot: ``"a.b.png"`` -> ``("a.b", ".png")``."""
    index = filename.rfind(".")
    if index == -1:
        return filename, ""
    return filename[:index], filename[index:]


def base_name(filename: str) -> str:
    """Drop any directory components a client put in an upload filename."""
    return filename.replace("\\", "/").rsplit("/", 1)[-1]


def is_within(base: Path, target: Path) -> bool:
    base = base.resolve()
    target = target.resolve()
    return target == base or str(target).startswith(str(base) + os.sep)


class UploadPaths:
    """Derives where an upload lands and how it is addressed."""

    def __init__(self, config: UploadConfig) -> None:
        self.config = config
        self.storage_root = Path(config.storage_path)

    def _date_dir(self, now: datetime) -> str:
        if self.config.create_date_dir:
            return now.strftime(DATE_DIR_FORMAT)
        return ""

    def target_directory(self, sub_dir: str, now: datetime) -> Path:
        """Return the directory a file uploaded at ``now`` is written to.

        Raises ``InvalidSubDirError`` when the directory, once symlinks are
        resolved, is not inside the storage root.
        """
        target = self.storage_root
        date_dir = self._date_dir(now)
        if date_dir:
            target = target / date_dir
        cleaned = sanitize_sub_dir(sub_dir)
        if cleaned:
            target = target / cleaned
        if not is_within(self.storage_root, target):
            raise InvalidSubDirError(
                f"sub directory {sub_dir!r} resolves outside the storage root"
            )
        return target

    def generate_filename(self, original: str, now: datetime) -> str:
        name, ext = split_extension(base_name(original))
        name = name.replace(" ", "_").replace("-", "_")
        if self.config.enable_timestamp:
            return f"{name}_{now.strftime(TIMESTAMP_FORMAT)}{ext}"
        return f"{name}_{int(now.timestamp())}{ext}"

    def relative_path(self, sub_dir: str, filename: str, now: datetime) -> str:
        parts = [
            part
            for part in (self._date_dir(now), sanitize_sub_dir(sub_dir), filename)
            if part
        ]
        return posixpath.join(*parts)

    def public_url(self, relative_path: str) -> str:
        base_url = self.config.base_url.rstrip("/")
        return f"{base_url}/storage/{relative_path.lstrip('/')}"
