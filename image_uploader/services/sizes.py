"""Human-readable byte sizes: ``"2mb"`` -> 2097152 and back."""

from __future__ import annotations

import math

from image_uploader.services.errors import InvalidSizeError

_SUFFIX_MULTIPLIERS = (
    ("kb", 1 << 10),
    ("mb", 1 << 20),
    ("gb", 1 << 30),
)
_FORMAT_UNITS = "KMGTPE"


def parse_size(value: str) -> int:
    """Parse a size string such as ``"500kb"`` or ``"1.5 MB"`` into bytes.

    A bare number (or one ending in ``b``) is a byte count. The result is
    truncated toward zero.
    """
    text = str(value).strip().lower()
    multiplier = 1
    for suffix, factor in _SUFFIX_MULTIPLIERS:
        if text.endswith(suffix):
            multiplier = factor
            text = text[: -len(suffix)]
            break
    else:
        if text.endswith("b"):
            text = text[:-1]

    body = text.strip()
    try:
        number = float(body)
    except ValueError as exc:
        raise InvalidSizeError(f"invalid size: {value!r}") from exc
    if "_" in body:
        raise InvalidSizeError(f"invalid size: {value!r}")
    total = number * multiplier
    if not math.isfinite(total):
        raise InvalidSizeError(f"size out of range: {value!r}")
    return int(total)


def format_size(num_bytes: int) -> str:
    """Render a byte count as ``"512 B"`` or ``"1.5 MB"`` (one decimal)."""
    unit = 1024
    if num_bytes < unit:
        return f"{num_bytes} B"
    div, exp = unit, 0
    n = num_bytes // unit
    while n >= unit and exp < len(_FORMAT_UNITS) - 1:
        div *= unit
        exp += 1
        n //= unit
    return f"{num_bytes / div:.1f} {_FORMAT_UNITS[exp]}B"
