"""Sample upload payloads and a controllable clock for tests."""
from datetime import datetime

FIXED_NOW = datetime(2024, 3, 15, 10, 20, 30)

# Minimal byte sequences that sniff as each whitelisted image type.
PNG_HEADER = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"
JPEG_HEADER = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00"
GIF_HEADER = b"GIF89a\x01\x00\x01\x00\x80\x00\x00"
WEBP_HEADER = b"RIFF\x24\x00\x00\x00WEBPVP8 "
BMP_HEADER = b"BM\x3a\x00\x00\x00\x00\x00\x00\x00\x36\x00"
SVG_DOCUMENT = b'<svg xmlns="http://www.w3.org/2000/svg" width="1" height="1"></svg>'


def image_bytes(header: bytes, size: int) -> bytes:
    """``header`` padded with zero bytes to exactly ``size`` bytes."""
    return header + b"\x00" * max(0, size - len(header))


def png_bytes(size: int = 5 * 1024) -> bytes:
    return image_bytes(PNG_HEADER, size)


def jpeg_bytes(size: int = 1024) -> bytes:
    return image_bytes(JPEG_HEADER, size)


def gif_bytes(size: int = 256) -> bytes:
    return image_bytes(GIF_HEADER, size)


def webp_bytes(size: int = 1024) -> bytes:
    return image_bytes(WEBP_HEADER, size)


class FakeClock:
    """Callable clock that returns ``now``; tests move ``now`` forward."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now
        self.calls = 0

    def __call__(self) -> datetime:
        self.calls += 1
        return self.now
