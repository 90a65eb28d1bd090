"""Content sniffing for uploaded files.

Classifies the first bytes of a file into a media type, independent of the
file name. Signatures follow the WHATWG MIME sniffing tables; SVG has no
magic bytes, so it is detected from its root element.
"""

from __future__ import annotations

SNIFF_LENGTH = 512

_WHITESPACE = b"\t\n\x0c\r "
_TAG_TERMINATORS = b" >"

_HTML_TAGS = (
    b"<!DOCTYPE HTML",
    b"<HTML",
    b"<HEAD",
    b"<SCRIPT",
    b"<IFRAME",
    b"<H1",
    b"<DIV",
    b"<FONT",
    b"<TABLE",
    b"<A",
    b"<STYLE",
    b"<TITLE",
    b"<B",
    b"<BODY",
    b"<BR",
    b"<P",
    b"<!--",
)

_EXACT_SIGNATURES = (
    (b"%PDF-", "application/pdf"),
    (b"%!PS-Adobe-", "application/postscript"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xFF\xD8\xFF", "image/jpeg"),
    (b"BM", "image/bmp"),
    (b"\x00\x00\x01\x00", "image/x-icon"),
    (b"\x00\x00\x02\x00", "image/x-icon"),
    (b"OggS\x00", "application/ogg"),
    (b"ID3", "audio/mpeg"),
    (b"\x1A\x45\xDF\xA3", "video/webm"),
    (b"PK\x03\x04", "application/zip"),
    (b"\x1F\x8B\x08", "application/x-gzip"),
    (b"Rar!\x1A\x07", "application/x-rar-compressed"),
    (b"7z\xBC\xAF\x27\x1C", "application/x-7z-compressed"),
    (b"\x00asm", "application/wasm"),
    (b"wOFF", "font/woff"),
    (b"wOF2", "font/woff2"),
    (b"\x00\x01\x00\x00", "font/ttf"),
    (b"OTTO", "font/otf"),
)

_RIFF_FORMATS = (
    (b"WEBP", "image/webp"),
    (b"WAVE", "audio/wave"),
    (b"AVI ", "video/avi"),
)


def _lstrip_whitespace(data: bytes) -> bytes:
    return data.lstrip(_WHITESPACE)


def _matches_html_tag(data: bytes) -> bool:
    upper = data.upper()
    for tag in _HTML_TAGS:
        if not upper.startswith(tag) or len(data) <= len(tag):
            continue
        if data[len(tag)] in _TAG_TERMINATORS:
            return True
    return False


def _is_svg(data: bytes) -> bool:
    lowered = data.lower()
    return b"<svg" in lowered and b"<html" not in lowered


def _is_mp4(data: bytes) -> bool:
    if len(data) < 12:
        return False
    box_size = int.from_bytes(data[:4], "big")
    if box_size % 4 != 0 or len(data) < box_size or data[4:8] != b"ftyp":
        return False
    for start in range(8, box_size, 4):
        if start == 12:
            continue
        if data[start : start + 3] == b"mp4":
            return True
    return False


def _has_binary_bytes(data: bytes) -> bool:
    for byte in data:
        if byte <= 0x08 or byte == 0x0B or 0x0E <= byte <= 0x1A or 0x1C <= byte <= 0x1F:
            return True
    return False


def sniff_content_type(head: bytes) -> str:
    """Return the media type (without parameters) of ``head``.

    Only the first ``SNIFF_LENGTH`` bytes are considered. Unknown binary
    content is ``application/octet-stream``; unknown text is ``text/plain``.
    """
    data = head[:SNIFF_LENGTH]

    if data.startswith((b"\xFE\xFF", b"\xFF\xFE", b"\xEF\xBB\xBF")):
        return "text/plain"

    text = _lstrip_whitespace(data)
    if text.startswith(b"<"):
        if _is_svg(text):
            return "image/svg+xml"
        if text.startswith(b"<?xml"):
            return "text/xml"
        if _matches_html_tag(text):
            return "text/html"

    for signature, media_type in _EXACT_SIGNATURES:
        if data.startswith(signature):
            return media_type

    if data.startswith(b"RIFF") and len(data) >= 12:
        for fourcc, media_type in _RIFF_FORMATS:
            if data[8:12] == fourcc:
                return media_type

    if _is_mp4(data):
        return "video/mp4"

    if not _has_binary_bytes(data):
        return "text/plain"
    return "application/octet-stream"
