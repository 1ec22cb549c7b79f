"""
Content sniffing for source images.

Follows the image and text steps of the WHATWG MIME sniffing algorithm, which
is what browsers and most servers use, so a file is classified by its bytes and
never by its extension.
"""

from __future__ import annotations

from enum import Enum

SNIFF_LEN = 512

OCTET_STREAM = "application/octet-stream"
TEXT_PLAIN = "text/plain; charset=utf-8"


class SourceFormat(str, Enum):
    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"
    UNSUPPORTED = "unsupported"


# (mask, pattern, content type); a signature matches when
# prefix[i] & mask[i] == pattern[i] for every i.
_SIGNATURES: list[tuple[bytes, bytes, str]] = [
    (b"\xff" * 6, b"GIF87a", "image/gif"),
    (b"\xff" * 6, b"GIF89a", "image/gif"),
    (b"\xff" * 2, b"BM", "image/bmp"),
    (
        b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff\xff\xff",
        b"RIFF\x00\x00\x00\x00WEBPVP",
        "image/webp",
    ),
    (b"\xff" * 8, b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff" * 3, b"\xff\xd8\xff", "image/jpeg"),
    (b"\xff" * 4, b"\x00\x00\x01\x00", "image/x-icon"),
    (b"\xff" * 4, b"\x00\x00\x02\x00", "image/x-icon"),
]

_BINARY_BYTES = frozenset(
    list(range(0x00, 0x09)) + [0x0B] + list(range(0x0E, 0x1B)) + list(range(0x1C, 0x20))
)


def _matches(prefix: bytes, mask: bytes, pattern: bytes) -> bool:
    if len(prefix) < len(pattern):
        return False
    return all(prefix[i] & mask[i] == pattern[i] for i in range(len(pattern)))


def detect_content_type(data: bytes) -> str:
    """Return the sniffed MIME type of ``data`` (only the first 512 bytes count)."""
    prefix = data[:SNIFF_LEN]
    for mask, pattern, content_type in _SIGNATURES:
        if _matches(prefix, mask, pattern):
            return content_type
    if any(byte in _BINARY_BYTES for byte in prefix):
        return OCTET_STREAM
    return TEXT_PLAIN


def classify(content_type: str) -> SourceFormat:
    if "jpeg" in content_type:
        return SourceFormat.JPEG
    if "png" in content_type:
        return SourceFormat.PNG
    if content_type.startswith("image/webp"):
        return SourceFormat.WEBP
    return SourceFormat.UNSUPPORTED
