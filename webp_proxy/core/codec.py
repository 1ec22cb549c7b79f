"""Pillow adapter: JPEG/PNG decoding and WebP encoding."""

from __future__ import annotations

from typing import BinaryIO

from PIL import Image

from .errors import DecodeError, EncodeError
from .sniff import SourceFormat

TARGET_EXTENSION = ".webp"
TARGET_MEDIA_TYPE = "image/webp"

_PIL_FORMATS = {
    SourceFormat.JPEG: "JPEG",
    SourceFormat.PNG: "PNG",
}


def decode(fp: BinaryIO, fmt: SourceFormat) -> Image.Image:
    """Decode the whole stream as ``fmt``; corrupt or truncated data raises DecodeError."""
    pil_format = _PIL_FORMATS.get(fmt)
    if pil_format is None:
        raise DecodeError(f"No decoder for {fmt.value}")
    try:
        im = Image.open(fp, formats=[pil_format])
        # Image.open is lazy; force pixel data in while the file is still open
        im.load()
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as exc:
        raise DecodeError() from exc
    return im


def _webp_ready(im: Image.Image) -> Image.Image:
    if im.mode in ("RGB", "RGBA"):
        return im
    has_alpha = "A" in im.getbands() or "transparency" in im.info
    return im.convert("RGBA" if has_alpha else "RGB")


def encode_webp(im: Image.Image, fp: BinaryIO, quality: int) -> None:
    try:
        _webp_ready(im).save(fp, format="WEBP", quality=quality)
    except (OSError, ValueError, KeyError) as exc:
        raise EncodeError() from exc
