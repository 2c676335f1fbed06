"""Turn the host's base64 text into a decoded image ready to be stored."""

from __future__ import annotations

import base64
import binascii
import logging
import re
import threading
import time
from dataclasses import dataclass, field
from io import BytesIO
from typing import Optional

from PIL import Image, UnidentifiedImageError

from .errors import DecodeError, InvalidInput

logger = logging.getLogger(__name__)

DEFAULT_NAME_PREFIX = "photo-frame-"
DEFAULT_NAME_SUFFIX = ".png"

# Modes Pillow can write to PNG without conversion.
PNG_MODES = {"1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"}

_UNSAFE_NAME_RX = re.compile(r"[\x00-\x1f\x7f/\\]")
_WHITESPACE_RX = re.compile(r"\s+")

_stamp_lock = threading.Lock()
_last_stamp = 0


@dataclass
class ImagePayload:
    data: bytes
    file_name: str
    image: Optional[Image.Image] = field(default=None, repr=False)

    @property
    def size(self) -> tuple[int, int]:
        if self.image is None:
            return (0, 0)
        return self.image.size


def _next_stamp() -> int:
    global _last_stamp
    with _stamp_lock:
        stamp = time.time_ns() // 1_000_000
        if stamp <= _last_stamp:
            stamp = _last_stamp + 1
        _last_stamp = stamp
        return stamp


def default_file_name() -> str:
    """Return ``photo-frame-<unix millis>.png``, unique within this process."""

    return f"{DEFAULT_NAME_PREFIX}{_next_stamp()}{DEFAULT_NAME_SUFFIX}"


def clean_file_name(name: str | None) -> str:
    """Reduce *name* to a single path component, defaulting when absent."""

    if name is None or not name.strip():
        return default_file_name()
    cleaned = _UNSAFE_NAME_RX.sub("_", name).strip()
    if cleaned in {"", ".", ".."}:
        raise InvalidInput(f"Invalid file name: {name!r}")
    return cleaned


def strip_data_url(value: str) -> str:
    """Drop everything up to and including the first comma."""

    if "," in value:
        return value.split(",", 1)[1]
    return value


def decode_base64(value: str) -> bytes:
    """Strictly decode base64 text; line breaks and missing padding are tolerated."""

    compact = _WHITESPACE_RX.sub("", value)
    missing = -len(compact) % 4
    if missing:
        compact += "=" * missing
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"Invalid base64 data: {exc}") from exc


def decode_image(data: bytes) -> Image.Image:
    """Decode raw bytes into a fully loaded Pillow image that PNG can store."""

    if not data:
        raise DecodeError("Failed to decode image")
    try:
        with Image.open(BytesIO(data)) as image:
            image.load()
            decoded = image.copy()
            source_format = image.format
    except (
        UnidentifiedImageError,
        OSError,
        EOFError,
        SyntaxError,
        ValueError,
        Image.DecompressionBombError,
    ) as exc:
        logger.warning("[gallery-save] Image bytes could not be decoded: %s", exc)
        raise DecodeError("Failed to decode image") from exc

    width, height = decoded.size
    if width <= 0 or height <= 0:
        raise DecodeError("Failed to decode image")

    if decoded.mode not in PNG_MODES:
        has_alpha = "A" in decoded.mode or "transparency" in decoded.info
        decoded = decoded.convert("RGBA" if has_alpha else "RGB")

    logger.debug(
        "[gallery-save] Image decoded",
        extra={"format": source_format, "width": width, "height": height, "mode": decoded.mode},
    )
    return decoded


def build_payload(data: str | None, file_name: str | None = None) -> ImagePayload:
    """Validate and decode a host request into an :class:`ImagePayload`."""

    if data is None or not data.strip():
        raise InvalidInput("Base64 data is required")

    encoded = strip_data_url(data.strip())
    if not encoded.strip():
        raise InvalidInput("Base64 data is required")

    raw = decode_base64(encoded)
    return payload_from_bytes(raw, file_name)


def payload_from_bytes(raw: bytes, file_name: str | None = None) -> ImagePayload:
    name = clean_file_name(file_name)
    image = decode_image(raw)
    return ImagePayload(data=raw, file_name=name, image=image)


__all__ = [
    "ImagePayload",
    "build_payload",
    "payload_from_bytes",
    "clean_file_name",
    "decode_base64",
    "decode_image",
    "default_file_name",
    "strip_data_url",
]
