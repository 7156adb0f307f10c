"""
Image payload helpers.

Requests carry rasters as base64 strings, optionally wrapped in a data URL
(``data:image/png;base64,...``). These helpers turn them into Pillow images
and back.
"""
import base64
import binascii
import re
from io import BytesIO
from typing import Optional, Tuple, Type

from PIL import Image, ImageOps, UnidentifiedImageError

from domain.errors import EncodingError, InvalidImageError, InvalidOverlayError, MissingInputError

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w/+.-]+)?(;[\w=-]+)*;base64,", re.IGNORECASE)

# Covers a 30x40 export with 450px bleed (9900x12900) and large uploads.
MAX_IMAGE_PIXELS = 200_000_000


def configure_decoder_limits(max_pixels: int = MAX_IMAGE_PIXELS) -> None:
    """Raise Pillow's decompression-bomb limit. Call once at process start."""
    Image.MAX_IMAGE_PIXELS = max_pixels


def split_data_url(payload: str) -> Tuple[Optional[str], str]:
    """Return (mime_type, base64_body). mime_type is None for bare base64."""
    match = _DATA_URL_RE.match(payload)
    if not match:
        return None, payload
    return match.group("mime"), payload[match.end():]


def decode_image_payload(payload: Optional[str], field_name: str = "image") -> bytes:
    """
    Decode a base64 or data-URL string to raw bytes.

    Raises:
        MissingInputError: If the payload is absent or empty
        InvalidImageError: If the body is not valid base64
    """
    if payload is None or not payload.strip():
        raise MissingInputError(f"No {field_name} provided")
    _, body = split_data_url(payload.strip())
    try:
        raw = base64.b64decode(body, validate=False)
    except (binascii.Error, ValueError) as exc:
        raise InvalidImageError(f"{field_name} is not valid base64: {exc}") from exc
    if not raw:
        raise MissingInputError(f"No {field_name} provided")
    return raw


def open_image(
    data: bytes,
    field_name: str = "image",
    error_cls: Type[InvalidImageError] = InvalidImageError,
) -> Image.Image:
    """Open image bytes fully into memory, honouring EXIF orientation."""
    if not data:
        raise MissingInputError(f"No {field_name} provided")
    try:
        img = Image.open(BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as exc:
        raise error_cls(f"Could not decode {field_name}: {exc}") from exc
    if img.width <= 0 or img.height <= 0:
        raise error_cls(f"{field_name} has degenerate dimensions {img.width}x{img.height}")
    return ImageOps.exif_transpose(img)


def open_overlay(data: bytes) -> Image.Image:
    """Open the line-art raster as RGBA at its native size."""
    return open_image(data, "overlay_image", InvalidOverlayError).convert("RGBA")


def encode_png(img: Image.Image) -> bytes:
    buf = BytesIO()
    try:
        img.save(buf, format="PNG")
    except (OSError, ValueError) as exc:
        raise EncodingError(f"Failed to encode PNG: {exc}") from exc
    return buf.getvalue()


def to_data_url(data: bytes, mime_type: str = "image/png") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def register_heif_opener() -> bool:
    """
    Register HEIF/HEIC opener with Pillow if pillow-heif is available.

    Call this at application startup so iPhone photos decode like any other
    upload. Safe to call multiple times.
    """
    try:
        from pillow_heif import register_heif_opener as _register
        _register()
        return True
    except ImportError:
        return False
