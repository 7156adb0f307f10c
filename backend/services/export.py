"""
Export / bleed finalizer.

Stretches a canvas-space composite to the exact print dimensions, adds the
white bleed border, and encodes a JPEG carrying the print DPI.
"""
import logging
import re
import time
from io import BytesIO
from typing import Optional

from PIL import Image

from domain.errors import EncodingError
from domain.models import ExportSpec

logger = logging.getLogger(__name__)

BLEED_COLOR = (255, 255, 255)
DEFAULT_JPEG_QUALITY = 95

_FILENAME_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


def finalize_export(composite: Image.Image, spec: ExportSpec) -> Image.Image:
    """
    Resize (non-aspect-preserving fill) to the target, then pad with bleed.

    With ``bleed_px == 0`` the result is exactly target_width x target_height.
    """
    target = (spec.target_width, spec.target_height)
    rgb = composite.convert("RGB")
    resized = rgb if rgb.size == target else rgb.resize(target, resample=Image.Resampling.LANCZOS)
    if spec.bleed_px <= 0:
        return resized
    final = Image.new("RGB", spec.final_size, BLEED_COLOR)
    final.paste(resized, (spec.bleed_px, spec.bleed_px))
    logger.info(
        "[export] target=%sx%s bleed=%spx final=%sx%s",
        spec.target_width, spec.target_height, spec.bleed_px, final.width, final.height,
    )
    return final


def encode_export(image: Image.Image, spec: ExportSpec, quality: int = DEFAULT_JPEG_QUALITY) -> bytes:
    """
    Encode the final raster as JPEG with DPI metadata.

    Raises:
        EncodingError: If Pillow cannot serialize the image
    """
    buf = BytesIO()
    try:
        image.convert("RGB").save(buf, format="JPEG", quality=quality, dpi=(spec.dpi, spec.dpi))
    except (OSError, ValueError) as exc:
        raise EncodingError(f"Failed to encode export: {exc}") from exc
    return buf.getvalue()


def export_filename(hint: Optional[str], extension: str = "jpg") -> str:
    """Sanitised download name; defaults to lineart_<unix-ms>."""
    stem = (hint or "").strip()
    if stem.lower().endswith(f".{extension}"):
        stem = stem[: -(len(extension) + 1)]
    stem = _FILENAME_UNSAFE.sub("_", stem).strip("._")
    if not stem:
        stem = f"lineart_{int(time.time() * 1000)}"
    return f"{stem}.{extension}"
