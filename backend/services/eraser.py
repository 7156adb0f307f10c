"""
Eraser pixel engine.

The operator paints on a scaled-down preview; the mask arrives at display
resolution, is resampled to canvas space, and every marked canvas pixel that
falls on the overlay is mapped back to a native line-art pixel and whitened.

The scan covers the whole canvas regardless of how much was painted, so its
cost is bounded by canvas resolution, not stroke count.
"""
import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np
from PIL import Image

from domain.models import ErasePlacement

logger = logging.getLogger(__name__)

DEFAULT_MASK_THRESHOLD = 50
ERASE_VALUE = (255, 255, 255, 255)


@dataclass
class EraseResult:
    image: Image.Image
    erased_pixels: int


def mask_intensity(mask: Image.Image, canvas_size: Tuple[int, int]) -> np.ndarray:
    """
    Resample the mask to canvas size and return its intensity plane.

    Intensity is the red channel of the RGBA mask: the client paints
    translucent red on a transparent canvas, which exports as red=255 under
    the strokes and 0 elsewhere. Greyscale masks map straight through.
    """
    rgba = mask.convert("RGBA")
    if rgba.size != canvas_size:
        rgba = rgba.resize(canvas_size, resample=Image.Resampling.NEAREST)
    return np.asarray(rgba.getchannel("R"), dtype=np.uint8)


def _round_half_away(values: np.ndarray) -> np.ndarray:
    return (np.sign(values) * np.floor(np.abs(values) + 0.5)).astype(np.int64)


def map_canvas_to_native(
    xs: np.ndarray,
    ys: np.ndarray,
    placement: ErasePlacement,
    native_size: Tuple[int, int],
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Map canvas pixel coordinates into native overlay coordinates.

    Returns only the points that land inside both the corrected placement
    rectangle and the native raster bounds.
    """
    native_w, native_h = native_size
    rel_x = xs.astype(np.float64) - placement.left
    rel_y = ys.astype(np.float64) - placement.top
    inside = (
        (rel_x >= 0) & (rel_x < placement.width)
        & (rel_y >= 0) & (rel_y < placement.height)
    )
    rel_x = rel_x[inside]
    rel_y = rel_y[inside]
    orig_x = _round_half_away(rel_x * (native_w / placement.width))
    orig_y = _round_half_away(rel_y * (native_h / placement.height))
    in_bounds = (orig_x >= 0) & (orig_x < native_w) & (orig_y >= 0) & (orig_y < native_h)
    return orig_x[in_bounds], orig_y[in_bounds]


def apply_eraser(
    overlay: Image.Image,
    mask: Image.Image,
    placement: ErasePlacement,
    canvas_size: Tuple[int, int],
    threshold: int = DEFAULT_MASK_THRESHOLD,
) -> EraseResult:
    """
    Whiten every native overlay pixel under a marked canvas pixel.

    Args:
        overlay: Line-art raster at native resolution (not modified)
        mask: Paint mask at any resolution; resampled to ``canvas_size``
        placement: Aspect-corrected overlay rectangle in canvas space
        canvas_size: (width, height) of the canvas the placement refers to
        threshold: Minimum mask intensity that counts as painted

    Returns:
        EraseResult with a new RGBA image and the number of source pixels
        set (a pixel hit by several canvas pixels counts once).
    """
    pixels = np.array(overlay.convert("RGBA"), dtype=np.uint8)
    native_h, native_w = pixels.shape[:2]
    if placement.width <= 0 or placement.height <= 0:
        logger.info("[eraser] empty placement %s, nothing to erase", placement)
        return EraseResult(image=Image.fromarray(pixels), erased_pixels=0)

    intensity = mask_intensity(mask, canvas_size)
    ys, xs = np.nonzero(intensity >= threshold)
    orig_x, orig_y = map_canvas_to_native(xs, ys, placement, (native_w, native_h))

    erased = 0
    if orig_x.size:
        flat = np.unique(orig_y * native_w + orig_x)
        erased = int(flat.size)
        pixels.reshape(-1, 4)[flat] = ERASE_VALUE

    logger.info(
        "[eraser] native=%sx%s canvas=%sx%s painted=%d erased=%d",
        native_w, native_h, canvas_size[0], canvas_size[1], int(xs.size), erased,
    )
    return EraseResult(image=Image.fromarray(pixels), erased_pixels=erased)
