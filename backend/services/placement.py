"""
Placement / coordinate mapper.

Turns a centre + height placement into a canvas rectangle, clips it against
the canvas, and corrects it for the overlay's true aspect ratio when erase
strokes need to be mapped back to native pixels.

Every rounding step uses round-half-away-from-zero so results do not depend
on Python's banker's rounding.
"""
import math
from typing import Optional, Tuple

from domain.errors import InvalidOverlayError
from domain.models import (
    DECLARED_OVERLAY_ASPECT,
    CanvasSpec,
    ClippedRect,
    ErasePlacement,
    PlacementConfig,
    PlacementRect,
)


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def compute_placement(
    config: PlacementConfig,
    declared_aspect: float = DECLARED_OVERLAY_ASPECT,
) -> PlacementRect:
    """
    Top-left rectangle of the overlay's declared box in canvas space.

    The box may extend past any canvas edge; see clip_placement.
    """
    width = round_half_away(config.scale_height * declared_aspect)
    height = round_half_away(config.scale_height)
    top = round_half_away(config.center_y - height / 2)
    left = round_half_away(config.center_x - width / 2)
    return PlacementRect(left=left, top=top, width=width, height=height)


def clip_placement(rect: PlacementRect, canvas_size: Tuple[int, int]) -> ClippedRect:
    """
    Part of the resized overlay that is visible on the canvas.

    Crop offsets index into the resized overlay, paste offsets into the
    canvas. A fully off-canvas overlay yields an empty rect, never an error.
    """
    canvas_w, canvas_h = canvas_size
    crop_left = max(0, -rect.left)
    crop_top = max(0, -rect.top)
    paste_left = max(0, rect.left)
    paste_top = max(0, rect.top)
    crop_width = min(rect.width - crop_left, canvas_w - paste_left)
    crop_height = min(rect.height - crop_top, canvas_h - paste_top)
    if crop_width <= 0 or crop_height <= 0:
        return ClippedRect(0, 0, 0, 0, paste_left, paste_top)
    return ClippedRect(
        crop_left=crop_left,
        crop_top=crop_top,
        crop_width=crop_width,
        crop_height=crop_height,
        paste_left=paste_left,
        paste_top=paste_top,
    )


def native_aspect(native_size: Optional[Tuple[int, int]]) -> float:
    if not native_size or len(native_size) != 2:
        raise InvalidOverlayError("Overlay has no dimensions")
    native_w, native_h = native_size
    if not native_w or not native_h or native_w <= 0 or native_h <= 0:
        raise InvalidOverlayError(f"Overlay has degenerate dimensions {native_w}x{native_h}")
    return native_w / native_h


def correct_for_native_aspect(
    left: float,
    top: float,
    width: float,
    height: float,
    native_size: Optional[Tuple[int, int]],
) -> ErasePlacement:
    """
    Re-centre the declared box on the overlay's true width.

    The client sizes the box assuming 3:4; the raster itself may be wider or
    narrower, and its letterboxed content sits centred in that box.
    """
    true_width = height * native_aspect(native_size)
    width_delta = width - true_width
    return ErasePlacement(
        left=left + width_delta / 2,
        top=top,
        width=true_width,
        height=height,
    )


def erase_placement_for(config: PlacementConfig, native_size: Tuple[int, int]) -> ErasePlacement:
    rect = compute_placement(config)
    return correct_for_native_aspect(rect.left, rect.top, rect.width, rect.height, native_size)


def scale_placement_config(config: PlacementConfig, factor: float) -> PlacementConfig:
    """Uniformly scale a placement into another resolution (e.g. preview)."""
    return PlacementConfig(
        center_x=config.center_x * factor,
        center_y=config.center_y * factor,
        scale_height=config.scale_height * factor,
    )


def scale_canvas_size(canvas: CanvasSpec, factor: float) -> Tuple[int, int]:
    return (
        max(1, round_half_away(canvas.width * factor)),
        max(1, round_half_away(canvas.height * factor)),
    )
