"""
Layer compositor.

Stacking order is fixed:
1. Background (opaque, cover-fitted to the canvas)
2. Overlay, letterboxed into its placement box, clipped to the canvas and
   blended with multiply so only dark strokes show over the background
3. Text layers with normal alpha-over, in declared order (title, then date)

Preview mode runs the same algorithm on a uniformly downscaled canvas.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from PIL import Image, ImageChops, ImageOps

from domain.models import CanvasSpec, PlacementConfig, ResolutionMode, TextStyle
from services.placement import (
    clip_placement,
    compute_placement,
    round_half_away,
    scale_canvas_size,
    scale_placement_config,
)
from services.text_layers import render_text_layer, scale_text_style

logger = logging.getLogger(__name__)


@dataclass
class CompositeResult:
    image: Image.Image
    scale: float
    overlay_visible: bool
    text_layers: int


def letterbox_overlay(overlay: Image.Image, box_size: Tuple[int, int]) -> Image.Image:
    """
    Resize the overlay to fit inside ``box_size`` keeping its aspect ratio.

    The remainder of the box is transparent white, so a raster whose true
    aspect differs from the declared 3:4 ends up centred in the box. Each
    fitted side is at least one pixel, however extreme the aspect.
    """
    box_w, box_h = box_size
    src = overlay if overlay.mode == "RGBA" else overlay.convert("RGBA")
    ratio = min(box_w / src.width, box_h / src.height)
    fitted_size = (
        min(box_w, max(1, round_half_away(src.width * ratio))),
        min(box_h, max(1, round_half_away(src.height * ratio))),
    )
    fitted = src if src.size == fitted_size else src.resize(fitted_size, resample=Image.Resampling.LANCZOS)
    if fitted.size == (box_w, box_h):
        return fitted
    boxed = Image.new("RGBA", (box_w, box_h), (255, 255, 255, 0))
    boxed.paste(fitted, ((box_w - fitted.width) // 2, (box_h - fitted.height) // 2))
    return boxed


def multiply_onto(base: Image.Image, layer: Image.Image, dest: Tuple[int, int]) -> None:
    """
    Multiply-blend an RGBA ``layer`` onto RGB ``base`` in place at ``dest``.

    Overlay alpha weights the blend; fully transparent pixels leave the base
    untouched and white pixels multiply to no change.
    """
    x, y = dest
    region_box = (x, y, x + layer.width, y + layer.height)
    region = base.crop(region_box)
    multiplied = ImageChops.multiply(region, layer.convert("RGB"))
    blended = Image.composite(multiplied, region, layer.getchannel("A"))
    base.paste(blended, (x, y))


def paste_overlay(
    base: Image.Image,
    overlay: Image.Image,
    placement: PlacementConfig,
) -> bool:
    """Place, clip and multiply the overlay. Returns False when nothing is visible."""
    rect = compute_placement(placement)
    clipped = clip_placement(rect, base.size)
    if clipped.is_empty or rect.width <= 0 or rect.height <= 0:
        logger.debug("[composite] overlay outside canvas: rect=%s canvas=%s", rect, base.size)
        return False
    resized = letterbox_overlay(overlay, (rect.width, rect.height))
    visible = resized.crop(clipped.crop_box)
    multiply_onto(base, visible, (clipped.paste_left, clipped.paste_top))
    return True


def render_composite(
    canvas_size: Tuple[int, int],
    background: Image.Image,
    overlay: Optional[Image.Image],
    placement: PlacementConfig,
    text_styles: Sequence[TextStyle] = (),
) -> CompositeResult:
    """
    Composite at an explicit pixel size. All geometry must already be in
    that size's coordinate space.
    """
    if background.size != canvas_size:
        background = ImageOps.fit(background.convert("RGB"), canvas_size, method=Image.Resampling.LANCZOS)
    # convert() always copies, so the caller's background stays untouched
    base = background.convert("RGB")

    overlay_visible = False
    if overlay is not None:
        overlay_visible = paste_overlay(base, overlay, placement)

    text_count = 0
    stacked: Optional[Image.Image] = None
    for style in text_styles:
        layer = render_text_layer(style, canvas_size)
        if layer is None:
            continue
        if stacked is None:
            stacked = base.convert("RGBA")
        stacked.alpha_composite(layer)
        text_count += 1
    if stacked is not None:
        base = stacked.convert("RGB")

    return CompositeResult(image=base, scale=1.0, overlay_visible=overlay_visible, text_layers=text_count)


def compose_poster(
    canvas: CanvasSpec,
    background: Image.Image,
    overlay: Optional[Image.Image],
    placement: PlacementConfig,
    text_styles: Sequence[TextStyle] = (),
    mode: ResolutionMode = ResolutionMode.FULL,
    preview_scale: float = 0.5,
) -> CompositeResult:
    """
    Composite in canvas space (full) or a uniformly downscaled copy (preview).

    ``background`` may be any size; it is cover-fitted to the output size.
    """
    scale = preview_scale if mode == ResolutionMode.PREVIEW else 1.0
    if scale == 1.0:
        size = canvas.size
        styles: List[TextStyle] = list(text_styles)
    else:
        size = scale_canvas_size(canvas, scale)
        placement = scale_placement_config(placement, scale)
        styles = [scale_text_style(s, scale) for s in text_styles]
    result = render_composite(size, background, overlay, placement, styles)
    result.scale = scale
    logger.info(
        "[composite] mode=%s size=%sx%s overlay_visible=%s text_layers=%d",
        mode.value, size[0], size[1], result.overlay_visible, result.text_layers,
    )
    return result
