"""
Poster pipeline service.

Wires the geometry resolver, coordinate mapper, compositor, eraser and
export finalizer into the three request flows:

1. Composite: preview or full-resolution poster as PNG
2. Apply eraser: whiten painted strokes in the native line-art raster
3. Export: print-size JPEG with optional bleed

Each call decodes its own copies of the input rasters; nothing is shared
between calls.
"""
import contextlib
import dataclasses
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from PIL import Image

from domain.models import (
    CanvasSpec,
    ExportSpec,
    PlacementConfig,
    PosterLayout,
    ResolutionMode,
    TextStyle,
)
from services.backgrounds import BackgroundStore
from services.canvas_geometry import (
    default_placement,
    default_text_styles,
    resolve_canvas_spec,
    resolve_canvas_spec_or_default,
    resolve_export_spec,
)
from services.compositor import CompositeResult, compose_poster
from services.eraser import apply_eraser
from services.export import encode_export, export_filename, finalize_export
from services.image_io import encode_png, open_image, open_overlay
from services.placement import correct_for_native_aspect, scale_canvas_size
from settings import settings

logger = logging.getLogger(__name__)

background_store = BackgroundStore(settings.ASSETS_DIR)

_TEXT_STYLE_FIELDS = {"font_size", "top", "color", "letter_spacing", "bold"}


@dataclass
class CompositeOutput:
    png_bytes: bytes
    width: int
    height: int
    size_label: str
    overlay_visible: bool


@dataclass
class EraserOutput:
    png_bytes: bytes
    erased_pixels: int
    native_width: int
    native_height: int


@dataclass
class ExportOutput:
    jpeg_bytes: bytes
    filename: str
    width: int
    height: int


@contextlib.contextmanager
def _stage(name: str) -> Iterator[None]:
    start = time.perf_counter()
    try:
        yield
    finally:
        if settings.DEBUG_TIMINGS:
            logger.info("[timing] %s took %.1f ms", name, (time.perf_counter() - start) * 1000)


def resolve_text_styles(
    canvas: CanvasSpec,
    title: str = "",
    date: str = "",
    title_overrides: Optional[Dict[str, Any]] = None,
    date_overrides: Optional[Dict[str, Any]] = None,
) -> List[TextStyle]:
    """Default title/date styles for the canvas with per-field overrides applied."""
    title_style, date_style = default_text_styles(canvas, title or "", date or "")
    merged = []
    for style, overrides in ((title_style, title_overrides), (date_style, date_overrides)):
        changes = {k: v for k, v in (overrides or {}).items() if k in _TEXT_STYLE_FIELDS and v is not None}
        merged.append(dataclasses.replace(style, **changes) if changes else style)
    return merged


def build_layout(
    size_label: Optional[str],
    placement: Optional[PlacementConfig] = None,
    title: str = "",
    date: str = "",
    background: str = "beige",
    title_overrides: Optional[Dict[str, Any]] = None,
    date_overrides: Optional[Dict[str, Any]] = None,
    allow_size_fallback: bool = True,
) -> PosterLayout:
    """
    Resolve the canvas and fill in defaults for everything the caller left out.

    Unknown sizes fall back to the configured default only when
    ``allow_size_fallback`` is set (interactive compositing); exports reject.
    """
    if allow_size_fallback:
        label, canvas = resolve_canvas_spec_or_default(size_label, settings.DEFAULT_SIZE_LABEL)
    else:
        label, canvas = size_label, resolve_canvas_spec(size_label)
    return PosterLayout(
        canvas=canvas,
        placement=placement or default_placement(canvas),
        background=background,
        text_styles=resolve_text_styles(canvas, title, date, title_overrides, date_overrides),
        size_label=label,
    )


def render_layout(
    overlay: Image.Image,
    layout: PosterLayout,
    mode: ResolutionMode,
    store: Optional[BackgroundStore] = None,
) -> CompositeResult:
    store = store or background_store
    with _stage(f"background:{mode.value}"):
        size = layout.canvas.size
        if mode == ResolutionMode.PREVIEW:
            size = scale_canvas_size(layout.canvas, settings.PREVIEW_SCALE)
        background = store.render(layout.background, size)
    with _stage(f"composite:{mode.value}"):
        return compose_poster(
            canvas=layout.canvas,
            background=background,
            overlay=overlay,
            placement=layout.placement,
            text_styles=layout.text_styles,
            mode=mode,
            preview_scale=settings.PREVIEW_SCALE,
        )


def run_composite(
    overlay_bytes: bytes,
    layout: PosterLayout,
    preview: bool = False,
    store: Optional[BackgroundStore] = None,
) -> CompositeOutput:
    """Composite the poster and encode it as PNG."""
    overlay = open_overlay(overlay_bytes)
    mode = ResolutionMode.PREVIEW if preview else ResolutionMode.FULL
    result = render_layout(overlay, layout, mode, store)
    with _stage("encode:png"):
        png = encode_png(result.image)
    return CompositeOutput(
        png_bytes=png,
        width=result.image.width,
        height=result.image.height,
        size_label=layout.size_label or "",
        overlay_visible=result.overlay_visible,
    )


def run_apply_eraser(
    overlay_bytes: bytes,
    mask_bytes: bytes,
    canvas_width: int,
    canvas_height: int,
    placement_left: float,
    placement_top: float,
    placement_width: float,
    placement_height: float,
    threshold: Optional[int] = None,
) -> EraserOutput:
    """
    Erase painted strokes from the native line art.

    The placement rectangle is the declared (3:4) box the client computed;
    it is re-centred on the raster's true aspect before mapping. When no
    pixel is erased the original bytes are returned untouched.
    """
    overlay = open_overlay(overlay_bytes)
    mask = open_image(mask_bytes, "mask_image")
    erase_placement = correct_for_native_aspect(
        placement_left, placement_top, placement_width, placement_height, overlay.size,
    )
    logger.info(
        "[eraser] declared=(%s,%s %sx%s) corrected_left=%.2f true_width=%.2f",
        placement_left, placement_top, placement_width, placement_height,
        erase_placement.left, erase_placement.width,
    )
    with _stage("eraser"):
        result = apply_eraser(
            overlay,
            mask,
            erase_placement,
            (canvas_width, canvas_height),
            threshold=settings.ERASER_THRESHOLD if threshold is None else threshold,
        )
    if result.erased_pixels == 0:
        png = overlay_bytes
    else:
        png = encode_png(result.image)
    return EraserOutput(
        png_bytes=png,
        erased_pixels=result.erased_pixels,
        native_width=overlay.width,
        native_height=overlay.height,
    )


def run_export_final(
    overlay_bytes: bytes,
    layout: PosterLayout,
    bleed_code: Optional[str],
    filename_hint: Optional[str] = None,
    store: Optional[BackgroundStore] = None,
) -> ExportOutput:
    """Full-resolution composite, resized to print size with bleed, as JPEG."""
    export_spec = resolve_export_spec(layout.size_label, bleed_code, dpi=settings.EXPORT_DPI)
    overlay = open_overlay(overlay_bytes)
    result = render_layout(overlay, layout, ResolutionMode.FULL, store)
    return _finish_export(result.image, export_spec, filename_hint)


def run_export_image(
    image_bytes: bytes,
    size_label: str,
    bleed_code: Optional[str],
    filename_hint: Optional[str] = None,
) -> ExportOutput:
    """Resize an already-composited poster to print size with bleed."""
    export_spec = resolve_export_spec(size_label, bleed_code, dpi=settings.EXPORT_DPI)
    composite = open_image(image_bytes, "image_data")
    return _finish_export(composite, export_spec, filename_hint)


def _finish_export(composite: Image.Image, export_spec: ExportSpec, filename_hint: Optional[str]) -> ExportOutput:
    with _stage("export:resize"):
        final = finalize_export(composite, export_spec)
    with _stage("export:encode"):
        jpeg = encode_export(final, export_spec, quality=settings.EXPORT_JPEG_QUALITY)
    return ExportOutput(
        jpeg_bytes=jpeg,
        filename=export_filename(filename_hint),
        width=final.width,
        height=final.height,
    )
