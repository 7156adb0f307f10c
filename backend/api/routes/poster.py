"""
Poster API routes.

Handles compositing, erasing and print export. Images travel as base64
strings or data URLs.
"""
import logging
from typing import Optional

from fastapi import APIRouter
from fastapi.responses import Response
from PIL import ImageColor
from pydantic import BaseModel, Field, field_validator

from domain.models import PlacementConfig
from services.canvas_geometry import size_catalog
from services.image_io import decode_image_payload, to_data_url
from services.poster_pipeline import (
    build_layout,
    run_apply_eraser,
    run_composite,
    run_export_final,
    run_export_image,
)
from settings import settings

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_CANVAS_SIDE = settings.ERASER_MAX_CANVAS_SIDE


class PlacementModel(BaseModel):
    center_x: float
    center_y: float
    scale_height: float = Field(gt=0)


class TextStyleOverride(BaseModel):
    font_size: Optional[float] = Field(default=None, ge=0)
    top: Optional[float] = None
    color: Optional[str] = None
    letter_spacing: Optional[float] = Field(default=None, ge=0)
    bold: Optional[bool] = None

    @field_validator("color")
    @classmethod
    def _check_color(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            ImageColor.getrgb(value)  # raises ValueError for unknown colours
        return value


class TextStyleModel(BaseModel):
    title: Optional[TextStyleOverride] = None
    date: Optional[TextStyleOverride] = None


class CompositeRequest(BaseModel):
    overlay_image: Optional[str] = None
    placement: Optional[PlacementModel] = None
    title_text: str = ""
    date_text: str = ""
    text_style: Optional[TextStyleModel] = None
    background: str = "beige"
    size_label: str = "18x24"
    preview: bool = False


class CompositeResponse(BaseModel):
    success: bool = True
    image_data: str
    width: int
    height: int
    size_label: str
    overlay_visible: bool


class ExportFinalRequest(CompositeRequest):
    bleed_code: str = "none"
    filename_hint: Optional[str] = None


class ApplyEraserRequest(BaseModel):
    overlay_image: Optional[str] = None
    mask_image: Optional[str] = None
    canvas_width: int = Field(gt=0, le=MAX_CANVAS_SIDE)
    canvas_height: int = Field(gt=0, le=MAX_CANVAS_SIDE)
    placement_top: float
    placement_left: float
    placement_width: float = Field(gt=0)
    placement_height: float = Field(gt=0)
    # Size the client displayed the preview at; informational only.
    display_width: Optional[float] = None
    display_height: Optional[float] = None


class ApplyEraserResponse(BaseModel):
    success: bool = True
    overlay_image: str
    erased_pixels: int
    width: int
    height: int


class ExportImageRequest(BaseModel):
    image_data: Optional[str] = None
    size_label: str = "18x24"
    bleed_code: str = "none"
    filename_hint: Optional[str] = None
    stream: bool = False


class ExportImageResponse(BaseModel):
    success: bool = True
    image_data: str
    width: int
    height: int


def _layout_from_request(req: CompositeRequest, allow_size_fallback: bool):
    style = req.text_style or TextStyleModel()
    return build_layout(
        size_label=req.size_label,
        placement=PlacementConfig(**req.placement.model_dump()) if req.placement else None,
        title=req.title_text,
        date=req.date_text,
        background=req.background,
        title_overrides=style.title.model_dump(exclude_none=True) if style.title else None,
        date_overrides=style.date.model_dump(exclude_none=True) if style.date else None,
        allow_size_fallback=allow_size_fallback,
    )


def _attachment(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type="image/jpeg",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/sizes")
def list_sizes():
    """Supported print sizes, bleed codes and backgrounds."""
    return size_catalog()


@router.post("/composite", response_model=CompositeResponse)
def composite(req: CompositeRequest):
    """
    Composite background, line art and text.

    Preview requests render at the reduced preview scale for interactive
    editing; unknown sizes fall back to the default canvas.
    """
    overlay_bytes = decode_image_payload(req.overlay_image, "overlay_image")
    layout = _layout_from_request(req, allow_size_fallback=True)
    output = run_composite(overlay_bytes, layout, preview=req.preview)
    return CompositeResponse(
        image_data=to_data_url(output.png_bytes),
        width=output.width,
        height=output.height,
        size_label=output.size_label,
        overlay_visible=output.overlay_visible,
    )


@router.post("/apply-eraser", response_model=ApplyEraserResponse)
def apply_eraser(req: ApplyEraserRequest):
    """Whiten the painted strokes in the native line-art raster."""
    overlay_bytes = decode_image_payload(req.overlay_image, "overlay_image")
    mask_bytes = decode_image_payload(req.mask_image, "mask_image")
    output = run_apply_eraser(
        overlay_bytes,
        mask_bytes,
        canvas_width=req.canvas_width,
        canvas_height=req.canvas_height,
        placement_left=req.placement_left,
        placement_top=req.placement_top,
        placement_width=req.placement_width,
        placement_height=req.placement_height,
    )
    if output.erased_pixels == 0:
        # Nothing changed; hand the caller's payload back verbatim.
        image_data = req.overlay_image
    else:
        image_data = to_data_url(output.png_bytes)
    return ApplyEraserResponse(
        overlay_image=image_data,
        erased_pixels=output.erased_pixels,
        width=output.native_width,
        height=output.native_height,
    )


@router.post("/export-final")
def export_final(req: ExportFinalRequest):
    """Render at full resolution and download the print-size JPEG."""
    overlay_bytes = decode_image_payload(req.overlay_image, "overlay_image")
    layout = _layout_from_request(req, allow_size_fallback=False)
    output = run_export_final(overlay_bytes, layout, req.bleed_code, req.filename_hint)
    logger.info("[export-final] %s %sx%s", output.filename, output.width, output.height)
    return _attachment(output.jpeg_bytes, output.filename)


@router.post("/export")
def export_image(req: ExportImageRequest):
    """Resize an already-composited poster to print size with bleed."""
    image_bytes = decode_image_payload(req.image_data, "image_data")
    output = run_export_image(image_bytes, req.size_label, req.bleed_code, req.filename_hint)
    if req.stream:
        return _attachment(output.jpeg_bytes, output.filename)
    return ExportImageResponse(
        image_data=to_data_url(output.jpeg_bytes, "image/jpeg"),
        width=output.width,
        height=output.height,
    )
