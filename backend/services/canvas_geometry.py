"""
Canvas geometry resolver.

Maps print-size labels to the logical canvas they are composited on, and to
the pixel dimensions of the final print file. All lookups are pure.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from domain.errors import UnknownBleedCodeError, UnknownSizeError
from domain.models import (
    AspectClass,
    BackgroundSelector,
    CANVAS_SIZES,
    CanvasSpec,
    ExportSpec,
    PlacementConfig,
    TextStyle,
)
from services.placement import round_half_away

logger = logging.getLogger(__name__)

PRINT_DPI = 300
FALLBACK_SIZE_LABEL = "18x24"


@dataclass(frozen=True)
class PrintSize:
    label: str
    aspect_class: AspectClass
    width_px: int   # at 300 DPI
    height_px: int  # at 300 DPI
    display_name: str


PRINT_SIZES: Dict[str, PrintSize] = {
    "30x40": PrintSize("30x40", AspectClass.PORTRAIT_3X4, 9000, 12000, '30" × 40" (XL)'),
    "24x36": PrintSize("24x36", AspectClass.PORTRAIT_2X3, 7200, 10800, '24" × 36"'),
    "24x32": PrintSize("24x32", AspectClass.PORTRAIT_3X4, 7200, 9600, '24" × 32" (L)'),
    "20x30": PrintSize("20x30", AspectClass.PORTRAIT_2X3, 6000, 9000, '20" × 30"'),
    "18x24": PrintSize("18x24", AspectClass.PORTRAIT_3X4, 5400, 7200, '18" × 24" (M)'),
    "16x24": PrintSize("16x24", AspectClass.PORTRAIT_2X3, 4800, 7200, '16" × 24"'),
    "12x16": PrintSize("12x16", AspectClass.PORTRAIT_3X4, 3600, 4800, '12" × 16" (S)'),
    "9x12": PrintSize("9x12", AspectClass.PORTRAIT_3X4, 2700, 3600, '9" × 12" (XS)'),
}

# Bleed in output pixels
BLEED_SIZES: Dict[str, int] = {
    "none": 0,
    "20px": 20,
    "450px": 450,
}

# Order SKUs end in a suffix that encodes the bleed: 100-35-XXXXX-62
SKU_BLEED_MAP: Dict[str, str] = {
    "62": "450px",
    "63": "none",
    "64": "20px",
    "69": "20px",
}


def supported_size_labels() -> List[str]:
    return list(PRINT_SIZES.keys())


def resolve_print_size(size_label: str) -> PrintSize:
    size = PRINT_SIZES.get((size_label or "").strip())
    if size is None:
        raise UnknownSizeError(size_label)
    return size


def resolve_canvas_spec(size_label: str) -> CanvasSpec:
    """
    Resolve the logical canvas for a print-size label.

    Raises:
        UnknownSizeError: If the label is not in PRINT_SIZES
    """
    size = resolve_print_size(size_label)
    width, height = CANVAS_SIZES[size.aspect_class]
    return CanvasSpec(width=width, height=height, aspect_class=size.aspect_class)


def resolve_canvas_spec_or_default(
    size_label: Optional[str],
    default_label: str = FALLBACK_SIZE_LABEL,
) -> Tuple[str, CanvasSpec]:
    """
    Resolve the canvas, falling back to ``default_label`` for unknown labels.

    Only the interactive composite flow uses this; exports reject unknown
    sizes instead. Returns the label actually used alongside the spec.
    """
    try:
        return size_label, resolve_canvas_spec(size_label)
    except UnknownSizeError:
        logger.warning("[geometry] unknown size %r, falling back to %s", size_label, default_label)
        return default_label, resolve_canvas_spec(default_label)


def resolve_bleed_px(bleed_code: Optional[str]) -> int:
    code = (bleed_code or "none").strip()
    if code not in BLEED_SIZES:
        raise UnknownBleedCodeError(code)
    return BLEED_SIZES[code]


def resolve_export_spec(size_label: str, bleed_code: Optional[str], dpi: int = PRINT_DPI) -> ExportSpec:
    """Target print dimensions plus bleed. Never defaults silently."""
    size = resolve_print_size(size_label)
    return ExportSpec(
        target_width=size.width_px,
        target_height=size.height_px,
        bleed_px=resolve_bleed_px(bleed_code),
        dpi=dpi,
    )


def bleed_code_from_sku(sku: str) -> str:
    """Decode the bleed code from an order SKU's last dash-separated segment."""
    suffix = (sku or "").strip().split("-")[-1]
    return SKU_BLEED_MAP.get(suffix, "none")


def default_placement(canvas: CanvasSpec) -> PlacementConfig:
    """Centred horizontally, a little above centre, full canvas height."""
    return PlacementConfig(
        center_x=canvas.width / 2,
        center_y=canvas.height * 0.44,
        scale_height=canvas.height,
    )


def default_text_styles(canvas: CanvasSpec, title: str = "", date: str = "") -> List[TextStyle]:
    """Title and date near the bottom edge, sized relative to canvas height."""
    return [
        TextStyle(
            text=title,
            font_size=round_half_away(canvas.height * 0.02),
            top=canvas.height * 0.93,
            color="#000000",
            letter_spacing=40,
            bold=True,
        ),
        TextStyle(
            text=date,
            font_size=round_half_away(canvas.height * 0.013),
            top=canvas.height * 0.96,
            color="#000000",
            letter_spacing=20,
        ),
    ]


def size_catalog() -> dict:
    """Lookup tables in a JSON-friendly shape for clients."""
    return {
        "sizes": [
            {
                "label": s.label,
                "display_name": s.display_name,
                "aspect_class": s.aspect_class.value,
                "canvas": list(CANVAS_SIZES[s.aspect_class]),
                "target": [s.width_px, s.height_px],
            }
            for s in PRINT_SIZES.values()
        ],
        "bleed_codes": dict(BLEED_SIZES),
        "backgrounds": [b.value for b in BackgroundSelector],
        "default_size": FALLBACK_SIZE_LABEL,
    }
