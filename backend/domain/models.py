"""
Core domain models for the poster compositor.
These are framework-agnostic and can be used across all services.

Coordinate spaces:
- native: pixels of the uploaded line-art raster
- canvas: the fixed logical grid per aspect class (see CANVAS_SIZES)
- preview: canvas space scaled down by the preview factor
- display: whatever size the client painted its eraser mask at
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


class AspectClass(str, Enum):
    """Aspect ratio families of the supported print sizes."""
    PORTRAIT_3X4 = "3:4"
    PORTRAIT_2X3 = "2:3"


class BackgroundSelector(str, Enum):
    """Background templates available in the asset store."""
    BEIGE = "beige"
    BLUE = "blue"
    PINK = "pink"


class ResolutionMode(str, Enum):
    FULL = "full"
    PREVIEW = "preview"


# Logical canvas size per aspect class (300 DPI at the 18x24 reference).
CANVAS_SIZES: Dict[AspectClass, Tuple[int, int]] = {
    AspectClass.PORTRAIT_3X4: (5400, 7200),
    AspectClass.PORTRAIT_2X3: (4800, 7200),
}

# The client only knows the overlay height; width is derived from this ratio.
DECLARED_OVERLAY_ASPECT = 3 / 4


@dataclass(frozen=True)
class CanvasSpec:
    """Logical canvas all layers are composited on before export resizing."""
    width: int
    height: int
    aspect_class: AspectClass

    def __post_init__(self) -> None:
        expected = CANVAS_SIZES.get(self.aspect_class)
        if expected != (self.width, self.height):
            raise ValueError(
                f"Canvas {self.width}x{self.height} does not match aspect class {self.aspect_class.value}"
            )

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)


@dataclass(frozen=True)
class PlacementConfig:
    """
    Where the overlay sits on the canvas.

    center_x/center_y are canvas pixels and may lie outside the canvas.
    scale_height is the rendered overlay height; width follows from the
    declared 3:4 aspect.
    """
    center_x: float
    center_y: float
    scale_height: float

    def __post_init__(self) -> None:
        if not self.scale_height > 0:
            raise ValueError(f"scale_height must be positive, got {self.scale_height}")


@dataclass(frozen=True)
class PlacementRect:
    """Top-left rectangle of the overlay in canvas space."""
    left: int
    top: int
    width: int
    height: int


@dataclass(frozen=True)
class ClippedRect:
    """Visible part of the resized overlay and where to paste it."""
    crop_left: int
    crop_top: int
    crop_width: int
    crop_height: int
    paste_left: int
    paste_top: int

    @property
    def is_empty(self) -> bool:
        return self.crop_width <= 0 or self.crop_height <= 0

    @property
    def crop_box(self) -> Tuple[int, int, int, int]:
        return (
            self.crop_left,
            self.crop_top,
            self.crop_left + self.crop_width,
            self.crop_top + self.crop_height,
        )


@dataclass(frozen=True)
class ErasePlacement:
    """Overlay rectangle corrected for the raster's true aspect ratio."""
    left: float
    top: float
    width: float  # true width: height * native_w / native_h
    height: float


@dataclass
class TextStyle:
    """A single text line drawn centred across the canvas."""
    text: str = ""
    font_size: float = 0
    top: float = 0  # alphabetic baseline, canvas pixels
    color: str = "#000000"
    letter_spacing: float = 0
    bold: bool = False

    def __post_init__(self) -> None:
        if self.font_size < 0:
            raise ValueError("font_size must be non-negative")
        if self.letter_spacing < 0:
            raise ValueError("letter_spacing must be non-negative")

    @property
    def is_empty(self) -> bool:
        return not self.text or self.font_size <= 0


@dataclass(frozen=True)
class ExportSpec:
    """Final print dimensions plus bleed border, all in output pixels."""
    target_width: int
    target_height: int
    bleed_px: int = 0
    dpi: int = 300

    @property
    def final_size(self) -> Tuple[int, int]:
        return (
            self.target_width + 2 * self.bleed_px,
            self.target_height + 2 * self.bleed_px,
        )


@dataclass
class PosterLayout:
    """Everything the compositor needs besides the rasters themselves."""
    canvas: CanvasSpec
    placement: PlacementConfig
    background: str = BackgroundSelector.BEIGE.value
    text_styles: List[TextStyle] = field(default_factory=list)
    size_label: Optional[str] = None
