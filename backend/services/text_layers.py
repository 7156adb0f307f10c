"""
Text layer rendering.

Fonts are registered once per process (startup hook or first use) and the
loaded faces are cached per size. Each text style renders to its own
transparent raster the size of the canvas.
"""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Dict, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from domain.models import TextStyle
from services.placement import round_half_away
from settings import settings

logger = logging.getLogger(__name__)

FontType = ImageFont.FreeTypeFont | ImageFont.ImageFont


class FontRegistry:
    """Regular/bold faces loaded from disk, with Pillow's default as fallback."""

    def __init__(self, regular_path: Optional[Path], bold_path: Optional[Path] = None):
        self.regular_path = Path(regular_path) if regular_path else None
        self.bold_path = Path(bold_path) if bold_path else None
        self._cache: Dict[Tuple[int, bool], FontType] = {}
        self._lock = threading.Lock()

    @property
    def has_regular(self) -> bool:
        return self.regular_path is not None and self.regular_path.is_file()

    @property
    def has_bold(self) -> bool:
        return self.bold_path is not None and self.bold_path.is_file()

    def get(self, size: int, bold: bool = False) -> Tuple[FontType, bool]:
        """
        Return (font, synthetic_bold).

        synthetic_bold is True when bold was requested but no bold face is
        registered; callers then thicken the glyphs with a stroke.
        """
        size = max(1, int(size))
        use_bold_face = bold and self.has_bold
        key = (size, use_bold_face)
        with self._lock:
            font = self._cache.get(key)
            if font is None:
                font = self._load(size, use_bold_face)
                self._cache[key] = font
        return font, bold and not use_bold_face

    def _load(self, size: int, bold_face: bool) -> FontType:
        path = self.bold_path if bold_face else self.regular_path
        if path is not None and path.is_file():
            return ImageFont.truetype(str(path), size)
        return ImageFont.load_default(size=size)


_registry: Optional[FontRegistry] = None
_registry_lock = threading.Lock()


def ensure_fonts_registered(
    regular_path: Optional[Path] = None,
    bold_path: Optional[Path] = None,
) -> FontRegistry:
    """Create the process-wide registry exactly once; later calls return it."""
    global _registry
    with _registry_lock:
        if _registry is None:
            registry = FontRegistry(
                regular_path or settings.FONT_PATH,
                bold_path or settings.FONT_BOLD_PATH,
            )
            if registry.has_regular:
                logger.info("[fonts] registered %s (bold=%s)", registry.regular_path, registry.bold_path)
            else:
                logger.warning(
                    "[fonts] font file %s not found; using Pillow default font", registry.regular_path
                )
            _registry = registry
        return _registry


def reset_font_registry() -> None:
    """Drop the registry so the next use re-registers. Tests only."""
    global _registry
    with _registry_lock:
        _registry = None


def measure_spaced_text(text: str, font: FontType, letter_spacing: float) -> Tuple[list[float], float]:
    """Per-glyph advances and total width; spacing follows every glyph."""
    advances = [font.getlength(ch) for ch in text]
    total = sum(advances) + letter_spacing * len(text)
    return advances, total


def render_text_layer(style: TextStyle, canvas_size: Tuple[int, int]) -> Optional[Image.Image]:
    """
    Draw one centred text line on a transparent canvas-size layer.

    ``style.top`` is the alphabetic baseline. Returns None for empty styles
    so callers can skip the layer entirely.
    """
    if style.is_empty:
        return None
    registry = ensure_fonts_registered()
    font, synthetic_bold = registry.get(round_half_away(style.font_size), bold=style.bold)
    stroke = max(1, round_half_away(style.font_size * 0.03)) if synthetic_bold else 0

    layer = Image.new("RGBA", canvas_size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(layer)
    advances, total_width = measure_spaced_text(style.text, font, style.letter_spacing)
    x = canvas_size[0] / 2 - total_width / 2
    for ch, advance in zip(style.text, advances):
        draw.text(
            (x, style.top),
            ch,
            font=font,
            fill=style.color,
            anchor="ls",
            stroke_width=stroke,
            stroke_fill=style.color if stroke else None,
        )
        x += advance + style.letter_spacing
    return layer


def scale_text_style(style: TextStyle, factor: float) -> TextStyle:
    return TextStyle(
        text=style.text,
        font_size=style.font_size * factor,
        top=style.top * factor,
        color=style.color,
        letter_spacing=style.letter_spacing * factor,
        bold=style.bold,
    )
