"""
Background asset store.

Backgrounds are keyed by a small colour selector. A file under
``<assets>/backgrounds/<selector>.(jpg|png)`` wins; otherwise a known
selector renders as its flat swatch colour.
"""
import logging
from pathlib import Path
from typing import Dict, Optional, Tuple

from PIL import Image, ImageOps

from domain.errors import AssetNotFoundError
from domain.models import BackgroundSelector

logger = logging.getLogger(__name__)

BACKGROUND_SWATCHES: Dict[str, Tuple[int, int, int]] = {
    BackgroundSelector.BEIGE.value: (245, 240, 230),
    BackgroundSelector.BLUE.value: (200, 220, 240),
    BackgroundSelector.PINK.value: (255, 220, 230),
}

_EXTENSIONS = (".jpg", ".jpeg", ".png")


class BackgroundStore:
    """Resolves background selectors to opaque canvas-size rasters."""

    def __init__(self, assets_dir: Path):
        self.backgrounds_dir = Path(assets_dir) / "backgrounds"

    def find_file(self, selector: str) -> Optional[Path]:
        for ext in _EXTENSIONS:
            candidate = self.backgrounds_dir / f"{selector}{ext}"
            if candidate.is_file():
                return candidate
        return None

    def has(self, selector: str) -> bool:
        return selector in BACKGROUND_SWATCHES or self.find_file(selector) is not None

    def render(self, selector: str, size: Tuple[int, int]) -> Image.Image:
        """
        Background at ``size``, cover-fitted and cropped from the centre.

        Raises:
            AssetNotFoundError: If neither a file nor a swatch backs the selector
        """
        selector = (selector or "").strip().lower()
        # Selectors become file names; keep them to plain words.
        if not selector.isalnum():
            raise AssetNotFoundError(selector or "<empty>")
        path = self.find_file(selector)
        if path is not None:
            with Image.open(path) as src:
                return ImageOps.fit(src.convert("RGB"), size, method=Image.Resampling.LANCZOS)
        swatch = BACKGROUND_SWATCHES.get(selector)
        if swatch is None:
            raise AssetNotFoundError(selector)
        logger.debug("[background] no file for %s, using swatch %s", selector, swatch)
        return Image.new("RGB", size, swatch)
