import base64
import sys
from io import BytesIO
from pathlib import Path

import pytest

# Ensure the backend package root is on sys.path for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from PIL import Image, ImageDraw  # noqa: E402


def png_bytes(img: Image.Image) -> bytes:
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def png_data_url(img: Image.Image) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes(img)).decode("ascii")


@pytest.fixture
def line_art():
    """30x40 white RGBA raster with a black vertical stroke in columns 10-19."""
    img = Image.new("RGBA", (30, 40), (255, 255, 255, 255))
    ImageDraw.Draw(img).rectangle([10, 0, 19, 39], fill=(0, 0, 0, 255))
    return img


@pytest.fixture
def reset_fonts():
    from services.text_layers import reset_font_registry

    reset_font_registry()
    yield
    reset_font_registry()
