import base64
import importlib

import pytest
from PIL import Image

import services.image_io as image_io
from domain.errors import InvalidImageError, InvalidOverlayError, MissingInputError
from services.image_io import (
    decode_image_payload,
    open_image,
    open_overlay,
    split_data_url,
    to_data_url,
)

from conftest import png_bytes


def test_split_data_url():
    assert split_data_url("data:image/jpeg;base64,QUJD") == ("image/jpeg", "QUJD")
    assert split_data_url("QUJD") == (None, "QUJD")


def test_decode_accepts_bare_base64_and_data_urls():
    assert decode_image_payload("QUJD") == b"ABC"
    assert decode_image_payload(" data:image/png;base64,QUJD ") == b"ABC"


@pytest.mark.parametrize("payload", [None, "", "  ", "data:image/png;base64,"])
def test_decode_missing_payload(payload):
    with pytest.raises(MissingInputError):
        decode_image_payload(payload, "overlay_image")


def test_decode_rejects_broken_base64():
    with pytest.raises(InvalidImageError):
        decode_image_payload("abc")


def test_open_overlay_is_rgba_at_native_size():
    img = open_overlay(png_bytes(Image.new("L", (7, 9), 128)))
    assert img.mode == "RGBA"
    assert img.size == (7, 9)


def test_open_overlay_rejects_garbage():
    with pytest.raises(InvalidOverlayError):
        open_overlay(b"not an image")


def test_open_image_error_class_defaults_to_invalid_image():
    with pytest.raises(InvalidImageError) as excinfo:
        open_image(b"nope", "mask_image")
    assert excinfo.value.code == "invalid_image"


def test_data_url_roundtrip_header():
    url = to_data_url(b"ABC", "image/jpeg")
    assert url == "data:image/jpeg;base64," + base64.b64encode(b"ABC").decode("ascii")


def test_importing_module_leaves_decoder_limit_alone(monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1234)
    importlib.reload(image_io)
    assert Image.MAX_IMAGE_PIXELS == 1234


def test_configure_decoder_limits(monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1234)
    image_io.configure_decoder_limits()
    assert Image.MAX_IMAGE_PIXELS == image_io.MAX_IMAGE_PIXELS
    # large enough for a 30x40 export with 450px bleed
    assert Image.MAX_IMAGE_PIXELS >= 9900 * 12900
