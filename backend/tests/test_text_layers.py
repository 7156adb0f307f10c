import threading

import pytest

import services.text_layers as text_layers
from domain.models import TextStyle
from services.text_layers import (
    FontRegistry,
    ensure_fonts_registered,
    measure_spaced_text,
    render_text_layer,
    scale_text_style,
)


def test_registry_is_created_once(reset_fonts, tmp_path):
    registries = []

    def register():
        registries.append(ensure_fonts_registered(tmp_path / "missing.ttf"))

    threads = [threading.Thread(target=register) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len({id(r) for r in registries}) == 1
    # later calls ignore new paths
    assert ensure_fonts_registered(tmp_path / "other.ttf") is registries[0]


def test_missing_font_falls_back_and_synthesises_bold(tmp_path):
    registry = FontRegistry(tmp_path / "missing.ttf")
    assert registry.has_regular is False
    font, synthetic = registry.get(24, bold=True)
    assert synthetic is True
    assert font.getlength("A") > 0
    again, _ = registry.get(24, bold=True)
    assert again is font


def test_spacing_follows_every_glyph(tmp_path):
    font, _ = FontRegistry(tmp_path / "missing.ttf").get(20)
    advances, total = measure_spaced_text("ABC", font, 5)
    assert len(advances) == 3
    assert total == pytest.approx(sum(advances) + 15)


def test_empty_styles_render_nothing(reset_fonts):
    assert render_text_layer(TextStyle(text="", font_size=20), (50, 50)) is None
    assert render_text_layer(TextStyle(text="X", font_size=0), (50, 50)) is None


def test_text_layer_is_canvas_sized_and_transparent_elsewhere(reset_fonts):
    layer = render_text_layer(TextStyle(text="ROME", font_size=20, top=40, color="#112233"), (120, 60))
    assert layer.size == (120, 60)
    assert layer.mode == "RGBA"
    bbox = layer.getchannel("A").getbbox()
    assert bbox is not None
    assert bbox[3] <= 42
    assert layer.getpixel((0, 0))[3] == 0


def test_bold_is_heavier_than_regular(reset_fonts):
    regular = render_text_layer(TextStyle(text="ROME", font_size=40, top=60), (200, 80))
    bold = render_text_layer(TextStyle(text="ROME", font_size=40, top=60, bold=True), (200, 80))
    ink = lambda img: sum(1 for a in img.getchannel("A").getdata() if a > 128)  # noqa: E731
    assert ink(bold) > ink(regular)


def test_scale_text_style():
    scaled = scale_text_style(TextStyle(text="A", font_size=144, top=6696, letter_spacing=40, bold=True), 0.5)
    assert (scaled.font_size, scaled.top, scaled.letter_spacing, scaled.bold) == (72, 3348, 20, True)


def test_negative_font_size_rejected():
    with pytest.raises(ValueError):
        TextStyle(text="A", font_size=-1)


def test_reset_clears_registry(reset_fonts):
    ensure_fonts_registered()
    text_layers.reset_font_registry()
    assert text_layers._registry is None


def test_fractional_font_size_rounds_half_away_from_zero(reset_fonts, monkeypatch):
    registry = ensure_fonts_registered()
    requested = []
    real_get = registry.get

    def recording_get(size, bold=False):
        requested.append(size)
        return real_get(size, bold)

    monkeypatch.setattr(registry, "get", recording_get)
    render_text_layer(TextStyle(text="A", font_size=20.5, top=30), (60, 40))
    render_text_layer(TextStyle(text="A", font_size=22.5, top=30), (60, 40))
    assert requested == [21, 23]
