from types import SimpleNamespace

import pytest

from domain.errors import UnknownBleedCodeError, UnknownSizeError
from domain.models import AspectClass, CanvasSpec
from services.canvas_geometry import (
    PRINT_SIZES,
    bleed_code_from_sku,
    default_placement,
    default_text_styles,
    resolve_bleed_px,
    resolve_canvas_spec,
    resolve_canvas_spec_or_default,
    resolve_export_spec,
    size_catalog,
)


def test_18x24_resolves_reference_canvas_and_default_layout():
    canvas = resolve_canvas_spec("18x24")
    assert canvas.size == (5400, 7200)
    assert canvas.aspect_class == AspectClass.PORTRAIT_3X4

    placement = default_placement(canvas)
    assert placement.center_x == 2700
    assert placement.center_y == pytest.approx(3168)
    assert placement.scale_height == 7200

    title, date = default_text_styles(canvas, "ROME", "2025")
    assert title.font_size == 144
    assert title.top == pytest.approx(6696)
    assert title.letter_spacing == 40
    assert title.bold is True
    assert date.font_size == 94
    assert date.top == pytest.approx(6912)
    assert date.letter_spacing == 20


@pytest.mark.parametrize("label", list(PRINT_SIZES))
def test_every_size_maps_to_its_aspect_canvas(label):
    size = PRINT_SIZES[label]
    canvas = resolve_canvas_spec(label)
    expected = (5400, 7200) if size.aspect_class == AspectClass.PORTRAIT_3X4 else (4800, 7200)
    assert canvas.size == expected
    # Targets are the inch dimensions at 300 DPI.
    w_in, h_in = (int(p) for p in label.split("x"))
    assert (size.width_px, size.height_px) == (w_in * 300, h_in * 300)


def test_2x3_canvas():
    assert resolve_canvas_spec("24x36").size == (4800, 7200)


def test_unknown_size_is_rejected():
    with pytest.raises(UnknownSizeError):
        resolve_canvas_spec("11x14")
    with pytest.raises(UnknownSizeError):
        resolve_export_spec("", "none")


def test_unknown_size_falls_back_for_compositing():
    label, canvas = resolve_canvas_spec_or_default("11x14", "18x24")
    assert label == "18x24"
    assert canvas.size == (5400, 7200)


def test_canvas_spec_rejects_mismatched_dimensions():
    with pytest.raises(ValueError):
        CanvasSpec(width=5400, height=7200, aspect_class=AspectClass.PORTRAIT_2X3)


def test_bleed_codes():
    assert resolve_bleed_px(None) == 0
    assert resolve_bleed_px("none") == 0
    assert resolve_bleed_px("20px") == 20
    assert resolve_bleed_px("450px") == 450
    with pytest.raises(UnknownBleedCodeError):
        resolve_bleed_px("10px")


def test_export_spec_for_30x40_with_bleed():
    spec = resolve_export_spec("30x40", "450px")
    assert (spec.target_width, spec.target_height) == (9000, 12000)
    assert spec.final_size == (9900, 12900)
    assert spec.dpi == 300


def test_bleed_code_from_sku_suffix():
    assert bleed_code_from_sku("100-35-12345-62") == "450px"
    assert bleed_code_from_sku("100-35-12345-63") == "none"
    assert bleed_code_from_sku("100-35-12345-64") == "20px"
    assert bleed_code_from_sku("100-35-12345-69") == "20px"
    assert bleed_code_from_sku("100-35-12345-99") == "none"


def test_size_catalog_lists_all_sizes():
    catalog = size_catalog()
    assert [s["label"] for s in catalog["sizes"]] == list(PRINT_SIZES)
    assert catalog["bleed_codes"]["450px"] == 450
    assert "beige" in catalog["backgrounds"]


def test_default_font_size_rounds_half_away_from_zero():
    # only height is read; 125 * 0.02 sits on the .5 tie
    title, _ = default_text_styles(SimpleNamespace(height=125), "A", "B")
    assert title.font_size == 3
