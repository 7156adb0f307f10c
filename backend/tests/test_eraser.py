from io import BytesIO

import numpy as np
from PIL import Image, ImageChops, ImageDraw

from domain.models import ErasePlacement
from services.eraser import apply_eraser, map_canvas_to_native, mask_intensity
from services.poster_pipeline import run_apply_eraser

from conftest import png_bytes

CANVAS = (60, 80)
FULL_BOX = ErasePlacement(left=0, top=0, width=60, height=80)


def _mask(size, box=None, red=255):
    mask = Image.new("RGBA", size, (0, 0, 0, 0))
    if box is not None:
        ImageDraw.Draw(mask).rectangle(box, fill=(red, 0, 0, 128))
    return mask


def test_painted_region_is_whitened_in_native_space(line_art):
    result = apply_eraser(line_art, _mask(CANVAS, [20, 0, 39, 19]), FULL_BOX, CANVAS)
    # canvas 20..39 x 0..19 maps to native 10..20 x 0..10 (half-away rounding)
    assert result.erased_pixels == 11 * 11
    assert result.image.getpixel((15, 5)) == (255, 255, 255, 255)
    # strokes outside the painted area survive
    assert result.image.getpixel((15, 30)) == (0, 0, 0, 255)
    assert result.image.size == line_art.size


def test_overlay_input_is_not_modified(line_art):
    before = line_art.copy()
    apply_eraser(line_art, _mask(CANVAS, [20, 0, 39, 19]), FULL_BOX, CANVAS)
    assert ImageChops.difference(before, line_art).getbbox() is None


def test_erasing_twice_gives_same_raster(line_art):
    mask = _mask(CANVAS, [20, 0, 39, 19])
    once = apply_eraser(line_art, mask, FULL_BOX, CANVAS)
    twice = apply_eraser(once.image, mask, FULL_BOX, CANVAS)
    assert np.array_equal(np.asarray(once.image), np.asarray(twice.image))


def test_blank_mask_erases_nothing(line_art):
    result = apply_eraser(line_art, _mask(CANVAS), FULL_BOX, CANVAS)
    assert result.erased_pixels == 0
    assert ImageChops.difference(result.image, line_art).getbbox() is None


def test_faint_strokes_below_threshold_are_ignored(line_art):
    result = apply_eraser(line_art, _mask(CANVAS, [20, 0, 39, 19], red=40), FULL_BOX, CANVAS)
    assert result.erased_pixels == 0


def test_display_resolution_mask_is_resampled_to_canvas(line_art):
    # painted at half size; nearest-neighbour scaling covers canvas 20..39 x 0..19
    result = apply_eraser(line_art, _mask((30, 40), [10, 0, 19, 9]), FULL_BOX, CANVAS)
    assert result.erased_pixels == 11 * 11


def test_mask_intensity_reads_red_channel():
    plane = mask_intensity(_mask((4, 4), [0, 0, 1, 1]), (4, 4))
    assert plane.shape == (4, 4)
    assert plane[0, 0] == 255
    assert plane[3, 3] == 0


def test_map_canvas_to_native_drops_points_outside_raster():
    placement = ErasePlacement(left=10, top=0, width=20, height=40)
    xs, ys = map_canvas_to_native(np.array([9, 10, 29]), np.array([0, 0, 0]), placement, (10, 20))
    assert xs.tolist() == [0]
    assert ys.tolist() == [0]


def test_empty_placement_returns_copy(line_art):
    result = apply_eraser(line_art, _mask(CANVAS, [0, 0, 59, 79]), ErasePlacement(0, 0, 0, 80), CANVAS)
    assert result.erased_pixels == 0


def test_pipeline_returns_original_bytes_for_blank_mask(line_art):
    overlay = png_bytes(line_art)
    output = run_apply_eraser(overlay, png_bytes(_mask(CANVAS)), 60, 80, 0, 0, 60, 80)
    assert output.erased_pixels == 0
    assert output.png_bytes is overlay


def test_pipeline_corrects_square_raster_before_mapping():
    square = Image.new("RGBA", (40, 40), (0, 0, 0, 255))
    # declared 3:4 box is 60x80 at left 10; true width is 80, so it re-centres at left 0
    mask = _mask((80, 80), [0, 0, 0, 0])
    output = run_apply_eraser(png_bytes(square), png_bytes(mask), 80, 80, 10, 0, 60, 80)
    assert output.erased_pixels == 1
    erased = Image.open(BytesIO(output.png_bytes))
    assert erased.getpixel((0, 0)) == (255, 255, 255, 255)
