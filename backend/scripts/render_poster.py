"""Render a poster from a line-art file without running the API.

Usage:
    python backend/scripts/render_poster.py --overlay art.png --size 18x24 --title "ROME" --date "2025" [--mask strokes.png] [--preview] [--bleed 20px | --sku 100-35-12345-64] [--out poster.jpg]

Without --preview the poster is exported at print size as JPEG (with bleed when
requested). With --preview a PNG is written at the reduced preview scale.
--mask erases the painted strokes from the line art first; the mask covers the
whole canvas at any resolution.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from domain.errors import PosterError
from domain.models import PlacementConfig
from services.canvas_geometry import bleed_code_from_sku, supported_size_labels
from services.image_io import configure_decoder_limits, register_heif_opener
from services.placement import compute_placement
from services.poster_pipeline import build_layout, run_apply_eraser, run_composite, run_export_final

logger = logging.getLogger("render_poster")


def _placement(args: argparse.Namespace) -> PlacementConfig | None:
    values = (args.center_x, args.center_y, args.scale_height)
    if all(v is None for v in values):
        return None
    if any(v is None for v in values):
        raise SystemExit("--center-x, --center-y and --scale-height must be given together")
    return PlacementConfig(center_x=args.center_x, center_y=args.center_y, scale_height=args.scale_height)


def main(argv: list[str] | None = None) -> int:
    if not logger.handlers:
        logging.basicConfig(level=logging.INFO, format="%(message)s")
    parser = argparse.ArgumentParser(description="Render a line-art poster to a file.")
    parser.add_argument("--overlay", required=True, help="Line-art image (PNG/JPEG/HEIC).")
    parser.add_argument("--size", default="18x24", choices=supported_size_labels())
    parser.add_argument("--title", default="")
    parser.add_argument("--date", default="")
    parser.add_argument("--background", default="beige")
    parser.add_argument("--bleed", default=None, help="Bleed code: none, 20px or 450px.")
    parser.add_argument("--sku", default=None, help="Order SKU; its suffix selects the bleed.")
    parser.add_argument("--center-x", type=float, default=None)
    parser.add_argument("--center-y", type=float, default=None)
    parser.add_argument("--scale-height", type=float, default=None)
    parser.add_argument("--mask", default=None, help="Eraser mask image painted over the canvas.")
    parser.add_argument("--preview", action="store_true", help="Write a preview PNG instead of the print JPEG.")
    parser.add_argument("--out", default=None, help="Output path (defaults next to the overlay).")
    args = parser.parse_args(argv)

    configure_decoder_limits()
    register_heif_opener()
    overlay_path = Path(args.overlay).resolve()
    if not overlay_path.is_file():
        logger.error("Overlay not found: %s", overlay_path)
        return 2

    bleed_code = args.bleed or (bleed_code_from_sku(args.sku) if args.sku else "none")
    try:
        layout = build_layout(
            size_label=args.size,
            placement=_placement(args),
            title=args.title,
            date=args.date,
            background=args.background,
            allow_size_fallback=False,
        )
        overlay_bytes = overlay_path.read_bytes()
        if args.mask:
            rect = compute_placement(layout.placement)
            erased = run_apply_eraser(
                overlay_bytes,
                Path(args.mask).read_bytes(),
                canvas_width=layout.canvas.width,
                canvas_height=layout.canvas.height,
                placement_left=rect.left,
                placement_top=rect.top,
                placement_width=rect.width,
                placement_height=rect.height,
            )
            logger.info("Erased %d line-art pixels", erased.erased_pixels)
            overlay_bytes = erased.png_bytes
        if args.preview:
            output = run_composite(overlay_bytes, layout, preview=True)
            data, suffix = output.png_bytes, ".png"
            dims = (output.width, output.height)
        else:
            output = run_export_final(overlay_bytes, layout, bleed_code, filename_hint=overlay_path.stem)
            data, suffix = output.jpeg_bytes, ".jpg"
            dims = (output.width, output.height)
    except PosterError as exc:
        logger.error("%s: %s", exc.code, exc.message)
        return 1

    out_path = Path(args.out) if args.out else overlay_path.with_name(f"{overlay_path.stem}_{args.size}{suffix}")
    out_path.write_bytes(data)
    logger.info("Wrote %s (%sx%s, bleed=%s)", out_path, dims[0], dims[1], bleed_code)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
