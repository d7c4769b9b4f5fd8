"""
PixelRank — Local Generation Script
Runs the full pipeline on an image file without the web service and
writes the SRC / RPC_A / RPC_B / CTRL / CANVAS PNGs plus the ZIP.

    python scripts/generate_outputs.py photo.jpg --out ./out
    python scripts/generate_outputs.py photo.jpg --remainder blank --tile 48
"""

import argparse
import sys
from pathlib import Path

from pixelrank.api.middleware.error_handler import ImageValidationError
from pixelrank.config import get_settings
from pixelrank.core.pipeline import generate
from pixelrank.models.params import GenerationParams
from pixelrank.modules.preprocessing.normalizer import normalize_image_file
from pixelrank.modules.rendering.archive_builder import write_outputs
from pixelrank.modules.rendering.contact_sheet import render_contact_sheet, sheet_size
from pixelrank.utils.image_utils import base_name
from pixelrank.utils.logger import configure_logging
from pixelrank.utils.storage import output_stem, timestamp


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Generate rank-matched (RPC_A, RPC_B) and control (CTRL) variants.",
    )
    parser.add_argument("input", type=Path, help="JPEG, PNG or WebP image")
    parser.add_argument("--out", type=Path, default=Path("./outputs"),
                        help="Output directory (default: ./outputs)")
    parser.add_argument("--tile", type=int, default=None, help="CTRL tile size")
    parser.add_argument("--blur-a", type=float, default=None, help="RPC_A blur radius")
    parser.add_argument("--blur-b", type=float, default=None, help="RPC_B blur radius")
    parser.add_argument("--levels", type=int, default=None, help="RPC_B band count")
    parser.add_argument("--remainder", choices=("copy", "blank"), default=None,
                        help="Fate of pixels outside the CTRL tile grid")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_logging()
    settings = get_settings()

    params = GenerationParams.from_settings(
        settings,
        source_name=base_name(args.input.name) or "image",
        ctrl_tile=args.tile,
        blur_a=args.blur_a,
        blur_b=args.blur_b,
        b_levels=args.levels,
        tile_remainder=args.remainder,
    )

    print(f"  Loading {args.input} → {params.working_size}×{params.working_size}")
    try:
        working = normalize_image_file(args.input, params.working_size)
    except ImageValidationError as exc:
        print(f"  ✗ {exc}", file=sys.stderr)
        return 1

    print(f"  Generating variants (CTRL seed {params.ctrl_seed})")
    outputs = generate(working.image, params)

    labelled = outputs.as_labelled()
    labelled["CANVAS"] = render_contact_sheet(labelled, size=sheet_size(params.working_size))

    stem = output_stem(params.source_name, timestamp())
    written = write_outputs(labelled, stem, args.out)

    for label, path in written.pngs.items():
        print(f"  ✓ {label:<6} {path}")
    print(f"  ✓ ZIP    {written.archive}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
