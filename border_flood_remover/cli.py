from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import Iterator, List, Optional

import numpy as np
from PIL import Image
from tqdm import tqdm

from .background_remover import BorderFloodProcessor
from .compositor import save_rgba_png, to_pil_image
from .config import DEFAULT_AGGRESSIVENESS, DEFAULT_FEATHER_RADIUS, EXTREME_DARK_CUTOFF, IMAGE_EXTENSIONS
from .errors import BackgroundRemovalError
from .parameters import ClassificationParameters


def _iter_images(input_path: Path) -> Iterator[Path]:
    if input_path.is_file():
        yield input_path
        return
    for p in sorted(input_path.rglob("*")):
        if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS:
            yield p


def load_rgba(path: Path) -> np.ndarray:
    with Image.open(path) as im:
        return np.array(im.convert("RGBA"))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Remove edge-connected backgrounds and write RGBA PNGs."
    )
    parser.add_argument("--input", required=True, type=str, help="Input image or directory of images.")
    parser.add_argument("--output", required=True, type=str, help="Output directory for RGBA PNGs.")
    parser.add_argument(
        "--aggressiveness",
        default=DEFAULT_AGGRESSIVENESS,
        type=int,
        help="0-100. 0 removes only near-pure white, above 80 keeps only very dark pixels.",
    )
    parser.add_argument("--feather", default=DEFAULT_FEATHER_RADIUS, type=int, help="Feather radius in pixels.")
    parser.add_argument(
        "--morph-radius",
        default=None,
        type=int,
        help="Closing radius in pixels (default: derived from aggressiveness).",
    )
    parser.add_argument(
        "--dark-cutoff",
        default=EXTREME_DARK_CUTOFF,
        type=int,
        help="Brightness at or below which extreme mode keeps pixels (0-255).",
    )
    parser.add_argument("--verbose", action="store_true", help="Log per-stage details.")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        params = ClassificationParameters.from_slider(
            args.aggressiveness,
            morphological_radius=args.morph_radius,
            feather_radius=args.feather,
            dark_cutoff=args.dark_cutoff,
        )
    except BackgroundRemovalError as e:
        parser.error(str(e))

    input_path = Path(args.input)
    output_dir = Path(args.output)
    if not input_path.exists():
        parser.error(f"Input not found: {input_path}")

    images = list(_iter_images(input_path))
    if not images:
        print(f"No images found under {input_path}")
        return 0

    processor = BorderFloodProcessor(params)
    root = input_path.parent if input_path.is_file() else input_path

    failed = []
    total0 = time.perf_counter()
    for img_path in tqdm(images, desc="Processing", unit="img"):
        rel = img_path.relative_to(root)
        out_path = (output_dir / rel).with_suffix(".png")

        try:
            result = processor.process_image(load_rgba(img_path))
            save_rgba_png(to_pil_image(result.rgba), str(out_path))
        except Exception as e:
            print(f"{img_path.name}: Failed - {e}")
            failed.append(img_path)
            continue

        t = result.timings
        print(
            f"{img_path.name}: removed={result.removed_fraction*100:.1f}% total={t.total_s:.3f}s "
            f"(fill={t.flood_fill_s:.3f}s close={t.close_s:.3f}s "
            f"feather={t.feather_s:.3f}s comp={t.composite_s:.3f}s)"
        )

    total1 = time.perf_counter()
    print(f"Done. {len(images) - len(failed)} images in {total1-total0:.2f}s")
    if failed:
        print(f"Failed: {len(failed)} of {len(images)} images")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
