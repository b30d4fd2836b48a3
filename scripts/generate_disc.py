#!/usr/bin/env python3
"""
Generate a sliced banitsa disc: crust/filling/tablecloth textures, slice
meshes with fortunes, and a GLB scene in a timestamped run folder.

Usage:
    python scripts/generate_disc.py --slices 8 --coin 3 --seed 7
    python scripts/generate_disc.py --photo top_down.jpg --gap-deg 2.0
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from filling_texture import FillingTextureConfig
from fortunes import DEFAULT_FORTUNES, MAX_SLICES
from pipeline import GenerationConfig, load_photo, run_generation
from slice_builder import DiscConfig
from surface_maps import SurfaceTextureConfig
from tile_texture import TileTextureConfig


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a sliced pastry disc with procedural textures"
    )
    parser.add_argument("--name", default="banitsa", help="Run name")
    parser.add_argument("--runs-dir", default="runs", help="Runs output root")
    parser.add_argument(
        "--slices", type=int, default=8,
        help=f"Number of slices, 2-{MAX_SLICES} in the UI (default: 8)",
    )
    parser.add_argument("--radius", type=float, default=5.0, help="Disc radius")
    parser.add_argument("--height", type=float, default=0.8, help="Disc height")
    parser.add_argument(
        "--gap-deg", type=float, default=1.0,
        help="Gap between slices in degrees (default: 1.0)",
    )
    parser.add_argument(
        "--edge-dip", type=float, default=0.02,
        help="Droop of the crust at slice edges (default: 0.02)",
    )
    parser.add_argument(
        "--wobble", type=float, default=0.02,
        help="Crust wobble amplitude (default: 0.02)",
    )
    parser.add_argument(
        "--coin", type=int, default=0,
        help="Index of the slice hiding the coin; out of range means no coin",
    )
    parser.add_argument(
        "--clamp-coin", action="store_true",
        help="Move an out-of-range coin to slice 0 instead of dropping it",
    )
    parser.add_argument(
        "--fortune", action="append", default=None,
        help="Fortune text, repeat once per slice (defaults to the built-in list)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--surface-resolution", type=int, default=1024,
        help="Crust texture resolution (default: 1024)",
    )
    parser.add_argument(
        "--filling-resolution", type=int, default=512,
        help="Filling texture resolution (default: 512)",
    )
    parser.add_argument(
        "--tile-resolution", type=int, default=512,
        help="Tablecloth texture resolution (default: 512)",
    )
    parser.add_argument("--tile-color1", default="#f0f0f0", help="Tablecloth base colour")
    parser.add_argument("--tile-color2", default="#c0392b", help="Tablecloth check colour")
    parser.add_argument(
        "--no-filling", action="store_true",
        help="Use a plain crust colour on the cut faces",
    )
    parser.add_argument(
        "--photo", default=None,
        help="Top-down photograph replacing the synthesized crust colour",
    )
    parser.add_argument("--no-glb", action="store_true", help="Skip GLB export")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logs"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config = GenerationConfig(
        runs_dir=args.runs_dir,
        name=args.name,
        disc=DiscConfig(
            slice_count=args.slices,
            radius=args.radius,
            height=args.height,
            gap_deg=args.gap_deg,
            edge_dip=args.edge_dip,
            wobble_amp=args.wobble,
        ),
        fortunes=args.fortune if args.fortune else list(DEFAULT_FORTUNES),
        coin_index=args.coin,
        clamp_coin=args.clamp_coin,
        seed=args.seed,
        surface=SurfaceTextureConfig(resolution=args.surface_resolution),
        filling=FillingTextureConfig(resolution=args.filling_resolution),
        tile=TileTextureConfig(
            resolution=args.tile_resolution,
            color1=args.tile_color1,
            color2=args.tile_color2,
        ),
        use_filling=not args.no_filling,
        export_glb=not args.no_glb,
    )

    try:
        photo = load_photo(args.photo) if args.photo else None
        result = run_generation(config, photo=photo)
    except (ValueError, IndexError, OSError) as exc:
        # ConfigurationError and DegenerateInputError are ValueErrors;
        # OSError covers unreadable or missing photos
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    print(f"Run ID: {result.run_id}")
    print(f"Run dir: {result.run_dir}")
    print(f"Slices: {len(result.slices)}")
    for piece in result.slices:
        marker = " [coin]" if piece.has_coin else ""
        print(f"  {piece.name}: {piece.fortune}{marker}")
    if result.glb_path:
        print(f"GLB: {result.glb_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
