from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path

from circlegrid.config import PATTERNS, CircleGridConfig, load_config
from circlegrid.core.image_io import load_gray_u8, save_gray_u8
from circlegrid.detector import create_circle_grid_detector
from circlegrid.export import save_grids_json
from circlegrid.log import init_logger
from circlegrid.sim.effects import degrade
from circlegrid.sim.patterns.circle_grid import CircleGridSpec, affine_matrix, render_circle_grid


def _detect_config(args: argparse.Namespace) -> CircleGridConfig:
    if args.config is not None:
        cfg = load_config(args.config)
        updates = {}
        if args.rows is not None:
            updates["num_rows"] = args.rows
        if args.cols is not None:
            updates["num_cols"] = args.cols
        if args.pattern is not None:
            updates["pattern"] = args.pattern
        return replace(cfg, **updates) if updates else cfg

    if args.rows is None or args.cols is None:
        raise SystemExit("detect: --rows and --cols are required without --config")
    return CircleGridConfig(num_rows=args.rows, num_cols=args.cols, pattern=args.pattern or "asymmetric")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="circlegrid")
    sub = parser.add_subparsers(dest="cmd", required=True)

    det = sub.add_parser("detect", help="Detect circle grids in an image and export them in canonical order.")
    det.add_argument("image", type=Path)
    det.add_argument("--rows", type=int, default=None)
    det.add_argument("--cols", type=int, default=None)
    det.add_argument("--pattern", type=str, default=None, choices=list(PATTERNS))
    det.add_argument("--config", type=Path, default=None, help="JSON config (circlegrid.config.v0).")
    det.add_argument("--out", type=Path, default=None, help="Write found grids to this JSON file.")
    det.add_argument("--verbose", action="store_true", help="Trace the number of candidates at each stage.")

    ren = sub.add_parser("render", help="Render a synthetic circle grid target.")
    ren.add_argument("--rows", type=int, required=True)
    ren.add_argument("--cols", type=int, required=True)
    ren.add_argument("--pattern", type=str, default="asymmetric", choices=list(PATTERNS))
    ren.add_argument("--spacing", type=float, default=40.0, help="Cell spacing on the board (px).")
    ren.add_argument("--radius", type=float, default=20.0, help="Dot radius on the board (px).")
    ren.add_argument("--scale", type=float, default=1.0)
    ren.add_argument("--angle", type=float, default=0.0, help="In-plane rotation (degrees).")
    ren.add_argument("--tx", type=float, default=100.0)
    ren.add_argument("--ty", type=float, default=100.0)
    ren.add_argument("--width", type=int, default=400)
    ren.add_argument("--height", type=int, default=350)
    ren.add_argument("--blur-fwhm-px", type=float, default=0.0, help="Gaussian blur FWHM in pixels (0 disables).")
    ren.add_argument("--noise-std", type=float, default=0.0, help="Additive Gaussian noise in gray levels.")
    ren.add_argument("--seed", type=int, default=0)
    ren.add_argument("--out", type=Path, required=True)

    args = parser.parse_args(argv)

    if args.cmd == "detect":
        init_logger(logging.INFO if args.verbose else logging.WARNING)
        cfg = _detect_config(args)
        detector = create_circle_grid_detector(cfg)
        detector.set_verbose(args.verbose)
        detector.process(load_gray_u8(args.image))
        grids = detector.get_grids()
        print(f"{args.image}: {len(grids)} grid(s)")
        if args.out is not None:
            save_grids_json(args.out, grids, image=str(args.image), pattern=cfg.pattern)
            print(f"Wrote {args.out}")
        return 0 if grids else 1

    if args.cmd == "render":
        spec = CircleGridSpec(
            rows=args.rows,
            cols=args.cols,
            spacing_px=args.spacing,
            radius_px=args.radius,
            pattern=args.pattern,
        )
        A = affine_matrix(scale=args.scale, angle_deg=args.angle, tx=args.tx, ty=args.ty)
        img, _ = render_circle_grid(spec, A, image_size=(args.width, args.height))
        img = degrade(img, blur_fwhm_px=args.blur_fwhm_px, noise_std=args.noise_std, seed=args.seed)
        save_gray_u8(args.out, img)
        print(f"Wrote {args.out}")
        return 0

    raise AssertionError(f"Unhandled cmd: {args.cmd}")
