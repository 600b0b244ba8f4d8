"""Command line interface for cvd_sim."""
from __future__ import annotations

import argparse
import logging
import os
import sys

import yaml

from .cli import build_parser
from .config import MAX_WIDTH, MAX_WIDTH_SMALL, resolve_table_source
from .imageio import fit_width, grab_clipboard, load_rgba, output_name, save_rgba
from .interpolate import clamp_severity
from .modes import ALL_MODES, DeficiencyMode
from .session import Resimulator
from .table import LoadError, MatrixTableCache
from .validate import validate_args


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_parser()

    prelim, _ = parser.parse_known_args(argv)
    preset_modes = None
    for path in prelim.preset:
        with open(path, "r", encoding="utf8") as fh:
            data = yaml.safe_load(fh) or {}
        if not isinstance(data, dict):
            parser.error(f"preset {path} must be a mapping")
        data = {k.replace("-", "_"): v for k, v in data.items()}
        # appended flags would extend a list default, keep modes apart
        if "mode" in data:
            preset_modes = data.pop("mode")
        parser.set_defaults(**data)

    args = parser.parse_args(argv)

    if args.mode is None and preset_modes is not None:
        if isinstance(preset_modes, str):
            preset_modes = [preset_modes]
        modes = []
        for name in preset_modes:
            mode = DeficiencyMode.parse(name)
            if mode is None:
                parser.error(f"preset: unknown deficiency '{name}'")
            modes.append(mode.value)
        args.mode = modes
    if args.mode is None:
        args.mode = [m.value for m in ALL_MODES]

    # preset values bypass argparse type conversion
    args.severity = clamp_severity(args.severity)
    if args.max_width is None and args.fit:
        args.max_width = MAX_WIDTH_SMALL if args.small_screen else MAX_WIDTH
    return args


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )
    errs = validate_args(args)
    if errs:
        for e in errs:
            print(f"validation error: {e}", file=sys.stderr)
        raise SystemExit(1)
    if args.validate:
        return

    cache = MatrixTableCache(resolve_table_source(args.table))
    try:
        cache.load()
    except LoadError as e:
        print(f"error: {e.reason}", file=sys.stderr)
        raise SystemExit(2)

    if args.clipboard:
        try:
            img = grab_clipboard()
        except LookupError as e:
            print(f"error: {e}", file=sys.stderr)
            raise SystemExit(1)
    else:
        img = load_rgba(args.image)
    if args.max_width:
        img = fit_width(img, args.max_width)
    logging.info("source %dx%d, severity %.2f", img.shape[1], img.shape[0], args.severity)

    sim = Resimulator(cache, img, modes=args.mode, severity=args.severity, workers=args.workers)
    results = sim.simulate_all() or {}

    if args.output:
        out_dir = args.output
    elif args.image:
        out_dir = os.path.dirname(os.path.abspath(args.image))
    else:
        out_dir = os.getcwd()

    if args.include_original:
        print(save_rgba(img, os.path.join(out_dir, output_name(args.image, "original"))))
    for mode, rendered in results.items():
        path = save_rgba(rendered, os.path.join(out_dir, output_name(args.image, mode)))
        logging.info("%s -> %s", mode, path)
        print(path)

    missing = [m for m in sim.modes if m not in results]
    if missing:
        for mode in missing:
            print(f"error: matrix table has no entry for {mode}", file=sys.stderr)
        raise SystemExit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
