"""Argument parser for the cvd_sim command line."""
from __future__ import annotations

import argparse
import logging

from .config import DEFAULT_SEVERITY
from .interpolate import clamp_severity
from .modes import DeficiencyMode


def _mode_type(x: str) -> str:
    mode = DeficiencyMode.parse(x)
    if mode is None:
        raise argparse.ArgumentTypeError(
            f"unknown deficiency '{x}' (use protan, deutan or tritan)"
        )
    return mode.value


def _severity_type(x: str) -> float:
    try:
        v = float(x)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid severity: '{x}'") from e
    s = clamp_severity(v)
    if s != v:
        logging.warning("--severity %s out of range, clamped to %.2f", x, s)
    return s


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cvd-sim",
        description="Simulate colour-vision deficiencies with Machado 2009 matrices",
    )
    parser.add_argument("image", nargs="?", help="Source image")
    parser.add_argument(
        "--clipboard", action="store_true", help="Read the source image from the clipboard"
    )
    parser.add_argument(
        "--mode",
        action="append",
        type=_mode_type,
        default=None,
        help="Deficiency to simulate (repeatable); default: all three",
    )
    parser.add_argument(
        "--severity",
        type=_severity_type,
        default=DEFAULT_SEVERITY,
        help="Deficiency severity in [0,1]",
    )
    parser.add_argument("--table", help="Matrix table (JSON or YAML)")
    parser.add_argument("-o", "--output", help="Output folder")
    parser.add_argument("--max-width", type=int, default=None, help="Downscale wider images")
    parser.add_argument(
        "--fit",
        action="store_true",
        help="Downscale to display width (800px, 480px with --small-screen)",
    )
    parser.add_argument("--small-screen", action="store_true", help=argparse.SUPPRESS)
    parser.add_argument("--workers", type=int, default=1, help="Threads per transform")
    parser.add_argument(
        "--include-original", action="store_true", help="Also write the (resized) original"
    )
    parser.add_argument(
        "--preset", action="append", default=[], help="YAML file with option defaults"
    )
    parser.add_argument(
        "--validate", action="store_true", help="Validate arguments and exit"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress")
    return parser
