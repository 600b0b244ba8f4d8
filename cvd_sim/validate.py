"""Argument validation helpers for the cvd_sim CLI."""
from __future__ import annotations

import os
from argparse import Namespace
from typing import List

from .config import IMAGE_EXTS, TABLE_EXTS


def validate_args(args: Namespace) -> List[str]:
    """Validate parsed CLI arguments.

    Returns a list of human readable error messages. The caller should abort
    if the list is non-empty.
    """
    errors: List[str] = []
    if args.clipboard and args.image:
        errors.append("conflict: IMAGE with --clipboard")
    elif not args.clipboard and not args.image:
        errors.append("no input: pass IMAGE or --clipboard")
    elif args.image and not os.path.isfile(args.image):
        errors.append(f"IMAGE not found: {args.image}")
    elif args.image and os.path.splitext(args.image)[1].lower() not in IMAGE_EXTS:
        errors.append(f"IMAGE type not supported: {args.image}")
    if args.table and not os.path.isfile(args.table):
        errors.append(f"--table not found: {args.table}")
    elif args.table and os.path.splitext(args.table)[1].lower() not in TABLE_EXTS:
        errors.append(f"--table must be a .json, .yaml or .yml file: {args.table}")
    if args.workers < 1:
        errors.append("--workers must be >= 1")
    if args.max_width is not None and args.max_width < 1:
        errors.append("--max-width must be >= 1")
    modes = args.mode or []
    if len(set(modes)) != len(modes):
        errors.append("--mode given more than once for the same deficiency")
    return errors
