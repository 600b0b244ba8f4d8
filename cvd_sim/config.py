"""Configuration helpers for cvd_sim.

This module centralizes the defaults used by the command line front end and
the discovery of the Machado matrix table. Table discovery honors an
explicit CLI argument, the ``CVD_SIM_TABLE`` environment variable and
finally the table bundled with the package.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

DEFAULT_TABLE = Path(__file__).resolve().parent / "data" / "machado_matrices.json"

DEFAULT_SEVERITY = 1.0
MAX_WIDTH = 800
MAX_WIDTH_SMALL = 480

IMAGE_EXTS = {".jpg", ".jpeg", ".png", ".bmp", ".webp", ".gif", ".tif", ".tiff"}
YAML_EXTS = {".yaml", ".yml"}
TABLE_EXTS = {".json"} | YAML_EXTS


def _validate_table(path: str | os.PathLike | None) -> Optional[str]:
    """Return *path* if it points to an existing file."""
    if not path:
        return None
    if os.path.isfile(path):
        return os.fspath(path)
    return None


def find_table_source(cli_path: str | None = None) -> Optional[str]:
    """Pick the matrix table file to load.

    Candidates are tried in order: ``cli_path`` (e.g. ``--table``), the
    ``CVD_SIM_TABLE`` environment variable, then the table bundled in
    ``cvd_sim/data``. The first one that exists on disk wins; ``None`` means
    none of them does. The environment is not modified.
    """
    candidates = [
        cli_path,
        os.environ.get("CVD_SIM_TABLE"),
        DEFAULT_TABLE,
    ]
    for cand in candidates:
        path = _validate_table(cand)
        if path:
            return path
    return None


def resolve_table_source(cli_path: str | None = None) -> Optional[str]:
    """Like :func:`find_table_source`, and export the choice as ``CVD_SIM_TABLE``.

    Used by the command line so child processes see the same table.
    """
    path = find_table_source(cli_path)
    if path:
        os.environ["CVD_SIM_TABLE"] = path
    return path
