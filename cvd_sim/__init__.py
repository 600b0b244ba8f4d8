"""Colour-vision deficiency simulation with Machado 2009 matrices."""

from .color import simulate, transform_buffer, transform_pixel
from .modes import DeficiencyMode
from .table import (
    UNAVAILABLE,
    LoadError,
    MatrixTableCache,
    SeverityMatrixTable,
    Unavailable,
    load_table,
    resolve_matrix,
)

__all__ = [
    "DeficiencyMode",
    "LoadError",
    "MatrixTableCache",
    "SeverityMatrixTable",
    "UNAVAILABLE",
    "Unavailable",
    "load_table",
    "resolve_matrix",
    "simulate",
    "simulate_file",
    "transform_buffer",
    "transform_pixel",
]


def simulate_file(path, matrix, workers=1):
    from .imageio import load_rgba

    return simulate(load_rgba(path), matrix, workers=workers)
