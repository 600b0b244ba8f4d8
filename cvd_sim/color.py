"""Colour space utilities and the per-pixel deficiency transform.

Pixels go sRGB → linear → matrix → sRGB in float64. The conversion
formulae follow the sRGB specification and operate on NumPy arrays.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Tuple

import numpy as np


def srgb_to_linear(c: np.ndarray) -> np.ndarray:
    """Decode normalised sRGB values in ``[0, 1]`` to linear light."""
    c = np.asarray(c, dtype=np.float64)
    return np.where(c <= 0.04045, c / 12.92, ((c + 0.055) / 1.055) ** 2.4)


def linear_to_srgb(c: np.ndarray) -> np.ndarray:
    """Encode linear light values with the sRGB transfer curve.

    Values are not clipped; negative input stays on the linear segment.
    """
    c = np.asarray(c, dtype=np.float64)
    # the power branch is evaluated everywhere, keep it away from negatives
    safe = np.maximum(c, 0.0031308)
    return np.where(c <= 0.0031308, 12.92 * c, 1.055 * np.power(safe, 1 / 2.4) - 0.055)


def srgb8_to_linear(img: np.ndarray) -> np.ndarray:
    """Convert 8‑bit sRGB values to linear light floats.

    Parameters
    ----------
    img:
        ``numpy`` array of dtype ``uint8``.
    Returns
    -------
    numpy.ndarray
        Float64 array in range ``[0,1]`` representing linear light values.
    """
    return srgb_to_linear(np.asarray(img).astype(np.float64) / 255.0)


def linear_to_srgb8(lin: np.ndarray) -> np.ndarray:
    """Convert linear light floats back to 8‑bit sRGB values."""
    srgb = np.clip(linear_to_srgb(lin), 0.0, 1.0)
    return (srgb * 255.0 + 0.5).astype(np.uint8)


def _check_matrix(matrix: np.ndarray) -> np.ndarray:
    mat = np.asarray(matrix, dtype=np.float64)
    if mat.shape != (3, 3):
        raise ValueError(f"matrix must be 3x3, got shape {mat.shape}")
    return mat


def _apply_matrix(mat: np.ndarray, rgb: np.ndarray) -> np.ndarray:
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    return np.stack(
        [
            mat[0, 0] * r + mat[0, 1] * g + mat[0, 2] * b,
            mat[1, 0] * r + mat[1, 1] * g + mat[1, 2] * b,
            mat[2, 0] * r + mat[2, 1] * g + mat[2, 2] * b,
        ],
        axis=-1,
    )


def transform_pixel(r: int, g: int, b: int, matrix: np.ndarray) -> Tuple[int, int, int]:
    """Transform a single 8‑bit RGB triple with ``matrix``."""
    mat = _check_matrix(matrix)
    lin = srgb8_to_linear(np.array([r, g, b], dtype=np.uint8))
    out = linear_to_srgb8(_apply_matrix(mat, lin))
    return int(out[0]), int(out[1]), int(out[2])


def _transform_rows(src: np.ndarray, dst: np.ndarray, mat: np.ndarray, start: int, stop: int) -> None:
    rows = src[start:stop]
    lin = srgb8_to_linear(rows[..., :3])
    rgb = linear_to_srgb8(_apply_matrix(mat, lin))
    dst[start:stop, :, :3] = rgb
    dst[start:stop, :, 3] = rows[..., 3]


def _check_buffer(name: str, buf: np.ndarray) -> None:
    if not isinstance(buf, np.ndarray) or buf.ndim != 3 or buf.shape[2] != 4:
        raise ValueError(f"{name} must be an RGBA array of shape (h, w, 4)")
    if buf.dtype != np.uint8:
        raise ValueError(f"{name} must have dtype uint8, got {buf.dtype}")


def transform_buffer(src: np.ndarray, dst: np.ndarray, matrix: np.ndarray, workers: int = 1) -> np.ndarray:
    """Apply a deficiency matrix to every pixel of ``src`` into ``dst``.

    Parameters
    ----------
    src, dst:
        RGBA ``uint8`` arrays of identical shape ``(h, w, 4)``. Alpha is
        copied unchanged. ``dst`` may be ``src`` for an in-place transform.
    matrix:
        Resolved 3x3 matrix acting on linear RGB.
    workers:
        Number of threads; rows are split into disjoint bands.

    Returns
    -------
    numpy.ndarray
        ``dst``, for chaining. Empty buffers are returned untouched.
    """
    _check_buffer("src", src)
    _check_buffer("dst", dst)
    if src.shape != dst.shape:
        raise ValueError(f"src shape {src.shape} != dst shape {dst.shape}")
    mat = _check_matrix(matrix)
    h, w = src.shape[:2]
    if h == 0 or w == 0:
        return dst

    workers = max(1, min(int(workers), h))
    if workers == 1:
        _transform_rows(src, dst, mat, 0, h)
        return dst

    bounds = np.linspace(0, h, workers + 1).astype(int)
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [
            pool.submit(_transform_rows, src, dst, mat, int(a), int(b))
            for a, b in zip(bounds[:-1], bounds[1:])
            if b > a
        ]
        for fut in futures:
            fut.result()
    return dst


def simulate(src: np.ndarray, matrix: np.ndarray, workers: int = 1) -> np.ndarray:
    """Return a new RGBA array with ``matrix`` applied to ``src``."""
    dst = np.empty_like(src)
    return transform_buffer(src, dst, matrix, workers=workers)
