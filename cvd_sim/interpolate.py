"""Severity interpolation between calibrated matrices."""
from __future__ import annotations

import math
from bisect import bisect_right
from typing import Sequence

import numpy as np


def clamp_severity(severity: float) -> float:
    """Clamp ``severity`` to ``[0, 1]``; NaN maps to ``0.0``."""
    s = float(severity)
    if math.isnan(s):
        return 0.0
    return max(0.0, min(1.0, s))


def lerp_matrix(a: np.ndarray, b: np.ndarray, t: float) -> np.ndarray:
    """Element-wise linear interpolation of two 3x3 matrices."""
    return np.asarray(a, dtype=np.float64) * (1.0 - t) + np.asarray(b, dtype=np.float64) * t


def interpolate_samples(
    severities: Sequence[float],
    matrices: Sequence[np.ndarray],
    severity: float,
) -> np.ndarray:
    """Return the matrix for ``severity`` from sorted calibration samples.

    Parameters
    ----------
    severities:
        Sample points sorted ascending, unique, at least one.
    matrices:
        One 3x3 matrix per sample point.
    severity:
        Requested severity. It is clamped to ``[0, 1]`` first; values
        outside the sampled range return the nearest end sample unchanged.

    Returns
    -------
    numpy.ndarray
        A new float64 ``(3, 3)`` array owned by the caller.
    """
    s = clamp_severity(severity)
    if s <= severities[0]:
        return np.array(matrices[0], dtype=np.float64)
    if s >= severities[-1]:
        return np.array(matrices[-1], dtype=np.float64)

    # severities[i - 1] <= s < severities[i]
    i = bisect_right(severities, s)
    k0, k1 = severities[i - 1], severities[i]
    if s == k0:
        return np.array(matrices[i - 1], dtype=np.float64)
    t = (s - k0) / (k1 - k0)
    return lerp_matrix(matrices[i - 1], matrices[i], t)
