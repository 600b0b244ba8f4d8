"""Re-simulation of one source image for several deficiency modes.

A :class:`Resimulator` plays the caller role around the engine: it owns the
source image and the current severity, caches resolved matrices while the
severity is unchanged, and coalesces rapid change requests into a single
pending recompute that the owner runs on its next update tick.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional, Tuple

import numpy as np

from .color import transform_buffer
from .config import DEFAULT_SEVERITY
from .interpolate import clamp_severity
from .modes import ALL_MODES, DeficiencyMode
from .table import UNAVAILABLE, MatrixTableCache, Unavailable


def _label(mode: "str | DeficiencyMode") -> str:
    parsed = DeficiencyMode.parse(mode)
    return parsed.value if parsed is not None else str(mode)


class Resimulator:
    """Keep simulated renderings of ``source`` in sync with the severity."""

    def __init__(
        self,
        cache: MatrixTableCache,
        source: Optional[np.ndarray] = None,
        modes: Iterable["str | DeficiencyMode"] = ALL_MODES,
        severity: float = DEFAULT_SEVERITY,
        workers: int = 1,
    ) -> None:
        self.cache = cache
        self.source = source
        self.modes = tuple(_label(m) for m in modes)
        self.severity = clamp_severity(severity)
        self.workers = workers
        self.results: Dict[str, np.ndarray] = {}
        self._matrices: Dict[Tuple[str, float], np.ndarray] = {}
        self._pending = False

    @property
    def pending(self) -> bool:
        return self._pending

    def request(self) -> bool:
        """Queue a recompute; returns ``False`` if one is already queued."""
        if self.source is None:
            return False
        if self._pending:
            return False
        self._pending = True
        return True

    def set_source(self, img: np.ndarray) -> bool:
        self.source = img
        self.results = {}
        return self.request()

    def set_severity(self, severity: float) -> bool:
        s = clamp_severity(severity)
        if s != self.severity:
            self.severity = s
            self._matrices.clear()
        return self.request()

    def matrix(self, mode: "str | DeficiencyMode") -> "np.ndarray | Unavailable":
        """Resolved matrix for *mode* at the current severity."""
        key = (_label(mode), self.severity)
        mat = self._matrices.get(key)
        if mat is not None:
            return mat
        mat = self.cache.resolve(key[0], self.severity)
        if mat is UNAVAILABLE:
            return UNAVAILABLE
        self._matrices[key] = mat
        return mat

    def simulate_all(self) -> Optional[Dict[str, np.ndarray]]:
        """Render every mode now; ``None`` if there is nothing to do yet."""
        if self.source is None or not self.cache.loaded:
            return None
        out: Dict[str, np.ndarray] = {}
        for mode in self.modes:
            mat = self.matrix(mode)
            if mat is UNAVAILABLE:
                logging.debug("skipping %s: no matrix available", mode)
                continue
            dst = np.empty_like(self.source)
            out[mode] = transform_buffer(self.source, dst, mat, workers=self.workers)
        self.results = out
        return out

    def run_pending(self) -> Optional[Dict[str, np.ndarray]]:
        """Run the queued recompute, if any.

        The request stays queued while the table is not loaded.
        """
        if not self._pending:
            return None
        results = self.simulate_all()
        if results is None:
            return None
        self._pending = False
        return results
