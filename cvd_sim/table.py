"""Machado matrix table loading and lookup.

The table maps a deficiency mode to calibrated 3x3 matrices sampled at
discrete severities (usually tenths). Files store severities as strings with
one fractional digit (``"0.0"`` .. ``"1.0"``); once loaded, samples are kept
as sorted ``(severity, matrix)`` sequences and the string keys are only used
again when looking up or serialising exact samples.
"""
from __future__ import annotations

import asyncio
import json
import logging
import math
import os
import threading
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import numpy as np
import yaml

from .config import YAML_EXTS, find_table_source
from .interpolate import interpolate_samples
from .modes import DeficiencyMode

Samples = Tuple[Tuple[float, ...], Tuple[np.ndarray, ...]]
TableSource = Union[str, "os.PathLike[str]", Mapping[str, Any], None]


class LoadError(Exception):
    """The matrix table could not be read or is malformed."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class Unavailable:
    """Falsy marker returned when no matrix can be resolved yet."""

    _instance: Optional["Unavailable"] = None

    def __new__(cls) -> "Unavailable":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNAVAILABLE"


UNAVAILABLE = Unavailable()


def severity_key(severity: float) -> str:
    """Format ``severity`` the way table files spell their keys."""
    return f"{float(severity):.1f}"


def _mode_key(mode: "str | DeficiencyMode") -> str:
    if isinstance(mode, DeficiencyMode):
        return mode.value
    return str(mode)


def _parse_severity(mode: str, key: Any) -> float:
    if isinstance(key, bool):
        raise LoadError(f"{mode}: severity key {key!r} is not a number")
    try:
        s = float(key)
    except (TypeError, ValueError) as e:
        raise LoadError(f"{mode}: severity key {key!r} is not a number") from e
    if not math.isfinite(s) or not 0.0 <= s <= 1.0:
        raise LoadError(f"{mode}: severity key {key!r} outside [0, 1]")
    return s


def _parse_matrix(mode: str, key: Any, raw: Any) -> np.ndarray:
    try:
        mat = np.array(raw, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise LoadError(f"{mode}[{key}]: matrix is not numeric") from e
    if mat.shape != (3, 3):
        raise LoadError(f"{mode}[{key}]: expected 3x3 matrix, got shape {mat.shape}")
    if not np.isfinite(mat).all():
        raise LoadError(f"{mode}[{key}]: matrix contains non-finite values")
    mat.setflags(write=False)
    return mat


def _parse_table(doc: Any) -> Dict[str, Samples]:
    if not isinstance(doc, Mapping):
        raise LoadError("matrix table must be a mapping of deficiency modes")
    parsed: Dict[str, Samples] = {}
    spelled: Dict[str, str] = {}
    for raw_mode, entries in doc.items():
        mode = str(raw_mode)
        # "protanopia" and "protan" are stored under the same key
        known = DeficiencyMode.parse(mode)
        canonical = known.value if known is not None else mode
        if canonical in spelled:
            raise LoadError(f"{mode}: duplicate mode (also given as {spelled[canonical]!r})")
        spelled[canonical] = mode
        if not isinstance(entries, Mapping) or not entries:
            raise LoadError(f"{mode}: no severity samples")
        pairs: List[Tuple[float, np.ndarray]] = []
        for key, raw in entries.items():
            severity = _parse_severity(mode, key)
            pairs.append((severity, _parse_matrix(mode, key, raw)))
        pairs.sort(key=lambda p: p[0])
        for (a, _), (b, _) in zip(pairs, pairs[1:]):
            if a == b:
                raise LoadError(f"{mode}: duplicate severity {severity_key(a)}")
        parsed[canonical] = (
            tuple(s for s, _ in pairs),
            tuple(m for _, m in pairs),
        )
    return parsed


def _read_source(path: str | os.PathLike) -> Any:
    p = Path(path)
    try:
        with p.open("r", encoding="utf8") as fh:
            if p.suffix.lower() in YAML_EXTS:
                return yaml.safe_load(fh)
            return json.load(fh)
    except OSError as e:
        raise LoadError(f"cannot read matrix table {p}: {e}") from e
    except (ValueError, yaml.YAMLError) as e:
        raise LoadError(f"malformed matrix table {p}: {e}") from e


class SeverityMatrixTable:
    """Immutable store of calibrated matrices per deficiency mode."""

    def __init__(self, samples: Mapping[str, Samples]) -> None:
        self._samples = MappingProxyType(dict(samples))

    @classmethod
    def from_mapping(cls, doc: Mapping[str, Any]) -> "SeverityMatrixTable":
        """Validate a parsed table document and build the table."""
        return cls(_parse_table(doc))

    def __contains__(self, mode: object) -> bool:
        if isinstance(mode, (str, DeficiencyMode)):
            return self._lookup(mode) is not None
        return False

    def __len__(self) -> int:
        return len(self._samples)

    def __repr__(self) -> str:
        return f"SeverityMatrixTable(modes={list(self._samples)})"

    @property
    def modes(self) -> Tuple[str, ...]:
        return tuple(self._samples)

    def _lookup(self, mode: "str | DeficiencyMode") -> Optional[Samples]:
        key = _mode_key(mode)
        found = self._samples.get(key)
        if found is None:
            parsed = DeficiencyMode.parse(key)
            if parsed is not None:
                found = self._samples.get(parsed.value)
        return found

    def severities(self, mode: "str | DeficiencyMode") -> Tuple[float, ...]:
        """Sorted sample severities for *mode* (empty if unknown)."""
        found = self._lookup(mode)
        return found[0] if found else ()

    def sample(self, mode: "str | DeficiencyMode", key: "str | float") -> "np.ndarray | Unavailable":
        """Return a copy of the stored matrix whose key formats as *key*."""
        found = self._lookup(mode)
        if not found:
            return UNAVAILABLE
        wanted = key if isinstance(key, str) else severity_key(key)
        for s, mat in zip(*found):
            if severity_key(s) == wanted:
                return mat.copy()
        return UNAVAILABLE

    def resolve(self, mode: "str | DeficiencyMode", severity: float) -> "np.ndarray | Unavailable":
        """Matrix for ``severity`` of ``mode``, interpolated between samples."""
        found = self._lookup(mode)
        if not found or not found[0]:
            logging.debug("no matrix samples for mode %r", mode)
            return UNAVAILABLE
        return interpolate_samples(found[0], found[1], severity)

    def to_mapping(self) -> Dict[str, Dict[str, List[List[float]]]]:
        """Serialise back to the file schema."""
        return {
            mode: {severity_key(s): m.tolist() for s, m in zip(*samples)}
            for mode, samples in self._samples.items()
        }


def load_table(source: TableSource = None) -> SeverityMatrixTable:
    """Parse a matrix table from *source*.

    ``source`` may be an already parsed mapping, a path to a JSON or YAML
    file, or ``None`` to use :func:`cvd_sim.config.find_table_source`.
    Raises :class:`LoadError` on the first problem found; nothing is
    cached here.
    """
    if isinstance(source, Mapping):
        return SeverityMatrixTable.from_mapping(source)
    path = os.fspath(source) if source is not None else find_table_source()
    if path is None:
        raise LoadError("no matrix table found")
    table = SeverityMatrixTable.from_mapping(_read_source(path))
    logging.info("loaded matrix table %s (%d modes)", path, len(table))
    return table


class MatrixTableCache:
    """Owned holder of a table that is loaded once and then shared.

    The holder is either unloaded (``table is None``) or loaded. Loads are
    serialised; the table is published with a single assignment so readers
    never observe a partially built table. A failed load leaves the holder
    unloaded so a later call can retry.
    """

    def __init__(self, source: TableSource = None) -> None:
        self._source = source
        self._table: Optional[SeverityMatrixTable] = None
        self._lock = threading.Lock()

    @property
    def loaded(self) -> bool:
        return self._table is not None

    @property
    def table(self) -> Optional[SeverityMatrixTable]:
        return self._table

    def load(self, source: TableSource = None) -> SeverityMatrixTable:
        """Load the table unless already loaded, and return it."""
        table = self._table
        if table is not None:
            return table
        with self._lock:
            if self._table is None:
                self._table = load_table(source if source is not None else self._source)
            return self._table

    async def aload(self, source: TableSource = None) -> SeverityMatrixTable:
        """Awaitable :meth:`load`; file access runs in a worker thread."""
        table = self._table
        if table is not None:
            return table
        return await asyncio.to_thread(self.load, source)

    def resolve(self, mode: "str | DeficiencyMode", severity: float) -> "np.ndarray | Unavailable":
        table = self._table
        if table is None:
            logging.debug("matrix table not loaded yet")
            return UNAVAILABLE
        return table.resolve(mode, severity)


def resolve_matrix(
    source: "SeverityMatrixTable | MatrixTableCache | None",
    mode: "str | DeficiencyMode",
    severity: float,
) -> "np.ndarray | Unavailable":
    """Resolve a matrix, returning :data:`UNAVAILABLE` if there is none yet."""
    if source is None:
        return UNAVAILABLE
    return source.resolve(mode, severity)
