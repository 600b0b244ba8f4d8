"""Deficiency modes understood by the simulator."""
from __future__ import annotations

from enum import Enum
from typing import Optional


class DeficiencyMode(Enum):
    """Colour-vision deficiency simulated by a matrix family."""

    PROTAN = "protan"
    DEUTAN = "deutan"
    TRITAN = "tritan"

    @classmethod
    def parse(cls, name: "str | DeficiencyMode") -> Optional["DeficiencyMode"]:
        """Return the mode for *name* or ``None`` if it is not recognised.

        Accepts the member itself, the short table key (``"protan"``) or the
        long name (``"protanopia"``), case-insensitively.
        """
        if isinstance(name, cls):
            return name
        key = str(name).strip().lower()
        return _ALIASES.get(key)


_ALIASES = {
    "protan": DeficiencyMode.PROTAN,
    "protanopia": DeficiencyMode.PROTAN,
    "deutan": DeficiencyMode.DEUTAN,
    "deuteranopia": DeficiencyMode.DEUTAN,
    "tritan": DeficiencyMode.TRITAN,
    "tritanopia": DeficiencyMode.TRITAN,
}

ALL_MODES = (DeficiencyMode.PROTAN, DeficiencyMode.DEUTAN, DeficiencyMode.TRITAN)
