"""
Keyboard layouts for proximity-weighted substitution.

A layout is a grid of letter rows. Two keys are adjacent when their row
and column each differ by at most one. Rows are not staggered; this is
the same approximation the matcher was tuned against.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, Sequence, Tuple

from ..config_logging import get_logger

logger = get_logger(__name__)

DEFAULT_ADJACENT_COST = 0.5

# Substitution cost between two characters (equal characters cost 0)
SubstitutionCost = Callable[[str, str], float]


@dataclass(frozen=True)
class KeyboardLayout:
    """Letter grid of a physical keyboard."""
    name: str
    rows: Tuple[str, ...]
    positions: Dict[str, Tuple[int, int]] = field(default_factory=dict, compare=False, repr=False)
    adjacency: Dict[str, FrozenSet[str]] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_rows(cls, name: str, rows: Sequence[str]) -> 'KeyboardLayout':
        positions = {}
        for y, row in enumerate(rows):
            for x, key in enumerate(row):
                positions[key] = (x, y)

        adjacency = {}
        for key, (x, y) in positions.items():
            adjacency[key] = frozenset(
                other for other, (ox, oy) in positions.items()
                if other != key and abs(ox - x) <= 1 and abs(oy - y) <= 1
            )

        return cls(name=name, rows=tuple(rows), positions=positions, adjacency=adjacency)

    def is_adjacent(self, a: str, b: str) -> bool:
        """True for distinct neighbouring keys, compared case-insensitively."""
        return b.lower() in self.adjacency.get(a.lower(), ())

    def neighbours(self, key: str) -> FrozenSet[str]:
        return self.adjacency.get(key.lower(), frozenset())

    def substitution_cost(self, adjacent_cost: float = DEFAULT_ADJACENT_COST) -> SubstitutionCost:
        """Cost function for EditDistanceMatcher: 0 same, `adjacent_cost` neighbour, 1 otherwise."""
        def cost(a: str, b: str) -> float:
            if a == b:
                return 0.0
            if self.is_adjacent(a, b):
                return adjacent_cost
            return 1.0
        return cost


def uniform_cost(a: str, b: str) -> float:
    """Plain Levenshtein substitution cost."""
    return 0.0 if a == b else 1.0


QWERTY = KeyboardLayout.from_rows("qwerty", ["qwertyuiop", "asdfghjkl", "zxcvbnm"])
AZERTY = KeyboardLayout.from_rows("azerty", ["azertyuiop", "qsdfghjklm", "wxcvbn"])
QWERTZ = KeyboardLayout.from_rows("qwertz", ["qwertzuiop", "asdfghjkl", "yxcvbnm"])

LAYOUTS: Dict[str, KeyboardLayout] = {
    layout.name: layout for layout in (QWERTY, AZERTY, QWERTZ)
}


def get_layout(name: str) -> KeyboardLayout:
    """Look up a layout by name; unknown names fall back to QWERTY."""
    layout = LAYOUTS.get((name or "").lower())
    if layout is None:
        logger.warning(f"Unknown keyboard layout {name!r}, using qwerty", layout=name)
        return QWERTY
    return layout
