"""
Bounded Edit Distance Matcher
=============================
Scores one typed token against one dictionary candidate.

Two distances are computed:
- raw: unit-cost Levenshtein distance (symspellpy), the hard bound gate
- weighted: same operations, but substituting a neighbouring key costs
  less, so likely slips of the finger score closer

similarity = 1 - weighted / max(len(token), len(candidate))

Requires: pip install symspellpy
"""

from dataclasses import dataclass
from typing import Optional

from symspellpy.editdistance import DistanceAlgorithm, EditDistance

from ..config import KeyCorrectConfig, get_config
from .keyboard import SubstitutionCost, get_layout, uniform_cost


@dataclass(frozen=True)
class MatchResult:
    """Distance between a token and a candidate within the bound."""
    distance: int
    weighted_distance: float
    similarity: float


def weighted_distance(source: str, target: str, max_distance: float,
                      substitution_cost: SubstitutionCost = uniform_cost) -> Optional[float]:
    """
    Edit distance with a pluggable substitution cost.

    Insertions and deletions cost 1. Returns None as soon as every cell
    of a row exceeds `max_distance`, since no later row can come back
    under the bound.
    """
    if abs(len(source) - len(target)) > max_distance:
        return None
    if not source:
        return float(len(target))
    if not target:
        return float(len(source))

    previous = [float(j) for j in range(len(target) + 1)]
    for i, s_char in enumerate(source, start=1):
        current = [float(i)] + [0.0] * len(target)
        for j, t_char in enumerate(target, start=1):
            current[j] = min(
                previous[j] + 1.0,
                current[j - 1] + 1.0,
                previous[j - 1] + substitution_cost(s_char, t_char),
            )
        if min(current) > max_distance:
            return None
        previous = current

    result = previous[-1]
    return result if result <= max_distance else None


class EditDistanceMatcher:
    """
    Bounded, keyboard-aware matcher.

    Usage:
        matcher = EditDistanceMatcher()
        result = matcher.match('wrld', 'world')
        if result:
            print(result.distance, result.similarity)
    """

    def __init__(self, max_distance: Optional[int] = None,
                 substitution_cost: Optional[SubstitutionCost] = None,
                 config: Optional[KeyCorrectConfig] = None):
        """
        Args:
            max_distance: Largest raw distance accepted (config default 2)
            substitution_cost: Cost function for substitutions; the
                configured keyboard layout is used when omitted
            config: Configuration (global config if omitted)
        """
        matching = (config or get_config()).matching
        self.max_distance = matching.max_edit_distance if max_distance is None else max_distance
        if substitution_cost is None:
            substitution_cost = get_layout(matching.layout).substitution_cost(
                matching.adjacent_substitution_cost)
        self.substitution_cost = substitution_cost
        self._levenshtein = EditDistance(DistanceAlgorithm.LEVENSHTEIN)

    def distance(self, token: str, candidate: str) -> int:
        """Raw unit-cost distance, or -1 when above the bound."""
        if abs(len(token) - len(candidate)) > self.max_distance:
            return -1
        return self._levenshtein.compare(token, candidate, self.max_distance)

    def match(self, token: str, candidate: str) -> Optional[MatchResult]:
        """Score lowercase `token` against `candidate`; None when out of bound."""
        raw = self.distance(token, candidate)
        if raw < 0:
            return None

        weighted = weighted_distance(token, candidate, self.max_distance, self.substitution_cost)
        if weighted is None:
            return None

        longest = max(len(token), len(candidate))
        similarity = 1.0 - weighted / longest if longest else 1.0
        return MatchResult(distance=raw, weighted_distance=weighted,
                           similarity=max(0.0, min(1.0, similarity)))
