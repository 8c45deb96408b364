"""
Spelling correction for KeyCorrect
==================================
Keyboard-aware edit distance and suggestion ranking.

Requires: pip install symspellpy
"""

__version__ = "1.0.0"

from .keyboard import KeyboardLayout, LAYOUTS, QWERTY, get_layout, uniform_cost
from .matcher import EditDistanceMatcher, MatchResult, weighted_distance
from .ranker import SuggestionRanker, preserve_case, should_ignore

__all__ = [
    'KeyboardLayout', 'LAYOUTS', 'QWERTY', 'get_layout', 'uniform_cost',
    'EditDistanceMatcher', 'MatchResult', 'weighted_distance',
    'SuggestionRanker', 'preserve_case', 'should_ignore',
]
