"""
KeyCorrect Base Classes
=======================
Shared data model for suggestions and the common interface of
components that wrap loadable resources.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, Any, Optional
from dataclasses import dataclass

__version__ = "1.0.0"

HIGH_CONFIDENCE = 0.8
MEDIUM_CONFIDENCE = 0.5


class SuggestionSource(Enum):
    """Where a suggestion came from."""
    DICTIONARY = "dictionary"    # Fuzzy match against a base dictionary
    CONTRACTION = "contraction"  # Fixed expansion, e.g. dont -> don't
    PERSONAL = "personal"        # Fuzzy match against a user-added word


class ConfidenceBand(Enum):
    """Display band for a confidence value. Ranking never uses it."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def classify(cls, confidence: float) -> 'ConfidenceBand':
        if confidence > HIGH_CONFIDENCE:
            return cls.HIGH
        if confidence > MEDIUM_CONFIDENCE:
            return cls.MEDIUM
        return cls.LOW


@dataclass(frozen=True)
class Suggestion:
    """
    A correction candidate for one typed token.

    `word` carries the case pattern of the typed token; `edit_distance`
    is the unit-cost distance between the lowercased token and candidate.
    """
    word: str
    confidence: float  # 0.0 to 1.0
    source: SuggestionSource
    edit_distance: int
    original: str = ""
    language: Optional[str] = None

    @property
    def band(self) -> ConfidenceBand:
        return ConfidenceBand.classify(self.confidence)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format for display layers."""
        return {
            'word': self.word,
            'original': self.original,
            'confidence': round(self.confidence, 4),
            'source': self.source.value,
            'edit_distance': self.edit_distance,
            'language': self.language,
            'band': self.band.value,
        }


class IntegrationBase(ABC):
    """
    Abstract base class for components that load external resources.

    Tracks availability and the last initialization error.
    """

    INTEGRATION_NAME: str = "Integration"
    INTEGRATION_VERSION: str = "1.0.0"

    def __init__(self):
        self._available = False
        self._error: Optional[str] = None

    @property
    def is_available(self) -> bool:
        """Check if the component is loaded and usable."""
        return self._available

    @property
    def error(self) -> Optional[str]:
        """Get initialization error if any."""
        return self._error

    @abstractmethod
    def get_status(self) -> Dict[str, Any]:
        """Get detailed status of the component."""
        pass
