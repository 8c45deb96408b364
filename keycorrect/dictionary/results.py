"""
Typed outcomes returned by WordStore operations.

Every management operation returns one of these instead of raising,
so callers can branch on `status` and show the matching message.
"""

from enum import Enum
from typing import Dict, Any, Optional
from dataclasses import dataclass, field


class AddWordStatus(Enum):
    SUCCESS = "success"
    ALREADY_EXISTS = "already_exists"
    INVALID_FORMAT = "invalid_format"
    ERROR = "error"


class ExportStatus(Enum):
    SUCCESS = "success"
    NO_WORDS_TO_EXPORT = "no_words_to_export"
    ERROR = "error"


class ImportStatus(Enum):
    SUCCESS = "success"
    INVALID_FORMAT = "invalid_format"
    INCOMPATIBLE_VERSION = "incompatible_version"
    ERROR = "error"


class ImportMode(Enum):
    """How imported words combine with existing overlays."""
    MERGE = "merge"      # Add over existing, nothing removed
    REPLACE = "replace"  # Clear every overlay first, then merge


@dataclass
class AddWordResult:
    """Outcome of adding one custom word."""
    status: AddWordStatus
    word: str
    language: str
    reason: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status is AddWordStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'word': self.word,
            'language': self.language,
            'reason': self.reason,
        }


@dataclass
class ExportResult:
    """Outcome of exporting custom words to an archive."""
    status: ExportStatus
    archive: Optional[bytes] = None
    word_count: int = 0
    language_count: int = 0
    message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status is ExportStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'word_count': self.word_count,
            'language_count': self.language_count,
            'size_bytes': len(self.archive) if self.archive else 0,
            'message': self.message,
        }


@dataclass
class ImportResult:
    """Per-word tally of an import, or the reason it was rejected."""
    status: ImportStatus
    total_words: int = 0
    added_words: int = 0
    duplicate_words: int = 0
    invalid_words: int = 0
    error_words: int = 0
    language_breakdown: Dict[str, int] = field(default_factory=dict)
    backup_version: Optional[int] = None
    current_version: Optional[int] = None
    message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status is ImportStatus.SUCCESS

    @property
    def skipped_words(self) -> int:
        """Duplicates and invalid entries together."""
        return self.duplicate_words + self.invalid_words

    @classmethod
    def invalid_format(cls, message: str) -> 'ImportResult':
        return cls(status=ImportStatus.INVALID_FORMAT, message=message)

    @classmethod
    def incompatible_version(cls, backup_version: int, current_version: int) -> 'ImportResult':
        return cls(
            status=ImportStatus.INCOMPATIBLE_VERSION,
            backup_version=backup_version,
            current_version=current_version,
            message=f"Incompatible backup version ({backup_version}). "
                    f"Current version: {current_version}",
        )

    @classmethod
    def error(cls, message: str) -> 'ImportResult':
        return cls(status=ImportStatus.ERROR, message=message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'total_words': self.total_words,
            'added_words': self.added_words,
            'duplicate_words': self.duplicate_words,
            'invalid_words': self.invalid_words,
            'error_words': self.error_words,
            'language_breakdown': dict(self.language_breakdown),
            'backup_version': self.backup_version,
            'current_version': self.current_version,
            'message': self.message,
        }


@dataclass
class LanguageLoadResult:
    """Outcome of loading one language."""
    language: str
    success: bool
    word_count: int = 0
    custom_word_count: int = 0
    contraction_count: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'language': self.language,
            'success': self.success,
            'word_count': self.word_count,
            'custom_word_count': self.custom_word_count,
            'contraction_count': self.contraction_count,
            'error': self.error,
        }


@dataclass
class LoadReport:
    """Per-language outcome of WordStore.load()."""
    results: Dict[str, LanguageLoadResult] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        """True when every requested language loaded."""
        return bool(self.results) and all(r.success for r in self.results.values())

    @property
    def loaded_languages(self) -> list:
        return [code for code, r in self.results.items() if r.success]

    @property
    def failed_languages(self) -> list:
        return [code for code, r in self.results.items() if not r.success]

    def __getitem__(self, language: str) -> LanguageLoadResult:
        return self.results[language]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'languages': {code: r.to_dict() for code, r in self.results.items()},
        }
