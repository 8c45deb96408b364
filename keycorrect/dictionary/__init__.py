"""
Dictionary storage for KeyCorrect
=================================
Base dictionaries, custom overlays and the prefix index.
"""

from .store import WordStore, LanguageDictionary
from .prefix_index import PrefixIndex, prefix_key
from .results import (
    AddWordResult, AddWordStatus, ExportResult, ExportStatus,
    ImportMode, ImportResult, ImportStatus, LanguageLoadResult, LoadReport,
)
from .validation import (
    normalize_word, is_valid_custom_word, is_valid_language_code,
)

__all__ = [
    'WordStore', 'LanguageDictionary', 'PrefixIndex', 'prefix_key',
    'AddWordResult', 'AddWordStatus', 'ExportResult', 'ExportStatus',
    'ImportMode', 'ImportResult', 'ImportStatus', 'LanguageLoadResult', 'LoadReport',
    'normalize_word', 'is_valid_custom_word', 'is_valid_language_code',
]
