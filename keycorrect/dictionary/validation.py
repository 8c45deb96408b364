"""
Word and language code validation shared by live edits and backup import.
"""

import re
from typing import Optional

from ..config_logging import WordValidationError

MIN_CUSTOM_WORD_LENGTH = 2

_LANGUAGE_CODE = re.compile(r'^[a-z]{2,3}(?:[_-][a-z0-9]{2,8})?$')
_EXTRA_WORD_CHARS = frozenset("'-")


def normalize_word(word: Optional[str]) -> str:
    """Strip surrounding whitespace and lowercase."""
    if not word:
        return ""
    return word.strip().lower()


def is_valid_custom_word(word: str) -> bool:
    """
    Check a normalized word against the custom word rules.

    At least two characters, lowercase letters, apostrophe or hyphen only.
    """
    if len(word) < MIN_CUSTOM_WORD_LENGTH:
        return False
    for ch in word:
        if ch in _EXTRA_WORD_CHARS:
            continue
        if not ch.isalpha() or ch != ch.lower():
            return False
    return any(ch.isalpha() for ch in word)


def custom_word_problem(word: str) -> Optional[str]:
    """Describe why `word` is not a valid custom word, or None."""
    if len(word) < MIN_CUSTOM_WORD_LENGTH:
        return f"must be at least {MIN_CUSTOM_WORD_LENGTH} characters"
    if not is_valid_custom_word(word):
        return "only lowercase letters, apostrophes and hyphens are allowed"
    return None


def is_valid_language_code(language: Optional[str]) -> bool:
    """Language codes name overlay files, so keep them to a safe shape."""
    return isinstance(language, str) and bool(_LANGUAGE_CODE.match(language))


def validate_custom_word(word: str, language: Optional[str]) -> str:
    """
    Normalize and validate a custom word for `language`.

    Raises:
        WordValidationError: malformed word or language code
    """
    if not is_valid_language_code(language):
        raise WordValidationError(f"unsupported language code: {language!r}",
                                  word=word, language=language)
    normalized = normalize_word(word)
    problem = custom_word_problem(normalized)
    if problem:
        raise WordValidationError(problem, word=normalized, language=language)
    return normalized
