"""
Correction Session for KeyCorrect
=================================
Per-input-field state machine driven by the key dispatch thread.

States:
    idle      no word buffered
    typing    letters are being buffered
    held      a boundary was seen but nothing was auto-applied; the word
              stays buffered so a suggestion strip can keep showing it

Every method here runs synchronously on the dispatch thread and only
touches loaded in-memory structures. Focus changes must call reset().
"""

from collections import deque
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from .base import Suggestion, SuggestionSource
from .config import KeyCorrectConfig, get_config
from .config_logging import get_logger
from .dictionary.results import AddWordResult
from .spelling.ranker import SuggestionRanker, should_ignore

logger = get_logger(__name__)

APOSTROPHE = "'"


@dataclass(frozen=True)
class UndoRecord:
    """The last silent correction, kept for one-step undo."""
    original: str
    corrected: str
    was_auto_applied: bool = True


class CorrectionSession:
    """
    Tracks the word being typed and decides on silent corrections.

    Usage:
        session = CorrectionSession(store)
        for ch in "dont":
            session.add_character(ch)
        session.handle_space()      # "don't"
        session.handle_backspace()  # True, undo available
        session.get_undo_word()     # "dont"
    """

    def __init__(self, store, ranker: Optional[SuggestionRanker] = None,
                 config: Optional[KeyCorrectConfig] = None):
        """
        Args:
            store: Loaded WordStore (or a fake with the same interface)
            ranker: Suggestion ranker (built over `store` if omitted)
            config: Configuration (global config if omitted)
        """
        self.config = config or get_config()
        self.store = store
        self.ranker = ranker or SuggestionRanker(store, config=self.config)
        self.enabled = self.config.session.enabled

        self._buffer: List[str] = []
        self._context: deque = deque(maxlen=self.config.session.context_size)
        self._undo: Optional[UndoRecord] = None
        self._held = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_ready(self) -> bool:
        """Enabled and backed by a loaded store."""
        return self.enabled and bool(self.store.is_available)

    def set_enabled(self, enabled: bool):
        self.enabled = enabled
        if not enabled:
            self.reset()

    @property
    def current_word(self) -> str:
        return "".join(self._buffer)

    @property
    def context_words(self) -> List[str]:
        """Recently committed words, oldest first."""
        return list(self._context)

    @property
    def is_held(self) -> bool:
        """True after a boundary that left the word in the buffer."""
        return self._held

    @property
    def undo_record(self) -> Optional[UndoRecord]:
        return self._undo

    def reset(self):
        """Forget buffer, context and undo. Call on every focus change."""
        self._buffer.clear()
        self._context.clear()
        self._undo = None
        self._held = False

    # ------------------------------------------------------------------
    # Key events
    # ------------------------------------------------------------------

    def add_character(self, ch: str):
        """Buffer a letter or apostrophe; anything else is ignored."""
        if not self.is_ready or not ch or len(ch) != 1:
            return
        if not (ch.isalpha() or ch == APOSTROPHE):
            return

        if self._held:
            # The held word is done; this letter starts a new one
            self._push_context(self.current_word)
            self._buffer.clear()
            self._held = False
        if not self._buffer:
            self._undo = None

        self._buffer.append(ch)

    def handle_space(self) -> Optional[str]:
        """
        Evaluate the buffered word at a word boundary.

        Returns:
            The corrected word when a correction was silently applied,
            otherwise None
        """
        if not self.is_ready or not self._buffer:
            return None

        word = self.current_word
        if self._held:
            # Second boundary after a held word commits it unchanged
            self._push_context(word)
            self._clear_buffer()
            return None

        self._undo = None
        if should_ignore(word):
            logger.debug(f"Ignoring word: {word}", word=word)
            self._push_context(word)
            self._clear_buffer()
            return None

        suggestions = self.ranker.rank(word, max_suggestions=2, context=self.context_words)
        if suggestions and self.should_auto_apply(suggestions):
            corrected = suggestions[0].word
            logger.debug(f"Auto-applying {word} -> {corrected}", word=word,
                         confidence=suggestions[0].confidence)
            self._undo = UndoRecord(original=word, corrected=corrected)
            self._push_context(corrected)
            self._clear_buffer()
            return corrected

        self._held = True
        return None

    def handle_backspace(self) -> bool:
        """
        Process a delete key.

        Returns:
            True when the previous key produced a silent correction that
            can be undone; the caller performs the text replacement
        """
        if not self.is_ready:
            return False

        if self._held:
            # Deleting the boundary resumes the held word
            self._held = False
            return False

        if self._buffer:
            self._buffer.pop()
            return False

        return self._undo is not None and self._undo.was_auto_applied

    def handle_word_boundary(self):
        """Commit the buffer to context without trying to correct it."""
        if self._buffer:
            self._push_context(self.current_word)
        self._clear_buffer()

    def commit_word(self, word: str):
        """Explicit commit, e.g. the user picked a suggestion."""
        self._push_context(word)
        self._clear_buffer()
        self._undo = None

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def should_auto_apply(self, suggestions: Sequence[Suggestion]) -> bool:
        """
        Silent correction only for contractions and for a single clear
        winner above the confidence threshold.
        """
        if not suggestions:
            return False

        top = suggestions[0]
        if top.source is SuggestionSource.CONTRACTION:
            return True

        session = self.config.session
        if top.confidence <= session.auto_apply_threshold:
            return False
        if len(suggestions) < 2:
            return True
        return round(top.confidence - suggestions[1].confidence, 6) > session.ambiguity_margin

    def get_suggestions(self, word: Optional[str] = None,
                        max_suggestions: Optional[int] = None) -> List[Suggestion]:
        """Live suggestions for `word` (default: the buffered word); never cached."""
        if not self.is_ready:
            return []
        word = self.current_word if word is None else word
        if should_ignore(word):
            return []
        return self.ranker.rank(word, max_suggestions=max_suggestions, context=self.context_words)

    # ------------------------------------------------------------------
    # Undo
    # ------------------------------------------------------------------

    def get_undo_word(self) -> Optional[str]:
        """Original word of the pending silent correction."""
        return self._undo.original if self._undo else None

    def clear_undo(self):
        self._undo = None

    def apply_undo(self) -> Optional[str]:
        """
        Consume the undo record and put the original word back into the
        context window. Returns the original word for the caller to insert.
        """
        record = self._undo
        if record is None:
            return None

        self._undo = None
        if self._context and self._context[-1] == record.corrected.lower():
            self._context[-1] = record.original.lower()
        logger.debug(f"Undo {record.corrected} -> {record.original}", word=record.original)
        return record.original

    # ------------------------------------------------------------------
    # Dictionary
    # ------------------------------------------------------------------

    def add_to_dictionary(self, word: str, language: Optional[str] = None) -> AddWordResult:
        """
        Add a word to the user's dictionary.

        Without `language`, the language of the recent context is used,
        then the first loaded language.
        """
        if language is None:
            language = self.ranker.context_language(self.context_words)
        if language is None:
            loaded = self.store.get_loaded_languages()
            language = loaded[0] if loaded else self.config.dictionary.languages[0]
        return self.store.add_custom_word(word, language)

    def get_status(self) -> Dict[str, Any]:
        return {
            'enabled': self.enabled,
            'ready': self.is_ready,
            'current_word': self.current_word,
            'held': self._held,
            'context_words': self.context_words,
            'undo_available': self._undo is not None,
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _push_context(self, word: str):
        if word and word.strip():
            self._context.append(word.lower())

    def _clear_buffer(self):
        self._buffer.clear()
        self._held = False
