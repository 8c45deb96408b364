"""
Suggestion Ranker for KeyCorrect
================================
Turns one typed token into an ordered list of correction candidates.

Order of evaluation:
1. Ignored or already-known tokens get no suggestions
2. A contraction trigger yields its fixed expansion
3. Otherwise every dictionary word within the edit distance bound is
   scored; words of the language the user is currently typing in get
   a small boost

Ranking is pure: it reads the WordStore and never mutates anything.
"""

from collections import Counter
from typing import Iterable, Iterator, List, Optional, Sequence

from ..base import Suggestion, SuggestionSource
from ..config import KeyCorrectConfig, get_config
from ..config_logging import get_logger
from .matcher import EditDistanceMatcher

logger = get_logger(__name__)

# Characters that mark a token as an address, path or e-mail
URL_CHARS = frozenset("@./")


def should_ignore(word: str) -> bool:
    """
    True for tokens that are never corrected: single characters,
    all-caps acronyms, anything with a digit, URL or e-mail shapes.
    """
    if not word or len(word) <= 1:
        return True
    if word.isupper():
        return True
    return any(ch.isdigit() or ch in URL_CHARS for ch in word)


def preserve_case(typed: str, correction: str) -> str:
    """Apply the case pattern of `typed` to `correction`."""
    if not typed or not any(ch.isupper() for ch in typed):
        return correction
    if typed.isupper():
        return correction.upper()
    if typed[0].isupper() and not any(ch.isupper() for ch in typed[1:]):
        return correction[:1].upper() + correction[1:]

    # Mixed case: copy upper case position by position
    return "".join(
        ch.upper() if i < len(typed) and typed[i].isupper() else ch
        for i, ch in enumerate(correction)
    )


class SuggestionRanker:
    """
    Ranks correction candidates for a token.

    Usage:
        ranker = SuggestionRanker(store)
        suggestions = ranker.rank('wrld', context=['hello'])
    """

    def __init__(self, store, matcher: Optional[EditDistanceMatcher] = None,
                 config: Optional[KeyCorrectConfig] = None):
        """
        Args:
            store: WordStore (or any object with the same lookup methods)
            matcher: Edit distance matcher (built from config if omitted)
            config: Configuration (global config if omitted)
        """
        self.config = config or get_config()
        self.store = store
        self.matcher = matcher or EditDistanceMatcher(config=self.config)

    def rank(self, word: str, max_suggestions: Optional[int] = None,
             context: Sequence[str] = ()) -> List[Suggestion]:
        """
        Ranked suggestions for `word`, best first.

        Args:
            word: Token as typed (case is preserved in the results)
            max_suggestions: Result limit (config default when omitted)
            context: Recently committed words, oldest first

        Returns:
            At most `max_suggestions` suggestions sorted by confidence;
            empty when the token is ignored or already a known word
        """
        ranking = self.config.ranking
        limit = ranking.max_suggestions if max_suggestions is None else max_suggestions
        token = (word or "").strip()
        if limit <= 0 or should_ignore(token):
            return []

        lowered = token.lower()
        if self.store.contains(lowered):
            return []

        expansion = self.store.get_contraction(lowered)
        if expansion:
            distance = self.matcher.distance(lowered, expansion.lower())
            if distance >= 0:
                return [Suggestion(
                    word=preserve_case(token, expansion),
                    confidence=ranking.contraction_confidence,
                    source=SuggestionSource.CONTRACTION,
                    edit_distance=distance,
                    original=token,
                )]
            logger.debug(f"Contraction for '{lowered}' exceeds the distance bound", word=lowered)

        context_language = self.context_language(context)
        scored = []
        for candidate in self._candidates(lowered):
            result = self.matcher.match(lowered, candidate)
            if result is None or result.distance == 0:
                continue

            language = self.store.detect_language(candidate)
            confidence = result.similarity
            if context_language is not None and language == context_language:
                confidence = min(1.0, confidence + ranking.context_language_boost)

            source = (SuggestionSource.PERSONAL if self.store.is_custom_word(candidate)
                      else SuggestionSource.DICTIONARY)
            scored.append((confidence, result, candidate, language, source))

        scored.sort(key=lambda s: (-s[0], s[1].distance, s[1].weighted_distance, s[2]))

        return [
            Suggestion(
                word=preserve_case(token, candidate),
                confidence=confidence,
                source=source,
                edit_distance=result.distance,
                original=token,
                language=language,
            )
            for confidence, result, candidate, language, source in scored[:limit]
        ]

    def context_language(self, context: Iterable[str]) -> Optional[str]:
        """Most frequent detected language among the recent context words."""
        window = self.config.ranking.context_language_window
        recent = list(context)[-window:] if window > 0 else []
        counts = Counter()
        # Most recent first so ties go to the latest language
        for word in reversed(recent):
            language = self.store.detect_language(word)
            if language is not None:
                counts[language] += 1
        if not counts:
            return None
        return counts.most_common(1)[0][0]

    def _candidates(self, token: str) -> Iterator[str]:
        """
        Words sharing the token's first letter and within the length bound.

        Every bucket under the first letter is scanned, so a slip in the
        second character still finds the intended word.
        """
        bound = self.matcher.max_distance
        for key in self.store.prefix_keys(token[0]):
            for candidate in self.store.prefix_lookup(key):
                if abs(len(candidate) - len(token)) <= bound:
                    yield candidate
