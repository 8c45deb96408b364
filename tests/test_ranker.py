"""
Tests for SuggestionRanker
==========================
Ranking order, contractions, context language and ignore rules.
"""

import pytest

from keycorrect.base import ConfidenceBand, SuggestionSource
from keycorrect.spelling.ranker import SuggestionRanker, preserve_case, should_ignore

from .conftest import EN_WORDS, ID_WORDS


def levenshtein(a: str, b: str) -> int:
    """Plain reference distance for checking the bound."""
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(min(previous[j] + 1, current[j - 1] + 1,
                               previous[j - 1] + (ca != cb)))
        previous = current
    return previous[-1]


@pytest.fixture
def ranker(store, config) -> SuggestionRanker:
    return SuggestionRanker(store, config=config)


class TestShouldIgnore:
    """Tests for the ignore rules."""

    @pytest.mark.parametrize("word", ["a", "I", "", "NASA", "abc123", "42",
                                      "user@example", "example.com", "a/b"])
    def test_ignored(self, word):
        """Test tokens that are never corrected."""
        assert should_ignore(word)

    @pytest.mark.parametrize("word", ["wrld", "Hello", "don't", "iPhone"])
    def test_not_ignored(self, word):
        """Test ordinary tokens are checked."""
        assert not should_ignore(word)


class TestPreserveCase:
    """Tests for case preservation."""

    def test_lowercase_keeps_correction(self):
        assert preserve_case("wrld", "world") == "world"
        assert preserve_case("im", "I'm") == "I'm"

    def test_capitalized(self):
        assert preserve_case("Wrld", "world") == "World"

    def test_all_caps(self):
        assert preserve_case("WRLD", "world") == "WORLD"

    def test_mixed_case_per_position(self):
        assert preserve_case("wRld", "world") == "wOrld"


class TestKnownWords:
    """Correct words are never corrected."""

    def test_every_dictionary_word_has_no_suggestions(self, ranker):
        """Test every loaded word returns an empty list."""
        for word in EN_WORDS + ID_WORDS:
            assert ranker.rank(word) == [], word

    def test_known_word_any_case(self, ranker):
        assert ranker.rank("World") == []

    def test_custom_word_has_no_suggestions(self, store, ranker):
        store.add_custom_word("jagoan", "id")
        assert ranker.rank("jagoan") == []


class TestContractions:
    """Tests for contraction expansion."""

    def test_contraction_single_suggestion(self, ranker):
        """Test a contraction trigger yields exactly its expansion."""
        suggestions = ranker.rank("dont")
        assert len(suggestions) == 1
        assert suggestions[0].word == "don't"
        assert suggestions[0].source is SuggestionSource.CONTRACTION
        assert suggestions[0].confidence == pytest.approx(0.95)
        assert suggestions[0].edit_distance == 1

    def test_contraction_case_insensitive(self, ranker):
        suggestions = ranker.rank("Dont")
        assert suggestions[0].word == "Don't"

    def test_contraction_with_capital_expansion(self, ranker):
        assert ranker.rank("im")[0].word == "I'm"


class TestFuzzyRanking:
    """Tests for edit distance candidates."""

    def test_wrld_suggests_world(self, ranker):
        """Test a missing vowel finds the intended word first."""
        suggestions = ranker.rank("wrld")
        assert suggestions[0].word == "world"
        assert suggestions[0].confidence == pytest.approx(0.8)
        assert suggestions[0].confidence > 0.5
        assert suggestions[0].source is SuggestionSource.DICTIONARY
        assert suggestions[0].original == "wrld"

    def test_adjacent_key_scores_higher(self, ranker):
        """Test a neighbouring-key slip costs half a substitution."""
        suggestions = ranker.rank("hrllo")
        assert suggestions[0].word == "hello"
        assert suggestions[0].confidence == pytest.approx(0.9)
        assert suggestions[0].band is ConfidenceBand.HIGH

    def test_sorted_by_confidence(self, ranker):
        """Test suggestions never increase in confidence."""
        for token in ["wrld", "carx", "makn", "thw", "hrllo"]:
            confidences = [s.confidence for s in ranker.rank(token)]
            assert confidences == sorted(confidences, reverse=True), token

    def test_limit_respected(self, ranker):
        """Test the result never exceeds the requested maximum."""
        assert len(ranker.rank("wrld", max_suggestions=2)) == 2
        assert len(ranker.rank("wrld", max_suggestions=1)) == 1
        assert ranker.rank("wrld", max_suggestions=0) == []

    def test_distance_bound(self, ranker):
        """Test no suggestion is more than two edits away."""
        for token in ["wrld", "carx", "makn", "thw", "hrllo", "beautifull", "selamt"]:
            for suggestion in ranker.rank(token, max_suggestions=10):
                assert levenshtein(token, suggestion.word.lower()) <= 2
                assert suggestion.edit_distance == levenshtein(token, suggestion.word.lower())

    def test_tie_broken_lexically(self, ranker):
        """Test equal scores fall back to alphabetical order."""
        suggestions = ranker.rank("carx")
        assert [s.word for s in suggestions[:2]] == ["card", "cars"]
        assert suggestions[0].confidence == suggestions[1].confidence

    def test_second_letter_error_reachable(self, ranker):
        """Test candidates outside the two-letter bucket are scanned."""
        words = [s.word for s in ranker.rank("wrld", max_suggestions=10)]
        assert "world" in words
        assert "would" in words

    def test_no_candidates(self, ranker):
        assert ranker.rank("zzzzzz") == []

    def test_personal_source(self, store, ranker):
        """Test fuzzy matches on user words are tagged personal."""
        store.add_custom_word("jagoan", "id")
        suggestions = ranker.rank("jagoam")
        assert suggestions[0].word == "jagoan"
        assert suggestions[0].source is SuggestionSource.PERSONAL
        assert suggestions[0].language == "id"

    def test_case_preserved(self, ranker):
        assert ranker.rank("Wrld")[0].word == "World"


class TestContextLanguage:
    """Tests for the recent-language boost."""

    def test_context_language_most_frequent(self, ranker):
        assert ranker.context_language(["hello", "saya", "mau"]) == "id"
        assert ranker.context_language(["saya", "hello", "world"]) == "en"

    def test_context_language_unknown(self, ranker):
        assert ranker.context_language([]) is None
        assert ranker.context_language(["qqq"]) is None

    def test_context_window(self, ranker, config):
        """Test only the most recent words count."""
        config.ranking.context_language_window = 2
        assert ranker.context_language(["saya", "mau", "kamu", "hello", "world"]) == "en"

    def test_boost_reorders(self, ranker):
        """Test the context language can lift a candidate to the top."""
        without = ranker.rank("makn")
        assert without[0].word == "main"

        with_context = ranker.rank("makn", context=["saya", "mau"])
        assert with_context[0].word == "makan"
        assert with_context[0].confidence == pytest.approx(0.9)

    def test_boost_capped(self, ranker):
        for suggestion in ranker.rank("hrllo", context=["hello", "world"]):
            assert suggestion.confidence <= 1.0


class TestFakeStore:
    """The ranker works against any store with the lookup methods."""

    class FakeStore:
        words = {"world": "en", "word": "en"}

        def contains(self, word, language=None):
            return word in self.words

        def get_contraction(self, word):
            return None

        def detect_language(self, word):
            return self.words.get(word)

        def is_custom_word(self, word, language=None):
            return False

        def prefix_keys(self, initial):
            return sorted({w[:2] for w in self.words if w.startswith(initial)})

        def prefix_lookup(self, prefix):
            return frozenset(w for w in self.words if w[:2] == prefix[:2])

    def test_rank_with_fake(self, config):
        ranker = SuggestionRanker(self.FakeStore(), config=config)
        assert ranker.rank("wrld")[0].word == "world"
