"""
Prefix index over the combined word sets.

Words are bucketed by their first two characters (a one-character word
is its own key). The index is never patched: a mutation invalidates it
and the next lookup builds a fresh map and swaps it in whole.
"""

import threading
from collections import defaultdict
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple

from ..config_logging import get_logger

logger = get_logger(__name__)

PREFIX_LENGTH = 2

_EMPTY: FrozenSet[str] = frozenset()


def prefix_key(word: str) -> str:
    """Bucket key for a word or lookup prefix."""
    return word[:PREFIX_LENGTH]


class PrefixIndex:
    """
    Lazily built prefix -> words map with build-and-swap rebuilds.

    `source` returns every word to index; it is called with `lock` held,
    and the owner takes the same lock for every mutation, so a rebuild
    and a mutation never overlap. Readers of a stable index take no lock.
    """

    def __init__(self, source: Callable[[], Iterable[str]],
                 lock: Optional[threading.RLock] = None):
        self._source = source
        self._lock = lock or threading.RLock()
        # (prefix -> words, initial -> sorted prefixes), published together
        self._snapshot: Optional[Tuple[Dict[str, FrozenSet[str]], Dict[str, List[str]]]] = None
        self.build_count = 0

    @property
    def is_built(self) -> bool:
        return self._snapshot is not None

    def invalidate(self):
        """Drop the current index; the next lookup rebuilds it."""
        with self._lock:
            self._snapshot = None

    def lookup(self, prefix: str) -> FrozenSet[str]:
        """
        Words starting with `prefix` (lowercased).

        A prefix up to the bucket length returns its whole bucket; a longer
        one filters that bucket.
        """
        if not prefix:
            return _EMPTY
        prefix = prefix.lower()
        index, _ = self._ensure_built()
        bucket = index.get(prefix_key(prefix), _EMPTY)
        if len(prefix) <= PREFIX_LENGTH:
            return bucket
        return frozenset(word for word in bucket if word.startswith(prefix))

    def keys_with_initial(self, initial: str) -> List[str]:
        """Every bucket key starting with `initial`, sorted."""
        if not initial:
            return []
        _, by_initial = self._ensure_built()
        return list(by_initial.get(initial[0].lower(), ()))

    def __len__(self) -> int:
        index, _ = self._ensure_built()
        return len(index)

    def _ensure_built(self):
        snapshot = self._snapshot
        if snapshot is not None:
            return snapshot
        with self._lock:
            # Another reader may have finished the build while we waited
            if self._snapshot is None:
                self._build()
            return self._snapshot

    def _build(self):
        buckets = defaultdict(set)
        for word in self._source():
            if word:
                buckets[prefix_key(word)].add(word)

        index = {key: frozenset(words) for key, words in buckets.items()}
        by_initial = defaultdict(list)
        for key in sorted(index):
            by_initial[key[0]].append(key)

        self._snapshot = (index, dict(by_initial))
        self.build_count += 1
        logger.debug(f"Prefix index built: {len(index)} buckets",
                     bucket_count=len(index))
