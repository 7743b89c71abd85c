"""Histogram of hashable keys used while building feature vocabularies."""

from collections import Counter
from typing import Dict, Generic, Hashable, List, TypeVar

T = TypeVar("T", bound=Hashable)


class CounterTable(Generic[T]):
    """Counts occurrences, prunes rare keys and builds a dense index.

    Iteration follows insertion order of the backing ``Counter``, so
    ``build_index`` is deterministic for a given sequence of increments.
    """

    def __init__(self):
        self.counts: Counter = Counter()

    def increment(self, key: T) -> int:
        self.counts[key] += 1
        return self.counts[key]

    def prune_below(self, min_count: int) -> int:
        """Remove every key seen fewer than ``min_count`` times.

        Returns:
            Number of keys removed.
        """
        to_remove = [key for key, count in self.counts.items() if count < min_count]
        for key in to_remove:
            del self.counts[key]
        return len(to_remove)

    def build_index(self) -> Dict[T, int]:
        """Assign each surviving key a distinct index in ``[0, size)``."""
        return {key: i for i, key in enumerate(self.counts)}

    def sorted_by_count(self) -> Dict[int, List[T]]:
        """Map each count to the keys having it, in ascending count order."""
        grouped: Dict[int, List[T]] = {}
        for key, count in self.counts.items():
            grouped.setdefault(count, []).append(key)
        return {count: grouped[count] for count in sorted(grouped)}

    def get(self, key: T) -> int:
        return self.counts.get(key, 0)

    def keys(self) -> List[T]:
        return list(self.counts)

    def __len__(self) -> int:
        return len(self.counts)
