"""Gazetteers and the string measures computed against them."""

import re
from typing import Callable, Iterable, Optional

StringPairMeasure = Callable[[str, str], float]

_WHITESPACE = re.compile(r"\s+")


def clean_string(text: str) -> str:
    """Lower-case and collapse whitespace."""
    return _WHITESPACE.sub(" ", text.strip().lower())


def prefix_token_overlap(first: str, second: str) -> float:
    """Number of leading whitespace tokens the two strings share."""
    count = 0
    for a, b in zip(first.split(), second.split()):
        if a != b:
            break
        count += 1
    return float(count)


def exact_match(first: str, second: str) -> float:
    return 1.0 if first == second else 0.0


class Gazetteer:
    """A named set of canonical strings, cleaned on the way in and on lookup."""

    def __init__(
        self,
        name: str,
        entries: Iterable[str],
        clean_fn: Optional[Callable[[str], str]] = clean_string,
    ):
        self.name = name
        self.clean_fn = clean_fn or (lambda s: s)
        self._entries = frozenset(self.clean_fn(entry) for entry in entries)

    def clean(self, text: str) -> str:
        return self.clean_fn(text)

    def contains(self, text: str) -> bool:
        return self.clean(text) in self._entries

    def max(self, text: str, measure: StringPairMeasure) -> float:
        """Largest ``measure(text, entry)`` over all entries (``-inf`` if empty)."""
        cleaned = self.clean(text)
        return max((measure(cleaned, entry) for entry in self._entries), default=float("-inf"))

    def min(self, text: str, measure: StringPairMeasure) -> float:
        """Smallest ``measure(text, entry)`` over all entries (``inf`` if empty)."""
        cleaned = self.clean(text)
        return min((measure(cleaned, entry) for entry in self._entries), default=float("inf"))

    @property
    def entries(self) -> frozenset:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Gazetteer(name={self.name!r}, size={len(self)})"
