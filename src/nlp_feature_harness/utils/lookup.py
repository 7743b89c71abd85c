"""Two-way term/index lookup used as the frozen vocabulary of every feature."""

from typing import Dict, Generic, Hashable, Iterator, Mapping, Optional, Tuple, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V", bound=Hashable)


class BidirectionalLookupTable(Generic[K, V]):
    """Keeps a forward (key -> value) and reverse (value -> key) map in sync.

    Both directions are plain dicts so lookups are O(1). The reverse map is
    filled during construction, so a table built from a ``Mapping`` is
    consistent from the moment it exists.
    """

    def __init__(self, forward: Optional[Mapping[K, V]] = None):
        self._forward: Dict[K, V] = dict(forward or {})
        self._reverse: Dict[V, K] = {}
        for key, value in self._forward.items():
            self._reverse[value] = key

    def contains_key(self, key: K) -> bool:
        return key in self._forward

    def reverse_contains_key(self, value: V) -> bool:
        return value in self._reverse

    def get(self, key: K) -> V:
        return self._forward[key]

    def reverse_get(self, value: V) -> K:
        return self._reverse[value]

    def put(self, key: K, value: V) -> Optional[V]:
        """Insert or overwrite ``key`` in both directions.

        Returns:
            The value previously bound to ``key``, if any.
        """
        previous = self._forward.get(key)
        if previous is not None and self._reverse.get(previous) == key:
            del self._reverse[previous]
        displaced = self._reverse.get(value)
        if displaced is not None and displaced != key:
            del self._forward[displaced]
        self._forward[key] = value
        self._reverse[value] = key
        return previous

    def items(self) -> Iterator[Tuple[K, V]]:
        return iter(self._forward.items())

    def __contains__(self, key: object) -> bool:
        return key in self._forward

    def __len__(self) -> int:
        return len(self._forward)

    def size(self) -> int:
        return len(self._forward)

    def __repr__(self) -> str:
        return f"BidirectionalLookupTable(size={len(self)})"
