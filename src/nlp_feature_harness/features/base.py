"""
Feature contract.

A feature turns one datum into a sparse vector ``{index: value}`` over a
vocabulary it builds once from a corpus:

    Unconfigured --set_parameter_value*--> Unconfigured
    Unconfigured --init(corpus)----------> Initialized
    Initialized  --compute_vector--------> Usable

``init`` replaces the vocabulary wholesale. ``compute_vector`` never mutates
the vocabulary, so initialised features may be read from many threads.
Keys missing from the vocabulary are dropped silently.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Tuple

from loguru import logger

from ..components import Component, parse_int
from ..errors import ExtractionMismatch, FeatureStateError, InvalidParameterValue
from ..serialization import BlockEntry, serialize_block
from ..utils.counter_table import CounterTable
from ..utils.lookup import BidirectionalLookupTable

if TYPE_CHECKING:
    from ..domain.datum import Datum
    from .dataset import FeaturizedDataSet

SparseVector = Dict[int, float]


class Feature(Component):
    kind = "feature"
    required_parameters: Tuple[str, ...] = ()

    def __init__(self):
        super().__init__()
        self.vocabulary: BidirectionalLookupTable[str, int] = BidirectionalLookupTable()
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @abstractmethod
    def init(self, data_set: "FeaturizedDataSet") -> None:
        """Scan ``data_set`` and freeze the vocabulary."""

    @abstractmethod
    def compute_vector(self, datum: "Datum") -> SparseVector:
        """Sparse vector for ``datum`` with indices in ``[0, vocabulary_size())``."""

    def vocabulary_size(self) -> int:
        return len(self.vocabulary)

    def vocabulary_term(self, index: int) -> str:
        return self.vocabulary.reverse_get(index)

    def vocabulary_terms(self, indices: Iterable[int]) -> Dict[int, str]:
        return {index: self.vocabulary.reverse_get(index) for index in indices}

    def set_vocabulary_term(self, index: int, term: str) -> None:
        """Load one vocabulary entry from persisted state instead of scanning a corpus."""
        self.vocabulary.put(term, index)
        self._initialized = True

    def load_vocabulary(self, entries: Iterable[BlockEntry]) -> None:
        self.check_required_parameters()
        self.vocabulary = BidirectionalLookupTable()
        for entry in entries:
            index = parse_int("vocabulary index", entry.key, minimum=0)
            self.set_vocabulary_term(index, entry.value)
        size = len(self.vocabulary)
        if any(not self.vocabulary.reverse_contains_key(i) for i in range(size)):
            raise InvalidParameterValue(
                f"Vocabulary indices of {self.name} are not dense in [0, {size})"
            )
        self._initialized = True

    def serialize(self, include_vocabulary: bool = True) -> str:
        text = self.to_call()
        if include_vocabulary and self._initialized:
            terms = sorted(self.vocabulary.items(), key=lambda kv: kv[1])
            text += "\n" + serialize_block((str(index), term) for term, index in terms)
        return text

    def check_required_parameters(self) -> None:
        for name in self.required_parameters:
            if self.get_parameter_value(name) is None:
                raise InvalidParameterValue(f"{self.generic_name} needs a value for '{name}'", field=name)

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise FeatureStateError(f"Feature {self.name} used before init")


class VocabularyFeature(Feature):
    """Feature whose vocabulary is the set of keys its datums produce.

    Subclasses implement ``keys_for_datum``; counting, pruning below
    ``minFeatureOccurrence`` and index assignment happen here.
    """

    parameter_names: Tuple[str, ...] = ("minFeatureOccurrence",)

    def __init__(self):
        super().__init__()
        self.min_feature_occurrence = 1

    @abstractmethod
    def keys_for_datum(self, datum: "Datum") -> Dict[str, float]:
        """Unfiltered ``{key: value}`` evidence for ``datum``."""

    def init(self, data_set: "FeaturizedDataSet") -> None:
        self.check_required_parameters()
        counter: CounterTable[str] = CounterTable()
        skipped = 0
        for datum in data_set:
            try:
                keys = self.keys_for_datum(datum)
            except ExtractionMismatch as e:
                skipped += 1
                logger.warning(f"Skipping datum {datum.id} while initialising {self.name}: {e}")
                continue
            for key in keys:
                counter.increment(key)

        seen = len(counter)
        counter.prune_below(self.min_feature_occurrence)
        self.vocabulary = BidirectionalLookupTable(counter.build_index())
        self._initialized = True
        logger.info(
            f"Initialised {self.name}: {len(self.vocabulary)} of {seen} terms kept "
            f"(minFeatureOccurrence={self.min_feature_occurrence}, skipped={skipped})"
        )
        logger.debug(f"{self.name} term counts by frequency: {self._count_summary(counter)}")

    @staticmethod
    def _count_summary(counter: CounterTable) -> List[Tuple[int, int]]:
        return [(count, len(keys)) for count, keys in counter.sorted_by_count().items()]

    def compute_vector(self, datum: "Datum") -> SparseVector:
        self._require_initialized()
        vector: SparseVector = {}
        for key, value in self.keys_for_datum(datum).items():
            if self.vocabulary.contains_key(key):
                vector[self.vocabulary.get(key)] = value
        return vector

    def get_parameter_value(self, name: str) -> Optional[str]:
        if name == "minFeatureOccurrence":
            return str(self.min_feature_occurrence)
        return None

    def set_parameter_value(self, name: str, value: str, data_set) -> None:
        if name == "minFeatureOccurrence":
            self.min_feature_occurrence = parse_int(name, value, minimum=0)
        else:
            raise self.unknown(name)
