"""
Gazetteer features.

One generic algorithm: take the string a datum yields, reduce a string-pair
measure over every gazetteer entry with an extremum (max or min), then map the
extremum to the feature value. Subclasses pick the measure, the extremum and
the mapping.
"""

from abc import abstractmethod
from typing import Optional

from ..components import parse_choice, parse_int
from ..domain.gazetteer import exact_match, prefix_token_overlap
from ..utils.lookup import BidirectionalLookupTable
from .base import Feature, SparseVector

MAXIMUM = "max"
MINIMUM = "min"


class FeatureGazetteer(Feature):
    """Single-term feature holding ``extremum_{g in G} measure(S(d), g)``."""

    parameter_names = ("gazetteer", "stringExtractor", "extremumType")
    required_parameters = ("gazetteer", "stringExtractor")
    default_extremum = MAXIMUM

    def __init__(self):
        super().__init__()
        self.gazetteer = None
        self.string_extractor = None
        self.extremum_type = self.default_extremum

    @abstractmethod
    def measure(self, text: str, entry: str) -> float:
        """Score of ``text`` against one gazetteer entry."""

    def compute_extremum(self, text: str) -> float:
        if self.extremum_type == MAXIMUM:
            return self.gazetteer.max(text, self.measure)
        return self.gazetteer.min(text, self.measure)

    def value_for(self, extremum: float) -> float:
        return extremum

    def init(self, data_set) -> None:
        self.check_required_parameters()
        self.vocabulary = BidirectionalLookupTable({self.gazetteer.name: 0})
        self._initialized = True

    def compute_vector(self, datum) -> SparseVector:
        self._require_initialized()
        value = self.value_for(self.compute_extremum(self.string_extractor(datum)))
        if value == 0.0:
            return {}
        return {0: value}

    def get_parameter_value(self, name: str) -> Optional[str]:
        if name == "gazetteer":
            return None if self.gazetteer is None else self.gazetteer.name
        if name == "stringExtractor":
            return None if self.string_extractor is None else str(self.string_extractor)
        if name == "extremumType":
            return self.extremum_type
        return None

    def set_parameter_value(self, name: str, value: str, data_set) -> None:
        if name == "gazetteer":
            self.gazetteer = data_set.datum_tools.get_gazetteer(value)
        elif name == "stringExtractor":
            self.string_extractor = data_set.datum_tools.get_string_extractor(value)
        elif name == "extremumType":
            self.extremum_type = parse_choice(name, value, (MAXIMUM, MINIMUM))
        else:
            raise self.unknown(name)


class FeatureGazetteerContains(FeatureGazetteer):
    """1.0 when the extracted string is a gazetteer entry."""

    generic_name = "GazetteerContains"

    def measure(self, text: str, entry: str) -> float:
        return exact_match(text, entry)

    def compute_extremum(self, text: str) -> float:
        if self.extremum_type == MAXIMUM:
            return 1.0 if self.gazetteer.contains(text) else 0.0
        return super().compute_extremum(text)


class FeatureGazetteerPrefixTokens(FeatureGazetteer):
    """1.0 when some entry shares at least ``minTokens`` leading tokens."""

    generic_name = "GazetteerPrefixTokens"
    parameter_names = FeatureGazetteer.parameter_names + ("minTokens",)

    def __init__(self):
        super().__init__()
        self.min_tokens = 2

    def measure(self, text: str, entry: str) -> float:
        return prefix_token_overlap(text, entry)

    def value_for(self, extremum: float) -> float:
        return 1.0 if extremum >= self.min_tokens else 0.0

    def get_parameter_value(self, name: str) -> Optional[str]:
        if name == "minTokens":
            return str(self.min_tokens)
        return super().get_parameter_value(name)

    def set_parameter_value(self, name: str, value: str, data_set) -> None:
        if name == "minTokens":
            self.min_tokens = parse_int(name, value, minimum=0)
        else:
            super().set_parameter_value(name, value, data_set)
