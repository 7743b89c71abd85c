"""Shortest dependency-tree paths between source and target token spans."""

from typing import Dict, Optional

from ..components import parse_bool
from ..domain.datum import DependencyPath, TokenSpan
from .base import VocabularyFeature


def shortest_path_between(source: TokenSpan, target: TokenSpan) -> Optional[DependencyPath]:
    """Shortest path over every token pair of the two spans.

    Spans in different sentences (or without a sentence) have no path and
    give ``None``. Among equally short paths the first found while iterating
    source tokens, then target tokens, in order wins.
    """
    if (
        source.sentence_index < 0
        or target.sentence_index < 0
        or source.sentence_index != target.sentence_index
    ):
        return None

    parse = source.document.get_dependency_parse(source.sentence_index)
    shortest = None
    for i in range(source.start_token_index, source.end_token_index):
        for j in range(target.start_token_index, target.end_token_index):
            path = parse.get_path(i, j)
            if path is None:
                continue
            if shortest is None or path.token_length < shortest.token_length:
                shortest = path
    return shortest


class FeatureDependencyPath(VocabularyFeature):
    """Binary indicators of the dependency paths linking a datum's spans.

    For every (source span, target span) pair in the same sentence the shortest
    path is rendered (typed by relation labels when ``useRelationTypes``) and
    becomes a vocabulary key with value 1.0.
    """

    generic_name = "DependencyPath"
    parameter_names = (
        "minFeatureOccurrence",
        "sourceTokenExtractor",
        "targetTokenExtractor",
        "useRelationTypes",
    )
    required_parameters = ("sourceTokenExtractor", "targetTokenExtractor")

    def __init__(self):
        super().__init__()
        self.source_token_extractor = None
        self.target_token_extractor = None
        self.use_relation_types = True

    def keys_for_datum(self, datum) -> Dict[str, float]:
        paths: Dict[str, float] = {}
        sources = self.source_token_extractor(datum)
        targets = self.target_token_extractor(datum)
        for source in sources:
            for target in targets:
                path = shortest_path_between(source, target)
                if path is None:
                    continue
                paths[path.to_string(self.use_relation_types)] = 1.0
        return paths

    def get_parameter_value(self, name: str) -> Optional[str]:
        if name == "sourceTokenExtractor":
            return None if self.source_token_extractor is None else str(self.source_token_extractor)
        if name == "targetTokenExtractor":
            return None if self.target_token_extractor is None else str(self.target_token_extractor)
        if name == "useRelationTypes":
            return str(self.use_relation_types).lower()
        return super().get_parameter_value(name)

    def set_parameter_value(self, name: str, value: str, data_set) -> None:
        if name == "sourceTokenExtractor":
            self.source_token_extractor = data_set.datum_tools.get_token_span_extractor(value)
        elif name == "targetTokenExtractor":
            self.target_token_extractor = data_set.datum_tools.get_token_span_extractor(value)
        elif name == "useRelationTypes":
            self.use_relation_types = parse_bool(name, value)
        else:
            super().set_parameter_value(name, value, data_set)
