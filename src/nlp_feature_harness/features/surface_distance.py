"""Token offset between the first source span and the first target span."""

from typing import Dict, Optional

from .base import VocabularyFeature


class FeatureSurfaceDistance(VocabularyFeature):
    generic_name = "SurfaceDistance"
    parameter_names = ("minFeatureOccurrence", "sourceTokenExtractor", "targetTokenExtractor")
    required_parameters = ("sourceTokenExtractor", "targetTokenExtractor")

    def __init__(self):
        super().__init__()
        self.source_token_extractor = None
        self.target_token_extractor = None

    def keys_for_datum(self, datum) -> Dict[str, float]:
        sources = self.source_token_extractor(datum)
        targets = self.target_token_extractor(datum)
        if not sources or not targets:
            return {}
        distance = targets[0].start_token_index - sources[0].start_token_index
        return {str(distance): 1.0}

    def get_parameter_value(self, name: str) -> Optional[str]:
        if name == "sourceTokenExtractor":
            return None if self.source_token_extractor is None else str(self.source_token_extractor)
        if name == "targetTokenExtractor":
            return None if self.target_token_extractor is None else str(self.target_token_extractor)
        return super().get_parameter_value(name)

    def set_parameter_value(self, name: str, value: str, data_set) -> None:
        if name == "sourceTokenExtractor":
            self.source_token_extractor = data_set.datum_tools.get_token_span_extractor(value)
        elif name == "targetTokenExtractor":
            self.target_token_extractor = data_set.datum_tools.get_token_span_extractor(value)
        else:
            super().set_parameter_value(name, value, data_set)
