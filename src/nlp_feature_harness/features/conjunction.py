"""Tensor-product conjunction of other features."""

from typing import Dict, List, Optional

from ..errors import FeatureStateError
from .base import VocabularyFeature

SEPARATOR = "//"
REFERENCE_SEPARATOR = "/"


class FeatureConjunction(VocabularyFeature):
    """Flattened tensor product of the active terms of referenced features.

    Starting from ``{"": 1.0}``, each referenced feature (in order) extends every
    partial key with ``SEPARATOR + term`` (just ``term`` for the first feature)
    for each of its nonzero entries on the datum, multiplying values. Only
    active terms take part, so a datum with a_1..a_n active terms yields
    a_1 * ... * a_n composite keys.

    Referenced features are held by reference name and looked up through the
    owning data set on use; they must be declared before the conjunction.
    """

    generic_name = "Conjunction"
    parameter_names = ("minFeatureOccurrence", "featureReferences")

    def __init__(self):
        super().__init__()
        self.feature_references: List[str] = []
        self._data_set = None

    def init(self, data_set) -> None:
        self._data_set = data_set
        super().init(data_set)

    def bind(self, data_set) -> None:
        """Attach the data set used to resolve references (e.g. after restoring a vocabulary)."""
        self._data_set = data_set

    def keys_for_datum(self, datum) -> Dict[str, float]:
        if self._data_set is None:
            raise FeatureStateError(f"{self.name} is not bound to a data set")
        conjunction: Dict[str, float] = {"": 1.0}
        for position, reference in enumerate(self.feature_references):
            feature = self._data_set.get_feature_by_reference_name(reference)
            values = feature.compute_vector(datum)
            terms = feature.vocabulary_terms(values.keys())
            conjunction = {
                (key + SEPARATOR if position else "") + terms[index]: partial * value
                for key, partial in conjunction.items()
                for index, value in values.items()
                if value != 0.0
            }
        return conjunction

    def get_parameter_value(self, name: str) -> Optional[str]:
        if name == "featureReferences":
            return REFERENCE_SEPARATOR.join(self.feature_references)
        return super().get_parameter_value(name)

    def set_parameter_value(self, name: str, value: str, data_set) -> None:
        if name != "featureReferences":
            super().set_parameter_value(name, value, data_set)
            return
        references = [r.strip() for r in value.split(REFERENCE_SEPARATOR) if r.strip()]
        if data_set is not None:
            for reference in references:
                data_set.get_feature_by_reference_name(reference)
            self._data_set = data_set
        self.feature_references = references
