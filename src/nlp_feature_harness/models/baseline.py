"""Majority-label baseline."""

from collections import Counter
from typing import List, Optional, Sequence, Tuple

from ..errors import InvalidParameterValue
from .base import SupervisedModel


class MajorityLabel(SupervisedModel):
    """Predicts the most frequent training label (ties: smallest label)."""

    generic_name = "MajorityLabel"

    def __init__(self):
        super().__init__()
        self.label: Optional[str] = None

    def train(self, features, labels: Sequence[str], rng) -> None:
        counts = Counter(labels)
        if not counts:
            raise ValueError("Cannot train MajorityLabel on an empty training set")
        best = max(counts.values())
        self.label = min(label for label, count in counts.items() if count == best)
        self.is_trained = True

    def predict(self, features) -> List[str]:
        return [self.label] * features.shape[0]

    def learned_parameters(self) -> List[Tuple[str, str]]:
        return [("label", self.label)]

    def load_learned_parameters(self, entries) -> None:
        for entry in entries:
            if entry.key != "label":
                raise InvalidParameterValue(f"Unexpected learned parameter '{entry.key}'", line=entry.line)
            self.label = entry.value
        self.is_trained = self.label is not None
