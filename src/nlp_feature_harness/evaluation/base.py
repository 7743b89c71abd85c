"""Evaluation contract: reduce true/predicted labels to one scalar (higher is better)."""

from abc import abstractmethod
from typing import Optional, Sequence

from ..components import Component


class SupervisedModelEvaluation(Component):
    kind = "evaluation"

    @abstractmethod
    def compute(self, actual: Sequence[str], predicted: Sequence[str]) -> float:
        pass

    def get_parameter_value(self, name: str) -> Optional[str]:
        return None

    def set_parameter_value(self, name: str, value: str, data_set) -> None:
        raise self.unknown(name)
