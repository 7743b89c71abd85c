"""Evaluations backed by ``sklearn.metrics``."""

from typing import Optional, Sequence

from sklearn.metrics import accuracy_score, fbeta_score

from ..components import parse_choice, parse_float
from ..errors import InvalidParameterValue
from .base import SupervisedModelEvaluation

F_MODES = ("macro", "micro", "weighted")


class Accuracy(SupervisedModelEvaluation):
    generic_name = "Accuracy"

    def compute(self, actual: Sequence[str], predicted: Sequence[str]) -> float:
        if len(actual) == 0:
            return 0.0
        return float(accuracy_score(list(actual), list(predicted)))


class FMeasure(SupervisedModelEvaluation):
    """F-beta averaged over labels according to ``mode``."""

    generic_name = "F"
    parameter_names = ("mode", "beta")

    def __init__(self):
        super().__init__()
        self.mode = "macro"
        self.beta = 1.0

    def compute(self, actual: Sequence[str], predicted: Sequence[str]) -> float:
        if len(actual) == 0:
            return 0.0
        return float(
            fbeta_score(list(actual), list(predicted), beta=self.beta, average=self.mode, zero_division=0)
        )

    def get_parameter_value(self, name: str) -> Optional[str]:
        if name == "mode":
            return self.mode
        if name == "beta":
            return repr(self.beta)
        return None

    def set_parameter_value(self, name: str, value: str, data_set) -> None:
        if name == "mode":
            self.mode = parse_choice(name, value, F_MODES)
        elif name == "beta":
            beta = parse_float(name, value)
            if beta <= 0:
                raise InvalidParameterValue(f"beta must be positive, got {beta}", field=name)
            self.beta = beta
        else:
            raise self.unknown(name)
