"""
Supervised model contract.

Models are configured through the same parameter protocol as features; the
parameters double as the hyperparameters a grid search may vary. Learned
state is written to and read from a ``{ key=value }`` block.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import List, Optional, Sequence, Tuple

import numpy as np
from scipy import sparse

from ..components import Component, copy_component
from ..serialization import BlockEntry, serialize_block


class SupervisedModel(Component):
    kind = "model"

    def __init__(self):
        super().__init__()
        self.is_trained = False

    def set_hyperparameter(self, name: str, value: str) -> None:
        self.set_parameter_value(name, value, None)

    def clone(self) -> "SupervisedModel":
        """Untrained copy with the same configuration."""
        return copy_component(self)

    @abstractmethod
    def train(self, features: sparse.csr_matrix, labels: Sequence[str], rng: np.random.Generator) -> None:
        """Fit on ``features`` rows; ``rng`` is the caller's local generator."""

    @abstractmethod
    def predict(self, features: sparse.csr_matrix) -> List[str]:
        pass

    @abstractmethod
    def learned_parameters(self) -> List[Tuple[str, str]]:
        """Learned state as ordered ``(key, value)`` pairs."""

    @abstractmethod
    def load_learned_parameters(self, entries: Sequence[BlockEntry]) -> None:
        pass

    def serialize(self, include_parameters: bool = True) -> str:
        text = self.to_call()
        if include_parameters and self.is_trained:
            text += "\n" + serialize_block(self.learned_parameters())
        return text

    def get_parameter_value(self, name: str) -> Optional[str]:
        return None

    def set_parameter_value(self, name: str, value: str, data_set) -> None:
        raise self.unknown(name)
