"""
Component registry.

Maps a component kind ("feature", "model", "evaluation") and a generic type
name to a zero-argument factory. Built-in types are registered by
``default_registry``; extensions call ``register`` before loading a config.
"""

from typing import Callable, Dict, List

from .components import Component
from .errors import UnknownComponentType

KINDS = ("feature", "model", "evaluation")


class ComponentRegistry:
    """Registry of constructible component types by kind and generic name."""

    def __init__(self):
        self._factories: Dict[str, Dict[str, Callable[[], Component]]] = {
            kind: {} for kind in KINDS
        }

    def register(self, kind: str, generic_name: str, factory: Callable[[], Component]) -> None:
        if kind not in self._factories:
            raise ValueError(f"Unknown component kind: {kind}")
        self._factories[kind][generic_name] = factory

    def register_type(self, component_type) -> None:
        """Register a Component subclass under its own kind and generic name."""
        self.register(component_type.kind, component_type.generic_name, component_type)

    def make(self, kind: str, generic_name: str) -> Component:
        factories = self._factories.get(kind, {})
        if generic_name not in factories:
            raise UnknownComponentType(
                f"Unknown {kind} type '{generic_name}' "
                f"(registered: {', '.join(sorted(factories)) or 'none'})",
                field=generic_name,
            )
        return factories[generic_name]()

    def list_types(self, kind: str) -> List[str]:
        return sorted(self._factories.get(kind, {}))


def default_registry() -> ComponentRegistry:
    """Registry holding every built-in feature, model and evaluation."""
    from .evaluation.metrics import Accuracy, FMeasure
    from .features.conjunction import FeatureConjunction
    from .features.dependency_path import FeatureDependencyPath
    from .features.gazetteer import FeatureGazetteerContains, FeatureGazetteerPrefixTokens
    from .features.surface_distance import FeatureSurfaceDistance
    from .models.baseline import MajorityLabel
    from .models.logistic_regression import LogisticRegressionModel

    registry = ComponentRegistry()
    for component_type in (
        FeatureConjunction,
        FeatureDependencyPath,
        FeatureGazetteerContains,
        FeatureGazetteerPrefixTokens,
        FeatureSurfaceDistance,
        MajorityLabel,
        LogisticRegressionModel,
        Accuracy,
        FMeasure,
    ):
        registry.register_type(component_type)
    return registry
