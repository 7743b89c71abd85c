"""Shared base for configurable components (features, models, evaluations).

Every component declares a generic type name, an optional reference name and
the ordered names of the parameters it understands. Parameters travel as
strings through the textual protocol; each component parses them in
``set_parameter_value`` with the typed helpers below.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar, Dict, List, Optional, Sequence, Tuple

from .errors import ConfigurationError, InvalidParameterValue, UnknownParameter
from .serialization import parse_call, serialize_call, serialize_parameters, split_pair, unescape_value

if TYPE_CHECKING:
    from .features.dataset import FeaturizedDataSet

TRUE_VALUES = {"true", "1", "yes"}
FALSE_VALUES = {"false", "0", "no"}


def parse_int(name: str, value: str, minimum: Optional[int] = None) -> int:
    try:
        parsed = int(value.strip())
    except (TypeError, ValueError):
        raise InvalidParameterValue(f"Expected an integer, got '{value}'", field=name)
    if minimum is not None and parsed < minimum:
        raise InvalidParameterValue(f"Expected an integer >= {minimum}, got {parsed}", field=name)
    return parsed


def parse_float(name: str, value: str) -> float:
    try:
        return float(value.strip())
    except (TypeError, ValueError):
        raise InvalidParameterValue(f"Expected a number, got '{value}'", field=name)


def parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise InvalidParameterValue(f"Expected true/false, got '{value}'", field=name)


def parse_choice(name: str, value: str, choices: Sequence[str]) -> str:
    value = value.strip()
    if value not in choices:
        raise InvalidParameterValue(f"Expected one of {list(choices)}, got '{value}'", field=name)
    return value


class Component(ABC):
    """A named, parameterised, reconstructible piece of an experiment."""

    kind: ClassVar[str] = ""
    generic_name: ClassVar[str] = ""
    parameter_names: ClassVar[Tuple[str, ...]] = ()

    def __init__(self):
        self.reference_name: Optional[str] = None

    @abstractmethod
    def get_parameter_value(self, name: str) -> Optional[str]:
        """Return the serialized value of ``name`` or ``None`` when unset."""

    @abstractmethod
    def set_parameter_value(
        self, name: str, value: str, data_set: Optional["FeaturizedDataSet"]
    ) -> None:
        """Parse and store ``value``.

        Raises:
            UnknownParameter: ``name`` is not one of ``parameter_names``.
            InvalidParameterValue: ``value`` does not parse.
            UnresolvedReference: ``value`` names something not yet declared.
        """

    def unknown(self, name: str) -> UnknownParameter:
        return UnknownParameter(
            f"{self.generic_name} has no parameter '{name}' "
            f"(known: {', '.join(self.parameter_names) or 'none'})",
            field=name,
        )

    def parameters(self) -> List[Tuple[str, str]]:
        pairs = []
        for name in self.parameter_names:
            value = self.get_parameter_value(name)
            if value is not None:
                pairs.append((name, value))
        return pairs

    def set_parameters(
        self,
        arguments: Sequence[str],
        data_set: Optional["FeaturizedDataSet"] = None,
        ignore_unknown: bool = False,
    ) -> None:
        """Apply raw ``name=value`` call arguments in order."""
        for argument in arguments:
            name, raw = split_pair(argument)
            try:
                self.set_parameter_value(name, unescape_value(raw), data_set)
            except UnknownParameter:
                if not ignore_unknown:
                    raise
            except ConfigurationError as e:
                raise e.at(field=name)

    def to_call(self) -> str:
        return serialize_call(self.generic_name, serialize_parameters(self.parameters()))

    @property
    def name(self) -> str:
        return self.reference_name or self.to_call()

    def __repr__(self) -> str:
        ref = f"_{self.reference_name}" if self.reference_name else ""
        return f"<{self.kind}{ref} {self.to_call()}>"


def build_component(
    kind: str,
    call_text: str,
    data_set: Optional["FeaturizedDataSet"],
    reference_name: Optional[str] = None,
    ignore_unknown: bool = False,
    line: Optional[int] = None,
    registry=None,
) -> Component:
    """Resolve ``Name(...)`` through the registry and configure the instance."""
    try:
        generic_name, arguments = parse_call(call_text)
        if registry is None:
            registry = data_set.datum_tools.registry
        component = registry.make(kind, generic_name)
        component.reference_name = reference_name
        component.set_parameters(arguments, data_set, ignore_unknown=ignore_unknown)
    except ConfigurationError as e:
        raise e.at(line=line)
    return component


def copy_component(component: Component, data_set: Optional["FeaturizedDataSet"] = None) -> Component:
    """Fresh instance of the same type with identical parameters."""
    clone = type(component)()
    clone.reference_name = component.reference_name
    for name, value in component.parameters():
        clone.set_parameter_value(name, value, data_set)
    return clone


def parameter_dict(component: Component) -> Dict[str, str]:
    return dict(component.parameters())
