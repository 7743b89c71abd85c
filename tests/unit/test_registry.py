"""Tests for the component registry and parameter protocol."""

import pytest

from nlp_feature_harness.components import build_component, copy_component, parameter_dict
from nlp_feature_harness.errors import (
    InvalidParameterValue,
    UnknownComponentType,
    UnknownParameter,
    UnresolvedReference,
)
from nlp_feature_harness.evaluation.base import SupervisedModelEvaluation
from nlp_feature_harness.registry import ComponentRegistry, default_registry


class Constant(SupervisedModelEvaluation):
    generic_name = "Constant"

    def compute(self, actual, predicted):
        return 0.5


def test_default_registry_lists_builtins():
    registry = default_registry()
    assert registry.list_types("feature") == [
        "Conjunction",
        "DependencyPath",
        "GazetteerContains",
        "GazetteerPrefixTokens",
        "SurfaceDistance",
    ]
    assert registry.list_types("model") == ["LogisticRegression", "MajorityLabel"]
    assert registry.list_types("evaluation") == ["Accuracy", "F"]


def test_unknown_type_names_registered_alternatives():
    with pytest.raises(UnknownComponentType) as excinfo:
        default_registry().make("model", "SVM")
    assert "LogisticRegression" in str(excinfo.value)


def test_register_extension_type():
    registry = default_registry()
    registry.register_type(Constant)

    evaluation = registry.make("evaluation", "Constant")

    assert isinstance(evaluation, Constant)
    assert evaluation.compute([], []) == 0.5


def test_register_rejects_unknown_kind():
    with pytest.raises(ValueError):
        ComponentRegistry().register("tokenizer", "X", Constant)


def test_build_component_sets_parameters(data_set):
    feature = build_component(
        "feature",
        "DependencyPath(minFeatureOccurrence=3, sourceTokenExtractor=source, targetTokenExtractor=target, useRelationTypes=false)",
        data_set,
        reference_name="path",
    )
    assert feature.reference_name == "path"
    assert parameter_dict(feature) == {
        "minFeatureOccurrence": "3",
        "sourceTokenExtractor": "source",
        "targetTokenExtractor": "target",
        "useRelationTypes": "false",
    }


def test_serialized_call_builds_equivalent_component(data_set):
    original = build_component("evaluation", "F(mode=micro, beta=0.5)", data_set)
    rebuilt = build_component("evaluation", original.to_call(), data_set)
    assert parameter_dict(rebuilt) == parameter_dict(original)
    assert rebuilt.to_call() == "F(mode=micro, beta=0.5)"


def test_unknown_parameter_reports_field_and_line(data_set):
    with pytest.raises(UnknownParameter) as excinfo:
        build_component("feature", "SurfaceDistance(bogus=1)", data_set, line=12)
    assert excinfo.value.field == "bogus"
    assert excinfo.value.line == 12
    assert "line 12" in str(excinfo.value)


def test_ignore_unknown_parameters(data_set):
    feature = build_component(
        "feature", "SurfaceDistance(bogus=1, minFeatureOccurrence=4)", data_set, ignore_unknown=True
    )
    assert feature.min_feature_occurrence == 4


def test_invalid_parameter_value(data_set):
    with pytest.raises(InvalidParameterValue) as excinfo:
        build_component("feature", "SurfaceDistance(minFeatureOccurrence=two)", data_set)
    assert excinfo.value.field == "minFeatureOccurrence"


def test_unresolved_extractor(data_set):
    with pytest.raises(UnresolvedReference):
        build_component("feature", "SurfaceDistance(sourceTokenExtractor=nowhere)", data_set)


def test_copy_component_is_fresh_instance():
    model = default_registry().make("model", "LogisticRegression")
    model.set_hyperparameter("C", "0.25")

    clone = copy_component(model)

    assert clone is not model
    assert parameter_dict(clone) == parameter_dict(model)
    assert not clone.is_trained
