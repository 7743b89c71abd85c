"""Tests for experiment files: parsing, errors with locations, runs and trained state."""

import pytest

from nlp_feature_harness.errors import (
    ConfigurationError,
    InvalidParameterValue,
    UnknownComponentType,
    UnknownParameter,
    UnresolvedReference,
)
from nlp_feature_harness.experiment.experiment import ExperimentKCV
from nlp_feature_harness.features.dataset import FeaturizedDataSet

CONFIG = """\
# tiny experiment
randomSeed=3
crossValidationFolds=2
maxThreads=2
maxErrorExamples=2
errorExampleExtractor=source
gridSearchParameterValues=C(0.1, 10)
feature_path=DependencyPath(minFeatureOccurrence=1, sourceTokenExtractor=source, targetTokenExtractor=target)
feature_dist=SurfaceDistance(sourceTokenExtractor=source, targetTokenExtractor=target)
feature_pathDist=Conjunction(featureReferences=path/dist)
feature_org_ignore=GazetteerContains(gazetteer=companies, stringExtractor=name, addedInLaterVersion=1)
model=LogisticRegression(maxIter=200)
evaluation=Accuracy()
evaluation_f=F(mode=macro)
"""


def _load(data_set, text):
    experiment = ExperimentKCV("tiny", data_set)
    experiment.deserialize(text)
    return experiment


def test_parse_configuration(data_set):
    experiment = _load(data_set, CONFIG)

    assert experiment.folds == 2
    assert experiment.max_threads == 2
    assert experiment.max_error_examples == 2
    assert experiment.grid == {"C": ["0.1", "10"]}
    assert str(experiment.error_example_extractor) == "source"
    assert data_set.datum_tools.random_seed == 3
    assert [f.reference_name for f in data_set.features] == ["path", "dist", "pathDist", "org"]
    assert all(f.is_initialized for f in data_set.features)
    assert experiment.model.max_iter == 200
    assert [e.name for e in experiment.evaluations] == ["Accuracy()", "f"]


@pytest.mark.parametrize(
    "text,error,line",
    [
        ("crossValidationFolds=2\nmodel=MajorityLabel()\nfolds=3\n", UnknownParameter, 3),
        ("\n\nmodel=NaiveBayes()\n", UnknownComponentType, 3),
        ("feature_c=Conjunction(featureReferences=later)\n", UnresolvedReference, 1),
        ("model=LogisticRegression()\n# grid\ngridSearchParameterValues=C(1, -2)\nevaluation=Accuracy()\n", InvalidParameterValue, 3),
        ("crossValidationFolds=one\n", InvalidParameterValue, 1),
        ("model=MajorityLabel()\nmodel=MajorityLabel()\n", ConfigurationError, 2),
        ("model=MajorityLabel()\nevaluation=Accuracy(weight=2)\n", UnknownParameter, 2),
        ("model=MajorityLabel()\nfeature_my_ref=SurfaceDistance(sourceTokenExtractor=source)\n", UnknownParameter, 2),
        ("model_base_ignore=MajorityLabel()\n", UnknownParameter, 1),
    ],
)
def test_configuration_errors_report_line(data_set, text, error, line):
    with pytest.raises(error) as excinfo:
        _load(data_set, text)
    assert excinfo.value.line == line
    assert f"line {line}" in str(excinfo.value)


@pytest.mark.parametrize(
    "declaration,field",
    [
        ("feature_x=DependencyPath(minFeatureOccurrence=1)", "sourceTokenExtractor"),
        ("feature_x=SurfaceDistance(sourceTokenExtractor=source)", "targetTokenExtractor"),
        ("feature_x=GazetteerContains(stringExtractor=name)", "gazetteer"),
        ("feature_x=GazetteerPrefixTokens(gazetteer=companies)", "stringExtractor"),
        ("feature_x=SurfaceDistance()\n{\n\t0=2\n}", "sourceTokenExtractor"),
    ],
)
def test_missing_required_feature_parameter(data_set, declaration, field):
    text = f"model=MajorityLabel()\n{declaration}\nevaluation=Accuracy()\n"
    with pytest.raises(InvalidParameterValue) as excinfo:
        _load(data_set, text)
    assert excinfo.value.line == 2
    assert excinfo.value.field == field
    assert data_set.features == []


def test_missing_model_or_evaluation(data_set):
    with pytest.raises(ConfigurationError, match="no model"):
        _load(data_set, "crossValidationFolds=2\n")
    with pytest.raises(ConfigurationError, match="no evaluation"):
        _load(FeaturizedDataSet("again", data_set.data, data_set.datum_tools), "model=MajorityLabel()\n")


def test_execute_and_restore_trained_state(data_set):
    experiment = _load(data_set, CONFIG)

    assert experiment.execute()
    result = experiment.result
    assert len(result.folds) == 2
    assert set(result.aggregate) == {"Accuracy()", "f"}
    assert experiment.final_assignment == {}

    experiment.train_final_model()
    assert experiment.final_assignment in ({"C": "0.1"}, {"C": "10"})
    trained = experiment.serialize_trained()

    fresh = FeaturizedDataSet("fresh", data_set.data, data_set.datum_tools)
    restored = _load(fresh, trained)

    assert restored.model.is_trained
    assert restored.grid == experiment.grid
    for original, copy in zip(data_set.features, fresh.features):
        assert copy.to_call() == original.to_call()
        assert copy.vocabulary_size() == original.vocabulary_size()
        for datum in data_set:
            assert copy.compute_vector(datum) == original.compute_vector(datum)

    matrix, _ = fresh.design_matrix()
    assert restored.model.predict(matrix) == experiment.model.predict(data_set.design_matrix()[0])


def test_experiment_from_file(data_set, tmp_path):
    path = tmp_path / "tiny.experiment"
    path.write_text(CONFIG, encoding="utf-8")

    experiment = ExperimentKCV.from_file(path, data_set, max_threads=1)

    assert experiment.name == "tiny"
    assert experiment.max_threads == 1
