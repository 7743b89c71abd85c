"""
Experiment files.

An experiment file is a stream of assignments in the textual protocol::

    randomSeed=1
    maxThreads=4
    crossValidationFolds=5
    errorExampleExtractor=source
    gridSearchParameterValues=C(0.1, 1, 10)
    feature_path=DependencyPath(minFeatureOccurrence=2, sourceTokenExtractor=source, targetTokenExtractor=target)
    feature_dist=SurfaceDistance(sourceTokenExtractor=source, targetTokenExtractor=target)
    feature_pathDist=Conjunction(minFeatureOccurrence=1, featureReferences=path/dist)
    model=LogisticRegression(C=1)
    evaluation=Accuracy()
    evaluation_f=F(mode=macro)

Features are initialised as they are read, so a feature may only refer to
features declared above it. A feature followed by a ``{ index=term }`` block is
restored from that vocabulary instead of scanning the corpus, and a model
followed by a block of learned parameters is restored as trained. The
trained-state file written by :meth:`ExperimentKCV.serialize_trained` is itself
a valid experiment file.
"""

from collections import Counter
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from loguru import logger

from ..components import build_component, parse_choice, parse_int
from ..domain.tools import TokenSpanExtractor
from ..errors import ConfigurationError, UnknownParameter
from ..evaluation.base import SupervisedModelEvaluation
from ..features.dataset import FeaturizedDataSet
from ..models.base import SupervisedModel
from ..serialization import (
    Assignment,
    ConfigReader,
    escape_value,
    parse_call,
    serialize_call,
    unescape_value,
)
from .kcv import GLOBAL, PER_FOLD, KCVResult, KFoldCrossValidation

SETTING_LABELS = (
    "randomSeed",
    "maxThreads",
    "crossValidationFolds",
    "maxErrorExamples",
    "gridSearchScope",
    "errorExampleExtractor",
    "gridSearchParameterValues",
)
COMPONENT_LABELS = ("feature", "model", "evaluation")
IGNORE_FLAG = "ignore"


class ExperimentKCV:
    """K-fold cross-validation experiment read from a configuration file."""

    def __init__(self, name: str, data_set: FeaturizedDataSet, max_threads: int = 1):
        self.name = name
        self.data_set = data_set
        self.max_threads = max_threads
        self.folds = 10
        self.max_error_examples = 10
        self.grid_scope = PER_FOLD
        self.error_example_extractor: Optional[TokenSpanExtractor] = None
        self.model: Optional[SupervisedModel] = None
        self.evaluations: List[SupervisedModelEvaluation] = []
        self.grid: Dict[str, List[str]] = {}
        self._grid_lines: Dict[str, int] = {}
        self.result: Optional[KCVResult] = None
        self.final_assignment: Dict[str, str] = {}

    @classmethod
    def from_file(
        cls, path: Union[str, Path], data_set: FeaturizedDataSet, max_threads: Optional[int] = None
    ) -> "ExperimentKCV":
        path = Path(path)
        experiment = cls(path.stem, data_set)
        experiment.deserialize(path.read_text(encoding="utf-8"))
        if max_threads is not None:
            experiment.max_threads = max_threads
        return experiment

    # Parsing ----------------------------------------------------------------

    def deserialize(self, text: str) -> None:
        """Read every assignment in ``text``.

        Raises:
            ConfigurationError: with the 1-based line of the offending assignment.
        """
        reader = ConfigReader(text)
        while True:
            assignment = reader.read_assignment()
            if assignment is None:
                break
            try:
                self._apply(assignment, reader)
            except ConfigurationError as e:
                raise e.at(line=assignment.line)

        if self.model is None:
            raise ConfigurationError("Experiment declares no model", field="model")
        if not self.evaluations:
            raise ConfigurationError("Experiment declares no evaluation", field="evaluation")
        self._validate_grid()
        logger.info(
            f"Experiment {self.name}: {len(self.data_set.features)} features, model {self.model.name}, "
            f"evaluations {[e.name for e in self.evaluations]}, grid {self.grid}"
        )

    def _apply(self, assignment: Assignment, reader: ConfigReader) -> None:
        parts = assignment.label.split("_")
        head = parts[0]
        reference = parts[1] if len(parts) > 1 and parts[1] else None
        value = assignment.value
        allowed_flags = ([], [IGNORE_FLAG]) if head == "feature" else ([],)
        if head in COMPONENT_LABELS and parts[2:] not in allowed_flags:
            raise UnknownParameter(
                f"Unexpected label '{assignment.label}': reference names cannot contain '_' "
                f"and only features take the '_{IGNORE_FLAG}' suffix",
                field=assignment.label,
            )

        if head == "feature":
            feature = build_component(
                "feature", value, self.data_set, reference_name=reference, ignore_unknown=parts[2:] == [IGNORE_FLAG]
            )
            block = reader.read_block()
            if block is not None:
                feature.load_vocabulary(block)
                self.data_set.add_feature(feature, initialize=False)
            else:
                self.data_set.add_feature(feature)
        elif head == "model":
            if self.model is not None:
                raise ConfigurationError("Experiment declares more than one model", field=assignment.label)
            model = build_component("model", value, self.data_set, reference_name=reference)
            block = reader.read_block()
            if block is not None:
                model.load_learned_parameters(block)
            self.model = model
        elif head == "evaluation":
            self.evaluations.append(build_component("evaluation", value, self.data_set, reference_name=reference))
        elif assignment.label == "randomSeed":
            self.data_set.datum_tools.set_random_seed(parse_int(assignment.label, value))
        elif assignment.label == "maxThreads":
            self.max_threads = parse_int(assignment.label, value, minimum=1)
        elif assignment.label == "crossValidationFolds":
            self.folds = parse_int(assignment.label, value, minimum=2)
        elif assignment.label == "maxErrorExamples":
            self.max_error_examples = parse_int(assignment.label, value, minimum=0)
        elif assignment.label == "gridSearchScope":
            self.grid_scope = parse_choice(assignment.label, value, (PER_FOLD, GLOBAL))
        elif assignment.label == "errorExampleExtractor":
            self.error_example_extractor = self.data_set.datum_tools.get_token_span_extractor(value)
        elif assignment.label == "gridSearchParameterValues":
            name, arguments = parse_call(value)
            if not name:
                raise ConfigurationError("Grid search values need a parameter name", field=assignment.label)
            self.grid[name] = [unescape_value(a) for a in arguments]
            self._grid_lines[name] = assignment.line
        else:
            raise UnknownParameter(
                f"Unknown experiment label '{assignment.label}' "
                f"(known: feature, model, evaluation, {', '.join(SETTING_LABELS)})",
                field=assignment.label,
            )

    def _validate_grid(self) -> None:
        for name, values in self.grid.items():
            if not values:
                raise ConfigurationError(
                    f"No values to search for '{name}'", line=self._grid_lines[name], field=name
                )
            probe = self.model.clone()
            for value in values:
                try:
                    probe.set_hyperparameter(name, value)
                except ConfigurationError as e:
                    raise e.at(line=self._grid_lines[name], field=name)

    # Running ----------------------------------------------------------------

    def run(self, show_progress: bool = False) -> KCVResult:
        validation = KFoldCrossValidation(
            self.name,
            self.model,
            self.data_set,
            self.evaluations,
            self.folds,
            random_seed=self.data_set.datum_tools.random_seed,
            grid=self.grid,
            grid_scope=self.grid_scope,
            max_error_examples=self.max_error_examples,
        )
        self.result = validation.run(
            max_threads=self.max_threads,
            error_example_extractor=self.error_example_extractor,
            show_progress=show_progress,
        )
        return self.result

    def execute(self, show_progress: bool = False) -> bool:
        """Run the cross validation; False when the primary aggregate is negative."""
        result = self.run(show_progress=show_progress)
        if result.primary_score < 0:
            logger.error(f"Experiment {self.name} failed: aggregate {result.aggregate}")
            return False
        return True

    def train_final_model(self) -> SupervisedModel:
        """Fit the configured model on every labelled datum.

        Hyperparameters are those chosen by the most folds (ties go to the
        earliest fold); without a prior run the configured values are used.
        """
        model = self.model.clone()
        self.final_assignment = self._consensus_assignment()
        for name, value in self.final_assignment.items():
            model.set_hyperparameter(name, value)

        labelled = [datum for datum in self.data_set if datum.label is not None]
        matrix, kept = self.data_set.design_matrix(labelled)
        labels = [labelled[i].label for i in kept]
        model.train(matrix, labels, self.data_set.datum_tools.make_local_random())
        logger.info(f"Trained final {model.name} on {len(labels)} datums with {self.final_assignment}")
        self.model = model
        return model

    def _consensus_assignment(self) -> Dict[str, str]:
        if self.result is None:
            return {}
        chosen = [tuple(sorted(a.items())) for a in self.result.best_assignments()]
        counts = Counter(chosen)
        best = max(counts.values())
        return dict(next(a for a in chosen if counts[a] == best))

    # Output -----------------------------------------------------------------

    def serialize_trained(self) -> str:
        """Experiment file holding feature vocabularies and the learned model."""
        lines = [
            f"randomSeed={self.data_set.datum_tools.random_seed}",
            f"maxThreads={self.max_threads}",
            f"crossValidationFolds={self.folds}",
            f"maxErrorExamples={self.max_error_examples}",
            f"gridSearchScope={self.grid_scope}",
        ]
        if self.error_example_extractor is not None:
            lines.append(f"errorExampleExtractor={self.error_example_extractor}")
        for name, values in self.grid.items():
            lines.append(f"gridSearchParameterValues={serialize_call(name, [escape_value(v) for v in values])}")
        features = self.data_set.serialize_features(include_vocabulary=True)
        if features:
            lines.append(features)
        lines.append(f"{self._label('model', self.model)}={self.model.serialize(include_parameters=True)}")
        for evaluation in self.evaluations:
            lines.append(f"{self._label('evaluation', evaluation)}={evaluation.to_call()}")
        return "\n".join(lines) + "\n"

    @staticmethod
    def _label(kind: str, component) -> str:
        return kind if component.reference_name is None else f"{kind}_{component.reference_name}"

    def summary(self) -> List[Tuple[str, float]]:
        if self.result is None:
            return []
        return [(name, self.result.aggregate[name]) for name in self.result.evaluation_names]

