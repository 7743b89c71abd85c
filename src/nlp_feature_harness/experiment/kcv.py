"""
K-fold cross-validation with optional grid search.

The corpus is featurized once (features are frozen before any fold work), the
rows are split into k folds from a seeded permutation, and every
(fold, hyperparameter assignment) unit trains a fresh model on the other folds
and scores the held-out fold. Units run on a thread pool; results are
reassembled in (fold, assignment) order before selection so the outcome does
not depend on scheduling.
"""

from __future__ import annotations

import itertools
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import orjson
from loguru import logger
from scipy import sparse
from tqdm import tqdm

from ..components import parse_choice
from ..domain.tools import TokenSpanExtractor
from ..errors import FoldExecutionError, InvalidParameterValue
from ..evaluation.base import SupervisedModelEvaluation
from ..features.dataset import FeaturizedDataSet
from ..models.base import SupervisedModel

PER_FOLD = "perFold"
GLOBAL = "global"


def partition_folds(size: int, k: int, rng: np.random.Generator) -> List[np.ndarray]:
    """Split ``range(size)`` into ``k`` disjoint contiguous blocks of a random permutation."""
    if k < 2:
        raise InvalidParameterValue(f"Need at least 2 folds, got {k}", field="crossValidationFolds")
    if k > size:
        raise InvalidParameterValue(
            f"Cannot split {size} datums into {k} folds", field="crossValidationFolds"
        )
    permutation = rng.permutation(size)
    return [np.sort(block) for block in np.array_split(permutation, k)]


def enumerate_grid(grid: Mapping[str, Sequence[str]]) -> List[Dict[str, str]]:
    """Cartesian product of the grid in declaration order; ``[{}]`` when empty."""
    if not grid:
        return [{}]
    names = list(grid)
    return [dict(zip(names, values)) for values in itertools.product(*(grid[n] for n in names))]


@dataclass
class UnitResult:
    fold: int
    assignment_index: int
    assignment: Dict[str, str]
    scores: Dict[str, float]
    error_examples: List[str] = field(default_factory=list)


@dataclass
class FoldResult:
    fold: int
    train_size: int
    test_size: int
    best_assignment: Dict[str, str]
    scores: Dict[str, float]
    error_examples: List[str] = field(default_factory=list)


@dataclass
class KCVResult:
    name: str
    evaluation_names: List[str]
    folds: List[FoldResult]
    aggregate: Dict[str, float]
    units: List[UnitResult] = field(default_factory=list)

    @property
    def primary_score(self) -> float:
        return self.aggregate[self.evaluation_names[0]]

    def aggregate_scores(self) -> List[float]:
        return [self.aggregate[name] for name in self.evaluation_names]

    def best_assignments(self) -> List[Dict[str, str]]:
        return [fold.best_assignment for fold in self.folds]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "evaluations": self.evaluation_names,
            "aggregate": self.aggregate,
            "folds": [asdict(fold) for fold in self.folds],
            "grid": [asdict(unit) for unit in self.units],
        }

    def write_json(self, path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(orjson.dumps(self.to_dict(), option=orjson.OPT_INDENT_2))
        logger.info(f"Wrote results for {self.name} to {path}")
        return path


class KFoldCrossValidation:
    def __init__(
        self,
        name: str,
        model: SupervisedModel,
        data_set: FeaturizedDataSet,
        evaluations: Sequence[SupervisedModelEvaluation],
        folds: int,
        random_seed: Optional[int] = None,
        grid: Optional[Mapping[str, Sequence[str]]] = None,
        grid_scope: str = PER_FOLD,
        max_error_examples: int = 10,
    ):
        if not evaluations:
            raise InvalidParameterValue("At least one evaluation is required", field="evaluation")
        self.name = name
        self.model = model
        self.data_set = data_set
        self.evaluations = list(evaluations)
        self.folds = folds
        self.random_seed = data_set.datum_tools.random_seed if random_seed is None else random_seed
        self.grid: Dict[str, List[str]] = {k: list(v) for k, v in (grid or {}).items()}
        self.grid_scope = parse_choice("gridSearchScope", grid_scope, (PER_FOLD, GLOBAL))
        self.max_error_examples = max_error_examples

    def run(
        self,
        max_threads: int = 1,
        error_example_extractor: Optional[TokenSpanExtractor] = None,
        show_progress: bool = False,
    ) -> KCVResult:
        """Run every (fold, assignment) unit and aggregate.

        Raises:
            FoldExecutionError: a unit raised; units not yet started never run.
        """
        labelled = [i for i, datum in enumerate(self.data_set) if datum.label is not None]
        data = [self.data_set[i] for i in labelled]
        matrix, kept = self.data_set.design_matrix(data)
        data = [data[i] for i in kept]
        labels = np.asarray([datum.label for datum in data], dtype=object)

        rng = np.random.default_rng(self.random_seed)
        fold_rows = partition_folds(len(data), self.folds, rng)
        assignments = enumerate_grid(self.grid)
        units = [(f, a) for f in range(self.folds) for a in range(len(assignments))]
        seeds = rng.integers(0, 2**32 - 1, size=len(units), dtype=np.uint64)

        logger.info(
            f"{self.name}: {len(data)} datums, {self.folds} folds, "
            f"{len(assignments)} hyperparameter assignment(s), {len(units)} units on {max_threads} thread(s)"
        )

        def run_unit(unit_index: int) -> UnitResult:
            fold, assignment_index = units[unit_index]
            test_rows = fold_rows[fold]
            train_rows = np.sort(np.concatenate([rows for i, rows in enumerate(fold_rows) if i != fold]))
            return self._run_unit(
                fold,
                assignment_index,
                assignments[assignment_index],
                matrix,
                labels,
                train_rows,
                test_rows,
                data,
                int(seeds[unit_index]),
                error_example_extractor,
            )

        workers = max(1, max_threads)
        results: Dict[Tuple[int, int], UnitResult] = {}
        waiting = iter(range(len(units)))
        running: Dict[Future, Tuple[int, int]] = {}

        def submit_next(executor: ThreadPoolExecutor) -> None:
            unit_index = next(waiting, None)
            if unit_index is not None:
                running[executor.submit(run_unit, unit_index)] = units[unit_index]

        # at most `workers` units are submitted at once, so nothing new starts after a failure
        with ThreadPoolExecutor(max_workers=workers) as executor:
            for _ in range(workers):
                submit_next(executor)
            progress = tqdm(total=len(units), desc=self.name, disable=not show_progress)
            try:
                while running:
                    done, _ = wait(running, return_when=FIRST_COMPLETED)
                    for future in done:
                        fold, assignment_index = running.pop(future)
                        error = future.exception()
                        if error is not None:
                            for other in running:
                                other.cancel()
                            logger.error(
                                f"{self.name}: fold {fold} with {assignments[assignment_index]} failed: {error}"
                            )
                            raise FoldExecutionError(fold, assignments[assignment_index], error) from error
                        results[(fold, assignment_index)] = future.result()
                        progress.update(1)
                        submit_next(executor)
            finally:
                progress.close()

        ordered = [results[unit] for unit in units]
        return self._aggregate(ordered, assignments, fold_rows, len(data))

    def _run_unit(
        self,
        fold: int,
        assignment_index: int,
        assignment: Dict[str, str],
        matrix: sparse.csr_matrix,
        labels: np.ndarray,
        train_rows: np.ndarray,
        test_rows: np.ndarray,
        data: Sequence,
        seed: int,
        error_example_extractor: Optional[TokenSpanExtractor],
    ) -> UnitResult:
        logger.debug(f"{self.name}: fold {fold} assignment {assignment} starting")
        model = self.model.clone()
        for name, value in assignment.items():
            model.set_hyperparameter(name, value)

        local_random = np.random.default_rng(seed)
        model.train(matrix[train_rows], list(labels[train_rows]), local_random)
        predicted = model.predict(matrix[test_rows])
        actual = list(labels[test_rows])

        scores = {ev.name: ev.compute(actual, predicted) for ev in self.evaluations}
        errors: List[str] = []
        if error_example_extractor is not None:
            for row, truth, guess in zip(test_rows, actual, predicted):
                if len(errors) >= self.max_error_examples:
                    break
                if truth == guess:
                    continue
                datum = data[row]
                spans = " | ".join(span.text() for span in error_example_extractor(datum))
                errors.append(f"{datum.id}\tactual={truth}\tpredicted={guess}\t{spans}")

        logger.debug(f"{self.name}: fold {fold} assignment {assignment} scores {scores}")
        return UnitResult(fold, assignment_index, dict(assignment), scores, errors)

    def _aggregate(
        self,
        units: List[UnitResult],
        assignments: List[Dict[str, str]],
        fold_rows: List[np.ndarray],
        size: int,
    ) -> KCVResult:
        evaluation_names = [ev.name for ev in self.evaluations]
        primary = evaluation_names[0]
        by_fold: Dict[int, List[UnitResult]] = {}
        for unit in units:
            by_fold.setdefault(unit.fold, []).append(unit)

        global_choice = None
        if self.grid_scope == GLOBAL:
            means = [
                float(np.mean([by_fold[f][a].scores[primary] for f in range(self.folds)]))
                for a in range(len(assignments))
            ]
            global_choice = max(range(len(means)), key=lambda a: (means[a], -a))
            logger.info(f"{self.name}: global best assignment {assignments[global_choice]} ({primary}={means[global_choice]:.4f})")

        folds: List[FoldResult] = []
        for fold in range(self.folds):
            candidates = by_fold[fold]
            if global_choice is not None:
                best = candidates[global_choice]
            else:
                best = candidates[0]
                for unit in candidates[1:]:
                    if unit.scores[primary] > best.scores[primary]:
                        best = unit
            test_size = len(fold_rows[fold])
            folds.append(
                FoldResult(
                    fold=fold,
                    train_size=size - test_size,
                    test_size=test_size,
                    best_assignment=best.assignment,
                    scores=best.scores,
                    error_examples=best.error_examples,
                )
            )
            logger.info(f"{self.name}: fold {fold} best {best.assignment} {primary}={best.scores[primary]:.4f}")

        aggregate = {
            name: float(np.mean([fold.scores[name] for fold in folds])) for name in evaluation_names
        }
        logger.info(f"{self.name}: aggregate {aggregate}")
        return KCVResult(self.name, evaluation_names, folds, aggregate, units)
