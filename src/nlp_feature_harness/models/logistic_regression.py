"""L2-regularised logistic regression over the sparse design matrix (scikit-learn)."""

from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger
from sklearn.linear_model import LogisticRegression

from ..components import parse_bool, parse_choice, parse_float, parse_int
from ..errors import InvalidParameterValue
from ..serialization import deserialize_list, serialize_list
from .base import SupervisedModel


class LogisticRegressionModel(SupervisedModel):
    generic_name = "LogisticRegression"
    parameter_names = ("C", "maxIter", "classWeight", "fitIntercept")

    def __init__(self):
        super().__init__()
        self.C = 1.0
        self.max_iter = 1000
        self.class_weight = "none"
        self.fit_intercept = True
        self._classifier: Optional[LogisticRegression] = None
        self._constant_label: Optional[str] = None

    def get_parameter_value(self, name: str) -> Optional[str]:
        if name == "C":
            return repr(self.C)
        if name == "maxIter":
            return str(self.max_iter)
        if name == "classWeight":
            return self.class_weight
        if name == "fitIntercept":
            return str(self.fit_intercept).lower()
        return None

    def set_parameter_value(self, name: str, value: str, data_set) -> None:
        if name == "C":
            c = parse_float(name, value)
            if c <= 0:
                raise InvalidParameterValue(f"C must be positive, got {c}", field=name)
            self.C = c
        elif name == "maxIter":
            self.max_iter = parse_int(name, value, minimum=1)
        elif name == "classWeight":
            self.class_weight = parse_choice(name, value, ("none", "balanced"))
        elif name == "fitIntercept":
            self.fit_intercept = parse_bool(name, value)
        else:
            raise self.unknown(name)

    def _make_classifier(self, random_state: Optional[int] = None) -> LogisticRegression:
        return LogisticRegression(
            C=self.C,
            max_iter=self.max_iter,
            class_weight=None if self.class_weight == "none" else self.class_weight,
            fit_intercept=self.fit_intercept,
            random_state=random_state,
        )

    def train(self, features, labels: Sequence[str], rng: np.random.Generator) -> None:
        labels = np.asarray(labels, dtype=object)
        distinct = sorted(set(labels))
        if not distinct:
            raise ValueError("Cannot train LogisticRegression on an empty training set")
        if len(distinct) == 1:
            logger.warning(f"Only one label ({distinct[0]!r}) in training data; predicting it constantly")
            self._classifier = None
            self._constant_label = distinct[0]
        else:
            self._constant_label = None
            self._classifier = self._make_classifier(int(rng.integers(0, 2**31 - 1)))
            self._classifier.fit(features, labels.astype(str))
        self.is_trained = True

    def predict(self, features) -> List[str]:
        if self._constant_label is not None:
            return [self._constant_label] * features.shape[0]
        return [str(label) for label in self._classifier.predict(features)]

    def learned_parameters(self) -> List[Tuple[str, str]]:
        if self._constant_label is not None:
            return [("constantLabel", self._constant_label)]
        clf = self._classifier
        pairs = [(f"class_{i}", str(label)) for i, label in enumerate(clf.classes_)]
        pairs.extend(
            (f"coef_{i}", serialize_list([repr(float(w)) for w in row])) for i, row in enumerate(clf.coef_)
        )
        pairs.append(("intercept", serialize_list([repr(float(b)) for b in clf.intercept_])))
        return pairs

    def load_learned_parameters(self, entries) -> None:
        values: Dict[str, str] = {entry.key: entry.value for entry in entries}
        if "constantLabel" in values:
            self._constant_label = values["constantLabel"]
            self._classifier = None
            self.is_trained = True
            return

        classes = []
        while f"class_{len(classes)}" in values:
            classes.append(values[f"class_{len(classes)}"])
        rows = []
        while f"coef_{len(rows)}" in values:
            rows.append([float(w) for w in deserialize_list(values[f"coef_{len(rows)}"])])
        if len(classes) < 2 or not rows or "intercept" not in values:
            raise InvalidParameterValue("Incomplete learned parameters for LogisticRegression")

        clf = self._make_classifier()
        clf.classes_ = np.asarray(classes, dtype=object)
        clf.coef_ = np.asarray(rows, dtype=np.float64)
        clf.intercept_ = np.asarray([float(b) for b in deserialize_list(values["intercept"])])
        clf.n_features_in_ = clf.coef_.shape[1]
        self._classifier = clf
        self._constant_label = None
        self.is_trained = True
