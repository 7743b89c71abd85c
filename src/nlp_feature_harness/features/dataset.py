"""
Featurized data set.

Holds the corpus, the datum tools and the ordered feature collection that
features such as conjunctions look up by reference name. Assembles the
sparse design matrix consumed by models.
"""

from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger
from scipy import sparse

from ..domain.datum import Datum
from ..domain.tools import DatumTools
from ..errors import ConfigurationError, ExtractionMismatch, UnresolvedReference
from .base import Feature, SparseVector


class FeaturizedDataSet:
    def __init__(self, name: str, data: Sequence[Datum], datum_tools: Optional[DatumTools] = None):
        self.name = name
        self.data: List[Datum] = list(data)
        self.datum_tools = datum_tools if datum_tools is not None else DatumTools()
        self.features: List[Feature] = []
        self._features_by_reference: Dict[str, Feature] = {}

    def __iter__(self) -> Iterator[Datum]:
        return iter(self.data)

    def __len__(self) -> int:
        return len(self.data)

    def __getitem__(self, index: int) -> Datum:
        return self.data[index]

    @property
    def labels(self) -> List[Optional[str]]:
        return [datum.label for datum in self.data]

    # Feature collection -----------------------------------------------------

    def add_feature(self, feature: Feature, initialize: bool = True) -> None:
        """Append ``feature``; run its ``init`` over this corpus unless restored."""
        reference = feature.reference_name
        if reference is not None and reference in self._features_by_reference:
            raise ConfigurationError(f"Duplicate feature reference name '{reference}'", field=reference)
        if initialize:
            feature.init(self)
        elif hasattr(feature, "bind"):
            feature.bind(self)
        self.features.append(feature)
        if reference is not None:
            self._features_by_reference[reference] = feature

    def get_feature_by_reference_name(self, reference_name: str) -> Feature:
        if reference_name not in self._features_by_reference:
            raise UnresolvedReference(
                f"No feature with reference name '{reference_name}' declared before use "
                f"(declared: {', '.join(self._features_by_reference) or 'none'})",
                field=reference_name,
            )
        return self._features_by_reference[reference_name]

    def feature_offsets(self) -> List[int]:
        offsets = []
        total = 0
        for feature in self.features:
            offsets.append(total)
            total += feature.vocabulary_size()
        return offsets

    def feature_vocabulary_size(self) -> int:
        return sum(feature.vocabulary_size() for feature in self.features)

    # Vectors ----------------------------------------------------------------

    def compute_vector(self, datum: Datum) -> SparseVector:
        """Concatenated vector over all features; raises on extraction errors."""
        vector: SparseVector = {}
        for offset, feature in zip(self.feature_offsets(), self.features):
            for index, value in feature.compute_vector(datum).items():
                vector[offset + index] = value
        return vector

    def design_matrix(self, data: Optional[Sequence[Datum]] = None) -> Tuple[sparse.csr_matrix, List[int]]:
        """Stack the vectors of ``data`` (default: the whole corpus) into CSR rows.

        Datums whose extraction fails are logged and skipped.

        Returns:
            The matrix and the positions (within ``data``) of the rows it holds.
        """
        data = self.data if data is None else data
        offsets = self.feature_offsets()
        indptr = [0]
        indices: List[int] = []
        values: List[float] = []
        kept: List[int] = []
        for position, datum in enumerate(data):
            row: SparseVector = {}
            try:
                for offset, feature in zip(offsets, self.features):
                    for index, value in feature.compute_vector(datum).items():
                        row[offset + index] = value
            except ExtractionMismatch as e:
                logger.warning(f"Skipping datum {datum.id} in {self.name}: {e}")
                continue
            for index in sorted(row):
                indices.append(index)
                values.append(row[index])
            indptr.append(len(indices))
            kept.append(position)

        matrix = sparse.csr_matrix(
            (np.asarray(values, dtype=np.float64), np.asarray(indices, dtype=np.int64), np.asarray(indptr, dtype=np.int64)),
            shape=(len(kept), self.feature_vocabulary_size()),
        )
        logger.info(
            f"Built design matrix for {self.name}: {matrix.shape[0]} rows x {matrix.shape[1]} columns, "
            f"{matrix.nnz} nonzeros ({len(data) - len(kept)} skipped)"
        )
        return matrix, kept

    def serialize_features(self, include_vocabulary: bool = True) -> str:
        lines = []
        for feature in self.features:
            label = "feature" if feature.reference_name is None else f"feature_{feature.reference_name}"
            lines.append(f"{label}={feature.serialize(include_vocabulary)}")
        return "\n".join(lines)
