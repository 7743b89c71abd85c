"""Feature implementations and the featurized data set."""

from .base import Feature, SparseVector, VocabularyFeature
from .conjunction import FeatureConjunction
from .dataset import FeaturizedDataSet
from .dependency_path import FeatureDependencyPath
from .gazetteer import FeatureGazetteer, FeatureGazetteerContains, FeatureGazetteerPrefixTokens
from .surface_distance import FeatureSurfaceDistance

__all__ = [
    "Feature",
    "SparseVector",
    "VocabularyFeature",
    "FeatureConjunction",
    "FeaturizedDataSet",
    "FeatureDependencyPath",
    "FeatureGazetteer",
    "FeatureGazetteerContains",
    "FeatureGazetteerPrefixTokens",
    "FeatureSurfaceDistance",
]
