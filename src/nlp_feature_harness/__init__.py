"""Configurable feature extraction and k-fold cross-validation for NLP classifiers."""

__version__ = "0.1.0"
