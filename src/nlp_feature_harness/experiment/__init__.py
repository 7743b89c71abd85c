"""Experiment files and the k-fold cross-validation orchestrator."""
