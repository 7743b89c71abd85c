"""Supervised models trained inside cross-validation folds."""
