"""Evaluations that score predicted labels against true labels."""
