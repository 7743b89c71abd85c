"""
Shared Layer

Cross-cutting helpers with no experiment logic (logging setup).
"""
