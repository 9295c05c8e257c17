"""
Módulo de moderación.

Creación y triage de denuncias contra anuncios y usuarios.
"""

from feirao.moderation.reports import ReportManager, parse_reason

__all__ = [
    "ReportManager",
    "parse_reason",
]
