"""
Motor de descubrimiento.

Combina filtros de catálogo y ranking por nivel de promoción para
ordenar los listados que muestra la app.
"""

from feirao.discovery.predicates import (
    FilterSpec,
    filter_listings,
    matches,
    parse_decimal,
)
from feirao.discovery.ranking import RankedListing, RankingEngine
from feirao.discovery.service import DiscoveryService

__all__ = [
    "FilterSpec",
    "matches",
    "filter_listings",
    "parse_decimal",
    "RankingEngine",
    "RankedListing",
    "DiscoveryService",
]
