"""
Ranking por nivel de promoción.

Los planes que más pagan aparecen primero; entre niveles iguales se
respeta el orden de entrada (sort estable, sin clave secundaria).
"""

from dataclasses import dataclass
from typing import Callable, Iterable

from feirao.models import Listing, PlanTier

TierResolver = Callable[[Listing], PlanTier]


@dataclass(frozen=True)
class RankedListing:
    """Listing ordenado junto con el nivel efectivo usado para ordenarlo."""

    listing: Listing
    tier: PlanTier
    position: int


class RankingEngine:
    """
    Ordena listings por prioridad de nivel efectivo.

    El nivel se obtiene en cada llamada desde el resolver (normalmente
    PromotionLifecycleManager.effective_tier), nunca de un campo cacheado:
    una ventana vencida que el sweep todavía no procesó rankea como none.
    """

    def __init__(self, tier_resolver: TierResolver):
        self._tier_of = tier_resolver

    def rank_entries(self, listings: Iterable[Listing]) -> list[RankedListing]:
        tiered = [(listing, self._tier_of(listing)) for listing in listings]
        # sorted() es estable: los empates conservan el orden de entrada
        tiered.sort(key=lambda item: item[1].priority, reverse=True)
        return [
            RankedListing(listing=listing, tier=tier, position=position)
            for position, (listing, tier) in enumerate(tiered, start=1)
        ]

    def rank(self, listings: Iterable[Listing]) -> list[Listing]:
        return [entry.listing for entry in self.rank_entries(listings)]

