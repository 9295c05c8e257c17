"""
Fachada de descubrimiento.

Compone el evaluador de filtros y el ranking en una sola búsqueda que
consumen las pantallas de listados.
"""

from typing import Iterable, Optional, Union

from feirao.discovery.predicates import FilterSpec, filter_listings, normalize_text
from feirao.discovery.ranking import RankedListing, RankingEngine
from feirao.models import Category, Listing, PlanTier
from feirao.promotion import PromotionLifecycleManager

# Largo mínimo del término para sugerir anuncios
MIN_SUGGESTION_LENGTH = 2


class DiscoveryService:
    """
    Búsqueda = filtros (AND) + ranking por nivel efectivo.

    El nivel se re-deriva en cada búsqueda vía el lifecycle manager, así un
    sweep atrasado no produce un orden desactualizado.
    """

    def __init__(
        self,
        lifecycle: PromotionLifecycleManager,
        ranking: Optional[RankingEngine] = None,
    ):
        self.lifecycle = lifecycle
        self.ranking = ranking or RankingEngine(lifecycle.effective_tier)

    def search(
        self,
        category: Union[Category, str],
        spec: Optional[FilterSpec],
        listings: Iterable[Listing],
    ) -> list[Listing]:
        """
        Busca listings de una categoría que cumplan los filtros.

        Args:
            category: Categoría en la que se busca
            spec: Filtros (None = sin filtros)
            listings: Colección provista por la capa de persistencia

        Returns:
            Listings ordenados por nivel de promoción (vacío si no hay matches)
        """
        scoped = (spec or FilterSpec()).for_category(category)
        return self.ranking.rank(filter_listings(listings, scoped))

    def search_entries(
        self,
        category: Union[Category, str],
        spec: Optional[FilterSpec],
        listings: Iterable[Listing],
    ) -> list[RankedListing]:
        """Igual que search() pero con el nivel efectivo de cada resultado."""
        scoped = (spec or FilterSpec()).for_category(category)
        return self.ranking.rank_entries(filter_listings(listings, scoped))

    def featured(
        self,
        listings: Iterable[Listing],
        category: Optional[Union[Category, str]] = None,
    ) -> list[Listing]:
        """Destacados: solo listings con boost vigente, ordenados por nivel."""
        if category is not None:
            listings = filter_listings(listings, FilterSpec(category=category))
        entries = self.ranking.rank_entries(listings)
        return [entry.listing for entry in entries if entry.tier != PlanTier.NONE]

    def present(self, listings: Iterable[Listing]) -> list[Listing]:
        """
        Listings con presencia en vivo vigente, en el orden de entrada.

        Con la feria cerrada la sección no se muestra: devuelve vacío.
        """
        if not self.lifecycle.fair_active:
            return []
        return [listing for listing in listings if self.lifecycle.is_present(listing)]

    def suggest(
        self,
        term: str,
        listings: Iterable[Listing],
        limit: int = 6,
    ) -> list[Listing]:
        """Sugerencias de búsqueda por título (requiere al menos 2 caracteres)."""
        needle = normalize_text(term)
        if len(needle) < MIN_SUGGESTION_LENGTH:
            return []
        suggestions = [
            listing for listing in listings if needle in normalize_text(listing.title)
        ]
        return suggestions[:limit]
