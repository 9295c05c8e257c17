"""
Stores de listings para el sweeper.

El motor no lee ni escribe la base directamente: el sweeper recibe un
ListingStore que carga los listings antes de cada pasada y guarda los
que cambiaron su estado de promoción.
"""

from typing import Iterable, Optional, Protocol

import structlog
from supabase import Client

from feirao.config import Settings
from feirao.database.supabase_client import create_supabase_client
from feirao.models import Listing

logger = structlog.get_logger()


class ListingStore(Protocol):
    """Colaborador de persistencia del sweeper."""

    def load_listings(self) -> list[Listing]:
        ...

    def save_promotion(self, listing: Listing) -> None:
        ...


class InMemoryListingStore:
    """Store en memoria (tests y wiring local)."""

    def __init__(self, listings: Optional[Iterable[Listing]] = None):
        self._listings = {listing.id: listing for listing in listings or []}
        self.saved_ids: list[str] = []

    def load_listings(self) -> list[Listing]:
        return list(self._listings.values())

    def save_promotion(self, listing: Listing) -> None:
        self._listings[listing.id] = listing
        self.saved_ids.append(listing.id)


class SupabaseListingStore:
    """Store sobre la tabla 'listings' de Supabase."""

    TABLE = "listings"

    def __init__(
        self,
        client: Optional[Client] = None,
        settings: Optional[Settings] = None,
    ):
        self._client = client
        self._settings = settings

    @property
    def client(self) -> Client:
        # Lazy: sin credenciales el store se puede construir igual
        if self._client is None:
            self._client = create_supabase_client(self._settings)
        return self._client

    def load_listings(self) -> list[Listing]:
        """Carga los listings con su estado de promoción."""
        response = self.client.table(self.TABLE).select("*").execute()
        listings = []
        for row in response.data:
            try:
                listings.append(Listing.model_validate(row))
            except ValueError as e:
                logger.warning(
                    "Listing inválido en la base, se omite",
                    listing_id=row.get("id"),
                    error=str(e),
                )
        logger.info("Listings cargados", total=len(listings))
        return listings

    def save_promotion(self, listing: Listing) -> None:
        """Guarda solo el sub-estado de promoción (boost y presence)."""
        data = listing.to_db_dict()
        (
            self.client.table(self.TABLE)
            .update({"boost": data["boost"], "presence": data["presence"]})
            .eq("id", listing.id)
            .execute()
        )
        logger.info("Promoción guardada", listing_id=listing.id)
