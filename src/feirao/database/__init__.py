"""
Módulo de base de datos.

Provee los stores de listings que usa el sweeper.
"""

from feirao.database.supabase_client import create_supabase_client
from feirao.database.repositories import (
    ListingStore,
    InMemoryListingStore,
    SupabaseListingStore,
)

__all__ = [
    "create_supabase_client",
    "ListingStore",
    "InMemoryListingStore",
    "SupabaseListingStore",
]
