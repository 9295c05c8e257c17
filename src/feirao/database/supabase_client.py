"""
Conexión a Supabase para el store de listings.

El motor en sí no usa la base: solo el sweeper, a través de
SupabaseListingStore, necesita credenciales.
"""

from typing import Optional

import structlog
from supabase import Client, create_client

from feirao.config import Settings, get_settings
from feirao.exceptions import ConfigurationError

logger = structlog.get_logger()


def create_supabase_client(settings: Optional[Settings] = None) -> Client:
    """
    Crea el cliente de Supabase con las credenciales de settings.

    El sweep escribe el estado de promoción, así que se prefiere la
    service key cuando está configurada.

    Raises:
        ConfigurationError: Si falta la URL o alguna de las keys
    """
    settings = settings or get_settings()
    key = settings.supabase_service_key or settings.supabase_key

    if not settings.supabase_url or not key:
        raise ConfigurationError(
            "El store de listings necesita SUPABASE_URL y SUPABASE_SERVICE_KEY "
            "(o SUPABASE_KEY)"
        )

    client = create_client(settings.supabase_url, key)
    logger.info(
        "Cliente de Supabase creado",
        url=settings.supabase_url,
        service_key=bool(settings.supabase_service_key),
    )
    return client
