"""
Configuración centralizada del motor.
Carga variables de entorno y define constantes de producto.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

import structlog
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# config.py -> feirao/ -> src/ -> raíz del proyecto (donde está el .env)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Configuración principal del motor de promoción y descubrimiento."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Supabase (solo lo usa el store de listings del sweeper)
    supabase_url: Optional[str] = Field(None, description="URL del proyecto Supabase")
    supabase_key: Optional[str] = Field(None, description="Anon key de Supabase")
    supabase_service_key: Optional[str] = Field(
        None, description="Service role key para operaciones admin"
    )

    # Boost
    bump_interval_days: int = Field(
        3, gt=0, description="Días entre subidas programadas de un boost"
    )

    # Presencia en la feria
    presence_duration_hours: int = Field(
        6, gt=0, description="Duración de la presencia en vivo una vez activada"
    )
    fair_active: bool = Field(
        True, description="Feria abierta: sin feria no se puede marcar presencia"
    )

    # Denuncias
    report_description_max_length: int = Field(
        500, gt=0, description="Largo máximo de la descripción de una denuncia"
    )

    # Sweeper
    sweep_interval_seconds: float = Field(
        60.0, gt=0, description="Intervalo entre pasadas del sweep (segundos)"
    )

    # Logging
    log_level: str = Field("INFO", description="Nivel de logging")


@lru_cache
def get_settings() -> Settings:
    """Obtiene la configuración cacheada."""
    return Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Configura logging estándar + structlog para los entry points."""
    level = level or get_settings().log_level
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# Constantes del producto

# Planes pagos tal como se venden: duración, subidas contratadas y
# días hasta la primera subida.
PLAN_CATALOG: dict[str, dict[str, int]] = {
    "premium": {"duration_days": 30, "total_bumps": 10, "first_bump_days": 3},
    "advanced": {"duration_days": 15, "total_bumps": 5, "first_bump_days": 3},
    "basic": {"duration_days": 7, "total_bumps": 3, "first_bump_days": 2},
}

# Valores guardados en el campo de plan que significan "sin plan pago"
FREE_PLAN_ALIASES = ("", "none", "gratis")

REPORT_REASON_LABELS: dict[str, str] = {
    "fraud_or_scam": "Fraude / Tentativa de Golpe",
    "inappropriate_or_offensive_content": "Conteúdo Impróprio ou Ofensivo",
    "already_sold": "Produto já vendido",
    "false_or_abusive_price": "Preço Falso / Abusivo",
    "wrong_category": "Categoria Errada",
    "photos_do_not_match": "Fotos não correspondem ao produto",
    "other": "Outro",
}

# Atributo específico de cada categoría contra el que se comparan los tags
CATEGORY_TAG_ATTRIBUTES: dict[str, str] = {
    "vehicle": "vehicle_type",
    "real-estate": "real_estate_type",
    "parts-or-service": "part_type",
}
