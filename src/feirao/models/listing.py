"""
Listing y su estado de promoción.

El Listing es el registro de catálogo. Su estado de promoción (BoostWindow
y PresenceFlag) son snapshots inmutables: cada transición reemplaza el
snapshot completo bajo el lock del listing, así ningún lector ve un estado
a medio actualizar.
"""

import copy
import threading
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    field_validator,
    model_validator,
)

from feirao.config import CATEGORY_TAG_ATTRIBUTES, FREE_PLAN_ALIASES
from feirao.exceptions import NotFoundError


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Interpreta datetimes naive como UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Category(str, Enum):
    """Categorías del catálogo (conjunto cerrado)."""

    VEHICLE = "vehicle"
    REAL_ESTATE = "real-estate"
    PARTS_OR_SERVICE = "parts-or-service"


# Nombres de categoría que usa la app móvil
_CATEGORY_ALIASES = {
    "autos": Category.VEHICLE,
    "imoveis": Category.REAL_ESTATE,
    "pecas": Category.PARTS_OR_SERVICE,
    "servicos": Category.PARTS_OR_SERVICE,
}


class Condition(str, Enum):
    NEW = "new"
    USED = "used"


_CONDITION_ALIASES = {
    "novo": Condition.NEW,
    "usado": Condition.USED,
}


class PlanTier(str, Enum):
    """
    Nivel de plan de boost, ordenado: none < basic < advanced < premium.
    """

    NONE = "none"
    BASIC = "basic"
    ADVANCED = "advanced"
    PREMIUM = "premium"

    @property
    def priority(self) -> int:
        """Prioridad de ranking del nivel (premium=3 ... none=0)."""
        return _TIER_PRIORITY[self]

    @classmethod
    def from_plan(cls, plan: Optional[str]) -> "PlanTier":
        """
        Mapea el campo de plan guardado a un nivel.

        Los planes gratuitos mapean a NONE; un plan pago no reconocido
        cuenta como BASIC.
        """
        value = (plan or "").strip().lower()
        if value in FREE_PLAN_ALIASES:
            return cls.NONE
        try:
            return cls(value)
        except ValueError:
            return cls.BASIC

    def __lt__(self, other):
        if not isinstance(other, PlanTier):
            return NotImplemented
        return self.priority < other.priority

    def __le__(self, other):
        if not isinstance(other, PlanTier):
            return NotImplemented
        return self.priority <= other.priority

    def __gt__(self, other):
        if not isinstance(other, PlanTier):
            return NotImplemented
        return self.priority > other.priority

    def __ge__(self, other):
        if not isinstance(other, PlanTier):
            return NotImplemented
        return self.priority >= other.priority


_TIER_PRIORITY = {
    PlanTier.NONE: 0,
    PlanTier.BASIC: 1,
    PlanTier.ADVANCED: 2,
    PlanTier.PREMIUM: 3,
}


class WindowState(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"


class BoostWindow(BaseModel):
    """
    Ventana de boost comprada para un listing.

    Inmutable: el sweep produce un snapshot nuevo en cada transición.
    """

    model_config = ConfigDict(frozen=True)

    plan: str = Field(..., description="Plan guardado (premium, advanced, basic, ...)")
    activated_at: datetime = Field(..., description="Inicio de la ventana")
    expires_at: datetime = Field(..., description="Fin de la ventana")
    total_bumps: int = Field(..., gt=0, description="Subidas contratadas")
    bumps_remaining: int = Field(..., ge=0, description="Subidas que restan")
    next_bump_at: Optional[datetime] = Field(
        None, description="Próxima subida programada (None = no hay más)"
    )
    last_bump_at: Optional[datetime] = Field(None, description="Última subida aplicada")
    state: WindowState = Field(default=WindowState.ACTIVE)

    @field_validator("activated_at", "expires_at", "next_bump_at", "last_bump_at")
    @classmethod
    def normalize_timestamps(cls, value):
        return ensure_utc(value)

    @model_validator(mode="after")
    def check_window(self) -> "BoostWindow":
        if self.expires_at <= self.activated_at:
            raise ValueError(
                f"La expiración ({self.expires_at.isoformat()}) debe ser posterior a la "
                f"activación ({self.activated_at.isoformat()})"
            )
        if self.next_bump_at is not None and not (
            self.activated_at < self.next_bump_at < self.expires_at
        ):
            raise ValueError("La próxima subida debe quedar dentro de la ventana")
        if self.bumps_remaining > self.total_bumps:
            raise ValueError("bumps_remaining no puede superar total_bumps")
        return self

    @property
    def stored_tier(self) -> PlanTier:
        """Nivel según el campo guardado (no considera expiración)."""
        return PlanTier.from_plan(self.plan)

    def is_expired_at(self, now: datetime) -> bool:
        return self.state == WindowState.EXPIRED or now >= self.expires_at


class PresenceFlag(BaseModel):
    """Presencia en vivo ("estoy en la feria ahora")."""

    model_config = ConfigDict(frozen=True)

    active: bool = False
    expires_at: Optional[datetime] = None

    @field_validator("expires_at")
    @classmethod
    def normalize_timestamps(cls, value):
        return ensure_utc(value)

    def is_active_at(self, now: datetime) -> bool:
        """Activa solo si el bit está prendido y no pasó la expiración."""
        return self.active and self.expires_at is not None and now < self.expires_at


class Listing(BaseModel):
    """
    Anuncio del catálogo.

    Los atributos específicos de cada categoría (kilometraje, dormitorios,
    tipo de pieza, etc.) se guardan como pares clave/valor opacos.
    """

    model_config = ConfigDict(validate_assignment=True, from_attributes=True)

    # Identificación
    id: str = Field(..., frozen=True, description="ID único del anuncio")
    category: Category = Field(..., frozen=True, description="Categoría (inmutable)")

    # Contenido
    title: str = Field(..., description="Título del anuncio")
    description: str = Field(default="", description="Descripción libre")
    price: Decimal = Field(..., ge=0, description="Precio (no negativo)")
    location: str = Field(default="", description="Ubicación como texto libre")
    condition: Optional[Condition] = Field(None, description="Nuevo o usado")

    # Promoción
    boost: Optional[BoostWindow] = Field(None, description="Ventana de boost vigente")
    presence: Optional[PresenceFlag] = Field(None, description="Presencia en vivo")

    attributes: dict[str, Any] = Field(
        default_factory=dict, description="Atributos específicos de la categoría"
    )

    _promotion_lock: Any = PrivateAttr(default_factory=threading.RLock)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value):
        return str(value) if isinstance(value, int) else value

    @field_validator("category", mode="before")
    @classmethod
    def category_alias(cls, value):
        if isinstance(value, str):
            return _CATEGORY_ALIASES.get(value.strip().lower(), value)
        return value

    @field_validator("condition", mode="before")
    @classmethod
    def condition_alias(cls, value):
        if isinstance(value, str):
            cleaned = value.strip().lower()
            if not cleaned:
                return None
            return _CONDITION_ALIASES.get(cleaned, cleaned)
        return value

    @property
    def promotion_lock(self):
        """Lock exclusivo del estado de promoción de este listing."""
        return self._promotion_lock

    # El lock no se copia ni se serializa: cada copia tiene el suyo
    def __deepcopy__(self, memo=None):
        copied = self.__copy__()
        object.__setattr__(copied, "__dict__", copy.deepcopy(self.__dict__, memo))
        copied._promotion_lock = threading.RLock()
        return copied

    def __getstate__(self):
        state = super().__getstate__()
        private = dict(state.get("__pydantic_private__") or {})
        private.pop("_promotion_lock", None)
        state["__pydantic_private__"] = private
        return state

    def __setstate__(self, state):
        super().__setstate__(state)
        self._promotion_lock = threading.RLock()

    @property
    def tag_value(self) -> Optional[str]:
        """Valor del atributo de tag de la categoría (vehicle_type, part_type, ...)."""
        value = self.attributes.get(CATEGORY_TAG_ATTRIBUTES[self.category.value])
        return str(value) if value is not None else None

    def to_db_dict(self) -> dict:
        """Convierte a diccionario para inserción en Supabase."""
        return self.model_dump(mode="json")


def find_listing(listings: Iterable[Listing], listing_id) -> Listing:
    """
    Busca un listing por ID dentro de la colección provista.

    Raises:
        NotFoundError: Si ningún listing tiene ese ID
    """
    wanted = str(listing_id)
    for listing in listings:
        if listing.id == wanted:
            return listing
    raise NotFoundError(f"Listing no encontrado: {wanted}")
