"""
Ciclo de vida de la promoción de anuncios.

Implementa:
- Ventanas de boost: ACTIVE -> EXPIRED, con subidas programadas
- Presencia en vivo: INACTIVE <-> ACTIVE, con expiración automática
- Nivel efectivo: el que debe usar el ranking, siempre derivado del reloj

Cada transición reemplaza el snapshot de promoción del listing bajo su
propio lock (no hay lock global), así las lecturas concurrentes nunca
ven un estado a medio actualizar.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, Optional, Union

import structlog
from pydantic import ValidationError as PydanticValidationError

from feirao.clock import Clock, SystemClock
from feirao.config import PLAN_CATALOG, Settings, get_settings
from feirao.exceptions import (
    InvalidTimestampError,
    InvalidWindowError,
    NotFoundError,
    ValidationError,
)
from feirao.models import BoostWindow, Listing, PlanTier, PresenceFlag, WindowState
from feirao.models.listing import ensure_utc

logger = structlog.get_logger()

TimestampLike = Union[datetime, str]

SECONDS_PER_DAY = 86400


@dataclass
class SweepResult:
    """Estadísticas de una pasada de sweep."""

    processed: int = 0
    expired: int = 0
    bumped: int = 0
    presence_expired: int = 0
    errors: int = 0
    changed_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class BoostStatus:
    """Lectura consistente de una ventana de boost para mostrar en pantalla."""

    listing_id: str
    tier: PlanTier
    state: WindowState
    days_remaining: int
    progress: float
    bumps_remaining: int
    total_bumps: int
    next_bump_at: Optional[datetime]
    expires_at: datetime


def parse_timestamp(value: TimestampLike) -> datetime:
    """
    Convierte un datetime o string ISO-8601 a datetime UTC.

    Raises:
        InvalidTimestampError: Si el valor no es interpretable
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return ensure_utc(datetime.fromisoformat(text))
        except ValueError:
            raise InvalidTimestampError(value) from None
    raise InvalidTimestampError(value)


def build_window(**fields) -> BoostWindow:
    """
    Construye una BoostWindow validando sus invariantes.

    Raises:
        InvalidWindowError: Si la expiración no es posterior a la activación,
            la próxima subida cae fuera de la ventana o las subidas no cuadran
    """
    try:
        return BoostWindow(**fields)
    except PydanticValidationError as e:
        reasons = "; ".join(error["msg"] for error in e.errors())
        raise InvalidWindowError(f"Ventana de boost inválida: {reasons}") from None


class PromotionLifecycleManager:
    """
    Dueño de las transiciones de boost y presencia.

    Todas las lecturas de tiempo pasan por el Clock inyectado.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None,
    ):
        self.clock = clock or SystemClock()
        self.settings = settings or get_settings()
        self.bump_interval = timedelta(days=self.settings.bump_interval_days)
        self.presence_duration = timedelta(hours=self.settings.presence_duration_hours)
        self.fair_active = self.settings.fair_active

    # ------------------------------------------------------------------
    # Boost
    # ------------------------------------------------------------------

    def activate_boost(
        self,
        listing: Listing,
        plan: str,
        activated_at: Optional[TimestampLike] = None,
        expires_at: Optional[TimestampLike] = None,
        total_bumps: Optional[int] = None,
        next_bump_at: Optional[TimestampLike] = None,
    ) -> Optional[BoostWindow]:
        """
        Consume el evento de compra de un plan y crea la ventana de boost.

        Los valores que el evento no trae se completan con PLAN_CATALOG.
        Activar el plan gratuito elimina cualquier boost existente.

        Args:
            listing: Listing que recibe el boost
            plan: premium, advanced, basic (o gratis/none)
            activated_at: Inicio de la ventana (default: ahora)
            expires_at: Fin de la ventana (default: según el plan)
            total_bumps: Subidas contratadas (default: según el plan)
            next_bump_at: Primera subida (default: según el plan)

        Returns:
            La ventana creada, o None si el plan es gratuito

        Raises:
            InvalidWindowError: Si la expiración no es posterior a la activación
            InvalidTimestampError: Si algún timestamp es malformado
        """
        tier = PlanTier.from_plan(plan)
        if tier == PlanTier.NONE:
            with listing.promotion_lock:
                listing.boost = None
            logger.info("Boost eliminado por plan gratuito", listing_id=listing.id)
            return None

        catalog = PLAN_CATALOG[tier.value]
        start = parse_timestamp(activated_at) if activated_at is not None else self.clock.now()
        end = (
            parse_timestamp(expires_at)
            if expires_at is not None
            else start + timedelta(days=catalog["duration_days"])
        )
        bumps = catalog["total_bumps"] if total_bumps is None else total_bumps
        if isinstance(bumps, bool) or not isinstance(bumps, int) or bumps <= 0:
            raise InvalidWindowError(f"total_bumps debe ser un entero positivo: {bumps!r}")

        if next_bump_at is not None:
            first_bump = parse_timestamp(next_bump_at)
        else:
            first_bump = start + timedelta(days=catalog["first_bump_days"])
            if first_bump >= end:
                first_bump = None

        window = build_window(
            plan=plan.strip().lower(),
            activated_at=start,
            expires_at=end,
            total_bumps=bumps,
            bumps_remaining=bumps,
            next_bump_at=first_bump,
        )
        with listing.promotion_lock:
            listing.boost = window

        logger.info(
            "Boost activado",
            listing_id=listing.id,
            plan=window.plan,
            expires_at=end.isoformat(),
            total_bumps=bumps,
        )
        return window

    def effective_tier(self, listing: Listing) -> PlanTier:
        """
        Nivel vigente del listing.

        Devuelve NONE si no hay ventana o si está vencida, aunque el sweep
        todavía no la haya marcado como EXPIRED.
        """
        with listing.promotion_lock:
            window = listing.boost
        if window is None or window.is_expired_at(self.clock.now()):
            return PlanTier.NONE
        return window.stored_tier

    def days_remaining(self, listing: Listing) -> int:
        """ceil((expiración - ahora) / 1 día), nunca negativo."""
        with listing.promotion_lock:
            window = listing.boost
        if window is None or window.state == WindowState.EXPIRED:
            return 0
        return self._days_left(window, self.clock.now())

    def boost_progress(self, listing: Listing) -> float:
        """
        Progreso restante del boost (0.0 a 1.0) para la barra de la vista.

        Asume el intervalo fijo de subidas: días restantes sobre
        total_bumps * bump_interval_days.
        """
        with listing.promotion_lock:
            window = listing.boost
        if window is None or window.state == WindowState.EXPIRED:
            return 0.0
        return self._progress(window, self._days_left(window, self.clock.now()))

    def boost_status(self, listing: Listing) -> BoostStatus:
        """
        Snapshot de display de la ventana de boost.

        Raises:
            NotFoundError: Si el listing no tiene ventana de boost
        """
        with listing.promotion_lock:
            window = listing.boost
        if window is None:
            raise NotFoundError(f"El listing {listing.id} no tiene ventana de boost")

        now = self.clock.now()
        expired = window.is_expired_at(now)
        days = 0 if expired else self._days_left(window, now)
        return BoostStatus(
            listing_id=listing.id,
            tier=PlanTier.NONE if expired else window.stored_tier,
            state=WindowState.EXPIRED if expired else WindowState.ACTIVE,
            days_remaining=days,
            progress=0.0 if expired else self._progress(window, days),
            bumps_remaining=window.bumps_remaining,
            total_bumps=window.total_bumps,
            next_bump_at=None if expired else window.next_bump_at,
            expires_at=window.expires_at,
        )

    def _days_left(self, window: BoostWindow, now: datetime) -> int:
        seconds = (window.expires_at - now).total_seconds()
        return max(0, math.ceil(seconds / SECONDS_PER_DAY))

    def _progress(self, window: BoostWindow, days_left: int) -> float:
        planned_days = window.total_bumps * self.settings.bump_interval_days
        return max(0.0, min(1.0, days_left / planned_days))

    def advance_window(self, window: BoostWindow, now: datetime) -> tuple[BoostWindow, Optional[str]]:
        """
        Calcula la transición de una ventana en el instante `now`.

        Función pura: devuelve el snapshot siguiente (o el mismo si no hay
        cambios) y el evento aplicado ("expired", "bumped" o None).
        """
        if window.state == WindowState.EXPIRED:
            return window, None

        if now >= window.expires_at:
            expired = window.model_copy(
                update={"state": WindowState.EXPIRED, "next_bump_at": None}
            )
            return expired, "expired"

        if (
            window.next_bump_at is not None
            and window.bumps_remaining > 0
            and now >= window.next_bump_at
        ):
            remaining = window.bumps_remaining - 1
            next_at = None
            if remaining > 0:
                candidate = now + self.bump_interval
                # Nunca programar una subida fuera de la ventana
                next_at = candidate if candidate < window.expires_at else None
            bumped = window.model_copy(
                update={
                    "bumps_remaining": remaining,
                    "next_bump_at": next_at,
                    "last_bump_at": now,
                }
            )
            return bumped, "bumped"

        return window, None

    # ------------------------------------------------------------------
    # Presencia en vivo
    # ------------------------------------------------------------------

    def is_present(self, listing: Listing) -> bool:
        """Presencia vigente, evaluada contra el reloj en cada lectura."""
        with listing.promotion_lock:
            flag = listing.presence
        return flag is not None and flag.is_active_at(self.clock.now())

    def presence_time_left(self, listing: Listing) -> timedelta:
        """Tiempo restante de presencia (cero si está inactiva o vencida)."""
        with listing.promotion_lock:
            flag = listing.presence
        now = self.clock.now()
        if flag is None or not flag.is_active_at(now):
            return timedelta(0)
        return flag.expires_at - now

    def set_fair_active(self, active: bool) -> None:
        """Abre o cierra la feria (lo controla el admin)."""
        self.fair_active = bool(active)
        logger.info("Estado de la feria actualizado", fair_active=self.fair_active)

    def activate_presence(self, listing: Listing) -> PresenceFlag:
        """
        Marca al listing como presente en la feria.

        Raises:
            ValidationError: Si la feria no está activa
        """
        if not self.fair_active:
            raise ValidationError("La feria no está activa en este momento")
        now = self.clock.now()
        flag = PresenceFlag(active=True, expires_at=now + self.presence_duration)
        with listing.promotion_lock:
            listing.presence = flag
        logger.info(
            "Presencia activada",
            listing_id=listing.id,
            expires_at=flag.expires_at.isoformat(),
        )
        return flag

    def deactivate_presence(self, listing: Listing) -> PresenceFlag:
        flag = PresenceFlag(active=False, expires_at=self.clock.now())
        with listing.promotion_lock:
            listing.presence = flag
        logger.info("Presencia desactivada", listing_id=listing.id)
        return flag

    def toggle_presence(self, listing: Listing) -> bool:
        """
        Alterna la presencia del listing.

        Returns:
            True si quedó activa, False si quedó inactiva

        Raises:
            ValidationError: Si hay que activarla y la feria está cerrada
        """
        with listing.promotion_lock:
            if self.is_present(listing):
                self.deactivate_presence(listing)
                return False
            self.activate_presence(listing)
            return True

    # ------------------------------------------------------------------
    # Sweep
    # ------------------------------------------------------------------

    def sweep_listing(self, listing: Listing, now: Optional[datetime] = None) -> list[str]:
        """
        Aplica las transiciones pendientes de un listing.

        Idempotente: repetirlo en el mismo instante no produce cambios.

        Returns:
            Eventos aplicados ("expired", "bumped", "presence_expired")
        """
        events = []
        with listing.promotion_lock:
            now = now or self.clock.now()

            window = listing.boost
            if window is not None:
                updated, event = self.advance_window(window, now)
                if event:
                    listing.boost = updated
                    events.append(event)

            flag = listing.presence
            if flag is not None and flag.active and not flag.is_active_at(now):
                listing.presence = PresenceFlag(active=False, expires_at=flag.expires_at)
                events.append("presence_expired")

        for event in events:
            logger.info("Transición de promoción", listing_id=listing.id, transition=event)
        return events

    def sweep(self, listings: Iterable[Listing]) -> SweepResult:
        """
        Ejecuta una pasada de sweep sobre toda la colección.

        Un error en un listing se registra y no corta la pasada.
        """
        result = SweepResult()
        now = self.clock.now()

        for listing in listings:
            result.processed += 1
            try:
                events = self.sweep_listing(listing, now=now)
            except Exception as e:
                logger.error(
                    "Error en sweep de listing",
                    listing_id=listing.id,
                    error=str(e),
                )
                result.errors += 1
                continue

            if events:
                result.changed_ids.append(listing.id)
            result.expired += events.count("expired")
            result.bumped += events.count("bumped")
            result.presence_expired += events.count("presence_expired")

        logger.info(
            "Sweep completado",
            processed=result.processed,
            expired=result.expired,
            bumped=result.bumped,
            presence_expired=result.presence_expired,
            errors=result.errors,
        )
        return result
