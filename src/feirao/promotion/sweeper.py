"""
Sweeper periódico de promociones.

Corre el sweep del PromotionLifecycleManager cada `interval_seconds`
sobre los listings que provee el store, y guarda los que cambiaron.
Soporta apagado cooperativo: después de stop() no arranca otra pasada y
la pasada en curso termina antes de que run() retorne.
"""

import asyncio
from typing import TYPE_CHECKING, Optional

import structlog

from feirao.promotion.lifecycle import PromotionLifecycleManager, SweepResult

if TYPE_CHECKING:
    from feirao.database.repositories import ListingStore

logger = structlog.get_logger()


class PromotionSweeper:
    """Loop asyncio que ejecuta pasadas de sweep."""

    def __init__(
        self,
        manager: PromotionLifecycleManager,
        store: "ListingStore",
        interval_seconds: Optional[float] = None,
    ):
        self.manager = manager
        self.store = store
        self.interval = (
            interval_seconds
            if interval_seconds is not None
            else manager.settings.sweep_interval_seconds
        )
        self.passes = 0
        self._stop = asyncio.Event()

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        """Pide el apagado. Debe llamarse desde el loop del sweeper."""
        if not self._stop.is_set():
            logger.info("Apagado del sweeper solicitado")
        self._stop.set()

    def _tick(self) -> SweepResult:
        listings = self.store.load_listings()
        result = self.manager.sweep(listings)

        changed = set(result.changed_ids)
        for listing in listings:
            if listing.id in changed:
                self.store.save_promotion(listing)
        return result

    async def run_once(self) -> SweepResult:
        """Ejecuta una pasada completa (carga, sweep y guardado)."""
        # El store puede hacer I/O bloqueante: fuera del loop
        result = await asyncio.to_thread(self._tick)
        self.passes += 1
        return result

    async def run(self) -> None:
        """Loop principal hasta que se llame a stop()."""
        logger.info("Sweeper iniciado", interval_seconds=self.interval)

        while not self._stop.is_set():
            try:
                await self.run_once()
            except Exception as e:
                logger.error("Error en pasada de sweep", error=str(e))

            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass

        logger.info("Sweeper detenido", passes=self.passes)
