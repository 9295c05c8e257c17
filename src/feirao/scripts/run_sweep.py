"""
Script para ejecutar el sweep de promociones.

Vence ventanas de boost, aplica subidas programadas y apaga presencias
expiradas sobre los listings de Supabase.

Uso:
    python -m feirao.scripts.run_sweep
    python -m feirao.scripts.run_sweep --once
    python -m feirao.scripts.run_sweep --interval 30
"""

import argparse
import asyncio
import signal
import sys
from typing import Optional

import structlog

from feirao.config import configure_logging, get_settings
from feirao.database import SupabaseListingStore
from feirao.promotion import PromotionLifecycleManager, PromotionSweeper

logger = structlog.get_logger()


async def run_sweeper(once: bool = False, interval: Optional[float] = None) -> int:
    """
    Ejecuta el sweeper.

    Args:
        once: Ejecutar una sola pasada y salir
        interval: Segundos entre pasadas (default: settings)

    Returns:
        Cantidad de errores de la última pasada (solo con --once)
    """
    settings = get_settings()
    manager = PromotionLifecycleManager(settings=settings)
    store = SupabaseListingStore(settings=settings)
    sweeper = PromotionSweeper(manager, store, interval_seconds=interval)

    if once:
        result = await sweeper.run_once()
        return result.errors

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, sweeper.stop)
        except NotImplementedError:
            # Windows: KeyboardInterrupt corta el loop
            pass

    await sweeper.run()
    return 0


def main():
    """Entry point del script."""
    parser = argparse.ArgumentParser(description="Sweep de promociones")
    parser.add_argument("--once", action="store_true", help="Una sola pasada")
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Segundos entre pasadas",
    )
    parser.add_argument("--log-level", default=None, help="Nivel de logging")
    args = parser.parse_args()

    configure_logging(args.log_level or get_settings().log_level)
    logger.info("Iniciando sweep de promociones...", once=args.once)

    try:
        errors = asyncio.run(run_sweeper(once=args.once, interval=args.interval))
        sys.exit(0 if errors == 0 else 1)

    except KeyboardInterrupt:
        logger.info("Sweep interrumpido por usuario")
        sys.exit(130)
    except Exception as e:
        logger.error("Error fatal en sweep", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
