"""
Ciclo de vida de promociones.

Ventanas de boost con subidas programadas, presencia en vivo con
expiración automática y el sweeper que las hace avanzar.
"""

from feirao.promotion.lifecycle import (
    BoostStatus,
    PromotionLifecycleManager,
    SweepResult,
    build_window,
    parse_timestamp,
)
from feirao.promotion.sweeper import PromotionSweeper

__all__ = [
    "PromotionLifecycleManager",
    "BoostStatus",
    "SweepResult",
    "parse_timestamp",
    "build_window",
    "PromotionSweeper",
]
