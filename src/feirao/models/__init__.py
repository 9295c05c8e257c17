"""
Modelos de dominio del motor.

- Listing: anuncio del catálogo con su estado de promoción
- BoostWindow / PresenceFlag: snapshots del estado de promoción
- Report: denuncia de moderación
"""

from feirao.models.listing import (
    BoostWindow,
    Category,
    Condition,
    Listing,
    PlanTier,
    PresenceFlag,
    WindowState,
    find_listing,
)
from feirao.models.report import (
    Report,
    ReportReason,
    ReportStatus,
    ReportTargetType,
    Severity,
    severity_for,
)

__all__ = [
    # Catálogo
    "Listing",
    "Category",
    "Condition",
    "find_listing",
    # Promoción
    "BoostWindow",
    "PresenceFlag",
    "PlanTier",
    "WindowState",
    # Moderación
    "Report",
    "ReportReason",
    "ReportStatus",
    "ReportTargetType",
    "Severity",
    "severity_for",
]
