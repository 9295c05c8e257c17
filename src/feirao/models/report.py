"""
Denuncias de moderación.

La severidad no es un input: se deriva siempre del motivo guardado, así
una denuncia almacenada sigue siendo consistente ante una auditoría.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from feirao.config import REPORT_REASON_LABELS
from feirao.models.listing import ensure_utc


class ReportReason(str, Enum):
    """Motivos de denuncia (conjunto cerrado)."""

    FRAUD_OR_SCAM = "fraud_or_scam"
    INAPPROPRIATE_OR_OFFENSIVE_CONTENT = "inappropriate_or_offensive_content"
    ALREADY_SOLD = "already_sold"
    FALSE_OR_ABUSIVE_PRICE = "false_or_abusive_price"
    WRONG_CATEGORY = "wrong_category"
    PHOTOS_DO_NOT_MATCH = "photos_do_not_match"
    OTHER = "other"

    @property
    def label(self) -> str:
        """Texto que muestra la app para el motivo."""
        return REPORT_REASON_LABELS[self.value]


class Severity(str, Enum):
    MEDIUM = "medium"
    HIGH = "high"


class ReportTargetType(str, Enum):
    LISTING = "listing"
    USER = "user"


class ReportStatus(str, Enum):
    """pending -> resolved | dismissed. Ambos finales son terminales."""

    PENDING = "pending"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


_REASON_SEVERITY = {
    ReportReason.FRAUD_OR_SCAM: Severity.HIGH,
    ReportReason.INAPPROPRIATE_OR_OFFENSIVE_CONTENT: Severity.HIGH,
    ReportReason.ALREADY_SOLD: Severity.MEDIUM,
    ReportReason.FALSE_OR_ABUSIVE_PRICE: Severity.MEDIUM,
    ReportReason.WRONG_CATEGORY: Severity.MEDIUM,
    ReportReason.PHOTOS_DO_NOT_MATCH: Severity.MEDIUM,
    ReportReason.OTHER: Severity.MEDIUM,
}


def severity_for(reason: ReportReason) -> Severity:
    """Severidad de un motivo: fraude y contenido ofensivo son 'high'."""
    return _REASON_SEVERITY[reason]


def _new_report_id() -> str:
    return f"rep_{uuid4().hex[:12]}"


class Report(BaseModel):
    """Denuncia contra un anuncio o un usuario."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_report_id, description="ID de la denuncia")
    target_type: ReportTargetType = Field(..., description="listing o user")
    target_id: str = Field(..., description="ID del anuncio o usuario denunciado")
    target_name: str = Field(default="", description="Nombre visible del objetivo")
    reason: ReportReason = Field(..., description="Motivo (conjunto cerrado)")
    description: str = Field(default="", description="Relato libre del denunciante")
    reporter_id: Optional[str] = Field(None, description="ID de quien denuncia")
    status: ReportStatus = Field(default=ReportStatus.PENDING)
    created_at: datetime = Field(..., description="Fecha de creación")
    resolved_at: Optional[datetime] = Field(None, description="Fecha de resolución")

    @field_validator("created_at", "resolved_at")
    @classmethod
    def normalize_timestamps(cls, value):
        return ensure_utc(value)

    @computed_field
    @property
    def severity(self) -> Severity:
        return severity_for(self.reason)

    def to_db_dict(self) -> dict:
        """Convierte a diccionario para inserción en Supabase."""
        return self.model_dump(mode="json")
