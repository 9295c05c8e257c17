"""
Gestor de denuncias de moderación.

Valida y crea denuncias (siempre en estado pending) y aplica la
resolución manteniendo el estado monótono: una denuncia resuelta o
descartada nunca vuelve a pending.
"""

import threading
from typing import Optional, Union

import structlog

from feirao.clock import Clock, SystemClock
from feirao.config import Settings, get_settings
from feirao.exceptions import NotFoundError, UnknownReasonError, ValidationError
from feirao.models import Report, ReportReason, ReportStatus, ReportTargetType

logger = structlog.get_logger()

# La app móvil denuncia anuncios como "ad"
_TARGET_ALIASES = {"ad": ReportTargetType.LISTING}


def parse_reason(reason: Union[ReportReason, str]) -> ReportReason:
    """
    Valida el motivo contra el conjunto cerrado.

    Raises:
        UnknownReasonError: Si el motivo no es uno de ReportReason
    """
    if isinstance(reason, ReportReason):
        return reason
    if isinstance(reason, str):
        try:
            return ReportReason(reason.strip().lower())
        except ValueError:
            pass
    raise UnknownReasonError(reason)


def _parse_target_type(target_type: Union[ReportTargetType, str]) -> ReportTargetType:
    if isinstance(target_type, ReportTargetType):
        return target_type
    cleaned = str(target_type).strip().lower()
    if cleaned in _TARGET_ALIASES:
        return _TARGET_ALIASES[cleaned]
    try:
        return ReportTargetType(cleaned)
    except ValueError:
        raise ValidationError(f"Tipo de objetivo inválido: {target_type!r}") from None


class ReportManager:
    """Dueño de las denuncias creadas en este proceso."""

    def __init__(
        self,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None,
    ):
        self.clock = clock or SystemClock()
        self.settings = settings or get_settings()
        self._reports: dict[str, Report] = {}
        self._lock = threading.Lock()

    @property
    def max_description_length(self) -> int:
        return self.settings.report_description_max_length

    def file_report(
        self,
        target_type: Union[ReportTargetType, str],
        target_id,
        target_name: str,
        reason: Union[ReportReason, str],
        description: str = "",
        reporter_id: Optional[str] = None,
    ) -> Report:
        """
        Crea una denuncia en estado pending.

        La severidad se deriva del motivo; no se acepta como input.

        Raises:
            UnknownReasonError: Si el motivo no pertenece al conjunto cerrado
            ValidationError: Si la descripción supera el largo máximo o el
                objetivo es inválido
        """
        parsed_reason = parse_reason(reason)
        parsed_target = _parse_target_type(target_type)

        target = str(target_id).strip() if target_id is not None else ""
        if not target:
            raise ValidationError("El ID del objetivo es requerido")

        description = description or ""
        if len(description) > self.max_description_length:
            raise ValidationError(
                f"La descripción tiene {len(description)} caracteres; "
                f"el máximo es {self.max_description_length}"
            )

        report = Report(
            target_type=parsed_target,
            target_id=target,
            target_name=target_name or "",
            reason=parsed_reason,
            description=description,
            reporter_id=reporter_id,
            created_at=self.clock.now(),
        )
        with self._lock:
            self._reports[report.id] = report

        logger.info(
            "Denuncia creada",
            report_id=report.id,
            target_type=report.target_type.value,
            target_id=report.target_id,
            reason=report.reason.value,
            severity=report.severity.value,
        )
        return report

    def get(self, report_id: str) -> Report:
        with self._lock:
            report = self._reports.get(report_id)
        if report is None:
            raise NotFoundError(f"Denuncia no encontrada: {report_id}")
        return report

    def resolve(
        self,
        report_id: str,
        outcome: Union[ReportStatus, str] = ReportStatus.RESOLVED,
    ) -> Report:
        """
        Cierra una denuncia pending como resolved o dismissed.

        Raises:
            NotFoundError: Si la denuncia no existe
            ValidationError: Si el outcome no es final o la denuncia ya fue cerrada
        """
        try:
            status = ReportStatus(outcome)
        except ValueError:
            raise ValidationError(f"Resolución inválida: {outcome!r}") from None
        if status == ReportStatus.PENDING:
            raise ValidationError("Una denuncia no puede volver a pending")

        with self._lock:
            report = self._reports.get(report_id)
            if report is None:
                raise NotFoundError(f"Denuncia no encontrada: {report_id}")
            if report.status != ReportStatus.PENDING:
                raise ValidationError(
                    f"La denuncia {report_id} ya está {report.status.value}"
                )
            resolved = report.model_copy(
                update={"status": status, "resolved_at": self.clock.now()}
            )
            self._reports[report_id] = resolved

        logger.info("Denuncia cerrada", report_id=report_id, status=status.value)
        return resolved

    def pending(self) -> list[Report]:
        """Denuncias abiertas, más recientes primero."""
        with self._lock:
            reports = list(self._reports.values())
        open_reports = [r for r in reversed(reports) if r.status == ReportStatus.PENDING]
        return sorted(open_reports, key=lambda r: r.created_at, reverse=True)
