"""
Errores del motor.

Todos son fallas locales y sincrónicas: indican input inválido del
llamador, nunca condiciones transitorias, por lo que no se reintentan.
"""


class FeiraoError(Exception):
    """Clase base de los errores del motor."""


class ValidationError(FeiraoError):
    """Input malformado o fuera de rango (descripción larga, rango de precio, etc.)."""


class UnknownReasonError(ValidationError):
    """El motivo de la denuncia no pertenece al conjunto cerrado de motivos."""

    def __init__(self, reason: object):
        self.reason = reason
        super().__init__(f"Motivo de denuncia desconocido: {reason!r}")


class InvalidWindowError(FeiraoError):
    """La ventana de boost viola sus invariantes (expiración <= activación)."""


class InvalidTimestampError(FeiraoError):
    """Timestamp malformado o imposible de interpretar."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Timestamp inválido: {value!r}")


class NotFoundError(FeiraoError):
    """La operación apunta a un listing, ventana o denuncia inexistente."""


class ConfigurationError(FeiraoError):
    """Falta configuración requerida para un colaborador externo (Supabase)."""
