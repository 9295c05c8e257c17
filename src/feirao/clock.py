"""
Abstracción de reloj.

El motor nunca lee el reloj del sistema directamente: recibe un Clock
inyectado para que las transiciones sean deterministas en tests.
"""

import threading
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol


class Clock(Protocol):
    """Fuente de tiempo actual (siempre timezone-aware, UTC)."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Reloj real del sistema."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Reloj manual para tests y simulaciones."""

    def __init__(self, start: Optional[datetime] = None):
        start = start or datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        self._now = start
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def set(self, value: datetime) -> None:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        with self._lock:
            self._now = value

    def advance(self, **kwargs) -> datetime:
        """Avanza el reloj (acepta los mismos argumentos que timedelta)."""
        with self._lock:
            self._now = self._now + timedelta(**kwargs)
            return self._now
