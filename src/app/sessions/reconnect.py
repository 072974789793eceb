"""Política de reconexão e classificação de encerramentos.

Backoff exponencial com teto e número máximo de tentativas consecutivas.
Com backoff_factor=1.0 e base 3s reproduz a espera fixa de 3000 ms.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from app.constants.whatsapp import DisconnectReason

if TYPE_CHECKING:
    from config.settings import SessionSettings


@dataclass(frozen=True)
class ReconnectPolicy:
    """Parâmetros de reconexão.

    Attributes:
        base_delay_seconds: Espera antes da 1ª tentativa
        backoff_factor: Multiplicador por tentativa
        max_delay_seconds: Teto da espera
        max_attempts: Tentativas consecutivas permitidas (0 = sem limite)
    """

    base_delay_seconds: float = 3.0
    backoff_factor: float = 2.0
    max_delay_seconds: float = 60.0
    max_attempts: int = 5

    @classmethod
    def from_settings(cls, settings: SessionSettings) -> ReconnectPolicy:
        return cls(
            base_delay_seconds=settings.reconnect_base_delay_seconds,
            backoff_factor=settings.reconnect_backoff_factor,
            max_delay_seconds=settings.reconnect_max_delay_seconds,
            max_attempts=settings.reconnect_max_attempts,
        )

    def allows(self, attempt: int) -> bool:
        """True se a tentativa `attempt` (1-based) ainda é permitida."""
        return self.max_attempts == 0 or attempt <= self.max_attempts

    def delay_for(self, attempt: int) -> float:
        """Espera antes da tentativa `attempt` (1-based)."""
        delay = self.base_delay_seconds * (self.backoff_factor ** max(attempt - 1, 0))
        return min(delay, self.max_delay_seconds)


def _lookup(obj: Any, key: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(key)
    return getattr(obj, key, None)


def extract_status_code(last_disconnect: Any) -> int | None:
    """Extrai o status code de um lastDisconnect.

    Aceita {"error": ...} ou o próprio erro; o erro pode expor
    `output.statusCode` (estilo Boom), `output.status_code` ou `status_code`.
    """
    if last_disconnect is None:
        return None
    error = _lookup(last_disconnect, "error")
    if error is None:
        error = last_disconnect

    output = _lookup(error, "output")
    candidates = (
        _lookup(output, "statusCode") if output is not None else None,
        _lookup(output, "status_code") if output is not None else None,
        _lookup(error, "status_code"),
        _lookup(error, "statusCode"),
    )
    for code in candidates:
        if isinstance(code, int) and not isinstance(code, bool):
            return code
    return None


def classify_disconnect(last_disconnect: Any) -> DisconnectReason | None:
    """Mapeia o lastDisconnect para DisconnectReason (None se desconhecido)."""
    code = extract_status_code(last_disconnect)
    if code is None:
        return None
    try:
        return DisconnectReason(code)
    except ValueError:
        return None


def should_reconnect(last_disconnect: Any) -> bool:
    """Reconecta em qualquer encerramento exceto loggedOut."""
    reason = classify_disconnect(last_disconnect)
    return reason is None or reason.is_recoverable
