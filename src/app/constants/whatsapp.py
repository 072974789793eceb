"""Enums e constantes do transporte WhatsApp Multi-Device."""

from __future__ import annotations

from enum import IntEnum, StrEnum

# Mensagem fixa de SendOutcome quando a deliverability query é negativa
DESTINATION_NOT_REGISTERED = "destination not registered"


class TransportEvent(StrEnum):
    """Eventos emitidos pelo transporte e observados pelo SessionManager."""

    CONNECTION_UPDATE = "connection.update"
    CREDS_UPDATE = "creds.update"
    MESSAGES_UPSERT = "messages.upsert"


class UpsertType(StrEnum):
    """Tipo de lote em messages.upsert."""

    NOTIFY = "notify"  # tráfego ao vivo
    APPEND = "append"  # replay de histórico/backlog


class DisconnectReason(IntEnum):
    """Códigos de encerramento reportados no lastDisconnect do transporte."""

    CONNECTION_LOST = 408
    CONNECTION_CLOSED = 428
    CONNECTION_REPLACED = 440
    LOGGED_OUT = 401
    FORBIDDEN = 403
    MULTIDEVICE_MISMATCH = 411
    BAD_SESSION = 500
    UNAVAILABLE_SERVICE = 503
    RESTART_REQUIRED = 515

    @property
    def is_recoverable(self) -> bool:
        """loggedOut é a única desautorização explícita (sem reconexão)."""
        return self is not DisconnectReason.LOGGED_OUT
