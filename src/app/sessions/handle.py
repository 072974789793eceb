"""SessionHandle — conexão lógica viva ou pendente com a rede WhatsApp."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from app.protocols.transport import WhatsAppTransportProtocol


class ConnectionState(StrEnum):
    """Estado do socket observado via connection.update."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


@dataclass
class SessionHandle:
    """Handle de uma sessão criada por SessionManager.start().

    Mutado apenas pelo SessionManager. Invariante: identity != None
    somente enquanto state == OPEN.

    Attributes:
        transport: Socket do cliente WhatsApp
        generation: Número do start() que criou o handle (1 = inicial)
        state: Estado atual da conexão
        identity: Conta autenticada (número, sem dispositivo nem domínio)
        last_disconnect: Último motivo de encerramento reportado
    """

    transport: WhatsAppTransportProtocol
    generation: int = 1
    state: ConnectionState = ConnectionState.CONNECTING
    identity: str | None = None
    last_disconnect: Any | None = None

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN

    def mark_connecting(self) -> None:
        self.state = ConnectionState.CONNECTING
        self.identity = None

    def mark_open(self, identity: str) -> None:
        self.state = ConnectionState.OPEN
        self.identity = identity
        self.last_disconnect = None

    def mark_closed(self, last_disconnect: Any | None) -> None:
        self.state = ConnectionState.CLOSED
        self.identity = None
        self.last_disconnect = last_disconnect


def identity_from_user_id(user_id: str | None) -> str:
    """Extrai o número da conta de um JID com dispositivo.

    "79123456789:12@s.whatsapp.net" -> "79123456789"
    """
    if not user_id:
        return ""
    return user_id.split("@", 1)[0].split(":", 1)[0]
