"""Contrato consumido do cliente WhatsApp Multi-Device.

O gateway não implementa protocolo, criptografia nem pareamento: tudo isso
pertence ao cliente externo. Este módulo descreve apenas a superfície usada.

Formatos esperados (dicts no estilo do socket Multi-Device):
    user:              {"id": "79123456789:12@s.whatsapp.net", "name": "..."}
    on_whatsapp(n):    [{"exists": True, "jid": "79123456789@s.whatsapp.net"}]
    send_message(...): {"key": {"id": "ABC123", ...}, "messageTimestamp": 1700000000}
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Protocol

EventListener = Callable[[Any], Awaitable[None]]


class WhatsAppTransportProtocol(Protocol):
    """Socket do cliente WhatsApp já construído (pode ainda não estar open)."""

    user: Mapping[str, Any] | None

    def on(self, event: str, listener: EventListener) -> None:
        """Registra observer para um evento do transporte."""
        ...

    async def on_whatsapp(self, *addresses: str) -> list[Mapping[str, Any]]:
        """Deliverability query; espera endereços na forma pura (sem domínio)."""
        ...

    async def send_message(
        self,
        jid: str,
        content: Mapping[str, Any],
    ) -> Mapping[str, Any] | None:
        """Envia conteúdo para um JID completo."""
        ...

    async def end(self) -> None:
        """Encerra o socket."""
        ...


# factory(credentials, options) -> transporte (sync ou awaitable)
TransportFactory = Callable[
    [dict[str, Any], dict[str, Any]],
    "WhatsAppTransportProtocol | Awaitable[WhatsAppTransportProtocol]",
]
