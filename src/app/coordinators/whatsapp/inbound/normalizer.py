"""Normalização de mensagens brutas de messages.upsert.

Formato de entrada (socket Multi-Device):
    {
        "key": {"remoteJid": "79123456789@s.whatsapp.net", "fromMe": False, "id": "3EB0..."},
        "pushName": "Ivan",
        "message": {"conversation": "привет"},
        "messageTimestamp": 1700000000,
    }
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from app.protocols.models import InboundMessage

# Envelopes que só embrulham outro conteúdo
_WRAPPER_KEYS = ("ephemeralMessage", "viewOnceMessage", "viewOnceMessageV2")

# Caminhos com texto, na ordem de preferência
_TEXT_PATHS: tuple[tuple[str, ...], ...] = (
    ("conversation",),
    ("extendedTextMessage", "text"),
    ("imageMessage", "caption"),
    ("videoMessage", "caption"),
)


def _unwrap(content: Mapping[str, Any]) -> Mapping[str, Any]:
    for key in _WRAPPER_KEYS:
        inner = content.get(key)
        if isinstance(inner, Mapping) and isinstance(inner.get("message"), Mapping):
            return _unwrap(inner["message"])
    return content


def extract_body(content: Mapping[str, Any] | None) -> str:
    """Primeiro texto não vazio entre os formatos conhecidos; "" se nenhum."""
    if not isinstance(content, Mapping):
        return ""
    content = _unwrap(content)
    for path in _TEXT_PATHS:
        node: Any = content
        for key in path:
            node = node.get(key) if isinstance(node, Mapping) else None
        if isinstance(node, str) and node:
            return node
    return ""


def _timestamp(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def normalize_inbound(raw: Mapping[str, Any] | InboundMessage) -> InboundMessage:
    """Converte a mensagem bruta em InboundMessage (tolerante a campos ausentes)."""
    if isinstance(raw, InboundMessage):
        return raw
    key = raw.get("key") or {}
    return InboundMessage(
        message_id=str(key.get("id") or ""),
        sender=str(key.get("remoteJid") or ""),
        sender_name=raw.get("pushName") or None,
        body=extract_body(raw.get("message")),
        from_me=bool(key.get("fromMe", False)),
        timestamp=_timestamp(raw.get("messageTimestamp")),
    )
