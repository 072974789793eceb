"""Ciclo de vida da sessão WhatsApp.

Exporta o handle, a política de reconexão e o gerenciador.
"""

from app.sessions.handle import ConnectionState, SessionHandle, identity_from_user_id
from app.sessions.manager import SessionManager
from app.sessions.pairing import TerminalQrRenderer
from app.sessions.reconnect import (
    ReconnectPolicy,
    classify_disconnect,
    extract_status_code,
    should_reconnect,
)

__all__ = [
    "ConnectionState",
    "ReconnectPolicy",
    "SessionHandle",
    "SessionManager",
    "TerminalQrRenderer",
    "classify_disconnect",
    "extract_status_code",
    "identity_from_user_id",
    "should_reconnect",
]
