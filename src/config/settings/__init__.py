"""Agregador de settings do wa_gateway.

Re-exporta todas as settings e funções de cada módulo.
Organização por domínio para isolamento de mudanças.
"""

from __future__ import annotations

from config.settings.auto_replies import (
    DEFAULT_AUTO_REPLIES_PATH,
    AutoReplySettings,
    get_auto_reply_settings,
)

# Base settings
from config.settings.base import (
    DEFAULT_AUTH_FOLDER,
    BaseSettings,
    Environment,
    SessionSettings,
    get_base_settings,
    get_session_settings,
)

# Transporte WhatsApp
from config.settings.whatsapp import (
    USER_DOMAIN,
    TransportSettings,
    get_transport_settings,
)

__all__ = [
    # Constants
    "DEFAULT_AUTH_FOLDER",
    "DEFAULT_AUTO_REPLIES_PATH",
    "USER_DOMAIN",
    # Settings
    "AutoReplySettings",
    "BaseSettings",
    "Environment",
    "SessionSettings",
    "TransportSettings",
    "get_auto_reply_settings",
    "get_base_settings",
    "get_session_settings",
    "get_transport_settings",
]
