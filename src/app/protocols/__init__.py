"""Protocolos e contratos do core da aplicação."""

from .credential_store import CredentialStoreProtocol
from .models import InboundMessage, OutboundRequest, SendOutcome
from .pairing import PairingRendererProtocol
from .transport import EventListener, TransportFactory, WhatsAppTransportProtocol

__all__ = [
    "CredentialStoreProtocol",
    "EventListener",
    "InboundMessage",
    "OutboundRequest",
    "PairingRendererProtocol",
    "SendOutcome",
    "TransportFactory",
    "WhatsAppTransportProtocol",
]
