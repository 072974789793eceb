"""Exceções utilitárias compartilhadas."""

from .exceptions import (
    CredentialStoreError,
    GatewayError,
    SessionNotOpenError,
    TransportConstructionError,
)

__all__ = [
    "CredentialStoreError",
    "GatewayError",
    "SessionNotOpenError",
    "TransportConstructionError",
]
