"""Exceções do gateway.

Somente a falha de construção do transporte atravessa a fronteira de
start(); as demais falhas de sessão viram transições de estado e as
falhas de envio viram SendOutcome.
"""

from __future__ import annotations


class GatewayError(RuntimeError):
    """Base para erros do gateway WhatsApp."""


class TransportConstructionError(GatewayError):
    """O cliente WhatsApp não pôde ser construído (fatal no primeiro start)."""


class SessionNotOpenError(GatewayError):
    """A sessão não chegou ao estado open dentro do prazo."""


class CredentialStoreError(GatewayError):
    """Falha de IO ao ler/gravar credenciais."""
