"""Protocolo de exibição do desafio de pareamento (QR)."""

from __future__ import annotations

from typing import Protocol


class PairingRendererProtocol(Protocol):
    """Exibe o payload do QR para leitura fora de banda."""

    def render(self, payload: str) -> None: ...
