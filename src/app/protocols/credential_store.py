"""Protocolo de persistência das credenciais da conta."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class CredentialStoreProtocol(ABC):
    """Contrato assíncrono para o blob de credenciais de uma conta.

    O blob é opaco para o gateway: apenas o transporte interpreta seu conteúdo.
    """

    @abstractmethod
    async def load(self) -> dict[str, Any]:
        """Carrega credenciais; retorna dict vazio quando não existem."""

    @abstractmethod
    async def save(self, credentials: dict[str, Any]) -> None:
        """Sobrescreve as credenciais persistidas."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove as credenciais (exige novo pareamento)."""
