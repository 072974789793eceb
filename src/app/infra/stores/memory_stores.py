"""Stores em memória — apenas para desenvolvimento e testes.

ATENÇÃO: Não usar em staging/production. Sem persistência entre reinícios.
"""

from __future__ import annotations

import copy
from typing import Any

from app.protocols.credential_store import CredentialStoreProtocol


class MemoryCredentialStore(CredentialStoreProtocol):
    """Store de credenciais em memória — apenas para dev/test."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._credentials: dict[str, Any] | None = copy.deepcopy(initial)
        self.save_count = 0

    async def load(self) -> dict[str, Any]:
        return copy.deepcopy(self._credentials) if self._credentials is not None else {}

    async def save(self, credentials: dict[str, Any]) -> None:
        self._credentials = copy.deepcopy(credentials)
        self.save_count += 1

    async def clear(self) -> None:
        self._credentials = None

    @property
    def is_empty(self) -> bool:
        return not self._credentials
