"""Implementações concretas de stores."""

from app.infra.stores.file_credential_store import FileCredentialStore
from app.infra.stores.memory_stores import MemoryCredentialStore

__all__ = [
    "FileCredentialStore",
    "MemoryCredentialStore",
]
