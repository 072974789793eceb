"""Credenciais em disco (pasta de autenticação).

Layout:
    <auth_folder>/creds.json   blob JSON; bytes viram {"type": "Buffer", "data": <base64>}

A pasta é segredo: criada com 0o700, arquivo com 0o600, fora do git e de
qualquer artefato de distribuição. Escrita atômica (tmp + os.replace) para
que um crash no meio da gravação nunca deixe um creds.json truncado.
"""

from __future__ import annotations

import asyncio
import base64
import contextlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from app.protocols.credential_store import CredentialStoreProtocol
from utils.errors import CredentialStoreError

logger = logging.getLogger(__name__)

CREDS_FILENAME = "creds.json"


def _encode_default(value: Any) -> Any:
    if isinstance(value, bytes | bytearray):
        return {"type": "Buffer", "data": base64.b64encode(bytes(value)).decode("ascii")}
    raise TypeError(f"Tipo não serializável em credenciais: {type(value).__name__}")


def _decode_hook(obj: dict[str, Any]) -> Any:
    if obj.keys() == {"type", "data"} and obj["type"] == "Buffer":
        return base64.b64decode(obj["data"])
    return obj


def dumps_credentials(credentials: dict[str, Any]) -> str:
    """Serializa credenciais preservando bytes."""
    return json.dumps(credentials, default=_encode_default, sort_keys=True)


def loads_credentials(raw: str) -> dict[str, Any]:
    """Desserializa credenciais restaurando bytes."""
    data = json.loads(raw, object_hook=_decode_hook)
    if not isinstance(data, dict):
        raise CredentialStoreError("creds.json deve conter um objeto JSON")
    return data


class FileCredentialStore(CredentialStoreProtocol):
    """Store de credenciais em arquivo JSON único."""

    def __init__(self, folder: str | Path) -> None:
        self._folder = Path(folder)
        self._path = self._folder / CREDS_FILENAME

    @property
    def path(self) -> Path:
        return self._path

    def _ensure_folder(self) -> None:
        self._folder.mkdir(mode=0o700, parents=True, exist_ok=True)

    def _load_sync(self) -> dict[str, Any]:
        self._ensure_folder()
        if not self._path.exists():
            logger.info("credentials_not_found", extra={"component": "credential_store"})
            return {}
        try:
            return loads_credentials(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise CredentialStoreError(f"Falha ao ler credenciais: {exc}") from exc

    def _save_sync(self, credentials: dict[str, Any]) -> None:
        self._ensure_folder()
        try:
            data = dumps_credentials(credentials)
        except (TypeError, ValueError) as exc:
            raise CredentialStoreError(f"Credenciais não serializáveis: {exc}") from exc

        fd, tmp_name = tempfile.mkstemp(dir=self._folder, prefix=".creds-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(data)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self._path)
        except OSError as exc:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise CredentialStoreError(f"Falha ao gravar credenciais: {exc}") from exc

    def _clear_sync(self) -> None:
        with contextlib.suppress(FileNotFoundError):
            self._path.unlink()

    async def load(self) -> dict[str, Any]:
        return await asyncio.to_thread(self._load_sync)

    async def save(self, credentials: dict[str, Any]) -> None:
        await asyncio.to_thread(self._save_sync, credentials)
        logger.debug("credentials_saved", extra={"component": "credential_store"})

    async def clear(self) -> None:
        await asyncio.to_thread(self._clear_sync)
        logger.info("credentials_cleared", extra={"component": "credential_store"})
