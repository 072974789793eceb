"""Settings de ciclo de vida da sessão.

Credenciais em disco e política de reconexão.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

DEFAULT_AUTH_FOLDER = "./auth_info"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class SessionSettings:
    """Configurações de sessão.

    Attributes:
        auth_folder: Pasta das credenciais (segredo; fora de qualquer artefato)
        reconnect_base_delay_seconds: Espera antes da 1ª reconexão
        reconnect_backoff_factor: Multiplicador por tentativa (1.0 = espera fixa)
        reconnect_max_delay_seconds: Teto da espera entre tentativas
        reconnect_max_attempts: Tentativas consecutivas (0 = sem limite)
        clear_credentials_on_logout: Apaga credenciais ao receber loggedOut
    """

    auth_folder: str = DEFAULT_AUTH_FOLDER
    reconnect_base_delay_seconds: float = 3.0
    reconnect_backoff_factor: float = 2.0
    reconnect_max_delay_seconds: float = 60.0
    reconnect_max_attempts: int = 5
    clear_credentials_on_logout: bool = False

    def validate(self) -> list[str]:
        """Valida configurações de sessão.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if not self.auth_folder:
            errors.append("WA_AUTH_FOLDER não pode ser vazio")

        if self.reconnect_base_delay_seconds < 0:
            errors.append("WA_RECONNECT_BASE_DELAY_SECONDS deve ser >= 0")

        if self.reconnect_backoff_factor < 1:
            errors.append("WA_RECONNECT_BACKOFF_FACTOR deve ser >= 1")

        if self.reconnect_max_delay_seconds < self.reconnect_base_delay_seconds:
            errors.append(
                "WA_RECONNECT_MAX_DELAY_SECONDS deve ser >= WA_RECONNECT_BASE_DELAY_SECONDS"
            )

        if self.reconnect_max_attempts < 0:
            errors.append("WA_RECONNECT_MAX_ATTEMPTS deve ser >= 0")

        return errors


def _load_session_from_env() -> SessionSettings:
    """Carrega SessionSettings de variáveis de ambiente."""
    return SessionSettings(
        auth_folder=os.getenv("WA_AUTH_FOLDER", DEFAULT_AUTH_FOLDER),
        reconnect_base_delay_seconds=float(
            os.getenv("WA_RECONNECT_BASE_DELAY_SECONDS", "3")
        ),
        reconnect_backoff_factor=float(os.getenv("WA_RECONNECT_BACKOFF_FACTOR", "2")),
        reconnect_max_delay_seconds=float(
            os.getenv("WA_RECONNECT_MAX_DELAY_SECONDS", "60")
        ),
        reconnect_max_attempts=int(os.getenv("WA_RECONNECT_MAX_ATTEMPTS", "5")),
        clear_credentials_on_logout=_env_bool("WA_CLEAR_CREDENTIALS_ON_LOGOUT", "false"),
    )


@lru_cache(maxsize=1)
def get_session_settings() -> SessionSettings:
    """Retorna instância cacheada de SessionSettings."""
    return _load_session_from_env()
