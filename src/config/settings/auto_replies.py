"""Settings das respostas automáticas por palavra-chave."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from zoneinfo import available_timezones

# Tabela padrão empacotada junto do pacote config
DEFAULT_AUTO_REPLIES_PATH = str(Path(__file__).resolve().parents[1] / "auto_replies.yaml")


@dataclass(frozen=True)
class AutoReplySettings:
    """Configurações do autoresponder.

    Attributes:
        enabled: Registra as regras no InboundRouter na inicialização
        rules_path: Caminho do YAML de regras
        timezone: Fuso usado no placeholder {now}
    """

    enabled: bool = True
    rules_path: str = DEFAULT_AUTO_REPLIES_PATH
    timezone: str = "Europe/Moscow"

    def validate(self) -> list[str]:
        """Valida configurações do autoresponder."""
        errors: list[str] = []

        if self.enabled and not Path(self.rules_path).exists():
            errors.append(f"WA_AUTO_REPLIES_PATH não encontrado: {self.rules_path}")

        if self.timezone not in available_timezones():
            errors.append(f"WA_AUTO_REPLY_TIMEZONE inválido: {self.timezone}")

        return errors


def _load_from_env() -> AutoReplySettings:
    return AutoReplySettings(
        enabled=os.getenv("WA_AUTO_REPLIES_ENABLED", "true").lower() in ("true", "1", "yes"),
        rules_path=os.getenv("WA_AUTO_REPLIES_PATH", DEFAULT_AUTO_REPLIES_PATH),
        timezone=os.getenv("WA_AUTO_REPLY_TIMEZONE", "Europe/Moscow"),
    )


@lru_cache(maxsize=1)
def get_auto_reply_settings() -> AutoReplySettings:
    """Retorna instância cacheada de AutoReplySettings."""
    return _load_from_env()
