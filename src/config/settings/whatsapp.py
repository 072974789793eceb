"""Settings específicas do transporte WhatsApp (Multi-Device).

Opções repassadas ao construtor do socket do cliente WhatsApp.
Nenhuma delas muda o modelo de dados do gateway; apenas o comportamento
do transporte.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

# Sufixo canônico de contas de usuário na rede WhatsApp
USER_DOMAIN: str = "s.whatsapp.net"

# Versão de SO reportada junto da plataforma Ubuntu
BROWSER_VERSION = "22.04.4"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class TransportSettings:
    """Configurações do socket WhatsApp.

    Attributes:
        connect_timeout_ms: Limite para estabelecer o socket
        keep_alive_interval_ms: Intervalo dos pings de keep-alive
        default_query_timeout_ms: Timeout por query; 0 = default da biblioteca
        emit_own_events: Mensagens enviadas por nós também chegam como inbound
        mark_online_on_connect: Marca presença "online" ao conectar
        browser_platform: Plataforma exibida em "Aparelhos conectados"
        browser_name: Nome do cliente exibido em "Aparelhos conectados"
        user_domain: Sufixo canônico aplicado a endereços sem domínio
        factory_path: "pacote.modulo:callable" que constrói o cliente WhatsApp
    """

    connect_timeout_ms: int = 60_000
    keep_alive_interval_ms: int = 10_000
    default_query_timeout_ms: int = 0
    emit_own_events: bool = True
    mark_online_on_connect: bool = True
    browser_platform: str = "Ubuntu"
    browser_name: str = "WhatsApp Bot"
    user_domain: str = USER_DOMAIN
    factory_path: str = ""

    @property
    def browser(self) -> tuple[str, str, str]:
        """Identificação (plataforma, cliente, versão) no formato do transporte."""
        return (self.browser_platform, self.browser_name, BROWSER_VERSION)

    def to_transport_options(self) -> dict[str, Any]:
        """Opções nomeadas para o construtor do transporte."""
        return {
            "connect_timeout_ms": self.connect_timeout_ms,
            "keep_alive_interval_ms": self.keep_alive_interval_ms,
            "default_query_timeout_ms": self.default_query_timeout_ms,
            "emit_own_events": self.emit_own_events,
            "mark_online_on_connect": self.mark_online_on_connect,
            "browser": self.browser,
        }

    def validate(self) -> list[str]:
        """Valida configurações mínimas do transporte.

        Returns:
            Lista de erros de validação (vazia = tudo OK).
        """
        errors: list[str] = []

        if self.connect_timeout_ms <= 0:
            errors.append("WA_CONNECT_TIMEOUT_MS deve ser > 0")

        if self.keep_alive_interval_ms <= 0:
            errors.append("WA_KEEP_ALIVE_INTERVAL_MS deve ser > 0")

        if self.default_query_timeout_ms < 0:
            errors.append("WA_DEFAULT_QUERY_TIMEOUT_MS deve ser >= 0")

        if not self.user_domain or "@" in self.user_domain:
            errors.append("WA_USER_DOMAIN inválido")

        if not self.factory_path:
            errors.append("WA_TRANSPORT_FACTORY não configurado")
        elif ":" not in self.factory_path:
            errors.append("WA_TRANSPORT_FACTORY deve ter o formato modulo:callable")

        return errors


def _load_from_env() -> TransportSettings:
    """Carrega TransportSettings a partir de variáveis de ambiente."""
    return TransportSettings(
        connect_timeout_ms=int(os.getenv("WA_CONNECT_TIMEOUT_MS", "60000")),
        keep_alive_interval_ms=int(os.getenv("WA_KEEP_ALIVE_INTERVAL_MS", "10000")),
        default_query_timeout_ms=int(os.getenv("WA_DEFAULT_QUERY_TIMEOUT_MS", "0")),
        emit_own_events=_env_bool("WA_EMIT_OWN_EVENTS", "true"),
        mark_online_on_connect=_env_bool("WA_MARK_ONLINE_ON_CONNECT", "true"),
        browser_platform=os.getenv("WA_BROWSER_PLATFORM", "Ubuntu"),
        browser_name=os.getenv("WA_BROWSER_NAME", "WhatsApp Bot"),
        user_domain=os.getenv("WA_USER_DOMAIN", USER_DOMAIN),
        factory_path=os.getenv("WA_TRANSPORT_FACTORY", ""),
    )


@lru_cache(maxsize=1)
def get_transport_settings() -> TransportSettings:
    """Retorna instância cacheada de TransportSettings."""
    return _load_from_env()
