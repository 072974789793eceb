"""Formatter JSON com campos obrigatórios.

Cada linha de log é um objeto JSON com asctime, level, logger, message,
correlation_id e service, seguido dos campos passados via `extra`.
"""

from __future__ import annotations

from pythonjsonlogger.json import JsonFormatter

# Ordem estável dos campos obrigatórios na saída
REQUIRED_LOG_FIELDS: tuple[str, ...] = (
    "asctime",
    "levelname",
    "name",
    "message",
    "correlation_id",
    "service",
)

FIELD_RENAME_MAP = {
    "levelname": "level",
    "name": "logger",
}


def create_json_formatter() -> JsonFormatter:
    """Cria formatter JSON com campos padronizados.

    Exemplo de output:
        {"asctime": "2026-10-19 10:30:00,120", "level": "INFO",
         "logger": "app.sessions.manager", "message": "session_open",
         "correlation_id": "", "service": "wa_gateway", "identity_hash": "9f2c41aa"}
    """
    format_string = " ".join(f"%({field})s" for field in REQUIRED_LOG_FIELDS)
    return JsonFormatter(format_string, rename_fields=FIELD_RENAME_MAP)
