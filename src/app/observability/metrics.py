"""Registro de métricas via structured logging.

As métricas são logs estruturados com `metric_type`, agregáveis depois
por qualquer coletor de logs JSON.

Métricas suportadas:
- Latência: tempo de operações do transporte (deliverability, envio)
- Outcome: contador de envios por resultado
- Reconnect: tentativas de reconexão e seu atraso

Uso:
    start = time.perf_counter()
    # ... operação ...
    record_latency("dispatcher", "send", (time.perf_counter() - start) * 1000)
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def record_latency(
    component: str,
    operation: str,
    latency_ms: float,
) -> None:
    """Registra latência de operação.

    Args:
        component: Nome do componente (ex: "dispatcher")
        operation: Nome da operação (ex: "deliverability", "send")
        latency_ms: Latência em milissegundos
    """
    logger.info(
        "metric_latency",
        extra={
            "metric_type": "latency",
            "component": component,
            "operation": operation,
            "latency_ms": round(latency_ms, 2),
        },
    )


def record_send_outcome(success: bool, reason: str | None = None) -> None:
    """Registra resultado de um envio (sem conteúdo nem destino)."""
    extra: dict[str, object] = {
        "metric_type": "send_outcome",
        "component": "dispatcher",
        "success": success,
    }
    if reason:
        extra["reason"] = reason
    logger.info("metric_send_outcome", extra=extra)


def record_reconnect_attempt(attempt: int, delay_seconds: float, reason: str) -> None:
    """Registra uma tentativa de reconexão agendada."""
    logger.info(
        "metric_reconnect_attempt",
        extra={
            "metric_type": "reconnect",
            "component": "session_manager",
            "attempt": attempt,
            "delay_seconds": round(delay_seconds, 3),
            "reason": reason,
        },
    )
