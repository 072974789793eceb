"""Bootstrap da aplicação — inicialização e wiring.

Este módulo é o composition root: configura logging, valida settings e
conecta implementações concretas (store de credenciais, transporte,
renderer de QR) aos protocolos consumidos pelo SessionManager.

Uso:
    from app.bootstrap import build_context, initialize_app, start_session

    # Na inicialização do serviço
    initialize_app()
    validate_runtime_settings()

    context = build_context()
    await start_session(context)
"""

from __future__ import annotations

import logging

from app.bootstrap.context import (
    GatewayContext,
    build_context,
    load_transport_factory,
    register_handler,
    send_message,
    start_session,
)
from app.observability import get_correlation_id
from config.logging import configure_logging
from config.settings import (
    get_auto_reply_settings,
    get_base_settings,
    get_session_settings,
    get_transport_settings,
)

STRICT_VALIDATION_ENVS = {"staging", "production"}

logger = logging.getLogger(__name__)


def initialize_app() -> None:
    """Inicializa logging estruturado JSON com correlation_id.

    Deve ser chamada uma vez no início do processo.
    """
    base = get_base_settings()
    configure_logging(
        level=base.log_level,
        service_name=base.service_name,
        correlation_id_getter=get_correlation_id,
    )


def validate_runtime_settings() -> None:
    """Valida settings obrigatórias no startup.

    Em `staging`/`production` falha rápido para impedir boot inválido.
    Em `development` mantém alerta sem bloquear execução local.
    """
    base = get_base_settings()
    environment = base.environment
    strict_mode = environment in STRICT_VALIDATION_ENVS
    errors: list[str] = []

    errors.extend(f"base: {error}" for error in base.validate())
    errors.extend(f"session: {error}" for error in get_session_settings().validate())
    errors.extend(f"transport: {error}" for error in get_transport_settings().validate())
    errors.extend(f"auto_replies: {error}" for error in get_auto_reply_settings().validate())

    if not errors:
        logger.info(
            "settings_validated",
            extra={"component": "bootstrap", "result": "ok", "environment": environment},
        )
        return

    logger.warning(
        "settings_validation_failed",
        extra={
            "component": "bootstrap",
            "result": "failed",
            "environment": environment,
            "error_count": len(errors),
            "errors": errors,
        },
    )
    if strict_mode:
        details = "\n".join(f"- {error}" for error in errors)
        raise RuntimeError(f"Configuração inválida para {environment}:\n{details}")


__all__ = [
    "GatewayContext",
    "build_context",
    "initialize_app",
    "load_transport_factory",
    "register_handler",
    "send_message",
    "start_session",
    "validate_runtime_settings",
]
