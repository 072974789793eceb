"""Entrypoint HTTP do wa_gateway.

Inicializa o bootstrap, abre a sessão WhatsApp no startup e expõe a
aplicação ASGI (FastAPI) com endpoints de envio e health.

Uso (produção):
    uvicorn app.app:app --host 0.0.0.0 --port 8080

Uso (desenvolvimento):
    uvicorn app.app:app --reload --host 0.0.0.0 --port 8080

SIGINT/SIGTERM são tratados pelo uvicorn; o shutdown do lifespan aguarda
gravações de credenciais em andamento antes de fechar o socket.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from api.routes import create_api_router
from app.bootstrap import (
    build_context,
    initialize_app,
    start_session,
    validate_runtime_settings,
)
from config.logging import get_logger
from config.settings import get_base_settings
from utils.errors import TransportConstructionError

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from app.bootstrap import GatewayContext

# Inicializar logging ANTES de qualquer import que use logger
initialize_app()

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Gerencia ciclo de vida da sessão.

    Startup:
    - Valida configurações
    - Monta o GatewayContext (se não injetado) e inicia a sessão

    Shutdown:
    - Para reconexões, aguarda gravação de credenciais e fecha o socket
    """
    service = get_base_settings().service_name
    logger.info("app_starting", extra={"service": service})

    context: GatewayContext | None = getattr(app.state, "context", None)
    if context is None:
        validate_runtime_settings()
        context = build_context()
        app.state.context = context

    try:
        await start_session(context)
    except TransportConstructionError:
        logger.critical("session_start_failed", extra={"service": service})
        raise

    yield

    logger.info("app_shutting_down", extra={"service": service})
    await context.manager.shutdown()


def create_app(context: GatewayContext | None = None) -> FastAPI:
    """Cria e configura a aplicação FastAPI.

    Args:
        context: Gateway já montado (testes); None monta a partir do ambiente.
    """
    fastapi_app = FastAPI(
        title="wa_gateway",
        description="Sessão WhatsApp Multi-Device e envio de mensagens de texto",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    fastapi_app.state.context = context
    fastapi_app.include_router(create_api_router())

    logger.info("app_configured", extra={"service": get_base_settings().service_name})
    return fastapi_app


# Aplicação ASGI exposta para uvicorn
app = create_app()


def main() -> None:
    """Entrypoint para execução direta (desenvolvimento)."""
    import uvicorn

    logger.info("Starting wa_gateway in development mode")
    uvicorn.run(
        "app.app:app",
        host="0.0.0.0",
        port=8080,
        reload=True,
    )


if __name__ == "__main__":
    main()
