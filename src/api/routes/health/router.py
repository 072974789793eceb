"""Endpoints de health check."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config.logging import mask_address
from config.settings import get_base_settings

if TYPE_CHECKING:
    from app.bootstrap import GatewayContext

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    """Resposta do health check."""

    status: str
    service: str
    timestamp: str
    version: str = "1.0.0"


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness probe — verifica se o processo está rodando."""
    return HealthResponse(
        status="healthy",
        service=get_base_settings().service_name,
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get("/ready")
async def readiness_check(request: Request) -> JSONResponse:
    """Readiness probe — pronto somente com a sessão WhatsApp aberta."""
    context: GatewayContext | None = getattr(request.app.state, "context", None)
    session = _session_snapshot(context)
    ready = session["state"] == "open"

    if not ready:
        logger.debug("readiness_not_ready", extra={"session_state": session["state"]})

    payload = {
        "status": "ready" if ready else "not_ready",
        "checks": {"session": session},
        "timestamp": datetime.now(UTC).isoformat(),
    }
    return JSONResponse(content=payload, status_code=200 if ready else 503)


def _session_snapshot(context: GatewayContext | None) -> dict[str, Any]:
    if context is None or context.manager.handle is None:
        return {"state": "not_started", "generation": None, "identity_hash": None}

    handle = context.manager.handle
    return {
        "state": handle.state.value,
        "generation": handle.generation,
        "identity_hash": mask_address(handle.identity) if handle.identity else None,
        "terminated": context.manager.is_terminated,
        "reconnect_attempts": context.manager.reconnect_attempts,
    }
