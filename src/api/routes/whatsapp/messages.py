"""Endpoints de envio do WhatsApp.

Endpoints:
- POST /whatsapp/messages: envia um texto (SendOutcome no corpo)
- POST /whatsapp/messages/batch: envia em sequência com pausa anti-spam
- POST /whatsapp/contacts/check: deliverability query por destino

Sem sessão aberta as rotas respondem 503; falhas de envio continuam 200
com success=false, como o dispatcher as reporta.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, HTTPException, Request, status
from pydantic import BaseModel, Field

from app.protocols.models import OutboundRequest
from app.use_cases.whatsapp.send_message import DEFAULT_BATCH_PAUSE_SECONDS

if TYPE_CHECKING:
    from app.bootstrap import GatewayContext
    from app.sessions import SessionHandle

logger = logging.getLogger(__name__)

router = APIRouter()


class BatchSendRequest(BaseModel):
    """Lote de mensagens enviadas na ordem recebida."""

    messages: list[OutboundRequest] = Field(..., min_length=1)
    pause_seconds: float = Field(DEFAULT_BATCH_PAUSE_SECONDS, ge=0)


class ContactCheckRequest(BaseModel):
    """Destinos a consultar (número puro)."""

    destinations: list[str] = Field(..., min_length=1)


def _open_session(request: Request) -> tuple[GatewayContext, SessionHandle]:
    context: GatewayContext | None = getattr(request.app.state, "context", None)
    handle = context.manager.handle if context is not None else None
    if context is None or handle is None or not handle.is_open:
        logger.warning("http_send_rejected", extra={"reason": "session_not_open"})
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="session not open",
        )
    return context, handle


@router.post("/messages")
async def send_message(payload: OutboundRequest, request: Request) -> dict[str, Any]:
    context, handle = _open_session(request)
    outcome = await context.dispatcher.send(handle, payload.destination, payload.body)
    return outcome.as_payload()


@router.post("/messages/batch")
async def send_batch(payload: BatchSendRequest, request: Request) -> dict[str, Any]:
    context, handle = _open_session(request)
    outcomes = await context.dispatcher.send_many(
        handle,
        payload.messages,
        pause_seconds=payload.pause_seconds,
    )
    return {"results": [outcome.as_payload() for outcome in outcomes]}


@router.post("/contacts/check")
async def check_contacts(payload: ContactCheckRequest, request: Request) -> dict[str, Any]:
    context, handle = _open_session(request)
    registered = await context.dispatcher.check_registered(handle, payload.destinations)
    return {"registered": registered}
