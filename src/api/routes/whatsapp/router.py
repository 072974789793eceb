"""Router principal do WhatsApp — agrega todos os endpoints do canal."""

from __future__ import annotations

from fastapi import APIRouter

from api.routes.whatsapp.messages import router as messages_router

router = APIRouter()

router.include_router(messages_router)
