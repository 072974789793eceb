"""Roteamento inbound: normaliza mensagens e despacha para handlers."""

from app.coordinators.whatsapp.inbound.normalizer import extract_body, normalize_inbound
from app.coordinators.whatsapp.inbound.router import (
    InboundRouter,
    MatchKind,
    Route,
    RouteContext,
    RoutingSummary,
)

__all__ = [
    "InboundRouter",
    "MatchKind",
    "Route",
    "RouteContext",
    "RoutingSummary",
    "extract_body",
    "normalize_inbound",
]
