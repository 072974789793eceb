"""InboundRouter — roteia lotes de messages.upsert para handlers.

Regras de roteamento:
    - Lote com type != "notify" (replay/backlog) é ignorado inteiro
    - Mensagem com fromMe é ignorada (nunca reprocessamos nossos envios)
    - Handlers avaliados na ordem de registro; SOMENTE O PRIMEIRO que casar
      é executado (first match)
    - Mensagens de um lote são processadas em sequência, na ordem de chegada;
      um lote termina por completo antes do próximo começar

Falha de handler é logada e não interrompe o lote.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from app.constants.whatsapp import UpsertType
from app.coordinators.whatsapp.inbound.normalizer import normalize_inbound
from app.observability import correlation_scope
from app.protocols.models import InboundMessage, SendOutcome
from config.logging import mask_address

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable, Mapping

    from app.sessions.handle import SessionHandle
    from app.use_cases.whatsapp.send_message import MessageDispatcher

    RouteAction = Callable[["RouteContext"], Awaitable[None]]
    SessionProvider = Callable[[], SessionHandle | None]

logger = logging.getLogger(__name__)

SESSION_NOT_AVAILABLE = "session not available"


class MatchKind(StrEnum):
    """Forma de comparação do predicado com o texto da mensagem."""

    EXACT = "exact"
    PREFIX = "prefix"
    CONTAINS = "contains"


@dataclass(frozen=True)
class Route:
    """Par (predicado, ação) registrado no router."""

    name: str
    kind: MatchKind
    pattern: str
    action: RouteAction
    case_sensitive: bool = False

    def matches(self, body: str) -> bool:
        text = body.strip() if self.kind is MatchKind.EXACT else body
        pattern = self.pattern
        if not self.case_sensitive:
            text, pattern = text.casefold(), pattern.casefold()

        if self.kind is MatchKind.EXACT:
            return text == pattern
        if self.kind is MatchKind.PREFIX:
            return text.startswith(pattern)
        return pattern in text


@dataclass(frozen=True)
class RouteContext:
    """Contexto entregue à ação de uma rota."""

    message: InboundMessage
    session: SessionHandle | None
    dispatcher: MessageDispatcher
    route: Route

    async def reply(self, text: str) -> SendOutcome:
        """Responde ao remetente da mensagem pela sessão corrente."""
        if self.session is None:
            return SendOutcome.failed(SESSION_NOT_AVAILABLE)
        return await self.dispatcher.reply(self.session, self.message.sender, text)


@dataclass
class RoutingSummary:
    """Métricas de um passe de roteamento (um lote)."""

    upsert_type: str
    received: int = 0
    processed: int = 0
    skipped_own: int = 0
    skipped_batch: bool = False
    matched: list[str] = field(default_factory=list)
    handler_errors: int = 0


class InboundRouter:
    """Dono da lista ordenada de rotas.

    Args:
        dispatcher: Usado por RouteContext.reply()
        session_provider: Retorna o SessionHandle corrente (muda a cada reconexão)
    """

    def __init__(
        self,
        dispatcher: MessageDispatcher,
        session_provider: SessionProvider | None = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._session_provider = session_provider or (lambda: None)
        self._routes: list[Route] = []
        self._lock = asyncio.Lock()

    @property
    def routes(self) -> tuple[Route, ...]:
        return tuple(self._routes)

    def register(
        self,
        kind: MatchKind | str,
        pattern: str,
        action: RouteAction,
        *,
        name: str | None = None,
        case_sensitive: bool = False,
    ) -> Route:
        """Registra uma rota no fim da lista (menor prioridade)."""
        if not pattern:
            raise ValueError("pattern não pode ser vazio")
        route = Route(
            name=name or f"{MatchKind(kind).value}:{pattern}",
            kind=MatchKind(kind),
            pattern=pattern,
            action=action,
            case_sensitive=case_sensitive,
        )
        self._routes.append(route)
        logger.debug("route_registered", extra={"route": route.name, "kind": route.kind.value})
        return route

    def on_exact(self, pattern: str, **kwargs: Any) -> Callable[[RouteAction], RouteAction]:
        return self._decorator(MatchKind.EXACT, pattern, **kwargs)

    def on_prefix(self, pattern: str, **kwargs: Any) -> Callable[[RouteAction], RouteAction]:
        return self._decorator(MatchKind.PREFIX, pattern, **kwargs)

    def on_contains(self, pattern: str, **kwargs: Any) -> Callable[[RouteAction], RouteAction]:
        return self._decorator(MatchKind.CONTAINS, pattern, **kwargs)

    def _decorator(
        self,
        kind: MatchKind,
        pattern: str,
        **kwargs: Any,
    ) -> Callable[[RouteAction], RouteAction]:
        def decorator(action: RouteAction) -> RouteAction:
            self.register(kind, pattern, action, **kwargs)
            return action

        return decorator

    def match(self, body: str) -> Route | None:
        """Primeira rota que casa com o texto, ou None."""
        for route in self._routes:
            if route.matches(body):
                return route
        return None

    async def __call__(self, messages: list[Mapping[str, Any]], upsert_type: str) -> None:
        """Assinatura de inbound sink do SessionManager."""
        await self.route(messages, upsert_type)

    async def route(
        self,
        messages: Iterable[Mapping[str, Any] | InboundMessage],
        upsert_type: str,
    ) -> RoutingSummary:
        """Processa um lote inteiro antes de liberar o próximo."""
        async with self._lock:
            return await self._route_batch(list(messages), upsert_type)

    async def _route_batch(
        self,
        messages: list[Mapping[str, Any] | InboundMessage],
        upsert_type: str,
    ) -> RoutingSummary:
        summary = RoutingSummary(upsert_type=upsert_type, received=len(messages))

        if upsert_type != UpsertType.NOTIFY:
            summary.skipped_batch = True
            logger.debug(
                "inbound_batch_skipped",
                extra={"upsert_type": upsert_type, "batch_size": len(messages)},
            )
            return summary

        for raw in messages:
            with correlation_scope():
                await self._dispatch_one(normalize_inbound(raw), summary)

        logger.info(
            "inbound_processed",
            extra={
                "received": summary.received,
                "processed": summary.processed,
                "skipped_own": summary.skipped_own,
                "matched": len(summary.matched),
                "handler_errors": summary.handler_errors,
            },
        )
        return summary

    async def _dispatch_one(self, message: InboundMessage, summary: RoutingSummary) -> None:
        if message.from_me:
            summary.skipped_own += 1
            return

        summary.processed += 1
        logger.info(
            "inbound_message_received",
            extra={
                "sender_hash": mask_address(message.sender),
                "has_sender_name": message.sender_name is not None,
                "body_length": len(message.body),
            },
        )

        route = self.match(message.body)
        if route is None:
            return

        summary.matched.append(route.name)
        context = RouteContext(
            message=message,
            session=self._session_provider(),
            dispatcher=self._dispatcher,
            route=route,
        )
        try:
            await route.action(context)
        except Exception:
            summary.handler_errors += 1
            logger.exception("route_handler_failed", extra={"route": route.name})
