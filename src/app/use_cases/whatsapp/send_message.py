"""MessageDispatcher — envio de texto com resultado uniforme.

Fachada sem estado sobre uma sessão aberta:
    1. Normaliza o destino (acrescenta @s.whatsapp.net quando não há domínio)
    2. Deliverability query com a forma PURA do destino (a API espera o número;
       passar o JID completo gera falso negativo)
    3. Destino inexistente -> SendOutcome.failed("destination not registered")
    4. Envio para o destino normalizado -> SendOutcome.ok(id, timestamp)

Nunca propaga exceções: todo caminho retorna SendOutcome. Uma deliverability
query e no máximo um envio por chamada, sem retry interno.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from app.constants.whatsapp import DESTINATION_NOT_REGISTERED
from app.observability import record_latency, record_send_outcome
from app.protocols.models import OutboundRequest, SendOutcome
from config.logging import mask_address
from config.settings import USER_DOMAIN

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    from app.sessions.handle import SessionHandle

logger = logging.getLogger(__name__)

DEFAULT_BATCH_PAUSE_SECONDS = 2.0


def normalize_destination(destination: str, user_domain: str = USER_DOMAIN) -> str:
    """Retorna o JID completo de um destino.

    "79123456789" -> "79123456789@s.whatsapp.net"; com "@" fica como está.
    """
    if "@" in destination:
        return destination
    return f"{destination}@{user_domain}"


def bare_destination(destination: str) -> str:
    """Forma pura de um destino: "79123456789@s.whatsapp.net" -> "79123456789"."""
    return destination.split("@", 1)[0]


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _error_text(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def _outcome_from_sent(sent: Any) -> SendOutcome:
    key = _field(sent, "key") if sent is not None else None
    message_id = _field(key, "id") if key is not None else None
    timestamp = _field(sent, "messageTimestamp") if sent is not None else None
    if not message_id or timestamp is None:
        raise ValueError("send returned no message key")
    return SendOutcome.ok(message_id=str(message_id), timestamp=int(timestamp))


class MessageDispatcher:
    """Valida destino, checa deliverability e envia texto.

    Args:
        user_domain: Sufixo canônico para destinos sem domínio
        sleep: Espera injetável usada por send_many
    """

    def __init__(
        self,
        user_domain: str = USER_DOMAIN,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._user_domain = user_domain
        self._sleep = sleep

    def normalize(self, destination: str) -> str:
        return normalize_destination(destination, self._user_domain)

    async def send(self, session: SessionHandle, destination: str, body: str) -> SendOutcome:
        """Envia `body` para `destination` após a deliverability query."""
        destination_hash = mask_address(destination)
        logger.info("send_started", extra={"destination_hash": destination_hash})

        try:
            jid = self.normalize(destination)
            started = time.perf_counter()
            results = await session.transport.on_whatsapp(bare_destination(destination))
            record_latency("dispatcher", "deliverability", (time.perf_counter() - started) * 1000)

            result = results[0] if results else None
            if not result or not _field(result, "exists"):
                logger.warning(
                    "destination_not_registered",
                    extra={"destination_hash": destination_hash},
                )
                record_send_outcome(False, "not_registered")
                return SendOutcome.failed(DESTINATION_NOT_REGISTERED)

            outcome = await self._deliver(session, jid, body)
        except Exception as exc:
            logger.error(
                "send_failed",
                extra={
                    "destination_hash": destination_hash,
                    "error_type": type(exc).__name__,
                    "error": _error_text(exc),
                },
            )
            record_send_outcome(False, type(exc).__name__)
            return SendOutcome.failed(_error_text(exc))

        logger.info(
            "send_succeeded",
            extra={"destination_hash": destination_hash, "message_id": outcome.message_id},
        )
        record_send_outcome(True)
        return outcome

    async def reply(self, session: SessionHandle, address: str, body: str) -> SendOutcome:
        """Responde a um remetente inbound, sem deliverability query.

        O remetente acabou de nos escrever, logo o endereço é alcançável; o
        JID recebido já vem completo (inclusive grupos @g.us).
        """
        address_hash = mask_address(address)
        try:
            outcome = await self._deliver(session, self.normalize(address), body)
        except Exception as exc:
            logger.error(
                "reply_failed",
                extra={
                    "destination_hash": address_hash,
                    "error_type": type(exc).__name__,
                    "error": _error_text(exc),
                },
            )
            record_send_outcome(False, type(exc).__name__)
            return SendOutcome.failed(_error_text(exc))

        logger.info(
            "reply_sent",
            extra={"destination_hash": address_hash, "message_id": outcome.message_id},
        )
        record_send_outcome(True)
        return outcome

    async def send_many(
        self,
        session: SessionHandle,
        requests: Iterable[OutboundRequest],
        pause_seconds: float = DEFAULT_BATCH_PAUSE_SECONDS,
    ) -> list[SendOutcome]:
        """Envia em sequência com pausa entre mensagens (anti-spam).

        Returns:
            Um SendOutcome por request, na mesma ordem.
        """
        outcomes: list[SendOutcome] = []
        for index, request in enumerate(requests):
            if index and pause_seconds > 0:
                await self._sleep(pause_seconds)
            outcomes.append(await self.send(session, request.destination, request.body))

        logger.info(
            "batch_send_finished",
            extra={
                "total": len(outcomes),
                "succeeded": sum(1 for outcome in outcomes if outcome.success),
            },
        )
        return outcomes

    async def check_registered(
        self,
        session: SessionHandle,
        destinations: Iterable[str],
    ) -> dict[str, bool]:
        """Deliverability query por destino; falha de consulta conta como False."""
        registered: dict[str, bool] = {}
        for destination in destinations:
            try:
                results = await session.transport.on_whatsapp(bare_destination(destination))
            except Exception as exc:
                logger.warning(
                    "deliverability_query_failed",
                    extra={
                        "destination_hash": mask_address(destination),
                        "error_type": type(exc).__name__,
                    },
                )
                registered[destination] = False
                continue
            result = results[0] if results else None
            registered[destination] = bool(result and _field(result, "exists"))
        return registered

    async def _deliver(self, session: SessionHandle, jid: str, body: str) -> SendOutcome:
        started = time.perf_counter()
        sent = await session.transport.send_message(jid, {"text": body})
        record_latency("dispatcher", "send", (time.perf_counter() - started) * 1000)
        return _outcome_from_sent(sent)
