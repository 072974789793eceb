"""GatewayContext — wiring explícito de sessão, dispatcher e router.

Substitui singletons de módulo: quem precisa do gateway recebe o contexto.

Uso:
    context = build_context()
    await start_session(context)
    await context.manager.wait_until_open(timeout=60)
    outcome = await send_message(context, "79123456789", "Olá")
"""

from __future__ import annotations

import asyncio
import importlib
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from app.coordinators.whatsapp.inbound import InboundRouter, MatchKind
from app.infra.stores import FileCredentialStore
from app.protocols.models import SendOutcome
from app.services import load_auto_replies, register_auto_replies
from app.sessions import SessionManager, TerminalQrRenderer
from app.use_cases.whatsapp import MessageDispatcher
from config.settings import (
    AutoReplySettings,
    SessionSettings,
    TransportSettings,
    get_auto_reply_settings,
    get_session_settings,
    get_transport_settings,
)
from utils.errors import TransportConstructionError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from app.coordinators.whatsapp.inbound import Route, RouteContext
    from app.protocols.credential_store import CredentialStoreProtocol
    from app.protocols.pairing import PairingRendererProtocol
    from app.protocols.transport import TransportFactory
    from app.sessions import SessionHandle

logger = logging.getLogger(__name__)

SESSION_NOT_STARTED = "session not started"


@dataclass
class GatewayContext:
    """Dependências de uma instância do gateway."""

    transport_settings: TransportSettings
    session_settings: SessionSettings
    auto_reply_settings: AutoReplySettings
    credential_store: CredentialStoreProtocol
    manager: SessionManager
    dispatcher: MessageDispatcher
    router: InboundRouter

    @property
    def handle(self) -> SessionHandle | None:
        return self.manager.handle


def load_transport_factory(path: str) -> TransportFactory:
    """Importa a factory do transporte a partir de "modulo:callable".

    Raises:
        TransportConstructionError: Caminho inválido ou atributo inexistente.
    """
    module_name, _, attribute = path.partition(":")
    if not module_name or not attribute:
        raise TransportConstructionError(
            f"WA_TRANSPORT_FACTORY deve ter o formato modulo:callable (recebido {path!r})"
        )

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise TransportConstructionError(f"Módulo {module_name!r} não encontrado") from exc

    factory = getattr(module, attribute, None)
    if not callable(factory):
        raise TransportConstructionError(f"{path!r} não é um callable")
    return factory


def build_context(
    transport_factory: TransportFactory | None = None,
    *,
    credential_store: CredentialStoreProtocol | None = None,
    transport_settings: TransportSettings | None = None,
    session_settings: SessionSettings | None = None,
    auto_reply_settings: AutoReplySettings | None = None,
    pairing_renderer: PairingRendererProtocol | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> GatewayContext:
    """Monta o gateway com settings de ambiente ou injetadas.

    Sem `transport_factory`, a factory é carregada de WA_TRANSPORT_FACTORY.
    """
    transport_settings = transport_settings or get_transport_settings()
    session_settings = session_settings or get_session_settings()
    auto_reply_settings = auto_reply_settings or get_auto_reply_settings()

    if transport_factory is None:
        transport_factory = load_transport_factory(transport_settings.factory_path)

    store = credential_store or FileCredentialStore(session_settings.auth_folder)
    dispatcher = MessageDispatcher(user_domain=transport_settings.user_domain, sleep=sleep)
    manager = SessionManager(
        transport_factory=transport_factory,
        credential_store=store,
        transport_settings=transport_settings,
        session_settings=session_settings,
        pairing_renderer=pairing_renderer or TerminalQrRenderer(),
        sleep=sleep,
    )
    router = InboundRouter(dispatcher, session_provider=lambda: manager.handle)
    manager.set_inbound_sink(router)

    if auto_reply_settings.enabled:
        rules = load_auto_replies(auto_reply_settings.rules_path)
        register_auto_replies(router, rules, timezone=auto_reply_settings.timezone)
        logger.info("auto_replies_registered", extra={"rule_count": len(rules)})

    return GatewayContext(
        transport_settings=transport_settings,
        session_settings=session_settings,
        auto_reply_settings=auto_reply_settings,
        credential_store=store,
        manager=manager,
        dispatcher=dispatcher,
        router=router,
    )


async def start_session(context: GatewayContext) -> SessionHandle:
    """Inicia a sessão; TransportConstructionError é fatal para o chamador."""
    return await context.manager.start()


async def send_message(context: GatewayContext, destination: str, body: str) -> SendOutcome:
    """Envia pela sessão corrente; sem sessão retorna falha, nunca levanta."""
    handle = context.manager.handle
    if handle is None:
        return SendOutcome.failed(SESSION_NOT_STARTED)
    return await context.dispatcher.send(handle, destination, body)


def register_handler(
    context: GatewayContext,
    kind: MatchKind | str,
    pattern: str,
    action: Callable[[RouteContext], Awaitable[Any]],
    **kwargs: Any,
) -> Route:
    """Registra um handler inbound no fim da lista de rotas."""
    return context.router.register(kind, pattern, action, **kwargs)
