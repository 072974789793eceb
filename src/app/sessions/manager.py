"""Gerenciador do ciclo de vida da sessão WhatsApp.

Mantém exatamente uma sessão lógica: carrega/persiste credenciais, constrói
o transporte, observa connection.update, creds.update e messages.upsert, e
reconecta conforme ReconnectPolicy.

Fluxo de connection.update:
    qr presente      -> renderiza o QR (sem mudar estado)
    connection=open  -> state=open, identity preenchida, tentativas zeradas
    connection=close -> state=closed, lastDisconnect registrado
                        loggedOut   -> terminal (sem reconexão)
                        outro motivo -> espera + start() (novo handle)

Cada stream de eventos tem seu próprio lock FIFO: eventos são processados na
ordem de emissão, sem reordenação nem coalescência.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from typing import TYPE_CHECKING, Any

from app.constants.whatsapp import TransportEvent
from app.observability import record_reconnect_attempt
from app.sessions.handle import ConnectionState, SessionHandle, identity_from_user_id
from app.sessions.reconnect import (
    ReconnectPolicy,
    classify_disconnect,
    extract_status_code,
    should_reconnect,
)
from config.logging import mask_address
from config.settings import SessionSettings, TransportSettings
from utils.errors import CredentialStoreError, SessionNotOpenError, TransportConstructionError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from app.protocols.credential_store import CredentialStoreProtocol
    from app.protocols.pairing import PairingRendererProtocol
    from app.protocols.transport import TransportFactory

    InboundSink = Callable[[list[Mapping[str, Any]], str], Awaitable[None]]
    Sleeper = Callable[[float], Awaitable[None]]

logger = logging.getLogger(__name__)


class SessionManager:
    """Dono do SessionHandle e da política de reconexão.

    Args:
        transport_factory: factory(credentials, options) do cliente WhatsApp
        credential_store: Persistência do blob de credenciais
        transport_settings: Opções do socket (timeouts, keep-alive, browser)
        session_settings: Pasta de credenciais e parâmetros de reconexão
        pairing_renderer: Exibe o QR de pareamento (opcional)
        inbound_sink: Recebe (messages, type) de messages.upsert (opcional)
        sleep: Espera injetável; testes usam um sleeper falso
        policy: Sobrescreve a política derivada de session_settings
    """

    def __init__(
        self,
        *,
        transport_factory: TransportFactory,
        credential_store: CredentialStoreProtocol,
        transport_settings: TransportSettings | None = None,
        session_settings: SessionSettings | None = None,
        pairing_renderer: PairingRendererProtocol | None = None,
        inbound_sink: InboundSink | None = None,
        sleep: Sleeper = asyncio.sleep,
        policy: ReconnectPolicy | None = None,
    ) -> None:
        self._factory = transport_factory
        self._store = credential_store
        self._transport_settings = transport_settings or TransportSettings()
        self._session_settings = session_settings or SessionSettings()
        self._pairing_renderer = pairing_renderer
        self._inbound_sink = inbound_sink
        self._sleep = sleep
        self._policy = policy or ReconnectPolicy.from_settings(self._session_settings)

        self._handle: SessionHandle | None = None
        self._credentials: dict[str, Any] = {}
        self._generation = 0
        self._attempt = 0
        self._reconnecting = False
        self._terminated = False
        self._stopping = False

        self._connection_lock = asyncio.Lock()
        self._creds_lock = asyncio.Lock()
        self._inbound_lock = asyncio.Lock()
        self._pending_writes: set[asyncio.Future[None]] = set()
        self._open_event = asyncio.Event()

    # ──────────────────────────────────────────────────────────────────────
    # Estado público
    # ──────────────────────────────────────────────────────────────────────

    @property
    def handle(self) -> SessionHandle | None:
        """Handle corrente (substituído a cada reconexão)."""
        return self._handle

    @property
    def is_terminated(self) -> bool:
        """True após loggedOut, tentativas esgotadas ou shutdown."""
        return self._terminated

    @property
    def reconnect_attempts(self) -> int:
        return self._attempt

    def set_inbound_sink(self, sink: InboundSink | None) -> None:
        self._inbound_sink = sink

    # ──────────────────────────────────────────────────────────────────────
    # start / wait / shutdown
    # ──────────────────────────────────────────────────────────────────────

    async def start(self) -> SessionHandle:
        """Constrói o transporte e registra os observers.

        Retorna assim que o socket existe (estado connecting), não quando abre.

        Raises:
            TransportConstructionError: Se a factory do transporte falhar.
            CredentialStoreError: Se as credenciais não puderem ser lidas.
        """
        self._credentials = await self._store.load()
        options = self._transport_settings.to_transport_options()

        try:
            transport = self._factory(self._credentials, options)
            if inspect.isawaitable(transport):
                transport = await transport
        except Exception as exc:
            logger.error(
                "transport_construction_failed",
                extra={"error_type": type(exc).__name__, "error": str(exc)},
            )
            raise TransportConstructionError(str(exc) or type(exc).__name__) from exc

        self._generation += 1
        handle = SessionHandle(transport=transport, generation=self._generation)
        self._register_observers(handle)
        self._handle = handle
        self._open_event.clear()

        logger.info(
            "session_starting",
            extra={
                "generation": handle.generation,
                "has_credentials": bool(self._credentials),
            },
        )
        return handle

    async def wait_until_open(self, timeout: float | None = None) -> SessionHandle:
        """Aguarda a sessão chegar a open, atravessando reconexões.

        Raises:
            SessionNotOpenError: Se o prazo expirar ou a sessão terminar.
        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout

        while True:
            handle = self._handle
            if handle is not None and handle.is_open:
                return handle
            if self._terminated:
                raise SessionNotOpenError("Sessão encerrada antes de abrir")

            remaining = None if deadline is None else max(deadline - loop.time(), 0.0)
            try:
                await asyncio.wait_for(self._open_event.wait(), remaining)
            except TimeoutError as exc:
                raise SessionNotOpenError(f"Sessão não abriu em {timeout}s") from exc
            if not self._terminated and not (self._handle and self._handle.is_open):
                self._open_event.clear()

    async def shutdown(self) -> None:
        """Encerra a sessão sem reconectar.

        Gravações de credenciais em andamento terminam antes do socket fechar.
        """
        self._stopping = True
        self._terminated = True

        if self._pending_writes:
            logger.info(
                "shutdown_waiting_credential_write",
                extra={"pending_writes": len(self._pending_writes)},
            )
            await asyncio.gather(*self._pending_writes, return_exceptions=True)

        handle = self._handle
        if handle is None:
            return
        try:
            await handle.transport.end()
        except Exception as exc:
            logger.warning(
                "transport_end_failed",
                extra={"error_type": type(exc).__name__, "error": str(exc)},
            )
        handle.mark_closed(handle.last_disconnect)
        self._open_event.set()
        logger.info("session_shutdown", extra={"generation": handle.generation})

    # ──────────────────────────────────────────────────────────────────────
    # Observers
    # ──────────────────────────────────────────────────────────────────────

    def _register_observers(self, handle: SessionHandle) -> None:
        transport = handle.transport
        transport.on(
            TransportEvent.CONNECTION_UPDATE,
            functools.partial(self._on_connection_update, handle),
        )
        transport.on(
            TransportEvent.CREDS_UPDATE,
            functools.partial(self._on_creds_update, handle),
        )
        transport.on(
            TransportEvent.MESSAGES_UPSERT,
            functools.partial(self._on_messages_upsert, handle),
        )

    async def _on_connection_update(
        self,
        handle: SessionHandle,
        update: Mapping[str, Any],
    ) -> None:
        """Aplica transições de estado; nunca propaga exceções."""
        reconnect_reason: str | None = None

        async with self._connection_lock:
            if handle is not self._handle:
                logger.debug(
                    "stale_connection_update_ignored",
                    extra={"generation": handle.generation},
                )
                return

            qr = update.get("qr")
            if qr:
                self._render_pairing(qr)

            connection = update.get("connection")
            if connection == ConnectionState.OPEN:
                self._apply_open(handle)
            elif connection == ConnectionState.CONNECTING:
                handle.mark_connecting()
            elif connection in ("close", ConnectionState.CLOSED):
                reconnect_reason = await self._apply_close(handle, update.get("lastDisconnect"))

        if reconnect_reason is not None:
            await self._reconnect(reconnect_reason)

    def _render_pairing(self, payload: str) -> None:
        if self._pairing_renderer is None:
            logger.info("pairing_qr_received", extra={"rendered": False})
            return
        try:
            self._pairing_renderer.render(payload)
            logger.info("pairing_qr_received", extra={"rendered": True})
        except Exception as exc:
            logger.warning(
                "pairing_render_failed",
                extra={"error_type": type(exc).__name__, "error": str(exc)},
            )

    def _apply_open(self, handle: SessionHandle) -> None:
        user = handle.transport.user or {}
        identity = identity_from_user_id(user.get("id"))
        handle.mark_open(identity)
        self._attempt = 0
        self._open_event.set()
        logger.info(
            "session_open",
            extra={"generation": handle.generation, "identity_hash": mask_address(identity)},
        )

    async def _apply_close(self, handle: SessionHandle, last_disconnect: Any) -> str | None:
        """Marca closed e decide a reconexão.

        Returns:
            Motivo da reconexão, ou None quando não deve reconectar.
        """
        handle.mark_closed(last_disconnect)
        reason = classify_disconnect(last_disconnect)
        status_code = extract_status_code(last_disconnect)
        reason_label = reason.name.lower() if reason else f"status_{status_code}"

        logger.warning(
            "session_closed",
            extra={
                "generation": handle.generation,
                "status_code": status_code,
                "reason": reason_label,
            },
        )

        if not should_reconnect(last_disconnect):
            self._terminated = True
            self._open_event.set()
            logger.error(
                "session_logged_out",
                extra={
                    "auth_folder_cleared": self._session_settings.clear_credentials_on_logout,
                    "hint": "remove the auth folder and pair again",
                },
            )
            if self._session_settings.clear_credentials_on_logout:
                await self._clear_credentials()
            return None

        if self._stopping:
            return None
        # Quem aguarda open passa a esperar o próximo handle.
        self._open_event.clear()
        return reason_label

    async def _clear_credentials(self) -> None:
        async with self._creds_lock:
            try:
                await self._store.clear()
                self._credentials = {}
            except CredentialStoreError as exc:
                logger.error("credentials_clear_failed", extra={"error": str(exc)})

    async def _reconnect(self, reason: str) -> None:
        """Espera e chama start() até reabrir o socket ou esgotar a política."""
        if self._reconnecting:
            logger.debug("reconnect_already_in_progress")
            return
        self._reconnecting = True
        try:
            while not self._stopping:
                self._attempt += 1
                if not self._policy.allows(self._attempt):
                    self._terminated = True
                    self._open_event.set()
                    logger.error(
                        "reconnect_exhausted",
                        extra={"attempts": self._attempt - 1, "reason": reason},
                    )
                    return

                delay = self._policy.delay_for(self._attempt)
                record_reconnect_attempt(self._attempt, delay, reason)
                await self._sleep(delay)
                if self._stopping:
                    return

                try:
                    await self.start()
                    return
                except (TransportConstructionError, CredentialStoreError) as exc:
                    logger.warning(
                        "reconnect_start_failed",
                        extra={"attempt": self._attempt, "error": str(exc)},
                    )
        finally:
            self._reconnecting = False

    async def _on_creds_update(
        self,
        handle: SessionHandle,
        update: Mapping[str, Any] | None,
    ) -> None:
        """Persiste credenciais antes de retornar ao transporte.

        A gravação é blindada contra cancelamento e rastreada para que
        shutdown() aguarde sua conclusão.
        """
        async with self._creds_lock:
            if handle is not self._handle:
                logger.debug("stale_creds_update_ignored", extra={"generation": handle.generation})
                return
            self._credentials.update(update or {})
            write = asyncio.ensure_future(self._store.save(dict(self._credentials)))
            self._pending_writes.add(write)
            write.add_done_callback(self._pending_writes.discard)
            try:
                await asyncio.shield(write)
            except CredentialStoreError as exc:
                logger.error("credentials_persist_failed", extra={"error": str(exc)})

    async def _on_messages_upsert(
        self,
        handle: SessionHandle,
        event: Mapping[str, Any],
    ) -> None:
        """Repassa o lote, sem filtro, ao inbound sink."""
        if self._inbound_sink is None:
            return
        if handle is not self._handle:
            logger.debug("stale_messages_upsert_ignored", extra={"generation": handle.generation})
            return
        messages = list(event.get("messages") or [])
        upsert_type = str(event.get("type", ""))
        async with self._inbound_lock:
            try:
                await self._inbound_sink(messages, upsert_type)
            except Exception:
                logger.exception("inbound_sink_failed", extra={"batch_size": len(messages)})
