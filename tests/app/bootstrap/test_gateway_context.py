"""Testes do composition root (GatewayContext e validação de settings)."""

from __future__ import annotations

import pytest

from app.bootstrap import (
    build_context,
    load_transport_factory,
    register_handler,
    send_message,
    start_session,
    validate_runtime_settings,
)
from app.coordinators.whatsapp.inbound import RouteContext
from app.infra.stores import MemoryCredentialStore
from app.sessions import ConnectionState
from config.settings import (
    AutoReplySettings,
    SessionSettings,
    TransportSettings,
    get_auto_reply_settings,
    get_base_settings,
    get_session_settings,
    get_transport_settings,
)
from tests.fakes.fake_transport import FakeTransportFactory, RecordingSleeper
from utils.errors import TransportConstructionError

# ──────────────────────────────────────────────────────────────────────────────
# Fixtures
# ──────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def factory() -> FakeTransportFactory:
    return FakeTransportFactory(registered={"79123456789"})


@pytest.fixture
def context(factory: FakeTransportFactory):
    return build_context(
        factory,
        credential_store=MemoryCredentialStore(),
        transport_settings=TransportSettings(),
        session_settings=SessionSettings(),
        auto_reply_settings=AutoReplySettings(),
        sleep=RecordingSleeper(),
    )


# ──────────────────────────────────────────────────────────────────────────────
# Testes: wiring
# ──────────────────────────────────────────────────────────────────────────────


class TestBuildContext:
    """Testes de montagem do gateway."""

    def test_auto_replies_are_registered_in_file_order(self, context) -> None:
        names = [route.name for route in context.router.routes]
        assert names == ["help_command", "greeting", "help", "current_time"]

    def test_auto_replies_can_be_disabled(self, factory: FakeTransportFactory) -> None:
        context = build_context(
            factory,
            credential_store=MemoryCredentialStore(),
            transport_settings=TransportSettings(),
            session_settings=SessionSettings(),
            auto_reply_settings=AutoReplySettings(enabled=False),
        )
        assert context.router.routes == ()

    @pytest.mark.asyncio
    async def test_send_before_start_fails_without_raising(self, context) -> None:
        outcome = await send_message(context, "79123456789", "Olá")
        assert outcome.error == "session not started"

    @pytest.mark.asyncio
    async def test_start_and_send(self, context, factory: FakeTransportFactory) -> None:
        handle = await start_session(context)
        await factory.latest.open()

        outcome = await send_message(context, "79123456789", "Olá")

        assert handle.state is ConnectionState.OPEN
        assert context.handle is handle
        assert outcome.success
        assert outcome.message_id == "ABC123"

    @pytest.mark.asyncio
    async def test_inbound_reaches_router_and_replies_on_current_handle(
        self,
        context,
        factory: FakeTransportFactory,
    ) -> None:
        """messages.upsert -> router -> handler -> reply pelo handle novo."""
        replies: list[str] = []

        async def echo(route_context: RouteContext) -> None:
            replies.append(route_context.message.body)
            await route_context.reply(f"eco: {route_context.message.body}")

        register_handler(context, "prefix", "!echo", echo)
        await start_session(context)
        await factory.latest.close(428)
        transport = factory.latest
        await transport.open()

        await transport.emit(
            "messages.upsert",
            {
                "type": "notify",
                "messages": [
                    {
                        "key": {"remoteJid": "71111111111@s.whatsapp.net", "fromMe": False},
                        "message": {"conversation": "!echo oi"},
                    }
                ],
            },
        )

        assert replies == ["!echo oi"]
        assert transport.sent == [("71111111111@s.whatsapp.net", {"text": "eco: !echo oi"})]

    def test_uses_factory_from_settings(self) -> None:
        context = build_context(
            credential_store=MemoryCredentialStore(),
            transport_settings=TransportSettings(
                factory_path="tests.fakes.fake_transport:FakeTransport",
            ),
            session_settings=SessionSettings(),
            auto_reply_settings=AutoReplySettings(enabled=False),
        )
        assert context.manager.handle is None


class TestLoadTransportFactory:
    """Testes de import da factory via "modulo:callable"."""

    def test_loads_callable(self) -> None:
        assert load_transport_factory("tests.fakes.fake_transport:FakeTransportFactory") is (
            FakeTransportFactory
        )

    @pytest.mark.parametrize(
        "path",
        [
            "",
            "no_colon_here",
            "module_that_does_not_exist_xyz:build",
            "tests.fakes.fake_transport:missing_attribute",
            "config.settings.whatsapp:USER_DOMAIN",
        ],
    )
    def test_invalid_paths_raise(self, path: str) -> None:
        with pytest.raises(TransportConstructionError):
            load_transport_factory(path)


# ──────────────────────────────────────────────────────────────────────────────
# Testes: validação de runtime
# ──────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def fresh_settings():
    getters = (
        get_auto_reply_settings,
        get_base_settings,
        get_session_settings,
        get_transport_settings,
    )
    for getter in getters:
        getter.cache_clear()
    yield
    for getter in getters:
        getter.cache_clear()


class TestValidateRuntimeSettings:
    """Falha rápida somente em staging/production."""

    def test_development_only_warns(
        self,
        monkeypatch: pytest.MonkeyPatch,
        fresh_settings,
    ) -> None:
        monkeypatch.setenv("ENVIRONMENT", "development")
        monkeypatch.delenv("WA_TRANSPORT_FACTORY", raising=False)

        validate_runtime_settings()

    def test_production_raises_on_missing_factory(
        self,
        monkeypatch: pytest.MonkeyPatch,
        fresh_settings,
    ) -> None:
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.delenv("WA_TRANSPORT_FACTORY", raising=False)

        with pytest.raises(RuntimeError, match="WA_TRANSPORT_FACTORY"):
            validate_runtime_settings()

    def test_production_passes_with_valid_settings(
        self,
        monkeypatch: pytest.MonkeyPatch,
        fresh_settings,
    ) -> None:
        monkeypatch.setenv("ENVIRONMENT", "production")
        monkeypatch.setenv("WA_TRANSPORT_FACTORY", "tests.fakes.fake_transport:FakeTransport")
        monkeypatch.delenv("WA_AUTO_REPLIES_PATH", raising=False)
        monkeypatch.delenv("WA_AUTO_REPLY_TIMEZONE", raising=False)

        validate_runtime_settings()
