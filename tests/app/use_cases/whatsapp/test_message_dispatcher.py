"""Testes para MessageDispatcher.

Testa:
    - Normalização de destino e deliverability query na forma pura
    - Resultado uniforme (SendOutcome) em sucesso e em falha
    - reply, send_many e check_registered
"""

from __future__ import annotations

import pytest

from app.protocols.models import OutboundRequest, SendOutcome
from app.sessions import SessionHandle
from app.use_cases.whatsapp import MessageDispatcher, bare_destination, normalize_destination
from tests.fakes.fake_transport import FakeTransport, RecordingSleeper

# ──────────────────────────────────────────────────────────────────────────────
# Fixtures
# ──────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport(registered={"79123456789"}, message_id="ABC123", timestamp=1700000000)


@pytest.fixture
def session(transport: FakeTransport) -> SessionHandle:
    handle = SessionHandle(transport=transport)
    handle.mark_open("79000000000")
    return handle


@pytest.fixture
def sleeper() -> RecordingSleeper:
    return RecordingSleeper()


@pytest.fixture
def dispatcher(sleeper: RecordingSleeper) -> MessageDispatcher:
    return MessageDispatcher(sleep=sleeper)


# ──────────────────────────────────────────────────────────────────────────────
# Testes: normalização
# ──────────────────────────────────────────────────────────────────────────────


class TestNormalization:
    """Testes de forma pura e forma completa."""

    def test_bare_number_gets_user_domain(self) -> None:
        assert normalize_destination("79123456789") == "79123456789@s.whatsapp.net"

    def test_full_address_is_kept(self) -> None:
        assert normalize_destination("120363@g.us") == "120363@g.us"

    def test_normalization_is_idempotent(self) -> None:
        once = normalize_destination("79123456789")
        assert normalize_destination(once) == once

    def test_custom_user_domain(self) -> None:
        assert normalize_destination("1", user_domain="c.us") == "1@c.us"

    def test_bare_destination_strips_domain(self) -> None:
        assert bare_destination("79123456789@s.whatsapp.net") == "79123456789"
        assert bare_destination("79123456789") == "79123456789"


# ──────────────────────────────────────────────────────────────────────────────
# Testes: send
# ──────────────────────────────────────────────────────────────────────────────


class TestSend:
    """Testes do envio com deliverability query."""

    @pytest.mark.asyncio
    async def test_send_success(
        self,
        dispatcher: MessageDispatcher,
        session: SessionHandle,
        transport: FakeTransport,
    ) -> None:
        """Destino existente: um envio, outcome com id e timestamp."""
        outcome = await dispatcher.send(session, "79123456789", "Olá")

        assert outcome == SendOutcome.ok(message_id="ABC123", timestamp=1700000000)
        assert outcome.as_payload() == {
            "success": True,
            "messageId": "ABC123",
            "timestamp": 1700000000,
        }
        assert transport.queries == [("79123456789",)]
        assert transport.sent == [("79123456789@s.whatsapp.net", {"text": "Olá"})]

    @pytest.mark.asyncio
    async def test_send_not_registered_skips_send(
        self,
        dispatcher: MessageDispatcher,
        session: SessionHandle,
        transport: FakeTransport,
    ) -> None:
        outcome = await dispatcher.send(session, "71111111111", "Olá")

        assert outcome.as_payload() == {"success": False, "error": "destination not registered"}
        assert transport.queries == [("71111111111",)]
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_bare_and_full_destination_behave_the_same(
        self,
        dispatcher: MessageDispatcher,
        session: SessionHandle,
        transport: FakeTransport,
    ) -> None:
        """Query sempre na forma pura, envio sempre na forma completa."""
        bare = await dispatcher.send(session, "79123456789", "m")
        full = await dispatcher.send(session, "79123456789@s.whatsapp.net", "m")

        assert bare == full
        assert transport.queries == [("79123456789",), ("79123456789",)]
        assert [jid for jid, _ in transport.sent] == [
            "79123456789@s.whatsapp.net",
            "79123456789@s.whatsapp.net",
        ]

    @pytest.mark.asyncio
    async def test_query_error_becomes_failed_outcome(
        self,
        dispatcher: MessageDispatcher,
        session: SessionHandle,
        transport: FakeTransport,
    ) -> None:
        transport.query_error = ConnectionError("Connection Closed")

        outcome = await dispatcher.send(session, "79123456789", "Olá")

        assert outcome == SendOutcome.failed("Connection Closed")
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_send_error_becomes_failed_outcome(
        self,
        dispatcher: MessageDispatcher,
        session: SessionHandle,
        transport: FakeTransport,
    ) -> None:
        transport.send_error = TimeoutError()

        outcome = await dispatcher.send(session, "79123456789", "Olá")

        assert not outcome.success
        assert outcome.error == "TimeoutError"
        assert len(transport.sent) == 1

    @pytest.mark.asyncio
    async def test_send_without_message_key_fails(
        self,
        dispatcher: MessageDispatcher,
        session: SessionHandle,
        transport: FakeTransport,
    ) -> None:
        async def send_none(jid, content):
            return None

        transport.send_message = send_none

        outcome = await dispatcher.send(session, "79123456789", "Olá")

        assert outcome == SendOutcome.failed("send returned no message key")


# ──────────────────────────────────────────────────────────────────────────────
# Testes: reply, send_many, check_registered
# ──────────────────────────────────────────────────────────────────────────────


class TestReplyAndBatch:
    """Testes das variações de envio."""

    @pytest.mark.asyncio
    async def test_reply_skips_deliverability_query(
        self,
        dispatcher: MessageDispatcher,
        session: SessionHandle,
        transport: FakeTransport,
    ) -> None:
        outcome = await dispatcher.reply(session, "71111111111@s.whatsapp.net", "Oi")

        assert outcome.success
        assert transport.queries == []
        assert transport.sent == [("71111111111@s.whatsapp.net", {"text": "Oi"})]

    @pytest.mark.asyncio
    async def test_reply_error_becomes_failed_outcome(
        self,
        dispatcher: MessageDispatcher,
        session: SessionHandle,
        transport: FakeTransport,
    ) -> None:
        transport.send_error = RuntimeError("not open")

        outcome = await dispatcher.reply(session, "1@s.whatsapp.net", "Oi")

        assert outcome == SendOutcome.failed("not open")

    @pytest.mark.asyncio
    async def test_send_many_pauses_between_messages(
        self,
        dispatcher: MessageDispatcher,
        session: SessionHandle,
        sleeper: RecordingSleeper,
    ) -> None:
        requests = [
            OutboundRequest(destination="79123456789", body="um"),
            OutboundRequest(destination="71111111111", body="dois"),
            OutboundRequest(destination="79123456789", body="três"),
        ]

        outcomes = await dispatcher.send_many(session, requests)

        assert [outcome.success for outcome in outcomes] == [True, False, True]
        assert sleeper.delays == [2.0, 2.0]

    @pytest.mark.asyncio
    async def test_send_many_without_pause(
        self,
        dispatcher: MessageDispatcher,
        session: SessionHandle,
        sleeper: RecordingSleeper,
    ) -> None:
        requests = [OutboundRequest(destination="79123456789", body="x")] * 2

        await dispatcher.send_many(session, requests, pause_seconds=0)

        assert sleeper.delays == []

    @pytest.mark.asyncio
    async def test_check_registered(
        self,
        dispatcher: MessageDispatcher,
        session: SessionHandle,
    ) -> None:
        result = await dispatcher.check_registered(session, ["79123456789", "71111111111"])

        assert result == {"79123456789": True, "71111111111": False}

    @pytest.mark.asyncio
    async def test_check_registered_query_error_counts_as_false(
        self,
        dispatcher: MessageDispatcher,
        session: SessionHandle,
        transport: FakeTransport,
    ) -> None:
        transport.query_error = ConnectionError("down")

        result = await dispatcher.check_registered(session, ["79123456789"])

        assert result == {"79123456789": False}


class TestSendOutcome:
    """Invariante success ⇔ id e timestamp presentes, sem error."""

    def test_success_requires_id_and_timestamp(self) -> None:
        with pytest.raises(ValueError):
            SendOutcome(success=True, message_id="ABC123")

    def test_failure_rejects_message_id(self) -> None:
        with pytest.raises(ValueError):
            SendOutcome(success=False, error="x", message_id="ABC123")

    def test_failure_requires_error(self) -> None:
        with pytest.raises(ValueError):
            SendOutcome(success=False)
