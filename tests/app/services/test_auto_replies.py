"""Testes do autoresponder carregado de YAML."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import pytest

from app.coordinators.whatsapp.inbound import InboundRouter, MatchKind
from app.services import (
    AutoReplyConfigError,
    load_auto_replies,
    register_auto_replies,
    render_reply,
)
from app.sessions import SessionHandle
from app.use_cases.whatsapp import MessageDispatcher
from config.settings import DEFAULT_AUTO_REPLIES_PATH
from tests.fakes.fake_transport import FakeTransport

FIXED_NOW = datetime(2026, 10, 19, 9, 30, 15, tzinfo=UTC)


def _raw(text: str) -> dict:
    return {
        "key": {"remoteJid": "79123456789@s.whatsapp.net", "fromMe": False, "id": "1"},
        "message": {"conversation": text},
    }


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def router(transport: FakeTransport) -> InboundRouter:
    session = SessionHandle(transport=transport)
    session.mark_open("79000000000")
    router = InboundRouter(MessageDispatcher(), session_provider=lambda: session)
    register_auto_replies(
        router,
        load_auto_replies(DEFAULT_AUTO_REPLIES_PATH),
        timezone="Europe/Moscow",
        clock=lambda: FIXED_NOW,
    )
    return router


class TestLoadAutoReplies:
    """Testes de leitura e validação do YAML."""

    def test_bundled_rules_keep_file_order(self) -> None:
        rules = load_auto_replies(DEFAULT_AUTO_REPLIES_PATH)

        assert [rule.name for rule in rules] == ["help_command", "greeting", "help", "current_time"]
        assert rules[0].kind is MatchKind.EXACT

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(AutoReplyConfigError, match="não encontrado"):
            load_auto_replies(tmp_path / "nope.yaml")

    def test_invalid_yaml_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.yaml"
        path.write_text("rules: [unclosed", encoding="utf-8")

        with pytest.raises(AutoReplyConfigError, match="YAML inválido"):
            load_auto_replies(path)

    def test_missing_rules_list_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.yaml"
        path.write_text("other: 1\n", encoding="utf-8")

        with pytest.raises(AutoReplyConfigError, match="rules"):
            load_auto_replies(path)

    def test_invalid_kind_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.yaml"
        path.write_text(
            "rules:\n  - {name: x, kind: regex, pattern: a, reply: b}\n",
            encoding="utf-8",
        )

        with pytest.raises(AutoReplyConfigError, match="Regra inválida"):
            load_auto_replies(path)


class TestRenderReply:
    """Testes do placeholder {now}."""

    def test_now_in_moscow_time(self) -> None:
        assert render_reply("Hora: {now}", "Europe/Moscow", FIXED_NOW) == "Hora: 19.10.2026, 12:30:15"

    def test_template_without_placeholder_is_unchanged(self) -> None:
        assert render_reply("Привет!", "Europe/Moscow", FIXED_NOW) == "Привет!"


class TestAutoReplyRouting:
    """Testes das regras empacotadas no router."""

    @pytest.mark.asyncio
    async def test_greeting(self, router: InboundRouter, transport: FakeTransport) -> None:
        await router.route([_raw("Привет, бот")], "notify")

        assert transport.sent == [
            ("79123456789@s.whatsapp.net", {"text": "Привет! Чем могу помочь?"}),
        ]

    @pytest.mark.asyncio
    async def test_current_time(self, router: InboundRouter, transport: FakeTransport) -> None:
        await router.route([_raw("который час? время")], "notify")

        assert transport.sent[0][1] == {"text": "Текущее время: 19.10.2026, 12:30:15"}

    @pytest.mark.asyncio
    async def test_first_rule_wins(self, router: InboundRouter, transport: FakeTransport) -> None:
        """"привет" vem antes de "время": só a saudação responde."""
        await router.route([_raw("привет, какое время?")], "notify")

        assert len(transport.sent) == 1
        assert transport.sent[0][1]["text"].startswith("Привет!")

    @pytest.mark.asyncio
    async def test_unmatched_message_gets_no_reply(
        self,
        router: InboundRouter,
        transport: FakeTransport,
    ) -> None:
        await router.route([_raw("hello")], "notify")

        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_failed_reply_is_logged_not_raised(
        self,
        router: InboundRouter,
        transport: FakeTransport,
    ) -> None:
        transport.send_error = RuntimeError("closed")

        summary = await router.route([_raw("помощь")], "notify")

        assert summary.handler_errors == 0
        assert summary.matched == ["help"]
