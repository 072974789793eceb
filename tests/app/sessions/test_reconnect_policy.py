"""Testes de ReconnectPolicy e classificação de lastDisconnect."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from app.constants.whatsapp import DisconnectReason
from app.sessions import (
    ReconnectPolicy,
    classify_disconnect,
    extract_status_code,
    should_reconnect,
)
from config.settings import SessionSettings


class TestReconnectPolicy:
    """Testes de espera e limite de tentativas."""

    def test_fixed_delay_with_unit_factor(self) -> None:
        """backoff_factor=1.0 reproduz a espera fixa de 3s."""
        policy = ReconnectPolicy(base_delay_seconds=3.0, backoff_factor=1.0)
        assert [policy.delay_for(n) for n in range(1, 5)] == [3.0, 3.0, 3.0, 3.0]

    def test_exponential_delay_is_capped(self) -> None:
        policy = ReconnectPolicy(base_delay_seconds=3.0, backoff_factor=2.0, max_delay_seconds=20.0)
        assert [policy.delay_for(n) for n in range(1, 6)] == [3.0, 6.0, 12.0, 20.0, 20.0]

    def test_allows_up_to_max_attempts(self) -> None:
        policy = ReconnectPolicy(max_attempts=2)
        assert policy.allows(1)
        assert policy.allows(2)
        assert not policy.allows(3)

    def test_zero_max_attempts_is_unbounded(self) -> None:
        policy = ReconnectPolicy(max_attempts=0)
        assert policy.allows(10_000)

    def test_from_settings(self) -> None:
        settings = SessionSettings(
            reconnect_base_delay_seconds=1.5,
            reconnect_backoff_factor=3.0,
            reconnect_max_delay_seconds=30.0,
            reconnect_max_attempts=7,
        )
        policy = ReconnectPolicy.from_settings(settings)
        assert policy == ReconnectPolicy(1.5, 3.0, 30.0, 7)


class TestClassifyDisconnect:
    """Testes de extração do status code."""

    @pytest.mark.parametrize(
        ("last_disconnect", "expected"),
        [
            ({"error": {"output": {"statusCode": 401}}}, 401),
            ({"error": SimpleNamespace(output=SimpleNamespace(statusCode=428))}, 428),
            (SimpleNamespace(status_code=515), 515),
            ({"error": {"message": "sem código"}}, None),
            (None, None),
        ],
    )
    def test_extract_status_code(self, last_disconnect, expected) -> None:
        assert extract_status_code(last_disconnect) == expected

    def test_logged_out_is_not_recoverable(self) -> None:
        last_disconnect = {"error": {"output": {"statusCode": 401}}}
        assert classify_disconnect(last_disconnect) is DisconnectReason.LOGGED_OUT
        assert not should_reconnect(last_disconnect)

    def test_unknown_code_reconnects(self) -> None:
        last_disconnect = {"error": {"output": {"statusCode": 999}}}
        assert classify_disconnect(last_disconnect) is None
        assert should_reconnect(last_disconnect)

    @pytest.mark.parametrize("code", [408, 428, 440, 500, 503, 515])
    def test_transient_codes_reconnect(self, code: int) -> None:
        assert should_reconnect({"error": {"output": {"statusCode": code}}})
