"""Testes dos endpoints de health e readiness."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.app import create_app
from app.bootstrap import build_context
from app.infra.stores import MemoryCredentialStore
from config.settings import AutoReplySettings, SessionSettings, TransportSettings
from tests.fakes.fake_transport import FakeTransportFactory, RecordingSleeper


@pytest.fixture
def factory() -> FakeTransportFactory:
    return FakeTransportFactory()


@pytest.fixture
def context(factory: FakeTransportFactory):
    return build_context(
        factory,
        credential_store=MemoryCredentialStore(),
        transport_settings=TransportSettings(),
        session_settings=SessionSettings(),
        auto_reply_settings=AutoReplySettings(enabled=False),
        sleep=RecordingSleeper(),
    )


def test_health_is_always_ok(context) -> None:
    client = TestClient(create_app(context))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_ready_without_session_is_not_ready(context) -> None:
    """Sem lifespan a sessão nunca foi iniciada."""
    client = TestClient(create_app(context))

    response = client.get("/ready")

    assert response.status_code == 503
    assert response.json()["checks"]["session"]["state"] == "not_started"


def test_ready_reflects_session_state(context, factory: FakeTransportFactory) -> None:
    with TestClient(create_app(context)) as client:
        connecting = client.get("/ready")
        client.portal.call(factory.latest.open)
        opened = client.get("/ready")

    assert connecting.status_code == 503
    assert connecting.json()["checks"]["session"]["state"] == "connecting"
    assert opened.status_code == 200
    session = opened.json()["checks"]["session"]
    assert session["state"] == "open"
    assert session["generation"] == 1
    assert len(session["identity_hash"]) == 8


def test_lifespan_shutdown_ends_transport(context, factory: FakeTransportFactory) -> None:
    with TestClient(create_app(context)):
        transport = factory.latest

    assert transport.ended
    assert context.manager.is_terminated
