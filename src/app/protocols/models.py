"""Modelos de contrato entre gateway, dispatcher e router.

Todos imutáveis; o chamador é dono das instâncias retornadas.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class OutboundRequest(BaseModel):
    """Intenção de envio de um texto (efêmera, não retida)."""

    model_config = ConfigDict(frozen=True)

    destination: str = Field(..., min_length=1, description="Número puro ou JID completo")
    body: str = Field(..., description="Texto da mensagem")


class SendOutcome(BaseModel):
    """Resultado uniforme de uma tentativa de envio.

    Invariante: success ⇔ (message_id e timestamp presentes, error ausente);
    falha ⇔ (error presente, message_id e timestamp ausentes).

    `as_payload()` produz o formato camelCase consumido por integrações:
        {"success": True, "messageId": "ABC123", "timestamp": 1700000000}
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    success: bool
    message_id: str | None = None
    timestamp: int | None = None
    error: str | None = None

    @model_validator(mode="after")
    def _check_consistency(self) -> SendOutcome:
        if self.success:
            if self.message_id is None or self.timestamp is None or self.error is not None:
                raise ValueError("sucesso exige message_id e timestamp, sem error")
        elif self.error is None or self.message_id is not None or self.timestamp is not None:
            raise ValueError("falha exige error, sem message_id nem timestamp")
        return self

    @classmethod
    def ok(cls, message_id: str, timestamp: int) -> SendOutcome:
        return cls(success=True, message_id=message_id, timestamp=timestamp)

    @classmethod
    def failed(cls, error: str) -> SendOutcome:
        return cls(success=False, error=error)

    def as_payload(self) -> dict[str, object]:
        return self.model_dump(by_alias=True, exclude_none=True)


class InboundMessage(BaseModel):
    """Notificação recebida, passada por valor ao InboundRouter."""

    model_config = ConfigDict(frozen=True)

    message_id: str = ""
    sender: str
    sender_name: str | None = None
    body: str = ""
    from_me: bool = False
    timestamp: int | None = None

    @property
    def display_name(self) -> str:
        return self.sender_name or "Unknown"
