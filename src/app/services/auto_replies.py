"""Autoresponder por palavra-chave carregado de YAML.

Cada regra vira uma rota do InboundRouter cuja ação responde ao remetente
com um texto fixo. O placeholder {now} é substituído pela data/hora atual
no fuso configurado (formato dd.mm.aaaa, HH:MM:SS).
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any
from zoneinfo import ZoneInfo

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from app.coordinators.whatsapp.inbound.router import MatchKind

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from app.coordinators.whatsapp.inbound.router import InboundRouter, Route, RouteContext

logger = logging.getLogger(__name__)

NOW_PLACEHOLDER = "{now}"
NOW_FORMAT = "%d.%m.%Y, %H:%M:%S"


class AutoReplyConfigError(Exception):
    """Arquivo de regras ausente, YAML inválido ou regra malformada."""


class AutoReplyRule(BaseModel):
    """Regra de resposta automática."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    kind: MatchKind
    pattern: str = Field(..., min_length=1)
    reply: str = Field(..., min_length=1)
    case_sensitive: bool = False


def load_auto_replies(path: str | Path) -> tuple[AutoReplyRule, ...]:
    """Carrega e valida regras do YAML.

    Raises:
        AutoReplyConfigError: Se o arquivo não existir ou for inválido.
    """
    rules_path = Path(path)
    if not rules_path.exists():
        raise AutoReplyConfigError(f"Arquivo de regras não encontrado: {rules_path}")

    try:
        with rules_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise AutoReplyConfigError(f"YAML inválido: {exc}") from exc

    if not isinstance(data, dict) or not isinstance(data.get("rules"), list):
        raise AutoReplyConfigError("YAML deve conter a lista 'rules'")

    try:
        rules = tuple(AutoReplyRule.model_validate(item) for item in data["rules"])
    except ValidationError as exc:
        raise AutoReplyConfigError(f"Regra inválida: {exc}") from exc

    logger.debug("auto_replies_loaded", extra={"rules": len(rules)})
    return rules


def render_reply(template: str, timezone: str, now: datetime | None = None) -> str:
    """Substitui {now} pelo horário atual no fuso informado."""
    if NOW_PLACEHOLDER not in template:
        return template
    moment = (now or datetime.now(UTC)).astimezone(ZoneInfo(timezone))
    return template.replace(NOW_PLACEHOLDER, moment.strftime(NOW_FORMAT))


def register_auto_replies(
    router: InboundRouter,
    rules: Iterable[AutoReplyRule],
    timezone: str = "Europe/Moscow",
    clock: Callable[[], datetime] | None = None,
) -> list[Route]:
    """Registra uma rota por regra, preservando a ordem do arquivo."""
    routes: list[Route] = []
    for rule in rules:
        routes.append(
            router.register(
                rule.kind,
                rule.pattern,
                _reply_action(rule, timezone, clock),
                name=rule.name,
                case_sensitive=rule.case_sensitive,
            )
        )
    return routes


def _reply_action(
    rule: AutoReplyRule,
    timezone: str,
    clock: Callable[[], datetime] | None,
) -> Callable[[RouteContext], Any]:
    async def action(context: RouteContext) -> None:
        now = clock() if clock else None
        outcome = await context.reply(render_reply(rule.reply, timezone, now))
        if not outcome.success:
            logger.warning(
                "auto_reply_failed",
                extra={"rule": rule.name, "error": outcome.error},
            )

    return action
