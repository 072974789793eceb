#!/usr/bin/env python3
"""Operações de linha de comando sobre a sessão WhatsApp.

Uso:
    python scripts/wa_session.py run
    python scripts/wa_session.py send 79123456789 "Olá" [--to 79111111111 "Oi"]
    python scripts/wa_session.py check 79123456789 79111111111

`run` mantém a sessão viva (pareamento por QR no terminal, autoresponder)
até SIGINT/SIGTERM. `send` e `check` aguardam a sessão abrir, executam e
encerram. A factory do transporte vem de WA_TRANSPORT_FACTORY.

Exit codes: 0 sucesso, 1 falha ao construir o transporte ou sessão não abriu,
2 ao menos um envio falhou.
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys

from app.bootstrap import (
    GatewayContext,
    build_context,
    initialize_app,
    start_session,
    validate_runtime_settings,
)
from app.protocols.models import OutboundRequest
from config.logging import get_logger
from utils.errors import SessionNotOpenError, TransportConstructionError

logger = get_logger("scripts.wa_session")

DEFAULT_OPEN_TIMEOUT_SECONDS = 60.0


async def run_forever(context: GatewayContext) -> int:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, stop.set)

    await start_session(context)
    await stop.wait()
    logger.info("shutdown_requested")
    await context.manager.shutdown()
    return 0


async def send(context: GatewayContext, requests: list[OutboundRequest], timeout: float) -> int:
    await start_session(context)
    try:
        handle = await context.manager.wait_until_open(timeout)
        outcomes = await context.dispatcher.send_many(handle, requests)
    finally:
        await context.manager.shutdown()

    for request, outcome in zip(requests, outcomes, strict=True):
        status = f"ok id={outcome.message_id}" if outcome.success else f"failed: {outcome.error}"
        print(f"{request.destination}: {status}")
    return 0 if all(outcome.success for outcome in outcomes) else 2


async def check(context: GatewayContext, destinations: list[str], timeout: float) -> int:
    await start_session(context)
    try:
        handle = await context.manager.wait_until_open(timeout)
        registered = await context.dispatcher.check_registered(handle, destinations)
    finally:
        await context.manager.shutdown()

    for destination, exists in registered.items():
        print(f"{destination}: {'registered' if exists else 'not registered'}")
    return 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_OPEN_TIMEOUT_SECONDS,
        help="Segundos aguardando a sessão abrir (send/check).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("run", help="Mantém a sessão e o autoresponder ativos.")

    send_parser = subparsers.add_parser("send", help="Envia uma ou mais mensagens.")
    send_parser.add_argument("destination")
    send_parser.add_argument("body")
    send_parser.add_argument(
        "--to",
        nargs=2,
        action="append",
        default=[],
        metavar=("DESTINATION", "BODY"),
        help="Mensagem adicional (enviadas em sequência com pausa).",
    )

    check_parser = subparsers.add_parser("check", help="Consulta se números usam WhatsApp.")
    check_parser.add_argument("destinations", nargs="+")

    return parser.parse_args(argv)


async def _dispatch(args: argparse.Namespace) -> int:
    context = build_context()
    if args.command == "run":
        return await run_forever(context)
    if args.command == "send":
        pairs = [(args.destination, args.body), *args.to]
        requests = [OutboundRequest(destination=d, body=b) for d, b in pairs]
        return await send(context, requests, args.timeout)
    return await check(context, args.destinations, args.timeout)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    initialize_app()
    validate_runtime_settings()

    try:
        return asyncio.run(_dispatch(args))
    except TransportConstructionError as exc:
        logger.critical("session_start_failed", extra={"error": str(exc)})
        return 1
    except SessionNotOpenError as exc:
        logger.error("session_not_open", extra={"error": str(exc)})
        return 1


if __name__ == "__main__":
    sys.exit(main())
