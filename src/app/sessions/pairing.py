"""Renderização do QR de pareamento no terminal."""

from __future__ import annotations

import sys
from typing import TextIO

import qrcode


class TerminalQrRenderer:
    """Desenha o QR em ASCII para leitura em "Aparelhos conectados"."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def render(self, payload: str) -> None:
        out = self._stream or sys.stdout
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_L,
            box_size=1,
            border=2,
        )
        qr.add_data(payload)
        qr.make(fit=True)

        out.write("\nScan this QR code with WhatsApp (Linked devices):\n\n")
        qr.print_ascii(out=out, invert=True)
        out.write("\nWaiting for the QR code to be scanned...\n\n")
        out.flush()
