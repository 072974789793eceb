"""Use cases do canal WhatsApp."""

from app.use_cases.whatsapp.send_message import (
    MessageDispatcher,
    bare_destination,
    normalize_destination,
)

__all__ = [
    "MessageDispatcher",
    "bare_destination",
    "normalize_destination",
]
