"""Serviços de aplicação."""

from app.services.auto_replies import (
    AutoReplyConfigError,
    AutoReplyRule,
    load_auto_replies,
    register_auto_replies,
    render_reply,
)

__all__ = [
    "AutoReplyConfigError",
    "AutoReplyRule",
    "load_auto_replies",
    "register_auto_replies",
    "render_reply",
]
