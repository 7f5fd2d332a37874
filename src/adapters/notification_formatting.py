"""Shared notification formatting helpers.

Keeping formatting here prevents drift between text and image notices and
keeps messages consistent regardless of content kind.
"""

from __future__ import annotations

import html
from datetime import datetime
from typing import Optional

from core.models import ContentKind, Notification


def escape_md(value: str) -> str:
    for ch in r"*[`_":
        value = value.replace(ch, f"\\{ch}")
    return value


def _timestamp(when: Optional[datetime]) -> str:
    if when is None:
        return ""
    return when.astimezone().strftime("%H:%M:%S %d-%m-%Y").strip()


def _format_markdown(notification: Notification, when: Optional[datetime]) -> str:
    sender = escape_md(notification.sender)
    stamp = _timestamp(when)
    prefix = f"[{stamp}] " if stamp else ""
    if notification.kind is ContentKind.IMAGE:
        return f"{prefix}**{sender}** recalled an image:"
    return f"{prefix}**{sender}** recalled:\n{escape_md(str(notification.content))}"


def _format_html(notification: Notification, when: Optional[datetime]) -> str:
    sender = html.escape(notification.sender)
    stamp = html.escape(_timestamp(when))
    prefix = f"[{stamp}] " if stamp else ""
    if notification.kind is ContentKind.IMAGE:
        return f"{prefix}<b>{sender}</b> recalled an image:"
    return f"{prefix}<b>{sender}</b> recalled:\n{html.escape(str(notification.content))}"


def format_notification(
    notification: Notification,
    mode: str = "markdown",
    when: Optional[datetime] = None,
) -> str:
    """Return the recall notice text for the requested mode.

    For images this is the caption line sent ahead of the re-uploaded file.
    """

    if mode == "markdown":
        return _format_markdown(notification, when)
    if mode == "html":
        return _format_html(notification, when)
    raise ValueError(f"Unsupported notification format: {mode}")
