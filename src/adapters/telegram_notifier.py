"""Telegram notification adapter.

Republishes recalled content to the destination chat held by the session
context.
"""

from __future__ import annotations

import io
import logging
from datetime import datetime, timezone

from adapters.notification_formatting import format_notification
from core.models import ContentKind, Notification
from core.session import SessionContext

LOGGER = logging.getLogger(__name__)


class TelegramNotifier:
    """Notifier adapter that sends recall notices through the user client."""

    def __init__(self, client, session: SessionContext, parse_mode: str = "Markdown") -> None:
        self._client = client
        self._session = session
        self._parse_mode = parse_mode

    async def send(self, notification: Notification) -> None:
        """Send the notice text, followed by the image bytes for image recalls."""

        destination = self._session.destination
        if destination is None:
            LOGGER.warning(
                "Dropping recall notice from %s: destination not discovered yet",
                notification.sender,
            )
            return

        mode = "html" if self._parse_mode.lower() == "html" else "markdown"
        text = format_notification(notification, mode=mode, when=datetime.now(timezone.utc))
        await self._client.send_message(destination, text, parse_mode=self._parse_mode)

        if notification.kind is ContentKind.IMAGE:
            # Telethon needs a name on in-memory files to pick the upload type.
            upload = io.BytesIO(notification.content)
            upload.name = "recalled.jpg"
            await self._client.send_file(destination, upload)
