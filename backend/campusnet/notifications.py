"""
Notification Delivery

Persists notifications, suppresses near-duplicates, pushes them to the
recipient's WebSocket connections and optionally mirrors them to Discord.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta

import httpx

from .config import DiscordConfig
from .errors import NotFoundError
from .models.notification import Notification, NotificationType
from .storage.base import RequestStore
from .websocket import ConnectionManager

logger = logging.getLogger(__name__)


class Notifier:
    """Delivers notifications to users."""

    def __init__(
        self,
        store: RequestStore,
        ws: ConnectionManager | None = None,
        discord: DiscordConfig | None = None,
        duplicate_window_minutes: int = 5,
    ):
        self.store = store
        self.ws = ws
        self.discord = discord or DiscordConfig()
        self.duplicate_window = timedelta(minutes=duplicate_window_minutes)

    async def notify(
        self,
        user_id: str,
        request_id: str,
        type: NotificationType,
        title: str,
        message: str,
    ) -> Notification:
        """Create and deliver a notification, or return the recent duplicate."""
        since = datetime.utcnow() - self.duplicate_window
        existing = await self.store.find_recent_notification(user_id, request_id, type, title, since)
        if existing:
            logger.info("Duplicate notification suppressed: %s %s -> %s", type.value, request_id, user_id)
            return existing

        notification = Notification(
            id=uuid.uuid4().hex,
            user_id=user_id,
            request_id=request_id,
            type=type,
            title=title,
            message=message,
        )
        await self.store.add_notification(notification)

        if self.ws:
            await self.ws.send_to_user(
                user_id,
                {"type": "notification", "data": notification.model_dump(mode="json")},
            )

        if self.discord.enabled and self.discord.webhook_url:
            await self._post_discord(notification)

        return notification

    async def _post_discord(self, notification: Notification) -> None:
        payload = {"content": f"**{notification.title}**\n{notification.message}"}
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.post(self.discord.webhook_url, json=payload)
            response.raise_for_status()

    # ─────────────────────────────────────────────────────────────────────
    # Inbox
    # ─────────────────────────────────────────────────────────────────────

    async def list_for_user(self, user_id: str, unread_only: bool = False) -> list[Notification]:
        notifications = await self.store.list_notifications(user_id)
        if unread_only:
            notifications = [n for n in notifications if not n.is_read]
        return notifications

    async def unread_count(self, user_id: str) -> int:
        return len(await self.list_for_user(user_id, unread_only=True))

    async def mark_read(self, user_id: str, notification_id: str) -> Notification:
        for notification in await self.store.list_notifications(user_id):
            if notification.id == notification_id:
                if notification.is_read:
                    return notification
                updated = notification.model_copy(
                    update={"is_read": True, "read_at": datetime.utcnow()}
                )
                return await self.store.update_notification(updated)
        raise NotFoundError(f"Notification '{notification_id}' not found")

    async def mark_all_read(self, user_id: str) -> int:
        count = 0
        for notification in await self.list_for_user(user_id, unread_only=True):
            await self.mark_read(user_id, notification.id)
            count += 1
        return count
