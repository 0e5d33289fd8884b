"""Persistence interface for requests, designs, users and notifications."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from ..errors import NotFoundError
from ..models.design import Design
from ..models.notification import Notification, NotificationType
from ..models.request import Request, RequestStatus
from ..models.user import Role, User


class RequestStore(ABC):
    """
    Single-document operations the workflow relies on.

    `save_design` must be insert-if-absent per request and
    `update_request_status` must compare-and-swap on the request version, so
    duplicate concurrent calls cannot both succeed and no update is computed
    from a stale read.
    """

    # Requests

    @abstractmethod
    async def create_request(self, request: Request) -> Request:
        """Persist a new request."""

    @abstractmethod
    async def load_request(self, request_id: str) -> Request:
        """Return the request or raise NotFoundError."""

    @abstractmethod
    async def list_requests(self) -> list[Request]:
        """All requests, oldest first."""

    @abstractmethod
    async def update_request_status(
        self,
        request_id: str,
        status: RequestStatus,
        fields: dict[str, Any],
        expected_version: int,
    ) -> Request:
        """
        Apply `fields` and `status` if the stored version is still
        `expected_version`, bumping it. PreconditionError otherwise.
        """

    # Designs

    @abstractmethod
    async def save_design(self, design: Design) -> Design:
        """Store the first design for a request; PreconditionError if one exists."""

    @abstractmethod
    async def discard_design(self, design: Design) -> None:
        """Delete a design and release its request's claim if it still holds it."""

    @abstractmethod
    async def load_design(self, design_id: str) -> Design:
        """Return the design or raise NotFoundError."""

    @abstractmethod
    async def update_design(self, design: Design) -> Design:
        """Replace a stored design."""

    async def load_design_for_request(self, request_id: str) -> Design:
        request = await self.load_request(request_id)
        if not request.design_id:
            raise NotFoundError(f"No design exists for request '{request_id}'")
        return await self.load_design(request.design_id)

    # Users

    @abstractmethod
    async def save_user(self, user: User) -> User:
        """Insert or replace a user."""

    @abstractmethod
    async def get_user(self, user_id: str) -> User | None:
        """Return the user or None."""

    @abstractmethod
    async def list_users(self, role: Role | None = None) -> list[User]:
        """All users, optionally only one role."""

    # Notifications

    @abstractmethod
    async def add_notification(self, notification: Notification) -> Notification:
        """Persist a notification."""

    @abstractmethod
    async def list_notifications(self, user_id: str) -> list[Notification]:
        """A user's notifications, newest first."""

    @abstractmethod
    async def update_notification(self, notification: Notification) -> Notification:
        """Replace a stored notification."""

    async def find_recent_notification(
        self,
        user_id: str,
        request_id: str,
        type: NotificationType,
        title: str,
        since: datetime,
    ) -> Notification | None:
        for notification in await self.list_notifications(user_id):
            if (
                notification.request_id == request_id
                and notification.type == type
                and notification.title == title
                and notification.created_at >= since
            ):
                return notification
        return None
