"""In-process store, used in development mode and tests."""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Any

from ..errors import NotFoundError, PreconditionError
from ..models.design import Design
from ..models.notification import Notification
from ..models.request import Request, RequestStatus
from ..models.user import Role, User
from .base import RequestStore


class InMemoryRequestStore(RequestStore):
    """Dict-backed store. Check-and-set sections hold a lock and never await."""

    def __init__(self):
        self._lock = threading.Lock()
        self._requests: dict[str, Request] = {}
        self._designs: dict[str, Design] = {}
        self._design_by_request: dict[str, str] = {}
        self._users: dict[str, User] = {}
        self._notifications: dict[str, dict[str, Notification]] = {}

    async def create_request(self, request: Request) -> Request:
        with self._lock:
            if request.id in self._requests:
                raise PreconditionError(f"Request '{request.id}' already exists")
            self._requests[request.id] = request
        return request

    async def load_request(self, request_id: str) -> Request:
        request = self._requests.get(request_id)
        if request is None:
            raise NotFoundError(f"Request '{request_id}' not found")
        return request

    async def list_requests(self) -> list[Request]:
        return sorted(self._requests.values(), key=lambda r: r.created_at)

    async def update_request_status(
        self,
        request_id: str,
        status: RequestStatus,
        fields: dict[str, Any],
        expected_version: int,
    ) -> Request:
        with self._lock:
            current = self._requests.get(request_id)
            if current is None:
                raise NotFoundError(f"Request '{request_id}' not found")
            if current.version != expected_version:
                raise PreconditionError(
                    f"Request '{request_id}' changed concurrently "
                    f"(now '{current.status.value}'); reload and retry",
                    {"expected_version": expected_version, "version": current.version},
                )
            updated = current.model_copy(update={
                **fields,
                "status": status,
                "version": current.version + 1,
                "updated_at": datetime.utcnow(),
            })
            self._requests[request_id] = updated
        return updated

    async def save_design(self, design: Design) -> Design:
        with self._lock:
            existing = self._design_by_request.get(design.request_id)
            if existing is not None:
                raise PreconditionError(
                    f"Design already exists for request '{design.request_id}'",
                    {"design_id": existing},
                )
            self._design_by_request[design.request_id] = design.id
            self._designs[design.id] = design
        return design

    async def discard_design(self, design: Design) -> None:
        with self._lock:
            self._designs.pop(design.id, None)
            if self._design_by_request.get(design.request_id) == design.id:
                del self._design_by_request[design.request_id]

    async def load_design(self, design_id: str) -> Design:
        design = self._designs.get(design_id)
        if design is None:
            raise NotFoundError(f"Design '{design_id}' not found")
        return design

    async def update_design(self, design: Design) -> Design:
        with self._lock:
            if design.id not in self._designs:
                raise NotFoundError(f"Design '{design.id}' not found")
            self._designs[design.id] = design
        return design

    async def save_user(self, user: User) -> User:
        self._users[user.id] = user
        return user

    async def get_user(self, user_id: str) -> User | None:
        return self._users.get(user_id)

    async def list_users(self, role: Role | None = None) -> list[User]:
        users = list(self._users.values())
        if role:
            users = [u for u in users if u.role == role]
        return users

    async def add_notification(self, notification: Notification) -> Notification:
        self._notifications.setdefault(notification.user_id, {})[notification.id] = notification
        return notification

    async def list_notifications(self, user_id: str) -> list[Notification]:
        notifications = self._notifications.get(user_id, {}).values()
        return sorted(notifications, key=lambda n: n.created_at, reverse=True)

    async def update_notification(self, notification: Notification) -> Notification:
        by_id = self._notifications.get(notification.user_id, {})
        if notification.id not in by_id:
            raise NotFoundError(f"Notification '{notification.id}' not found")
        by_id[notification.id] = notification
        return notification
