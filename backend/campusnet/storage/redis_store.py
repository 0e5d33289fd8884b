"""
Redis-backed store.

Key layout (prefix defaults to "campusnet"):
    {prefix}:request:{id}          request JSON
    {prefix}:requests              set of request ids
    {prefix}:request:{id}:design   design id, written once with SET NX
    {prefix}:design:{id}           design JSON
    {prefix}:user:{id}             user JSON
    {prefix}:users                 set of user ids
    {prefix}:notifications:{user}  hash of notification id -> JSON
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from redis.exceptions import WatchError

from ..cache import RedisCache
from ..errors import NotFoundError, PreconditionError
from ..models.design import Design
from ..models.notification import Notification
from ..models.request import Request, RequestStatus
from ..models.user import Role, User
from .base import RequestStore

logger = logging.getLogger(__name__)


class RedisRequestStore(RequestStore):
    """Store backed by a connected RedisCache."""

    def __init__(self, cache: RedisCache, prefix: str = "campusnet"):
        self.cache = cache
        self.prefix = prefix

    def _key(self, *parts: str) -> str:
        return ":".join((self.prefix, *parts))

    # ─────────────────────────────────────────────────────────────────────
    # Requests
    # ─────────────────────────────────────────────────────────────────────

    async def create_request(self, request: Request) -> Request:
        if not await self.cache.claim_model(self._key("request", request.id), request):
            raise PreconditionError(f"Request '{request.id}' already exists")
        await self.cache.add_member(self._key("requests"), request.id)
        return request

    async def load_request(self, request_id: str) -> Request:
        request = await self.cache.get_model(self._key("request", request_id), Request)
        if request is None:
            raise NotFoundError(f"Request '{request_id}' not found")
        return request

    async def list_requests(self) -> list[Request]:
        requests = []
        for request_id in await self.cache.members(self._key("requests")):
            request = await self.cache.get_model(self._key("request", request_id), Request)
            if request:
                requests.append(request)
        return sorted(requests, key=lambda r: r.created_at)

    async def update_request_status(
        self,
        request_id: str,
        status: RequestStatus,
        fields: dict[str, Any],
        expected_version: int,
    ) -> Request:
        key = self._key("request", request_id)

        try:
            async with self.cache.watching(key) as pipe:
                raw = await pipe.get(key)
                if raw is None:
                    raise NotFoundError(f"Request '{request_id}' not found")

                current = Request.model_validate_json(raw)
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
                pipe.multi()
                pipe.set(key, updated.model_dump_json())
                await pipe.execute()
        except WatchError:
            logger.warning("Lost status update race on request %s", request_id)
            raise PreconditionError(
                f"Request '{request_id}' was modified concurrently"
            ) from None

        return updated

    # ─────────────────────────────────────────────────────────────────────
    # Designs
    # ─────────────────────────────────────────────────────────────────────

    async def save_design(self, design: Design) -> Design:
        claimed = await self.cache.claim(
            self._key("request", design.request_id, "design"), design.id
        )
        if not claimed:
            existing = await self.cache.get(self._key("request", design.request_id, "design"))
            raise PreconditionError(
                f"Design already exists for request '{design.request_id}'",
                {"design_id": existing},
            )
        await self.cache.set_model(self._key("design", design.id), design)
        return design

    async def discard_design(self, design: Design) -> None:
        claim_key = self._key("request", design.request_id, "design")
        try:
            async with self.cache.watching(claim_key) as pipe:
                owner = await pipe.get(claim_key)
                pipe.multi()
                pipe.delete(self._key("design", design.id))
                if owner == design.id:
                    pipe.delete(claim_key)
                await pipe.execute()
        except WatchError:
            logger.warning("Design claim for request %s moved while discarding %s",
                           design.request_id, design.id)
            await self.cache.delete(self._key("design", design.id))

    async def load_design(self, design_id: str) -> Design:
        design = await self.cache.get_model(self._key("design", design_id), Design)
        if design is None:
            raise NotFoundError(f"Design '{design_id}' not found")
        return design

    async def update_design(self, design: Design) -> Design:
        await self.load_design(design.id)
        await self.cache.set_model(self._key("design", design.id), design)
        return design

    # ─────────────────────────────────────────────────────────────────────
    # Users
    # ─────────────────────────────────────────────────────────────────────

    async def save_user(self, user: User) -> User:
        await self.cache.set_model(self._key("user", user.id), user)
        await self.cache.add_member(self._key("users"), user.id)
        return user

    async def get_user(self, user_id: str) -> User | None:
        return await self.cache.get_model(self._key("user", user_id), User)

    async def list_users(self, role: Role | None = None) -> list[User]:
        users = []
        for user_id in await self.cache.members(self._key("users")):
            user = await self.get_user(user_id)
            if user and (role is None or user.role == role):
                users.append(user)
        return sorted(users, key=lambda u: u.id)

    # ─────────────────────────────────────────────────────────────────────
    # Notifications
    # ─────────────────────────────────────────────────────────────────────

    async def add_notification(self, notification: Notification) -> Notification:
        await self.cache.hset_model(
            self._key("notifications", notification.user_id), notification.id, notification
        )
        return notification

    async def list_notifications(self, user_id: str) -> list[Notification]:
        notifications = await self.cache.hvals_models(
            self._key("notifications", user_id), Notification
        )
        return sorted(notifications, key=lambda n: n.created_at, reverse=True)

    async def update_notification(self, notification: Notification) -> Notification:
        key = self._key("notifications", notification.user_id)
        if await self.cache.hget_model(key, notification.id, Notification) is None:
            raise NotFoundError(f"Notification '{notification.id}' not found")
        await self.cache.hset_model(key, notification.id, notification)
        return notification
