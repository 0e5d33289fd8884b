"""
Workflow Service

Caller-facing operations. Each one loads the request, applies a row of the
transition table, commits the status change, and then carries out the
resulting effects one by one. Effect failures never undo the commit; they
come back as diagnostics on the outcome.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from ..design.engine import build_design, validate_requirements
from ..errors import AuthorizationError, NotFoundError, PreconditionError, SideEffectError
from ..models.design import Design
from ..models.request import Request, RequestCreate, RequestStatus
from ..models.user import Role, User
from ..notifications import Notifier
from ..reports import ReportRenderer
from ..storage.base import RequestStore
from ..storage.catalog import DeviceCatalog
from .transitions import (
    Action,
    Effect,
    Notify,
    RenderReport,
    TransitionContext,
    apply_transition,
)

logger = logging.getLogger(__name__)


@dataclass
class WorkflowOutcome:
    """Result of a caller-facing operation."""

    request: Request
    design: Design | None = None
    diagnostics: list[dict[str, Any]] = field(default_factory=list)

    @property
    def status(self) -> RequestStatus:
        return self.request.status


class WorkflowService:
    """Orchestrates the request lifecycle over its collaborators."""

    def __init__(
        self,
        store: RequestStore,
        catalog: DeviceCatalog,
        renderer: ReportRenderer,
        notifier: Notifier,
    ):
        self.store = store
        self.catalog = catalog
        self.renderer = renderer
        self.notifier = notifier

    # ─────────────────────────────────────────────────────────────────────
    # Lookups
    # ─────────────────────────────────────────────────────────────────────

    async def get_actor(self, user_id: str) -> User:
        user = await self.store.get_user(user_id)
        if user is None:
            raise AuthorizationError(f"Unknown user '{user_id}'")
        return user

    async def _design_of(self, request: Request) -> Design | None:
        if not request.design_id:
            return None
        return await self.store.load_design(request.design_id)

    @staticmethod
    def can_view(actor: User, request: Request) -> bool:
        return (
            actor.role == Role.ADMIN
            or request.client_id == actor.id
            or request.assigned_designer_id == actor.id
            or request.assigned_installer_id == actor.id
        )

    async def _load_visible(self, actor: User, request_id: str) -> Request:
        """Load a request, hiding missing ids behind AuthorizationError for non-admins."""
        try:
            return await self.store.load_request(request_id)
        except NotFoundError:
            if actor.role == Role.ADMIN:
                raise
            raise AuthorizationError("Access denied") from None

    async def get_request(self, actor_id: str, request_id: str) -> WorkflowOutcome:
        actor = await self.get_actor(actor_id)
        request = await self._load_visible(actor, request_id)
        if not self.can_view(actor, request):
            raise AuthorizationError("Access denied")
        return WorkflowOutcome(request=request, design=await self._design_of(request))

    async def get_design(self, actor_id: str, request_id: str) -> Design:
        await self.get_request(actor_id, request_id)
        return await self.store.load_design_for_request(request_id)

    async def list_requests(
        self, actor_id: str, status: RequestStatus | None = None
    ) -> list[Request]:
        actor = await self.get_actor(actor_id)
        requests = [r for r in await self.store.list_requests() if self.can_view(actor, r)]
        if status:
            requests = [r for r in requests if r.status == status]
        return requests

    async def stats(self, actor_id: str) -> dict[str, Any]:
        actor = await self.get_actor(actor_id)
        if actor.role != Role.ADMIN:
            raise AuthorizationError("Only admins can view statistics")

        requests = await self.store.list_requests()
        by_status = {status.value: 0 for status in RequestStatus}
        approved_cost = 0.0
        for request in requests:
            by_status[request.status.value] += 1
            design = await self._design_of(request)
            if design and design.is_approved:
                approved_cost += design.total_estimated_cost

        return {
            "total_requests": len(requests),
            "requests_by_status": by_status,
            "active_devices": len(self.catalog.list_active_devices()),
            "approved_design_cost": approved_cost,
        }

    # ─────────────────────────────────────────────────────────────────────
    # Submission
    # ─────────────────────────────────────────────────────────────────────

    async def submit_request(self, actor_id: str, data: RequestCreate) -> WorkflowOutcome:
        actor = await self.get_actor(actor_id)
        if actor.role != Role.CLIENT:
            raise AuthorizationError("Only clients can submit requests")

        validate_requirements(data.requirements)

        request = Request(
            id=uuid.uuid4().hex,
            client_id=actor.id,
            request_type=data.request_type,
            requirements=data.requirements,
            description=data.description,
            priority=data.priority,
        )
        await self.store.create_request(request)
        logger.info("Request %s submitted by %s", request.id, actor.id)
        return WorkflowOutcome(request=request)

    # ─────────────────────────────────────────────────────────────────────
    # Transitions
    # ─────────────────────────────────────────────────────────────────────

    async def _resolve_assignees(
        self, designer_id: str | None, installer_id: str | None
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        unknown = []
        for key, user_id in (("designer", designer_id), ("installer", installer_id)):
            if not user_id:
                continue
            user = await self.store.get_user(user_id)
            if user is None:
                unknown.append(user_id)
            else:
                payload[key] = user
        if unknown:
            payload["invalid_assignees"] = unknown
        return payload

    async def _transition(
        self,
        action: Action,
        actor_id: str,
        request_id: str,
        payload: dict[str, Any] | None = None,
        design_factory=None,
    ) -> WorkflowOutcome:
        actor = await self.get_actor(actor_id)
        request = await self._load_visible(actor, request_id)
        design = await self._design_of(request)

        ctx = TransitionContext(request=request, actor=actor, design=design, payload=payload or {})
        result = apply_transition(action, ctx)

        claimed = None
        if design_factory is not None:
            design = claimed = await self.store.save_design(design_factory(request))

        try:
            updated = await self.store.update_request_status(
                request.id, result.status, result.fields, expected_version=request.version
            )
        except PreconditionError:
            if claimed is not None:
                await self.store.discard_design(claimed)
                logger.warning(
                    "Released design %s for request %s after a lost update", claimed.id, request.id
                )
            raise
        if result.design_updates and design is not None:
            design = await self.store.update_design(design.model_copy(update=result.design_updates))

        logger.info(
            "Request %s: %s by %s (%s -> %s)",
            request.id,
            action.value,
            actor.id,
            request.status.value,
            updated.status.value,
        )

        outcome = WorkflowOutcome(request=updated, design=design)
        await self._perform(result.effects, outcome)
        return outcome

    async def _perform(self, effects: list[Effect], outcome: WorkflowOutcome) -> None:
        """Run each effect in isolation, recording failures as diagnostics."""
        for effect in effects:
            if isinstance(effect, RenderReport):
                await self._render_report(outcome)
            elif isinstance(effect, Notify):
                await self._notify(effect, outcome)

    async def _render_report(self, outcome: WorkflowOutcome) -> None:
        request, design = outcome.request, outcome.design
        try:
            designer = None
            if request.assigned_designer_id:
                designer = await self.store.get_user(request.assigned_designer_id)
            report_ref = self.renderer.render(request, design, designer)
            outcome.design = await self.store.update_design(
                design.model_copy(update={"report_ref": report_ref})
            )
        except Exception as e:
            logger.warning("Report rendering failed for request %s: %s", request.id, e)
            outcome.diagnostics.append(
                SideEffectError(f"Report rendering failed: {e}", {"effect": "render_report"}).to_dict()
            )

    async def _notify(self, effect: Notify, outcome: WorkflowOutcome) -> None:
        if effect.user_id:
            recipients = [effect.user_id]
        else:
            recipients = [u.id for u in await self.store.list_users(effect.role)]

        for user_id in recipients:
            try:
                await self.notifier.notify(
                    user_id, outcome.request.id, effect.type, effect.title, effect.message
                )
            except Exception as e:
                logger.warning(
                    "Notification %s to %s failed for request %s: %s",
                    effect.type.value,
                    user_id,
                    outcome.request.id,
                    e,
                )
                outcome.diagnostics.append(SideEffectError(
                    f"Notification '{effect.type.value}' to user {user_id} failed: {e}",
                    {"effect": "notify", "user_id": user_id},
                ).to_dict())

    # ─────────────────────────────────────────────────────────────────────
    # Operations
    # ─────────────────────────────────────────────────────────────────────

    async def assign(
        self,
        actor_id: str,
        request_id: str,
        designer_id: str | None = None,
        installer_id: str | None = None,
    ) -> WorkflowOutcome:
        payload = await self._resolve_assignees(designer_id, installer_id)
        return await self._transition(Action.ASSIGN, actor_id, request_id, payload)

    async def generate_design(self, actor_id: str, request_id: str) -> WorkflowOutcome:
        design_id = uuid.uuid4().hex
        catalog = self.catalog.list_active_devices()

        def factory(request: Request) -> Design:
            plan = build_design(request.requirements, catalog)
            return Design.from_plan(design_id, request.id, plan)

        return await self._transition(
            Action.GENERATE_DESIGN, actor_id, request_id, {"design_id": design_id}, factory
        )

    async def render_report(self, actor_id: str, request_id: str) -> WorkflowOutcome:
        return await self._transition(Action.RENDER_REPORT, actor_id, request_id)

    async def submit_design(self, actor_id: str, request_id: str) -> WorkflowOutcome:
        return await self._transition(Action.SUBMIT_DESIGN, actor_id, request_id)

    async def approve_design(
        self, actor_id: str, request_id: str, design_notes: str | None = None
    ) -> WorkflowOutcome:
        return await self._transition(
            Action.APPROVE_DESIGN, actor_id, request_id, {"design_notes": design_notes}
        )

    async def accept_design(self, actor_id: str, request_id: str) -> WorkflowOutcome:
        return await self._transition(Action.ACCEPT_DESIGN, actor_id, request_id)

    async def start_installation(self, actor_id: str, request_id: str) -> WorkflowOutcome:
        return await self._transition(Action.START_INSTALLATION, actor_id, request_id)

    async def update_installation(
        self, actor_id: str, request_id: str, progress: int, note: str | None = None
    ) -> WorkflowOutcome:
        return await self._transition(
            Action.UPDATE_INSTALLATION, actor_id, request_id, {"progress": progress, "note": note}
        )

    async def complete_installation(self, actor_id: str, request_id: str) -> WorkflowOutcome:
        return await self._transition(Action.COMPLETE_INSTALLATION, actor_id, request_id)

    async def verify_installation(self, actor_id: str, request_id: str) -> WorkflowOutcome:
        return await self._transition(Action.VERIFY_INSTALLATION, actor_id, request_id)

    async def override(
        self,
        actor_id: str,
        request_id: str,
        status: RequestStatus,
        designer_id: str | None = None,
        installer_id: str | None = None,
    ) -> WorkflowOutcome:
        payload = await self._resolve_assignees(designer_id, installer_id)
        payload["status"] = status
        return await self._transition(Action.OVERRIDE, actor_id, request_id, payload)

    async def respond(self, actor_id: str, request_id: str, response: str) -> WorkflowOutcome:
        return await self._transition(Action.RESPOND, actor_id, request_id, {"response": response})
