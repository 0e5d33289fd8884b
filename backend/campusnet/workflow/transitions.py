"""
Request Workflow State Machine

Every legal move is a row in TRANSITIONS keyed by (current status, action).
Applying a row is pure: guards raise, and the result describes the new
status, the field updates and the effects (notifications, report
rendering) an orchestrator must carry out afterwards.

    New -> Assigned -> Design In Progress -> Design Submitted
        -> Awaiting Client Review -> Completed                (design only)
                                  -> Design Complete
                                  -> Installation In Progress -> Completed
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Union

from ..errors import AuthorizationError, PreconditionError, ValidationError
from ..models.design import Design
from ..models.notification import NotificationType
from ..models.request import Request, RequestStatus, RequestType
from ..models.user import Role, User


class Action(str, Enum):
    ASSIGN = "assign"
    GENERATE_DESIGN = "generate_design"
    RENDER_REPORT = "render_report"
    SUBMIT_DESIGN = "submit_design"
    APPROVE_DESIGN = "approve_design"
    ACCEPT_DESIGN = "accept_design"
    START_INSTALLATION = "start_installation"
    UPDATE_INSTALLATION = "update_installation"
    COMPLETE_INSTALLATION = "complete_installation"
    VERIFY_INSTALLATION = "verify_installation"
    OVERRIDE = "override"
    RESPOND = "respond"


ACTION_ROLES: dict[Action, frozenset[Role]] = {
    Action.ASSIGN: frozenset({Role.ADMIN}),
    Action.GENERATE_DESIGN: frozenset({Role.DESIGNER}),
    Action.RENDER_REPORT: frozenset({Role.DESIGNER}),
    Action.SUBMIT_DESIGN: frozenset({Role.DESIGNER}),
    Action.APPROVE_DESIGN: frozenset({Role.ADMIN}),
    Action.ACCEPT_DESIGN: frozenset({Role.CLIENT}),
    Action.START_INSTALLATION: frozenset({Role.INSTALLER}),
    Action.UPDATE_INSTALLATION: frozenset({Role.INSTALLER}),
    Action.COMPLETE_INSTALLATION: frozenset({Role.INSTALLER}),
    Action.VERIFY_INSTALLATION: frozenset({Role.CLIENT}),
    Action.OVERRIDE: frozenset({Role.ADMIN}),
    Action.RESPOND: frozenset({Role.ADMIN}),
}


# ─────────────────────────────────────────────────────────────────────────────
# Effects
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Notify:
    """Send a notification to one user, or to every user holding `role`."""

    type: NotificationType
    title: str
    message: str
    user_id: str | None = None
    role: Role | None = None


@dataclass(frozen=True)
class RenderReport:
    """Render the report document for a design and store its reference."""

    design_id: str


Effect = Union[Notify, RenderReport]


# ─────────────────────────────────────────────────────────────────────────────
# Context and result
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class TransitionContext:
    request: Request
    actor: User
    design: Design | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    now: datetime = field(default_factory=datetime.utcnow)

    @property
    def project_ref(self) -> str:
        return self.request.id[-4:]


@dataclass(frozen=True)
class TransitionResult:
    action: Action
    status: RequestStatus
    fields: dict[str, Any] = field(default_factory=dict)
    design_updates: dict[str, Any] = field(default_factory=dict)
    effects: list[Effect] = field(default_factory=list)


Guard = Callable[[TransitionContext], None]
Target = Callable[[TransitionContext], RequestStatus]
Outcome = Callable[[TransitionContext], tuple[dict[str, Any], dict[str, Any], list[Effect]]]


@dataclass(frozen=True)
class Transition:
    source: RequestStatus
    action: Action
    target: Target
    guards: tuple[Guard, ...] = ()
    outcome: Outcome | None = None


# ─────────────────────────────────────────────────────────────────────────────
# Guards
# ─────────────────────────────────────────────────────────────────────────────


def actor_is_assigned_designer(ctx: TransitionContext) -> None:
    if ctx.request.assigned_designer_id != ctx.actor.id:
        raise AuthorizationError("Access denied. You are not assigned to this request.")


def actor_is_assigned_installer(ctx: TransitionContext) -> None:
    if ctx.request.assigned_installer_id != ctx.actor.id:
        raise AuthorizationError("Access denied. You are not the installer for this request.")


def actor_is_client(ctx: TransitionContext) -> None:
    if ctx.request.client_id != ctx.actor.id:
        raise AuthorizationError("Access denied. You are not the client for this request.")


def needs_design(ctx: TransitionContext) -> None:
    if not ctx.request.request_type.needs_design:
        raise PreconditionError("Installation-only requests do not have a design")


def installation_only(ctx: TransitionContext) -> None:
    if ctx.request.request_type != RequestType.INSTALLATION_ONLY:
        raise PreconditionError("Installation cannot start before the design is complete")


def needs_installation(ctx: TransitionContext) -> None:
    if not ctx.request.request_type.needs_installation:
        raise PreconditionError("Design-only requests have no installation")


def no_design_yet(ctx: TransitionContext) -> None:
    if ctx.request.design_id or ctx.design is not None:
        raise PreconditionError(
            "Design already exists for this request",
            {"design_id": ctx.request.design_id},
        )


def design_exists(ctx: TransitionContext) -> None:
    if ctx.design is None:
        raise PreconditionError("No design exists for this request")


def report_exists(ctx: TransitionContext) -> None:
    design_exists(ctx)
    if not ctx.design.report_ref:
        raise PreconditionError("Design report is missing. Please re-render the report.")


def design_not_approved(ctx: TransitionContext) -> None:
    if ctx.design is not None and ctx.design.is_approved:
        raise PreconditionError("Design is already approved")


def installation_not_complete(ctx: TransitionContext) -> None:
    if ctx.request.installation_completed_at is not None:
        raise PreconditionError("Installation has already been reported complete")


def installation_complete(ctx: TransitionContext) -> None:
    if ctx.request.installation_completed_at is None:
        raise PreconditionError("Installer has not reported the installation complete")


def _assignee_is(user: User | None, role: Role, label: str) -> None:
    if user is not None and user.role != role:
        raise PreconditionError(f"Invalid {label} assignment: user '{user.id}' is not a {role.value}")


def valid_assignees(ctx: TransitionContext) -> None:
    """Any assignee supplied must hold the matching role."""
    if ctx.payload.get("invalid_assignees"):
        raise PreconditionError(
            "Invalid assignment: unknown user(s) " + ", ".join(ctx.payload["invalid_assignees"])
        )
    _assignee_is(ctx.payload.get("designer"), Role.DESIGNER, "designer")
    _assignee_is(ctx.payload.get("installer"), Role.INSTALLER, "installer")


def required_assignees(ctx: TransitionContext) -> None:
    """The function the request needs next must be covered."""
    valid_assignees(ctx)
    request = ctx.request
    designer = ctx.payload.get("designer") or (request.assigned_designer_id or None)
    installer = ctx.payload.get("installer") or (request.assigned_installer_id or None)

    if request.status == RequestStatus.NEW:
        if request.request_type.needs_design and designer is None:
            raise PreconditionError("A designer must be assigned to this request")
        if request.request_type == RequestType.INSTALLATION_ONLY and installer is None:
            raise PreconditionError("An installer must be assigned to this request")
    elif ctx.payload.get("installer") is None:
        raise PreconditionError("An installer must be assigned to this request")


def progress_in_range(ctx: TransitionContext) -> None:
    progress = ctx.payload.get("progress")
    if progress is None or not 0 <= progress <= 99:
        raise ValidationError(["installation progress must be between 0 and 99"])


def response_present(ctx: TransitionContext) -> None:
    if not (ctx.payload.get("response") or "").strip():
        raise ValidationError(["admin response is required"])


def override_target_valid(ctx: TransitionContext) -> None:
    if not isinstance(ctx.payload.get("status"), RequestStatus):
        raise ValidationError(["a valid target status is required"])


# ─────────────────────────────────────────────────────────────────────────────
# Outcomes
# ─────────────────────────────────────────────────────────────────────────────


def _stay(ctx: TransitionContext) -> RequestStatus:
    return ctx.request.status


def _to(status: RequestStatus) -> Target:
    return lambda ctx: status


def _accepted_status(ctx: TransitionContext) -> RequestStatus:
    if ctx.request.request_type.needs_installation:
        return RequestStatus.DESIGN_COMPLETE
    return RequestStatus.COMPLETED


def _assignment_fields(ctx: TransitionContext) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    if ctx.payload.get("designer") is not None:
        fields["assigned_designer_id"] = ctx.payload["designer"].id
    if ctx.payload.get("installer") is not None:
        fields["assigned_installer_id"] = ctx.payload["installer"].id
    return fields


def _assignment_effects(ctx: TransitionContext, status: RequestStatus) -> list[Effect]:
    effects: list[Effect] = [Notify(
        type=NotificationType.ASSIGNMENT,
        title="Project Assignment Update",
        message=(
            f"Your project \"{ctx.request.requirements.campus_name}\" has been updated. "
            f"Status: {status.value}"
        ),
        user_id=ctx.request.client_id,
    )]
    for key in ("designer", "installer"):
        user = ctx.payload.get(key)
        if user is not None:
            effects.append(Notify(
                type=NotificationType.ASSIGNMENT,
                title="New Project Assignment",
                message=f"You have been assigned as {key} for project {ctx.project_ref}.",
                user_id=user.id,
            ))
    return effects


def on_assign(ctx: TransitionContext):
    target = RequestStatus.ASSIGNED if ctx.request.status == RequestStatus.NEW else ctx.request.status
    return _assignment_fields(ctx), {}, _assignment_effects(ctx, target)


def on_generate(ctx: TransitionContext):
    design_id = ctx.payload["design_id"]
    return {"design_id": design_id}, {}, [RenderReport(design_id)]


def on_render(ctx: TransitionContext):
    return {}, {}, [RenderReport(ctx.design.id)]


def on_submit(ctx: TransitionContext):
    return {}, {}, [Notify(
        type=NotificationType.DESIGN_REVIEW,
        title="New Design Report Received",
        message=f"Report for project {ctx.project_ref} submitted by {ctx.actor.name} for your review.",
        role=Role.ADMIN,
    )]


def on_approve(ctx: TransitionContext):
    design_updates: dict[str, Any] = {
        "is_approved": True,
        "approved_by": ctx.actor.id,
        "approved_at": ctx.now,
    }
    if ctx.payload.get("design_notes"):
        design_updates["design_notes"] = ctx.payload["design_notes"]

    return {}, design_updates, [Notify(
        type=NotificationType.DESIGN_APPROVED,
        title="Admin Approved Design Report",
        message=(
            f"The design report for project {ctx.project_ref} has been approved. "
            "Please review and accept."
        ),
        user_id=ctx.request.client_id,
    )]


def on_accept(ctx: TransitionContext):
    completed = _accepted_status(ctx) == RequestStatus.COMPLETED
    fields: dict[str, Any] = {"actual_completion_date": ctx.now} if completed else {}

    effects: list[Effect] = []
    if ctx.request.assigned_designer_id:
        effects.append(Notify(
            type=NotificationType.CLIENT_ACCEPTANCE,
            title="Design Accepted by Client",
            message=f"Your design report for project {ctx.project_ref} has been formally accepted by the client.",
            user_id=ctx.request.assigned_designer_id,
        ))

    if completed:
        effects.append(Notify(
            type=NotificationType.PROJECT_COMPLETED,
            title="Project Completed by Client",
            message=f"Project {ctx.project_ref} has been marked as completed by the client.",
            role=Role.ADMIN,
        ))
    else:
        effects.append(Notify(
            type=NotificationType.CLIENT_ACCEPTANCE,
            title="Design Accepted, Ready for Installation",
            message=f"The client accepted the design for project {ctx.project_ref}. Installation can begin.",
            role=Role.ADMIN,
        ))
        if ctx.request.assigned_installer_id:
            effects.append(Notify(
                type=NotificationType.CLIENT_ACCEPTANCE,
                title="Design Accepted, Ready for Installation",
                message=f"The design for project {ctx.project_ref} was accepted. You can start the installation.",
                user_id=ctx.request.assigned_installer_id,
            ))

    return fields, {}, effects


def on_start_installation(ctx: TransitionContext):
    message = f"Installation for project {ctx.project_ref} has started."
    return {"installation_progress": 0}, {}, [
        Notify(NotificationType.INSTALLATION_STARTED, "Installation Started", message,
               user_id=ctx.request.client_id),
        Notify(NotificationType.INSTALLATION_STARTED, "Installation Started", message,
               role=Role.ADMIN),
    ]


def on_update_installation(ctx: TransitionContext):
    progress = ctx.payload["progress"]
    note = (ctx.payload.get("note") or "").strip()
    fields: dict[str, Any] = {"installation_progress": progress}
    if note:
        fields["installation_notes"] = [*ctx.request.installation_notes, note]

    message = f"Installation for project {ctx.project_ref} is {progress}% complete."
    if note:
        message += f" {note}"
    return fields, {}, [Notify(
        NotificationType.INSTALLATION_PROGRESS, "Installation Progress", message,
        user_id=ctx.request.client_id,
    )]


def on_complete_installation(ctx: TransitionContext):
    message = f"Installation for project {ctx.project_ref} is complete and awaits client verification."
    return {"installation_completed_at": ctx.now, "installation_progress": 100}, {}, [
        Notify(NotificationType.INSTALLATION_COMPLETED, "Installation Completed", message,
               user_id=ctx.request.client_id),
        Notify(NotificationType.INSTALLATION_COMPLETED, "Installation Completed", message,
               role=Role.ADMIN),
    ]


def on_verify_installation(ctx: TransitionContext):
    fields = {"client_verified_at": ctx.now, "actual_completion_date": ctx.now}
    effects: list[Effect] = []
    if ctx.request.assigned_installer_id:
        effects.append(Notify(
            NotificationType.INSTALLATION_VERIFIED, "Installation Verified by Client",
            f"The client verified the installation for project {ctx.project_ref}.",
            user_id=ctx.request.assigned_installer_id,
        ))
    effects.append(Notify(
        NotificationType.INSTALLATION_VERIFIED, "Installation Verified by Client",
        f"The client verified the installation for project {ctx.project_ref}.",
        role=Role.ADMIN,
    ))
    effects.append(Notify(
        NotificationType.PROJECT_COMPLETED, "Project Completed",
        f"Project {ctx.project_ref} installation was verified by the client.",
        role=Role.ADMIN,
    ))
    return fields, {}, effects


def on_override(ctx: TransitionContext):
    status = ctx.payload["status"]
    fields = _assignment_fields(ctx)
    if status == RequestStatus.COMPLETED and ctx.request.actual_completion_date is None:
        fields["actual_completion_date"] = ctx.now
    return fields, {}, _assignment_effects(ctx, status)


def on_respond(ctx: TransitionContext):
    fields = {"admin_response": ctx.payload["response"].strip(), "admin_response_at": ctx.now}
    return fields, {}, [Notify(
        type=NotificationType.RESPONSE,
        title="Admin Response",
        message=(
            "You have received a response from the admin for your project "
            f"\"{ctx.request.requirements.campus_name}\""
        ),
        user_id=ctx.request.client_id,
    )]


# ─────────────────────────────────────────────────────────────────────────────
# Transition table
# ─────────────────────────────────────────────────────────────────────────────


def _rows() -> list[Transition]:
    S = RequestStatus
    rows = [
        Transition(S.NEW, Action.ASSIGN, _to(S.ASSIGNED), (required_assignees,), on_assign),
        Transition(S.DESIGN_COMPLETE, Action.ASSIGN, _stay, (required_assignees,), on_assign),
        Transition(
            S.ASSIGNED, Action.GENERATE_DESIGN, _to(S.DESIGN_IN_PROGRESS),
            (needs_design, actor_is_assigned_designer, no_design_yet), on_generate,
        ),
        Transition(
            S.DESIGN_IN_PROGRESS, Action.RENDER_REPORT, _stay,
            (actor_is_assigned_designer, design_exists), on_render,
        ),
        Transition(
            S.DESIGN_IN_PROGRESS, Action.SUBMIT_DESIGN, _to(S.DESIGN_SUBMITTED),
            (actor_is_assigned_designer, report_exists), on_submit,
        ),
        Transition(
            S.DESIGN_SUBMITTED, Action.APPROVE_DESIGN, _to(S.AWAITING_CLIENT_REVIEW),
            (report_exists, design_not_approved), on_approve,
        ),
        Transition(
            S.AWAITING_CLIENT_REVIEW, Action.ACCEPT_DESIGN, _accepted_status,
            (actor_is_client, report_exists), on_accept,
        ),
        Transition(
            S.ASSIGNED, Action.START_INSTALLATION, _to(S.INSTALLATION_IN_PROGRESS),
            (installation_only, actor_is_assigned_installer), on_start_installation,
        ),
        Transition(
            S.DESIGN_COMPLETE, Action.START_INSTALLATION, _to(S.INSTALLATION_IN_PROGRESS),
            (needs_installation, actor_is_assigned_installer), on_start_installation,
        ),
        Transition(
            S.INSTALLATION_IN_PROGRESS, Action.UPDATE_INSTALLATION, _stay,
            (actor_is_assigned_installer, installation_not_complete, progress_in_range),
            on_update_installation,
        ),
        Transition(
            S.INSTALLATION_IN_PROGRESS, Action.COMPLETE_INSTALLATION, _stay,
            (actor_is_assigned_installer, installation_not_complete), on_complete_installation,
        ),
        Transition(
            S.INSTALLATION_IN_PROGRESS, Action.VERIFY_INSTALLATION, _to(S.COMPLETED),
            (actor_is_client, installation_complete), on_verify_installation,
        ),
    ]

    for status in RequestStatus:
        rows.append(Transition(
            status, Action.OVERRIDE, lambda ctx: ctx.payload["status"],
            (override_target_valid, valid_assignees), on_override,
        ))
        rows.append(Transition(status, Action.RESPOND, _stay, (response_present,), on_respond))

    return rows


TRANSITIONS: dict[tuple[RequestStatus, Action], Transition] = {
    (row.source, row.action): row for row in _rows()
}


def allowed_actions(status: RequestStatus) -> list[Action]:
    """Actions that have a row for `status`, in declaration order."""
    return [action for (source, action) in TRANSITIONS if source == status]


def apply_transition(action: Action, ctx: TransitionContext) -> TransitionResult:
    """
    Check role, table membership and guards; return what should change.

    Raises AuthorizationError, PreconditionError or ValidationError and
    changes nothing.
    """
    if ctx.actor.role not in ACTION_ROLES[action]:
        raise AuthorizationError(
            f"Role '{ctx.actor.role.value}' may not perform '{action.value}'",
            {"action": action.value, "role": ctx.actor.role.value},
        )

    row = TRANSITIONS.get((ctx.request.status, action))
    if row is None:
        raise PreconditionError(
            f"Cannot {action.value.replace('_', ' ')} a request in status '{ctx.request.status.value}'",
            {"action": action.value, "status": ctx.request.status.value},
        )

    for guard in row.guards:
        guard(ctx)

    fields, design_updates, effects = row.outcome(ctx) if row.outcome else ({}, {}, [])
    return TransitionResult(
        action=action,
        status=row.target(ctx),
        fields=fields,
        design_updates=design_updates,
        effects=effects,
    )
