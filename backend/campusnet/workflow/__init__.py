"""Request lifecycle: transition table and orchestration."""

from .service import WorkflowOutcome, WorkflowService
from .transitions import (
    TRANSITIONS,
    Action,
    Notify,
    RenderReport,
    TransitionContext,
    TransitionResult,
    allowed_actions,
    apply_transition,
)

__all__ = [
    "WorkflowOutcome",
    "WorkflowService",
    "TRANSITIONS",
    "Action",
    "Notify",
    "RenderReport",
    "TransitionContext",
    "TransitionResult",
    "allowed_actions",
    "apply_transition",
]
