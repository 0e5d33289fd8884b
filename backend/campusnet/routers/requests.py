"""Network request API routes."""

from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..dependencies import get_current_user, get_workflow_service
from ..models.request import RequestCreate, RequestStatus, RequestSummary
from ..models.user import User
from ..workflow.service import WorkflowOutcome, WorkflowService

router = APIRouter()


class AssignBody(BaseModel):
    designer_id: Optional[str] = None
    installer_id: Optional[str] = None


class ApproveBody(BaseModel):
    design_notes: Optional[str] = None


class ProgressBody(BaseModel):
    progress: int
    note: Optional[str] = None


class StatusBody(BaseModel):
    status: RequestStatus
    designer_id: Optional[str] = None
    installer_id: Optional[str] = None


class RespondBody(BaseModel):
    response: str = Field(min_length=1)


def _outcome(outcome: WorkflowOutcome) -> dict[str, Any]:
    return {
        "request": outcome.request.model_dump(mode="json"),
        "design": outcome.design.model_dump(mode="json") if outcome.design else None,
        "diagnostics": outcome.diagnostics,
    }


@router.post("/requests", status_code=201)
async def submit_request(
    body: RequestCreate,
    user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    """Submit a new network request (clients only)."""
    return _outcome(await service.submit_request(user.id, body))


@router.get("/requests", response_model=list[RequestSummary])
async def list_requests(
    status: RequestStatus | None = None,
    user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    """List the requests visible to the caller."""
    requests = await service.list_requests(user.id, status)
    return [RequestSummary.from_request(r) for r in requests]


@router.get("/requests/{request_id}")
async def get_request(
    request_id: str,
    user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    """Get a request with its design, if any."""
    return _outcome(await service.get_request(user.id, request_id))


@router.post("/requests/{request_id}/assign")
async def assign(
    request_id: str,
    body: AssignBody,
    user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    return _outcome(await service.assign(user.id, request_id, body.designer_id, body.installer_id))


@router.post("/requests/{request_id}/design")
async def generate_design(
    request_id: str,
    user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    """Generate the design and render its report."""
    return _outcome(await service.generate_design(user.id, request_id))


@router.post("/requests/{request_id}/design/report")
async def render_report(
    request_id: str,
    user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    """Re-render the report for the current design."""
    return _outcome(await service.render_report(user.id, request_id))


@router.post("/requests/{request_id}/design/submit")
async def submit_design(
    request_id: str,
    user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    return _outcome(await service.submit_design(user.id, request_id))


@router.post("/requests/{request_id}/design/approve")
async def approve_design(
    request_id: str,
    body: ApproveBody | None = None,
    user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    notes = body.design_notes if body else None
    return _outcome(await service.approve_design(user.id, request_id, notes))


@router.post("/requests/{request_id}/design/accept")
async def accept_design(
    request_id: str,
    user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    return _outcome(await service.accept_design(user.id, request_id))


@router.post("/requests/{request_id}/installation/start")
async def start_installation(
    request_id: str,
    user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    return _outcome(await service.start_installation(user.id, request_id))


@router.post("/requests/{request_id}/installation/progress")
async def update_installation(
    request_id: str,
    body: ProgressBody,
    user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    return _outcome(
        await service.update_installation(user.id, request_id, body.progress, body.note)
    )


@router.post("/requests/{request_id}/installation/complete")
async def complete_installation(
    request_id: str,
    user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    return _outcome(await service.complete_installation(user.id, request_id))


@router.post("/requests/{request_id}/installation/verify")
async def verify_installation(
    request_id: str,
    user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    return _outcome(await service.verify_installation(user.id, request_id))


@router.put("/requests/{request_id}/status")
async def override_status(
    request_id: str,
    body: StatusBody,
    user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    """Admin override: set any status, optionally reassigning."""
    return _outcome(
        await service.override(user.id, request_id, body.status, body.designer_id, body.installer_id)
    )


@router.post("/requests/{request_id}/respond")
async def respond(
    request_id: str,
    body: RespondBody,
    user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    return _outcome(await service.respond(user.id, request_id, body.response))
