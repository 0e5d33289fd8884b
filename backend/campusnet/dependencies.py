"""FastAPI dependencies: the workflow service and the calling user."""

from fastapi import Depends, Header, HTTPException, Request

from .models.user import Role, User
from .notifications import Notifier
from .storage.catalog import DeviceCatalog
from .workflow.service import WorkflowService


def get_workflow_service(request: Request) -> WorkflowService:
    return request.app.state.workflow


def get_catalog(service: WorkflowService = Depends(get_workflow_service)) -> DeviceCatalog:
    return service.catalog


def get_notifier(service: WorkflowService = Depends(get_workflow_service)) -> Notifier:
    return service.notifier


async def get_current_user(
    x_user_id: str | None = Header(default=None),
    service: WorkflowService = Depends(get_workflow_service),
) -> User:
    """Resolve the caller from the X-User-Id header."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")

    user = await service.store.get_user(x_user_id)
    if not user:
        raise HTTPException(status_code=401, detail=f"Unknown user '{x_user_id}'")
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != Role.ADMIN:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
