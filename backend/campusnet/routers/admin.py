"""Admin API routes."""

from fastapi import APIRouter, Depends

from ..dependencies import get_current_user, get_workflow_service
from ..models.user import Role, User
from ..workflow.service import WorkflowService

router = APIRouter()


@router.get("/admin/stats")
async def get_stats(
    user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    """Request counts per status, catalog size and approved design cost."""
    return await service.stats(user.id)


@router.get("/users", response_model=list[User])
async def list_users(
    user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    """List the user directory. Non-admins only see themselves."""
    if user.role != Role.ADMIN:
        return [user]
    return await service.store.list_users()
