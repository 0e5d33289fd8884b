"""Design API routes."""

from fastapi import APIRouter, Depends

from ..dependencies import get_current_user, get_workflow_service
from ..design.mermaid import to_mermaid
from ..models.design import Design
from ..models.user import User
from ..workflow.service import WorkflowService

router = APIRouter()


@router.get("/requests/{request_id}/design", response_model=Design)
async def get_design(
    request_id: str,
    user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    """Get the design generated for a request."""
    return await service.get_design(user.id, request_id)


@router.get("/requests/{request_id}/design/topology")
async def get_topology(
    request_id: str,
    user: User = Depends(get_current_user),
    service: WorkflowService = Depends(get_workflow_service),
):
    """Get the topology graph and its Mermaid rendering."""
    design = await service.get_design(user.id, request_id)
    return {
        "design_id": design.id,
        "graph": design.topology.model_dump(mode="json"),
        "mermaid": design.topology_diagram or to_mermaid(design.topology),
    }
