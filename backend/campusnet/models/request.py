"""Network request models for Campusnet."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field

from .requirements import CampusRequirements


class RequestStatus(str, Enum):
    NEW = "New"
    ASSIGNED = "Assigned"
    DESIGN_IN_PROGRESS = "Design In Progress"
    DESIGN_SUBMITTED = "Design Submitted"
    AWAITING_CLIENT_REVIEW = "Awaiting Client Review"
    DESIGN_COMPLETE = "Design Complete"
    INSTALLATION_IN_PROGRESS = "Installation In Progress"
    COMPLETED = "Completed"


class RequestType(str, Enum):
    DESIGN_ONLY = "Design Only"
    INSTALLATION_ONLY = "Installation Only"
    DESIGN_AND_INSTALLATION = "Both Design and Installation"

    @property
    def needs_design(self) -> bool:
        return self is not RequestType.INSTALLATION_ONLY

    @property
    def needs_installation(self) -> bool:
        return self is not RequestType.DESIGN_ONLY


class Priority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"


_STATUS_PROGRESS = {
    RequestStatus.NEW: 0,
    RequestStatus.ASSIGNED: 20,
    RequestStatus.DESIGN_IN_PROGRESS: 40,
    RequestStatus.DESIGN_SUBMITTED: 50,
    RequestStatus.AWAITING_CLIENT_REVIEW: 60,
    RequestStatus.DESIGN_COMPLETE: 60,
    RequestStatus.INSTALLATION_IN_PROGRESS: 80,
    RequestStatus.COMPLETED: 100,
}


class Request(BaseModel):
    """A client's network request. The root of everything else."""

    id: str
    client_id: str
    request_type: RequestType = RequestType.DESIGN_AND_INSTALLATION
    requirements: CampusRequirements
    description: Optional[str] = None
    priority: Priority = Priority.MEDIUM

    status: RequestStatus = RequestStatus.NEW
    # Bumped on every committed update; stale writers lose the compare-and-swap
    version: int = 0

    # Weak references (ids only)
    assigned_designer_id: Optional[str] = None
    assigned_installer_id: Optional[str] = None
    design_id: Optional[str] = None

    # Installation tracking
    installation_progress: Optional[int] = None
    installation_notes: list[str] = []
    installation_completed_at: Optional[datetime] = None
    client_verified_at: Optional[datetime] = None

    admin_response: Optional[str] = None
    admin_response_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    actual_completion_date: Optional[datetime] = None

    @computed_field
    @property
    def progress(self) -> int:
        """Completion percentage implied by the current status."""
        if (
            self.status == RequestStatus.DESIGN_IN_PROGRESS
            and self.request_type == RequestType.DESIGN_AND_INSTALLATION
        ):
            return 25
        if (
            self.status == RequestStatus.INSTALLATION_IN_PROGRESS
            and self.installation_progress is not None
        ):
            return self.installation_progress
        return _STATUS_PROGRESS[self.status]


class RequestCreate(BaseModel):
    """Schema for submitting a new request."""

    request_type: RequestType
    requirements: CampusRequirements
    description: Optional[str] = Field(default=None, max_length=500)
    priority: Priority = Priority.MEDIUM


class RequestSummary(BaseModel):
    """Lightweight request view for lists."""

    id: str
    campus_name: str
    request_type: RequestType
    status: RequestStatus
    priority: Priority
    progress: int
    client_id: str
    assigned_designer_id: Optional[str] = None
    assigned_installer_id: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_request(cls, request: Request) -> "RequestSummary":
        return cls(
            id=request.id,
            campus_name=request.requirements.campus_name,
            request_type=request.request_type,
            status=request.status,
            priority=request.priority,
            progress=request.progress,
            client_id=request.client_id,
            assigned_designer_id=request.assigned_designer_id,
            assigned_installer_id=request.assigned_installer_id,
            created_at=request.created_at,
        )
