"""Notification models for Campusnet."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class NotificationType(str, Enum):
    ASSIGNMENT = "assignment"
    RESPONSE = "response"
    DESIGN_REVIEW = "design_review"
    DESIGN_APPROVED = "design_approved"
    CLIENT_ACCEPTANCE = "client_acceptance"
    PROJECT_COMPLETED = "project_completed"
    INSTALLATION_STARTED = "installation_started"
    INSTALLATION_PROGRESS = "installation_progress"
    INSTALLATION_COMPLETED = "installation_completed"
    INSTALLATION_VERIFIED = "installation_verified"


class Notification(BaseModel):
    """A message delivered to one user about one request."""

    id: str
    user_id: str
    request_id: str
    type: NotificationType
    title: str
    message: str

    is_read: bool = False
    read_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
