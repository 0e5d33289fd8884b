"""Facility requirement models submitted by clients."""

from typing import Optional

from pydantic import BaseModel, Field, computed_field


class RoomRequirement(BaseModel):
    """Occupancy of a single room."""

    name: str
    wired_hosts: Optional[int] = Field(default=0, ge=0)
    wireless_hosts: Optional[int] = Field(default=0, ge=0)

    model_config = {"frozen": True}


class DepartmentRequirement(BaseModel):
    """A department and the rooms it occupies."""

    name: str
    rooms: list[RoomRequirement] = []


class CampusRequirements(BaseModel):
    """Everything a client submits about the campus."""

    campus_name: str
    departments: list[DepartmentRequirement] = []
    additional_requirements: Optional[str] = None


class DepartmentHostSummary(BaseModel):
    """Per-department host totals derived from room occupancy."""

    department_name: str
    wired_hosts: int = 0
    wireless_hosts: int = 0

    @computed_field
    @property
    def total_hosts(self) -> int:
        return self.wired_hosts + self.wireless_hosts
