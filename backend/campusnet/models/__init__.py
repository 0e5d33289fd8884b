# Pydantic models
from .requirements import (
    CampusRequirements,
    DepartmentHostSummary,
    DepartmentRequirement,
    RoomRequirement,
)
from .device import BillOfMaterialsLine, DeviceCatalogEntry, DeviceType
from .vlan import SubnetAssignment
from .topology import TopologyEdge, TopologyGraph, TopologyNode
from .design import Design, DesignPlan
from .request import Request, RequestStatus, RequestType
from .user import Role, User
from .notification import Notification, NotificationType

__all__ = [
    "CampusRequirements",
    "DepartmentHostSummary",
    "DepartmentRequirement",
    "RoomRequirement",
    "BillOfMaterialsLine",
    "DeviceCatalogEntry",
    "DeviceType",
    "SubnetAssignment",
    "TopologyEdge",
    "TopologyGraph",
    "TopologyNode",
    "Design",
    "DesignPlan",
    "Request",
    "RequestStatus",
    "RequestType",
    "Role",
    "User",
    "Notification",
    "NotificationType",
]
