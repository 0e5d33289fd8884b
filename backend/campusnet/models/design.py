"""Design models for Campusnet."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .device import BillOfMaterialsLine
from .topology import TopologyGraph
from .vlan import SubnetAssignment


class DesignPlan(BaseModel):
    """Output of the synthesis pipeline, before it is bound to a request."""

    bill_of_materials: list[BillOfMaterialsLine] = []
    subnet_assignments: list[SubnetAssignment] = []
    topology: TopologyGraph = TopologyGraph()
    topology_diagram: str = ""

    @property
    def total_estimated_cost(self) -> float:
        return sum(line.total_cost for line in self.bill_of_materials)


class Design(BaseModel):
    """Logical network design owned by exactly one request."""

    id: str
    request_id: str
    bill_of_materials: list[BillOfMaterialsLine] = []
    subnet_assignments: list[SubnetAssignment] = []
    topology: TopologyGraph = TopologyGraph()
    topology_diagram: str = ""
    total_estimated_cost: float = Field(default=0.0, ge=0)

    design_notes: Optional[str] = None
    report_ref: Optional[str] = None

    # Approval
    is_approved: bool = False
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None

    generated_at: datetime = Field(default_factory=datetime.utcnow)

    @classmethod
    def from_plan(cls, design_id: str, request_id: str, plan: DesignPlan) -> "Design":
        return cls(
            id=design_id,
            request_id=request_id,
            bill_of_materials=plan.bill_of_materials,
            subnet_assignments=plan.subnet_assignments,
            topology=plan.topology,
            topology_diagram=plan.topology_diagram,
            total_estimated_cost=plan.total_estimated_cost,
        )
