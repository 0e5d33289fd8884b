"""
Design Report Rendering

Writes a Markdown report (BOM, IP plan, Mermaid topology) for a design and
returns the public reference stored on the design.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path

from .models.design import Design
from .models.request import Request
from .models.topology import NodeRole
from .models.user import User

logger = logging.getLogger(__name__)


class ReportRenderer(ABC):
    """Turns a design into a document and returns its reference."""

    @abstractmethod
    def render(self, request: Request, design: Design, designer: User | None) -> str:
        """Render the report; raise on failure."""


def report_filename(request: Request) -> str:
    campus = re.sub(r"\s+", "-", request.requirements.campus_name.strip()) or "Unknown"
    return f"DesignReport-{campus}-{request.id}.md"


def render_markdown(request: Request, design: Design, designer: User | None) -> str:
    lines = [
        "# Network Design Report",
        "",
        f"- **Request ID:** {request.id}",
        f"- **Campus:** {request.requirements.campus_name}",
        f"- **Designed by:** {designer.name if designer else 'Unknown'}",
        f"- **Estimated Cost:** ${design.total_estimated_cost:,.2f}",
        "",
        "## Bill of Materials",
        "",
        "| Device | Type | Qty | Unit Price | Total |",
        "|---|---|---:|---:|---:|",
    ]
    for line in design.bill_of_materials:
        lines.append(
            f"| {line.model_name or line.device_id} | {line.device_type.value} | {line.quantity} "
            f"| ${line.unit_price:,.2f} | ${line.total_cost:,.2f} |"
        )

    lines += [
        "",
        "## IP Plan",
        "",
        "| VLAN | Department | Subnet | Mask | Usable Hosts | Required Hosts |",
        "|---:|---|---|---|---:|---:|",
    ]
    for assignment in design.subnet_assignments:
        lines.append(
            f"| {assignment.vlan_id} | {assignment.department_name} | {assignment.cidr_block} "
            f"| {assignment.subnet_mask} | {assignment.usable_hosts} | {assignment.required_host_count} |"
        )

    lines += ["", "## Department Devices", ""]
    for dist in design.topology.nodes:
        if dist.role != NodeRole.DISTRIBUTION_SWITCH:
            continue
        lines.append(f"### {dist.department_name} ({dist.id})")
        lines.append("")
        leaves = design.topology.children(dist.id)
        if not leaves:
            lines.append("- No access devices")
        for leaf in leaves:
            lines.append(f"- {leaf.id}: {leaf.host_range or 'no usable hosts'}")
        lines.append("")

    lines += ["## Topology", "", "```mermaid", design.topology_diagram.rstrip(), "```", ""]
    return "\n".join(lines)


class MarkdownReportRenderer(ReportRenderer):
    """Writes reports into `output_dir`, served under `public_prefix`."""

    def __init__(self, output_dir: Path, public_prefix: str = "/reports"):
        self.output_dir = Path(output_dir)
        self.public_prefix = public_prefix.rstrip("/")

    def render(self, request: Request, design: Design, designer: User | None) -> str:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        filename = report_filename(request)
        (self.output_dir / filename).write_text(
            render_markdown(request, design, designer), encoding="utf-8"
        )
        logger.info("Rendered design report %s", filename)
        return f"{self.public_prefix}/{filename}"
