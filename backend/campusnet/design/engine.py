"""
Design Engine

Runs the synthesis pipeline for one set of requirements. Every step is a
pure function of its inputs; nothing here touches storage.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .aggregator import aggregate_hosts
from .mermaid import to_mermaid
from .sizing import size_hardware
from .subnets import allocate_subnets
from .topology import synthesize_topology
from ..errors import ValidationError
from ..models.design import DesignPlan
from ..models.device import DeviceCatalogEntry
from ..models.requirements import CampusRequirements

logger = logging.getLogger(__name__)


def validate_requirements(requirements: CampusRequirements) -> None:
    """Raise ValidationError listing every problem with the input shape."""
    problems: list[str] = []

    if not requirements.campus_name or not requirements.campus_name.strip():
        problems.append("campus name is required")

    if not requirements.departments:
        problems.append("at least one department is required")

    seen: set[str] = set()
    for department in requirements.departments:
        if not department.name or not department.name.strip():
            problems.append("department name is required")
            continue
        if department.name in seen:
            problems.append(f"duplicate department name '{department.name}'")
        seen.add(department.name)

        for room in department.rooms:
            if not room.name or not room.name.strip():
                problems.append(f"room name is required in department '{department.name}'")
            if (room.wired_hosts or 0) < 0 or (room.wireless_hosts or 0) < 0:
                problems.append(
                    f"negative host count in room '{room.name}' of department '{department.name}'"
                )

    if problems:
        raise ValidationError(problems)


def build_design(
    requirements: CampusRequirements,
    catalog: Sequence[DeviceCatalogEntry],
) -> DesignPlan:
    """
    Aggregate hosts, size hardware, allocate subnets and derive topology.

    Raises ValidationError, CatalogIncompleteError or
    AddressSpaceExhaustedError; on failure nothing is produced.
    """
    validate_requirements(requirements)

    summaries = aggregate_hosts(requirements.departments)
    bill_of_materials = size_hardware(summaries, catalog)
    subnets = allocate_subnets(summaries)
    topology = synthesize_topology(summaries, bill_of_materials, subnets)

    plan = DesignPlan(
        bill_of_materials=bill_of_materials,
        subnet_assignments=subnets,
        topology=topology,
        topology_diagram=to_mermaid(topology),
    )
    logger.info(
        "Built design for %s: %d departments, %d VLANs, estimated cost %.2f",
        requirements.campus_name,
        len(summaries),
        len(subnets),
        plan.total_estimated_cost,
    )
    return plan
