"""
Topology Synthesis

Derives the layered device graph for a design:
router -> core switch -> one distribution switch per department ->
access switch (wired) / access point (wireless).
"""

from __future__ import annotations

import ipaddress
import logging
from collections.abc import Sequence

from ..models.device import BillOfMaterialsLine, DeviceType
from ..models.requirements import DepartmentHostSummary
from ..models.topology import NodeRole, TopologyEdge, TopologyGraph, TopologyNode
from ..models.vlan import MANAGEMENT_DEPARTMENT, SubnetAssignment

logger = logging.getLogger(__name__)

RANGE_UNAVAILABLE = "range unavailable"

ROUTER_ID = "Router"
CORE_SWITCH_ID = "CoreSwitch"


def host_range(assignment: SubnetAssignment) -> str:
    """
    "first - last" usable host of a block.

    Returns an empty string when the block has no usable hosts.
    """
    network = ipaddress.IPv4Network(assignment.cidr_block)
    if network.num_addresses < 3:
        return ""
    first = network.network_address + 1
    last = network.broadcast_address - 1
    return f"{first} - {last}"


def _management_hosts(subnets: Sequence[SubnetAssignment]) -> tuple[str, str] | None:
    for assignment in subnets:
        if assignment.department_name == MANAGEMENT_DEPARTMENT:
            network = ipaddress.IPv4Network(assignment.cidr_block)
            return str(network.network_address + 1), str(network.network_address + 2)
    return None


def synthesize_topology(
    summaries: Sequence[DepartmentHostSummary],
    bill_of_materials: Sequence[BillOfMaterialsLine],
    subnets: Sequence[SubnetAssignment],
) -> TopologyGraph:
    """Build the abstract graph consumed by the report renderer."""
    present = {line.device_type for line in bill_of_materials}
    by_department = {
        a.department_name: a for a in subnets if a.department_name != MANAGEMENT_DEPARTMENT
    }

    router_label = "Core Router"
    core_label = "Core Switch"
    management = _management_hosts(subnets)
    if management:
        router_label += f"\n{management[0]}"
        core_label += f"\n{management[1]}"

    nodes = [
        TopologyNode(id=ROUTER_ID, label=router_label, role=NodeRole.ROUTER),
        TopologyNode(id=CORE_SWITCH_ID, label=core_label, role=NodeRole.CORE_SWITCH),
    ]
    edges = [TopologyEdge(source=ROUTER_ID, target=CORE_SWITCH_ID)]

    access_count = 0
    ap_count = 0

    for index, summary in enumerate(summaries, start=1):
        name = summary.department_name
        dist_id = f"Dist{index}"
        nodes.append(TopologyNode(
            id=dist_id,
            label=f"Distribution Switch {index}\n{name}",
            role=NodeRole.DISTRIBUTION_SWITCH,
            department_name=name,
        ))
        edges.append(TopologyEdge(source=CORE_SWITCH_ID, target=dist_id))

        # A bad subnet only degrades this department's labels
        try:
            hosts = host_range(by_department[name])
        except (KeyError, ValueError) as e:
            logger.warning("Host range unavailable for department %s: %s", name, e)
            hosts = RANGE_UNAVAILABLE

        if summary.wired_hosts > 0 and DeviceType.ACCESS_SWITCH in present:
            access_count += 1
            node_id = f"Access{access_count}"
            nodes.append(TopologyNode(
                id=node_id,
                label=_leaf_label(f"Access Switch {access_count}", f"{name} Wired", hosts),
                role=NodeRole.ACCESS_SWITCH,
                department_name=name,
                host_range=hosts,
            ))
            edges.append(TopologyEdge(source=dist_id, target=node_id))

        if summary.wireless_hosts > 0 and DeviceType.ACCESS_POINT in present:
            ap_count += 1
            node_id = f"AP{ap_count}"
            nodes.append(TopologyNode(
                id=node_id,
                label=_leaf_label(f"Access Point {ap_count}", f"{name} Wireless", hosts),
                role=NodeRole.ACCESS_POINT,
                department_name=name,
                host_range=hosts,
            ))
            edges.append(TopologyEdge(source=dist_id, target=node_id))

    return TopologyGraph(nodes=nodes, edges=edges)


def _leaf_label(title: str, subtitle: str, hosts: str) -> str:
    if hosts:
        return f"{title}\n{subtitle}\n{hosts}"
    return f"{title}\n{subtitle}"
