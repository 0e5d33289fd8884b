"""
Subnet Allocation

Assigns each department a VLAN and a right-sized IPv4 block carved from
10.0.0.0/8, after the fixed management VLAN.
"""

from __future__ import annotations

import ipaddress
import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from ..errors import AddressSpaceExhaustedError
from ..models.requirements import DepartmentHostSummary
from ..models.vlan import MANAGEMENT_DEPARTMENT, SubnetAssignment

logger = logging.getLogger(__name__)

GROWTH_BUFFER = 10
FIRST_DEPARTMENT_VLAN = 10
MAX_VLAN_ID = 4094

MANAGEMENT_VLAN = 1
MANAGEMENT_BLOCK = "10.1.1.0/24"
MANAGEMENT_HOST_COUNT = 2  # router + core switch

# /30 (2 usable) through /20 (4094 usable)
PREFIX_LADDER = tuple(range(30, 19, -1))


def usable_hosts_for_prefix(prefix: int) -> int:
    return 2 ** (32 - prefix) - 2


def prefix_for_hosts(required: int, department_name: str | None = None) -> int:
    """Smallest block on the ladder whose usable hosts cover `required`."""
    for prefix in PREFIX_LADDER:
        if usable_hosts_for_prefix(prefix) >= required:
            return prefix
    raise AddressSpaceExhaustedError(
        f"Department '{department_name}' needs {required} addresses; "
        f"the largest supported block is /{PREFIX_LADDER[-1]} "
        f"({usable_hosts_for_prefix(PREFIX_LADDER[-1])} hosts)",
        department_name,
    )


@dataclass(frozen=True)
class AddressCursor:
    """
    Position of the next candidate block, 10.{octet2}.{octet3}.0.

    Each allocation returns a new cursor; nothing is mutated.
    """

    octet2: int = 10
    octet3: int = 1

    def allocate(
        self, prefix: int, department_name: str | None = None
    ) -> tuple[ipaddress.IPv4Network, AddressCursor]:
        # Blocks wider than a /24 must start on their own boundary and
        # consume every third octet they cover.
        span = 2 ** (24 - prefix) if prefix < 24 else 1

        octet2, octet3 = self.octet2, self.octet3
        while True:
            if octet2 > 254:
                raise AddressSpaceExhaustedError(
                    "IP address space exhausted (10.x.x.x limit)", department_name
                )
            start = -(-octet3 // span) * span
            if start + span - 1 <= 255:
                break
            octet2, octet3 = octet2 + 1, 1

        network = ipaddress.IPv4Network(f"10.{octet2}.{start}.0/{prefix}")

        next2, next3 = octet2, start + span
        if next3 > 254:
            next2, next3 = octet2 + 1, 1

        return network, AddressCursor(next2, next3)


def management_assignment() -> SubnetAssignment:
    return SubnetAssignment(
        vlan_id=MANAGEMENT_VLAN,
        department_name=MANAGEMENT_DEPARTMENT,
        cidr_block=MANAGEMENT_BLOCK,
        required_host_count=MANAGEMENT_HOST_COUNT,
    )


def iter_department_subnets(
    summaries: Sequence[DepartmentHostSummary],
    cursor: AddressCursor | None = None,
) -> Iterator[SubnetAssignment]:
    """Yield one assignment per department, in department order."""
    cursor = cursor or AddressCursor()

    for offset, summary in enumerate(summaries):
        vlan_id = FIRST_DEPARTMENT_VLAN + offset
        if vlan_id > MAX_VLAN_ID:
            raise AddressSpaceExhaustedError(
                f"No VLAN id left for department '{summary.department_name}'",
                summary.department_name,
            )

        required = summary.total_hosts + GROWTH_BUFFER
        prefix = prefix_for_hosts(required, summary.department_name)
        network, cursor = cursor.allocate(prefix, summary.department_name)

        yield SubnetAssignment(
            vlan_id=vlan_id,
            department_name=summary.department_name,
            cidr_block=str(network),
            required_host_count=summary.total_hosts,
        )


def allocate_subnets(summaries: Sequence[DepartmentHostSummary]) -> list[SubnetAssignment]:
    """Management VLAN followed by one VLAN per department."""
    assignments = [management_assignment()]
    assignments.extend(iter_department_subnets(summaries))

    logger.debug("Allocated %d subnets", len(assignments))
    return assignments
