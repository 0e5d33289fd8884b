"""VLAN / subnet assignment models."""

import ipaddress

from pydantic import BaseModel, Field, computed_field


MANAGEMENT_DEPARTMENT = "Management"


class SubnetAssignment(BaseModel):
    """
    A VLAN and its CIDR block.

    Only the block itself is stored; mask, network, broadcast and the
    usable-host count are always derived from it.
    """

    vlan_id: int = Field(ge=1, le=4094)
    department_name: str
    cidr_block: str
    required_host_count: int = 0

    @property
    def network(self) -> ipaddress.IPv4Network:
        return ipaddress.IPv4Network(self.cidr_block)

    @computed_field
    @property
    def subnet_mask(self) -> str:
        return str(self.network.netmask)

    @computed_field
    @property
    def network_address(self) -> str:
        return str(self.network.network_address)

    @computed_field
    @property
    def broadcast_address(self) -> str:
        return str(self.network.broadcast_address)

    @computed_field
    @property
    def usable_hosts(self) -> int:
        return max(self.network.num_addresses - 2, 0)
