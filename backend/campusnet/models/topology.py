"""Abstract topology graph produced for a design."""

from enum import Enum

from pydantic import BaseModel


class NodeRole(str, Enum):
    ROUTER = "router"
    CORE_SWITCH = "core_switch"
    DISTRIBUTION_SWITCH = "distribution_switch"
    ACCESS_SWITCH = "access_switch"
    ACCESS_POINT = "access_point"


class TopologyNode(BaseModel):
    """A device in the designed network."""

    id: str
    label: str
    role: NodeRole
    department_name: str | None = None
    host_range: str | None = None  # "first - last", "" when no usable hosts


class TopologyEdge(BaseModel):
    """Directed uplink-to-downlink edge."""

    source: str
    target: str


class TopologyGraph(BaseModel):
    """Layered DAG: router -> core switch -> distribution -> access."""

    nodes: list[TopologyNode] = []
    edges: list[TopologyEdge] = []

    def children(self, node_id: str) -> list[TopologyNode]:
        targets = [e.target for e in self.edges if e.source == node_id]
        return [n for n in self.nodes if n.id in targets]
