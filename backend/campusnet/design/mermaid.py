"""Mermaid flowchart text for a topology graph."""

from __future__ import annotations

from ..models.topology import NodeRole, TopologyGraph

_CLASS_DEFS = {
    "core": "fill:#ff6b6b,stroke:#333,stroke-width:2px,color:#fff",
    "distribution": "fill:#4ecdc4,stroke:#333,stroke-width:2px,color:#fff",
    "access": "fill:#45b7d1,stroke:#333,stroke-width:2px,color:#fff",
    "wireless": "fill:#96ceb4,stroke:#333,stroke-width:2px,color:#fff",
}

_ROLE_CLASS = {
    NodeRole.ROUTER: "core",
    NodeRole.CORE_SWITCH: "core",
    NodeRole.DISTRIBUTION_SWITCH: "distribution",
    NodeRole.ACCESS_SWITCH: "access",
    NodeRole.ACCESS_POINT: "wireless",
}


def _escape(label: str) -> str:
    return label.replace('"', "'").replace("\n", "<br/>")


def to_mermaid(graph: TopologyGraph) -> str:
    lines = ["graph TB"]

    for node in graph.nodes:
        lines.append(f'    {node.id}["{_escape(node.label)}"]')
    for edge in graph.edges:
        lines.append(f"    {edge.source} --> {edge.target}")

    lines.append("")
    for name, style in _CLASS_DEFS.items():
        lines.append(f"    classDef {name} {style}")

    members: dict[str, list[str]] = {}
    for node in graph.nodes:
        members.setdefault(_ROLE_CLASS[node.role], []).append(node.id)
    for name in _CLASS_DEFS:
        if members.get(name):
            lines.append(f"    class {','.join(members[name])} {name}")

    return "\n".join(lines) + "\n"
