"""Design synthesis pipeline."""

from .aggregator import aggregate_hosts
from .engine import build_design, validate_requirements
from .mermaid import to_mermaid
from .sizing import size_hardware
from .subnets import AddressCursor, allocate_subnets
from .topology import host_range, synthesize_topology

__all__ = [
    "aggregate_hosts",
    "build_design",
    "validate_requirements",
    "to_mermaid",
    "size_hardware",
    "AddressCursor",
    "allocate_subnets",
    "host_range",
    "synthesize_topology",
]
