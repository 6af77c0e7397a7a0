"""Topology graph model and NetworkTopology YAML codec for EDA fabrics.

The graph owns all state; the codec and fabric generator are pure functions.
"""

from .graph import TopologyGraph, Clipboard
from .model import TopologyState
from .yaml_codec import export_to_yaml, import_from_yaml, validate_network_topology
from .fabric import FabricDefinition, fabric_to_topology
from .errors import TopologyError, ValidationRejected, ImportFailed

__all__ = [
    "TopologyGraph",
    "Clipboard",
    "TopologyState",
    "export_to_yaml",
    "import_from_yaml",
    "validate_network_topology",
    "FabricDefinition",
    "fabric_to_topology",
    "TopologyError",
    "ValidationRejected",
    "ImportFailed",
]
