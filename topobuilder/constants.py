from __future__ import annotations

import os


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


API_VERSION = "topologies.eda.nokia.com/v1alpha1"
KIND = "NetworkTopology"

DEFAULT_TOPOLOGY_NAME = "my-topology"
DEFAULT_NAMESPACE = "eda"
DEFAULT_OPERATION = "replaceAll"
OPERATIONS = ("create", "replace", "replaceAll", "delete", "deleteAll")

# Reserved label channel. Never shown to the user as "their" labels.
LABEL_PREFIX = "topobuilder.eda.labs/"
LABEL_POS_X = LABEL_PREFIX + "x"
LABEL_POS_Y = LABEL_PREFIX + "y"
LABEL_EDGE_ID = LABEL_PREFIX + "edgeId"
LABEL_MEMBER_INDEX = LABEL_PREFIX + "memberIndex"
LABEL_SOURCE_HANDLE = LABEL_PREFIX + "sourceHandle"
LABEL_TARGET_HANDLE = LABEL_PREFIX + "targetHandle"
LABEL_NAME_PREFIX = LABEL_PREFIX + "name-prefix"

DEFAULT_INTERFACE = "ethernet-1-1"
DEFAULT_SIM_INTERFACE = "eth1"

NAME_MAX_LENGTH = 63

ESI_LAG_MIN_LEAVES = 2
ESI_LAG_MAX_LEAVES = 4

DEFAULT_NODE_PREFIX = "node"
DEFAULT_SIM_PREFIX = "sim"
DEFAULT_ISL_TEMPLATE = "isl"
DEFAULT_EDGE_TEMPLATE = "edge"

# Import fallbacks when neither labels nor the loaded graph provide a position.
NODE_GRID = (100, 100, 200, 150, 4)      # x0, y0, dx, dy, columns
SIM_NODE_GRID = (400, 50, 180, 140, 3)

# Fabric tiers
FABRIC_SPACING = 200
FABRIC_Y_SUPERSPINE = 100
FABRIC_Y_SPINE = 350
FABRIC_Y_LEAF = 600

UNDO_LIMIT = _env_int("TOPOBUILDER_UNDO_LIMIT", 50)
LOG_MAX_EVENTS = _env_int("TOPOBUILDER_LOG_MAX_EVENTS", 5000)

_DEFAULT_BASE_TEMPLATE = os.path.join(os.path.dirname(os.path.abspath(__file__)), "static", "base_template.yaml")


def base_template_path() -> str:
    return os.environ.get("TOPOBUILDER_BASE_TEMPLATE", "").strip() or _DEFAULT_BASE_TEMPLATE
