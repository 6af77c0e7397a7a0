"""Leaf/spine/superspine fabric expansion.

A fabric declaration is three tier counts plus a node template per tier:

    leafs:       {count: 4, template: leaf}
    spines:      {count: 2, template: spine}
    superspines: {count: 2, template: superspine}   # optional

Adjacent tiers are fully meshed (leaf x spine, spine x superspine); nothing
else is connected. Each link gets one member on the next free port of either
side.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .constants import (
    DEFAULT_ISL_TEMPLATE,
    FABRIC_SPACING,
    FABRIC_Y_LEAF,
    FABRIC_Y_SPINE,
    FABRIC_Y_SUPERSPINE,
)
from .errors import FabricError
from .labels import name_prefix
from .model import Edge, MemberLink, Node, Position, TopologyState
from .names import format_interface, member_link_name, pair_key


class FabricTier(BaseModel):
    model_config = ConfigDict(extra="forbid")

    count: int = Field(..., ge=0, description="Number of nodes in the tier")
    template: Optional[str] = Field(None, description="Node template for every node in the tier")


class FabricDefinition(BaseModel):
    model_config = ConfigDict(extra="forbid")

    leafs: FabricTier
    spines: FabricTier
    superspines: Optional[FabricTier] = None

    @model_validator(mode="after")
    def _needs_leafs_and_spines(self) -> "FabricDefinition":
        if self.leafs.count < 1:
            raise ValueError("leafs.count must be at least 1")
        if self.spines.count < 1:
            raise ValueError("spines.count must be at least 1")
        return self


@dataclass
class FabricResult:
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    max_node_id: int = 0
    max_edge_id: int = 0


def parse_fabric(data: Any) -> FabricDefinition:
    if isinstance(data, FabricDefinition):
        return data
    try:
        return FabricDefinition.model_validate(data)
    except ValidationError as exc:
        err = exc.errors()[0]
        loc = ".".join(str(p) for p in err.get("loc", ()))
        raise FabricError(f"Invalid fabric{' at ' + loc if loc else ''}: {err.get('msg', 'invalid value')}") from exc


def parse_fabric_yaml(text: str) -> FabricDefinition:
    try:
        data = yaml.safe_load(text or "")
    except yaml.YAMLError as exc:
        raise FabricError(f"YAML syntax error: {exc}") from exc
    if not isinstance(data, dict):
        raise FabricError("Invalid fabric: must be a mapping")
    return parse_fabric(data)


def _tier_prefix(tier: FabricTier, node_templates: List[Dict[str, Any]], fallback: str) -> str:
    for t in node_templates:
        if t.get("name") == tier.template:
            return name_prefix(t.get("annotations")) or fallback
    return fallback


def _build_tier(tier: FabricTier, prefix: str, y: float, first_id: int) -> List[Node]:
    start_x = -((tier.count - 1) * FABRIC_SPACING) / 2
    return [
        Node(
            id=f"node-{first_id + i}",
            name=f"{prefix}{i + 1}",
            position=Position(float(start_x + i * FABRIC_SPACING), float(y)),
            template=tier.template or None,
        )
        for i in range(tier.count)
    ]


def _isl_template(link_templates: List[Dict[str, Any]]) -> str:
    for t in link_templates:
        if t.get("type") == "interSwitch" and t.get("name"):
            return t["name"]
    return DEFAULT_ISL_TEMPLATE


def fabric_to_topology(
    fabric: FabricDefinition,
    node_templates: List[Dict[str, Any]],
    link_templates: List[Dict[str, Any]],
) -> FabricResult:
    """Expand ``fabric`` into fresh nodes and edges, ids numbered from 1."""
    fabric = parse_fabric(fabric)
    next_id = 1

    leafs = _build_tier(fabric.leafs, _tier_prefix(fabric.leafs, node_templates, "leaf"), FABRIC_Y_LEAF, next_id)
    next_id += len(leafs)
    spines = _build_tier(fabric.spines, _tier_prefix(fabric.spines, node_templates, "spine"), FABRIC_Y_SPINE, next_id)
    next_id += len(spines)
    supers: List[Node] = []
    if fabric.superspines is not None and fabric.superspines.count > 0:
        supers = _build_tier(
            fabric.superspines,
            _tier_prefix(fabric.superspines, node_templates, "superspine"),
            FABRIC_Y_SUPERSPINE,
            next_id,
        )
        next_id += len(supers)

    # name clash between tiers (two tiers sharing a prefix) would break uniqueness
    names = [n.name for n in leafs + spines + supers]
    if len(set(names)) != len(names):
        raise FabricError("Fabric tiers produce duplicate node names; give each tier its own name prefix")

    template = _isl_template(link_templates)
    scratch = TopologyState(nodes=leafs + spines + supers)
    pair_counts: Dict[tuple, int] = {}

    def link(source: Node, target: Node) -> None:
        key = pair_key(source.name, target.name)
        pair_counts[key] = pair_counts.get(key, 0) + 1
        edge_id = f"edge-{len(scratch.edges) + 1}"
        scratch.edges.append(Edge(
            id=edge_id,
            source=source.id,
            target=target.id,
            source_name=source.name,
            target_name=target.name,
            member_links=[MemberLink(
                name=member_link_name(target.name, source.name, pair_counts[key]),
                source_interface=format_interface(scratch.next_port(source.id)),
                target_interface=format_interface(scratch.next_port(target.id)),
                template=template,
            )],
        ))

    for leaf in leafs:
        for spine in spines:
            link(leaf, spine)
    for spine in spines:
        for top in supers:
            link(spine, top)

    return FabricResult(
        nodes=scratch.nodes,
        edges=scratch.edges,
        max_node_id=next_id - 1,
        max_edge_id=len(scratch.edges),
    )
