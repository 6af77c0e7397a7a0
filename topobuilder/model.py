from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set, Union

from .constants import DEFAULT_NAMESPACE, DEFAULT_OPERATION, DEFAULT_TOPOLOGY_NAME
from .names import port_number


@dataclass
class Position:
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def of(cls, value: Any) -> "Position":
        if isinstance(value, Position):
            return Position(value.x, value.y)
        if value is None:
            return Position()
        if isinstance(value, dict):
            return Position(float(value.get("x", 0.0)), float(value.get("y", 0.0)))
        x, y = value
        return Position(float(x), float(y))

    def shifted(self, dx: float, dy: float) -> "Position":
        return Position(self.x + dx, self.y + dy)


@dataclass
class Node:
    id: str
    name: str
    position: Position = field(default_factory=Position)
    template: Optional[str] = None
    # Only exported when no template is set.
    platform: Optional[str] = None
    node_profile: Optional[str] = None
    serial_number: Optional[str] = None
    labels: Dict[str, str] = field(default_factory=dict)


@dataclass
class SimNode:
    id: str
    name: str
    position: Position = field(default_factory=Position)
    template: Optional[str] = None
    type: Optional[str] = None  # Linux|TestMan|SrlTest
    image: Optional[str] = None
    labels: Dict[str, str] = field(default_factory=dict)


@dataclass
class MemberLink:
    name: str
    source_interface: str
    target_interface: str
    template: Optional[str] = None
    labels: Dict[str, str] = field(default_factory=dict)


@dataclass
class LagGroup:
    id: str
    name: str
    member_indices: List[int] = field(default_factory=list)  # >= 2, strictly increasing
    template: Optional[str] = None
    labels: Dict[str, str] = field(default_factory=dict)


@dataclass
class EsiLeaf:
    node_id: str
    node_name: str


# ───────────────────────────── Edge kinds ─────────────────────────────
# An edge is exactly one of these; LAG groups and ESI leaves can never coexist.

@dataclass
class NormalKind:
    tag = "normal"


@dataclass
class LagKind:
    groups: List[LagGroup] = field(default_factory=list)
    tag = "lag"


@dataclass
class EsiLagKind:
    leaves: List[EsiLeaf] = field(default_factory=list)
    name: Optional[str] = None
    tag = "esilag"


EdgeKind = Union[NormalKind, LagKind, EsiLagKind]


@dataclass
class Edge:
    id: str
    source: str
    target: str
    source_name: str
    target_name: str
    member_links: List[MemberLink] = field(default_factory=list)
    kind: EdgeKind = field(default_factory=NormalKind)
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None

    @property
    def is_esi_lag(self) -> bool:
        return isinstance(self.kind, EsiLagKind)

    @property
    def lag_groups(self) -> List[LagGroup]:
        if isinstance(self.kind, LagKind):
            return self.kind.groups
        return []

    @property
    def esi_leaves(self) -> List[EsiLeaf]:
        if isinstance(self.kind, EsiLagKind):
            return self.kind.leaves
        return []

    def lag(self, lag_id: str) -> Optional[LagGroup]:
        for group in self.lag_groups:
            if group.id == lag_id:
                return group
        return None

    def indices_in_lags(self) -> Set[int]:
        out: Set[int] = set()
        for group in self.lag_groups:
            out.update(group.member_indices)
        return out

    def node_ids(self) -> Set[str]:
        ids = {self.source, self.target}
        ids.update(leaf.node_id for leaf in self.esi_leaves)
        return ids

    def touches(self, node_id: str) -> bool:
        return node_id in self.node_ids()

    def interfaces_for(self, node_id: str) -> List[str]:
        """Every interface this edge occupies on ``node_id``."""
        out: List[str] = []
        if self.is_esi_lag:
            for i, member in enumerate(self.member_links):
                if self.source == node_id:
                    out.append(member.source_interface)
                if i < len(self.esi_leaves) and self.esi_leaves[i].node_id == node_id:
                    out.append(member.target_interface)
            return out
        if self.source == node_id:
            out.extend(m.source_interface for m in self.member_links)
        if self.target == node_id:
            out.extend(m.target_interface for m in self.member_links)
        return out

    def normalize_kind(self) -> None:
        """Collapse an empty LAG set back to a plain edge."""
        if isinstance(self.kind, LagKind) and not self.kind.groups:
            self.kind = NormalKind()


@dataclass
class Annotation:
    id: str
    kind: str  # text|shape
    position: Position = field(default_factory=Position)
    text: str = ""
    shape: Optional[str] = None  # rectangle|circle|line ...
    width: Optional[float] = None
    height: Optional[float] = None
    style: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Simulation:
    sim_node_templates: List[Dict[str, Any]] = field(default_factory=list)
    sim_nodes: List[SimNode] = field(default_factory=list)
    # Opaque to the editor; carried verbatim.
    topology: Optional[List[Any]] = None

    def has_content(self) -> bool:
        return bool(self.sim_node_templates or self.sim_nodes or self.topology)


@dataclass
class Selection:
    node_ids: List[str] = field(default_factory=list)
    edge_ids: List[str] = field(default_factory=list)
    sim_node_ids: List[str] = field(default_factory=list)
    member_link_indices: List[int] = field(default_factory=list)
    lag_id: Optional[str] = None
    annotation_ids: List[str] = field(default_factory=list)

    def clear(self) -> None:
        self.node_ids.clear()
        self.edge_ids.clear()
        self.sim_node_ids.clear()
        self.member_link_indices.clear()
        self.lag_id = None
        self.annotation_ids.clear()

    def is_empty(self) -> bool:
        return not (self.node_ids or self.edge_ids or self.sim_node_ids or self.annotation_ids)


@dataclass
class TopologyState:
    """Everything undo/redo covers, as one unit."""

    name: str = DEFAULT_TOPOLOGY_NAME
    namespace: str = DEFAULT_NAMESPACE
    operation: str = DEFAULT_OPERATION
    # Templates are kept as the raw mappings they were written as, so unknown
    # keys and key order survive a round trip.
    node_templates: List[Dict[str, Any]] = field(default_factory=list)
    link_templates: List[Dict[str, Any]] = field(default_factory=list)
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    simulation: Simulation = field(default_factory=Simulation)
    annotations: List[Annotation] = field(default_factory=list)

    # ───────────────────────────── Lookups ─────────────────────────────

    def node(self, node_id: str) -> Optional[Node]:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def node_named(self, name: str) -> Optional[Node]:
        for n in self.nodes:
            if n.name == name:
                return n
        return None

    @property
    def sim_nodes(self) -> List[SimNode]:
        return self.simulation.sim_nodes

    def sim_node(self, sim_id: str) -> Optional[SimNode]:
        for n in self.simulation.sim_nodes:
            if n.id == sim_id:
                return n
        return None

    def sim_node_named(self, name: str) -> Optional[SimNode]:
        for n in self.simulation.sim_nodes:
            if n.name == name:
                return n
        return None

    def endpoint(self, entity_id: str) -> Optional[Union[Node, SimNode]]:
        return self.node(entity_id) or self.sim_node(entity_id)

    def is_sim(self, entity_id: str) -> bool:
        return self.sim_node(entity_id) is not None

    def edge(self, edge_id: str) -> Optional[Edge]:
        for e in self.edges:
            if e.id == edge_id:
                return e
        return None

    def annotation(self, annotation_id: str) -> Optional[Annotation]:
        for a in self.annotations:
            if a.id == annotation_id:
                return a
        return None

    def all_names(self, exclude_id: Optional[str] = None) -> Set[str]:
        """Node and sim-node names share one namespace."""
        names = {n.name for n in self.nodes if n.id != exclude_id}
        names.update(n.name for n in self.simulation.sim_nodes if n.id != exclude_id)
        return names

    def edges_touching(self, node_id: str) -> List[Edge]:
        return [e for e in self.edges if e.touches(node_id)]

    def next_port(self, node_id: str, edges: Optional[Iterable[Edge]] = None) -> int:
        best = 0
        for e in self.edges if edges is None else edges:
            for iface in e.interfaces_for(node_id):
                best = max(best, port_number(iface))
        return best + 1

    def node_template(self, name: Optional[str]) -> Optional[Dict[str, Any]]:
        if not name:
            return None
        for t in self.node_templates:
            if t.get("name") == name:
                return t
        return None
