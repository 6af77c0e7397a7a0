"""NetworkTopology YAML codec.

``export_to_yaml`` and ``import_from_yaml`` are pure: they read a state and
return text, or read text plus the currently loaded state and return a fresh
result. Nothing here touches a live graph.

Export layout (per edge):

* standalone member link  -> one ``links[]`` entry, one endpoint
* LAG group               -> one entry, one endpoint per member
* ESI-LAG                 -> one entry, one endpoint per leaf

Each entry carries the owning edge id, member index and attachment handles as
reserved labels so a re-import lands on the same edges.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple
import copy

import yaml
from pydantic import ValidationError

from . import schema
from .constants import (
    API_VERSION,
    DEFAULT_INTERFACE,
    DEFAULT_NAMESPACE,
    DEFAULT_OPERATION,
    DEFAULT_SIM_INTERFACE,
    DEFAULT_TOPOLOGY_NAME,
    ESI_LAG_MAX_LEAVES,
    KIND,
    NODE_GRID,
    SIM_NODE_GRID,
)
from .errors import ImportFailed
from .ids import IdAllocator
from .labels import (
    extract_edge_id,
    extract_handles,
    extract_member_index,
    extract_position,
    filter_user_labels,
    link_labels,
    merge_labels,
    position_labels,
)
from .model import (
    Edge,
    EsiLagKind,
    EsiLeaf,
    LagGroup,
    LagKind,
    MemberLink,
    Node,
    Position,
    SimNode,
    Simulation,
    TopologyState,
)
from .names import esi_lag_name, lag_id, pair_key


class _NoAliasDumper(yaml.SafeDumper):
    def ignore_aliases(self, data):
        return True

    def choose_scalar_style(self):
        # plain where possible, otherwise double quotes
        style = super().choose_scalar_style()
        if style == "'":
            return '"'
        return style


def dump_yaml(doc: Any) -> str:
    return yaml.dump(
        doc,
        Dumper=_NoAliasDumper,
        default_flow_style=False,
        sort_keys=False,
        indent=2,
        width=float("inf"),
        allow_unicode=True,
    )


# ───────────────────────────── Export ─────────────────────────────

def export_to_yaml(state: TopologyState) -> str:
    return dump_yaml(build_document(state))


def build_document(state: TopologyState) -> Dict[str, Any]:
    spec: Dict[str, Any] = {
        "operation": state.operation,
        "nodeTemplates": copy.deepcopy(state.node_templates),
        "linkTemplates": copy.deepcopy(state.link_templates),
        "nodes": [_export_node(n) for n in state.nodes],
        "links": _export_links(state),
    }
    if state.simulation.has_content():
        spec["simulation"] = _export_simulation(state.simulation)
    return {
        "apiVersion": API_VERSION,
        "kind": KIND,
        "metadata": {"name": state.name, "namespace": state.namespace},
        "spec": spec,
    }


def _export_node(node: Node) -> Dict[str, Any]:
    entry = schema.TopoNode(
        name=node.name,
        template=node.template or None,
        platform=None if node.template else (node.platform or None),
        nodeProfile=None if node.template else (node.node_profile or None),
        serialNumber=node.serial_number or None,
        labels=merge_labels(node.labels, position_labels(node.position.x, node.position.y)),
    )
    return entry.model_dump(exclude_none=True)


def _export_simulation(sim: Simulation) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "simNodeTemplates": copy.deepcopy(sim.sim_node_templates),
        "simNodes": [
            schema.SimNodeSpec(
                name=s.name,
                template=s.template or None,
                type=s.type or None,
                image=s.image or None,
                labels=merge_labels(s.labels, position_labels(s.position.x, s.position.y)),
            ).model_dump(exclude_none=True)
            for s in sim.sim_nodes
        ],
    }
    if sim.topology is not None:
        out["topology"] = copy.deepcopy(sim.topology)
    return out


def _member_endpoint(edge: Edge, member: MemberLink, src_sim: bool, tgt_sim: bool) -> schema.Endpoint:
    # `local` is always the topology node; the sim node sits under `sim`.
    if src_sim:
        return schema.Endpoint(
            local=schema.EndpointSide(node=edge.target_name, interface=member.target_interface or DEFAULT_INTERFACE),
            sim=schema.EndpointSim(simNode=edge.source_name, simNodeInterface=member.source_interface or DEFAULT_SIM_INTERFACE),
        )
    if tgt_sim:
        return schema.Endpoint(
            local=schema.EndpointSide(node=edge.source_name, interface=member.source_interface or DEFAULT_INTERFACE),
            sim=schema.EndpointSim(simNode=edge.target_name, simNodeInterface=member.target_interface or DEFAULT_SIM_INTERFACE),
        )
    return schema.Endpoint(
        local=schema.EndpointSide(node=edge.source_name, interface=member.source_interface or DEFAULT_INTERFACE),
        remote=schema.EndpointSide(node=edge.target_name, interface=member.target_interface or DEFAULT_INTERFACE),
    )


def _edge_links(edge: Edge, src_sim: bool, tgt_sim: bool) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    group_of = {i: g for g in edge.lag_groups for i in g.member_indices}
    emitted: Set[str] = set()
    for i, member in enumerate(edge.member_links):
        group = group_of.get(i)
        if group is None:
            link = schema.Link(
                name=member.name,
                template=member.template or None,
                labels=merge_labels(member.labels, link_labels(edge.id, i, edge.source_handle, edge.target_handle)),
                endpoints=[_member_endpoint(edge, member, src_sim, tgt_sim)],
            )
        else:
            if group.id in emitted:
                continue
            emitted.add(group.id)
            members = [edge.member_links[j] for j in group.member_indices if 0 <= j < len(edge.member_links)]
            link = schema.Link(
                name=group.name,
                template=group.template or None,
                labels=merge_labels(
                    group.labels,
                    link_labels(edge.id, group.member_indices[0], edge.source_handle, edge.target_handle),
                ),
                endpoints=[_member_endpoint(edge, m, src_sim, tgt_sim) for m in members],
            )
        out.append(link.model_dump(exclude_none=True))
    return out


def _esi_link(state: TopologyState, edge: Edge, counter: int) -> Tuple[Optional[Dict[str, Any]], int]:
    leaves = edge.esi_leaves
    if not leaves:
        return None, counter
    name = edge.kind.name if isinstance(edge.kind, EsiLagKind) else None
    if not name:
        name = esi_lag_name(edge.source_name, counter)
        counter += 1
    common_sim = state.is_sim(edge.source)
    members = edge.member_links
    endpoints = []
    for i, leaf in enumerate(leaves):
        member = members[i] if i < len(members) else None
        src_if = member.source_interface if member else None
        tgt_if = member.target_interface if member else None
        if common_sim:
            endpoints.append(schema.Endpoint(
                local=schema.EndpointSide(node=leaf.node_name, interface=tgt_if or DEFAULT_INTERFACE),
                sim=schema.EndpointSim(simNode=edge.source_name, simNodeInterface=src_if or f"eth{i + 1}"),
            ))
        else:
            endpoints.append(schema.Endpoint(
                local=schema.EndpointSide(node=edge.source_name, interface=src_if or DEFAULT_INTERFACE),
                remote=schema.EndpointSide(node=leaf.node_name, interface=tgt_if or DEFAULT_INTERFACE),
            ))
    first = members[0] if members else None
    link = schema.Link(
        name=name,
        template=(first.template if first else None) or None,
        labels=merge_labels(first.labels if first else None,
                            link_labels(edge.id, 0, edge.source_handle, edge.target_handle)),
        endpoints=endpoints,
    )
    return link.model_dump(exclude_none=True), counter


def _export_links(state: TopologyState) -> List[Dict[str, Any]]:
    isl: List[Dict[str, Any]] = []
    sim_links: List[Dict[str, Any]] = []
    esi: List[Dict[str, Any]] = []
    counter = 1
    for edge in state.edges:
        if edge.is_esi_lag:
            link, counter = _esi_link(state, edge, counter)
            if link is not None:
                esi.append(link)
            continue
        src_sim = state.is_sim(edge.source)
        tgt_sim = state.is_sim(edge.target)
        bucket = sim_links if (src_sim or tgt_sim) else isl
        bucket.extend(_edge_links(edge, src_sim, tgt_sim))
    return isl + sim_links + esi


# ───────────────────────────── Import ─────────────────────────────

@dataclass
class ImportResult:
    name: str = DEFAULT_TOPOLOGY_NAME
    namespace: str = DEFAULT_NAMESPACE
    operation: str = DEFAULT_OPERATION
    node_templates: List[Dict[str, Any]] = field(default_factory=list)
    link_templates: List[Dict[str, Any]] = field(default_factory=list)
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    simulation: Simulation = field(default_factory=Simulation)
    # Links that referenced unknown nodes and were skipped.
    warnings: List[str] = field(default_factory=list)

    def to_state(self, annotations=None) -> TopologyState:
        return TopologyState(
            name=self.name,
            namespace=self.namespace,
            operation=self.operation,
            node_templates=self.node_templates,
            link_templates=self.link_templates,
            nodes=self.nodes,
            edges=self.edges,
            simulation=self.simulation,
            annotations=list(annotations or []),
        )


@dataclass
class _ParsedEndpoint:
    source: str
    target: Optional[str]
    source_interface: str
    target_interface: Optional[str]

    def oriented(self, source_name: str) -> "_ParsedEndpoint":
        if self.source != source_name and self.target == source_name:
            return _ParsedEndpoint(self.target, self.source, self.target_interface or DEFAULT_INTERFACE, self.source_interface)
        return self


@dataclass
class _PendingEdge:
    key: Any
    hint: Optional[str]
    edge_id: Optional[str] = None


@dataclass
class _EdgeGroup(_PendingEdge):
    source_name: str = ""
    target_name: str = ""
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None
    entries: List[Tuple[Tuple[int, int, int], schema.Link, List[_ParsedEndpoint]]] = field(default_factory=list)


@dataclass
class _EsiSpec(_PendingEdge):
    link: Optional[schema.Link] = None
    common: str = ""
    leaves: List[Tuple[str, str, str]] = field(default_factory=list)  # leaf name, common iface, leaf iface
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None


def parse_document(text: str) -> Tuple[Dict[str, Any], schema.NetworkTopology]:
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ImportFailed(f"YAML syntax error: {exc}") from exc
    if not isinstance(raw, dict):
        raise ImportFailed("Invalid document: must be a mapping")
    try:
        doc = schema.NetworkTopology.model_validate(raw)
    except ValidationError as exc:
        err = exc.errors()[0]
        loc = "/".join(str(p) for p in err.get("loc", ()))
        raise ImportFailed(f"Schema error at {loc or '/'}: {err.get('msg', 'invalid value')}") from exc
    return raw, doc


def _parse_endpoint(ep: schema.Endpoint) -> Optional[_ParsedEndpoint]:
    if ep.local is None or not ep.local.node:
        return None
    local_if = ep.local.interface or DEFAULT_INTERFACE
    if ep.remote is not None and ep.remote.node:
        return _ParsedEndpoint(ep.local.node, ep.remote.node, local_if, ep.remote.interface or DEFAULT_INTERFACE)
    if ep.sim is not None and ep.sim.sim_name():
        # the sim node becomes the edge source
        return _ParsedEndpoint(ep.sim.sim_name(), ep.local.node, ep.sim.sim_interface() or DEFAULT_SIM_INTERFACE, local_if)
    return _ParsedEndpoint(ep.local.node, None, local_if, None)


def _esi_shape(parsed: List[_ParsedEndpoint]) -> Optional[Tuple[str, List[Tuple[str, str, str]]]]:
    """(common name, leaves) when the endpoints describe a multi-homed link."""
    if len(parsed) < 2:
        return None
    targets = {p.target for p in parsed if p.target}
    if len(targets) >= 2:
        common = parsed[0].source
        return common, [(p.target, p.source_interface, p.target_interface or DEFAULT_INTERFACE)
                        for p in parsed if p.target]
    if not targets and len(parsed) >= 3:
        # local-only spelling: first endpoint is the common node, the rest are leaves
        common = parsed[0]
        others = [p for p in parsed[1:] if p.source != common.source]
        if len({p.source for p in others}) < 2:
            return None
        return common.source, [(p.source, common.source_interface, p.source_interface) for p in others]
    return None


def _grid(index: int, grid: Tuple[int, int, int, int, int]) -> Position:
    x0, y0, dx, dy, cols = grid
    return Position(float(x0 + (index % cols) * dx), float(y0 + (index // cols) * dy))


def _raw_list(raw: Any, *path: str) -> List[Dict[str, Any]]:
    cur = raw
    for key in path:
        if not isinstance(cur, dict):
            return []
        cur = cur.get(key)
    if not isinstance(cur, list):
        return []
    return [copy.deepcopy(item) for item in cur if isinstance(item, dict)]


def empty_result() -> ImportResult:
    return ImportResult()


def import_from_yaml(
    text: str,
    current: Optional[TopologyState] = None,
    allocator: Optional[IdAllocator] = None,
) -> ImportResult:
    """Parse ``text`` into a fresh graph, reusing ids from ``current`` by name.

    ``allocator`` is advanced past every id the result uses; callers that may
    discard the result should pass a copy. Raises ImportFailed on malformed
    YAML or schema violations.
    """
    if not text or not text.strip():
        return empty_result()
    current = current or TopologyState()
    allocator = allocator or IdAllocator()

    raw, doc = parse_document(text)
    spec = doc.spec or schema.TopologySpec()
    meta = doc.metadata or schema.Metadata()
    result = ImportResult(
        name=meta.name or DEFAULT_TOPOLOGY_NAME,
        namespace=meta.namespace or DEFAULT_NAMESPACE,
        operation=spec.operation or DEFAULT_OPERATION,
        node_templates=_raw_list(raw, "spec", "nodeTemplates"),
        link_templates=_raw_list(raw, "spec", "linkTemplates"),
    )

    sim_spec = spec.simulation or schema.Simulation()
    seen: Set[str] = set()
    for name in [n.name for n in spec.nodes or []] + [s.name for s in sim_spec.simNodes or []]:
        if name in seen:
            raise ImportFailed(f'Duplicate node name "{name}"')
        seen.add(name)

    name_to_id: Dict[str, str] = {}

    for index, entry in enumerate(spec.nodes or []):
        existing = current.node_named(entry.name)
        node_id = existing.id if existing else allocator.next("node")
        name_to_id[entry.name] = node_id
        pos = extract_position(entry.labels)
        if pos is not None:
            position = Position(*pos)
        elif existing is not None:
            position = Position.of(existing.position)
        else:
            position = _grid(index, NODE_GRID)
        result.nodes.append(Node(
            id=node_id,
            name=entry.name,
            position=position,
            template=entry.template or None,
            platform=entry.platform or None,
            node_profile=entry.nodeProfile or None,
            serial_number=entry.serialNumber or None,
            labels=filter_user_labels(entry.labels),
        ))

    sim_nodes: List[SimNode] = []
    for index, entry in enumerate(sim_spec.simNodes or []):
        existing_sim = current.sim_node_named(entry.name)
        sim_id = existing_sim.id if existing_sim else allocator.next("sim")
        name_to_id[entry.name] = sim_id
        pos = extract_position(entry.labels)
        if pos is not None:
            position = Position(*pos)
        elif existing_sim is not None:
            position = Position.of(existing_sim.position)
        else:
            position = _grid(index, SIM_NODE_GRID)
        sim_nodes.append(SimNode(
            id=sim_id,
            name=entry.name,
            position=position,
            template=entry.template or None,
            type=entry.type or None,
            image=entry.image or None,
            labels=filter_user_labels(entry.labels),
        ))
    result.simulation = Simulation(
        sim_node_templates=_raw_list(raw, "spec", "simulation", "simNodeTemplates"),
        sim_nodes=sim_nodes,
        topology=copy.deepcopy(sim_spec.topology) if sim_spec.topology is not None else None,
    )

    pending = _group_links(spec.links or [], name_to_id, result.warnings)
    _assign_edge_ids(pending, current, allocator)
    for item in pending:
        if isinstance(item, _EdgeGroup):
            result.edges.append(_build_edge(item, name_to_id))
        else:
            result.edges.append(_build_esi_edge(item, name_to_id))
    return result


def _group_links(links: List[schema.Link], name_to_id: Dict[str, str], warnings: List[str]) -> List[_PendingEdge]:
    groups: Dict[Any, _EdgeGroup] = {}
    ordered: List[_PendingEdge] = []
    esi: List[_PendingEdge] = []

    for seq, link in enumerate(links):
        if not link.endpoints:
            continue
        label = link.name or f"links[{seq}]"
        parsed_all = [_parse_endpoint(ep) for ep in link.endpoints]
        if parsed_all[0] is None:
            warnings.append(f'Link "{label}" has no local endpoint; skipped')
            continue
        parsed = [p for p in parsed_all if p is not None]
        src_handle, dst_handle = extract_handles(link.labels)

        shape = _esi_shape(parsed)
        if shape is not None:
            common, leaves = shape
            if common not in name_to_id:
                warnings.append(f'Link "{label}" references undefined node "{common}"; skipped')
                continue
            known = []
            for leaf in leaves:
                if leaf[0] in name_to_id:
                    known.append(leaf)
                else:
                    warnings.append(f'Link "{label}" references undefined node "{leaf[0]}"')
            if len(known) < 2:
                warnings.append(f'ESI-LAG "{label}" needs at least 2 known leaves; skipped')
                continue
            if len(known) > ESI_LAG_MAX_LEAVES:
                raise ImportFailed(f'ESI-LAG "{label}" has {len(known)} leaves; at most {ESI_LAG_MAX_LEAVES} are allowed')
            key = ("esi", common, tuple(leaf[0] for leaf in known))
            esi.append(_EsiSpec(
                key=key,
                hint=extract_edge_id(link.labels),
                link=link,
                common=common,
                leaves=known,
                source_handle=src_handle,
                target_handle=dst_handle,
            ))
            continue

        first = parsed[0]
        if first.target is None:
            warnings.append(f'Link "{label}" has no remote endpoint; skipped')
            continue
        missing = [n for n in (first.source, first.target) if n not in name_to_id]
        if missing:
            warnings.append(f'Link "{label}" references undefined node "{missing[0]}"; skipped')
            continue

        key = (pair_key(first.source, first.target), (src_handle, dst_handle))
        group = groups.get(key)
        if group is None:
            group = _EdgeGroup(
                key=key,
                hint=extract_edge_id(link.labels),
                source_name=first.source,
                target_name=first.target,
                source_handle=src_handle,
                target_handle=dst_handle,
            )
            groups[key] = group
            ordered.append(group)
        member_index = extract_member_index(link.labels)
        order = (0, member_index, seq) if member_index is not None else (1, 0, seq)
        group.entries.append((order, link, parsed))

    return ordered + esi


def _current_edge_keys(current: TopologyState) -> Dict[Any, str]:
    keys: Dict[Any, str] = {}
    for e in current.edges:
        if e.is_esi_lag:
            key = ("esi", e.source_name, tuple(leaf.node_name for leaf in e.esi_leaves))
        else:
            key = (pair_key(e.source_name, e.target_name), (e.source_handle, e.target_handle))
        keys.setdefault(key, e.id)
    return keys


def _assign_edge_ids(pending: List[_PendingEdge], current: TopologyState, allocator: IdAllocator) -> None:
    claimed: Set[str] = set()
    known = _current_edge_keys(current)

    # 1) same edge as the one already loaded
    for item in pending:
        eid = known.get(item.key)
        if eid and eid not in claimed:
            item.edge_id = eid
            claimed.add(eid)
    # 2) the id the document says it had
    for item in pending:
        if item.edge_id is None and item.hint and allocator.owns("edge", item.hint) and item.hint not in claimed:
            item.edge_id = item.hint
            claimed.add(item.hint)
    for eid in claimed:
        allocator.claim("edge", eid)
    # 3) fresh ids, always above everything claimed
    for item in pending:
        if item.edge_id is None:
            item.edge_id = allocator.next("edge")


def _build_edge(group: _EdgeGroup, name_to_id: Dict[str, str]) -> Edge:
    src, tgt = group.source_name, group.target_name
    edge = Edge(
        id=group.edge_id,
        source=name_to_id[src],
        target=name_to_id[tgt],
        source_name=src,
        target_name=tgt,
        source_handle=group.source_handle,
        target_handle=group.target_handle,
    )
    lags: List[LagGroup] = []
    for _order, link, parsed in sorted(group.entries, key=lambda e: e[0]):
        user = filter_user_labels(link.labels)
        base_name = link.name or f"{src}-{tgt}"
        oriented = [p.oriented(src) for p in parsed]
        if len(link.endpoints) > 1 and len(oriented) > 1:
            start = len(edge.member_links)
            for k, p in enumerate(oriented):
                edge.member_links.append(MemberLink(
                    name=f"{base_name}-{k + 1}",
                    source_interface=p.source_interface,
                    target_interface=p.target_interface or DEFAULT_INTERFACE,
                    template=link.template or None,
                ))
            lags.append(LagGroup(
                id=lag_id(edge.id, len(lags) + 1),
                name=base_name,
                member_indices=list(range(start, start + len(oriented))),
                template=link.template or None,
                labels=user,
            ))
        else:
            p = oriented[0]
            edge.member_links.append(MemberLink(
                name=base_name,
                source_interface=p.source_interface,
                target_interface=p.target_interface or DEFAULT_INTERFACE,
                template=link.template or None,
                labels=user,
            ))
    if lags:
        edge.kind = LagKind(groups=lags)
    return edge


def _build_esi_edge(spec: _EsiSpec, name_to_id: Dict[str, str]) -> Edge:
    link = spec.link
    user = filter_user_labels(link.labels if link else None)
    leaves = [EsiLeaf(node_id=name_to_id[name], node_name=name) for name, _c, _l in spec.leaves]
    members = [
        MemberLink(
            name=f"{spec.common}-{name}-{i + 1}",
            source_interface=common_if,
            target_interface=leaf_if,
            template=(link.template if link else None) or None,
            labels=dict(user) if i == 0 else {},
        )
        for i, (name, common_if, leaf_if) in enumerate(spec.leaves)
    ]
    return Edge(
        id=spec.edge_id,
        source=name_to_id[spec.common],
        target=leaves[0].node_id,
        source_name=spec.common,
        target_name=leaves[0].node_name,
        member_links=members,
        kind=EsiLagKind(leaves=leaves, name=(link.name if link else None) or None),
        source_handle=spec.source_handle,
        target_handle=spec.target_handle,
    )


# ───────────────────────────── Validation ─────────────────────────────

@dataclass
class ValidationIssue:
    path: str
    message: str


def validate_network_topology(text: str) -> List[ValidationIssue]:
    """Syntax, schema and cross-reference problems. Empty list means valid."""
    if not text or not text.strip():
        return [ValidationIssue("", "YAML content is empty")]
    try:
        raw = yaml.safe_load(text)
    except yaml.MarkedYAMLError as exc:
        mark = exc.problem_mark
        where = f"line {mark.line + 1}, column {mark.column + 1}" if mark is not None else ""
        return [ValidationIssue(where, f"YAML syntax error: {exc.problem or exc}")]
    except yaml.YAMLError as exc:
        return [ValidationIssue("", f"YAML syntax error: {exc}")]
    if not isinstance(raw, dict):
        return [ValidationIssue("", "Invalid document: must be an object")]

    issues: List[ValidationIssue] = []
    if raw.get("apiVersion") != API_VERSION:
        issues.append(ValidationIssue("/apiVersion", f"apiVersion must be {API_VERSION}"))
    if raw.get("kind") != KIND:
        issues.append(ValidationIssue("/kind", f"kind must be {KIND}"))
    try:
        schema.NetworkTopology.model_validate(raw)
    except ValidationError as exc:
        for err in exc.errors():
            path = "/" + "/".join(str(p) for p in err.get("loc", ()))
            issues.append(ValidationIssue(path, err.get("msg", "invalid value")))
        return issues
    issues.extend(_cross_references(raw))
    return issues


def _names(items: Any) -> List[str]:
    if not isinstance(items, list):
        return []
    return [i.get("name") for i in items if isinstance(i, dict) and i.get("name")]


def _cross_references(raw: Dict[str, Any]) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    spec = raw.get("spec")
    if not isinstance(spec, dict):
        return issues
    simulation = spec.get("simulation") if isinstance(spec.get("simulation"), dict) else {}

    node_names = _names(spec.get("nodes"))
    sim_names = _names(simulation.get("simNodes"))
    all_nodes = set(node_names) | set(sim_names)
    node_templates = set(_names(spec.get("nodeTemplates")))
    link_templates = set(_names(spec.get("linkTemplates")))
    sim_templates = set(_names(simulation.get("simNodeTemplates")))

    seen: Set[str] = set()
    for name in node_names + sim_names:
        if name in seen:
            issues.append(ValidationIssue("/spec/nodes", f'Duplicate node name "{name}"'))
        seen.add(name)

    for i, node in enumerate(spec.get("nodes") or []):
        tmpl = node.get("template")
        if tmpl and tmpl not in node_templates:
            issues.append(ValidationIssue(
                f"/spec/nodes/{i}/template",
                f'Node "{node.get("name")}" references undefined template "{tmpl}"',
            ))

    for i, link in enumerate(spec.get("links") or []):
        tmpl = link.get("template")
        if tmpl and tmpl not in link_templates:
            issues.append(ValidationIssue(
                f"/spec/links/{i}/template",
                f'Link "{link.get("name")}" references undefined template "{tmpl}"',
            ))
        for j, ep in enumerate(link.get("endpoints") or []):
            for side in ("local", "remote"):
                ref = (ep.get(side) or {}).get("node")
                if ref and ref not in all_nodes:
                    issues.append(ValidationIssue(
                        f"/spec/links/{i}/endpoints/{j}/{side}/node",
                        f'Link "{link.get("name")}" references undefined node "{ref}"',
                    ))
            sim = ep.get("sim") or {}
            ref = sim.get("simNode") or sim.get("node")
            if ref and ref not in sim_names:
                issues.append(ValidationIssue(
                    f"/spec/links/{i}/endpoints/{j}/sim",
                    f'Link "{link.get("name")}" references undefined simNode "{ref}"',
                ))

    for i, sim_node in enumerate(simulation.get("simNodes") or []):
        tmpl = sim_node.get("template")
        if tmpl and tmpl not in sim_templates:
            issues.append(ValidationIssue(
                f"/spec/simulation/simNodes/{i}/template",
                f'SimNode "{sim_node.get("name")}" references undefined template "{tmpl}"',
            ))
    return issues
