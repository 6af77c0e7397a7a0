from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
import copy

from pydantic import BaseModel, ValidationError

from . import schema
from .constants import (
    DEFAULT_EDGE_TEMPLATE,
    DEFAULT_ISL_TEMPLATE,
    DEFAULT_NODE_PREFIX,
    DEFAULT_SIM_PREFIX,
    ESI_LAG_MAX_LEAVES,
    ESI_LAG_MIN_LEAVES,
    OPERATIONS,
    UNDO_LIMIT,
    base_template_path,
)
from .errors import (
    EsiLagError,
    FabricError,
    ImportFailed,
    InvalidNameError,
    LagError,
    LinkError,
    NameCollisionError,
    NotFoundError,
    TemplateError,
    ValidationRejected,
)
from .fabric import FabricDefinition, fabric_to_topology, parse_fabric, parse_fabric_yaml
from .history import HistoryManager
from .ids import IdAllocator
from .labels import filter_user_labels, name_prefix
from .model import (
    Annotation,
    Edge,
    EsiLagKind,
    EsiLeaf,
    LagGroup,
    LagKind,
    MemberLink,
    Node,
    Position,
    Selection,
    SimNode,
    Simulation,
    TopologyState,
)
from .names import (
    copy_name,
    esi_lag_name,
    format_interface,
    lag_id as make_lag_id,
    lag_name,
    member_link_name,
    name_error,
    pair_key,
    replace_name_token,
    unique_name,
    validate_name,
)
from .session_log import SessionLogger
from .yaml_codec import (
    ImportResult,
    ValidationIssue,
    empty_result,
    export_to_yaml,
    import_from_yaml,
    validate_network_topology,
)


_TARGET_SUFFIX = "-target"

_TEMPLATE_MODELS = {
    "node": schema.NodeTemplate,
    "link": schema.LinkTemplate,
    "sim": schema.SimNodeTemplate,
}


def to_source_handle(handle: Optional[str]) -> Optional[str]:
    if handle and handle.endswith(_TARGET_SUFFIX):
        return handle[: -len(_TARGET_SUFFIX)]
    return handle


def to_target_handle(handle: Optional[str]) -> Optional[str]:
    if not handle or handle.endswith(_TARGET_SUFFIX):
        return handle
    return handle + _TARGET_SUFFIX


@dataclass
class Clipboard:
    nodes: List[Node] = field(default_factory=list)
    sim_nodes: List[SimNode] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.nodes or self.sim_nodes)


class TopologyGraph:
    """Owned topology state plus every operation allowed to change it.

    Each mutator runs as one transaction: the whole state is snapshotted first,
    a rejected edit (``ValidationRejected``) rolls back to that snapshot and
    lands in ``self.error``, an accepted edit becomes one undo step. Mutators
    never raise; they return ``None``/``False`` on rejection.
    """

    def __init__(
        self,
        base_template: Optional[str] = None,
        undo_limit: int = UNDO_LIMIT,
        session: Optional[SessionLogger] = None,
    ):
        self.session = session or SessionLogger()
        self.history = HistoryManager(undo_limit)
        self.ids = IdAllocator()
        self.selection = Selection()
        self.error: Optional[str] = None
        # bumped on every change that alters export output
        self.yaml_refresh_counter = 0
        # bumped when positions are replaced wholesale (import, fabric)
        self.layout_version = 0

        self._base = self._load_base_template(base_template)
        self.state = self._base_state()
        self.log_event("session_start", nodeTemplates=len(self.state.node_templates))

    def log_event(self, kind: str, /, **data):
        self.session.add(kind, **data)

    # ───────────────────────────── Transactions ─────────────────────────────

    @contextmanager
    def _transaction(self, kind: str):
        self.error = None
        snapshot = self.history.capture(self.state)
        ids_before = self.ids.copy()
        try:
            yield
        except ValidationRejected as exc:
            self.state = snapshot
            self.ids.restore(ids_before)
            self._fail(kind, exc)
            return
        except Exception:
            self.state = snapshot
            self.ids.restore(ids_before)
            raise
        self.history.record(snapshot)
        self.yaml_refresh_counter += 1

    def _fail(self, kind: str, exc: Exception) -> None:
        self.error = str(exc)
        self.log_event("error", op=kind, message=self.error)

    def clear_error(self) -> None:
        self.error = None

    # ───────────────────────────── Base template ─────────────────────────────

    def _load_base_template(self, text: Optional[str]) -> ImportResult:
        if text is None:
            path = base_template_path()
            try:
                with open(path, "r", encoding="utf-8") as f:
                    text = f.read()
            except OSError as exc:
                self.log_event("base_template_missing", path=path, error=str(exc))
                return empty_result()
        try:
            return import_from_yaml(text, TopologyState(), IdAllocator())
        except ImportFailed as exc:
            self.log_event("base_template_invalid", error=str(exc))
            return empty_result()

    def _base_state(self) -> TopologyState:
        base = self._base
        return TopologyState(
            name=base.name,
            namespace=base.namespace,
            operation=base.operation,
            node_templates=copy.deepcopy(base.node_templates),
            link_templates=copy.deepcopy(base.link_templates),
            simulation=Simulation(sim_node_templates=copy.deepcopy(base.simulation.sim_node_templates)),
        )

    # ───────────────────────────── Lookup helpers ─────────────────────────────

    def _node(self, node_id: str) -> Node:
        node = self.state.node(node_id)
        if node is None:
            raise NotFoundError(f'Node "{node_id}" not found')
        return node

    def _sim(self, sim_id: str) -> SimNode:
        sim = self.state.sim_node(sim_id)
        if sim is None:
            raise NotFoundError(f'SimNode "{sim_id}" not found')
        return sim

    def _endpoint(self, entity_id: str) -> Union[Node, SimNode]:
        found = self.state.endpoint(entity_id)
        if found is None:
            raise NotFoundError(f'Node "{entity_id}" not found')
        return found

    def _edge(self, edge_id: str) -> Edge:
        edge = self.state.edge(edge_id)
        if edge is None:
            raise NotFoundError(f'Link "{edge_id}" not found')
        return edge

    def _esi_edge(self, edge_id: str) -> Edge:
        edge = self._edge(edge_id)
        if not edge.is_esi_lag:
            raise EsiLagError(f'Link "{edge_id}" is not an ESI-LAG')
        return edge

    def _check_name(self, name: Optional[str], exclude_id: Optional[str], entity: str) -> None:
        err = name_error(name)
        if err:
            raise InvalidNameError(f"Invalid {entity} name: {err}")
        err = validate_name(name, self.state.all_names(exclude_id), entity)
        if err:
            raise NameCollisionError(err)

    @staticmethod
    def _position(value: Any) -> Position:
        try:
            return Position.of(value)
        except (TypeError, ValueError) as exc:
            raise ValidationRejected(f"Invalid position: {value!r}") from exc

    @staticmethod
    def _set_attrs(obj: Any, attrs: Dict[str, Any], allowed: Iterable[str], what: str) -> None:
        allowed = set(allowed)
        coerced = {}
        for key, value in attrs.items():
            if key not in allowed:
                raise ValidationRejected(f'Unknown {what} attribute "{key}"')
            try:
                if key == "labels":
                    value = filter_user_labels(value)
                elif key == "position":
                    value = Position.of(value)
            except (TypeError, ValueError, AttributeError) as exc:
                raise ValidationRejected(f'Invalid {what} {key}: {value!r}') from exc
            coerced[key] = value
        for key, value in coerced.items():
            setattr(obj, key, value)

    def _sync_ids(self) -> None:
        """Keep every allocator above the ids present in the state."""
        for n in self.state.nodes:
            self.ids.claim("node", n.id)
        for e in self.state.edges:
            self.ids.claim("edge", e.id)
        for s in self.state.sim_nodes:
            self.ids.claim("sim", s.id)
        for a in self.state.annotations:
            self.ids.claim("annotation", a.id)

    def _prune_selection(self) -> None:
        sel = self.selection
        sel.node_ids[:] = [i for i in sel.node_ids if self.state.node(i)]
        sel.sim_node_ids[:] = [i for i in sel.sim_node_ids if self.state.sim_node(i)]
        sel.edge_ids[:] = [i for i in sel.edge_ids if self.state.edge(i)]
        sel.annotation_ids[:] = [i for i in sel.annotation_ids if self.state.annotation(i)]
        if not sel.edge_ids:
            sel.member_link_indices.clear()
            sel.lag_id = None

    def _cascade_rename(self, entity_id: str, old: str, new: str) -> None:
        for e in self.state.edges:
            if not e.touches(entity_id):
                continue
            if e.source == entity_id:
                e.source_name = new
            if e.target == entity_id:
                e.target_name = new
            for leaf in e.esi_leaves:
                if leaf.node_id == entity_id:
                    leaf.node_name = new
            for m in e.member_links:
                m.name = replace_name_token(m.name, old, new)
            for g in e.lag_groups:
                g.name = replace_name_token(g.name, old, new)
            if isinstance(e.kind, EsiLagKind) and e.kind.name:
                e.kind.name = replace_name_token(e.kind.name, old, new)

    def _remove_edges(self, edge_ids: Iterable[str]) -> None:
        drop = set(edge_ids)
        self.state.edges = [e for e in self.state.edges if e.id not in drop]

    # ───────────────────────────── Metadata ─────────────────────────────

    def set_topology_name(self, name: str) -> bool:
        ok = False
        with self._transaction("set_topology_name"):
            err = name_error(name)
            if err:
                raise InvalidNameError(f"Invalid topology name: {err}")
            self.state.name = name
            self.log_event("set_topology_name", name=name)
            ok = True
        return ok

    def set_namespace(self, namespace: str) -> bool:
        ok = False
        with self._transaction("set_namespace"):
            err = name_error(namespace)
            if err:
                raise InvalidNameError(f"Invalid namespace: {err}")
            self.state.namespace = namespace
            self.log_event("set_namespace", namespace=namespace)
            ok = True
        return ok

    def set_operation(self, operation: str) -> bool:
        ok = False
        with self._transaction("set_operation"):
            if operation not in OPERATIONS:
                raise ValidationRejected(f'Unknown operation "{operation}"; expected one of {", ".join(OPERATIONS)}')
            self.state.operation = operation
            self.log_event("set_operation", operation=operation)
            ok = True
        return ok

    # ───────────────────────────── Nodes ─────────────────────────────

    def add_node(self, position: Any = None, template: Optional[str] = None) -> Optional[str]:
        result = None
        with self._transaction("add_node"):
            if template is None and self.state.node_templates:
                template = self.state.node_templates[0].get("name")
            tmpl = self.state.node_template(template)
            prefix = name_prefix(tmpl.get("annotations") if tmpl else None) or DEFAULT_NODE_PREFIX
            node = Node(
                id=self.ids.next("node"),
                name=unique_name(prefix, self.state.all_names()),
                position=self._position(position),
                template=template or None,
            )
            self.state.nodes.append(node)
            self.selection.clear()
            self.selection.node_ids.append(node.id)
            self.log_event("add_node", id=node.id, name=node.name, template=node.template)
            result = node.id
        return result

    def update_node(self, node_id: str, **attrs: Any) -> bool:
        """Change name, template, platform, node_profile, serial_number, labels or position."""
        ok = False
        with self._transaction("update_node"):
            node = self._node(node_id)
            old_name = node.name
            new_name = attrs.pop("name", None)
            if new_name is None and "template" in attrs and attrs["template"] != node.template:
                # a template with its own prefix renames the node
                tmpl = self.state.node_template(attrs["template"])
                prefix = name_prefix(tmpl.get("annotations") if tmpl else None)
                if prefix:
                    new_name = unique_name(prefix, self.state.all_names(node_id))
            if new_name is not None and new_name != old_name:
                self._check_name(new_name, node_id, "node")
            self._set_attrs(
                node, attrs,
                ("template", "platform", "node_profile", "serial_number", "labels", "position"),
                "node",
            )
            if new_name is not None and new_name != old_name:
                node.name = new_name
                self._cascade_rename(node_id, old_name, new_name)
            self.log_event("update_node", id=node_id, name=node.name, fields=sorted(attrs) + (["name"] if new_name else []))
            ok = True
        return ok

    def rename_node(self, node_id: str, name: str) -> bool:
        return self.update_node(node_id, name=name)

    def move_node(self, node_id: str, position: Any) -> bool:
        ok = False
        with self._transaction("move_node"):
            node = self._node(node_id)
            node.position = self._position(position)
            self.log_event("move_node", id=node_id, x=node.position.x, y=node.position.y)
            ok = True
        return ok

    def delete_node(self, node_id: str) -> bool:
        ok = False
        with self._transaction("delete_node"):
            node = self._node(node_id)
            gone = [e.id for e in self.state.edges_touching(node_id)]
            self._remove_edges(gone)
            self.state.nodes = [n for n in self.state.nodes if n.id != node_id]
            self._prune_selection()
            self.log_event("delete_node", id=node_id, name=node.name, edgesRemoved=gone)
            ok = True
        return ok

    def resolve_node_template(self, node_id: str) -> Optional[Dict[str, Any]]:
        """Template mapping a node resolves to; None when unset or dangling."""
        node = self.state.node(node_id)
        if node is None:
            return None
        return self.state.node_template(node.template)

    # ───────────────────────────── Sim nodes ─────────────────────────────

    def add_sim_node(
        self,
        position: Any = None,
        template: Optional[str] = None,
        name: Optional[str] = None,
        type: Optional[str] = None,
        image: Optional[str] = None,
    ) -> Optional[str]:
        result = None
        with self._transaction("add_sim_node"):
            templates = self.state.simulation.sim_node_templates
            if template is None and templates:
                template = templates[0].get("name")
            if name is None:
                name = unique_name(template or DEFAULT_SIM_PREFIX, self.state.all_names())
            else:
                self._check_name(name, None, "simNode")
            sim = SimNode(
                id=self.ids.next("sim"),
                name=name,
                position=self._position(position),
                template=template or None,
                type=type,
                image=image,
            )
            self.state.simulation.sim_nodes.append(sim)
            self.selection.clear()
            self.selection.sim_node_ids.append(sim.id)
            self.log_event("add_sim_node", id=sim.id, name=sim.name, template=sim.template)
            result = sim.id
        return result

    def update_sim_node(self, sim_id: str, **attrs: Any) -> bool:
        ok = False
        with self._transaction("update_sim_node"):
            sim = self._sim(sim_id)
            old_name = sim.name
            new_name = attrs.pop("name", None)
            if new_name is not None and new_name != old_name:
                self._check_name(new_name, sim_id, "simNode")
            self._set_attrs(sim, attrs, ("template", "type", "image", "labels", "position"), "simNode")
            if new_name is not None and new_name != old_name:
                sim.name = new_name
                self._cascade_rename(sim_id, old_name, new_name)
            self.log_event("update_sim_node", id=sim_id, name=sim.name)
            ok = True
        return ok

    def move_sim_node(self, sim_id: str, position: Any) -> bool:
        ok = False
        with self._transaction("move_sim_node"):
            sim = self._sim(sim_id)
            sim.position = self._position(position)
            self.log_event("move_sim_node", id=sim_id, x=sim.position.x, y=sim.position.y)
            ok = True
        return ok

    def delete_sim_node(self, sim_id: str) -> bool:
        ok = False
        with self._transaction("delete_sim_node"):
            sim = self._sim(sim_id)
            gone = [e.id for e in self.state.edges_touching(sim_id)]
            self._remove_edges(gone)
            self.state.simulation.sim_nodes = [s for s in self.state.sim_nodes if s.id != sim_id]
            self._prune_selection()
            self.log_event("delete_sim_node", id=sim_id, name=sim.name, edgesRemoved=gone)
            ok = True
        return ok

    # ───────────────────────────── Links ─────────────────────────────

    def _default_link_template(self, sim: bool) -> str:
        if not sim:
            return DEFAULT_ISL_TEMPLATE
        for t in self.state.link_templates:
            if t.get("type") == "edge" and t.get("name"):
                return t["name"]
        return DEFAULT_EDGE_TEMPLATE

    def _pair_member_count(self, a: str, b: str) -> int:
        key = pair_key(a, b)
        return sum(
            len(e.member_links)
            for e in self.state.edges
            if not e.is_esi_lag and pair_key(e.source_name, e.target_name) == key
        )

    def _new_member(self, edge: Edge, name: Optional[str] = None, template: Optional[str] = None) -> MemberLink:
        src_sim = self.state.is_sim(edge.source)
        tgt_sim = self.state.is_sim(edge.target)
        if name is None:
            k = self._pair_member_count(edge.source_name, edge.target_name) + 1
            name = member_link_name(edge.target_name, edge.source_name, k)
        return MemberLink(
            name=name,
            source_interface=format_interface(self.state.next_port(edge.source), sim=src_sim),
            target_interface=format_interface(self.state.next_port(edge.target), sim=tgt_sim),
            template=template or self._default_link_template(src_sim or tgt_sim),
        )

    def _find_edge(
        self,
        source: str,
        target: str,
        sh: Optional[str],
        th: Optional[str],
        exclude: Optional[str] = None,
    ) -> Optional[Edge]:
        for e in self.state.edges:
            if e.is_esi_lag or e.id == exclude:
                continue
            if e.source == source and e.target == target and e.source_handle == sh and e.target_handle == th:
                return e
            if (e.source == target and e.target == source
                    and e.source_handle == to_source_handle(th) and e.target_handle == to_target_handle(sh)):
                return e
        return None

    def connect(
        self,
        source_id: str,
        target_id: str,
        source_handle: Optional[str] = None,
        target_handle: Optional[str] = None,
    ) -> Optional[str]:
        """Connect two endpoints; returns the edge id that received the new member link."""
        result = None
        with self._transaction("connect"):
            if source_id == target_id:
                raise LinkError("Cannot connect a node to itself")
            src = self._endpoint(source_id)
            tgt = self._endpoint(target_id)
            src_sim = self.state.is_sim(source_id)
            tgt_sim = self.state.is_sim(target_id)
            if src_sim and tgt_sim:
                raise LinkError("Cannot connect two simulation nodes")
            if tgt_sim:
                # sim node always sits on the source side
                source_id, target_id = target_id, source_id
                src, tgt = tgt, src
                source_handle, target_handle = to_source_handle(target_handle), to_target_handle(source_handle)

            edge = self._find_edge(source_id, target_id, source_handle, target_handle)
            created = edge is None
            if edge is None:
                edge = Edge(
                    id=self.ids.next("edge"),
                    source=source_id,
                    target=target_id,
                    source_name=src.name,
                    target_name=tgt.name,
                    source_handle=source_handle,
                    target_handle=target_handle,
                )
                self.state.edges.append(edge)
            member = self._new_member(edge)
            edge.member_links.append(member)
            self.log_event(
                "connect",
                edge=edge.id,
                created=created,
                member=member.name,
                sourceInterface=member.source_interface,
                targetInterface=member.target_interface,
            )
            result = edge.id
        return result

    def update_edge(self, edge_id: str, **attrs: Any) -> bool:
        """Change attachment handles, or the ESI-LAG name via ``name``."""
        ok = False
        with self._transaction("update_edge"):
            edge = self._edge(edge_id)
            name = attrs.pop("name", None)
            if name is not None:
                if not isinstance(edge.kind, EsiLagKind):
                    raise LinkError("Only ESI-LAG links carry their own name")
                err = name_error(name)
                if err:
                    raise InvalidNameError(f"Invalid link name: {err}")
                edge.kind.name = name
            self._set_attrs(edge, attrs, ("source_handle", "target_handle"), "link")
            if not edge.is_esi_lag:
                twin = self._find_edge(
                    edge.source, edge.target, edge.source_handle, edge.target_handle, exclude=edge.id
                )
                if twin is not None:
                    raise LinkError(f'Link "{twin.id}" already uses these handles')
            self.log_event("update_edge", id=edge_id)
            ok = True
        return ok

    def delete_edge(self, edge_id: str) -> bool:
        ok = False
        with self._transaction("delete_edge"):
            self._edge(edge_id)
            self._remove_edges([edge_id])
            self._prune_selection()
            self.log_event("delete_edge", id=edge_id)
            ok = True
        return ok

    def add_member_link(
        self,
        edge_id: str,
        name: Optional[str] = None,
        template: Optional[str] = None,
        source_interface: Optional[str] = None,
        target_interface: Optional[str] = None,
        labels: Optional[Dict[str, str]] = None,
    ) -> Optional[int]:
        result = None
        with self._transaction("add_member_link"):
            edge = self._edge(edge_id)
            if edge.is_esi_lag:
                raise LinkError("Use add_link_to_esi_lag to grow an ESI-LAG")
            if name is not None:
                err = name_error(name)
                if err:
                    raise InvalidNameError(f"Invalid link name: {err}")
            member = self._new_member(edge, name=name, template=template)
            if source_interface:
                member.source_interface = source_interface
            if target_interface:
                member.target_interface = target_interface
            member.labels = filter_user_labels(labels)
            edge.member_links.append(member)
            self.log_event("add_member_link", edge=edge_id, member=member.name)
            result = len(edge.member_links) - 1
        return result

    def update_member_link(self, edge_id: str, index: int, **attrs: Any) -> bool:
        ok = False
        with self._transaction("update_member_link"):
            edge = self._edge(edge_id)
            if not 0 <= index < len(edge.member_links):
                raise LinkError(f"Member link index {index} is out of range")
            if "name" in attrs:
                err = name_error(attrs["name"])
                if err:
                    raise InvalidNameError(f"Invalid link name: {err}")
            self._set_attrs(
                edge.member_links[index], attrs,
                ("name", "template", "source_interface", "target_interface", "labels"),
                "member link",
            )
            self.log_event("update_member_link", edge=edge_id, index=index, fields=sorted(attrs))
            ok = True
        return ok

    def delete_member_link(self, edge_id: str, index: int) -> bool:
        ok = False
        with self._transaction("delete_member_link"):
            edge = self._edge(edge_id)
            if not 0 <= index < len(edge.member_links):
                raise LinkError(f"Member link index {index} is out of range")
            if edge.is_esi_lag:
                self._drop_esi_leaf(edge, index)
            elif len(edge.member_links) == 1:
                self._remove_edges([edge_id])
                self._prune_selection()
            else:
                del edge.member_links[index]
                if isinstance(edge.kind, LagKind):
                    kept = []
                    for g in edge.kind.groups:
                        g.member_indices = [i - 1 if i > index else i for i in g.member_indices if i != index]
                        if len(g.member_indices) >= 2:
                            kept.append(g)
                    edge.kind.groups = kept
                    edge.normalize_kind()
                self.selection.member_link_indices.clear()
            self.log_event("delete_member_link", edge=edge_id, index=index)
            ok = True
        return ok

    # ───────────────────────────── LAG ─────────────────────────────

    def create_lag_from_member_links(self, edge_id: str, indices: Iterable[int]) -> Optional[str]:
        result = None
        with self._transaction("create_lag"):
            edge = self._edge(edge_id)
            if edge.is_esi_lag:
                raise LagError("Cannot create a LAG on an ESI-LAG link")
            picked = sorted({int(i) for i in indices})
            if len(picked) < 2:
                raise LagError("A LAG needs at least 2 member links")
            for i in picked:
                if not 0 <= i < len(edge.member_links):
                    raise LagError(f"Member link index {i} is out of range")
            taken = sorted(edge.indices_in_lags() & set(picked))
            if taken:
                raise LagError(f"Member link {taken[0]} already belongs to a LAG")

            used_names = {g.name for g in edge.lag_groups}
            n = len(edge.lag_groups) + 1
            while lag_name(edge.target_name, edge.source_name, n) in used_names:
                n += 1
            used_ids = {g.id for g in edge.lag_groups}
            k = len(edge.lag_groups) + 1
            while make_lag_id(edge.id, k) in used_ids:
                k += 1
            group = LagGroup(
                id=make_lag_id(edge.id, k),
                name=lag_name(edge.target_name, edge.source_name, n),
                member_indices=picked,
                template=edge.member_links[picked[0]].template,
            )
            if isinstance(edge.kind, LagKind):
                edge.kind.groups.append(group)
            else:
                edge.kind = LagKind(groups=[group])
            self.selection.member_link_indices.clear()
            self.selection.lag_id = group.id
            self.log_event("create_lag", edge=edge_id, lag=group.id, name=group.name, indices=picked)
            result = group.id
        return result

    def _lag(self, edge: Edge, lag_id: str) -> LagGroup:
        group = edge.lag(lag_id)
        if group is None:
            raise LagError(f'LAG "{lag_id}" not found on link "{edge.id}"')
        return group

    def update_lag(self, edge_id: str, lag_id: str, **attrs: Any) -> bool:
        ok = False
        with self._transaction("update_lag"):
            edge = self._edge(edge_id)
            group = self._lag(edge, lag_id)
            if "name" in attrs:
                err = name_error(attrs["name"])
                if err:
                    raise InvalidNameError(f"Invalid LAG name: {err}")
            self._set_attrs(group, attrs, ("name", "template", "labels"), "LAG")
            self.log_event("update_lag", edge=edge_id, lag=lag_id, fields=sorted(attrs))
            ok = True
        return ok

    def add_link_to_lag(self, edge_id: str, lag_id: str) -> Optional[int]:
        result = None
        with self._transaction("add_link_to_lag"):
            edge = self._edge(edge_id)
            group = self._lag(edge, lag_id)
            last = edge.member_links[group.member_indices[-1]]
            member = self._new_member(
                edge,
                name=f"{group.name}-{len(group.member_indices) + 1}",
                template=group.template or last.template,
            )
            edge.member_links.append(member)
            group.member_indices.append(len(edge.member_links) - 1)
            self.selection.lag_id = lag_id
            self.log_event("add_link_to_lag", edge=edge_id, lag=lag_id, member=member.name)
            result = len(edge.member_links) - 1
        return result

    def remove_link_from_lag(self, edge_id: str, lag_id: str, index: int) -> bool:
        """Take a member out of a LAG; the member link itself stays on the edge."""
        ok = False
        with self._transaction("remove_link_from_lag"):
            edge = self._edge(edge_id)
            group = self._lag(edge, lag_id)
            if index not in group.member_indices:
                raise LagError(f'Member link {index} is not part of LAG "{group.name}"')
            dissolved = len(group.member_indices) <= 2
            if dissolved:
                edge.kind.groups = [g for g in edge.lag_groups if g.id != lag_id]
                edge.normalize_kind()
                self.selection.lag_id = None
            else:
                group.member_indices.remove(index)
                self.selection.lag_id = lag_id
            self.log_event("remove_link_from_lag", edge=edge_id, lag=lag_id, index=index, dissolved=dissolved)
            ok = True
        return ok

    # ───────────────────────────── ESI-LAG ─────────────────────────────

    def _next_esi_name(self, common_id: str, common_name: str) -> str:
        used = {e.kind.name for e in self.state.edges if isinstance(e.kind, EsiLagKind) and e.kind.name}
        n = sum(1 for e in self.state.edges if e.is_esi_lag and e.source == common_id) + 1
        while esi_lag_name(common_name, n) in used:
            n += 1
        return esi_lag_name(common_name, n)

    def _esi_member_from(self, edge: Edge, common: str) -> Tuple[EsiLeaf, MemberLink]:
        """Leaf and re-oriented member link for a single-member edge hanging off ``common``."""
        if len(edge.member_links) != 1:
            raise EsiLagError(f'Link "{edge.id}" must have exactly one member link to join an ESI-LAG')
        m = copy.deepcopy(edge.member_links[0])
        if edge.source == common:
            leaf = EsiLeaf(node_id=edge.target, node_name=edge.target_name)
        else:
            leaf = EsiLeaf(node_id=edge.source, node_name=edge.source_name)
            m.source_interface, m.target_interface = m.target_interface, m.source_interface
        if self.state.is_sim(leaf.node_id):
            raise EsiLagError("Simulation nodes cannot be ESI-LAG leaves")
        return leaf, m

    def _renumber_esi(self, edge: Edge) -> None:
        for i, (leaf, m) in enumerate(zip(edge.esi_leaves, edge.member_links)):
            m.name = f"{edge.source_name}-{leaf.node_name}-{i + 1}"
        edge.target = edge.esi_leaves[0].node_id
        edge.target_name = edge.esi_leaves[0].node_name

    def create_esi_lag(self, edge_ids: Iterable[str]) -> Optional[str]:
        """Fold 2..4 single-member links sharing one node into one multi-homed link."""
        result = None
        with self._transaction("create_esi_lag"):
            ids = list(dict.fromkeys(edge_ids))
            if not ESI_LAG_MIN_LEAVES <= len(ids) <= ESI_LAG_MAX_LEAVES:
                raise EsiLagError(
                    f"An ESI-LAG needs {ESI_LAG_MIN_LEAVES} to {ESI_LAG_MAX_LEAVES} links, got {len(ids)}"
                )
            edges = [self._edge(i) for i in ids]
            for e in edges:
                if e.is_esi_lag:
                    raise EsiLagError(f'Link "{e.id}" is already an ESI-LAG')
            common_ids = set.intersection(*[{e.source, e.target} for e in edges])
            if len(common_ids) != 1:
                raise EsiLagError("Selected links must share exactly one common node")
            common = common_ids.pop()
            leaves, members = [], []
            for e in edges:
                leaf, m = self._esi_member_from(e, common)
                leaves.append(leaf)
                members.append(m)
            if len({leaf.node_id for leaf in leaves}) < ESI_LAG_MIN_LEAVES:
                raise EsiLagError("An ESI-LAG needs at least 2 distinct leaf nodes")

            common_name = self._endpoint(common).name
            edge = Edge(
                id=self.ids.next("edge"),
                source=common,
                target=leaves[0].node_id,
                source_name=common_name,
                target_name=leaves[0].node_name,
                member_links=members,
                kind=EsiLagKind(leaves=leaves, name=self._next_esi_name(common, common_name)),
            )
            self._renumber_esi(edge)
            self._remove_edges(ids)
            self.state.edges.append(edge)
            self.selection.clear()
            self.selection.edge_ids.append(edge.id)
            self.log_event("create_esi_lag", edge=edge.id, name=edge.kind.name, merged=ids,
                           leaves=[leaf.node_name for leaf in leaves])
            result = edge.id
        return result

    def add_link_to_esi_lag(self, edge_id: str, leaf_id: Optional[str] = None) -> Optional[int]:
        """Add a leaf (default: another link to the last leaf) with a paired member link."""
        result = None
        with self._transaction("add_link_to_esi_lag"):
            edge = self._esi_edge(edge_id)
            if len(edge.esi_leaves) >= ESI_LAG_MAX_LEAVES:
                raise EsiLagError(f"An ESI-LAG cannot have more than {ESI_LAG_MAX_LEAVES} leaves")
            if leaf_id is None:
                leaf = copy.deepcopy(edge.esi_leaves[-1])
            else:
                node = self._node(leaf_id)
                if leaf_id == edge.source:
                    raise EsiLagError("The common node cannot also be a leaf")
                leaf = EsiLeaf(node_id=node.id, node_name=node.name)
            template = edge.member_links[0].template if edge.member_links else None
            member = MemberLink(
                name=f"{edge.source_name}-{leaf.node_name}-{len(edge.member_links) + 1}",
                source_interface=format_interface(self.state.next_port(edge.source), sim=self.state.is_sim(edge.source)),
                target_interface=format_interface(self.state.next_port(leaf.node_id)),
                template=template,
            )
            edge.kind.leaves.append(leaf)
            edge.member_links.append(member)
            self.log_event("add_link_to_esi_lag", edge=edge_id, leaf=leaf.node_name, leaves=len(edge.esi_leaves))
            result = len(edge.member_links) - 1
        return result

    def _drop_esi_leaf(self, edge: Edge, index: int) -> None:
        if len(edge.esi_leaves) <= ESI_LAG_MIN_LEAVES:
            raise EsiLagError(f"An ESI-LAG must keep at least {ESI_LAG_MIN_LEAVES} leaves")
        if not 0 <= index < len(edge.esi_leaves):
            raise EsiLagError(f"ESI-LAG leaf index {index} is out of range")
        del edge.kind.leaves[index]
        if index < len(edge.member_links):
            del edge.member_links[index]
        self._renumber_esi(edge)

    def remove_link_from_esi_lag(self, edge_id: str, index: int) -> bool:
        ok = False
        with self._transaction("remove_link_from_esi_lag"):
            edge = self._esi_edge(edge_id)
            self._drop_esi_leaf(edge, index)
            self.log_event("remove_link_from_esi_lag", edge=edge_id, index=index, leaves=len(edge.esi_leaves))
            ok = True
        return ok

    def merge_edges_into_esi_lag(self, esi_edge_id: str, edge_ids: Iterable[str]) -> bool:
        ok = False
        with self._transaction("merge_edges_into_esi_lag"):
            esi = self._esi_edge(esi_edge_id)
            ids = [i for i in dict.fromkeys(edge_ids) if i != esi_edge_id]
            if not ids:
                raise EsiLagError("No links to merge")
            if len(esi.esi_leaves) + len(ids) > ESI_LAG_MAX_LEAVES:
                raise EsiLagError(f"An ESI-LAG cannot have more than {ESI_LAG_MAX_LEAVES} leaves")
            template = esi.member_links[0].template if esi.member_links else None
            for eid in ids:
                e = self._edge(eid)
                if e.is_esi_lag:
                    raise EsiLagError(f'Link "{eid}" is already an ESI-LAG')
                if not e.touches(esi.source):
                    raise EsiLagError(f'Link "{eid}" does not connect to "{esi.source_name}"')
                leaf, m = self._esi_member_from(e, esi.source)
                m.template = template
                esi.kind.leaves.append(leaf)
                esi.member_links.append(m)
            self._renumber_esi(esi)
            self._remove_edges(ids)
            self._prune_selection()
            self.log_event("merge_edges_into_esi_lag", edge=esi_edge_id, merged=ids, leaves=len(esi.esi_leaves))
            ok = True
        return ok

    def set_esi_lag_template(self, edge_id: str, template: Optional[str]) -> bool:
        ok = False
        with self._transaction("set_esi_lag_template"):
            edge = self._esi_edge(edge_id)
            for m in edge.member_links:
                m.template = template or None
            self.log_event("set_esi_lag_template", edge=edge_id, template=template)
            ok = True
        return ok

    # ───────────────────────────── Templates ─────────────────────────────

    def _catalog(self, kind: str) -> List[Dict[str, Any]]:
        if kind == "node":
            return self.state.node_templates
        if kind == "link":
            return self.state.link_templates
        if kind == "sim":
            return self.state.simulation.sim_node_templates
        raise TemplateError(f'Unknown template kind "{kind}"')

    @staticmethod
    def _coerce_template(kind: str, data: Any) -> Dict[str, Any]:
        if isinstance(data, BaseModel):
            data = data.model_dump(exclude_none=True)
        try:
            model = _TEMPLATE_MODELS[kind].model_validate(data)
        except ValidationError as exc:
            err = exc.errors()[0]
            loc = ".".join(str(p) for p in err.get("loc", ()))
            raise TemplateError(f"Invalid {kind} template{' (' + loc + ')' if loc else ''}: {err.get('msg')}") from exc
        err = name_error(model.name)
        if err:
            raise InvalidNameError(f"Invalid template name: {err}")
        return model.model_dump(exclude_none=True)

    def _cascade_template_rename(self, kind: str, old: str, new: str) -> None:
        if kind == "node":
            for n in self.state.nodes:
                if n.template == old:
                    n.template = new
        elif kind == "link":
            for e in self.state.edges:
                for m in e.member_links:
                    if m.template == old:
                        m.template = new
                for g in e.lag_groups:
                    if g.template == old:
                        g.template = new
        else:
            for s in self.state.sim_nodes:
                if s.template == old:
                    s.template = new

    def add_template(self, kind: str, data: Any) -> bool:
        ok = False
        with self._transaction(f"add_{kind}_template"):
            catalog = self._catalog(kind)
            tmpl = self._coerce_template(kind, data)
            if any(t.get("name") == tmpl["name"] for t in catalog):
                raise TemplateError(f'Template name "{tmpl["name"]}" already exists')
            catalog.append(tmpl)
            self.log_event(f"add_{kind}_template", name=tmpl["name"])
            ok = True
        return ok

    def update_template(self, kind: str, name: str, data: Any) -> bool:
        """Replace a template; a changed name is carried into every reference."""
        ok = False
        with self._transaction(f"update_{kind}_template"):
            catalog = self._catalog(kind)
            idx = next((i for i, t in enumerate(catalog) if t.get("name") == name), None)
            if idx is None:
                raise NotFoundError(f'Template "{name}" not found')
            tmpl = self._coerce_template(kind, data)
            new_name = tmpl["name"]
            if new_name != name and any(t.get("name") == new_name for t in catalog):
                raise TemplateError(f'Template name "{new_name}" already exists')
            catalog[idx] = tmpl
            if new_name != name:
                self._cascade_template_rename(kind, name, new_name)
            self.log_event(f"update_{kind}_template", name=name, newName=new_name)
            ok = True
        return ok

    def delete_template(self, kind: str, name: str) -> bool:
        """Drop a template. References to it are left dangling on purpose."""
        ok = False
        with self._transaction(f"delete_{kind}_template"):
            catalog = self._catalog(kind)
            kept = [t for t in catalog if t.get("name") != name]
            if len(kept) == len(catalog):
                raise NotFoundError(f'Template "{name}" not found')
            catalog[:] = kept
            self.log_event(f"delete_{kind}_template", name=name)
            ok = True
        return ok

    def add_node_template(self, data: Any) -> bool:
        return self.add_template("node", data)

    def update_node_template(self, name: str, data: Any) -> bool:
        return self.update_template("node", name, data)

    def delete_node_template(self, name: str) -> bool:
        return self.delete_template("node", name)

    def add_link_template(self, data: Any) -> bool:
        return self.add_template("link", data)

    def update_link_template(self, name: str, data: Any) -> bool:
        return self.update_template("link", name, data)

    def delete_link_template(self, name: str) -> bool:
        return self.delete_template("link", name)

    def add_sim_node_template(self, data: Any) -> bool:
        return self.add_template("sim", data)

    def update_sim_node_template(self, name: str, data: Any) -> bool:
        return self.update_template("sim", name, data)

    def delete_sim_node_template(self, name: str) -> bool:
        return self.delete_template("sim", name)

    # ───────────────────────────── Annotations ─────────────────────────────

    def add_annotation(
        self,
        kind: str,
        position: Any = None,
        text: str = "",
        shape: Optional[str] = None,
        width: Optional[float] = None,
        height: Optional[float] = None,
        style: Optional[Dict[str, Any]] = None,
    ) -> Optional[str]:
        result = None
        with self._transaction("add_annotation"):
            if kind not in ("text", "shape"):
                raise ValidationRejected(f'Unknown annotation kind "{kind}"')
            ann = Annotation(
                id=self.ids.next("annotation"),
                kind=kind,
                position=self._position(position),
                text=text,
                shape=shape if kind == "shape" else None,
                width=width,
                height=height,
                style=dict(style or {}),
            )
            self.state.annotations.append(ann)
            self.selection.clear()
            self.selection.annotation_ids.append(ann.id)
            self.log_event("add_annotation", id=ann.id, kind=kind)
            result = ann.id
        return result

    def update_annotation(self, annotation_id: str, **attrs: Any) -> bool:
        ok = False
        with self._transaction("update_annotation"):
            ann = self.state.annotation(annotation_id)
            if ann is None:
                raise NotFoundError(f'Annotation "{annotation_id}" not found')
            self._set_attrs(ann, attrs, ("text", "shape", "width", "height", "style", "position"), "annotation")
            self.log_event("update_annotation", id=annotation_id, fields=sorted(attrs))
            ok = True
        return ok

    def delete_annotation(self, annotation_id: str) -> bool:
        ok = False
        with self._transaction("delete_annotation"):
            if self.state.annotation(annotation_id) is None:
                raise NotFoundError(f'Annotation "{annotation_id}" not found')
            self.state.annotations = [a for a in self.state.annotations if a.id != annotation_id]
            self._prune_selection()
            self.log_event("delete_annotation", id=annotation_id)
            ok = True
        return ok

    # ───────────────────────────── Selection ─────────────────────────────
    # Selection is view state: not part of undo history, no YAML refresh.

    def select_node(self, node_id: str, additive: bool = False) -> bool:
        if self.state.endpoint(node_id) is None:
            return False
        if not additive:
            self.selection.clear()
        target = self.selection.sim_node_ids if self.state.is_sim(node_id) else self.selection.node_ids
        if node_id not in target:
            target.append(node_id)
        return True

    def select_edge(self, edge_id: str, additive: bool = False) -> bool:
        if self.state.edge(edge_id) is None:
            return False
        if not additive:
            self.selection.clear()
        if edge_id not in self.selection.edge_ids:
            self.selection.edge_ids.append(edge_id)
        return True

    def select_member_link(self, edge_id: str, index: int, additive: bool = False) -> bool:
        edge = self.state.edge(edge_id)
        if edge is None or not 0 <= index < len(edge.member_links):
            return False
        if not additive or self.selection.edge_ids != [edge_id]:
            self.selection.clear()
            self.selection.edge_ids.append(edge_id)
        if index not in self.selection.member_link_indices:
            self.selection.member_link_indices.append(index)
        self.selection.lag_id = None
        return True

    def select_lag(self, edge_id: str, lag_id: str) -> bool:
        edge = self.state.edge(edge_id)
        if edge is None or edge.lag(lag_id) is None:
            return False
        self.selection.clear()
        self.selection.edge_ids.append(edge_id)
        self.selection.lag_id = lag_id
        return True

    def clear_selection(self) -> None:
        self.selection.clear()

    # ───────────────────────────── Clipboard ─────────────────────────────

    def copy_selection(self) -> Clipboard:
        picked = set(self.selection.node_ids) | set(self.selection.sim_node_ids)
        clip = Clipboard(
            nodes=[copy.deepcopy(n) for n in self.state.nodes if n.id in picked],
            sim_nodes=[copy.deepcopy(s) for s in self.state.sim_nodes if s.id in picked],
            # only links whose every endpoint comes along
            edges=[copy.deepcopy(e) for e in self.state.edges if e.node_ids() <= picked],
        )
        self.log_event("copy", nodes=len(clip.nodes), simNodes=len(clip.sim_nodes), edges=len(clip.edges))
        return clip

    def paste(self, clipboard: Optional[Clipboard], offset: Tuple[float, float] = (50.0, 50.0)) -> Optional[List[str]]:
        result = None
        with self._transaction("paste"):
            if clipboard is None or clipboard.is_empty():
                raise ValidationRejected("Nothing to paste")
            dx, dy = offset
            taken = self.state.all_names()
            id_map: Dict[str, str] = {}
            name_map: Dict[str, str] = {}
            new_nodes: List[str] = []
            new_sims: List[str] = []

            for src in clipboard.nodes:
                n = copy.deepcopy(src)
                n.id = self.ids.next("node")
                n.name = copy_name(src.name, taken)
                n.position = src.position.shifted(dx, dy)
                taken.add(n.name)
                id_map[src.id], name_map[src.name] = n.id, n.name
                self.state.nodes.append(n)
                new_nodes.append(n.id)
            for src in clipboard.sim_nodes:
                s = copy.deepcopy(src)
                s.id = self.ids.next("sim")
                s.name = copy_name(src.name, taken)
                s.position = src.position.shifted(dx, dy)
                taken.add(s.name)
                id_map[src.id], name_map[src.name] = s.id, s.name
                self.state.simulation.sim_nodes.append(s)
                new_sims.append(s.id)

            new_edges: List[str] = []
            for src in clipboard.edges:
                if not src.node_ids() <= set(id_map):
                    continue
                e = copy.deepcopy(src)
                e.id = self.ids.next("edge")
                e.source, e.target = id_map[src.source], id_map[src.target]
                e.source_name, e.target_name = name_map[src.source_name], name_map[src.target_name]
                for leaf in e.esi_leaves:
                    leaf.node_id, leaf.node_name = id_map[leaf.node_id], name_map[leaf.node_name]
                if e.is_esi_lag:
                    self._renumber_esi(e)
                else:
                    for m in e.member_links:
                        suffix = m.name.rsplit("-", 1)[-1]
                        m.name = f"{e.target_name}-{e.source_name}-{suffix}"
                renamed = list(name_map.items())
                for g in e.lag_groups:
                    for old, new in renamed:
                        g.name = replace_name_token(g.name, old, new)
                if isinstance(e.kind, EsiLagKind) and e.kind.name:
                    for old, new in renamed:
                        e.kind.name = replace_name_token(e.kind.name, old, new)
                self.state.edges.append(e)
                new_edges.append(e.id)

            self.selection.clear()
            self.selection.node_ids.extend(new_nodes)
            self.selection.sim_node_ids.extend(new_sims)
            self.selection.edge_ids.extend(new_edges)
            self.log_event("paste", nodes=new_nodes, simNodes=new_sims, edges=new_edges)
            result = new_nodes + new_sims + new_edges
        return result

    # ───────────────────────────── History ─────────────────────────────

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    def undo(self) -> bool:
        previous = self.history.undo(self.state)
        if previous is None:
            return False
        self._restore(previous)
        self.log_event("undo", undoDepth=self.history.undo_depth, redoDepth=self.history.redo_depth)
        return True

    def redo(self) -> bool:
        following = self.history.redo(self.state)
        if following is None:
            return False
        self._restore(following)
        self.log_event("redo", undoDepth=self.history.undo_depth, redoDepth=self.history.redo_depth)
        return True

    def _restore(self, state: TopologyState) -> None:
        self.state = state
        self.selection.clear()
        self._sync_ids()
        self.error = None
        self.yaml_refresh_counter += 1

    # ───────────────────────────── Whole-graph operations ─────────────────────────────

    def snapshot(self) -> TopologyState:
        return self.history.capture(self.state)

    def rehydrate(self, state: TopologyState) -> None:
        """Load ``state`` as a fresh session: history dropped, ids reseeded."""
        self.state = copy.deepcopy(state)
        self.ids.reseed("node", [n.id for n in self.state.nodes])
        self.ids.reseed("edge", [e.id for e in self.state.edges])
        self.ids.reseed("sim", [s.id for s in self.state.sim_nodes])
        self.ids.reseed("annotation", [a.id for a in self.state.annotations])
        self.history.clear()
        self.selection.clear()
        self.error = None
        self.layout_version += 1
        self.yaml_refresh_counter += 1
        self.log_event("rehydrate", nodes=len(self.state.nodes), edges=len(self.state.edges))

    def clear_all(self) -> bool:
        ok = False
        with self._transaction("clear_all"):
            self.state = self._base_state()
            self.ids.reset()
            self.selection.clear()
            self.layout_version += 1
            self.log_event("clear_all")
            ok = True
        return ok

    def export_yaml(self) -> str:
        return export_to_yaml(self.state)

    def validate_yaml(self, text: str) -> List[ValidationIssue]:
        return validate_network_topology(text)

    def import_yaml(self, text: str) -> bool:
        """Replace the graph with ``text``. On failure nothing changes and ``error`` is set."""
        if not text or not text.strip():
            ok = False
            with self._transaction("import_yaml"):
                self.state = self._base_state()
                self.selection.clear()
                self.layout_version += 1
                self.log_event("import_yaml", empty=True)
                ok = True
            return ok

        alloc = self.ids.copy()
        try:
            result = import_from_yaml(text, self.state, alloc)
        except ImportFailed as exc:
            self.error = str(exc)
            self.log_event("import_yaml_failed", error=self.error)
            return False

        ok = False
        with self._transaction("import_yaml"):
            self.state = result.to_state(self.state.annotations)
            self.ids.restore(alloc)
            self._sync_ids()
            self.selection.clear()
            self.layout_version += 1
            self.log_event(
                "import_yaml",
                name=result.name,
                nodes=len(result.nodes),
                edges=len(result.edges),
                simNodes=len(result.simulation.sim_nodes),
                warnings=list(result.warnings),
            )
            ok = True
        return ok

    def apply_fabric(self, fabric: Union[FabricDefinition, Dict[str, Any], str]) -> bool:
        """Replace nodes and links with a generated fabric. Sim nodes are kept."""
        ok = False
        with self._transaction("apply_fabric"):
            if isinstance(fabric, str):
                definition = parse_fabric_yaml(fabric)
            else:
                definition = parse_fabric(fabric)
            result = fabric_to_topology(definition, self.state.node_templates, self.state.link_templates)
            sim_names = {s.name for s in self.state.sim_nodes}
            for n in result.nodes:
                if n.name in sim_names:
                    raise FabricError(f'Fabric node name "{n.name}" collides with a simulation node')
            self.state.nodes = result.nodes
            self.state.edges = result.edges
            self.ids.ensure_above("node", result.max_node_id)
            self.ids.ensure_above("edge", result.max_edge_id)
            self.selection.clear()
            self.layout_version += 1
            self.log_event(
                "apply_fabric",
                leafs=definition.leafs.count,
                spines=definition.spines.count,
                superspines=definition.superspines.count if definition.superspines else 0,
                nodes=len(result.nodes),
                edges=len(result.edges),
            )
            ok = True
        return ok

    def status(self) -> Dict[str, Any]:
        return {
            "name": self.state.name,
            "namespace": self.state.namespace,
            "operation": self.state.operation,
            "nodes": len(self.state.nodes),
            "simNodes": len(self.state.sim_nodes),
            "edges": len(self.state.edges),
            "memberLinks": sum(len(e.member_links) for e in self.state.edges),
            "annotations": len(self.state.annotations),
            "canUndo": self.can_undo(),
            "canRedo": self.can_redo(),
            "error": self.error,
            "rejectedEdits": len(self.session.rejections()),
            "yamlRefreshCounter": self.yaml_refresh_counter,
            "layoutVersion": self.layout_version,
        }
