"""
MCP server exposing one topology editing session.

Each tool drives the same in-process TopologyGraph, so an MCP client (MCP
Inspector, an LLM agent) can build a fabric step by step and read back the
NetworkTopology YAML at any point.

Run (example):
  pip install -e .
  python mcp_server/topo_mcp_server.py

Then connect an MCP client to:
  http://localhost:8000/mcp
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
import os

from mcp.server.fastmcp import FastMCP

from topobuilder import TopologyGraph

mcp = FastMCP(
    "Topobuilder MCP Server",
    instructions="Tools for editing an EDA NetworkTopology: nodes, links, LAGs, ESI-LAGs, fabrics and YAML.",
    stateless_http=True,
    json_response=True,
)

graph = TopologyGraph()


def _result(ok: bool, **extra: Any) -> Dict[str, Any]:
    out: Dict[str, Any] = {"ok": bool(ok), "error": None if ok else graph.error}
    out.update(extra)
    return out


def _node_id(name: str) -> Optional[str]:
    node = graph.state.node_named(name) or graph.state.sim_node_named(name)
    return node.id if node else None


@mcp.tool()
def export_topology_yaml() -> Dict[str, Any]:
    """Return the current topology as NetworkTopology YAML."""
    return _result(True, yaml=graph.export_yaml())


@mcp.tool()
def import_topology_yaml(yaml_text: str) -> Dict[str, Any]:
    """Replace the session topology with a NetworkTopology YAML document."""
    ok = graph.import_yaml(yaml_text)
    return _result(ok, status=graph.status())


@mcp.tool()
def validate_topology_yaml(yaml_text: str) -> Dict[str, Any]:
    """Check a NetworkTopology YAML document without loading it."""
    issues = graph.validate_yaml(yaml_text)
    return {
        "ok": not issues,
        "error": None,
        "problems": [{"path": i.path, "message": i.message} for i in issues],
    }


@mcp.tool()
def add_node(x: float = 0.0, y: float = 0.0, template: Optional[str] = None) -> Dict[str, Any]:
    """Add a node; the name is derived from the template's name prefix."""
    node_id = graph.add_node((x, y), template=template)
    node = graph.state.node(node_id) if node_id else None
    return _result(node_id is not None, id=node_id, name=node.name if node else None)


@mcp.tool()
def add_sim_node(
    x: float = 0.0,
    y: float = 0.0,
    template: Optional[str] = None,
    name: Optional[str] = None,
) -> Dict[str, Any]:
    """Add a simulation node (TestMan / Linux endpoint)."""
    sim_id = graph.add_sim_node((x, y), template=template, name=name)
    sim = graph.state.sim_node(sim_id) if sim_id else None
    return _result(sim_id is not None, id=sim_id, name=sim.name if sim else None)


@mcp.tool()
def rename_node(name: str, new_name: str) -> Dict[str, Any]:
    """Rename a node or sim node; links follow the new name."""
    node_id = _node_id(name)
    if node_id is None:
        return {"ok": False, "error": f'Node "{name}" not found'}
    if graph.state.is_sim(node_id):
        ok = graph.update_sim_node(node_id, name=new_name)
    else:
        ok = graph.rename_node(node_id, new_name)
    return _result(ok)


@mcp.tool()
def delete_node(name: str) -> Dict[str, Any]:
    """Delete a node or sim node together with its links."""
    node_id = _node_id(name)
    if node_id is None:
        return {"ok": False, "error": f'Node "{name}" not found'}
    if graph.state.is_sim(node_id):
        ok = graph.delete_sim_node(node_id)
    else:
        ok = graph.delete_node(node_id)
    return _result(ok)


@mcp.tool()
def connect_nodes(source: str, target: str) -> Dict[str, Any]:
    """Add a member link between two nodes (by name); repeated calls stack links on one edge."""
    src, dst = _node_id(source), _node_id(target)
    missing = source if src is None else target if dst is None else None
    if missing:
        return {"ok": False, "error": f'Node "{missing}" not found'}
    edge_id = graph.connect(src, dst)
    edge = graph.state.edge(edge_id) if edge_id else None
    return _result(
        edge_id is not None,
        edgeId=edge_id,
        memberLinks=[m.name for m in edge.member_links] if edge else [],
    )


@mcp.tool()
def create_lag(edge_id: str, member_indices: List[int]) -> Dict[str, Any]:
    """Bundle member links of one edge into a LAG."""
    lag = graph.create_lag_from_member_links(edge_id, member_indices)
    return _result(lag is not None, lagId=lag)


@mcp.tool()
def create_esi_lag(edge_ids: List[str]) -> Dict[str, Any]:
    """Merge 2-4 single-link edges sharing one node into an ESI-LAG."""
    edge_id = graph.create_esi_lag(edge_ids)
    return _result(edge_id is not None, edgeId=edge_id)


@mcp.tool()
def generate_fabric(
    leafs: int,
    spines: int,
    superspines: int = 0,
    leaf_template: Optional[str] = "leaf",
    spine_template: Optional[str] = "spine",
    superspine_template: Optional[str] = "superspine",
) -> Dict[str, Any]:
    """Replace nodes and links with a leaf/spine(/superspine) fabric."""
    fabric: Dict[str, Any] = {
        "leafs": {"count": leafs, "template": leaf_template},
        "spines": {"count": spines, "template": spine_template},
    }
    if superspines:
        fabric["superspines"] = {"count": superspines, "template": superspine_template}
    ok = graph.apply_fabric(fabric)
    return _result(ok, status=graph.status())


@mcp.tool()
def undo() -> Dict[str, Any]:
    """Undo the last edit."""
    ok = graph.undo()
    return {"ok": ok, "error": None if ok else "Nothing to undo", "status": graph.status()}


@mcp.tool()
def redo() -> Dict[str, Any]:
    """Redo the last undone edit."""
    ok = graph.redo()
    return {"ok": ok, "error": None if ok else "Nothing to redo", "status": graph.status()}


@mcp.tool()
def topology_status() -> Dict[str, Any]:
    """Counts, metadata, undo/redo availability and the current error."""
    return _result(True, status=graph.status())


if __name__ == "__main__":
    # Streamable HTTP transport is recommended in the MCP SDK docs.
    mcp.run(transport=os.environ.get("TOPO_MCP_TRANSPORT", "streamable-http"))
