"""Pydantic models for the ``NetworkTopology`` custom resource.

Import validates the parsed YAML against these models; export builds them and
dumps with ``exclude_none`` so field order is the declared order below.
Templates allow extra keys: whatever a user put in a template is carried back
out unchanged.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _stringify_map(value: Any) -> Any:
    # YAML happily turns `x: 100` into an int; labels are strings on the wire.
    if isinstance(value, dict):
        return {str(k): ("" if v is None else str(v)) for k, v in value.items()}
    return value


StrMap = Annotated[Dict[str, str], BeforeValidator(_stringify_map)]

Operation = Literal["create", "replace", "replaceAll", "delete", "deleteAll"]
LinkType = Literal["edge", "interSwitch", "loopback"]
LinkSpeed = Literal["800G", "400G", "200G", "100G", "50G", "40G", "25G", "10G", "2.5G", "1G", "100M"]
EncapType = Literal["null", "dot1q"]
SimNodeType = Literal["Linux", "TestMan", "SrlTest"]


# ───────────────────────────── Templates ─────────────────────────────

class NodeTemplate(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., description="Template name, unique in the node template catalog")
    platform: Optional[str] = Field(None, description="Hardware platform, e.g. 7220 IXR-D3L")
    nodeProfile: Optional[str] = Field(None, description="EDA node profile")
    labels: Optional[StrMap] = None
    annotations: Optional[StrMap] = Field(
        None, description="Template annotations; topobuilder.eda.labs/name-prefix sets the default node name prefix"
    )


class LinkTemplate(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    type: Optional[LinkType] = None
    speed: Optional[LinkSpeed] = None
    encapType: Optional[EncapType] = None
    labels: Optional[StrMap] = None


class SimNodeTemplate(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    type: Optional[SimNodeType] = None
    image: Optional[str] = None
    imagePullSecret: Optional[str] = None
    labels: Optional[StrMap] = None


# ───────────────────────────── Nodes / Links ─────────────────────────────

class TopoNode(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    template: Optional[str] = None
    platform: Optional[str] = None
    nodeProfile: Optional[str] = None
    serialNumber: Optional[str] = None
    labels: Optional[StrMap] = None


class SimNodeSpec(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    template: Optional[str] = None
    type: Optional[SimNodeType] = None
    image: Optional[str] = None
    labels: Optional[StrMap] = None


class EndpointSide(BaseModel):
    model_config = ConfigDict(extra="allow")

    node: str
    interface: Optional[str] = None


class EndpointSim(BaseModel):
    model_config = ConfigDict(extra="allow")

    simNode: Optional[str] = None
    simNodeInterface: Optional[str] = None
    # older documents spell the sim side like a local side
    node: Optional[str] = None
    interface: Optional[str] = None

    def sim_name(self) -> Optional[str]:
        return self.simNode or self.node or None

    def sim_interface(self) -> Optional[str]:
        return self.simNodeInterface or self.interface or None


class Endpoint(BaseModel):
    model_config = ConfigDict(extra="allow")

    local: Optional[EndpointSide] = None
    remote: Optional[EndpointSide] = None
    sim: Optional[EndpointSim] = None
    type: Optional[LinkType] = None
    speed: Optional[LinkSpeed] = None


class Link(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    template: Optional[str] = None
    encapType: Optional[EncapType] = None
    labels: Optional[StrMap] = None
    endpoints: List[Endpoint] = Field(default_factory=list)


# ───────────────────────────── Document ─────────────────────────────

class Simulation(BaseModel):
    model_config = ConfigDict(extra="allow")

    simNodeTemplates: Optional[List[SimNodeTemplate]] = None
    simNodes: Optional[List[SimNodeSpec]] = None
    topology: Optional[List[Any]] = None


class Metadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    namespace: Optional[str] = None


class TopologySpec(BaseModel):
    model_config = ConfigDict(extra="allow")

    operation: Optional[Operation] = None
    nodeTemplates: Optional[List[NodeTemplate]] = None
    nodes: Optional[List[TopoNode]] = None
    linkTemplates: Optional[List[LinkTemplate]] = None
    links: Optional[List[Link]] = None
    simulation: Optional[Simulation] = None


class NetworkTopology(BaseModel):
    model_config = ConfigDict(extra="allow")

    apiVersion: Optional[str] = None
    kind: Optional[str] = None
    metadata: Optional[Metadata] = None
    spec: Optional[TopologySpec] = None
