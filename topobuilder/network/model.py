# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""
Immutable entities of the topology graph.

Every entity is a frozen dataclass and collections are tuples, so a
TopologyState can be kept in the undo history without copying: mutations
build new entities and share everything they did not touch.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from ..constants import (
    ANNOTATION_NAME_PREFIX,
    DEFAULT_NAMESPACE,
    DEFAULT_OPERATION,
    DEFAULT_TOPOLOGY_NAME,
    ESI_LAG_MAX_LEAVES,
    ESI_LAG_MIN_LEAVES,
    LAG_MIN_MEMBERS,
)
from ..errors import TopologyError


class NodeKind(Enum):
    """Node variants."""
    NODE = "node"
    SIM = "simnode"


class EdgeType(Enum):
    """Edge variants, derived from the edge payload."""
    NORMAL = "normal"
    LAG = "lag"
    ESILAG = "esilag"


def _clean(values: Optional[Dict[str, Any]]) -> Dict[str, str]:
    return {str(k): str(v) for k, v in (values or {}).items()}


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None and v != {}}


@dataclass(frozen=True)
class Position:
    x: float = 0.0
    y: float = 0.0

    def offset(self, dx: float, dy: float) -> "Position":
        return Position(self.x + dx, self.y + dy)

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Position":
        data = data or {}
        return cls(float(data.get("x", 0.0)), float(data.get("y", 0.0)))


@dataclass(frozen=True)
class Node:
    """
    A topology device or a simulation endpoint.

    The two variants share one shape and are told apart by ``kind``;
    ``sim_type`` and ``image`` are only meaningful for simulation nodes.
    """
    id: str
    name: str
    kind: NodeKind = NodeKind.NODE
    position: Position = Position()
    template: Optional[str] = None
    platform: Optional[str] = None
    node_profile: Optional[str] = None
    serial_number: Optional[str] = None
    sim_type: Optional[str] = None
    image: Optional[str] = None
    labels: Dict[str, str] = field(default_factory=dict)

    @property
    def is_sim(self) -> bool:
        return self.kind is NodeKind.SIM

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "id": self.id,
            "name": self.name,
            "nodeType": self.kind.value,
            "position": self.position.to_dict(),
            "template": self.template,
            "platform": self.platform,
            "nodeProfile": self.node_profile,
            "serialNumber": self.serial_number,
            "simNodeType": self.sim_type,
            "image": self.image,
            "labels": dict(self.labels),
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Node":
        return cls(
            id=data["id"],
            name=data["name"],
            kind=NodeKind(data.get("nodeType", NodeKind.NODE.value)),
            position=Position.from_dict(data.get("position")),
            template=data.get("template"),
            platform=data.get("platform"),
            node_profile=data.get("nodeProfile"),
            serial_number=data.get("serialNumber"),
            sim_type=data.get("simNodeType"),
            image=data.get("image"),
            labels=_clean(data.get("labels")),
        )


@dataclass(frozen=True)
class MemberLink:
    """One physical cable inside an edge."""
    name: str
    source_interface: str
    target_interface: str
    template: Optional[str] = None
    labels: Dict[str, str] = field(default_factory=dict)

    def swapped(self) -> "MemberLink":
        return replace(self, source_interface=self.target_interface,
                       target_interface=self.source_interface)

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "name": self.name,
            "template": self.template,
            "sourceInterface": self.source_interface,
            "targetInterface": self.target_interface,
            "labels": dict(self.labels),
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MemberLink":
        return cls(
            name=data["name"],
            source_interface=data.get("sourceInterface", ""),
            target_interface=data.get("targetInterface", ""),
            template=data.get("template"),
            labels=_clean(data.get("labels")),
        )


@dataclass(frozen=True)
class LagGroup:
    """A named subset of an edge's member links."""
    id: str
    name: str
    member_indices: Tuple[int, ...]
    template: Optional[str] = None
    labels: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "id": self.id,
            "name": self.name,
            "template": self.template,
            "memberLinkIndices": list(self.member_indices),
            "labels": dict(self.labels),
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LagGroup":
        return cls(
            id=data["id"],
            name=data["name"],
            member_indices=tuple(int(i) for i in data.get("memberLinkIndices", [])),
            template=data.get("template"),
            labels=_clean(data.get("labels")),
        )


@dataclass(frozen=True)
class EsiLeaf:
    node_id: str
    node_name: str

    def to_dict(self) -> Dict[str, str]:
        return {"nodeId": self.node_id, "nodeName": self.node_name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EsiLeaf":
        return cls(node_id=data["nodeId"], node_name=data["nodeName"])


@dataclass(frozen=True)
class Edge:
    """
    A logical connection between two nodes.

    For ESI-LAG edges ``source`` is the common node, ``target`` is the first
    leaf and member link ``i`` joins the common node to ``esi_leaves[i]``.

    Raises:
        TopologyError: If the payload mixes variants or breaks a group invariant
    """
    id: str
    source: str
    target: str
    source_name: str
    target_name: str
    member_links: Tuple[MemberLink, ...] = ()
    lag_groups: Tuple[LagGroup, ...] = ()
    esi_leaves: Tuple[EsiLeaf, ...] = ()
    esi_name: Optional[str] = None
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None

    def __post_init__(self):
        if self.source == self.target:
            raise TopologyError(f"Edge {self.id} cannot connect a node to itself")
        if self.esi_leaves and self.lag_groups:
            raise TopologyError(f"Edge {self.id} cannot be both a LAG and an ESI-LAG")
        if self.esi_leaves:
            self._check_esi()
        self._check_lags()

    def _check_esi(self) -> None:
        count = len(self.esi_leaves)
        if not ESI_LAG_MIN_LEAVES <= count <= ESI_LAG_MAX_LEAVES:
            raise TopologyError(
                f"ESI-LAG must have between {ESI_LAG_MIN_LEAVES} and {ESI_LAG_MAX_LEAVES} leaves"
            )
        if len({leaf.node_id for leaf in self.esi_leaves}) < 2:
            raise TopologyError(f"ESI-LAG {self.id} needs at least two distinct leaf nodes")
        if len(self.member_links) != count:
            raise TopologyError(f"ESI-LAG {self.id} needs one member link per leaf")
        if self.target != self.esi_leaves[0].node_id:
            raise TopologyError(f"ESI-LAG {self.id} must target its first leaf")

    def _check_lags(self) -> None:
        seen = set()
        for lag in self.lag_groups:
            if len(lag.member_indices) < LAG_MIN_MEMBERS:
                raise TopologyError(f"LAG {lag.name} needs at least {LAG_MIN_MEMBERS} member links")
            for index in lag.member_indices:
                if not 0 <= index < len(self.member_links):
                    raise TopologyError(f"LAG {lag.name} references missing member link {index}")
                if index in seen:
                    raise TopologyError(f"Member link {index} is already in another LAG")
                seen.add(index)

    @property
    def edge_type(self) -> EdgeType:
        if self.esi_leaves:
            return EdgeType.ESILAG
        if self.lag_groups:
            return EdgeType.LAG
        return EdgeType.NORMAL

    @property
    def is_esi(self) -> bool:
        return bool(self.esi_leaves)

    def touches(self, node_id: str) -> bool:
        if node_id in (self.source, self.target):
            return True
        return any(leaf.node_id == node_id for leaf in self.esi_leaves)

    def other_end(self, node_id: str) -> str:
        return self.target if node_id == self.source else self.source

    def interfaces_for(self, node_id: str) -> List[str]:
        """Interfaces this edge occupies on ``node_id``."""
        if self.esi_leaves:
            if node_id == self.source:
                return [m.source_interface for m in self.member_links]
            return [
                m.target_interface
                for leaf, m in zip(self.esi_leaves, self.member_links)
                if leaf.node_id == node_id
            ]
        if node_id == self.source:
            return [m.source_interface for m in self.member_links]
        if node_id == self.target:
            return [m.target_interface for m in self.member_links]
        return []

    def lag_for_index(self, index: int) -> Optional[LagGroup]:
        for lag in self.lag_groups:
            if index in lag.member_indices:
                return lag
        return None

    def lag(self, lag_id: str) -> Optional[LagGroup]:
        for lag in self.lag_groups:
            if lag.id == lag_id:
                return lag
        return None

    def standalone_indices(self) -> List[int]:
        grouped = {i for lag in self.lag_groups for i in lag.member_indices}
        return [i for i in range(len(self.member_links)) if i not in grouped]

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "sourceNode": self.source_name,
            "targetNode": self.target_name,
            "sourceHandle": self.source_handle,
            "targetHandle": self.target_handle,
            "edgeType": self.edge_type.value,
            "memberLinks": [m.to_dict() for m in self.member_links],
            "lagGroups": [lag.to_dict() for lag in self.lag_groups] or None,
            "esiLeaves": [leaf.to_dict() for leaf in self.esi_leaves] or None,
            "esiLagName": self.esi_name,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Edge":
        edge = cls(
            id=data["id"],
            source=data["source"],
            target=data["target"],
            source_name=data.get("sourceNode") or data["source"],
            target_name=data.get("targetNode") or data["target"],
            member_links=tuple(MemberLink.from_dict(m) for m in data.get("memberLinks") or []),
            lag_groups=tuple(LagGroup.from_dict(g) for g in data.get("lagGroups") or []),
            esi_leaves=tuple(EsiLeaf.from_dict(leaf) for leaf in data.get("esiLeaves") or []),
            esi_name=data.get("esiLagName"),
            source_handle=data.get("sourceHandle"),
            target_handle=data.get("targetHandle"),
        )
        declared = data.get("edgeType")
        if declared and declared != edge.edge_type.value:
            raise TopologyError(
                f"Edge {edge.id} declares type {declared} but carries a {edge.edge_type.value} payload"
            )
        return edge


@dataclass(frozen=True)
class Annotation:
    """A freestanding drawing object (text or shape) on the canvas."""
    id: str
    kind: str = "text"
    position: Position = Position()
    text: str = ""
    shape: Optional[str] = None
    width: Optional[float] = None
    height: Optional[float] = None
    style: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "id": self.id,
            "type": self.kind,
            "position": self.position.to_dict(),
            "text": self.text or None,
            "shape": self.shape,
            "width": self.width,
            "height": self.height,
            "style": dict(self.style),
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Annotation":
        return cls(
            id=str(data["id"]),
            kind=data.get("type", "text"),
            position=Position.from_dict(data.get("position")),
            text=data.get("text") or "",
            shape=data.get("shape"),
            width=data.get("width"),
            height=data.get("height"),
            style=_clean(data.get("style")),
        )


@dataclass(frozen=True)
class _Template:
    name: str
    labels: Dict[str, str] = field(default_factory=dict)
    annotations: Dict[str, str] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    _FIELDS: ClassVar[Tuple[Tuple[str, str], ...]] = ()

    @property
    def name_prefix(self) -> Optional[str]:
        return self.annotations.get(ANNOTATION_NAME_PREFIX)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name}
        for attr, key in self._FIELDS:
            value = getattr(self, attr)
            if value is not None:
                data[key] = value
        if self.labels:
            data["labels"] = dict(self.labels)
        if self.annotations:
            data["annotations"] = dict(self.annotations)
        data.update(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        known = {"name", "labels", "annotations"} | {key for _, key in cls._FIELDS}
        kwargs = {attr: data.get(key) for attr, key in cls._FIELDS}
        return cls(
            name=str(data.get("name", "")),
            labels=_clean(data.get("labels")),
            annotations=_clean(data.get("annotations")),
            extra={k: v for k, v in data.items() if k not in known},
            **kwargs,
        )


@dataclass(frozen=True)
class NodeTemplate(_Template):
    platform: Optional[str] = None
    node_profile: Optional[str] = None

    _FIELDS = (("node_profile", "nodeProfile"), ("platform", "platform"))


@dataclass(frozen=True)
class LinkTemplate(_Template):
    type: Optional[str] = None
    speed: Optional[str] = None
    encap_type: Optional[str] = None

    _FIELDS = (("type", "type"), ("speed", "speed"), ("encap_type", "encapType"))


@dataclass(frozen=True)
class SimNodeTemplate(_Template):
    type: Optional[str] = None
    image: Optional[str] = None

    _FIELDS = (("type", "type"), ("image", "image"))


@dataclass(frozen=True)
class TopologyState:
    """Everything that undo/redo restores."""
    name: str = DEFAULT_TOPOLOGY_NAME
    namespace: str = DEFAULT_NAMESPACE
    operation: str = DEFAULT_OPERATION
    nodes: Tuple[Node, ...] = ()
    edges: Tuple[Edge, ...] = ()
    annotations: Tuple[Annotation, ...] = ()
    node_templates: Tuple[NodeTemplate, ...] = ()
    link_templates: Tuple[LinkTemplate, ...] = ()
    sim_node_templates: Tuple[SimNodeTemplate, ...] = ()
    sim_topology: Optional[Any] = None

    def replace(self, **changes: Any) -> "TopologyState":
        return replace(self, **changes)

    def all_ids(self) -> List[str]:
        ids = [n.id for n in self.nodes] + [e.id for e in self.edges]
        return ids + [a.id for a in self.annotations]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topologyName": self.name,
            "namespace": self.namespace,
            "operation": self.operation,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "annotations": [a.to_dict() for a in self.annotations],
            "nodeTemplates": [t.to_dict() for t in self.node_templates],
            "linkTemplates": [t.to_dict() for t in self.link_templates],
            "simulation": {
                "simNodeTemplates": [t.to_dict() for t in self.sim_node_templates],
                "topology": self.sim_topology,
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TopologyState":
        simulation = data.get("simulation") or {}
        return cls(
            name=data.get("topologyName") or DEFAULT_TOPOLOGY_NAME,
            namespace=data.get("namespace") or DEFAULT_NAMESPACE,
            operation=data.get("operation") or DEFAULT_OPERATION,
            nodes=tuple(Node.from_dict(n) for n in data.get("nodes") or []),
            edges=tuple(Edge.from_dict(e) for e in data.get("edges") or []),
            annotations=tuple(Annotation.from_dict(a) for a in data.get("annotations") or []),
            node_templates=tuple(NodeTemplate.from_dict(t) for t in data.get("nodeTemplates") or []),
            link_templates=tuple(LinkTemplate.from_dict(t) for t in data.get("linkTemplates") or []),
            sim_node_templates=tuple(
                SimNodeTemplate.from_dict(t) for t in simulation.get("simNodeTemplates") or []
            ),
            sim_topology=simulation.get("topology"),
        )
