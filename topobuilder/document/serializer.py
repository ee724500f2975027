# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""
Topology document serializer.

Writes a TopologyState as a YAML topology document. Positions, edge ids,
member order and handles are stored under the reserved annotation prefix so
that the parser can rebuild the exact graph.
"""

import json
from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple

import yaml

from ..constants import (
    ANNOTATION_DRAWING,
    ANNOTATION_DST_HANDLE,
    ANNOTATION_EDGE_ID,
    ANNOTATION_MEMBER_INDEX,
    ANNOTATION_MEMBER_INDICES,
    ANNOTATION_MEMBER_LABELS,
    ANNOTATION_MEMBER_NAMES,
    ANNOTATION_MEMBER_TEMPLATES,
    ANNOTATION_POS_X,
    ANNOTATION_POS_Y,
    ANNOTATION_SRC_HANDLE,
    API_VERSION,
    KIND,
    MIN_COORDINATE,
)
from ..network.model import Edge, LagGroup, MemberLink, Node, NodeKind, TopologyState
from .endpoints import format_coordinate


def _position_annotations(node: Node) -> Dict[str, str]:
    return {
        ANNOTATION_POS_X: format_coordinate(node.position.x),
        ANNOTATION_POS_Y: format_coordinate(node.position.y),
    }


def _link_annotations(edge: Edge, index: int, members: Optional[List[Tuple[int, MemberLink]]] = None) -> Dict[str, str]:
    annotations = {ANNOTATION_EDGE_ID: edge.id, ANNOTATION_MEMBER_INDEX: str(index)}
    if members is not None:
        annotations[ANNOTATION_MEMBER_INDICES] = ",".join(str(i) for i, _ in members)
        annotations[ANNOTATION_MEMBER_NAMES] = ",".join(m.name for _, m in members)
    if edge.source_handle:
        annotations[ANNOTATION_SRC_HANDLE] = edge.source_handle
    if edge.target_handle:
        annotations[ANNOTATION_DST_HANDLE] = edge.target_handle
    return annotations


def _member_overrides(members: List[MemberLink], templates: List[Optional[str]],
                      labels: List[Dict[str, str]]) -> Dict[str, str]:
    """Annotations for member templates and labels that differ from what the link entry implies."""
    annotations = {}
    if any(m.template != t for m, t in zip(members, templates)):
        annotations[ANNOTATION_MEMBER_TEMPLATES] = ",".join(m.template or "" for m in members)
    if any(dict(m.labels) != expected for m, expected in zip(members, labels)):
        annotations[ANNOTATION_MEMBER_LABELS] = json.dumps([dict(m.labels) for m in members], sort_keys=True)
    return annotations


def _link(name: str, template: Optional[str], labels: Dict[str, str],
          annotations: Dict[str, str], endpoints: List[Dict[str, Any]]) -> Dict[str, Any]:
    link: Dict[str, Any] = {"name": name}
    if template:
        link["template"] = template
    if labels:
        link["labels"] = dict(labels)
    link["annotations"] = annotations
    link["endpoints"] = endpoints
    return link


def _node_entry(node: Node) -> Dict[str, Any]:
    entry: Dict[str, Any] = {"name": node.name}
    if node.template:
        entry["template"] = node.template
    else:
        if node.platform:
            entry["platform"] = node.platform
        if node.node_profile:
            entry["nodeProfile"] = node.node_profile
    if node.serial_number:
        entry["serialNumber"] = node.serial_number
    if node.labels:
        entry["labels"] = dict(node.labels)
    entry["annotations"] = _position_annotations(node)
    return entry


def _sim_node_entry(node: Node) -> Dict[str, Any]:
    entry: Dict[str, Any] = {"name": node.name}
    if node.template:
        entry["template"] = node.template
    if node.sim_type:
        entry["type"] = node.sim_type
    if node.image:
        entry["image"] = node.image
    if node.labels:
        entry["labels"] = dict(node.labels)
    entry["annotations"] = _position_annotations(node)
    return entry


class _LinkWriter:
    """Collects document links for all edges in output order."""

    def __init__(self, state: TopologyState):
        self.sim_ids = {n.id for n in state.nodes if n.kind is NodeKind.SIM}
        self.topo_links: List[Dict[str, Any]] = []
        self.sim_links: List[Dict[str, Any]] = []
        self.esi_links: List[Dict[str, Any]] = []
        self._esi_counter = 1

    def links(self) -> List[Dict[str, Any]]:
        return self.topo_links + self.sim_links + self.esi_links

    def add(self, edge: Edge) -> None:
        if edge.is_esi:
            self._add_esi(edge)
            return
        for lag in edge.lag_groups:
            self._add_lag(edge, lag)
        for index in edge.standalone_indices():
            self._add_member(edge, index)

    def _endpoint(self, edge: Edge, member: MemberLink) -> Dict[str, Any]:
        if edge.source in self.sim_ids:
            return {
                "local": {"node": edge.target_name, "interface": member.target_interface},
                "sim": {"simNode": edge.source_name, "simNodeInterface": member.source_interface},
            }
        if edge.target in self.sim_ids:
            return {
                "local": {"node": edge.source_name, "interface": member.source_interface},
                "sim": {"simNode": edge.target_name, "simNodeInterface": member.target_interface},
            }
        return {
            "local": {"node": edge.source_name, "interface": member.source_interface},
            "remote": {"node": edge.target_name, "interface": member.target_interface},
        }

    def _add_member(self, edge: Edge, index: int) -> None:
        member = edge.member_links[index]
        link = _link(member.name, member.template, member.labels,
                     _link_annotations(edge, index), [self._endpoint(edge, member)])
        if edge.source in self.sim_ids or edge.target in self.sim_ids:
            self.sim_links.append(link)
        else:
            self.topo_links.append(link)

    def _add_lag(self, edge: Edge, lag: LagGroup) -> None:
        members = [(i, edge.member_links[i]) for i in lag.member_indices]
        annotations = _link_annotations(edge, lag.member_indices[0], members)
        annotations.update(_member_overrides(
            [m for _, m in members], [lag.template] * len(members), [{}] * len(members)
        ))
        self.topo_links.append(_link(
            lag.name, lag.template, lag.labels, annotations,
            [self._endpoint(edge, member) for _, member in members],
        ))

    def _add_esi(self, edge: Edge) -> None:
        name = edge.esi_name
        if not name:
            name = f"{edge.source_name}-esi-lag-{self._esi_counter}"
            self._esi_counter += 1
        members = list(enumerate(edge.member_links))
        if edge.source in self.sim_ids:
            endpoints = [
                {
                    "local": {"node": leaf.node_name, "interface": member.target_interface},
                    "sim": {"simNode": edge.source_name, "simNodeInterface": member.source_interface},
                }
                for leaf, member in zip(edge.esi_leaves, edge.member_links)
            ]
        else:
            endpoints = [{"local": {"node": edge.source_name, "interface": edge.member_links[0].source_interface}}]
            endpoints += [
                {"local": {"node": leaf.node_name, "interface": member.target_interface}}
                for leaf, member in zip(edge.esi_leaves, edge.member_links)
            ]
        first = edge.member_links[0]
        annotations = _link_annotations(edge, 0, members)
        annotations.update(_member_overrides(
            list(edge.member_links),
            [first.template] * len(members),
            [dict(first.labels)] + [{}] * (len(members) - 1),
        ))
        self.esi_links.append(_link(name, first.template, first.labels, annotations, endpoints))


def build_document(state: TopologyState) -> Dict[str, Any]:
    """Build the document mapping for ``state``."""
    metadata: Dict[str, Any] = {"name": state.name, "namespace": state.namespace}
    if state.annotations:
        metadata["annotations"] = {
            ANNOTATION_DRAWING: json.dumps([a.to_dict() for a in state.annotations], sort_keys=True)
        }

    writer = _LinkWriter(state)
    for edge in state.edges:
        writer.add(edge)

    spec: Dict[str, Any] = {
        "operation": state.operation,
        "nodeTemplates": [t.to_dict() for t in state.node_templates],
        "nodes": [_node_entry(n) for n in state.nodes if n.kind is NodeKind.NODE],
        "linkTemplates": [t.to_dict() for t in state.link_templates],
        "links": writer.links(),
    }

    sim_nodes = [_sim_node_entry(n) for n in state.nodes if n.kind is NodeKind.SIM]
    if sim_nodes or state.sim_node_templates or state.sim_topology:
        simulation: Dict[str, Any] = {
            "simNodeTemplates": [t.to_dict() for t in state.sim_node_templates],
            "simNodes": sim_nodes,
        }
        if state.sim_topology:
            simulation["topology"] = state.sim_topology
        spec["simulation"] = simulation

    return {"apiVersion": API_VERSION, "kind": KIND, "metadata": metadata, "spec": spec}


def serialize_state(state: TopologyState) -> str:
    """Serialize ``state`` to YAML document text."""
    return yaml.safe_dump(build_document(state), sort_keys=False, default_flow_style=False,
                          allow_unicode=True, width=4096)


def normalize_positions(state: TopologyState, minimum: float = MIN_COORDINATE) -> TopologyState:
    """
    Shift all nodes so topology nodes sit at or beyond ``minimum`` on both axes.

    Only applied on export; the live model keeps its canvas coordinates.
    """
    topo = [n for n in state.nodes if n.kind is NodeKind.NODE]
    if not topo:
        return state
    dx = max(0.0, minimum - min(n.position.x for n in topo))
    dy = max(0.0, minimum - min(n.position.y for n in topo))
    if dx == 0 and dy == 0:
        return state
    return state.replace(nodes=tuple(replace(n, position=n.position.offset(dx, dy)) for n in state.nodes))
