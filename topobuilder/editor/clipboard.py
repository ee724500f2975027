# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""
Copy and paste of topology fragments.

A Clipboard holds copies of selected entities. Pasting allocates fresh ids,
derives free names with ``copy_name`` and rewrites member-link, LAG and
ESI-LAG names that embedded the old node names.
"""

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

from ..network.graph import TopologyGraph
from ..network.model import Annotation, Edge, EsiLeaf, Node, TopologyState
from ..network.naming import copy_name, lag_id
from .selection import Selection

LOGGER = logging.getLogger(__name__)

CLIPBOARD_FORMAT = "topology:data"


@dataclass(frozen=True)
class Clipboard:
    """
    Copied entities.

    When a single standard link is copied on its own, only its template is
    kept (``link_template``) so it can be pasted onto another link.
    """
    nodes: Tuple[Node, ...] = ()
    edges: Tuple[Edge, ...] = ()
    annotations: Tuple[Annotation, ...] = ()
    link_template: Optional[str] = None
    link_edge_id: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not (self.nodes or self.annotations or self.link_edge_id)

    @classmethod
    def from_selection(cls, state: TopologyState, selection: Selection) -> "Clipboard":
        """
        Capture the selected entities of ``state``.

        Edges whose endpoints are all selected nodes are copied along with
        the nodes even when the edges themselves are not selected.
        """
        node_ids = set(selection.node_ids)
        edge_ids = set(selection.edge_ids)
        if not node_ids and len(edge_ids) == 1 and not selection.annotation_ids:
            edge = next((e for e in state.edges if e.id in edge_ids), None)
            if edge is not None and not edge.is_esi and edge.member_links:
                return cls(link_template=edge.member_links[0].template, link_edge_id=edge.id)

        nodes = tuple(n for n in state.nodes if n.id in node_ids)
        edges = tuple(
            e for e in state.edges
            if e.id in edge_ids or all(i in node_ids for i in _endpoint_ids(e))
        )
        annotation_ids = set(selection.annotation_ids)
        annotations = tuple(a for a in state.annotations if a.id in annotation_ids)
        return cls(nodes=nodes, edges=edges, annotations=annotations)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "annotations": [a.to_dict() for a in self.annotations],
            "copiedLink": (
                {"edgeId": self.link_edge_id, "template": self.link_template}
                if self.link_edge_id else None
            ),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Clipboard":
        copied = data.get("copiedLink") or {}
        return cls(
            nodes=tuple(Node.from_dict(n) for n in data.get("nodes") or []),
            edges=tuple(Edge.from_dict(e) for e in data.get("edges") or []),
            annotations=tuple(Annotation.from_dict(a) for a in data.get("annotations") or []),
            link_template=copied.get("template"),
            link_edge_id=copied.get("edgeId"),
        )


@dataclass
class PasteResult:
    node_ids: List[str] = field(default_factory=list)
    edge_ids: List[str] = field(default_factory=list)
    annotation_ids: List[str] = field(default_factory=list)


def _endpoint_ids(edge: Edge) -> List[str]:
    return [edge.source, edge.target] + [leaf.node_id for leaf in edge.esi_leaves]


def _rename_tokens(text: Optional[str], names: Dict[str, str]) -> Optional[str]:
    """Rewrite every whole-token occurrence of the old names in one pass."""
    if not text or not names:
        return text
    alternatives = "|".join(re.escape(old) for old in sorted(names, key=len, reverse=True))
    pattern = re.compile(rf"(^|-)({alternatives})(?=-|$)")
    return pattern.sub(lambda m: m.group(1) + names[m.group(2)], text)


def _remap_lag_id(old: str, old_edge: str, new_edge: str, position: int) -> str:
    match = re.match(rf"^lag-{re.escape(old_edge)}-(\d+)$", old)
    return lag_id(new_edge, int(match.group(1)) if match else position)


def _remap_edge(edge: Edge, new_id: str, ids: Dict[str, str], names: Dict[str, str]) -> Edge:
    return replace(
        edge,
        id=new_id,
        source=ids[edge.source],
        target=ids[edge.target],
        source_name=names.get(edge.source_name, edge.source_name),
        target_name=names.get(edge.target_name, edge.target_name),
        member_links=tuple(replace(m, name=_rename_tokens(m.name, names)) for m in edge.member_links),
        lag_groups=tuple(
            replace(lag, id=_remap_lag_id(lag.id, edge.id, new_id, i + 1), name=_rename_tokens(lag.name, names))
            for i, lag in enumerate(edge.lag_groups)
        ),
        esi_leaves=tuple(
            EsiLeaf(ids[leaf.node_id], names.get(leaf.node_name, leaf.node_name)) for leaf in edge.esi_leaves
        ),
        esi_name=_rename_tokens(edge.esi_name, names),
    )


def paste_clipboard(graph: TopologyGraph, clipboard: Clipboard,
                    offset: Tuple[float, float]) -> PasteResult:
    """
    Insert the clipboard contents into ``graph``.

    Args:
        graph: Target topology
        clipboard: Entities to paste
        offset: Translation applied to every pasted position

    Returns:
        Ids of the pasted nodes, edges and annotations
    """
    dx, dy = offset
    result = PasteResult()
    id_map: Dict[str, str] = {}
    name_map: Dict[str, str] = {}
    taken = graph.names()

    for node in clipboard.nodes:
        new_id = graph.ids.next_id("sim" if node.is_sim else "node")
        new_name = copy_name(node.name, taken)
        taken.append(new_name)
        id_map[node.id] = new_id
        name_map[node.name] = new_name
        graph.add_node(replace(node, id=new_id, name=new_name, position=node.position.offset(dx, dy)))
        result.node_ids.append(new_id)

    for edge in clipboard.edges:
        if not all(i in id_map for i in _endpoint_ids(edge)):
            LOGGER.debug("Not pasting %s: an endpoint was not copied", edge.id)
            continue
        pasted = _remap_edge(edge, graph.ids.next_id("edge"), id_map, name_map)
        graph.add_edge(pasted)
        result.edge_ids.append(pasted.id)

    for annotation in clipboard.annotations:
        pasted = replace(annotation, id=graph.ids.next_id("annotation"),
                         position=annotation.position.offset(dx, dy))
        graph.add_annotation(pasted)
        result.annotation_ids.append(pasted.id)

    return result
