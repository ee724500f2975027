# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""
Topology graph container.

This module provides the TopologyGraph class that owns the current
TopologyState together with the id allocator, and keeps the cross-entity
invariants intact on every update (name caches on edges, cascaded deletes,
token-boundary renames).
"""

import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional, Tuple

import networkx as nx

from .model import Annotation, Edge, EsiLeaf, Node, NodeKind, TopologyState
from .naming import IdAllocator, port_number, replace_name_token

LOGGER = logging.getLogger(__name__)


class TopologyGraph:
    """
    Mutable holder of an immutable TopologyState.

    Nodes are keyed by id; names are unique across topology and simulation
    nodes. Edges reference nodes by id and cache the node names used when the
    graph is written out as a document.
    """

    def __init__(self, state: Optional[TopologyState] = None,
                 ids: Optional[IdAllocator] = None):
        """
        Initialize the graph.

        Args:
            state: Initial state (empty topology if None)
            ids: Id allocator shared with converters and the editor
        """
        self.state = state or TopologyState()
        self.ids = ids or IdAllocator()
        self.ids.observe(self.state.all_ids())

    # --------------------------- Lookup ---------------------------

    @property
    def nodes(self) -> Tuple[Node, ...]:
        return self.state.nodes

    @property
    def edges(self) -> Tuple[Edge, ...]:
        return self.state.edges

    @property
    def annotations(self) -> Tuple[Annotation, ...]:
        return self.state.annotations

    def node(self, node_id: str) -> Node:
        for node in self.state.nodes:
            if node.id == node_id:
                return node
        raise ValueError(f"Node {node_id} not found")

    def get_node(self, node_id: str) -> Optional[Node]:
        for node in self.state.nodes:
            if node.id == node_id:
                return node
        return None

    def node_by_name(self, name: str) -> Optional[Node]:
        for node in self.state.nodes:
            if node.name == name:
                return node
        return None

    def edge(self, edge_id: str) -> Edge:
        for edge in self.state.edges:
            if edge.id == edge_id:
                return edge
        raise ValueError(f"Edge {edge_id} not found")

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        for edge in self.state.edges:
            if edge.id == edge_id:
                return edge
        return None

    def annotation(self, annotation_id: str) -> Annotation:
        for annotation in self.state.annotations:
            if annotation.id == annotation_id:
                return annotation
        raise ValueError(f"Annotation {annotation_id} not found")

    def names(self, exclude: Optional[str] = None) -> List[str]:
        """All node names, optionally without the node whose id is ``exclude``."""
        return [n.name for n in self.state.nodes if n.id != exclude]

    def edges_for_node(self, node_id: str) -> List[Edge]:
        return [e for e in self.state.edges if e.touches(node_id)]

    def is_sim(self, node_id: str) -> bool:
        node = self.get_node(node_id)
        return node is not None and node.is_sim

    def next_port_number(self, node_id: str) -> int:
        """One more than the highest port number used on ``node_id`` by any edge."""
        highest = 0
        for edge in self.state.edges:
            for interface in edge.interfaces_for(node_id):
                highest = max(highest, port_number(interface))
        return highest + 1

    def link_count_for_pair(self, first: str, second: str) -> int:
        """Number of member links on edges joining the two node names."""
        pair = {first, second}
        return sum(
            len(e.member_links)
            for e in self.state.edges
            if not e.is_esi and {e.source_name, e.target_name} == pair
        )

    def lag_names(self) -> List[str]:
        return [lag.name for e in self.state.edges for lag in e.lag_groups]

    def esi_names(self) -> List[str]:
        return [e.esi_name for e in self.state.edges if e.esi_name]

    # --------------------------- Whole-state updates ---------------------------

    def replace_state(self, state: TopologyState) -> None:
        self.state = state
        self.ids.observe(state.all_ids())

    def update(self, **changes: Any) -> None:
        self.state = self.state.replace(**changes)

    # --------------------------- Nodes ---------------------------

    def add_node(self, node: Node) -> Node:
        if self.get_node(node.id) is not None:
            raise ValueError(f"Node {node.id} already exists")
        if self.node_by_name(node.name) is not None:
            raise ValueError(f'Node name "{node.name}" already exists')
        self.state = self.state.replace(nodes=self.state.nodes + (node,))
        self.ids.observe([node.id])
        return node

    def update_node(self, node_id: str, **changes: Any) -> Node:
        """
        Replace fields of a node.

        A changed ``name`` is propagated to every edge referencing the node.
        """
        old = self.node(node_id)
        new = replace(old, **changes)
        nodes = tuple(new if n.id == node_id else n for n in self.state.nodes)
        self.state = self.state.replace(nodes=nodes)
        if new.name != old.name:
            self._cascade_rename(node_id, old.name, new.name)
        return new

    def move_node(self, node_id: str, x: float, y: float) -> Node:
        old = self.node(node_id)
        return self.update_node(node_id, position=replace(old.position, x=x, y=y))

    def rename_node(self, node_id: str, new_name: str) -> Node:
        return self.update_node(node_id, name=new_name)

    def _cascade_rename(self, node_id: str, old: str, new: str) -> None:
        edges = []
        for edge in self.state.edges:
            if not edge.touches(node_id):
                edges.append(edge)
                continue
            member_links = tuple(
                replace(m, name=replace_name_token(m.name, old, new)) for m in edge.member_links
            )
            lag_groups = tuple(
                replace(lag, name=replace_name_token(lag.name, old, new)) for lag in edge.lag_groups
            )
            esi_leaves = tuple(
                EsiLeaf(leaf.node_id, new) if leaf.node_id == node_id else leaf
                for leaf in edge.esi_leaves
            )
            edges.append(replace(
                edge,
                source_name=new if edge.source == node_id else edge.source_name,
                target_name=new if edge.target == node_id else edge.target_name,
                member_links=member_links,
                lag_groups=lag_groups,
                esi_leaves=esi_leaves,
                esi_name=replace_name_token(edge.esi_name, old, new),
            ))
        self.state = self.state.replace(edges=tuple(edges))
        LOGGER.debug("Renamed node %s: %s -> %s", node_id, old, new)

    def remove_node(self, node_id: str) -> Node:
        """
        Remove a node and every edge that depends on it.

        ESI-LAG edges where the node is only one of several leaves lose that
        leaf; if fewer than two leaves would remain the edge is removed too.
        """
        node = self.node(node_id)
        edges = []
        for edge in self.state.edges:
            if edge.source == node_id:
                continue
            if edge.is_esi and edge.touches(node_id):
                shrunk = self._drop_esi_leaves(edge, node_id)
                if shrunk is not None:
                    edges.append(shrunk)
                continue
            if edge.target == node_id:
                continue
            edges.append(edge)
        self.state = self.state.replace(
            nodes=tuple(n for n in self.state.nodes if n.id != node_id),
            edges=tuple(edges),
        )
        return node

    @staticmethod
    def _drop_esi_leaves(edge: Edge, node_id: str) -> Optional[Edge]:
        kept = [(leaf, m) for leaf, m in zip(edge.esi_leaves, edge.member_links) if leaf.node_id != node_id]
        if len({leaf.node_id for leaf, _ in kept}) < 2:
            return None
        leaves = tuple(leaf for leaf, _ in kept)
        return replace(
            edge,
            target=leaves[0].node_id,
            target_name=leaves[0].node_name,
            esi_leaves=leaves,
            member_links=tuple(m for _, m in kept),
        )

    # --------------------------- Edges ---------------------------

    def add_edge(self, edge: Edge) -> Edge:
        if self.get_edge(edge.id) is not None:
            raise ValueError(f"Edge {edge.id} already exists")
        for endpoint in [edge.source, edge.target] + [leaf.node_id for leaf in edge.esi_leaves]:
            self.node(endpoint)
        self.state = self.state.replace(edges=self.state.edges + (edge,))
        self.ids.observe([edge.id])
        return edge

    def replace_edge(self, edge: Edge) -> Edge:
        self.edge(edge.id)
        self.state = self.state.replace(
            edges=tuple(edge if e.id == edge.id else e for e in self.state.edges)
        )
        return edge

    def remove_edge(self, edge_id: str) -> Edge:
        edge = self.edge(edge_id)
        self.state = self.state.replace(
            edges=tuple(e for e in self.state.edges if e.id != edge_id)
        )
        return edge

    def replace_edges(self, removed: Iterable[str], added: Iterable[Edge]) -> None:
        """Swap a set of edges for new ones in a single state update."""
        removed = set(removed)
        edges = tuple(e for e in self.state.edges if e.id not in removed)
        self.state = self.state.replace(edges=edges + tuple(added))
        self.ids.observe([e.id for e in self.state.edges])

    # --------------------------- Annotations ---------------------------

    def add_annotation(self, annotation: Annotation) -> Annotation:
        self.state = self.state.replace(annotations=self.state.annotations + (annotation,))
        self.ids.observe([annotation.id])
        return annotation

    def update_annotation(self, annotation_id: str, **changes: Any) -> Annotation:
        new = replace(self.annotation(annotation_id), **changes)
        self.state = self.state.replace(
            annotations=tuple(new if a.id == annotation_id else a for a in self.state.annotations)
        )
        return new

    def remove_annotation(self, annotation_id: str) -> Annotation:
        annotation = self.annotation(annotation_id)
        self.state = self.state.replace(
            annotations=tuple(a for a in self.state.annotations if a.id != annotation_id)
        )
        return annotation

    # --------------------------- Views ---------------------------

    def to_networkx(self) -> nx.MultiGraph:
        """
        Build a NetworkX multigraph with one edge per member link.

        Returns:
            MultiGraph keyed by node name; edge attributes carry the edge id,
            member link name and bundle name where there is one
        """
        graph = nx.MultiGraph(name=self.state.name)
        for node in self.state.nodes:
            graph.add_node(node.name, id=node.id, kind=node.kind.value,
                           template=node.template, x=node.position.x, y=node.position.y)
        for edge in self.state.edges:
            if edge.is_esi:
                for leaf, member in zip(edge.esi_leaves, edge.member_links):
                    graph.add_edge(edge.source_name, leaf.node_name, key=member.name,
                                   edge_id=edge.id, bundle=edge.esi_name, bundle_type="esilag")
                continue
            for index, member in enumerate(edge.member_links):
                lag = edge.lag_for_index(index)
                graph.add_edge(edge.source_name, edge.target_name, key=member.name,
                               edge_id=edge.id, bundle=lag.name if lag else None,
                               bundle_type="lag" if lag else None)
        return graph

    def summary(self) -> Dict[str, int]:
        edges = self.state.edges
        return {
            "nodes": sum(1 for n in self.state.nodes if n.kind is NodeKind.NODE),
            "sim_nodes": sum(1 for n in self.state.nodes if n.kind is NodeKind.SIM),
            "edges": len(edges),
            "member_links": sum(len(e.member_links) for e in edges),
            "lags": sum(len(e.lag_groups) for e in edges),
            "esi_lags": sum(1 for e in edges if e.is_esi),
            "annotations": len(self.state.annotations),
        }

    def __len__(self) -> int:
        return len(self.state.nodes)

    def __contains__(self, node_id: str) -> bool:
        return self.get_node(node_id) is not None
