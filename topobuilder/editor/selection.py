# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Ephemeral selection state of the editor."""

from dataclasses import dataclass, field
from typing import List, Optional

from ..network.model import TopologyState


@dataclass
class Selection:
    """
    What the user currently has selected.

    Member-link indices and the LAG id are scoped to ``member_edge_id``.
    Selection is never part of an undo checkpoint.
    """
    node_ids: List[str] = field(default_factory=list)
    edge_ids: List[str] = field(default_factory=list)
    member_edge_id: Optional[str] = None
    member_indices: List[int] = field(default_factory=list)
    lag_id: Optional[str] = None
    annotation_ids: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.node_ids or self.edge_ids or self.member_indices
                    or self.lag_id or self.annotation_ids)

    def clear(self) -> None:
        self.node_ids = []
        self.edge_ids = []
        self.annotation_ids = []
        self.clear_members()

    def clear_members(self) -> None:
        self.member_edge_id = None
        self.member_indices = []
        self.lag_id = None

    def select_node(self, node_id: Optional[str], add: bool = False) -> None:
        """Select a node; with ``add`` the node is toggled in the current selection."""
        if node_id is None:
            self.clear()
            return
        if not add:
            self.clear()
            self.node_ids = [node_id]
            return
        if node_id in self.node_ids:
            self.node_ids.remove(node_id)
        else:
            self.node_ids.append(node_id)
        self.lag_id = None

    def select_edge(self, edge_id: Optional[str], add: bool = False) -> None:
        if edge_id is None:
            self.edge_ids = []
            self.clear_members()
            return
        if not add:
            self.clear()
            self.edge_ids = [edge_id]
            return
        if edge_id in self.edge_ids:
            self.edge_ids.remove(edge_id)
        else:
            self.edge_ids.append(edge_id)

    def select_member_link(self, edge_id: str, index: Optional[int], add: bool = False) -> None:
        if self.member_edge_id != edge_id or not add:
            self.member_indices = []
        self.member_edge_id = edge_id
        self.lag_id = None
        if edge_id not in self.edge_ids:
            self.edge_ids = [edge_id]
        if index is None:
            self.member_indices = []
        elif index in self.member_indices:
            self.member_indices.remove(index)
        else:
            self.member_indices.append(index)

    def select_lag(self, edge_id: str, lag_id: Optional[str]) -> None:
        self.member_edge_id = edge_id
        self.member_indices = []
        self.lag_id = lag_id
        self.edge_ids = [edge_id]

    def select_annotation(self, annotation_id: str, add: bool = False) -> None:
        if not add:
            self.clear()
            self.annotation_ids = [annotation_id]
        elif annotation_id in self.annotation_ids:
            self.annotation_ids.remove(annotation_id)
        else:
            self.annotation_ids.append(annotation_id)

    def select_many(self, node_ids: List[str], edge_ids: List[str],
                    annotation_ids: Optional[List[str]] = None) -> None:
        self.clear()
        self.node_ids = list(node_ids)
        self.edge_ids = list(edge_ids)
        self.annotation_ids = list(annotation_ids or [])

    def prune(self, state: TopologyState) -> None:
        """Forget entities that no longer exist in ``state``."""
        node_ids = {n.id for n in state.nodes}
        edges = {e.id: e for e in state.edges}
        annotation_ids = {a.id for a in state.annotations}
        self.node_ids = [i for i in self.node_ids if i in node_ids]
        self.edge_ids = [i for i in self.edge_ids if i in edges]
        self.annotation_ids = [i for i in self.annotation_ids if i in annotation_ids]
        edge = edges.get(self.member_edge_id) if self.member_edge_id else None
        if edge is None:
            self.clear_members()
            return
        self.member_indices = [i for i in self.member_indices if i < len(edge.member_links)]
        if self.lag_id and edge.lag(self.lag_id) is None:
            self.lag_id = None
