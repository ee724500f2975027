# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""
Link bundling: local LAGs and multi-homed ESI-LAGs.

Every function validates its input completely before touching the graph and
commits with a single edge replacement, so a BundlingError always leaves the
graph exactly as it was.
"""

import logging
from collections import Counter
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from ..constants import ESI_LAG_MAX_LEAVES, ESI_LAG_MIN_LEAVES, LAG_MIN_MEMBERS
from ..errors import BundlingError
from .graph import TopologyGraph
from .model import Edge, EsiLeaf, LagGroup, MemberLink
from .naming import esi_lag_name, format_interface, lag_id, lag_name, member_link_name

LOGGER = logging.getLogger(__name__)

ESI_SIZE_ERROR = f"ESI-LAG cannot have more than {ESI_LAG_MAX_LEAVES} links"


def _edge(graph: TopologyGraph, edge_id: str) -> Edge:
    edge = graph.get_edge(edge_id)
    if edge is None:
        raise BundlingError(f"Link {edge_id} not found")
    return edge


def _lag(edge: Edge, lag_id_: str) -> LagGroup:
    lag = edge.lag(lag_id_)
    if lag is None:
        raise BundlingError(f"LAG {lag_id_} not found on link {edge.id}")
    return lag


def _fresh_member_name(edge: Edge, target: str, source: str, start: int) -> str:
    taken = {m.name for m in edge.member_links}
    number = start
    while member_link_name(target, source, number) in taken:
        number += 1
    return member_link_name(target, source, number)


def _fresh_member(graph: TopologyGraph, edge: Edge, prototype: MemberLink,
                  leaf: Optional[EsiLeaf] = None) -> MemberLink:
    target_id = leaf.node_id if leaf else edge.target
    target_name = leaf.node_name if leaf else edge.target_name
    start = graph.link_count_for_pair(edge.source_name, target_name) + 1
    if leaf:
        start = len(edge.member_links) + 1
    return replace(
        prototype,
        name=_fresh_member_name(edge, target_name, edge.source_name, start),
        source_interface=format_interface(graph.is_sim(edge.source), graph.next_port_number(edge.source)),
        target_interface=format_interface(graph.is_sim(target_id), graph.next_port_number(target_id)),
    )


# --------------------------- Local LAG ---------------------------

def create_lag(graph: TopologyGraph, edge_id: str, indices: Sequence[int]) -> LagGroup:
    """
    Group member links of one edge into a new LAG.

    Args:
        graph: Topology to modify
        edge_id: Edge owning the member links
        indices: Member link indices to bundle (at least two)

    Returns:
        The new LagGroup

    Raises:
        BundlingError: If the indices are invalid or already bundled
    """
    edge = _edge(graph, edge_id)
    if edge.is_esi:
        raise BundlingError("Cannot create a LAG on an ESI-LAG link")
    chosen = sorted(set(indices))
    if len(chosen) < LAG_MIN_MEMBERS:
        raise BundlingError(f"A LAG needs at least {LAG_MIN_MEMBERS} member links")
    for index in chosen:
        if not 0 <= index < len(edge.member_links):
            raise BundlingError(f"Member link {index} does not exist on link {edge_id}")
        existing = edge.lag_for_index(index)
        if existing is not None:
            raise BundlingError(f"Member link {index} is already part of LAG {existing.name}")

    taken_names = set(graph.lag_names())
    taken_ids = {lag.id for lag in edge.lag_groups}
    count = len(edge.lag_groups) + 1
    while (lag_name(edge.target_name, edge.source_name, count) in taken_names
           or lag_id(edge_id, count) in taken_ids):
        count += 1

    lag = LagGroup(
        id=lag_id(edge_id, count),
        name=lag_name(edge.target_name, edge.source_name, count),
        member_indices=tuple(chosen),
        template=edge.member_links[chosen[0]].template,
    )
    graph.replace_edge(replace(edge, lag_groups=edge.lag_groups + (lag,)))
    LOGGER.info("Created LAG %s on %s with members %s", lag.name, edge_id, chosen)
    return lag


def add_link_to_lag(graph: TopologyGraph, edge_id: str, lag_id_: str) -> int:
    """
    Append a new member link to a LAG, cloned from its last member.

    Returns:
        Index of the new member link on the edge
    """
    edge = _edge(graph, edge_id)
    lag = _lag(edge, lag_id_)
    prototype = edge.member_links[lag.member_indices[-1]]
    member = _fresh_member(graph, edge, prototype)
    index = len(edge.member_links)
    lag_groups = tuple(
        replace(g, member_indices=g.member_indices + (index,)) if g.id == lag.id else g
        for g in edge.lag_groups
    )
    graph.replace_edge(replace(edge, member_links=edge.member_links + (member,), lag_groups=lag_groups))
    return index


def remove_link_from_lag(graph: TopologyGraph, edge_id: str, lag_id_: str, index: int) -> Optional[LagGroup]:
    """
    Take a member link out of a LAG.

    The member link itself stays on the edge as a standalone link. A LAG left
    with fewer than two members is dissolved.

    Returns:
        The updated LagGroup, or None if it was dissolved
    """
    edge = _edge(graph, edge_id)
    lag = _lag(edge, lag_id_)
    if index not in lag.member_indices:
        raise BundlingError(f"Member link {index} is not part of LAG {lag.name}")
    remaining = tuple(i for i in lag.member_indices if i != index)
    updated: Optional[LagGroup] = None
    if len(remaining) < LAG_MIN_MEMBERS:
        lag_groups = tuple(g for g in edge.lag_groups if g.id != lag.id)
        LOGGER.info("Dissolved LAG %s on %s", lag.name, edge_id)
    else:
        updated = replace(lag, member_indices=remaining)
        lag_groups = tuple(updated if g.id == lag.id else g for g in edge.lag_groups)
    graph.replace_edge(replace(edge, lag_groups=lag_groups))
    return updated


# --------------------------- ESI-LAG ---------------------------

def find_common_node(edges: Sequence[Edge]) -> Optional[str]:
    """Return the single node id incident to every edge, or None."""
    if not edges:
        return None
    counts = Counter(node_id for e in edges for node_id in {e.source, e.target})
    common = [node_id for node_id, count in counts.items() if count == len(edges)]
    return common[0] if len(common) == 1 else None


def _oriented(edge: Edge, common: str, graph: TopologyGraph) -> List[Tuple[EsiLeaf, MemberLink]]:
    """Member links of ``edge`` with ``common`` as their source side."""
    flipped = edge.source != common
    leaf_id = edge.source if flipped else edge.target
    leaf = EsiLeaf(leaf_id, graph.node(leaf_id).name)
    return [(leaf, m.swapped() if flipped else m) for m in edge.member_links]


def _check_esi_inputs(graph: TopologyGraph, edge_ids: Sequence[str]) -> List[Edge]:
    if len(set(edge_ids)) != len(edge_ids):
        raise BundlingError("Selected links must be distinct")
    edges = [_edge(graph, edge_id) for edge_id in edge_ids]
    if any(e.is_esi for e in edges):
        raise BundlingError("Selected links are already part of an ESI-LAG")
    return edges


def _common_sim_node(graph: TopologyGraph, edges: Sequence[Edge]) -> str:
    common = find_common_node(edges)
    if common is None:
        raise BundlingError("ESI-LAG links must share exactly one common node")
    if not graph.is_sim(common):
        raise BundlingError("ESI-LAG common node must be a simulation node")
    return common


def create_esi_lag(graph: TopologyGraph, edge_ids: Sequence[str]) -> Edge:
    """
    Merge 2-4 edges that share one simulation node into an ESI-LAG.

    The source edges are removed and replaced by one edge whose member links
    are the originals' member links in selection order, one leaf per member.

    Returns:
        The new ESI-LAG edge

    Raises:
        BundlingError: If the selection violates the ESI-LAG rules
    """
    if not ESI_LAG_MIN_LEAVES <= len(edge_ids) <= ESI_LAG_MAX_LEAVES:
        raise BundlingError(
            f"ESI-LAG requires between {ESI_LAG_MIN_LEAVES} and {ESI_LAG_MAX_LEAVES} links"
        )
    edges = _check_esi_inputs(graph, edge_ids)
    common = _common_sim_node(graph, edges)

    pairs = [pair for e in edges for pair in _oriented(e, common, graph)]
    if len(pairs) > ESI_LAG_MAX_LEAVES:
        raise BundlingError(ESI_SIZE_ERROR)

    common_name = graph.node(common).name
    taken = set(graph.esi_names())
    count = 1
    while esi_lag_name(common_name, count) in taken:
        count += 1

    first = edges[0]
    handles = (first.source_handle, first.target_handle) if first.source == common else (None, None)
    leaves = tuple(leaf for leaf, _ in pairs)
    esi = Edge(
        id="",
        source=common,
        target=leaves[0].node_id,
        source_name=common_name,
        target_name=leaves[0].node_name,
        member_links=tuple(m for _, m in pairs),
        esi_leaves=leaves,
        esi_name=esi_lag_name(common_name, count),
        source_handle=handles[0],
        target_handle=handles[1],
    )
    # The id is only taken once the edge has passed validation.
    esi = replace(esi, id=graph.ids.next_id("edge"))
    graph.replace_edges(edge_ids, [esi])
    LOGGER.info("Created ESI-LAG %s from %s", esi.esi_name, list(edge_ids))
    return esi


def merge_into_esi_lag(graph: TopologyGraph, esi_edge_id: str, edge_ids: Sequence[str]) -> Edge:
    """Fold further edges into an existing ESI-LAG (up to the leaf cap)."""
    esi = _edge(graph, esi_edge_id)
    if not esi.is_esi:
        raise BundlingError(f"Link {esi_edge_id} is not an ESI-LAG")
    if not edge_ids:
        raise BundlingError("No links selected to merge")
    edges = _check_esi_inputs(graph, edge_ids)
    common = esi.source
    for edge in edges:
        if common not in (edge.source, edge.target):
            raise BundlingError("Merged links must share the ESI-LAG's common node")
    pairs = [pair for e in edges for pair in _oriented(e, common, graph)]
    if len(esi.esi_leaves) + len(pairs) > ESI_LAG_MAX_LEAVES:
        raise BundlingError(ESI_SIZE_ERROR)

    merged = replace(
        esi,
        esi_leaves=esi.esi_leaves + tuple(leaf for leaf, _ in pairs),
        member_links=esi.member_links + tuple(m for _, m in pairs),
    )
    graph.replace_edges(list(edge_ids) + [esi.id], [merged])
    return merged


def add_esi_leaf(graph: TopologyGraph, esi_edge_id: str) -> Edge:
    """Add a leaf to an ESI-LAG by duplicating its last leaf."""
    esi = _edge(graph, esi_edge_id)
    if not esi.is_esi:
        raise BundlingError(f"Link {esi_edge_id} is not an ESI-LAG")
    if len(esi.esi_leaves) >= ESI_LAG_MAX_LEAVES:
        raise BundlingError(ESI_SIZE_ERROR)
    leaf = esi.esi_leaves[-1]
    member = _fresh_member(graph, esi, esi.member_links[-1], leaf=leaf)
    updated = replace(esi, esi_leaves=esi.esi_leaves + (leaf,), member_links=esi.member_links + (member,))
    graph.replace_edge(updated)
    return updated


def remove_esi_leaf(graph: TopologyGraph, esi_edge_id: str, index: int) -> Edge:
    """Drop one leaf (and its member link); an ESI-LAG keeps at least two."""
    esi = _edge(graph, esi_edge_id)
    if not esi.is_esi:
        raise BundlingError(f"Link {esi_edge_id} is not an ESI-LAG")
    if not 0 <= index < len(esi.esi_leaves):
        raise BundlingError(f"ESI-LAG leaf {index} does not exist")
    if len(esi.esi_leaves) <= ESI_LAG_MIN_LEAVES:
        raise BundlingError(f"ESI-LAG must keep at least {ESI_LAG_MIN_LEAVES} leaves")
    leaves = esi.esi_leaves[:index] + esi.esi_leaves[index + 1:]
    if len({leaf.node_id for leaf in leaves}) < 2:
        raise BundlingError("ESI-LAG must keep at least two distinct leaf nodes")
    updated = replace(
        esi,
        target=leaves[0].node_id,
        target_name=leaves[0].node_name,
        esi_leaves=leaves,
        member_links=esi.member_links[:index] + esi.member_links[index + 1:],
    )
    graph.replace_edge(updated)
    return updated
