# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for LAG and ESI-LAG bundling."""

import itertools

import pytest

from topobuilder.errors import BundlingError
from topobuilder.network import bundling
from topobuilder.network.graph import TopologyGraph
from topobuilder.network.model import Edge, MemberLink, Node, NodeKind


def _link(edge_id, source, target, names, count=1, source_sim=False):
    members = tuple(
        MemberLink(
            name=f"{names[target]}-{names[source]}-{i + 1}",
            source_interface=f"eth{i + 1}" if source_sim else f"ethernet-1-{i + 1}",
            target_interface=f"ethernet-1-{i + 1}",
            template="edge" if source_sim else "isl",
        )
        for i in range(count)
    )
    return Edge(id=edge_id, source=source, target=target, source_name=names[source],
                target_name=names[target], member_links=members)


@pytest.fixture
def lag_graph():
    """leaf1 -> spine1 with three member links."""
    graph = TopologyGraph()
    names = {"node-1": "leaf1", "node-2": "spine1"}
    for node_id, name in names.items():
        graph.add_node(Node(id=node_id, name=name))
    graph.add_edge(_link("edge-1", "node-1", "node-2", names, count=3))
    return graph


def _esi_graph():
    """testman1 connected to leaf1..leaf4 with one edge each."""
    graph = TopologyGraph()
    names = {"sim-1": "testman1"}
    graph.add_node(Node(id="sim-1", name="testman1", kind=NodeKind.SIM))
    for i in range(1, 5):
        names[f"node-{i}"] = f"leaf{i}"
        graph.add_node(Node(id=f"node-{i}", name=f"leaf{i}"))
        graph.add_edge(_link(f"edge-{i}", "sim-1", f"node-{i}", names, source_sim=True))
    return graph


@pytest.fixture
def esi_graph():
    return _esi_graph()


class TestLocalLag:
    """Test cases for local LAG operations."""

    def test_create_lag(self, lag_graph):
        """Two member links become one named LAG."""
        lag = bundling.create_lag(lag_graph, "edge-1", [0, 1])
        assert lag.id == "lag-edge-1-1"
        assert lag.name == "spine1-leaf1-lag-1"
        assert lag.member_indices == (0, 1)
        assert lag.template == "isl"
        assert lag_graph.edge("edge-1").lag_groups == (lag,)

    def test_create_lag_needs_two_members(self, lag_graph):
        with pytest.raises(BundlingError):
            bundling.create_lag(lag_graph, "edge-1", [0])
        with pytest.raises(BundlingError):
            bundling.create_lag(lag_graph, "edge-1", [1, 1])

    def test_member_cannot_join_second_lag(self, lag_graph):
        """Failed calls leave the graph untouched."""
        bundling.create_lag(lag_graph, "edge-1", [0, 1])
        before = lag_graph.state
        with pytest.raises(BundlingError):
            bundling.create_lag(lag_graph, "edge-1", [1, 2])
        assert lag_graph.state is before

    def test_missing_index_rejected(self, lag_graph):
        with pytest.raises(BundlingError):
            bundling.create_lag(lag_graph, "edge-1", [0, 7])

    def test_add_link_to_lag(self, lag_graph):
        """A new member is cloned from the LAG's last member with fresh ports."""
        lag = bundling.create_lag(lag_graph, "edge-1", [0, 1])
        index = bundling.add_link_to_lag(lag_graph, "edge-1", lag.id)
        edge = lag_graph.edge("edge-1")
        assert index == 3
        assert edge.lag(lag.id).member_indices == (0, 1, 3)
        member = edge.member_links[3]
        assert member.name == "spine1-leaf1-4"
        assert member.source_interface == "ethernet-1-4"
        assert member.target_interface == "ethernet-1-4"
        assert member.template == "isl"

    def test_remove_link_from_lag_dissolves_small_group(self, lag_graph):
        """A LAG left with one member is dissolved but the link stays."""
        lag = bundling.create_lag(lag_graph, "edge-1", [0, 1])
        assert bundling.remove_link_from_lag(lag_graph, "edge-1", lag.id, 0) is None
        edge = lag_graph.edge("edge-1")
        assert edge.lag_groups == ()
        assert len(edge.member_links) == 3

    def test_remove_link_from_lag_keeps_larger_group(self, lag_graph):
        lag = bundling.create_lag(lag_graph, "edge-1", [0, 1, 2])
        updated = bundling.remove_link_from_lag(lag_graph, "edge-1", lag.id, 1)
        assert updated.member_indices == (0, 2)

    def test_remove_link_not_in_lag(self, lag_graph):
        lag = bundling.create_lag(lag_graph, "edge-1", [0, 1])
        with pytest.raises(BundlingError):
            bundling.remove_link_from_lag(lag_graph, "edge-1", lag.id, 2)


class TestEsiLag:
    """Test cases for ESI-LAG operations."""

    def test_create_esi_lag(self, esi_graph):
        """Edges sharing a simulation node merge into one ESI-LAG edge."""
        esi = bundling.create_esi_lag(esi_graph, ["edge-1", "edge-2"])
        assert esi.source == "sim-1"
        assert esi.target == "node-1"
        assert [leaf.node_name for leaf in esi.esi_leaves] == ["leaf1", "leaf2"]
        assert esi.esi_name == "testman1-esi-lag-1"
        assert len(esi.member_links) == 2
        ids = [e.id for e in esi_graph.edges]
        assert "edge-1" not in ids and "edge-2" not in ids
        assert esi.id in ids

    def test_esi_lag_names_are_unique(self, esi_graph):
        bundling.create_esi_lag(esi_graph, ["edge-1", "edge-2"])
        second = bundling.create_esi_lag(esi_graph, ["edge-3", "edge-4"])
        assert second.esi_name == "testman1-esi-lag-2"

    def test_create_esi_lag_size_limits(self, esi_graph):
        with pytest.raises(BundlingError):
            bundling.create_esi_lag(esi_graph, ["edge-1"])
        with pytest.raises(BundlingError):
            bundling.create_esi_lag(esi_graph, ["edge-1", "edge-2", "edge-3", "edge-4", "edge-1"])

    def test_common_node_must_be_simulation_node(self):
        """Topology-only selections cannot form an ESI-LAG."""
        graph = TopologyGraph()
        names = {"node-1": "spine1", "node-2": "leaf1", "node-3": "leaf2"}
        for node_id, name in names.items():
            graph.add_node(Node(id=node_id, name=name))
        graph.add_edge(_link("edge-1", "node-1", "node-2", names))
        graph.add_edge(_link("edge-2", "node-1", "node-3", names))
        with pytest.raises(BundlingError, match="simulation node"):
            bundling.create_esi_lag(graph, ["edge-1", "edge-2"])

    def test_no_common_node(self, esi_graph):
        esi_graph.add_node(Node(id="sim-2", name="testman2", kind=NodeKind.SIM))
        names = {"sim-2": "testman2", "node-3": "leaf3"}
        esi_graph.add_edge(_link("edge-9", "sim-2", "node-3", names, source_sim=True))
        with pytest.raises(BundlingError):
            bundling.create_esi_lag(esi_graph, ["edge-1", "edge-9"])

    def test_merge_into_esi_lag(self, esi_graph):
        esi = bundling.create_esi_lag(esi_graph, ["edge-1", "edge-2"])
        merged = bundling.merge_into_esi_lag(esi_graph, esi.id, ["edge-3", "edge-4"])
        assert len(merged.esi_leaves) == 4
        assert [e.id for e in esi_graph.edges] == [esi.id]

    def test_merge_respects_leaf_cap(self, esi_graph):
        esi = bundling.create_esi_lag(esi_graph, ["edge-1", "edge-2", "edge-3", "edge-4"])
        esi_graph.add_node(Node(id="node-5", name="leaf5"))
        names = {"sim-1": "testman1", "node-5": "leaf5"}
        esi_graph.add_edge(_link("edge-9", "sim-1", "node-5", names, source_sim=True))
        with pytest.raises(BundlingError, match="more than 4"):
            bundling.merge_into_esi_lag(esi_graph, esi.id, ["edge-9"])

    def test_add_and_remove_esi_leaf(self, esi_graph):
        """Leaves can be added up to four and removed down to two."""
        esi = bundling.create_esi_lag(esi_graph, ["edge-1", "edge-2"])
        grown = bundling.add_esi_leaf(esi_graph, esi.id)
        assert len(grown.esi_leaves) == 3
        assert grown.esi_leaves[-1].node_id == "node-2"

        shrunk = bundling.remove_esi_leaf(esi_graph, esi.id, 2)
        assert [leaf.node_id for leaf in shrunk.esi_leaves] == ["node-1", "node-2"]
        assert len(shrunk.member_links) == 2

    def test_remove_esi_leaf_keeps_distinct_nodes(self, esi_graph):
        """Removing a leaf may not leave only one distinct leaf node."""
        esi = bundling.create_esi_lag(esi_graph, ["edge-1", "edge-2"])
        bundling.add_esi_leaf(esi_graph, esi.id)
        with pytest.raises(BundlingError, match="distinct"):
            bundling.remove_esi_leaf(esi_graph, esi.id, 0)

    def test_remove_esi_leaf_keeps_two(self, esi_graph):
        esi = bundling.create_esi_lag(esi_graph, ["edge-1", "edge-2"])
        with pytest.raises(BundlingError):
            bundling.remove_esi_leaf(esi_graph, esi.id, 0)

    def test_find_common_node(self, esi_graph):
        edges = [esi_graph.edge("edge-1"), esi_graph.edge("edge-2")]
        assert bundling.find_common_node(edges) == "sim-1"
        assert bundling.find_common_node([]) is None


class TestEsiCommonNode:
    """The common node does not depend on the order of the selected links."""

    @staticmethod
    def _with_reversed_leaf():
        """_esi_graph plus leaf5, whose link has testman1 as its target."""
        graph = _esi_graph()
        graph.add_node(Node(id="node-5", name="leaf5"))
        names = {"node-5": "leaf5", "sim-1": "testman1"}
        graph.add_edge(_link("edge-5", "node-5", "sim-1", names))
        return graph

    @pytest.mark.parametrize("selection", [
        ["edge-1", "edge-2"],
        ["edge-1", "edge-2", "edge-3"],
        ["edge-2", "edge-4", "edge-5"],
    ])
    def test_create_esi_lag_in_any_order(self, selection):
        for order in itertools.permutations(selection):
            graph = self._with_reversed_leaf()
            assert bundling.find_common_node([graph.edge(e) for e in order]) == "sim-1"
            esi = bundling.create_esi_lag(graph, list(order))
            assert esi.source == "sim-1"
            assert [leaf.node_id for leaf in esi.esi_leaves] == [f"node-{e[-1]}" for e in order]
            assert esi.target == esi.esi_leaves[0].node_id

    def test_selection_without_common_node_rejected_in_any_order(self):
        for order in itertools.permutations(["edge-1", "edge-2", "edge-9"]):
            graph = _esi_graph()
            graph.add_node(Node(id="sim-2", name="testman2", kind=NodeKind.SIM))
            names = {"sim-2": "testman2", "node-3": "leaf3"}
            graph.add_edge(_link("edge-9", "sim-2", "node-3", names, source_sim=True))
            before = graph.state
            assert bundling.find_common_node([graph.edge(e) for e in order]) is None
            with pytest.raises(BundlingError, match="common node"):
                bundling.create_esi_lag(graph, list(order))
            assert graph.state is before

    def test_topology_common_node_rejected_in_any_order(self):
        graph = TopologyGraph()
        names = {"node-1": "spine1", "node-2": "leaf1", "node-3": "leaf2", "node-4": "leaf3"}
        for node_id, name in names.items():
            graph.add_node(Node(id=node_id, name=name))
        for i in (2, 3, 4):
            graph.add_edge(_link(f"edge-{i}", "node-1", f"node-{i}", names))
        for order in itertools.permutations(["edge-2", "edge-3", "edge-4"]):
            assert bundling.find_common_node([graph.edge(e) for e in order]) == "node-1"
            with pytest.raises(BundlingError, match="simulation node"):
                bundling.create_esi_lag(graph, list(order))

    def test_rejected_selection_keeps_edge_counter(self, esi_graph):
        """Only a created ESI-LAG takes an edge id."""
        names = {"sim-1": "testman1", "node-1": "leaf1"}
        esi_graph.replace_edge(_link("edge-1", "sim-1", "node-1", names, count=2, source_sim=True))
        counters = esi_graph.ids.state()
        with pytest.raises(BundlingError, match="more than 4"):
            bundling.create_esi_lag(esi_graph, ["edge-1", "edge-2", "edge-3", "edge-4"])
        assert esi_graph.ids.state() == counters
        assert bundling.create_esi_lag(esi_graph, ["edge-2", "edge-3"]).id == "edge-5"
