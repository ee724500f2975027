# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Tests for the TopologyEditor mutation facade."""

import pytest
import yaml

from topobuilder.config import EditorConfig
from topobuilder.editor import Clipboard, TopologyEditor
from topobuilder.editor.editor import to_source_handle, to_target_handle
from topobuilder.network.fabric import FabricDefinition, FabricTier
from topobuilder.network.model import EdgeType, Position


@pytest.fixture
def editor():
    return TopologyEditor()


@pytest.fixture
def fabric(editor):
    """leaf1 and spine1 joined by one link."""
    leaf1 = editor.add_node((0, 0))
    spine1 = editor.add_node((0, 200), "spine")
    edge = editor.add_edge(leaf1, spine1)
    return editor, leaf1, spine1, edge


class TestHandles:
    """Test cases for handle normalization."""

    def test_handle_conversion(self):
        assert to_source_handle("left-target") == "left"
        assert to_source_handle("left") == "left"
        assert to_target_handle("left") == "left-target"
        assert to_target_handle("left-target") == "left-target"
        assert to_source_handle(None) is None
        assert to_target_handle("") is None


class TestNodes:
    """Test cases for node operations."""

    def test_add_node_uses_first_template_and_prefix(self, editor):
        """New nodes are named from the template's name prefix."""
        node_id = editor.add_node((10, 20))
        node = editor.graph.node(node_id)
        assert node.name == "leaf1"
        assert node.template == "leaf"
        assert node.position == Position(10, 20)
        assert editor.selection.node_ids == [node_id]
        assert editor.add_node((0, 0)) and editor.state.nodes[-1].name == "leaf2"

    def test_add_node_unknown_template(self, editor):
        assert editor.add_node((0, 0), "nope") is None
        assert editor.error == "Node template nope not found"
        assert editor.state.nodes == ()

    def test_sim_node_prefix_falls_back_to_type(self, editor):
        """Without a name prefix the simulation type is used."""
        testman = editor.add_sim_node((0, 0))
        linux = editor.add_sim_node((0, 0), "multitool")
        assert editor.graph.node(testman).name == "testman1"
        assert editor.graph.node(linux).name == "linux1"
        assert editor.graph.node(linux).is_sim

    def test_template_switch_renames_generated_name(self, editor):
        leaf = editor.add_node((0, 0))
        editor.add_node((0, 0), "spine")
        assert editor.update_node(leaf, template="spine")
        node = editor.graph.node(leaf)
        assert node.template == "spine"
        assert node.name == "spine2"

    def test_template_switch_keeps_custom_name(self, editor):
        leaf = editor.add_node((0, 0))
        editor.rename_node(leaf, "border")
        editor.update_node(leaf, template="spine")
        assert editor.graph.node(leaf).name == "border"

    def test_invalid_name_is_rejected(self, editor):
        """Failed updates set ``error`` and record no checkpoint."""
        leaf = editor.add_node((0, 0))
        depth = editor.history.undo_depth
        assert not editor.rename_node(leaf, "Bad_Name")
        assert editor.error.startswith("Invalid node name:")
        assert editor.graph.node(leaf).name == "leaf1"
        assert editor.history.undo_depth == depth

    def test_duplicate_name_is_rejected(self, editor):
        editor.add_node((0, 0))
        second = editor.add_node((0, 0))
        assert not editor.rename_node(second, "leaf1")
        assert "already exists" in editor.error

    def test_sim_node_name_message(self, editor):
        sim = editor.add_sim_node((0, 0))
        assert not editor.rename_node(sim, "-x")
        assert editor.error.startswith("Invalid simNode name:")

    def test_unknown_field_is_rejected(self, editor):
        leaf = editor.add_node((0, 0))
        assert not editor.update_node(leaf, colour="red")
        assert "Unknown node field" in editor.error

    def test_move_and_delete_node(self, fabric):
        editor, leaf1, spine1, _ = fabric
        assert editor.move_node(leaf1, 5, 6)
        assert editor.graph.node(leaf1).position == Position(5, 6)
        assert editor.delete_node(spine1)
        assert editor.state.edges == ()
        assert editor.selection.node_ids == []


class TestEdges:
    """Test cases for edge and member-link operations."""

    def test_add_edge_creates_member_link(self, fabric):
        editor, leaf1, spine1, edge_id = fabric
        edge = editor.graph.edge(edge_id)
        assert (edge.source, edge.target) == (leaf1, spine1)
        member = edge.member_links[0]
        assert member.name == "spine1-leaf1-1"
        assert member.template == "isl"
        assert (member.source_interface, member.target_interface) == ("ethernet-1-1", "ethernet-1-1")

    def test_connection_rules(self, editor):
        leaf = editor.add_node((0, 0))
        sim1 = editor.add_sim_node((0, 0))
        sim2 = editor.add_sim_node((0, 0))
        assert editor.add_edge(leaf, leaf) is None
        assert editor.error == "Cannot connect a node to itself"
        assert editor.add_edge(sim1, sim2) is None
        assert editor.error == "Cannot connect two simulation nodes"
        assert editor.add_edge(leaf, "node-404") is None

    def test_sim_node_is_always_source(self, editor):
        """Connecting a device to a sim node flips the edge and converts handles."""
        leaf = editor.add_node((0, 0))
        sim = editor.add_sim_node((0, 0))
        edge_id = editor.add_edge(leaf, sim, "bottom", "top-target")
        edge = editor.graph.edge(edge_id)
        assert edge.source == sim
        assert edge.source_handle == "top"
        assert edge.target_handle == "bottom-target"
        member = edge.member_links[0]
        assert member.template == "edge"
        assert member.source_interface == "eth1"
        assert member.name == "leaf1-testman1-1"

    def test_reversed_reconnection_adds_member(self, editor):
        """Dragging the same connection back the other way extends the edge."""
        leaf = editor.add_node((0, 0))
        spine = editor.add_node((0, 200), "spine")
        first = editor.add_edge(leaf, spine, "bottom", "top-target")
        second = editor.add_edge(spine, leaf, "top", "bottom-target")
        assert second == first
        assert len(editor.state.edges) == 1
        edge = editor.graph.edge(first)
        assert len(edge.member_links) == 2
        assert edge.member_links[1].source_interface == "ethernet-1-2"
        assert editor.selection.member_indices == [1]

    def test_different_handles_make_parallel_edge(self, editor):
        leaf = editor.add_node((0, 0))
        spine = editor.add_node((0, 200), "spine")
        first = editor.add_edge(leaf, spine, "bottom", "top-target")
        second = editor.add_edge(leaf, spine, "right", "left-target")
        assert first != second
        assert editor.graph.edge(second).member_links[0].name == "spine1-leaf1-2"

    def test_add_member_link_allocates_ports(self, fabric):
        editor, _, _, edge_id = fabric
        index = editor.add_member_link(edge_id)
        member = editor.graph.edge(edge_id).member_links[index]
        assert index == 1
        assert member.name == "spine1-leaf1-2"
        assert member.source_interface == "ethernet-1-2"

    def test_update_member_link(self, fabric):
        editor, _, _, edge_id = fabric
        assert editor.update_member_link(edge_id, 0, name="uplink", labels={"speed": 100})
        member = editor.graph.edge(edge_id).member_links[0]
        assert member.name == "uplink"
        assert member.labels == {"speed": "100"}
        assert not editor.update_member_link(edge_id, 0, name="UP")
        assert editor.error.startswith("Invalid link name:")
        assert not editor.update_member_link(edge_id, 5, name="x")

    def test_delete_member_link_shifts_lag_indices(self, fabric):
        """LAG indices follow removals; small LAGs dissolve; the last removal drops the edge."""
        editor, _, _, edge_id = fabric
        editor.add_member_link(edge_id)
        editor.add_member_link(edge_id)
        lag_id = editor.create_lag(edge_id, [1, 2])

        assert editor.delete_member_link(edge_id, 0)
        assert editor.graph.edge(edge_id).lag(lag_id).member_indices == (0, 1)

        assert editor.delete_member_link(edge_id, 0)
        edge = editor.graph.edge(edge_id)
        assert edge.lag_groups == ()
        assert len(edge.member_links) == 1

        assert editor.delete_member_link(edge_id, 0)
        assert editor.graph.get_edge(edge_id) is None

    def test_update_edge_esi_name_requires_esi(self, fabric):
        editor, _, _, edge_id = fabric
        assert not editor.update_edge(edge_id, esi_name="x")
        assert "not an ESI-LAG" in editor.error


class TestBundles:
    """Test cases for LAG and ESI-LAG operations through the editor."""

    def test_create_lag_selects_it(self, fabric):
        editor, _, _, edge_id = fabric
        editor.add_member_link(edge_id)
        lag_id = editor.create_lag(edge_id, [0, 1])
        assert lag_id == f"lag-{edge_id}-1"
        assert editor.selection.lag_id == lag_id
        assert editor.graph.edge(edge_id).edge_type is EdgeType.LAG

    def test_create_lag_failure(self, fabric):
        editor, _, _, edge_id = fabric
        assert editor.create_lag(edge_id, [0]) is None
        assert "at least 2" in editor.error

    def test_lag_membership_changes(self, fabric):
        editor, _, _, edge_id = fabric
        editor.add_member_link(edge_id)
        lag_id = editor.create_lag(edge_id, [0, 1])
        index = editor.add_link_to_lag(edge_id, lag_id)
        assert index == 2
        assert editor.remove_link_from_lag(edge_id, lag_id, 0)
        assert editor.graph.edge(edge_id).lag(lag_id).member_indices == (1, 2)

    def test_update_lag_name_must_be_unique(self, editor):
        leaf1 = editor.add_node((0, 0))
        leaf2 = editor.add_node((0, 0))
        spine = editor.add_node((0, 0), "spine")
        first = editor.add_edge(leaf1, spine)
        second = editor.add_edge(leaf2, spine)
        editor.add_member_link(first)
        editor.add_member_link(second)
        editor.create_lag(first, [0, 1])
        lag_id = editor.create_lag(second, [0, 1])
        assert editor.update_lag(second, lag_id, name="bond0")
        assert not editor.update_lag(second, lag_id, name="spine1-leaf1-lag-1")
        assert editor.error.startswith("Invalid LAG name:")

    def test_esi_lag_lifecycle(self, editor):
        sim = editor.add_sim_node((0, 0))
        leaves = [editor.add_node((i * 100, 200)) for i in range(3)]
        edges = [editor.add_edge(sim, leaf) for leaf in leaves]

        esi_id = editor.create_esi_lag(edges[:2])
        assert esi_id is not None
        assert editor.selection.edge_ids == [esi_id]
        assert editor.merge_into_esi_lag(esi_id, [edges[2]])
        assert len(editor.graph.edge(esi_id).esi_leaves) == 3

        assert editor.delete_member_link(esi_id, 0)
        esi = editor.graph.edge(esi_id)
        assert [leaf.node_name for leaf in esi.esi_leaves] == ["leaf2", "leaf3"]

        assert editor.update_edge(esi_id, esi_name="dual-homed")
        assert editor.graph.edge(esi_id).esi_name == "dual-homed"

    def test_delete_member_of_two_leaf_esi_removes_edge(self, editor):
        """An ESI-LAG left with one leaf is removed, not kept."""
        sim = editor.add_sim_node((0, 0))
        edges = [editor.add_edge(sim, editor.add_node((0, 0))) for _ in range(2)]
        esi_id = editor.create_esi_lag(edges)
        assert editor.delete_member_link(esi_id, 1)
        assert editor.state.edges == ()
        assert editor.undo()
        assert editor.graph.edge(esi_id).edge_type is EdgeType.ESILAG

    def test_esi_lag_needs_sim_node(self, editor):
        spine = editor.add_node((0, 0), "spine")
        a = editor.add_node((0, 0))
        b = editor.add_node((0, 0))
        edges = [editor.add_edge(a, spine), editor.add_edge(b, spine)]
        counters = editor.ids.state()
        assert editor.create_esi_lag(edges) is None
        assert "simulation node" in editor.error
        assert len(editor.state.edges) == 2
        assert editor.ids.state() == counters

    def test_add_member_link_rejected_on_esi(self, editor):
        sim = editor.add_sim_node((0, 0))
        edges = [editor.add_edge(sim, editor.add_node((0, 0))) for _ in range(2)]
        esi_id = editor.create_esi_lag(edges)
        assert editor.add_member_link(esi_id) is None
        assert editor.add_esi_leaf(esi_id)
        assert editor.remove_esi_leaf(esi_id, 2)


class TestTemplates:
    """Test cases for template management."""

    def test_add_template_validates_name(self, editor):
        assert editor.add_node_template({"name": "border", "platform": "7750 SR-1"})
        assert not editor.add_node_template({"name": "border"})
        assert not editor.add_link_template({"name": "Bad"})
        assert editor.error.startswith("Invalid template name:")

    def test_rename_link_template_cascades(self, fabric):
        """Member links follow a link template rename."""
        editor, _, _, edge_id = fabric
        assert editor.update_link_template("isl", name="fabric", speed="100G")
        assert editor.graph.edge(edge_id).member_links[0].template == "fabric"
        template = next(t for t in editor.state.link_templates if t.name == "fabric")
        assert template.speed == "100G"

    def test_rename_node_template_cascades(self, fabric):
        editor, leaf1, _, _ = fabric
        assert editor.update_node_template("leaf", name="tor")
        assert editor.graph.node(leaf1).template == "tor"

    def test_rename_sim_template_cascades(self, editor):
        sim = editor.add_sim_node((0, 0))
        old = editor.graph.node(sim).template
        assert editor.update_sim_node_template(old, name="tester")
        assert editor.graph.node(sim).template == "tester"
        assert old not in [t.name for t in editor.state.sim_node_templates]

    def test_sim_template_crud(self, editor):
        assert editor.add_sim_node_template({"name": "iperf", "type": "Linux"})
        assert editor.update_sim_node_template("iperf", image="iperf:latest")
        assert editor.delete_sim_node_template("iperf")
        assert not editor.delete_sim_node_template("iperf")
        assert "not found" in editor.error

    def test_delete_node_template(self, editor):
        assert editor.delete_node_template("spine")
        assert [t.name for t in editor.state.node_templates] == ["leaf"]


class TestAnnotations:
    """Test cases for drawing annotations."""

    def test_annotation_lifecycle(self, editor):
        annotation_id = editor.add_annotation((10, 20), text="rack A")
        assert annotation_id == "annotation-1"
        assert editor.update_annotation(annotation_id, text="rack B", style={"color": "red"})
        annotation = editor.graph.annotation(annotation_id)
        assert annotation.text == "rack B"
        assert annotation.style == {"color": "red"}
        assert editor.delete_annotation(annotation_id)
        assert editor.state.annotations == ()

    def test_shape_annotation(self, editor):
        annotation_id = editor.add_annotation((0, 0), kind="shape", shape="rectangle", width=100, height=50)
        annotation = editor.graph.annotation(annotation_id)
        assert annotation.kind == "shape"
        assert annotation.width == 100


class TestClipboard:
    """Test cases for copy and paste."""

    def test_copy_paste_nodes_with_internal_edge(self, fabric):
        """Pasted nodes get copy names and the edge between them follows."""
        editor, leaf1, spine1, _ = fabric
        editor.select_node(leaf1)
        editor.select_node(spine1, add=True)
        clipboard = editor.copy_selection()
        assert len(clipboard.nodes) == 2
        assert len(clipboard.edges) == 1

        assert editor.paste(clipboard)
        names = [n.name for n in editor.state.nodes]
        assert names == ["leaf1", "spine1", "leaf1-copy", "spine1-copy"]
        pasted = editor.graph.edge(editor.selection.edge_ids[0])
        assert pasted.source_name == "leaf1-copy"
        assert pasted.member_links[0].name == "spine1-copy-leaf1-copy-1"
        copy = editor.graph.node_by_name("leaf1-copy")
        assert copy.position == Position(50, 50)

    def test_edge_without_both_ends_is_not_pasted(self, fabric):
        editor, leaf1, _, edge_id = fabric
        editor.select_node(leaf1)
        editor.select_edge(edge_id, add=True)
        editor.paste(editor.copy_selection())
        assert len(editor.state.edges) == 1
        assert len(editor.state.nodes) == 3

    def test_single_link_copies_template(self, fabric):
        """Copying one link and pasting adds a member link with its template."""
        editor, _, _, edge_id = fabric
        editor.select_edge(edge_id)
        clipboard = editor.copy_selection()
        assert clipboard.link_template == "isl"
        assert clipboard.nodes == ()
        assert editor.paste(clipboard)
        assert len(editor.graph.edge(edge_id).member_links) == 2

    def test_empty_selection_copies_nothing(self, editor):
        assert editor.copy_selection() is None

    def test_clipboard_dict_round_trip(self, fabric):
        editor, *_ = fabric
        editor.select_all()
        clipboard = editor.copy_selection()
        assert Clipboard.from_dict(clipboard.to_dict()) == clipboard


def _populated():
    """leaf1, leaf2, leaf3, spine1 and testman1; leaf1-spine1 has two member links."""
    editor = TopologyEditor()
    ids = {
        "leaf1": editor.add_node((100, 300)),
        "leaf2": editor.add_node((300, 300)),
        "leaf3": editor.add_node((500, 300)),
        "spine1": editor.add_node((300, 500), "spine"),
        "testman1": editor.add_sim_node((300, 100)),
    }
    ids["lag_edge"] = editor.add_edge(ids["leaf1"], ids["spine1"])
    editor.add_member_link(ids["lag_edge"])
    ids["plain_edge"] = editor.add_edge(ids["leaf2"], ids["spine1"])
    for i in (1, 2, 3):
        ids[f"sim_edge{i}"] = editor.add_edge(ids["testman1"], ids[f"leaf{i}"])
    return editor, ids


def _setup_lag(editor, ids):
    ids["lag"] = editor.create_lag(ids["lag_edge"], [0, 1])


def _setup_esi(editor, ids):
    ids["esi"] = editor.create_esi_lag([ids["sim_edge1"], ids["sim_edge2"]])


def _setup_copy(editor, ids):
    editor.select_node(ids["leaf1"])
    editor.select_node(ids["spine1"], add=True)
    ids["clipboard"] = editor.copy_selection()


# name -> (setup, mutation); the mutation is the step that is undone and redone
UNDOABLE = {
    "add_node": (None, lambda e, ids: e.add_node((0, 0))),
    "update_node": (None, lambda e, ids: e.update_node(ids["leaf1"], name="border1")),
    "move_node": (None, lambda e, ids: e.move_node(ids["leaf1"], 10, 10)),
    "delete_node": (None, lambda e, ids: e.delete_node(ids["spine1"])),
    "add_sim_node": (None, lambda e, ids: e.add_sim_node((0, 0))),
    "update_sim_node": (None, lambda e, ids: e.update_node(ids["testman1"], name="tm1")),
    "delete_sim_node": (None, lambda e, ids: e.delete_node(ids["testman1"])),
    "add_edge": (None, lambda e, ids: e.add_edge(ids["leaf1"], ids["leaf2"])),
    "update_edge": (None, lambda e, ids: e.update_edge(ids["plain_edge"], source_handle="left")),
    "delete_edge": (None, lambda e, ids: e.delete_edge(ids["plain_edge"])),
    "add_member_link": (None, lambda e, ids: e.add_member_link(ids["plain_edge"])),
    "delete_member_link": (None, lambda e, ids: e.delete_member_link(ids["lag_edge"], 0)),
    "create_lag": (None, lambda e, ids: e.create_lag(ids["lag_edge"], [0, 1])),
    "dissolve_lag": (_setup_lag, lambda e, ids: e.remove_link_from_lag(ids["lag_edge"], ids["lag"], 0)),
    "create_esi_lag": (None, lambda e, ids: e.create_esi_lag([ids["sim_edge1"], ids["sim_edge2"]])),
    "merge_into_esi_lag": (_setup_esi, lambda e, ids: e.merge_into_esi_lag(ids["esi"], [ids["sim_edge3"]])),
    "paste": (_setup_copy, lambda e, ids: e.paste(ids["clipboard"])),
    "update_link_template": (None, lambda e, ids: e.update_link_template("isl", name="fabric")),
    "update_node_template": (None, lambda e, ids: e.update_node_template("leaf", name="tor")),
}


class TestUndoRedo:
    """Test cases for undo/redo through the editor."""

    @pytest.mark.parametrize("operation", sorted(UNDOABLE))
    def test_undo_redo_symmetry(self, operation):
        """Undo restores the state before a mutation and redo the state after it."""
        editor, ids = _populated()
        setup, mutate = UNDOABLE[operation]
        if setup is not None:
            setup(editor, ids)
        before = editor.state
        assert mutate(editor, ids), editor.error
        after = editor.state
        assert after != before
        assert editor.undo()
        assert editor.state == before
        assert editor.redo()
        assert editor.state == after
        assert editor.undo()
        assert editor.state == before

    def test_undo_redo_delete(self, fabric):
        editor, _, spine1, _ = fabric
        before = editor.state
        editor.delete_node(spine1)
        assert editor.undo()
        assert editor.state == before
        assert editor.selection.is_empty
        assert editor.redo()
        assert editor.graph.get_node(spine1) is None

    def test_new_mutation_clears_redo(self, fabric):
        editor, leaf1, _, _ = fabric
        editor.move_node(leaf1, 1, 1)
        editor.undo()
        assert editor.can_redo
        editor.move_node(leaf1, 2, 2)
        assert not editor.can_redo

    def test_nothing_to_undo(self, editor):
        assert not editor.can_undo
        assert not editor.undo()
        assert not editor.redo()

    def test_undo_limit_from_config(self):
        editor = TopologyEditor(EditorConfig(undo_limit=2))
        for _ in range(3):
            editor.add_node((0, 0))
        assert editor.undo()
        assert editor.undo()
        assert not editor.undo()
        assert len(editor.state.nodes) == 1

    def test_listeners_are_notified(self, editor):
        events = []
        unsubscribe = editor.subscribe(events.append)
        editor.add_node((0, 0))
        editor.undo()
        unsubscribe()
        editor.add_node((0, 0))
        assert events == ["node", "undo"]


class TestWholeDocument:
    """Test cases for document-level operations."""

    def test_metadata_setters(self, editor):
        assert editor.set_topology_name("dc1")
        assert editor.set_namespace("lab")
        assert editor.set_operation("create")
        assert (editor.state.name, editor.state.namespace, editor.state.operation) == ("dc1", "lab", "create")
        assert not editor.set_topology_name("DC 1")
        assert not editor.set_operation("upsert")
        assert editor.error == "Invalid operation: upsert"

    def test_import_invalid_document_keeps_model(self, fabric):
        editor, *_ = fabric
        before = editor.state
        assert not editor.import_document("spec: [")
        assert editor.error == "Failed to parse topology document"
        assert editor.state is before

    def test_import_own_text_is_not_a_change(self, fabric):
        editor, *_ = fabric
        depth = editor.history.undo_depth
        assert editor.import_document(editor.document_text())
        assert editor.history.undo_depth == depth

    def test_import_own_export_keeps_node_order(self, editor):
        """A simulation node added before a topology node stays first."""
        sim = editor.add_sim_node((300, 100))
        leaf = editor.add_node((100, 300))
        editor.add_edge(sim, leaf)
        before = editor.state
        depth = editor.history.undo_depth
        assert editor.import_document(editor.export_document())
        assert [n.id for n in editor.state.nodes] == [sim, leaf]
        assert editor.history.undo_depth == depth
        assert editor.state is before

    def test_import_own_export_keeps_edge_order(self, editor):
        """An ESI-LAG created before a plain link keeps its place."""
        sim = editor.add_sim_node((300, 100))
        leaves = [editor.add_node((100 + i * 200, 300)) for i in range(2)]
        esi_id = editor.create_esi_lag([editor.add_edge(sim, leaf) for leaf in leaves])
        spine = editor.add_node((200, 500), "spine")
        plain = editor.add_edge(leaves[0], spine)
        before = editor.state
        depth = editor.history.undo_depth
        assert editor.import_document(editor.export_document())
        assert [e.id for e in editor.state.edges] == [esi_id, plain]
        assert editor.history.undo_depth == depth
        assert editor.state is before

    def test_import_changed_document(self, fabric):
        editor, leaf1, _, _ = fabric
        doc = yaml.safe_load(editor.document_text())
        doc["metadata"]["name"] = "edited"
        doc["spec"]["nodes"][0]["name"] = "border1"
        assert editor.import_document(yaml.safe_dump(doc))
        assert editor.state.name == "edited"
        assert editor.graph.node_by_name("border1") is not None
        assert editor.undo()
        assert editor.graph.node(leaf1).name == "leaf1"

    def test_clear_restores_base(self, fabric):
        editor, *_ = fabric
        assert editor.clear()
        assert editor.state.nodes == ()
        assert [t.name for t in editor.state.link_templates] == ["isl", "edge"]
        assert editor.undo()
        assert len(editor.state.nodes) == 2

    def test_export_normalizes_positions(self, fabric):
        editor, *_ = fabric
        doc = yaml.safe_load(editor.export_document())
        xs = [float(n["annotations"]["topobuilder.eda.labs/x"]) for n in doc["spec"]["nodes"]]
        assert min(xs) == 50
        # The live model keeps its coordinates.
        assert editor.state.nodes[0].position == Position(0, 0)

    def test_export_falls_back_to_model(self, fabric):
        editor, *_ = fabric
        assert editor.export_document("spec: [") == editor.export_document()

    def test_validate(self, fabric):
        editor, *_ = fabric
        result = editor.validate()
        assert result.valid, result.errors

    def test_apply_fabric(self, editor):
        definition = FabricDefinition(leafs=FabricTier(count=2, template="leaf"),
                                      spines=FabricTier(count=2, template="spine"))
        assert editor.apply_fabric(definition)
        assert sorted(n.name for n in editor.state.nodes) == ["leaf1", "leaf2", "spine1", "spine2"]
        assert len(editor.state.edges) == 4
        assert editor.validate().valid

    def test_apply_fabric_from_yaml(self, editor):
        assert editor.apply_fabric("leafs: {count: 1, template: leaf}\nspines: {count: 1, template: spine}\n")
        assert len(editor.state.edges) == 1
        assert not editor.apply_fabric("leafs: 3")
        assert editor.error == "Invalid fabric definition"

    def test_restore_snapshot_is_undoable(self, fabric):
        editor, *_ = fabric
        saved = editor.snapshot()
        editor.clear()
        assert editor.restore_snapshot(saved)
        assert editor.state is saved
        assert editor.undo()
        assert editor.state.nodes == ()
