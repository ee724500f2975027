# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Tests for local snapshot persistence."""

import json

import pytest

from topobuilder.config import EditorConfig
from topobuilder.constants import STORAGE_KEY
from topobuilder.editor import TopologyEditor
from topobuilder.storage import apply_snapshot, export_snapshot, load_snapshot, save_snapshot
from topobuilder.storage.snapshot import SNAPSHOT_VERSION


@pytest.fixture
def editor(tmp_path):
    ed = TopologyEditor(EditorConfig(storage_path=tmp_path / "store" / "topology.json"))
    leaf = ed.add_node((0, 0))
    spine = ed.add_node((0, 200), "spine")
    ed.add_edge(leaf, spine)
    ed.add_annotation((10, 10), text="pod 1")
    return ed


class TestSnapshot:
    """Test cases for snapshot export, save, load and apply."""

    def test_export_snapshot_shape(self, editor):
        snapshot = export_snapshot(editor, metadata={"user": "ops"})
        assert snapshot["version"] == SNAPSHOT_VERSION
        assert snapshot["key"] == STORAGE_KEY
        assert snapshot["snapshot_id"]
        assert snapshot["counters"]["node"] == 3
        assert snapshot["metadata"] == {"user": "ops"}
        assert [n["name"] for n in snapshot["state"]["nodes"]] == ["leaf1", "spine1"]

    def test_save_uses_configured_path(self, editor):
        path = save_snapshot(editor)
        assert path == editor.config.storage_path
        assert json.loads(path.read_text())["key"] == STORAGE_KEY

    def test_save_load_apply(self, editor, tmp_path):
        """A saved snapshot restores the same state in a fresh editor."""
        path = save_snapshot(editor, tmp_path / "snap.json")
        fresh = TopologyEditor()
        apply_snapshot(fresh, load_snapshot(path))
        assert fresh.state == editor.state
        assert fresh.can_undo

    def test_apply_advances_counters(self, editor):
        """Entities created after a restore never reuse restored ids."""
        snapshot = export_snapshot(editor)
        fresh = TopologyEditor()
        apply_snapshot(fresh, snapshot)
        assert fresh.add_node((0, 0)) == "node-3"
        assert fresh.add_annotation((0, 0)) == "annotation-2"

    def test_legacy_edges_without_type(self, editor):
        snapshot = export_snapshot(editor)
        for edge in snapshot["state"]["edges"]:
            del edge["edgeType"]
        fresh = TopologyEditor()
        apply_snapshot(fresh, snapshot)
        assert fresh.state.edges == editor.state.edges

    @pytest.mark.parametrize("mutate,message", [
        (lambda s: s.update(version="0.1"), "Unsupported snapshot version"),
        (lambda s: s.update(key="other"), "Unexpected snapshot key"),
        (lambda s: s.pop("state"), "missing required field"),
        (lambda s: s["state"].update(nodes={}), "must be a list"),
        (lambda s: s["state"]["nodes"].pop(), "unknown nodes"),
    ])
    def test_invalid_snapshots_rejected(self, editor, mutate, message):
        snapshot = export_snapshot(editor)
        mutate(snapshot)
        with pytest.raises(ValueError, match=message):
            apply_snapshot(TopologyEditor(), snapshot)

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_snapshot(tmp_path / "absent.json")
