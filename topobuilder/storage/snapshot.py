# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Local snapshot persistence for the topology editor."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import uuid4

from ..config import load_config
from ..constants import STORAGE_KEY
from ..network.model import EdgeType, TopologyState

if TYPE_CHECKING:
    from ..editor.editor import TopologyEditor

LOGGER = logging.getLogger(__name__)

SNAPSHOT_VERSION = "1.0.0"


def export_snapshot(editor: TopologyEditor, metadata: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Export the editor's current topology as a snapshot dict."""
    snapshot = {
        "version": SNAPSHOT_VERSION,
        "key": STORAGE_KEY,
        "snapshot_id": str(uuid4()),
        "created_at": datetime.now(timezone.utc).isoformat(),
        "counters": editor.ids.state(),
        "state": editor.state.to_dict(),
    }
    if metadata:
        snapshot["metadata"] = dict(metadata)
    return snapshot


def save_snapshot(editor: TopologyEditor, path: Optional[Path] = None) -> Path:
    """
    Write a snapshot of ``editor`` to disk.

    Args:
        editor: Editor to persist
        path: Target file (the configured storage path if None)

    Returns:
        The path written
    """
    path = Path(path) if path is not None else Path(editor.config.storage_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(export_snapshot(editor), handle, indent=2)
    LOGGER.info("Saved topology snapshot to %s", path)
    return path


def load_snapshot(path: Optional[Path] = None) -> Dict[str, Any]:
    """Read and validate a snapshot file."""
    path = Path(path) if path is not None else Path(load_config().storage_path)
    with path.open("r", encoding="utf-8") as handle:
        snapshot = json.load(handle)
    _validate_snapshot(snapshot)
    return snapshot


def apply_snapshot(editor: TopologyEditor, snapshot: Dict[str, Any]) -> None:
    """
    Replace the editor model with a snapshot payload.

    The restore is a single undoable step. Id counters are moved past every
    id in the snapshot so new entities never collide with restored ones.

    Raises:
        ValueError: If the snapshot is malformed
    """
    _validate_snapshot(snapshot)
    state_data = dict(snapshot["state"])
    state_data["edges"] = [_migrate_edge(e) for e in state_data.get("edges") or []]
    try:
        state = TopologyState.from_dict(state_data)
    except (KeyError, TypeError) as e:
        raise ValueError(f"Invalid snapshot state: {e}") from e

    counters = snapshot.get("counters") or {}
    current = editor.ids.state()
    editor.ids.restore({kind: max(int(counters.get(kind, 1)), value) for kind, value in current.items()})
    editor.ids.observe(state.all_ids())

    if not editor.restore_snapshot(state):
        raise ValueError(editor.error or "Snapshot could not be applied")


def _migrate_edge(edge: Dict[str, Any]) -> Dict[str, Any]:
    """Fill in ``edgeType`` for edges written before it was stored."""
    if edge.get("edgeType"):
        return edge
    migrated = dict(edge)
    if edge.get("esiLeaves"):
        migrated["edgeType"] = EdgeType.ESILAG.value
    elif edge.get("lagGroups"):
        migrated["edgeType"] = EdgeType.LAG.value
    else:
        migrated["edgeType"] = EdgeType.NORMAL.value
    return migrated


def _validate_snapshot(snapshot: Dict[str, Any]) -> None:
    if not isinstance(snapshot, dict):
        raise ValueError("Snapshot must be a JSON object")
    version = snapshot.get("version")
    if version != SNAPSHOT_VERSION:
        raise ValueError(f"Unsupported snapshot version: {version}")
    for key in ("key", "state"):
        if key not in snapshot:
            raise ValueError(f"Snapshot missing required field: {key}")
    if snapshot["key"] != STORAGE_KEY:
        raise ValueError(f"Unexpected snapshot key: {snapshot['key']}")
    state = snapshot["state"]
    if not isinstance(state, dict):
        raise ValueError("Snapshot state must be an object")
    for key in ("nodes", "edges"):
        if not isinstance(state.get(key, []), list):
            raise ValueError(f"Snapshot state field {key} must be a list")
    _check_references(state)


def _check_references(state: Dict[str, Any]) -> None:
    node_ids = set()
    for node in state.get("nodes") or []:
        if "id" not in node or "name" not in node:
            raise ValueError("Snapshot node missing id or name")
        node_ids.add(node["id"])
    missing: List[str] = []
    for edge in state.get("edges") or []:
        ends = [edge.get("source"), edge.get("target")]
        ends += [leaf.get("nodeId") for leaf in edge.get("esiLeaves") or []]
        missing.extend(str(end) for end in ends if end not in node_ids)
    if missing:
        raise ValueError(f"Snapshot edges reference unknown nodes: {', '.join(sorted(set(missing)))}")
