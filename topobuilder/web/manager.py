# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Editor manager for the topology web API.

Holds one TopologyEditor for the process and returns JSON-serializable
views of it. Editor failures surface as RuntimeError with the editor's
error message.
"""
from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List, Optional, TypeVar

from ..config import EditorConfig, load_config
from ..document.validate import validate_document
from ..editor.editor import TopologyEditor

T = TypeVar("T")


class _Singleton(type):
    _instances: Dict[type, Any] = {}
    _lock = threading.Lock()

    def __call__(cls, *args, **kwargs):  # type: ignore[override]
        with cls._lock:
            if cls not in cls._instances:
                cls._instances[cls] = super(_Singleton, cls).__call__(*args, **kwargs)
        return cls._instances[cls]


class EditorManager(metaclass=_Singleton):
    """Singleton manager holding the editor instance for the API.

    For multi-user setups, introduce session IDs and per-session editors.
    """

    def __init__(self, config: Optional[EditorConfig] = None):
        self._lock = threading.RLock()
        self._config = config or load_config()
        self._editor = TopologyEditor(self._config)

    # --------------------------- Public API ---------------------------

    def reset(self, base_document: Optional[str] = None) -> Dict[str, Any]:
        with self._lock:
            self._editor = TopologyEditor(self._config, base_document)
            return self.get_topology()

    def get_topology(self) -> Dict[str, Any]:
        with self._lock:
            editor = self._editor
            return {
                "state": editor.state.to_dict(),
                "document": editor.document_text(),
                "can_undo": editor.can_undo,
                "can_redo": editor.can_redo,
            }

    def import_document(self, text: str) -> Dict[str, Any]:
        self._run(lambda: self._editor.import_document(text))
        return self.get_topology()

    def export_document(self) -> Dict[str, Any]:
        with self._lock:
            return {"document": self._editor.export_document()}

    def validate(self, text: Optional[str] = None) -> Dict[str, Any]:
        if text is not None:
            return validate_document(text).to_dict()
        with self._lock:
            return self._editor.validate().to_dict()

    def add_node(self, x: float, y: float, template: Optional[str], kind: str) -> Dict[str, Any]:
        if kind == "simnode":
            node_id = self._run(lambda: self._editor.add_sim_node((x, y), template))
        else:
            node_id = self._run(lambda: self._editor.add_node((x, y), template))
        return {"id": node_id, **self.get_topology()}

    def add_edge(self, source: str, target: str, source_handle: Optional[str],
                 target_handle: Optional[str]) -> Dict[str, Any]:
        edge_id = self._run(lambda: self._editor.add_edge(source, target, source_handle, target_handle))
        return {"id": edge_id, **self.get_topology()}

    def create_lag(self, edge_id: str, member_indices: List[int]) -> Dict[str, Any]:
        lag_id = self._run(lambda: self._editor.create_lag(edge_id, member_indices))
        return {"id": lag_id, **self.get_topology()}

    def create_esi_lag(self, edge_ids: List[str]) -> Dict[str, Any]:
        edge_id = self._run(lambda: self._editor.create_esi_lag(edge_ids))
        return {"id": edge_id, **self.get_topology()}

    def delete_node(self, node_id: str) -> Dict[str, Any]:
        self._run(lambda: self._editor.delete_node(node_id))
        return self.get_topology()

    def undo(self) -> Dict[str, Any]:
        self._run(self._editor.undo, "Nothing to undo")
        return self.get_topology()

    def redo(self) -> Dict[str, Any]:
        self._run(self._editor.redo, "Nothing to redo")
        return self.get_topology()

    # --------------------------- Internals ---------------------------

    def _run(self, operation: Callable[[], T], fallback: str = "Operation failed") -> T:
        with self._lock:
            self._editor.clear_error()
            result = operation()
            if result is None or result is False:
                raise RuntimeError(self._editor.error or fallback)
            return result
