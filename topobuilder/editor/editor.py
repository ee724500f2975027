# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""
Topology editor facade.

TopologyEditor is the single entry point for user-facing operations. Each
mutation is validated first, applied to the TopologyGraph, checkpointed into
the HistoryManager and announced to subscribers. Failures never raise: the
message is stored in ``error`` and the method returns a falsy value.
"""

import logging
import re
from dataclasses import fields, replace
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar, Union

from ..config import EditorConfig
from ..constants import (
    DEFAULT_EDGE_TEMPLATE,
    DEFAULT_ISL_TEMPLATE,
    DEFAULT_NODE_PREFIX,
    DEFAULT_SIM_PREFIX,
    ESI_LAG_MIN_LEAVES,
    LAG_MIN_MEMBERS,
    OPERATIONS,
)
from ..document import base_template_text
from ..document.parser import parse_document
from ..document.serializer import normalize_positions, serialize_state
from ..document.validate import ValidationResult, validate_document
from ..errors import NameValidationError, TopologyError
from ..history import HistoryManager
from ..network import bundling
from ..network.fabric import FabricDefinition, FabricGenerator, parse_fabric
from ..network.graph import TopologyGraph
from ..network.model import (
    Annotation,
    Edge,
    LagGroup,
    LinkTemplate,
    MemberLink,
    Node,
    NodeKind,
    NodeTemplate,
    Position,
    SimNodeTemplate,
    TopologyState,
)
from ..network.naming import (
    IdAllocator,
    format_interface,
    member_link_name,
    name_error,
    unique_name,
    validate_name,
)
from .clipboard import Clipboard, paste_clipboard
from .selection import Selection

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")
PositionLike = Union[Position, Tuple[float, float], Sequence[float]]
Listener = Callable[[str], None]

NODE_FIELDS = {"name", "template", "platform", "node_profile", "serial_number",
               "labels", "position", "sim_type", "image"}
MEMBER_FIELDS = {"name", "template", "source_interface", "target_interface", "labels"}
LAG_FIELDS = {"name", "template", "labels"}
EDGE_FIELDS = {"source_handle", "target_handle", "esi_name"}
ANNOTATION_FIELDS = {f.name for f in fields(Annotation)} - {"id"}


def to_source_handle(handle: Optional[str]) -> Optional[str]:
    if not handle:
        return None
    return re.sub(r"-target$", "", handle) or None


def to_target_handle(handle: Optional[str]) -> Optional[str]:
    if not handle:
        return None
    return handle if handle.endswith("-target") else f"{handle}-target"


def _as_position(position: PositionLike) -> Position:
    if isinstance(position, Position):
        return position
    x, y = position
    return Position(float(x), float(y))


def _check_fields(kind: str, changes: Dict[str, Any], allowed: set) -> None:
    unknown = set(changes) - allowed
    if unknown:
        raise TopologyError(f"Unknown {kind} field(s): {', '.join(sorted(unknown))}")


def _labels(value: Optional[Dict[str, Any]]) -> Dict[str, str]:
    return {str(k): str(v) for k, v in (value or {}).items()}


class TopologyEditor:
    """
    Mutation facade over a topology graph with undo/redo.

    Args:
        config: Editor configuration (defaults if None)
        base_document: Document used at start-up and by ``clear()``; the
            packaged base template when None
    """

    def __init__(self, config: Optional[EditorConfig] = None,
                 base_document: Optional[str] = None):
        self.config = config or EditorConfig()
        self.ids = IdAllocator()
        self.base_document = base_document if base_document is not None else base_template_text()
        base = parse_document(self.base_document, ids=self.ids)
        if base is None:
            LOGGER.warning("Base document could not be parsed, starting empty")
            base = TopologyState()
        if base_document is None:
            base = base.replace(name=self.config.default_name,
                                namespace=self.config.default_namespace,
                                operation=self.config.default_operation)
        self._base_state = base
        self.graph = TopologyGraph(base, self.ids)
        self.history = HistoryManager(self.config.undo_limit)
        self.selection = Selection()
        self.error: Optional[str] = None
        self._listeners: List[Listener] = []

    # --------------------------- Plumbing ---------------------------

    @property
    def state(self) -> TopologyState:
        return self.graph.state

    def clear_error(self) -> None:
        self.error = None

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """
        Register ``callback(event)`` for model changes.

        Returns:
            A function that removes the subscription
        """
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event)

    def _fail(self, message: str) -> None:
        self.error = message
        LOGGER.warning(message)
        return None

    def _mutate(self, event: str, action: Callable[[], T]) -> Optional[T]:
        """
        Run ``action`` against the graph as one undoable step.

        The graph and the id counters are rolled back if the action raises;
        a checkpoint is only recorded when the state actually changed.
        """
        before = self.graph.state
        counters = self.ids.state()
        try:
            result = action()
        except ValueError as e:
            self.graph.state = before
            self.ids.restore(counters)
            return self._fail(str(e))
        if self.graph.state is not before:
            self.history.save_checkpoint(before)
            self.selection.prune(self.graph.state)
            self._notify(event)
        return result

    # --------------------------- Metadata ---------------------------

    def set_topology_name(self, name: str) -> bool:
        error = name_error(name)
        if error:
            return bool(self._fail(f"Invalid topology name: {error}"))
        return self._mutate("metadata", lambda: self.graph.update(name=name) or True) or False

    def set_namespace(self, namespace: str) -> bool:
        error = name_error(namespace)
        if error:
            return bool(self._fail(f"Invalid namespace: {error}"))
        return self._mutate("metadata", lambda: self.graph.update(namespace=namespace) or True) or False

    def set_operation(self, operation: str) -> bool:
        if operation not in OPERATIONS:
            return bool(self._fail(f"Invalid operation: {operation}"))
        return self._mutate("metadata", lambda: self.graph.update(operation=operation) or True) or False

    # --------------------------- Nodes ---------------------------

    def _node_template(self, name: Optional[str]) -> Optional[NodeTemplate]:
        return next((t for t in self.state.node_templates if t.name == name), None)

    def _sim_template(self, name: Optional[str]) -> Optional[SimNodeTemplate]:
        return next((t for t in self.state.sim_node_templates if t.name == name), None)

    def _name_prefix(self, kind: NodeKind, template: Optional[str]) -> str:
        if kind is NodeKind.SIM:
            sim_template = self._sim_template(template)
            if sim_template is None:
                return DEFAULT_SIM_PREFIX
            return sim_template.name_prefix or (sim_template.type or "").lower() or DEFAULT_SIM_PREFIX
        node_template = self._node_template(template)
        return (node_template.name_prefix if node_template else None) or DEFAULT_NODE_PREFIX

    def add_node(self, position: PositionLike, template: Optional[str] = None) -> Optional[str]:
        """
        Add a topology node.

        Args:
            position: Canvas position
            template: Node template name (first node template if None)

        Returns:
            The new node id, or None on failure
        """
        if template is None and self.state.node_templates:
            template = self.state.node_templates[0].name
        if template is not None and self._node_template(template) is None:
            return self._fail(f"Node template {template} not found")
        return self._add(NodeKind.NODE, position, template)

    def add_sim_node(self, position: PositionLike, template: Optional[str] = None) -> Optional[str]:
        """Add a simulation node; the first simulation template is used if none is given."""
        if template is None and self.state.sim_node_templates:
            template = self.state.sim_node_templates[0].name
        if template is not None and self._sim_template(template) is None:
            return self._fail(f"Simulation node template {template} not found")
        return self._add(NodeKind.SIM, position, template)

    def _add(self, kind: NodeKind, position: PositionLike, template: Optional[str]) -> Optional[str]:
        def action() -> str:
            node = Node(
                id=self.ids.next_id("sim" if kind is NodeKind.SIM else "node"),
                name=unique_name(self._name_prefix(kind, template), self.graph.names()),
                kind=kind,
                position=_as_position(position),
                template=template,
            )
            self.graph.add_node(node)
            return node.id

        node_id = self._mutate("node", action)
        if node_id:
            self.selection.select_node(node_id)
        return node_id

    def update_node(self, node_id: str, **changes: Any) -> bool:
        """
        Change node fields (name, template, platform, labels, ...).

        A template switch without an explicit name renames the node when its
        current name was generated from the old template's prefix.
        """
        def action() -> bool:
            _check_fields("node", changes, NODE_FIELDS)
            node = self.graph.node(node_id)
            if "template" in changes and changes["template"] != node.template and "name" not in changes:
                old_prefix = self._name_prefix(node.kind, node.template)
                if re.fullmatch(rf"{re.escape(old_prefix)}\d+", node.name):
                    new_prefix = self._name_prefix(node.kind, changes["template"])
                    changes["name"] = unique_name(new_prefix, self.graph.names(exclude=node_id))
            if "name" in changes and changes["name"] != node.name:
                error = validate_name(changes["name"], self.graph.names(exclude=node_id))
                if error:
                    label = "simNode" if node.is_sim else "node"
                    raise NameValidationError(f"Invalid {label} name: {error}")
            if "labels" in changes:
                changes["labels"] = _labels(changes["labels"])
            if "position" in changes:
                changes["position"] = _as_position(changes["position"])
            self.graph.update_node(node_id, **changes)
            return True

        return self._mutate("node", action) or False

    def rename_node(self, node_id: str, name: str) -> bool:
        return self.update_node(node_id, name=name)

    def move_node(self, node_id: str, x: float, y: float) -> bool:
        return self._mutate("node", lambda: self.graph.move_node(node_id, x, y) is not None) or False

    def delete_node(self, node_id: str) -> bool:
        return self._mutate("node", lambda: self.graph.remove_node(node_id) is not None) or False

    # --------------------------- Edges ---------------------------

    def _default_link_template(self, sim_connection: bool) -> str:
        if not sim_connection:
            return DEFAULT_ISL_TEMPLATE
        return next((t.name for t in self.state.link_templates if t.type == "edge"), DEFAULT_EDGE_TEMPLATE)

    def _find_edge(self, source: str, target: str, source_handle: Optional[str],
                   target_handle: Optional[str]) -> Optional[Tuple[Edge, bool]]:
        """Existing non-ESI edge for the connection and whether it runs the other way."""
        for edge in self.state.edges:
            if edge.is_esi:
                continue
            if (edge.source == source and edge.target == target
                    and edge.source_handle == source_handle and edge.target_handle == target_handle):
                return edge, False
            if (edge.source == target and edge.target == source
                    and to_source_handle(edge.source_handle) == to_source_handle(target_handle)
                    and to_source_handle(edge.target_handle) == to_source_handle(source_handle)):
                return edge, True
        return None

    def _new_member(self, source: Node, target: Node, template: Optional[str]) -> MemberLink:
        taken = {m.name for e in self.state.edges for m in e.member_links}
        number = self.graph.link_count_for_pair(source.name, target.name) + 1
        while member_link_name(target.name, source.name, number) in taken:
            number += 1
        return MemberLink(
            name=member_link_name(target.name, source.name, number),
            source_interface=format_interface(source.is_sim, self.graph.next_port_number(source.id)),
            target_interface=format_interface(target.is_sim, self.graph.next_port_number(target.id)),
            template=template,
        )

    def add_edge(self, source_id: str, target_id: str, source_handle: Optional[str] = None,
                 target_handle: Optional[str] = None) -> Optional[str]:
        """
        Connect two nodes.

        A simulation node always ends up as the edge source. Connecting a
        pair that already has an edge through the same handles (in either
        direction) adds a member link to that edge instead.

        Returns:
            The id of the new or extended edge, or None on failure
        """
        source = self.graph.get_node(source_id)
        target = self.graph.get_node(target_id)
        if source is None or target is None:
            return self._fail("Both link endpoints must exist")
        if source.id == target.id:
            return self._fail("Cannot connect a node to itself")
        if source.is_sim and target.is_sim:
            return self._fail("Cannot connect two simulation nodes")
        if target.is_sim:
            source, target = target, source
            source_handle, target_handle = to_source_handle(target_handle), to_target_handle(source_handle)

        template = self._default_link_template(source.is_sim)
        existing = self._find_edge(source.id, target.id, source_handle, target_handle)
        appended: List[int] = []

        def action() -> str:
            member = self._new_member(source, target, template)
            if existing is None:
                edge = Edge(
                    id=self.ids.next_id("edge"),
                    source=source.id,
                    target=target.id,
                    source_name=source.name,
                    target_name=target.name,
                    member_links=(member,),
                    source_handle=source_handle,
                    target_handle=target_handle,
                )
                self.graph.add_edge(edge)
                return edge.id
            edge, flipped = existing
            appended.append(len(edge.member_links))
            self.graph.replace_edge(replace(
                edge, member_links=edge.member_links + (member.swapped() if flipped else member,)
            ))
            return edge.id

        edge_id = self._mutate("edge", action)
        if edge_id:
            self.selection.select_edge(edge_id)
            if appended:
                self.selection.select_member_link(edge_id, appended[0])
        return edge_id

    def update_edge(self, edge_id: str, **changes: Any) -> bool:
        """Change the handles of an edge or the name of an ESI-LAG."""
        def action() -> bool:
            _check_fields("link", changes, EDGE_FIELDS)
            edge = self.graph.edge(edge_id)
            if "esi_name" in changes:
                if not edge.is_esi:
                    raise TopologyError(f"Link {edge_id} is not an ESI-LAG")
                others = [n for n in self.graph.esi_names() if n != edge.esi_name]
                error = validate_name(changes["esi_name"], others)
                if error:
                    raise NameValidationError(f"Invalid ESI-LAG name: {error}")
            self.graph.replace_edge(replace(edge, **changes))
            return True

        return self._mutate("edge", action) or False

    def delete_edge(self, edge_id: str) -> bool:
        return self._mutate("edge", lambda: self.graph.remove_edge(edge_id) is not None) or False

    # --------------------------- Member links ---------------------------

    def add_member_link(self, edge_id: str, template: Optional[str] = None) -> Optional[int]:
        """
        Add a standalone member link to a standard or LAG edge.

        Returns:
            Index of the new member link, or None on failure
        """
        def action() -> int:
            edge = self.graph.edge(edge_id)
            if edge.is_esi:
                raise TopologyError("Use add_esi_leaf to extend an ESI-LAG")
            source, target = self.graph.node(edge.source), self.graph.node(edge.target)
            chosen = template
            if chosen is None:
                chosen = (edge.member_links[-1].template if edge.member_links
                          else self._default_link_template(source.is_sim or target.is_sim))
            member = self._new_member(source, target, chosen)
            self.graph.replace_edge(replace(edge, member_links=edge.member_links + (member,)))
            return len(edge.member_links)

        index = self._mutate("edge", action)
        if index is not None:
            self.selection.select_member_link(edge_id, index)
        return index

    def update_member_link(self, edge_id: str, index: int, **changes: Any) -> bool:
        def action() -> bool:
            _check_fields("member link", changes, MEMBER_FIELDS)
            edge = self.graph.edge(edge_id)
            if not 0 <= index < len(edge.member_links):
                raise TopologyError(f"Member link {index} does not exist on link {edge_id}")
            if "name" in changes:
                error = name_error(changes["name"])
                if error:
                    raise NameValidationError(f"Invalid link name: {error}")
            if "labels" in changes:
                changes["labels"] = _labels(changes["labels"])
            member = replace(edge.member_links[index], **changes)
            members = edge.member_links[:index] + (member,) + edge.member_links[index + 1:]
            self.graph.replace_edge(replace(edge, member_links=members))
            return True

        return self._mutate("edge", action) or False

    def delete_member_link(self, edge_id: str, index: int) -> bool:
        """
        Remove one member link.

        LAG indices above ``index`` shift down and groups left with fewer
        than two members dissolve. Removing the last member removes the edge;
        on an ESI-LAG the matching leaf is removed, or the whole edge when
        only two leaves are left.
        """
        def action() -> bool:
            edge = self.graph.edge(edge_id)
            if edge.is_esi:
                if 0 <= index < len(edge.esi_leaves) and len(edge.esi_leaves) <= ESI_LAG_MIN_LEAVES:
                    self.graph.remove_edge(edge_id)
                else:
                    bundling.remove_esi_leaf(self.graph, edge_id, index)
                return True
            if not 0 <= index < len(edge.member_links):
                raise TopologyError(f"Member link {index} does not exist on link {edge_id}")
            if len(edge.member_links) == 1:
                self.graph.remove_edge(edge_id)
                return True
            lag_groups = []
            for lag in edge.lag_groups:
                indices = tuple(i - 1 if i > index else i for i in lag.member_indices if i != index)
                if len(indices) >= LAG_MIN_MEMBERS:
                    lag_groups.append(replace(lag, member_indices=indices))
            self.graph.replace_edge(replace(
                edge,
                member_links=edge.member_links[:index] + edge.member_links[index + 1:],
                lag_groups=tuple(lag_groups),
            ))
            return True

        return self._mutate("edge", action) or False

    # --------------------------- Bundles ---------------------------

    def create_lag(self, edge_id: str, indices: Sequence[int]) -> Optional[str]:
        """Bundle member links into a LAG; returns the LAG id."""
        lag = self._mutate("lag", lambda: bundling.create_lag(self.graph, edge_id, indices))
        if lag is None:
            return None
        self.selection.select_lag(edge_id, lag.id)
        return lag.id

    def add_link_to_lag(self, edge_id: str, lag_id: str) -> Optional[int]:
        index = self._mutate("lag", lambda: bundling.add_link_to_lag(self.graph, edge_id, lag_id))
        if index is not None:
            self.selection.select_lag(edge_id, lag_id)
        return index

    def remove_link_from_lag(self, edge_id: str, lag_id: str, index: int) -> bool:
        def action() -> bool:
            bundling.remove_link_from_lag(self.graph, edge_id, lag_id, index)
            return True

        return self._mutate("lag", action) or False

    def update_lag(self, edge_id: str, lag_id: str, **changes: Any) -> bool:
        def action() -> bool:
            _check_fields("LAG", changes, LAG_FIELDS)
            edge = self.graph.edge(edge_id)
            lag = edge.lag(lag_id)
            if lag is None:
                raise TopologyError(f"LAG {lag_id} not found on link {edge_id}")
            if "name" in changes:
                others = [n for n in self.graph.lag_names() if n != lag.name]
                error = validate_name(changes["name"], others)
                if error:
                    raise NameValidationError(f"Invalid LAG name: {error}")
            if "labels" in changes:
                changes["labels"] = _labels(changes["labels"])
            updated: LagGroup = replace(lag, **changes)
            self.graph.replace_edge(replace(
                edge, lag_groups=tuple(updated if g.id == lag_id else g for g in edge.lag_groups)
            ))
            return True

        return self._mutate("lag", action) or False

    def create_esi_lag(self, edge_ids: Sequence[str]) -> Optional[str]:
        """Merge 2-4 edges sharing a simulation node into an ESI-LAG; returns its edge id."""
        edge = self._mutate("esilag", lambda: bundling.create_esi_lag(self.graph, list(edge_ids)))
        if edge is None:
            return None
        self.selection.select_edge(edge.id)
        return edge.id

    def merge_into_esi_lag(self, esi_edge_id: str, edge_ids: Sequence[str]) -> bool:
        edge = self._mutate("esilag", lambda: bundling.merge_into_esi_lag(self.graph, esi_edge_id, list(edge_ids)))
        if edge is None:
            return False
        self.selection.select_edge(edge.id)
        return True

    def add_esi_leaf(self, esi_edge_id: str) -> bool:
        return self._mutate("esilag", lambda: bundling.add_esi_leaf(self.graph, esi_edge_id) is not None) or False

    def remove_esi_leaf(self, esi_edge_id: str, index: int) -> bool:
        return self._mutate(
            "esilag", lambda: bundling.remove_esi_leaf(self.graph, esi_edge_id, index) is not None
        ) or False

    # --------------------------- Templates ---------------------------

    def _add_template(self, attr: str, template: Any) -> bool:
        def action() -> bool:
            existing = [t.name for t in getattr(self.state, attr)]
            error = validate_name(template.name, existing)
            if error:
                raise NameValidationError(f"Invalid template name: {error}")
            self.graph.update(**{attr: getattr(self.state, attr) + (template,)})
            return True

        return self._mutate("template", action) or False

    def _update_template(self, attr: str, name: str, changes: Dict[str, Any]) -> bool:
        def action() -> bool:
            templates = getattr(self.state, attr)
            current = next((t for t in templates if t.name == name), None)
            if current is None:
                raise TopologyError(f"Template {name} not found")
            _check_fields("template", changes, {f.name for f in fields(current)})
            new_name = changes.get("name", name)
            if new_name != name:
                error = validate_name(new_name, [t.name for t in templates if t.name != name])
                if error:
                    raise NameValidationError(f"Invalid template name: {error}")
            updated = replace(current, **changes)
            self.graph.update(**{attr: tuple(updated if t.name == name else t for t in templates)})
            if new_name != name:
                self._cascade_template_rename(attr, name, new_name)
            return True

        return self._mutate("template", action) or False

    def _cascade_template_rename(self, attr: str, old: str, new: str) -> None:
        if attr == "link_templates":
            edges = tuple(
                replace(
                    e,
                    member_links=tuple(replace(m, template=new) if m.template == old else m for m in e.member_links),
                    lag_groups=tuple(replace(g, template=new) if g.template == old else g for g in e.lag_groups),
                )
                for e in self.state.edges
            )
            self.graph.update(edges=edges)
            return
        kind = NodeKind.SIM if attr == "sim_node_templates" else NodeKind.NODE
        nodes = tuple(
            replace(n, template=new) if n.kind is kind and n.template == old else n
            for n in self.state.nodes
        )
        self.graph.update(nodes=nodes)

    def _delete_template(self, attr: str, name: str) -> bool:
        def action() -> bool:
            templates = getattr(self.state, attr)
            if not any(t.name == name for t in templates):
                raise TopologyError(f"Template {name} not found")
            self.graph.update(**{attr: tuple(t for t in templates if t.name != name)})
            return True

        return self._mutate("template", action) or False

    def add_node_template(self, template: Union[NodeTemplate, Dict[str, Any]]) -> bool:
        if isinstance(template, dict):
            template = NodeTemplate.from_dict(template)
        return self._add_template("node_templates", template)

    def update_node_template(self, template_name: str, **changes: Any) -> bool:
        return self._update_template("node_templates", template_name, changes)

    def delete_node_template(self, name: str) -> bool:
        return self._delete_template("node_templates", name)

    def add_link_template(self, template: Union[LinkTemplate, Dict[str, Any]]) -> bool:
        if isinstance(template, dict):
            template = LinkTemplate.from_dict(template)
        return self._add_template("link_templates", template)

    def update_link_template(self, template_name: str, **changes: Any) -> bool:
        return self._update_template("link_templates", template_name, changes)

    def delete_link_template(self, name: str) -> bool:
        return self._delete_template("link_templates", name)

    def add_sim_node_template(self, template: Union[SimNodeTemplate, Dict[str, Any]]) -> bool:
        if isinstance(template, dict):
            template = SimNodeTemplate.from_dict(template)
        return self._add_template("sim_node_templates", template)

    def update_sim_node_template(self, template_name: str, **changes: Any) -> bool:
        return self._update_template("sim_node_templates", template_name, changes)

    def delete_sim_node_template(self, name: str) -> bool:
        return self._delete_template("sim_node_templates", name)

    # --------------------------- Annotations ---------------------------

    def add_annotation(self, position: PositionLike, kind: str = "text", **attrs: Any) -> Optional[str]:
        def action() -> str:
            _check_fields("annotation", attrs, ANNOTATION_FIELDS - {"kind", "position"})
            if "style" in attrs:
                attrs["style"] = _labels(attrs["style"])
            annotation = Annotation(id=self.ids.next_id("annotation"), kind=kind,
                                    position=_as_position(position), **attrs)
            self.graph.add_annotation(annotation)
            return annotation.id

        annotation_id = self._mutate("annotation", action)
        if annotation_id:
            self.selection.select_annotation(annotation_id)
        return annotation_id

    def update_annotation(self, annotation_id: str, **changes: Any) -> bool:
        def action() -> bool:
            _check_fields("annotation", changes, ANNOTATION_FIELDS)
            if "position" in changes:
                changes["position"] = _as_position(changes["position"])
            if "style" in changes:
                changes["style"] = _labels(changes["style"])
            self.graph.update_annotation(annotation_id, **changes)
            return True

        return self._mutate("annotation", action) or False

    def delete_annotation(self, annotation_id: str) -> bool:
        return self._mutate(
            "annotation", lambda: self.graph.remove_annotation(annotation_id) is not None
        ) or False

    # --------------------------- Clipboard ---------------------------

    def copy_selection(self) -> Optional[Clipboard]:
        clipboard = Clipboard.from_selection(self.state, self.selection)
        return None if clipboard.is_empty else clipboard

    def paste(self, clipboard: Clipboard, offset: Tuple[float, float] = (50.0, 50.0)) -> bool:
        """
        Paste a clipboard.

        A link-template clipboard adds a member link with that template to
        the selected edge (or the edge it was copied from).
        """
        if clipboard.link_edge_id and not clipboard.nodes:
            target = self.selection.edge_ids[-1] if self.selection.edge_ids else clipboard.link_edge_id
            return self.add_member_link(target, clipboard.link_template) is not None
        if clipboard.is_empty:
            return False
        result = self._mutate("paste", lambda: paste_clipboard(self.graph, clipboard, offset))
        if result is None:
            return False
        self.selection.select_many(result.node_ids, result.edge_ids, result.annotation_ids)
        return True

    # --------------------------- Whole document ---------------------------

    def clear(self) -> bool:
        """Reset to the base document. Id counters keep running."""
        done = self._mutate("clear", lambda: self.graph.replace_state(self._base_state) or True)
        self.selection.clear()
        return bool(done)

    def import_document(self, text: str) -> bool:
        """
        Replace the model with a parsed document, reusing ids where names match.

        Returns:
            False if the text could not be parsed (the model is kept)
        """
        parsed = parse_document(text, existing=self.state, ids=self.ids)
        if parsed is None:
            return bool(self._fail("Failed to parse topology document"))
        if parsed != self.state:
            self._mutate("import", lambda: self.graph.replace_state(parsed))
        return True

    def document_text(self) -> str:
        return serialize_state(self.state)

    def export_document(self, live_text: Optional[str] = None) -> str:
        """
        Document text for export, with coordinates normalized.

        Args:
            live_text: Current text-surface content; used when it parses,
                otherwise the model is serialized
        """
        state = self.state
        if live_text:
            parsed = parse_document(live_text, existing=state, ids=self.ids)
            if parsed is None:
                LOGGER.warning("Live document did not parse, exporting the model instead")
            else:
                state = parsed
        return serialize_state(normalize_positions(state, self.config.min_coordinate))

    def validate(self) -> ValidationResult:
        return validate_document(self.document_text())

    def apply_fabric(self, definition: Union[FabricDefinition, str]) -> bool:
        """Replace nodes and edges with a generated leaf/spine fabric."""
        if isinstance(definition, str):
            parsed = parse_fabric(definition)
            if parsed is None:
                return bool(self._fail("Invalid fabric definition"))
            definition = parsed

        def action() -> bool:
            self.graph.replace_state(FabricGenerator.generate(definition, self.state, self.ids))
            return True

        done = self._mutate("fabric", action) or False
        self.selection.clear()
        return done

    def snapshot(self) -> TopologyState:
        return self.state

    def restore_snapshot(self, state: TopologyState) -> bool:
        done = self._mutate("restore", lambda: self.graph.replace_state(state) or True) or False
        self.selection.clear()
        return done

    # --------------------------- Undo / redo ---------------------------

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def undo(self) -> bool:
        previous = self.history.undo(self.state)
        if previous is None:
            return False
        self.graph.replace_state(previous)
        self.selection.clear()
        self._notify("undo")
        return True

    def redo(self) -> bool:
        following = self.history.redo(self.state)
        if following is None:
            return False
        self.graph.replace_state(following)
        self.selection.clear()
        self._notify("redo")
        return True

    # --------------------------- Selection ---------------------------

    def select_node(self, node_id: Optional[str], add: bool = False) -> None:
        self.selection.select_node(node_id, add)

    def select_edge(self, edge_id: Optional[str], add: bool = False) -> None:
        self.selection.select_edge(edge_id, add)

    def select_member_link(self, edge_id: str, index: Optional[int], add: bool = False) -> None:
        self.selection.select_member_link(edge_id, index, add)

    def select_lag(self, edge_id: str, lag_id: Optional[str]) -> None:
        self.selection.select_lag(edge_id, lag_id)

    def select_annotation(self, annotation_id: str, add: bool = False) -> None:
        self.selection.select_annotation(annotation_id, add)

    def select_all(self) -> None:
        self.selection.select_many([n.id for n in self.state.nodes], [e.id for e in self.state.edges],
                                   [a.id for a in self.state.annotations])

    def clear_selection(self) -> None:
        self.selection.clear()
