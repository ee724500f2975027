# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""
Topology document parser.

Turns a YAML topology document into a TopologyState. Graph-only metadata
(positions, edge ids, member order, handles) is read back from the reserved
annotation keys written by the serializer. When an existing state is given,
node, edge and LAG ids are reused wherever names and node pairs still match,
so selections and undo history that reference those ids stay valid.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from ..constants import (
    ANNOTATION_DRAWING,
    ANNOTATION_EDGE_ID,
    ANNOTATION_MEMBER_INDEX,
    ANNOTATION_MEMBER_INDICES,
    ANNOTATION_MEMBER_LABELS,
    ANNOTATION_MEMBER_NAMES,
    ANNOTATION_MEMBER_TEMPLATES,
    DEFAULT_INTERFACE,
    DEFAULT_NAMESPACE,
    DEFAULT_OPERATION,
    DEFAULT_TOPOLOGY_NAME,
)
from ..errors import DocumentParseError, TopologyError
from ..network.model import (
    Annotation,
    Edge,
    EsiLeaf,
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
from ..network.naming import IdAllocator, lag_id
from .endpoints import (
    ParsedEndpoint,
    as_dict,
    as_list,
    extract_handles,
    extract_position,
    load_document,
    parse_endpoint,
    user_labels,
)

LOGGER = logging.getLogger(__name__)


def default_node_position(index: int) -> Position:
    return Position(100 + (index % 4) * 200, 100 + (index // 4) * 150)


def default_sim_position(index: int) -> Position:
    return Position(400 + (index % 3) * 180, 50 + (index // 3) * 140)


@dataclass
class _LinkMeta:
    edge_id: Optional[str] = None
    member_index: Optional[int] = None
    member_indices: Optional[List[int]] = None
    member_names: Optional[List[str]] = None
    member_templates: Optional[List[Optional[str]]] = None
    member_labels: Optional[List[Dict[str, str]]] = None
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None

    def member_template(self, index: int, count: int, default: Optional[str]) -> Optional[str]:
        if self.member_templates is not None and len(self.member_templates) == count:
            return self.member_templates[index]
        return default

    def member_label(self, index: int, count: int, default: Dict[str, str]) -> Dict[str, str]:
        if self.member_labels is not None and len(self.member_labels) == count:
            return self.member_labels[index]
        return default


@dataclass
class _Entry:
    """Member links contributed by one document link."""
    members: List[MemberLink]
    hints: List[Optional[int]]
    lag: Optional[LagGroup] = None


@dataclass
class _EdgeGroup:
    source_name: str
    target_name: str
    source_handle: Optional[str]
    target_handle: Optional[str]
    id_hints: List[str] = field(default_factory=list)
    entries: List[_Entry] = field(default_factory=list)
    edge_id: Optional[str] = None


@dataclass
class _EsiLink:
    common_name: str
    leaves: List[Tuple[str, MemberLink]]
    name: str
    meta: _LinkMeta
    edge_id: Optional[str] = None


def _int_or_none(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _in_existing_order(items: List[Any], existing: Tuple[Any, ...]) -> List[Any]:
    """Reused ids keep their previous order; new entities follow in document order."""
    rank = {item.id: i for i, item in enumerate(existing)}
    return sorted(items, key=lambda item: rank.get(item.id, len(rank)))


def _read_meta(annotations: Any) -> _LinkMeta:
    annotations = as_dict(annotations)
    meta = _LinkMeta()
    meta.edge_id = annotations.get(ANNOTATION_EDGE_ID) or None
    meta.member_index = _int_or_none(annotations.get(ANNOTATION_MEMBER_INDEX))
    raw_indices = annotations.get(ANNOTATION_MEMBER_INDICES)
    if raw_indices:
        indices = [_int_or_none(part) for part in str(raw_indices).split(",")]
        meta.member_indices = None if None in indices else indices
    raw_names = annotations.get(ANNOTATION_MEMBER_NAMES)
    if raw_names:
        meta.member_names = [part for part in str(raw_names).split(",") if part]
    raw_templates = annotations.get(ANNOTATION_MEMBER_TEMPLATES)
    if raw_templates is not None:
        meta.member_templates = [part or None for part in str(raw_templates).split(",")]
    raw_labels = annotations.get(ANNOTATION_MEMBER_LABELS)
    if raw_labels:
        try:
            labels = json.loads(raw_labels)
        except ValueError:
            LOGGER.warning("Ignoring unreadable member labels")
        else:
            if isinstance(labels, list):
                meta.member_labels = [user_labels(item) for item in labels]
    meta.source_handle, meta.target_handle = extract_handles(annotations)
    return meta


class DocumentParser:
    """
    Single-use parser for one document.

    Args:
        existing: State whose ids should be reused where names match
        ids: Allocator for ids of entities that have no reusable id
    """

    def __init__(self, existing: Optional[TopologyState] = None,
                 ids: Optional[IdAllocator] = None):
        self.existing = existing or TopologyState()
        self.ids = ids or IdAllocator()
        self.ids.observe(self.existing.all_ids())
        self._name_to_id: Dict[str, str] = {}
        self._existing_edges = {e.id: e for e in self.existing.edges}
        self._claimed_edges: set = set()

    def parse(self, text: str) -> Optional[TopologyState]:
        """Parse ``text``; None if it is not a usable topology document."""
        if not text or not text.strip():
            return TopologyState()
        try:
            data = load_document(text)
        except DocumentParseError as e:
            LOGGER.warning("Failed to parse topology document: %s", e)
            return None

        metadata = as_dict(data.get("metadata"))
        spec = as_dict(data.get("spec"))
        simulation = as_dict(spec.get("simulation"))

        nodes = self._parse_nodes(as_list(spec.get("nodes")), NodeKind.NODE)
        nodes += self._parse_nodes(as_list(simulation.get("simNodes")), NodeKind.SIM)
        edges = self._parse_links(as_list(spec.get("links")))

        state = TopologyState(
            name=str(metadata.get("name") or DEFAULT_TOPOLOGY_NAME),
            namespace=str(metadata.get("namespace") or DEFAULT_NAMESPACE),
            operation=str(spec.get("operation") or DEFAULT_OPERATION),
            nodes=tuple(_in_existing_order(nodes, self.existing.nodes)),
            edges=tuple(_in_existing_order(edges, self.existing.edges)),
            annotations=tuple(self._parse_drawing(as_dict(metadata.get("annotations")))),
            node_templates=tuple(
                NodeTemplate.from_dict(t) for t in as_list(spec.get("nodeTemplates")) if isinstance(t, dict)
            ),
            link_templates=tuple(
                LinkTemplate.from_dict(t) for t in as_list(spec.get("linkTemplates")) if isinstance(t, dict)
            ),
            sim_node_templates=tuple(
                SimNodeTemplate.from_dict(t)
                for t in as_list(simulation.get("simNodeTemplates")) if isinstance(t, dict)
            ),
            sim_topology=simulation.get("topology"),
        )
        self.ids.observe(state.all_ids())
        return state

    # --------------------------- Nodes ---------------------------

    def _parse_nodes(self, raw_nodes: List[Any], kind: NodeKind) -> List[Node]:
        existing = {n.name: n for n in self.existing.nodes if n.kind is kind}
        nodes = []
        for index, raw in enumerate(raw_nodes):
            raw = as_dict(raw)
            name = raw.get("name")
            if not name:
                LOGGER.warning("Skipping %s entry %d without a name", kind.value, index)
                continue
            name = str(name)
            if name in self._name_to_id:
                LOGGER.warning("Skipping duplicate node name %s", name)
                continue
            previous = existing.get(name)
            node_id = previous.id if previous else self.ids.next_id("sim" if kind is NodeKind.SIM else "node")
            default = default_sim_position(index) if kind is NodeKind.SIM else default_node_position(index)
            position = extract_position(raw.get("annotations")) or (previous.position if previous else default)

            if kind is NodeKind.SIM:
                node = Node(id=node_id, name=name, kind=kind, position=position,
                            template=raw.get("template"), sim_type=raw.get("type"),
                            image=raw.get("image"), labels=user_labels(raw.get("labels")))
            else:
                node = Node(id=node_id, name=name, kind=kind, position=position,
                            template=raw.get("template"), platform=raw.get("platform"),
                            node_profile=raw.get("nodeProfile"),
                            serial_number=raw.get("serialNumber"),
                            labels=user_labels(raw.get("labels")))
            self._name_to_id[name] = node_id
            nodes.append(node)
        return nodes

    # --------------------------- Links ---------------------------

    def _parse_links(self, raw_links: List[Any]) -> List[Edge]:
        groups: Dict[Tuple[Any, ...], _EdgeGroup] = {}
        order: List[Union[_EdgeGroup, _EsiLink]] = []
        for index, raw in enumerate(raw_links):
            raw = as_dict(raw)
            endpoints = [ep for ep in (parse_endpoint(e) for e in as_list(raw.get("endpoints"))) if ep]
            if not endpoints:
                LOGGER.warning("Skipping link %s without endpoints", raw.get("name", index))
                continue
            if any(name not in self._name_to_id for ep in endpoints
                   for name in (ep.source_name, ep.target_name) if name):
                LOGGER.warning("Skipping link %s referencing unknown nodes", raw.get("name", index))
                continue
            item = self._classify(raw, endpoints, groups)
            if item is not None and not any(item is seen for seen in order):
                order.append(item)

        # Annotated ids are claimed first so that pair-based reuse cannot steal them.
        self.ids.observe(
            [hint for item in order if isinstance(item, _EdgeGroup) for hint in item.id_hints]
            + [item.meta.edge_id for item in order if isinstance(item, _EsiLink) and item.meta.edge_id]
        )
        for item in order:
            item.edge_id = self._claim_hint(item)
        for item in order:
            if item.edge_id is None:
                item.edge_id = self._reuse_or_allocate(item)

        edges = []
        for item in order:
            try:
                edge = self._build_esi(item) if isinstance(item, _EsiLink) else self._build_group(item)
            except TopologyError as e:
                LOGGER.warning("Skipping invalid link entry: %s", e)
                continue
            edges.append(edge)
        return edges

    def _classify(self, raw: Dict[str, Any], endpoints: List[ParsedEndpoint],
                  groups: Dict[Tuple[Any, ...], _EdgeGroup]) -> Optional[Union[_EdgeGroup, _EsiLink]]:
        meta = _read_meta(raw.get("annotations"))
        paired = [ep for ep in endpoints if ep.target_name]
        if not paired:
            return self._classify_local_only(raw, endpoints, meta, groups)
        if len(paired) < len(endpoints):
            LOGGER.warning("Ignoring unpaired endpoints in link %s", raw.get("name"))

        pairs = {frozenset((ep.source_name, ep.target_name)) for ep in paired}
        if len(paired) >= 2 and len(pairs) >= 2:
            common = set.intersection(*(set(p) for p in pairs))
            if len(common) != 1:
                LOGGER.warning("Skipping multi-homed link %s without a single common node", raw.get("name"))
                return None
            return self._esi_link(raw, common.pop(), paired, meta)
        return self._add_to_group(raw, paired, meta, groups)

    def _classify_local_only(self, raw: Dict[str, Any], endpoints: List[ParsedEndpoint], meta: _LinkMeta,
                             groups: Dict[Tuple[Any, ...], _EdgeGroup]) -> Optional[Union[_EdgeGroup, _EsiLink]]:
        if len(endpoints) == 1:
            LOGGER.info("Ignoring partial link %s with a single local endpoint", raw.get("name"))
            return None
        names = list(dict.fromkeys(ep.source_name for ep in endpoints))
        half = len(endpoints) // 2
        if (len(names) == 2 and len(endpoints) % 2 == 0
                and all(ep.source_name == names[0] for ep in endpoints[:half])
                and all(ep.source_name == names[1] for ep in endpoints[half:])):
            paired = [
                ParsedEndpoint(a.source_name, b.source_name, a.source_interface, b.source_interface)
                for a, b in zip(endpoints[:half], endpoints[half:])
            ]
            return self._add_to_group(raw, paired, meta, groups)
        common = endpoints[0]
        leaves = [
            ParsedEndpoint(common.source_name, ep.source_name, common.source_interface, ep.source_interface)
            for ep in endpoints[1:]
        ]
        return self._esi_link(raw, common.source_name, leaves, meta)

    def _esi_link(self, raw: Dict[str, Any], common: str, endpoints: List[ParsedEndpoint],
                  meta: _LinkMeta) -> _EsiLink:
        template = raw.get("template")
        labels = user_labels(raw.get("labels"))
        names = meta.member_names if meta.member_names and len(meta.member_names) == len(endpoints) else None
        leaves = []
        for i, ep in enumerate(endpoints):
            oriented = ep if ep.source_name == common else ep.reversed()
            leaves.append((oriented.target_name, MemberLink(
                name=names[i] if names else f"{common}-{oriented.target_name}-{i + 1}",
                source_interface=oriented.source_interface,
                target_interface=oriented.target_interface or DEFAULT_INTERFACE,
                template=meta.member_template(i, len(endpoints), template),
                labels=meta.member_label(i, len(endpoints), labels if i == 0 else {}),
            )))
        name = str(raw.get("name") or f"{common}-esi-lag")
        return _EsiLink(common_name=common, leaves=leaves, name=name, meta=meta)

    def _add_to_group(self, raw: Dict[str, Any], endpoints: List[ParsedEndpoint], meta: _LinkMeta,
                      groups: Dict[Tuple[Any, ...], _EdgeGroup]) -> _EdgeGroup:
        first = endpoints[0]
        key = (tuple(sorted((first.source_name, first.target_name))), meta.source_handle, meta.target_handle)
        group = groups.get(key)
        if group is None:
            group = _EdgeGroup(first.source_name, first.target_name, meta.source_handle, meta.target_handle)
            groups[key] = group
        if meta.edge_id and meta.edge_id not in group.id_hints:
            group.id_hints.append(meta.edge_id)

        link_name = str(raw.get("name") or f"{first.source_name}-{first.target_name}")
        template = raw.get("template")
        labels = user_labels(raw.get("labels"))
        oriented = [ep if ep.source_name == group.source_name else ep.reversed() for ep in endpoints]

        if len(oriented) == 1:
            ep = oriented[0]
            group.entries.append(_Entry(
                members=[MemberLink(link_name, ep.source_interface, ep.target_interface or DEFAULT_INTERFACE,
                                    template=template, labels=labels)],
                hints=[meta.member_index],
            ))
            return group

        names = meta.member_names if meta.member_names and len(meta.member_names) == len(oriented) else None
        members = [
            MemberLink(names[i] if names else f"{link_name}-{i + 1}", ep.source_interface,
                       ep.target_interface or DEFAULT_INTERFACE,
                       template=meta.member_template(i, len(oriented), template),
                       labels=meta.member_label(i, len(oriented), {}))
            for i, ep in enumerate(oriented)
        ]
        if meta.member_indices and len(meta.member_indices) == len(members):
            hints: List[Optional[int]] = list(meta.member_indices)
        else:
            hints = [meta.member_index] + [None] * (len(members) - 1)
        lag = LagGroup(id="", name=link_name, member_indices=(), template=template, labels=labels)
        group.entries.append(_Entry(members=members, hints=hints, lag=lag))
        return group

    # --------------------------- Edge ids ---------------------------

    def _endpoint_ids(self, item: Union[_EdgeGroup, _EsiLink]) -> Tuple[str, str]:
        if isinstance(item, _EsiLink):
            return self._name_to_id[item.common_name], self._name_to_id[item.leaves[0][0]]
        return self._name_to_id[item.source_name], self._name_to_id[item.target_name]

    def _claim_hint(self, item: Union[_EdgeGroup, _EsiLink]) -> Optional[str]:
        if isinstance(item, _EsiLink):
            hints = [item.meta.edge_id] if item.meta.edge_id else []
        else:
            hints = item.id_hints
        source, target = self._endpoint_ids(item)
        for hint in hints:
            if hint in self._claimed_edges:
                continue
            existing = self._existing_edges.get(hint)
            if existing is not None:
                if isinstance(item, _EsiLink) and (not existing.is_esi or existing.source != source):
                    continue
                if isinstance(item, _EdgeGroup) and {existing.source, existing.target} != {source, target}:
                    continue
            self._claimed_edges.add(hint)
            return hint
        return None

    def _reuse_or_allocate(self, item: Union[_EdgeGroup, _EsiLink]) -> str:
        source, target = self._endpoint_ids(item)
        for edge in self.existing.edges:
            if edge.id in self._claimed_edges:
                continue
            if isinstance(item, _EsiLink):
                matches = edge.is_esi and edge.source == source and edge.esi_name == item.name
            else:
                matches = not edge.is_esi and {edge.source, edge.target} == {source, target}
            if matches:
                self._claimed_edges.add(edge.id)
                return edge.id
        edge_id = self.ids.next_id("edge")
        self._claimed_edges.add(edge_id)
        return edge_id

    # --------------------------- Edge assembly ---------------------------

    def _build_group(self, group: _EdgeGroup) -> Edge:
        flat: List[Tuple[MemberLink, Optional[int]]] = []
        spans: List[Tuple[LagGroup, List[int]]] = []
        for entry in group.entries:
            start = len(flat)
            flat.extend(zip(entry.members, entry.hints))
            if entry.lag is not None:
                spans.append((entry.lag, list(range(start, len(flat)))))

        hints = [hint for _, hint in flat]
        if None not in hints and sorted(hints) == list(range(len(flat))):
            position = {i: hints[i] for i in range(len(flat))}
        else:
            position = {i: i for i in range(len(flat))}
        members: List[Optional[MemberLink]] = [None] * len(flat)
        for i, (member, _) in enumerate(flat):
            members[position[i]] = member

        previous = self._existing_edges.get(group.edge_id)
        previous_lags = {lag.name: lag.id for lag in previous.lag_groups} if previous else {}
        lag_groups = []
        used_ids: set = set()
        for lag, flat_indices in spans:
            identifier = previous_lags.get(lag.name)
            if identifier is None or identifier in used_ids:
                count = len(lag_groups) + 1
                while lag_id(group.edge_id, count) in used_ids or lag_id(group.edge_id, count) in previous_lags.values():
                    count += 1
                identifier = lag_id(group.edge_id, count)
            used_ids.add(identifier)
            lag_groups.append(LagGroup(
                id=identifier,
                name=lag.name,
                member_indices=tuple(position[i] for i in flat_indices),
                template=lag.template,
                labels=lag.labels,
            ))

        return Edge(
            id=group.edge_id,
            source=self._name_to_id[group.source_name],
            target=self._name_to_id[group.target_name],
            source_name=group.source_name,
            target_name=group.target_name,
            member_links=tuple(members),
            lag_groups=tuple(lag_groups),
            source_handle=group.source_handle,
            target_handle=group.target_handle,
        )

    def _build_esi(self, link: _EsiLink) -> Edge:
        leaves = tuple(EsiLeaf(self._name_to_id[name], name) for name, _ in link.leaves)
        return Edge(
            id=link.edge_id,
            source=self._name_to_id[link.common_name],
            target=leaves[0].node_id,
            source_name=link.common_name,
            target_name=leaves[0].node_name,
            member_links=tuple(m for _, m in link.leaves),
            esi_leaves=leaves,
            esi_name=link.name,
            source_handle=link.meta.source_handle,
            target_handle=link.meta.target_handle,
        )

    # --------------------------- Drawing annotations ---------------------------

    def _parse_drawing(self, metadata_annotations: Dict[str, Any]) -> List[Annotation]:
        drawing = metadata_annotations.get(ANNOTATION_DRAWING)
        if isinstance(drawing, str):
            try:
                drawing = json.loads(drawing)
            except ValueError:
                LOGGER.warning("Ignoring unreadable drawing annotations")
                return []
        annotations = []
        for raw in as_list(drawing):
            try:
                annotations.append(Annotation.from_dict(raw))
            except (KeyError, TypeError, ValueError) as e:
                LOGGER.warning("Ignoring invalid drawing annotation: %s", e)
        return annotations


def parse_document(text: str, existing: Optional[TopologyState] = None,
                   ids: Optional[IdAllocator] = None) -> Optional[TopologyState]:
    """
    Parse a topology document.

    Args:
        text: YAML document text
        existing: Current state whose ids are reused by name
        ids: Allocator shared with the caller's graph

    Returns:
        The parsed TopologyState, or None if the text is not a topology document
    """
    return DocumentParser(existing, ids).parse(text)
