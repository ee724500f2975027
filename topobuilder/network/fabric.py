"""
Leaf/spine fabric generation.

This module turns a compact fabric definition (tier counts plus node
templates) into a full set of nodes and inter-switch links.
"""

import logging
from typing import List, Optional, Sequence

import yaml
from pydantic import BaseModel, Field, ValidationError

from ..constants import DEFAULT_ISL_TEMPLATE
from .graph import TopologyGraph
from .model import Edge, MemberLink, Node, NodeTemplate, Position, TopologyState
from .naming import IdAllocator, format_interface, member_link_name, unique_name

LOGGER = logging.getLogger(__name__)

SPACING = 200
Y_SUPERSPINE = 100
Y_SPINE = 350
Y_LEAF = 600


class FabricTier(BaseModel):
    count: int = Field(..., ge=1, description="Number of nodes in the tier")
    template: str = Field(..., min_length=1, description="Node template for the tier")


class FabricDefinition(BaseModel):
    leafs: FabricTier
    spines: FabricTier
    superspines: Optional[FabricTier] = None


def parse_fabric(text: str) -> Optional[FabricDefinition]:
    """Parse a fabric definition from YAML text; None if it is unusable."""
    if not text or not text.strip():
        return None
    try:
        data = yaml.safe_load(text)
        if not isinstance(data, dict):
            return None
        return FabricDefinition.model_validate(data)
    except (yaml.YAMLError, ValidationError) as e:
        LOGGER.warning("Invalid fabric definition: %s", e)
        return None


class FabricGenerator:
    """Generator for leaf/spine(/superspine) fabrics."""

    @staticmethod
    def generate(definition: FabricDefinition, state: TopologyState,
                 ids: IdAllocator) -> TopologyState:
        """
        Build a fabric topology.

        Args:
            definition: Tier counts and templates
            state: Current state; templates, metadata and annotations are kept
            ids: Allocator for the new node and edge ids

        Returns:
            New state whose nodes and edges are the generated fabric
        """
        graph = TopologyGraph(state.replace(nodes=(), edges=()), ids)

        leafs = FabricGenerator._build_tier(graph, definition.leafs, state.node_templates, "leaf", Y_LEAF)
        spines = FabricGenerator._build_tier(graph, definition.spines, state.node_templates, "spine", Y_SPINE)
        superspines: List[Node] = []
        if definition.superspines is not None:
            superspines = FabricGenerator._build_tier(
                graph, definition.superspines, state.node_templates, "superspine", Y_SUPERSPINE
            )

        isl = next((t.name for t in state.link_templates if t.type == "interSwitch"), DEFAULT_ISL_TEMPLATE)
        for leaf in leafs:
            for spine in spines:
                FabricGenerator._connect(graph, leaf, spine, isl)
        for spine in spines:
            for superspine in superspines:
                FabricGenerator._connect(graph, spine, superspine, isl)

        LOGGER.info("Generated fabric with %d nodes and %d links", len(graph.nodes), len(graph.edges))
        return graph.state

    @staticmethod
    def _build_tier(graph: TopologyGraph, tier: FabricTier, templates: Sequence[NodeTemplate],
                    fallback: str, y: float) -> List[Node]:
        template = next((t for t in templates if t.name == tier.template), None)
        prefix = (template.name_prefix if template else None) or fallback
        start_x = -((tier.count - 1) * SPACING) / 2
        nodes = []
        for i in range(tier.count):
            node = Node(
                id=graph.ids.next_id("node"),
                name=unique_name(prefix, graph.names()),
                position=Position(start_x + i * SPACING, y),
                template=tier.template,
            )
            nodes.append(graph.add_node(node))
        return nodes

    @staticmethod
    def _connect(graph: TopologyGraph, source: Node, target: Node, template: str) -> Edge:
        number = graph.link_count_for_pair(source.name, target.name) + 1
        member = MemberLink(
            name=member_link_name(target.name, source.name, number),
            source_interface=format_interface(False, graph.next_port_number(source.id)),
            target_interface=format_interface(False, graph.next_port_number(target.id)),
            template=template,
        )
        return graph.add_edge(Edge(
            id=graph.ids.next_id("edge"),
            source=source.id,
            target=target.id,
            source_name=source.name,
            target_name=target.name,
            member_links=(member,),
        ))
