# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Topology graph model, naming rules, bundling and fabric generation."""

from .graph import TopologyGraph
from .model import (
    Annotation,
    Edge,
    EdgeType,
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
from .naming import IdAllocator
from .fabric import FabricDefinition, FabricGenerator

__all__ = [
    "TopologyGraph",
    "TopologyState",
    "Node",
    "NodeKind",
    "Edge",
    "EdgeType",
    "MemberLink",
    "LagGroup",
    "EsiLeaf",
    "Annotation",
    "Position",
    "NodeTemplate",
    "LinkTemplate",
    "SimNodeTemplate",
    "IdAllocator",
    "FabricDefinition",
    "FabricGenerator",
]
