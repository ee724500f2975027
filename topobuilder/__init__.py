# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""
Topobuilder: topology graph engine

Builds network topologies (nodes, links, LAGs, ESI-LAGs, simulation endpoints)
and keeps them losslessly convertible to and from a YAML topology document.
"""

from .editor.editor import TopologyEditor
from .network.graph import TopologyGraph
from .history import HistoryManager
from .document.parser import parse_document
from .document.serializer import serialize_state

__version__ = "0.1.0"
__all__ = [
    "TopologyEditor",
    "TopologyGraph",
    "HistoryManager",
    "parse_document",
    "serialize_state",
]
