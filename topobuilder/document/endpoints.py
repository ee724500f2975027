# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Helpers shared by the document parser and serializer."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import yaml

from ..constants import (
    ANNOTATION_DST_HANDLE,
    ANNOTATION_POS_X,
    ANNOTATION_POS_Y,
    ANNOTATION_SRC_HANDLE,
    DEFAULT_INTERFACE,
    DEFAULT_SIM_INTERFACE,
    RESERVED_PREFIX,
)
from ..errors import DocumentParseError
from ..network.model import Position


@dataclass(frozen=True)
class ParsedEndpoint:
    """
    One document endpoint seen as a directed pair.

    ``target_name`` is None for a bare ``local`` endpoint. For ``local`` +
    ``sim`` endpoints the simulation node is the source.
    """
    source_name: str
    target_name: Optional[str]
    source_interface: str
    target_interface: Optional[str]
    sim: bool = False

    def reversed(self) -> "ParsedEndpoint":
        return ParsedEndpoint(self.target_name, self.source_name, self.target_interface,
                              self.source_interface, self.sim)


def load_document(text: str) -> Dict[str, Any]:
    """
    Load document text into a mapping.

    Raises:
        DocumentParseError: If the text is not YAML or not a mapping
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise DocumentParseError(f"Invalid YAML: {e}") from e
    if not isinstance(data, dict):
        raise DocumentParseError("Topology document must be a mapping")
    return data


def as_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, list) else []


def as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def user_labels(values: Any) -> Dict[str, str]:
    """Drop reserved keys, keeping only user-visible labels."""
    return {
        str(k): str(v) for k, v in as_dict(values).items()
        if not str(k).startswith(RESERVED_PREFIX)
    }


def extract_position(annotations: Any) -> Optional[Position]:
    annotations = as_dict(annotations)
    x, y = annotations.get(ANNOTATION_POS_X), annotations.get(ANNOTATION_POS_Y)
    if x in (None, "") or y in (None, ""):
        return None
    try:
        return Position(float(x), float(y))
    except (TypeError, ValueError):
        return None


def extract_handles(annotations: Any) -> Tuple[Optional[str], Optional[str]]:
    annotations = as_dict(annotations)
    return annotations.get(ANNOTATION_SRC_HANDLE) or None, annotations.get(ANNOTATION_DST_HANDLE) or None


def format_coordinate(value: float) -> str:
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)


def parse_endpoint(raw: Any) -> Optional[ParsedEndpoint]:
    """Read ``{local, remote?|sim?}``; None when there is no local node."""
    raw = as_dict(raw)
    local = as_dict(raw.get("local"))
    local_node = local.get("node")
    if not local_node:
        return None
    local_interface = local.get("interface") or DEFAULT_INTERFACE

    remote = as_dict(raw.get("remote"))
    if remote.get("node"):
        return ParsedEndpoint(
            source_name=str(local_node),
            target_name=str(remote["node"]),
            source_interface=str(local_interface),
            target_interface=str(remote.get("interface") or DEFAULT_INTERFACE),
        )

    sim = as_dict(raw.get("sim"))
    sim_name = sim.get("simNode") or sim.get("node")
    if sim_name:
        return ParsedEndpoint(
            source_name=str(sim_name),
            target_name=str(local_node),
            source_interface=str(sim.get("simNodeInterface") or sim.get("interface") or DEFAULT_SIM_INTERFACE),
            target_interface=str(local_interface),
            sim=True,
        )

    return ParsedEndpoint(str(local_node), None, str(local_interface), None)
