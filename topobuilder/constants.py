# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Shared constants for the topology document and the graph engine."""

API_VERSION = "topologies.eda.nokia.com/v1alpha1"
KIND = "NetworkTopology"

DEFAULT_TOPOLOGY_NAME = "my-topology"
DEFAULT_NAMESPACE = "eda"
DEFAULT_OPERATION = "replaceAll"
OPERATIONS = ("create", "replace", "replaceAll", "delete", "deleteAll")

# Keys under this prefix carry graph-only metadata and never reach user labels.
RESERVED_PREFIX = "topobuilder.eda.labs/"
ANNOTATION_POS_X = RESERVED_PREFIX + "x"
ANNOTATION_POS_Y = RESERVED_PREFIX + "y"
ANNOTATION_EDGE_ID = RESERVED_PREFIX + "edgeId"
ANNOTATION_MEMBER_INDEX = RESERVED_PREFIX + "memberIndex"
ANNOTATION_MEMBER_INDICES = RESERVED_PREFIX + "memberIndices"
ANNOTATION_MEMBER_NAMES = RESERVED_PREFIX + "memberNames"
ANNOTATION_MEMBER_TEMPLATES = RESERVED_PREFIX + "memberTemplates"
ANNOTATION_MEMBER_LABELS = RESERVED_PREFIX + "memberLabels"
ANNOTATION_SRC_HANDLE = RESERVED_PREFIX + "srcHandle"
ANNOTATION_DST_HANDLE = RESERVED_PREFIX + "dstHandle"
ANNOTATION_NAME_PREFIX = RESERVED_PREFIX + "name-prefix"
ANNOTATION_DRAWING = RESERVED_PREFIX + "drawing"

DEFAULT_INTERFACE = "ethernet-1-1"
DEFAULT_SIM_INTERFACE = "eth1"

NAME_MAX_LENGTH = 63
NAME_PATTERN = r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$"

LAG_MIN_MEMBERS = 2
ESI_LAG_MIN_LEAVES = 2
ESI_LAG_MAX_LEAVES = 4

UNDO_LIMIT = 50
DEBOUNCE_SECONDS = 0.5
MIN_COORDINATE = 50

DEFAULT_NODE_PREFIX = "node"
DEFAULT_SIM_PREFIX = "sim"
DEFAULT_ISL_TEMPLATE = "isl"
DEFAULT_EDGE_TEMPLATE = "edge"

STORAGE_KEY = "topology-storage"
