# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Snapshot persistence."""

from .snapshot import SNAPSHOT_VERSION, apply_snapshot, export_snapshot, load_snapshot, save_snapshot

__all__ = ["SNAPSHOT_VERSION", "export_snapshot", "save_snapshot", "load_snapshot", "apply_snapshot"]
