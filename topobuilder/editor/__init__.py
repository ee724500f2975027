# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Editing facade: mutations, selection, clipboard and document sync."""

from .clipboard import Clipboard, PasteResult
from .editor import TopologyEditor
from .selection import Selection
from .sync import AsyncioScheduler, BufferSurface, DocumentSync, ManualScheduler, Scheduler, TextSurface

__all__ = [
    "TopologyEditor",
    "Selection",
    "Clipboard",
    "PasteResult",
    "DocumentSync",
    "Scheduler",
    "TextSurface",
    "AsyncioScheduler",
    "ManualScheduler",
    "BufferSurface",
]
