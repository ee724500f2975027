# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""
Snapshot-based undo/redo.

States are immutable, so checkpoints are stored by reference and share all
unchanged entities with the live model.
"""

import logging
from collections import deque
from typing import Deque, Optional

from .constants import UNDO_LIMIT
from .network.model import TopologyState

LOGGER = logging.getLogger(__name__)


class HistoryManager:
    """
    Two bounded stacks of TopologyState.

    The oldest checkpoint is dropped once ``limit`` is reached.
    """

    def __init__(self, limit: int = UNDO_LIMIT):
        if limit < 1:
            raise ValueError("History limit must be at least 1")
        self.limit = limit
        self._undo: Deque[TopologyState] = deque(maxlen=limit)
        self._redo: Deque[TopologyState] = deque(maxlen=limit)

    def save_checkpoint(self, state: TopologyState) -> None:
        """Record ``state`` as the point to return to; clears redo."""
        self._undo.append(state)
        self._redo.clear()

    def undo(self, current: TopologyState) -> Optional[TopologyState]:
        """
        Step back one checkpoint.

        Args:
            current: Live state, kept on the redo stack

        Returns:
            The state to restore, or None if there is nothing to undo
        """
        if not self._undo:
            return None
        previous = self._undo.pop()
        self._redo.append(current)
        LOGGER.debug("Undo (%d left, %d redo)", len(self._undo), len(self._redo))
        return previous

    def redo(self, current: TopologyState) -> Optional[TopologyState]:
        """Step forward one checkpoint; None if there is nothing to redo."""
        if not self._redo:
            return None
        following = self._redo.pop()
        self._undo.append(current)
        LOGGER.debug("Redo (%d undo, %d left)", len(self._undo), len(self._redo))
        return following

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
