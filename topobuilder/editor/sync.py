# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""
Two-way synchronisation between the editor model and a text surface.

Model changes are pushed to the surface immediately. Text typed into the
surface is imported after a quiet period; every new keystroke restarts the
timer. Text the sync wrote itself is not imported again.
"""

import asyncio
import heapq
import itertools
import logging
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

LOGGER = logging.getLogger(__name__)

Callback = Callable[[], None]


class Scheduler(Protocol):
    def schedule(self, delay: float, callback: Callback) -> Any:
        """Run ``callback`` after ``delay`` seconds; returns a cancellation token."""

    def cancel(self, token: Any) -> None:
        """Cancel a scheduled callback. Unknown or expired tokens are ignored."""


class TextSurface(Protocol):
    def set_text(self, text: str) -> None:
        """Replace the surface content."""


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def schedule(self, delay: float, callback: Callback) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)

    def cancel(self, token: Any) -> None:
        if token is not None:
            token.cancel()


class ManualScheduler:
    """
    Scheduler driven by a virtual clock.

    Nothing runs until ``advance`` moves the clock past a deadline.
    """

    def __init__(self):
        self.now = 0.0
        self._queue: List[Tuple[float, int]] = []
        self._callbacks: Dict[int, Callback] = {}
        self._tokens = itertools.count(1)

    def schedule(self, delay: float, callback: Callback) -> int:
        token = next(self._tokens)
        self._callbacks[token] = callback
        heapq.heappush(self._queue, (self.now + max(0.0, delay), token))
        return token

    def cancel(self, token: Any) -> None:
        self._callbacks.pop(token, None)

    @property
    def pending(self) -> int:
        return len(self._callbacks)

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward and run every callback that became due.

        Returns:
            Number of callbacks run
        """
        self.now += seconds
        ran = 0
        while self._queue and self._queue[0][0] <= self.now:
            _, token = heapq.heappop(self._queue)
            callback = self._callbacks.pop(token, None)
            if callback is not None:
                callback()
                ran += 1
        return ran


class BufferSurface:
    """In-memory text surface."""

    def __init__(self, text: str = ""):
        self.text = text
        self.writes = 0

    def set_text(self, text: str) -> None:
        self.text = text
        self.writes += 1


class DocumentSync:
    """
    Keeps a text surface and a TopologyEditor in step.

    Args:
        editor: The TopologyEditor to mirror
        surface: Where document text is written
        scheduler: Timer source for the debounce
        delay: Quiet period before edited text is imported
            (``editor.config.debounce_seconds`` when None)
    """

    def __init__(self, editor: Any, surface: TextSurface, scheduler: Scheduler,
                 delay: Optional[float] = None):
        self.editor = editor
        self.surface = surface
        self.scheduler = scheduler
        self.delay = editor.config.debounce_seconds if delay is None else delay
        self._ignore_text: Optional[str] = None
        self._pending: Any = None
        self._pending_text: Optional[str] = None
        self._unsubscribe = editor.subscribe(self._on_model_change)

    def push(self) -> None:
        """Write the model to the surface; the echo of this write is ignored."""
        self._cancel_pending()
        text = self.editor.document_text()
        self._ignore_text = text
        self.surface.set_text(text)

    def on_text_changed(self, text: str) -> None:
        """Handle an edit on the surface."""
        if self._ignore_text is not None and text == self._ignore_text:
            self._ignore_text = None
            return
        self._ignore_text = None
        self._cancel_pending()
        self._pending_text = text
        self._pending = self.scheduler.schedule(self.delay, self._apply)

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def flush(self) -> bool:
        """Import pending text now instead of waiting for the timer."""
        if self._pending is None:
            return False
        self.scheduler.cancel(self._pending)
        return self._apply()

    def close(self) -> None:
        self._cancel_pending()
        self._unsubscribe()

    def _apply(self) -> bool:
        text = self._pending_text
        self._pending = None
        self._pending_text = None
        if text is None:
            return False
        ok = self.editor.import_document(text)
        if not ok:
            LOGGER.info("Surface text not imported: %s", self.editor.error)
        return ok

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self.scheduler.cancel(self._pending)
        self._pending = None
        self._pending_text = None

    def _on_model_change(self, event: str) -> None:
        # Imports come from the surface itself.
        if event == "import":
            return
        self.push()
