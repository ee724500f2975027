# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""
Identifier allocation and naming rules.

Ids are kind-prefixed (``node-3``, ``edge-7``, ``sim-1``, ``annotation-2``) and
never reused within an allocator's lifetime. Display names follow the
Kubernetes-style DNS label grammar used by the topology document.
"""

import re
from typing import Dict, Iterable, Optional

from ..constants import DEFAULT_INTERFACE, NAME_MAX_LENGTH, NAME_PATTERN

ID_KINDS = ("node", "edge", "sim", "annotation")

_NAME_RE = re.compile(NAME_PATTERN)
_ID_RE = re.compile(r"^(node|edge|sim|annotation)-(\d+)$")
_COPY_SUFFIX_RE = re.compile(r"-copy(\d+)?$")
_TOPO_PORT_RE = re.compile(r"^ethernet-1-(\d+)$")
_SIM_PORT_RE = re.compile(r"^eth(\d+)$")
_TRAILING_NUMBER_RE = re.compile(r"^(.+?)(\d+)$")


class IdAllocator:
    """Monotonic per-kind id generator."""

    def __init__(self):
        self._counters: Dict[str, int] = {kind: 1 for kind in ID_KINDS}

    def next_id(self, kind: str) -> str:
        """Return the next id for ``kind`` and advance its counter."""
        if kind not in self._counters:
            raise ValueError(f"Unknown id kind: {kind}")
        value = self._counters[kind]
        self._counters[kind] = value + 1
        return f"{kind}-{value}"

    def observe(self, ids: Iterable[str]) -> None:
        """Advance counters past every numeric id suffix in ``ids``."""
        for item in ids:
            match = _ID_RE.match(item or "")
            if not match:
                continue
            kind, number = match.group(1), int(match.group(2))
            if number >= self._counters[kind]:
                self._counters[kind] = number + 1

    def reset(self) -> None:
        for kind in ID_KINDS:
            self._counters[kind] = 1

    def state(self) -> Dict[str, int]:
        return dict(self._counters)

    def restore(self, counters: Dict[str, int]) -> None:
        for kind, value in counters.items():
            if kind in self._counters:
                self._counters[kind] = max(1, int(value))


def unique_name(prefix: str, existing: Iterable[str], start_at: int = 1) -> str:
    """Return ``prefix<N>`` for the smallest ``N >= start_at`` not in ``existing``."""
    taken = set(existing)
    n = start_at
    while f"{prefix}{n}" in taken:
        n += 1
    return f"{prefix}{n}"


def copy_name(original: str, existing: Iterable[str]) -> str:
    """
    Return a free copy variant of ``original``.

    Any trailing ``-copy``/``-copy<N>`` is stripped first, then ``<base>-copy``,
    ``<base>-copy1``, ``<base>-copy2`` ... are tried in order.
    """
    taken = set(existing)
    base = _COPY_SUFFIX_RE.sub("", original)
    candidate = f"{base}-copy"
    n = 1
    while candidate in taken:
        candidate = f"{base}-copy{n}"
        n += 1
    return candidate


def name_error(name: Optional[str]) -> Optional[str]:
    """Return a human-readable reason ``name`` violates the grammar, or None."""
    if not name:
        return "Name is required"
    if len(name) > NAME_MAX_LENGTH:
        return f"Name must be {NAME_MAX_LENGTH} characters or less"
    if _NAME_RE.match(name):
        return None
    if name != name.lower():
        return "Name must be lowercase"
    if not re.match(r"^[a-z0-9]", name):
        return "Name must start with a lowercase letter or number"
    if not re.search(r"[a-z0-9]$", name):
        return "Name must end with a lowercase letter or number"
    return "Name can only contain lowercase letters, numbers, and hyphens"


def validate_name(name: Optional[str], existing: Iterable[str],
                  current: Optional[str] = None) -> Optional[str]:
    """
    Check grammar and uniqueness.

    Args:
        name: Proposed name
        existing: Names already in use
        current: The entity's present name, which may be kept

    Returns:
        Error message, or None when the name is acceptable
    """
    error = name_error(name)
    if error:
        return error
    if name != current and name in set(existing):
        return f'Name "{name}" already exists'
    return None


def port_number(interface: Optional[str]) -> int:
    """Extract the port number from ``ethernet-1-<n>`` or ``eth<n>``, else 0."""
    if not interface:
        return 0
    match = _TOPO_PORT_RE.match(interface) or _SIM_PORT_RE.match(interface)
    return int(match.group(1)) if match else 0


def format_interface(is_sim: bool, number: int) -> str:
    return f"eth{number}" if is_sim else f"ethernet-1-{number}"


def increment_interface(interface: Optional[str], step: int = 1) -> str:
    """Bump the trailing number of an interface name."""
    match = _TRAILING_NUMBER_RE.match(interface or "")
    if not match:
        return DEFAULT_INTERFACE
    return f"{match.group(1)}{int(match.group(2)) + step}"


def member_link_name(target: str, source: str, number: int) -> str:
    return f"{target}-{source}-{number}"


def lag_name(target: str, source: str, count: int) -> str:
    return f"{target}-{source}-lag-{count}"


def lag_id(edge_id: str, count: int) -> str:
    return f"lag-{edge_id}-{count}"


def esi_lag_name(common: str, count: int) -> str:
    return f"{common}-esi-lag-{count}"


def replace_name_token(text: Optional[str], old: str, new: str) -> Optional[str]:
    """Replace ``old`` where it appears as a whole hyphen-delimited token."""
    if not text or not old or old == new:
        return text
    pattern = re.compile(rf"(^|-){re.escape(old)}(?=-|$)")
    return pattern.sub(lambda m: m.group(1) + new, text)
