# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Exception types raised by the topology engine."""


class TopologyError(ValueError):
    """Base error for invalid topology operations."""


class NameValidationError(TopologyError):
    """A name violates the naming grammar or collides with an existing one."""


class BundlingError(TopologyError):
    """A LAG or ESI-LAG operation was rejected."""


class DocumentParseError(TopologyError):
    """Document text could not be read as a topology document."""
