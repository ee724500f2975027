# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Conversion between topology graphs and YAML topology documents."""

from pathlib import Path

from .parser import DocumentParser, parse_document
from .serializer import build_document, normalize_positions, serialize_state
from .validate import ValidationIssue, ValidationResult, validate_document

BASE_TEMPLATE_PATH = Path(__file__).with_name("base_template.yaml")


def base_template_text() -> str:
    """Starter document with the default node, link and simulation templates."""
    return BASE_TEMPLATE_PATH.read_text(encoding="utf-8")


__all__ = [
    "DocumentParser",
    "parse_document",
    "build_document",
    "serialize_state",
    "normalize_positions",
    "validate_document",
    "ValidationIssue",
    "ValidationResult",
    "base_template_text",
]
