# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""
Topology document validation.

Checks document text against the bundled JSON Schema and then verifies the
references between entries (templates, endpoint nodes, simulation nodes).
"""

import json
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

import yaml
from jsonschema import Draft202012Validator

from .endpoints import as_dict, as_list

LOGGER = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).with_name("schema.json")


@dataclass(frozen=True)
class ValidationIssue:
    path: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "message": self.message}


@dataclass
class ValidationResult:
    valid: bool
    errors: List[ValidationIssue] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "errors": [e.to_dict() for e in self.errors]}


@lru_cache(maxsize=1)
def _validator() -> Draft202012Validator:
    with open(SCHEMA_PATH, "r", encoding="utf-8") as f:
        schema = json.load(f)
    Draft202012Validator.check_schema(schema)
    return Draft202012Validator(schema)


def _json_pointer(parts: Any) -> str:
    return "/" + "/".join(str(p) for p in parts) if parts else "/"


def _failure(path: str, message: str) -> ValidationResult:
    return ValidationResult(valid=False, errors=[ValidationIssue(path, message)])


def validate_document(text: str) -> ValidationResult:
    """
    Validate topology document text.

    Args:
        text: YAML document text

    Returns:
        ValidationResult listing schema and cross-reference problems
    """
    if not text or not text.strip():
        return _failure("", "YAML content is empty")
    try:
        doc = yaml.safe_load(text)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        location = f" at line {mark.line + 1}, column {mark.column + 1}" if mark else ""
        reason = getattr(e, "problem", None) or str(e)
        return _failure(location.strip(), f"YAML syntax error: {reason}")
    if not isinstance(doc, dict):
        return _failure("", "Invalid document: must be an object")

    errors = [
        ValidationIssue(_json_pointer(err.absolute_path), err.message)
        for err in sorted(_validator().iter_errors(doc), key=lambda e: list(map(str, e.absolute_path)))
    ]
    errors.extend(check_references(doc))
    if errors:
        LOGGER.debug("Document has %d validation issue(s)", len(errors))
    return ValidationResult(valid=not errors, errors=errors)


def _names(entries: Any) -> set:
    return {as_dict(e).get("name") for e in as_list(entries)} - {None}


def check_references(doc: Dict[str, Any]) -> List[ValidationIssue]:
    """Report templates and nodes that are referenced but never defined."""
    errors: List[ValidationIssue] = []
    spec = as_dict(doc.get("spec"))
    simulation = as_dict(spec.get("simulation"))

    node_names = _names(spec.get("nodes"))
    sim_names = _names(simulation.get("simNodes"))
    node_templates = _names(spec.get("nodeTemplates"))
    link_templates = _names(spec.get("linkTemplates"))
    sim_templates = _names(simulation.get("simNodeTemplates"))

    for i, node in enumerate(as_list(spec.get("nodes"))):
        node = as_dict(node)
        template = node.get("template")
        if template and template not in node_templates:
            errors.append(ValidationIssue(
                f"/spec/nodes/{i}/template",
                f'Node "{node.get("name")}" references undefined template "{template}"',
            ))

    for i, link in enumerate(as_list(spec.get("links"))):
        link = as_dict(link)
        name = link.get("name")
        template = link.get("template")
        if template and template not in link_templates:
            errors.append(ValidationIssue(
                f"/spec/links/{i}/template",
                f'Link "{name}" references undefined template "{template}"',
            ))
        for j, endpoint in enumerate(as_list(link.get("endpoints"))):
            endpoint = as_dict(endpoint)
            for side in ("local", "remote"):
                node = as_dict(endpoint.get(side)).get("node")
                if node and node not in node_names and node not in sim_names:
                    errors.append(ValidationIssue(
                        f"/spec/links/{i}/endpoints/{j}/{side}/node",
                        f'Link "{name}" references undefined node "{node}"',
                    ))
            sim = as_dict(endpoint.get("sim"))
            sim_node = sim.get("simNode") or sim.get("node")
            if sim_node and sim_node not in sim_names:
                errors.append(ValidationIssue(
                    f"/spec/links/{i}/endpoints/{j}/sim/simNode",
                    f'Link "{name}" references undefined simNode "{sim_node}"',
                ))

    for i, sim_node in enumerate(as_list(simulation.get("simNodes"))):
        sim_node = as_dict(sim_node)
        template = sim_node.get("template")
        if template and template not in sim_templates:
            errors.append(ValidationIssue(
                f"/spec/simulation/simNodes/{i}/template",
                f'SimNode "{sim_node.get("name")}" references undefined template "{template}"',
            ))
    return errors
