# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Pydantic request schemas for the topology web API."""
from __future__ import annotations

from typing import List, Literal, Optional
from pydantic import BaseModel, Field


class DocumentRequest(BaseModel):
    text: str = Field(..., description="Topology document (YAML)")


class ValidateRequest(BaseModel):
    text: Optional[str] = Field(default=None, description="Document to check; the live model if omitted")


class NodeRequest(BaseModel):
    x: float = 0.0
    y: float = 0.0
    template: Optional[str] = None
    kind: Literal["node", "simnode"] = "node"


class EdgeRequest(BaseModel):
    source: str = Field(..., description="Source node id")
    target: str = Field(..., description="Target node id")
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None


class LagRequest(BaseModel):
    edge_id: str
    member_indices: List[int] = Field(..., min_length=2)


class EsiLagRequest(BaseModel):
    edge_ids: List[str] = Field(..., min_length=2, max_length=4)
