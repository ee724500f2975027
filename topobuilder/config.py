# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""Runtime configuration for the topology editor."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from . import constants

LOGGER = logging.getLogger(__name__)

ENV_PREFIX = "TOPOBUILDER_"


class EditorConfig(BaseModel):
    undo_limit: int = Field(default=constants.UNDO_LIMIT, ge=1, description="Maximum undo checkpoints kept")
    debounce_seconds: float = Field(
        default=constants.DEBOUNCE_SECONDS, ge=0, description="Quiet period before edited text is re-parsed"
    )
    min_coordinate: float = Field(
        default=constants.MIN_COORDINATE, description="Smallest node coordinate in exported documents"
    )
    storage_path: Path = Field(
        default=Path.home() / ".topobuilder" / f"{constants.STORAGE_KEY}.json",
        description="Local snapshot file",
    )
    default_name: str = Field(default=constants.DEFAULT_TOPOLOGY_NAME)
    default_namespace: str = Field(default=constants.DEFAULT_NAMESPACE)
    default_operation: str = Field(default=constants.DEFAULT_OPERATION)
    host: str = Field(default="127.0.0.1", description="Web API bind host")
    port: int = Field(default=8000, ge=1, le=65535, description="Web API bind port")


def load_config(env_file: Optional[str] = None, **overrides: Any) -> EditorConfig:
    """
    Build an EditorConfig from the environment.

    Values are read from ``TOPOBUILDER_<FIELD>`` environment variables (after
    loading ``env_file`` or a ``.env`` in the working directory) and then
    replaced by any explicit keyword overrides.
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    values: Dict[str, Any] = {}
    for field_name in EditorConfig.model_fields:
        raw = os.getenv(ENV_PREFIX + field_name.upper())
        if raw is not None:
            values[field_name] = raw
    values.update({k: v for k, v in overrides.items() if v is not None})

    config = EditorConfig(**values)
    LOGGER.debug("Loaded editor config: %s", config)
    return config
