# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""
Command line interface for topobuilder.

Usage:
    python -m topobuilder validate topology.yaml
    python -m topobuilder normalize topology.yaml --output clean.yaml
    python -m topobuilder inspect topology.yaml
    python -m topobuilder fabric --leafs 4 --spines 2 --output fabric.yaml
    python -m topobuilder serve --host 0.0.0.0 --port 8000
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import networkx as nx
import typer
import uvicorn

from .config import load_config
from .document.parser import parse_document
from .document.serializer import normalize_positions, serialize_state
from .document.validate import validate_document
from .editor.editor import TopologyEditor
from .network.fabric import FabricDefinition, FabricTier
from .network.graph import TopologyGraph

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
LOGGER = logging.getLogger("topobuilder.cli")

app = typer.Typer(help="Build, check and convert network topology documents.", no_args_is_help=True)


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        typer.echo(f"Cannot read {path}: {e}", err=True)
        raise typer.Exit(code=1)


def _write(text: str, output: Optional[Path]) -> None:
    if output is None:
        typer.echo(text, nl=False)
        return
    output.write_text(text, encoding="utf-8")
    LOGGER.info("Wrote %s", output)


@app.command()
def validate(file: Path = typer.Argument(..., help="Topology document (YAML).")) -> None:
    """Check a document against the schema and its internal references."""
    result = validate_document(_read(file))
    if result.valid:
        typer.echo(f"{file}: valid")
        return
    for issue in result.errors:
        typer.echo(f"{issue.path or '/'}: {issue.message}")
    raise typer.Exit(code=1)


@app.command()
def normalize(
    file: Path = typer.Argument(..., help="Topology document (YAML)."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write here instead of stdout."),
) -> None:
    """Re-emit a document in canonical form with coordinates normalized."""
    state = parse_document(_read(file))
    if state is None:
        typer.echo(f"{file}: not a topology document", err=True)
        raise typer.Exit(code=1)
    config = load_config()
    _write(serialize_state(normalize_positions(state, config.min_coordinate)), output)


@app.command()
def inspect(file: Path = typer.Argument(..., help="Topology document (YAML).")) -> None:
    """Print a JSON summary of the topology graph."""
    state = parse_document(_read(file))
    if state is None:
        typer.echo(f"{file}: not a topology document", err=True)
        raise typer.Exit(code=1)
    graph = TopologyGraph(state)
    multigraph = graph.to_networkx()
    summary = {
        "name": state.name,
        "namespace": state.namespace,
        **graph.summary(),
        "connected_components": nx.number_connected_components(multigraph) if len(multigraph) else 0,
        "degree": {name: degree for name, degree in sorted(multigraph.degree())},
    }
    typer.echo(json.dumps(summary, indent=2))


@app.command()
def fabric(
    leafs: int = typer.Option(..., "--leafs", min=1, help="Number of leaf switches."),
    spines: int = typer.Option(..., "--spines", min=1, help="Number of spine switches."),
    superspines: Optional[int] = typer.Option(None, "--superspines", min=1, help="Number of superspines."),
    leaf_template: str = typer.Option("leaf", "--leaf-template", help="Node template for leafs."),
    spine_template: str = typer.Option("spine", "--spine-template", help="Node template for spines."),
    superspine_template: str = typer.Option(
        "superspine", "--superspine-template", help="Node template for superspines."
    ),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write here instead of stdout."),
) -> None:
    """Generate a leaf/spine fabric on top of the base template."""
    definition = FabricDefinition(
        leafs=FabricTier(count=leafs, template=leaf_template),
        spines=FabricTier(count=spines, template=spine_template),
        superspines=FabricTier(count=superspines, template=superspine_template) if superspines else None,
    )
    editor = TopologyEditor(load_config())
    if not editor.apply_fabric(definition):
        typer.echo(editor.error or "Fabric generation failed", err=True)
        raise typer.Exit(code=1)
    _write(editor.export_document(), output)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Host address to bind the server to."),
    port: Optional[int] = typer.Option(None, "--port", help="Port number to listen on."),
    log_level: str = typer.Option("info", "--log-level", help="Uvicorn log level."),
) -> None:
    """Start the topology web API."""
    config = load_config(host=host, port=port)
    LOGGER.info("Starting topobuilder API on %s:%d", config.host, config.port)
    uvicorn.run("topobuilder.web.main:app", host=config.host, port=config.port, log_level=log_level)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
