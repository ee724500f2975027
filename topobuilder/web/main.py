# Copyright 2026 Cisco Systems, Inc. and its affiliates
#
# SPDX-License-Identifier: Apache-2.0

"""FastAPI application for the topology editor.

Endpoints:
- GET    /api/health: liveness
- GET    /api/topology: model state and document text
- PUT    /api/topology: import document text
- GET    /api/topology/export: normalized document for download
- POST   /api/topology/validate: schema and reference checks
- POST   /api/nodes, /api/edges, /api/lags, /api/esi-lags: mutations
- DELETE /api/nodes/{node_id}
- POST   /api/undo, /api/redo
"""
from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from .manager import EditorManager
from .schemas import DocumentRequest, EdgeRequest, EsiLagRequest, LagRequest, NodeRequest, ValidateRequest


app = FastAPI(title="Topobuilder API", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health")
async def health() -> Dict[str, Any]:
    return {"status": "ok"}


@app.get("/api/topology")
async def api_topology() -> JSONResponse:
    return JSONResponse(EditorManager().get_topology())


@app.put("/api/topology")
async def api_import(payload: DocumentRequest) -> JSONResponse:
    mgr = EditorManager()
    try:
        data = mgr.import_document(payload.text)
    except RuntimeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return JSONResponse(data)


@app.get("/api/topology/export")
async def api_export() -> JSONResponse:
    return JSONResponse(EditorManager().export_document())


@app.post("/api/topology/validate")
async def api_validate(payload: ValidateRequest) -> JSONResponse:
    return JSONResponse(EditorManager().validate(payload.text))


@app.post("/api/nodes")
async def api_add_node(payload: NodeRequest) -> JSONResponse:
    mgr = EditorManager()
    try:
        data = mgr.add_node(payload.x, payload.y, payload.template, payload.kind)
    except RuntimeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return JSONResponse(data)


@app.delete("/api/nodes/{node_id}")
async def api_delete_node(node_id: str) -> JSONResponse:
    mgr = EditorManager()
    try:
        data = mgr.delete_node(node_id)
    except RuntimeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return JSONResponse(data)


@app.post("/api/edges")
async def api_add_edge(payload: EdgeRequest) -> JSONResponse:
    mgr = EditorManager()
    try:
        data = mgr.add_edge(payload.source, payload.target, payload.source_handle, payload.target_handle)
    except RuntimeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return JSONResponse(data)


@app.post("/api/lags")
async def api_create_lag(payload: LagRequest) -> JSONResponse:
    mgr = EditorManager()
    try:
        data = mgr.create_lag(payload.edge_id, payload.member_indices)
    except RuntimeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return JSONResponse(data)


@app.post("/api/esi-lags")
async def api_create_esi_lag(payload: EsiLagRequest) -> JSONResponse:
    mgr = EditorManager()
    try:
        data = mgr.create_esi_lag(payload.edge_ids)
    except RuntimeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return JSONResponse(data)


@app.post("/api/undo")
async def api_undo() -> JSONResponse:
    mgr = EditorManager()
    try:
        data = mgr.undo()
    except RuntimeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return JSONResponse(data)


@app.post("/api/redo")
async def api_redo() -> JSONResponse:
    mgr = EditorManager()
    try:
        data = mgr.redo()
    except RuntimeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return JSONResponse(data)


# Run with `python -m topobuilder serve` or `uvicorn topobuilder.web.main:app --reload`
