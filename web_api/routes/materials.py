"""
Session material API routes.

Endpoints:
- GET /api/mentor/session-material - List a session's material links
- POST /api/mentor/session-material - Add links
- PUT /api/mentor/session-material - Remove one link
"""

import sys
from pathlib import Path
from typing import Any

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from core.errors import SessionChangeError
from core.materials import (
    SessionMaterials,
    add_session_materials,
    delete_session_material,
    get_session_materials,
)
from core.sessions import SessionSelector

router = APIRouter(prefix="/api/mentor", tags=["materials"])


class AddMaterialsRequest(BaseModel):
    """Request body for adding material links to a session."""

    table_name: str
    session_id: int | None = None
    date: str | None = None
    time: str | None = None
    mentor_id: int | None = None
    links: list[str]


class DeleteMaterialRequest(BaseModel):
    """Request body for removing one material link from a session."""

    table_name: str
    session_id: int | None = None
    date: str | None = None
    time: str | None = None
    mentor_id: int | None = None
    link: str


def _materials_response(materials: SessionMaterials) -> dict[str, Any]:
    return {
        "initial_session_material": materials.initial_links,
        "session_material": materials.session_links,
        "links": materials.links,
    }


@router.get("/session-material")
async def list_materials(
    table_name: str = Query(...),
    session_id: int | None = Query(None),
    date: str | None = Query(None),
    time: str | None = Query(None),
    mentor_id: int | None = Query(None),
) -> dict[str, Any]:
    """Material links for a session, initial links first."""
    try:
        selector = SessionSelector.from_params(session_id, date, time, mentor_id)
        materials = await get_session_materials(table_name, selector)
    except SessionChangeError as e:
        raise HTTPException(e.status_code, e.to_detail())

    return _materials_response(materials)


@router.post("/session-material")
async def add_materials(body: AddMaterialsRequest) -> dict[str, Any]:
    """Append links to the session's mentor-added materials."""
    try:
        selector = SessionSelector.from_params(
            body.session_id, body.date, body.time, body.mentor_id
        )
        materials = await add_session_materials(body.table_name, selector, body.links)
    except SessionChangeError as e:
        raise HTTPException(e.status_code, e.to_detail())

    return {"success": True, **_materials_response(materials)}


@router.put("/session-material")
async def remove_material(body: DeleteMaterialRequest) -> dict[str, Any]:
    """Remove a link from whichever material list holds it."""
    try:
        selector = SessionSelector.from_params(
            body.session_id, body.date, body.time, body.mentor_id
        )
        column, materials = await delete_session_material(
            body.table_name, selector, body.link
        )
    except SessionChangeError as e:
        raise HTTPException(e.status_code, e.to_detail())

    return {"success": True, "removed_from": column, **_materials_response(materials)}
