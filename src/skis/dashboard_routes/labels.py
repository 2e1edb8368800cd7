"""Label definition route handlers."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from skis.core import SkisDB
from skis.dashboard_routes.common import _optional_str, _parse_json_body


def create_router() -> APIRouter:
    """Build the APIRouter for label endpoints."""
    from skis.dashboard import _get_db

    router = APIRouter()

    @router.get("/labels")
    async def api_labels(db: SkisDB = Depends(_get_db)) -> JSONResponse:
        return JSONResponse([label.to_dict() for label in db.list_labels()])

    @router.post("/labels")
    async def api_create_label(request: Request, db: SkisDB = Depends(_get_db)) -> JSONResponse:
        body = await _parse_json_body(request)
        if not isinstance(body, dict):
            return body
        fields: dict[str, str | None] = {}
        for key in ("description", "color"):
            value = _optional_str(body, key)
            if not (value is None or isinstance(value, str)):
                return value
            fields[key] = value
        label = db.create_label(body.get("name"), description=fields["description"], color=fields["color"])  # type: ignore[arg-type]
        return JSONResponse(label.to_dict(), status_code=201)

    @router.delete("/labels/{name}")
    async def api_delete_label(name: str, db: SkisDB = Depends(_get_db)) -> JSONResponse:
        db.delete_label(name)
        return JSONResponse({"name": name, "deleted": True})

    return router
