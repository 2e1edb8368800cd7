"""Issue, comment and link route handlers."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from skis.core import SkisDB, read_config
from skis.dashboard_routes.common import (
    _error_response,
    _get_bool_param,
    _optional_str,
    _parse_json_body,
    _parse_pagination,
    _safe_int,
    _str_list,
)
from skis.models import IssueFilter

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Router factory
# ---------------------------------------------------------------------------


def create_router() -> APIRouter:
    """Build the APIRouter for issue, comment and link endpoints.

    Handlers are async so every SQLite call runs on the event loop thread
    that owns the shared connection.

    Typed store errors are not caught here; the app-level handler installed
    by ``create_app`` maps them to error envelopes.
    """
    from skis.dashboard import _get_db

    router = APIRouter()

    # -- Queries -------------------------------------------------------------

    @router.get("/issues")
    async def api_issues(request: Request, db: SkisDB = Depends(_get_db)) -> JSONResponse:
        """List or search issues.

        Query params: state (open/closed/all), type, label (repeatable, AND),
        q (full-text), include_deleted, sort, order, limit, offset.
        """
        params = request.query_params
        config = read_config(db.skis_dir)
        page = _parse_pagination(params, config.get("default_limit", 30))
        if not isinstance(page, tuple):
            return page
        include_deleted = _get_bool_param(params, "include_deleted", False)
        if not isinstance(include_deleted, bool):
            return include_deleted

        state = params.get("state", config.get("default_state", "open"))
        flt = IssueFilter(
            state=None if state.lower() == "all" else state,  # type: ignore[arg-type]
            type=params.get("type"),  # type: ignore[arg-type]
            labels=params.getlist("label"),
            include_deleted=include_deleted,
            sort_by=params.get("sort", "updated"),  # type: ignore[arg-type]
            sort_order=params.get("order", "desc"),  # type: ignore[arg-type]
            limit=page[0],
            offset=page[1],
        )
        query = params.get("q")
        issues = db.search_issues(query, flt) if query else db.list_issues(flt)
        return JSONResponse([i.to_dict() for i in issues])

    @router.get("/issues/{issue_id}")
    async def api_issue_detail(issue_id: int, db: SkisDB = Depends(_get_db)) -> JSONResponse:
        """Issue with its labels (full), comments and linked issue summaries."""
        issue = db.get_issue(issue_id)
        linked: list[dict[str, object]] = []
        for other in db._build_issues_batch(issue.links):
            linked.append({"id": other.id, "title": other.title, "state": other.state, "type": other.type})
        return JSONResponse(
            {
                **issue.to_dict(),
                "label_details": [label.to_dict() for label in db.get_issue_labels(issue_id)],
                "linked_issues": linked,
                "comments": [c.to_dict() for c in db.get_comments(issue_id)],
            }
        )

    # -- Issue mutations -----------------------------------------------------

    @router.post("/issues")
    async def api_create_issue(request: Request, db: SkisDB = Depends(_get_db)) -> JSONResponse:
        body = await _parse_json_body(request)
        if not isinstance(body, dict):
            return body
        text = _optional_str(body, "body")
        if not (text is None or isinstance(text, str)):
            return text
        issue_type = _optional_str(body, "type")
        if not (issue_type is None or isinstance(issue_type, str)):
            return issue_type
        labels = _str_list(body, "labels")
        if not isinstance(labels, list):
            return labels
        issue = db.create_issue(body.get("title"), body=text, type=issue_type or "task", labels=labels)  # type: ignore[arg-type]
        return JSONResponse(issue.to_dict(), status_code=201)

    @router.patch("/issues/{issue_id}")
    async def api_update_issue(issue_id: int, request: Request, db: SkisDB = Depends(_get_db)) -> JSONResponse:
        body = await _parse_json_body(request)
        if not isinstance(body, dict):
            return body
        fields: dict[str, str | None] = {}
        for key in ("title", "body", "type"):
            value = _optional_str(body, key)
            if not (value is None or isinstance(value, str)):
                return value
            fields[key] = value
        issue = db.update_issue(issue_id, title=fields["title"], body=fields["body"], type=fields["type"])
        return JSONResponse(issue.to_dict())

    @router.post("/issues/{issue_id}/close")
    async def api_close_issue(issue_id: int, request: Request, db: SkisDB = Depends(_get_db)) -> JSONResponse:
        body = await _parse_json_body(request)
        if not isinstance(body, dict):
            return body
        reason = _optional_str(body, "reason")
        if not (reason is None or isinstance(reason, str)):
            return reason
        comment = _optional_str(body, "comment")
        if not (comment is None or isinstance(comment, str)):
            return comment
        issue = db.close_issue(issue_id, reason=reason or "completed", comment=comment)
        return JSONResponse(issue.to_dict())

    @router.post("/issues/{issue_id}/reopen")
    async def api_reopen_issue(issue_id: int, db: SkisDB = Depends(_get_db)) -> JSONResponse:
        return JSONResponse(db.reopen_issue(issue_id).to_dict())

    @router.delete("/issues/{issue_id}")
    async def api_delete_issue(issue_id: int, db: SkisDB = Depends(_get_db)) -> JSONResponse:
        """Soft delete; the issue stays addressable and can be restored."""
        return JSONResponse(db.delete_issue(issue_id).to_dict())

    @router.post("/issues/{issue_id}/restore")
    async def api_restore_issue(issue_id: int, db: SkisDB = Depends(_get_db)) -> JSONResponse:
        return JSONResponse(db.restore_issue(issue_id).to_dict())

    # -- Labels on issues ----------------------------------------------------

    @router.post("/issues/{issue_id}/labels")
    async def api_add_issue_label(issue_id: int, request: Request, db: SkisDB = Depends(_get_db)) -> JSONResponse:
        body = await _parse_json_body(request)
        if not isinstance(body, dict):
            return body
        name = body.get("name")
        if not isinstance(name, str):
            return _error_response("name must be a string", "invalid_input", 400, {"field": "name"})
        added = db.add_label(issue_id, name)
        return JSONResponse({"issue_id": issue_id, "label": name, "status": "added" if added else "already_attached"})

    @router.delete("/issues/{issue_id}/labels/{name}")
    async def api_remove_issue_label(issue_id: int, name: str, db: SkisDB = Depends(_get_db)) -> JSONResponse:
        removed = db.remove_label(issue_id, name)
        return JSONResponse({"issue_id": issue_id, "label": name, "status": "removed" if removed else "not_attached"})

    # -- Comments ------------------------------------------------------------

    @router.get("/issues/{issue_id}/comments")
    async def api_comments(issue_id: int, db: SkisDB = Depends(_get_db)) -> JSONResponse:
        return JSONResponse([c.to_dict() for c in db.get_comments(issue_id)])

    @router.post("/issues/{issue_id}/comments")
    async def api_add_comment(issue_id: int, request: Request, db: SkisDB = Depends(_get_db)) -> JSONResponse:
        body = await _parse_json_body(request)
        if not isinstance(body, dict):
            return body
        comment = db.add_comment(issue_id, body.get("body"))  # type: ignore[arg-type]
        return JSONResponse(comment.to_dict(), status_code=201)

    @router.patch("/comments/{comment_id}")
    async def api_update_comment(comment_id: int, request: Request, db: SkisDB = Depends(_get_db)) -> JSONResponse:
        body = await _parse_json_body(request)
        if not isinstance(body, dict):
            return body
        comment = db.update_comment(comment_id, body.get("body"))  # type: ignore[arg-type]
        return JSONResponse(comment.to_dict())

    @router.delete("/comments/{comment_id}")
    async def api_delete_comment(comment_id: int, db: SkisDB = Depends(_get_db)) -> JSONResponse:
        db.delete_comment(comment_id)
        return JSONResponse({"id": comment_id, "deleted": True})

    # -- Links ---------------------------------------------------------------

    @router.get("/issues/{issue_id}/links")
    async def api_links(issue_id: int, db: SkisDB = Depends(_get_db)) -> JSONResponse:
        db._require_issue(issue_id)
        return JSONResponse([link.to_dict() for link in db.get_links(issue_id)])

    @router.post("/issues/{issue_id}/links")
    async def api_add_link(issue_id: int, request: Request, db: SkisDB = Depends(_get_db)) -> JSONResponse:
        body = await _parse_json_body(request)
        if not isinstance(body, dict):
            return body
        other = body.get("other_id")
        if not isinstance(other, int) or isinstance(other, bool):
            return _error_response("other_id must be an integer", "invalid_input", 400, {"field": "other_id"})
        link = db.add_link(issue_id, other)
        return JSONResponse(link.to_dict(), status_code=201)

    @router.delete("/issues/{issue_id}/links/{other_id}")
    async def api_remove_link(issue_id: int, other_id: str, db: SkisDB = Depends(_get_db)) -> JSONResponse:
        other = _safe_int(other_id, "other_id")
        if not isinstance(other, int):
            return other
        removed = db.remove_link(issue_id, other)
        return JSONResponse({"issue_a_id": min(issue_id, other), "issue_b_id": max(issue_id, other), "removed": removed})

    return router
