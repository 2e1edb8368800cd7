"""Shared helpers and constants for dashboard route modules."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping

    from fastapi.responses import JSONResponse
    from fastapi import Request

from skis.errors import SkisError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_BOOL_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_BOOL_FALSE_VALUES = frozenset({"0", "false", "no", "off"})

_STATUS_BY_CODE = {
    "not_found": 404,
    "already_exists": 409,
    "invalid_transition": 409,
    "invalid_input": 400,
}

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _error_response(
    message: str,
    code: str,
    status_code: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Return a structured error response and log the error."""
    from fastapi.responses import JSONResponse

    logger.warning("API error [%s] %s: %s", status_code, code, message)
    return JSONResponse(
        {"error": {"message": message, "code": code, "details": details or {}}},
        status_code=status_code,
    )


def _skis_error_response(exc: SkisError) -> JSONResponse:
    """Map a typed store error onto its HTTP status."""
    return _error_response(str(exc), exc.code, _STATUS_BY_CODE.get(exc.code, 400))


async def _parse_json_body(request: Request) -> dict[str, Any] | JSONResponse:
    """Parse and validate a JSON object body, returning 400 on failure."""
    import json

    try:
        body = await request.json()
    except (json.JSONDecodeError, ValueError, UnicodeDecodeError):
        return _error_response("Invalid JSON body", "invalid_input", 400)
    if not isinstance(body, dict):
        return _error_response("Request body must be a JSON object", "invalid_input", 400)
    return body


def _safe_int(value: str, name: str, *, min_value: int | None = None) -> int | JSONResponse:
    """Parse a query-param string to int, returning a 400 error response on failure.

    When *min_value* is set, values below that floor are rejected with 400.
    """
    try:
        result = int(value)
    except (ValueError, TypeError):
        return _error_response(
            f'Invalid value for {name}: "{value}". Must be an integer.',
            "invalid_input",
            400,
        )
    if min_value is not None and result < min_value:
        return _error_response(
            f"Invalid value for {name}: {result}. Must be >= {min_value}.",
            "invalid_input",
            400,
        )
    return result


def _parse_pagination(
    params: Mapping[str, str],
    default_limit: int,
) -> tuple[int, int] | JSONResponse:
    """Extract ``limit`` and ``offset`` from query params with validation."""
    limit = _safe_int(params.get("limit", str(default_limit)), "limit", min_value=0)
    if not isinstance(limit, int):
        return limit
    offset = _safe_int(params.get("offset", "0"), "offset", min_value=0)
    if not isinstance(offset, int):
        return offset
    return limit, offset


def _get_bool_param(params: Mapping[str, str], name: str, default: bool) -> bool | JSONResponse:
    """Extract a boolean query param, returning *default* when absent."""
    raw = params.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _BOOL_TRUE_VALUES:
        return True
    if value in _BOOL_FALSE_VALUES:
        return False
    return _error_response(
        f'Invalid value for {name}: "{raw}". Must be one of true/false, 1/0, yes/no, on/off.',
        "invalid_input",
        400,
        {"param": name, "value": raw},
    )


def _optional_str(body: Mapping[str, Any], key: str) -> str | None | JSONResponse:
    """Return ``body[key]`` if it is a string or absent/null, else a 400."""
    value = body.get(key)
    if value is None or isinstance(value, str):
        return value
    return _error_response(f"{key} must be a string", "invalid_input", 400, {"field": key})


def _str_list(body: Mapping[str, Any], key: str) -> list[str] | JSONResponse:
    value = body.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(i, str) for i in value):
        return _error_response(f"{key} must be a list of strings", "invalid_input", 400, {"field": key})
    return value
