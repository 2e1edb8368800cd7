"""Local JSON API for the skis desktop shell (requires skis[dashboard]).

A module-level ``_db`` is set at startup (or by test fixtures) and injected
into route handlers via ``Depends(_get_db)``.  Every endpoint lives under
``/api``; typed store errors become ``{"error": {"message", "code",
"details"}}`` envelopes with 404 (not found), 409 (already exists, invalid
transition) or 400 (invalid input).

Usage:
    skis dashboard                    # Serves http://localhost:8377/api
    skis dashboard --port 9000        # Custom port
    skis dashboard --no-browser       # Skip auto-open
"""

from __future__ import annotations

import logging
import webbrowser

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from skis import __version__
from skis.core import SkisDB, find_skis_root, read_config
from skis.errors import SkisError
from skis.logging import setup_logging

DEFAULT_PORT = 8377

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Module-level state, set by main() or test fixtures
# ---------------------------------------------------------------------------

_db: SkisDB | None = None


def _get_db() -> SkisDB:
    """Return the active database connection."""
    if _db is None:
        raise HTTPException(status_code=500, detail="Database not initialized")
    return _db


def create_app() -> FastAPI:
    """Create the FastAPI application with all API endpoints."""
    from skis.dashboard_routes import issues, labels
    from skis.dashboard_routes.common import _skis_error_response

    app = FastAPI(title="skis", version=__version__, docs_url=None, redoc_url=None)

    @app.exception_handler(SkisError)
    async def _handle_skis_error(request: Request, exc: SkisError) -> JSONResponse:
        return _skis_error_response(exc)

    app.include_router(issues.create_router(), prefix="/api")
    app.include_router(labels.create_router(), prefix="/api")

    @app.get("/api/health")
    async def api_health() -> JSONResponse:
        return JSONResponse(
            {
                "status": "ok",
                "version": __version__,
                "schema_version": _get_db().get_schema_version(),
            }
        )

    return app


def main(port: int = DEFAULT_PORT, *, no_browser: bool = False) -> None:
    """Start the API server for the store discovered from the cwd."""
    import threading

    import uvicorn

    global _db

    skis_dir = find_skis_root()
    config = read_config(skis_dir)
    setup_logging(skis_dir, level=config.get("log_level", "INFO"))
    _db = SkisDB.open_at(skis_dir, check_same_thread=False)

    app = create_app()

    if not no_browser:
        threading.Timer(0.5, lambda: webbrowser.open(f"http://localhost:{port}/api/health")).start()

    logger.info("Serving %s on port %d", skis_dir, port)
    print(f"skis API: http://localhost:{port}/api")
    try:
        uvicorn.run(app, host="127.0.0.1", port=port, log_level="warning")
    finally:
        _db.close()
        _db = None
