from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.logs import configure_logging
from .gemini.restoration import PhotoRestorer
from .routers.restore import router as restore_router
from .routers.webhooks import router as webhooks_router

logger = structlog.get_logger(__name__)

tags_metadata = [
    {
        "name": "restore",
        "description": (
            "Photo restoration through Gemini.\n\n"
            "- Input is a data URL (`data:image/png;base64,...`).\n"
            "- Requires a Clerk session (bearer token or `__session` cookie).\n"
            "- Model failures degrade to returning the original photo."
        ),
    },
    {
        "name": "webhooks",
        "description": "Signed Clerk billing events (verified and logged).",
    },
]


def create_app(restorer: Optional[PhotoRestorer] = None) -> FastAPI:
    """Build the API. Pass `restorer` to replace the Gemini-backed default."""
    app = FastAPI(
        title="Photo Restoration Service",
        description=(
            "How to Use:\n\n"
            "1) Sign in through Clerk and send the session token as `Authorization: Bearer <token>`.\n"
            "2) Restore a photo: POST /restore with `{\"image\": \"data:<mime>;base64,<payload>\"}`.\n"
            "3) Read `restoredImage` from the response and check `outcome` to see what happened.\n\n"
            "Notes: photos are never stored; each request is a single best-effort model call."
        ),
        openapi_tags=tags_metadata,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.restorer = restorer

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("unhandled_error", path=request.url.path)
        message = "Failed to restore image" if request.url.path == "/restore" else "Internal server error"
        return JSONResponse(status_code=500, content={"error": message})

    app.include_router(restore_router)
    app.include_router(webhooks_router)
    return app


configure_logging()
app = create_app()
