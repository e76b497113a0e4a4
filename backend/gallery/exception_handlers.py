"""
Exception handlers mapping the gallery error taxonomy to JSON responses.

Register these on a FastAPI app instance via `register_exception_handlers(app)`.
"""
import logging

from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from gallery.core.env import is_local_env
from gallery.core.errors import GalleryError, PermissionDenied, PersistenceError

logger = logging.getLogger("gallery")


async def gallery_error_handler(request: Request, exc: GalleryError):
    """Return the error's readable detail with its mapped status code."""
    if isinstance(exc, PermissionDenied):
        logger.warning("Permission denied on %s %s: %s", request.method, request.url.path, exc.detail)
    elif isinstance(exc, PersistenceError):
        logger.error("Persistence failure on %s %s: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors"""
    if isinstance(exc, (HTTPException, StarletteHTTPException)):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail if hasattr(exc, 'detail') else str(exc)},
        )

    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=exc)

    # Only local/dev responses carry the error text; details are in the logs
    if is_local_env():
        error_response = {"detail": f"Internal server error: {exc}"}
    else:
        error_response = {"detail": "Internal server error"}

    return JSONResponse(
        status_code=500,
        content=error_response,
    )


def register_exception_handlers(app):
    """Register all exception handlers on the given FastAPI app."""
    app.add_exception_handler(GalleryError, gallery_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
