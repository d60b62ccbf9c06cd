# newsdesk/exception_handling.py
from __future__ import annotations

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from .errors import NewsdeskError
from .logging_setup import get_logger

logger = get_logger("newsdesk.exceptions")


async def http_exception_handler(request: Request, exc: HTTPException):
    logger.warning(
        "HTTP_EXCEPTION",
        extra={"handled": True, "path": str(request.url.path), "status_code": exc.status_code},
    )
    return JSONResponse({"ok": False, "error": exc.detail}, status_code=exc.status_code)


async def newsdesk_error_handler(request: Request, exc: NewsdeskError):
    logger.exception(
        "NEWSDESK_ERROR",
        extra={"handled": True, "path": str(request.url.path)},
    )
    return JSONResponse({"ok": False, "error": str(exc)}, status_code=502)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(
        "UNHANDLED_EXCEPTION",
        extra={"handled": False, "path": str(request.url.path)},
    )
    return JSONResponse({"ok": False, "error": "Internal Server Error"}, status_code=500)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers in one place.
    Call from newsdesk/main.py after creating the FastAPI app.
    """
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(NewsdeskError, newsdesk_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
