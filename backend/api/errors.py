"""
Maps domain errors onto JSON responses.

Every PosterError becomes ``{"error_code": ..., "message": ...}`` with the
error's own HTTP status.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from domain.errors import PosterError

logger = logging.getLogger(__name__)


async def poster_error_handler(request: Request, exc: PosterError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.info
    log("[api] %s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PosterError, poster_error_handler)
