"""Render ProjectError subclasses as JSON error bodies with their HTTP status."""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from carecal.core.exceptions import ProjectError

logger = logging.getLogger(__name__)


async def project_error_handler(request: Request, exc: ProjectError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error("API: %s %s failed: %r", request.method, request.url.path, exc)
    else:
        logger.info("API: %s %s rejected: %s (%s)", request.method, request.url.path, exc.code, exc.reason)
    return JSONResponse(
        status_code=exc.http_status,
        content={"error": {"code": exc.code, "message": exc.message, "details": exc.details}},
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ProjectError, project_error_handler)
