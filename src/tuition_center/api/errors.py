from __future__ import annotations

import logging

from flask import Flask
from werkzeug.exceptions import HTTPException

from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from .responses import fail

logger = logging.getLogger(__name__)


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def _validation(e: ValidationError):
        return fail(str(e), status=400, error="ValidationError")

    @app.errorhandler(NotFoundError)
    def _not_found(e: NotFoundError):
        return fail(str(e), status=404, error="NotFound")

    @app.errorhandler(ConflictError)
    def _conflict(e: ConflictError):
        return fail(str(e), status=409, error="ConflictError")

    @app.errorhandler(HTTPException)
    def _http(e: HTTPException):
        return fail(e.description or e.name, status=e.code or 500, error=e.name)

    @app.errorhandler(Exception)
    def _internal(e: Exception):
        logger.exception("Unhandled error")
        return fail("Something went wrong", status=500, error="InternalError")
