"""
Maps service errors to HTTP responses.

No stack traces or store messages are exposed to clients.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .errors import StoreError, TodoError, TodoNotFoundError

logger = logging.getLogger(__name__)


def _error_response(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error})


# PUBLIC_INTERFACE
def register_error_handlers(app: FastAPI) -> None:
    """Register the service error handlers on the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(TodoNotFoundError)
    async def handle_not_found(_request: Request, exc: TodoNotFoundError) -> JSONResponse:
        """Update or delete matched no rows."""
        logger.warning("Todo not found: %s", exc.ids)
        return _error_response(404, "Todo not found")

    @app.exception_handler(StoreError)
    async def handle_store_error(_request: Request, exc: StoreError) -> JSONResponse:
        """Store failures become a generic 500."""
        logger.error("Store error: %s", exc.message)
        return _error_response(500, "Internal server error")

    @app.exception_handler(TodoError)
    async def handle_todo_error(_request: Request, exc: TodoError) -> JSONResponse:
        logger.error("Unhandled todo error: %s", exc.message)
        return _error_response(500, "Internal server error")

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unexpected errors. Never exposes internals."""
        logger.exception("Unexpected error: %s", type(exc).__name__)
        return _error_response(500, "Internal server error")
