import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .error_handlers import register_error_handlers
from .logging_config import configure_logging
from .routers import todos as todos_router
from .settings import get_settings

_settings = get_settings()
configure_logging(_settings.log_level)

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health endpoint."},
    {"name": "todos", "description": "Create, read (cursor pagination), update and delete todos."},
]

app = FastAPI(
    title="Todo Service",
    description="Minimal CRUD service for todos backed by a single sqlite table.",
    version="0.1.0",
    openapi_tags=openapi_tags,
)

# Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
allow_all = (_settings.cors_allow_origins == ["*"]) or (len(_settings.cors_allow_origins) == 0)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all else _settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may carry the original exception object, which JSONResponse cannot encode.
    return [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return a consistent JSON structure for bodies that cannot be decoded.

    Response format:
        {
            "error": "ValidationError",
            "detail": [... pydantic/fastapi error details ...],
            "message": "Request validation failed"
        }
    """
    logger.info("Request validation failed on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=422,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "detail": _jsonable_errors(exc),
        },
    )


register_error_handlers(app)


# PUBLIC_INTERFACE
@app.get("/", summary="Health Check", tags=["health"])
def health_check():
    """
    Health check endpoint.

    Returns:
        A JSON object indicating service health.
    """
    return {"message": "Healthy"}


app.include_router(todos_router.router)


# PUBLIC_INTERFACE
def run() -> None:
    """Serve the app with uvicorn using HOST/PORT from settings."""
    settings = get_settings()
    logger.info("Starting todo service on %s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
