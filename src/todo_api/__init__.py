"""
FastAPI Todo service package.

Exposes the FastAPI app instance for `uvicorn todo_api:app`.
"""

from .main import app  # noqa: F401
