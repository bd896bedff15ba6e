"""
HTTP layer for the fuel request workflow.

This package provides a single FastAPI application that exposes:
- The lifecycle triggers (submission and manager decision)
- Push token registration and profile lookups
- Request, notification and finance read endpoints
"""

from api.main import app, create_app

__all__ = ["app", "create_app"]
