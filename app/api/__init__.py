"""API endpoints package."""

from app.api.router import create_protected_router

__all__ = ["create_protected_router"]
