# src/tierstore/api_server/routes/__init__.py
"""
API routes package initialization.

This module exports the API routers for registration with the main
FastAPI application.
"""

from .data import router as data_router

__all__ = [
    "data_router",
]
