# src/tierstore/api_server/__init__.py
"""
HTTP surface for TierStore, built on FastAPI and served by uvicorn.
"""

from .main import create_app, run_server

__all__ = ["create_app", "run_server"]
