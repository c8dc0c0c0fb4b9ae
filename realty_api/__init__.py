"""
Realty API package.

A FastAPI application serving property listings with an in-memory,
TTL-based response cache, plus an async client and data-fetching layer
with its own cache and request deduplication.
"""
from .main import app, create_app

__version__ = "1.0.0"
__all__ = ["app", "create_app"]
