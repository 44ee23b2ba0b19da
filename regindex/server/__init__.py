"""
HTTP server for regindex.

Exposes the index over a small FastAPI application; run it with
``regindex serve`` or any ASGI server via ``create_app()``.
"""

from .app import create_app

__all__ = ['create_app']
