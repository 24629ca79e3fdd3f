"""HTTP API exposing pipeline status."""

from .server import serve_status_api

__all__ = ['serve_status_api']
