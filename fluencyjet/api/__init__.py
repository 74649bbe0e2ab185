"""HTTP API package."""

from fluencyjet.api.router import api_router

__all__ = ["api_router"]
