"""ASGI entrypoint. Run with: hypercorn main:app --reload"""

from server.app import app

__all__ = ["app"]
