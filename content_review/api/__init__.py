"""
HTTP API.

Exports: create_app
"""

from .main import create_app

__all__ = ["create_app"]
