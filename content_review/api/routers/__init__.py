"""
API routers.

Exports: health_router, worker_router
"""

from .health import router as health_router
from .worker import router as worker_router

__all__ = ["health_router", "worker_router"]
