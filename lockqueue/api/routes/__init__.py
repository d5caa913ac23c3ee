"""
API routes module.
"""

from lockqueue.api.routes.health import router as health_router
from lockqueue.api.routes.jobs import router as jobs_router

__all__ = ["jobs_router", "health_router"]
