"""
FastAPI dependencies resolving the runtime attached to the application.
"""

from fastapi import Request

from lockqueue.runtime import Runtime


def get_runtime(request: Request) -> Runtime:
    """Get the runtime stored on the application state."""
    return request.app.state.runtime
