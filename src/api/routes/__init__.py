"""API routes package."""

from .health_routes import router as health_router
from .optimize_routes import router as optimize_router
from .render_routes import router as render_router

__all__ = ["health_router", "optimize_router", "render_router"]
