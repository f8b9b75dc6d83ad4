"""API 엔드포인트 패키지 - export only."""

from .routes import health_router, optimize_router, render_router

__all__ = ["health_router", "optimize_router", "render_router"]
