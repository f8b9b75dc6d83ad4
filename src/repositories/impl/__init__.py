"""Repositories implementation package."""

from .render_log_repository import RenderLogRepository

__all__ = ["RenderLogRepository"]
