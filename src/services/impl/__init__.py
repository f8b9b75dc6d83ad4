"""Services implementation package."""

from .cache_service import CacheService
from .optimizer_service import OptimizerPool
from .render_service import RenderService, ServedPage

__all__ = ["CacheService", "OptimizerPool", "RenderService", "ServedPage"]
