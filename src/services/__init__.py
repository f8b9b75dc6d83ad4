"""비즈니스 로직 서비스 - export only."""

from .impl import CacheService, OptimizerPool, RenderService, ServedPage

__all__ = ["CacheService", "OptimizerPool", "RenderService", "ServedPage"]
