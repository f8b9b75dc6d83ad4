"""FastAPI 의존성 - lifespan이 app.state에 올려둔 공유 자원 제공"""
from fastapi import Request

from src.crawlers.playwright.browser import BrowserManager
from src.services.impl.cache_service import CacheService
from src.services.impl.optimizer_service import OptimizerPool
from src.services.impl.render_service import RenderService


def get_render_service(request: Request) -> RenderService:
    return request.app.state.render_service


def get_optimizer(request: Request) -> OptimizerPool:
    return request.app.state.optimizer


def get_cache_service(request: Request) -> CacheService:
    return request.app.state.cache_service


def get_browser_manager(request: Request) -> BrowserManager:
    return request.app.state.browser_manager
