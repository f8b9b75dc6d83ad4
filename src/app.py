"""FastAPI 앱 팩토리"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from src.core.config import settings
from src.core.database import init_db
from src.core.logging import logger
from src.api import health_router, optimize_router, render_router
from src.crawlers import BrowserRenderExecutor, ExternalCrawlExecutor, SharedHttpClient
from src.crawlers.playwright.browser import BrowserManager
from src.engine import CacheAdapter, RenderOrchestrator
from src.services.impl.cache_service import CacheService
from src.services.impl.optimizer_service import OptimizerPool
from src.services.impl.render_service import RenderService


@asynccontextmanager
async def lifespan(app: FastAPI):
    """애플리케이션 생명주기

    브라우저/최적화 풀/캐시/HTTP 클라이언트를 여기서 만들고 app.state로 공유합니다.
    """
    logger.info("Starting application...")
    init_db()

    http_client = SharedHttpClient()
    browser_manager = BrowserManager()
    optimizer = OptimizerPool()
    cache_service = CacheService()
    cache = CacheAdapter(cache_service)

    orchestrator = RenderOrchestrator(
        cache=cache,
        browser_renderer=BrowserRenderExecutor(browser_manager),
        optimizer=optimizer,
        external_crawler=ExternalCrawlExecutor(http_client),
    )
    render_service = RenderService(orchestrator, cache, optimizer)

    app.state.http_client = http_client
    app.state.browser_manager = browser_manager
    app.state.optimizer = optimizer
    app.state.cache_service = cache_service
    app.state.render_service = render_service

    if settings.browser_warmup:
        try:
            await browser_manager.warmup()
        except Exception as e:
            # 다음 렌더링 요청에서 다시 띄움
            logger.warning(f"[BROWSER] Warmup failed: {e}")

    logger.info("Application started")
    yield
    logger.info("Shutting down application...")

    await render_service.drain()
    optimizer.shutdown()
    await browser_manager.close()
    await http_client.close()


def create_app() -> FastAPI:
    """
    FastAPI 앱 생성 (Factory Pattern)

    Returns:
        FastAPI 앱 인스턴스
    """
    app = FastAPI(
        title=settings.api_title,
        description=settings.api_description,
        version=settings.api_version,
        lifespan=lifespan
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 라우터 등록
    app.include_router(health_router)
    app.include_router(render_router)
    app.include_router(optimize_router)

    return app

# 앱 인스턴스 생성 (uvicorn이 로드할 수 있도록)
app = create_app()
