"""헬스 체크 엔드포인트"""
from fastapi import APIRouter, Depends
from datetime import datetime

from src.api.dependencies import get_browser_manager, get_cache_service
from src.core.config import settings
from src.core.database import engine
from src.core.exceptions import CacheConnectionException
from src.core.logging import logger
from src.crawlers.playwright.browser import BrowserManager
from src.schemas.render_schema import HealthResponse
from src.services.impl.cache_service import CacheService

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    cache_service: CacheService = Depends(get_cache_service),
    browser_manager: BrowserManager = Depends(get_browser_manager),
):
    """
    헬스 체크 엔드포인트

    - 캐시 백엔드 상태 (memory | redis)
    - 렌더 로그 DB 연결 상태
    - 브라우저 연결 여부 (끊겨 있어도 다음 렌더링 때 다시 띄우므로 degraded 아님)
    """
    cache_ok = False
    db_ok = False

    try:
        cache_ok = cache_service.health_check()
    except CacheConnectionException as e:
        logger.warning(f"Cache connection failed: {e.error_code}")
    except Exception as e:
        logger.error(f"Unexpected cache error: {e}")

    try:
        with engine.connect() as connection:
            connection.exec_driver_sql("SELECT 1")
            db_ok = True
    except Exception as e:
        logger.error(f"Database connection error: {e}")

    status = "ok" if cache_ok and db_ok else ("degraded" if cache_ok or db_ok else "error")

    return HealthResponse(
        status=status,
        timestamp=datetime.now(),
        version=settings.api_version,
        cache_backend=cache_service.backend,
        browser_connected=browser_manager.is_connected,
    )


@router.get("/")
async def root():
    """루트 엔드포인트"""
    return {
        "service": settings.api_title,
        "version": settings.api_version,
        "docs": "/docs"
    }
