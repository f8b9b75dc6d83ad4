"""Cache Adapter - CacheStore contract used by the RenderOrchestrator"""

from typing import Optional, TYPE_CHECKING

from src.core.logging import logger, sanitize_for_log

from .result import CacheEntry, ContentState, RenderResult

if TYPE_CHECKING:
    from src.services.impl.cache_service import CacheService


class CacheAdapter:
    """Cache 서비스 어댑터

    동기 CacheService를 RenderOrchestrator가 기대하는 비동기 인터페이스
    (get / set / remove / achieve)로 변환합니다.
    모든 예외는 여기서 로깅되고 None/False로 변환됩니다.
    """

    def __init__(self, cache_service: Optional["CacheService"] = None):
        """
        Args:
            cache_service: CacheService 인스턴스 (없으면 내부 생성)
        """
        if cache_service is None:
            from src.services.impl.cache_service import CacheService

            self.cache_service = CacheService()
        else:
            self.cache_service = cache_service

    async def get(self, url: str) -> Optional[CacheEntry]:
        """캐시 조회

        Returns:
            CacheEntry or None (미스/오류)
        """
        try:
            if not url or not isinstance(url, str):
                logger.warning(f"[CACHE] Invalid url for cache.get: {url}")
                return None

            # CacheService는 동기이므로 직접 호출
            return self.cache_service.get(url)
        except Exception as e:
            logger.warning(f"[CACHE] Cache get failed: {type(e).__name__}: {e}")
            return None

    async def set(
        self,
        url: str,
        html: str,
        content_state: ContentState = ContentState.OPTIMIZED,
    ) -> Optional[RenderResult]:
        """캐시 저장

        Args:
            url: 렌더링 URL
            html: 저장할 HTML
            content_state: 저장 HTML의 처리 상태 (저장소는 이 태그를 그대로 신뢰)

        Returns:
            RenderResult: 저장 확인 (status 200 + 저장된 HTML). 실패 시 None
        """
        try:
            if not url or not isinstance(url, str):
                logger.warning(f"[CACHE] Invalid url for cache.set: {url}")
                return None

            if not isinstance(html, str):
                logger.warning(f"[CACHE] Invalid html for cache.set: {type(html).__name__}")
                return None

            entry = self.cache_service.set(url, html, content_state)
            return entry.to_result()
        except Exception as e:
            logger.warning(f"[CACHE] Cache set failed: {type(e).__name__}: {e}")
            return None

    async def remove(self, url: str) -> None:
        """캐시 삭제 (멱등, 없어도 오류 아님)"""
        try:
            self.cache_service.delete(url)
        except Exception as e:
            logger.warning(f"[CACHE] Cache remove failed: {type(e).__name__}: {e}")

    async def achieve(self, url: str) -> Optional[RenderResult]:
        """오래된 것이라도 가지고 있는 캐시를 반환 (재생성은 절대 하지 않음)

        Returns:
            RenderResult(200, html) 또는 None
        """
        entry = await self.get(url)
        if entry is None:
            logger.info(f"[CACHE] Nothing to achieve for url={sanitize_for_log(url)}")
            return None
        return entry.to_result()
