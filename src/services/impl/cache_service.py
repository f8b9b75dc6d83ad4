"""HTML 캐시 서비스 - 캐싱 로직만 담당

Redis URL이 설정되어 있으면 Redis, 아니면 프로세스 메모리에 저장합니다.
어느 쪽이든 엔트리는 통째로 교체되므로 읽는 쪽은 이전 값 또는 새 값만 봅니다.
"""
import json
import threading
from typing import Optional
from redis import Redis
from pydantic import ValidationError

from src.core.config import settings
from src.core.logging import logger, sanitize_for_log
from src.core.exceptions import (
    CacheConnectionException,
    CacheSerializationException,
)
from src.engine.deadline import now_ms
from src.engine.result import CacheEntry, ContentState
from src.schemas.render_schema import CachedPage
from src.utils.hash_utils import generate_cache_key


class CacheService:
    """렌더링 HTML 캐시 관리 서비스"""

    def __init__(self, redis_url: Optional[str] = None):
        """캐시 백엔드 초기화

        Args:
            redis_url: Redis URL (None이면 설정값, 빈 문자열이면 메모리 저장소)

        Raises:
            CacheConnectionException: Redis 연결 실패
        """
        self.redis_client: Optional[Redis] = None
        self._memory: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

        url = settings.redis_url if redis_url is None else redis_url
        if not url:
            logger.info("[CACHE] Using in-process memory store")
            return

        try:
            self.redis_client = Redis.from_url(
                url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5
            )
            # 연결 테스트
            self.redis_client.ping()
            logger.info("[CACHE] Redis connection established")
        except Exception as e:
            logger.error(f"[CACHE] Failed to connect to Redis: {e}")
            raise CacheConnectionException(
                reason=str(e),
                details={"backend": "redis"}
            )

    @property
    def backend(self) -> str:
        return "redis" if self.redis_client is not None else "memory"

    def get(self, url: str) -> Optional[CacheEntry]:
        """
        캐시된 페이지 조회 (신선도와 무관하게 존재하면 반환)

        Args:
            url: 렌더링 URL

        Returns:
            CacheEntry 또는 None
        """
        cache_key = generate_cache_key(url)

        if self.redis_client is None:
            with self._lock:
                return self._memory.get(cache_key)

        try:
            cached_data = self.redis_client.get(cache_key)
        except Exception as e:
            logger.error(f"[CACHE] Cache read error: {e}")
            raise CacheConnectionException(
                reason="Cache read failed",
                details={"error": str(e)}
            )

        if not cached_data:
            logger.debug(f"[CACHE] Cache miss for key: {cache_key}")
            return None

        try:
            page = CachedPage.model_validate(json.loads(cached_data))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error(f"[CACHE] Failed to deserialize cache: {e}")
            raise CacheSerializationException(
                operation="deserialize",
                reason=str(e),
                details={"key": cache_key}
            )

        logger.debug(f"[CACHE] Cache hit for key: {cache_key}")
        return CacheEntry(
            url=page.url,
            html=page.html,
            last_written_at=page.last_written_at,
            content_state=page.content_state,
        )

    def set(self, url: str, html: str, content_state: ContentState) -> CacheEntry:
        """
        페이지 캐싱 (엔트리 전체 교체, last-writer-wins)

        Args:
            url: 렌더링 URL
            html: 저장할 HTML
            content_state: RAW | OPTIMIZED

        Returns:
            저장된 CacheEntry
        """
        cache_key = generate_cache_key(url)
        entry = CacheEntry(
            url=url,
            html=html,
            last_written_at=now_ms(),
            content_state=content_state,
        )

        if self.redis_client is None:
            with self._lock:
                self._memory[cache_key] = entry
            logger.info(f"[CACHE] Cache set for key: {cache_key} ({content_state.value})")
            return entry

        try:
            cached_value = CachedPage(
                url=entry.url,
                html=entry.html,
                content_state=entry.content_state,
                last_written_at=entry.last_written_at,
            ).model_dump_json()
        except (TypeError, ValueError) as e:
            logger.error(f"[CACHE] Failed to serialize cache data: {e}")
            raise CacheSerializationException(operation="serialize", reason=str(e))

        try:
            # SET은 원자적이므로 동시 저장 시에도 찢어진 값이 보이지 않음
            self.redis_client.set(cache_key, cached_value, ex=settings.cache_retention_seconds)
        except Exception as e:
            logger.error(f"[CACHE] Cache write error: {e}")
            raise CacheConnectionException(
                reason="Failed to write cache",
                details={"error": str(e)}
            )

        logger.info(
            f"[CACHE] Cache set for key: {cache_key} ({content_state.value}), "
            f"url={sanitize_for_log(url)}"
        )
        return entry

    def delete(self, url: str) -> bool:
        """
        캐시 삭제 (없어도 오류 아님)

        Returns:
            실제로 삭제되었는지 여부
        """
        cache_key = generate_cache_key(url)

        if self.redis_client is None:
            with self._lock:
                removed = self._memory.pop(cache_key, None) is not None
            if removed:
                logger.info(f"[CACHE] Cache deleted for key: {cache_key}")
            return removed

        try:
            result = self.redis_client.delete(cache_key)
            logger.info(f"[CACHE] Cache deleted for key: {cache_key}")
            return result > 0
        except Exception as e:
            logger.error(f"[CACHE] Cache delete error: {e}")
            raise CacheConnectionException(
                reason="Failed to delete cache",
                details={"error": str(e)}
            )

    def health_check(self) -> bool:
        """캐시 백엔드 상태 확인"""
        if self.redis_client is None:
            return True
        try:
            self.redis_client.ping()
            return True
        except Exception:
            return False
