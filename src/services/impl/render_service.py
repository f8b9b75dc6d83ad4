"""렌더 서비스 - 봇 요청에 대한 캐시 우선(ISR) 처리

- 신선한 캐시: 그대로 제공 (RAW 엔트리는 나가는 길에 shallow 최적화)
- 오래된 캐시: 일단 제공하고 백그라운드에서 재생성
- 캐시 없음: 첫 요청으로 렌더링
같은 URL의 동시 재생성은 하나의 작업을 공유합니다.
"""
import asyncio
from dataclasses import dataclass
from typing import Callable, Optional

from src.core.config import settings
from src.core.logging import logger, sanitize_for_log
from src.engine import CacheAdapter, ContentState, ExecutionPath, RenderOrchestrator, RenderResult
from src.engine.deadline import now_ms
from src.engine.result import CacheEntry
from src.services.impl.optimizer_service import OptimizerPool
from src.utils.hash_utils import generate_cache_key


@dataclass(frozen=True)
class ServedPage:
    """요청 레이어 응답 (결과 + 출처)"""

    result: Optional[RenderResult]
    source: ExecutionPath


class RenderService:
    """
    렌더 서비스 - SRP: 캐시 신선도 판단과 재생성 중복 제거만 담당

    - 렌더링/최적화/캐시 저장 결정은 RenderOrchestrator
    - 캐시 접근은 CacheAdapter
    """

    def __init__(
        self,
        orchestrator: RenderOrchestrator,
        cache: CacheAdapter,
        optimizer: OptimizerPool,
        fresh_seconds: Optional[int] = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.orchestrator = orchestrator
        self.cache = cache
        self.optimizer = optimizer
        self.fresh_seconds = fresh_seconds or settings.cache_fresh_seconds
        self.optimize_enabled = not settings.disable_optimize
        self._clock = clock
        self._inflight: dict[str, asyncio.Task] = {}
        self._background: set[asyncio.Task] = set()

    async def get_page(self, url: str) -> ServedPage:
        """캐시 우선 페이지 조회

        Args:
            url: 렌더링 대상 URL

        Returns:
            ServedPage (result가 None이면 호출 측이 폴백)
        """
        entry = await self.cache.get(url)

        if entry is None:
            logger.info(f"[ISR] Cache miss, rendering: url={sanitize_for_log(url)}")
            result = await self.regenerate(url, is_first_request=True)
            return ServedPage(result=result, source=ExecutionPath.BROWSER)

        result = await self._serve_entry(entry)

        if entry.is_stale(self._clock(), self.fresh_seconds):
            logger.info(f"[ISR] Serving stale entry, revalidating: url={sanitize_for_log(url)}")
            self.schedule_revalidation(url)
            return ServedPage(result=result, source=ExecutionPath.STALE)

        return ServedPage(result=result, source=ExecutionPath.CACHE)

    async def regenerate(
        self,
        url: str,
        is_first_request: bool,
        started_at: Optional[int] = None,
    ) -> Optional[RenderResult]:
        """렌더링 (같은 URL의 진행 중 작업이 있으면 그 결과를 공유)"""
        key = generate_cache_key(url)
        task = self._inflight.get(key)

        if task is None:
            task = asyncio.create_task(
                self.orchestrator.render(url, is_first_request, started_at)
            )
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._forget(key, done))
        else:
            logger.debug(f"[ISR] Joining in-flight render: key={key}")

        # 대기자 하나가 취소되어도 공유 작업은 계속 진행
        return await asyncio.shield(task)

    def schedule_revalidation(self, url: str) -> None:
        """백그라운드 재생성 예약 (이미 진행 중이면 무시)"""
        if generate_cache_key(url) in self._inflight:
            return
        task = asyncio.create_task(self.regenerate(url, is_first_request=False))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def drain(self) -> None:
        """백그라운드 재생성 작업 완료 대기 (종료/테스트용)"""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def _forget(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

    async def _serve_entry(self, entry: CacheEntry) -> RenderResult:
        """캐시 엔트리를 응답으로 변환

        RAW 엔트리는 최적화가 꺼진 상태에서 저장된 것입니다. 이후 최적화를 다시 켠
        인스턴스(재시작 또는 같은 Redis를 쓰는 다른 인스턴스)가 읽을 때만 shallow 단계를 거칩니다.
        """
        if entry.content_state != ContentState.RAW or not self.optimize_enabled:
            return entry.to_result()

        try:
            html = await self.optimizer.shallow_optimize(entry.html)
        except Exception as e:
            logger.warning(f"[ISR] Shallow optimize of raw entry failed, serving as-is: {e}")
            return entry.to_result()
        return RenderResult(status=200, html=html)
