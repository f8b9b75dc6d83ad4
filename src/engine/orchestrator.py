"""Render Orchestrator - Main Engine Entry Point

Coordinates one render-and-cache pass for a URL:
1. BudgetCheck1 (stale cache fallback when the budget is already spent)
2. Acquisition (external crawl endpoint → Playwright fallback)
3. BudgetCheck2 (telemetry only)
4. Classification (cacheable vs. not-found/raw)
5. Optimization (full tier, worker pool)
6. Cache write

Nothing raises out of render(): callers get a RenderResult or None.
"""

from typing import Optional

from src.core.config import settings
from src.core.logging import logger, sanitize_for_log

from .deadline import DeadlineTracker
from .result import (
    NOT_FOUND_HTML,
    BrowserRenderFailed,
    BrowserRenderSuccess,
    ContentState,
    ExternalCrawlSuccess,
    NoRendererAvailable,
    RenderResult,
)
from .strategy import ExecutionStrategy


class RenderOrchestrator:
    """ISR 렌더링 오케스트레이터

    외부 크롤 → 브라우저 렌더링 순으로 콘텐츠를 얻고,
    전체 예산(기본 20초) 안에서 최적화된 HTML을 캐시에 저장합니다.

    협력 객체는 모두 생성자로 주입됩니다:
    - cache: get / set / remove / achieve (CacheAdapter)
    - browser_renderer: execute(url) -> AcquisitionOutcome (BrowserRenderExecutor)
    - optimizer: optimize(html, deep) -> str (OptimizerPool)
    - external_crawler: fetch(url, started_at) -> AcquisitionOutcome (선택)
    """

    def __init__(
        self,
        cache,
        browser_renderer,
        optimizer,
        external_crawler=None,
        deadline: Optional[DeadlineTracker] = None,
        strategy: Optional[ExecutionStrategy] = None,
    ):
        if not cache:
            raise ValueError("cache must not be None")
        if not browser_renderer:
            raise ValueError("browser_renderer must not be None")
        if not optimizer:
            raise ValueError("optimizer must not be None")

        self.cache = cache
        self.browser = browser_renderer
        self.optimizer = optimizer
        self.external = external_crawler
        self.deadline = deadline or DeadlineTracker()
        self.strategy = strategy or ExecutionStrategy(settings.cacheable_status_codes)
        self.gap_duration_ms = settings.gap_duration_ms
        self.optimize_enabled = not settings.disable_optimize

    @property
    def crawler_endpoint(self) -> str:
        if self.external is None:
            return ""
        return getattr(self.external, "endpoint", "") or ""

    async def render(
        self,
        url: str,
        is_first_request: bool,
        started_at: Optional[int] = None,
    ) -> Optional[RenderResult]:
        """URL 렌더링 후 캐시 저장

        Args:
            url: 렌더링 대상 URL
            is_first_request: 캐시 엔트리가 없는 첫 요청 여부
            started_at: 요청 시작 시각 (epoch ms). 없으면 지금

        Returns:
            RenderResult 또는 None (콘텐츠를 만들지 못함, 호출 측이 폴백)
        """
        if not started_at:
            started_at = self.deadline.now()
        safe_url = sanitize_for_log(url)

        try:
            # BudgetCheck1
            remaining = self.deadline.remaining(started_at, self.gap_duration_ms)
            if remaining <= 0:
                logger.warning(f"[ISR] Budget exhausted before acquisition: url={safe_url}")
                return await self._serve_stale(url, is_first_request)

            logger.info(f"[ISR] Generating page: url={safe_url}, remaining={remaining}ms")

            # Acquiring
            status = 200
            html = ""
            endpoint = self.crawler_endpoint

            if self.strategy.should_use_external_crawl(endpoint):
                outcome = await self.external.fetch(url, started_at)
                if isinstance(outcome, ExternalCrawlSuccess):
                    status, html = outcome.status, outcome.html
                else:
                    status = 500

            if self.strategy.should_fallback_to_browser(endpoint, status):
                outcome = await self.browser.execute(url)

                if isinstance(outcome, NoRendererAvailable):
                    return await self._serve_stale(url, is_first_request)
                if isinstance(outcome, BrowserRenderFailed):
                    if outcome.fatal:
                        return RenderResult.error(500)
                    return None
                if not isinstance(outcome, BrowserRenderSuccess):
                    logger.error(f"[ISR] Unexpected acquisition outcome: {type(outcome).__name__}")
                    return None
                status, html = outcome.status, outcome.html

            # BudgetCheck2
            logger.info(
                f"[ISR] Acquired: status={status}, "
                f"remaining={self.deadline.remaining(started_at) / 1000:.2f}s"
            )

            # Classifying
            if not self.strategy.is_cacheable(status):
                await self.cache.remove(url)
                return RenderResult(
                    status=status,
                    html=NOT_FOUND_HTML if status == 404 else html,
                )

            return await self._optimize_and_store(url, html)

        except Exception as e:
            logger.error(
                f"[ISR] Render failed: url={safe_url}, error={type(e).__name__}: {e}",
                exc_info=True,
            )
            return None

    async def _serve_stale(self, url: str, is_first_request: bool) -> Optional[RenderResult]:
        """마지막으로 저장된 캐시 반환 (첫 요청이면 None)"""
        if is_first_request:
            return None
        return await self.cache.achieve(url)

    async def _optimize_and_store(self, url: str, html: str) -> Optional[RenderResult]:
        """full 최적화 후 캐시 저장

        최적화 실패 시 None을 반환하고 캐시는 건드리지 않습니다.
        """
        content_state = ContentState.RAW
        if self.optimize_enabled:
            try:
                html = await self.optimizer.optimize(html, deep=True)
            except Exception as e:
                logger.error(f"[ISR] Optimization failed, nothing cached: {type(e).__name__}: {e}")
                return None
            content_state = ContentState.OPTIMIZED

        stored = await self.cache.set(url, html, content_state)
        if stored is None:
            logger.warning(f"[ISR] Cache write failed, serving uncached: url={sanitize_for_log(url)}")
            return RenderResult(status=200, html=html)

        logger.info(f"[ISR] Page generated and cached ({content_state.value})")
        return stored
