"""Browser Render Executor - Playwright 렌더링 경로

BrowserManager에서 페이지를 받아 요청 가로채기/헤더 설정 → 네비게이션 + settle →
직렬화된 DOM 읽기 순으로 진행하고 결과를 AcquisitionOutcome으로 반환합니다.
페이지는 어떤 경로로 빠져나가든 반드시 닫힙니다.
"""

from __future__ import annotations

from typing import Optional, Pattern

from playwright.async_api import Page

from src.core.config import settings
from src.core.logging import logger, sanitize_for_log
from src.engine.result import (
    AcquisitionOutcome,
    BrowserRenderFailed,
    BrowserRenderSuccess,
    NoRendererAvailable,
)
from src.engine.strategy import ExecutionStrategy

from .playwright.browser import BrowserManager
from .playwright.pages import configure_page
from .playwright.settle import build_not_found_pattern, wait_for_response


class BrowserRenderExecutor:
    """Playwright 기반 렌더링 실행자

    Usage:
        executor = BrowserRenderExecutor(browser_manager)
        outcome = await executor.execute("https://example.com/product/42")
    """

    def __init__(
        self,
        browser_manager: BrowserManager,
        strategy: Optional[ExecutionStrategy] = None,
        not_found_pattern: Optional[Pattern[str]] = None,
        bandwidth_level: Optional[int] = None,
    ):
        self.browser_manager = browser_manager
        self.strategy = strategy or ExecutionStrategy(settings.cacheable_status_codes)
        self.not_found_pattern = not_found_pattern or build_not_found_pattern()
        self.bandwidth_level = settings.bandwidth_level if bandwidth_level is None else bandwidth_level

    async def execute(self, url: str) -> AcquisitionOutcome:
        """브라우저 렌더링

        Returns:
            BrowserRenderSuccess(status 200|404, html)
            BrowserRenderFailed(fatal=True): 타임아웃이 아닌 네비게이션 오류
            BrowserRenderFailed(fatal=False): HTML 읽기 실패
            NoRendererAvailable: 페이지 핸들 없음
        """
        page = await self.browser_manager.new_page()
        if page is None:
            logger.warning("[BROWSER] No page handle available")
            return NoRendererAvailable()

        try:
            await configure_page(page, url)

            logger.info(f"[BROWSER] Rendering url={sanitize_for_log(url)}")
            try:
                response = await wait_for_response(
                    page,
                    url,
                    bandwidth_level=self.bandwidth_level,
                    not_found_pattern=self.not_found_pattern,
                )
                if response is not None:
                    logger.info(f"[BROWSER] Navigation status={response.status}")
            except Exception as e:
                if not self.strategy.is_timeout_error(e):
                    logger.error(f"[BROWSER] Navigation failed: {type(e).__name__}: {e}")
                    return BrowserRenderFailed(fatal=True)
                logger.warning(f"[BROWSER] Navigation timed out, using best-effort content: {e}")

            try:
                html = await page.content()
            except Exception as e:
                logger.error(f"[BROWSER] Failed to read page content: {type(e).__name__}: {e}")
                return BrowserRenderFailed(fatal=False)

            status = 404 if html and self.not_found_pattern.search(html) else 200
            logger.info(f"[BROWSER] Rendered: status={status}, length={len(html)}")
            return BrowserRenderSuccess(status=status, html=html)

        except Exception as e:
            logger.error(f"[BROWSER] Page setup failed: {type(e).__name__}: {e}")
            return BrowserRenderFailed(fatal=True)
        finally:
            await self._close(page)

    @staticmethod
    async def _close(page: Page) -> None:
        try:
            await page.close()
        except Exception as e:
            logger.warning(f"[BROWSER] Failed to close page: {type(e).__name__}: {e}")
