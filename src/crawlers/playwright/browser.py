"""Playwright 브라우저/컨텍스트 관리 (주입형 BrowserManager).

앱 lifespan이 인스턴스 하나를 만들어 오케스트레이터에 넘깁니다.
워밍업/정리/재시도와 동시 페이지 수 제한을 한 곳에서 다룹니다.
"""

from __future__ import annotations

import asyncio
import platform
from typing import Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from src.core.config import settings
from src.core.exceptions import BrowserException
from src.core.logging import logger


def build_launch_args() -> list[str]:
    args: list[str] = [
        "--disable-dev-shm-usage",
        "--disable-gpu",
        "--disable-background-networking",
        "--disable-background-timer-throttling",
        "--disable-renderer-backgrounding",
        "--disable-default-apps",
        "--disable-extensions",
        "--no-first-run",
        "--no-default-browser-check",
    ]

    if platform.system().lower() == "linux":
        args.extend(["--no-sandbox", "--disable-setuid-sandbox"])

    return list(dict.fromkeys(args))


class BrowserManager:
    """공유 Chromium 인스턴스와 페이지 슬롯 관리

    new_page()는 슬롯 하나를 점유한 페이지를 반환하고, 페이지가 닫히면 슬롯이 반환됩니다.
    브라우저를 띄울 수 없거나 슬롯을 제때 얻지 못하면 None을 반환합니다.
    """

    def __init__(
        self,
        max_pages: Optional[int] = None,
        acquire_timeout_s: Optional[float] = None,
        launch_retries: Optional[int] = None,
        headless: Optional[bool] = None,
    ):
        self.max_pages = max_pages or settings.browser_max_pages
        self.acquire_timeout_s = acquire_timeout_s or settings.browser_page_acquire_timeout_s
        self.launch_retries = max(1, launch_retries or settings.browser_launch_retries)
        self.headless = settings.browser_headless if headless is None else headless

        self._lock = asyncio.Lock()
        self._slots = asyncio.Semaphore(self.max_pages)
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None

    @property
    def is_connected(self) -> bool:
        try:
            return self._browser is not None and self._browser.is_connected()
        except Exception:
            return False

    async def _cleanup(self) -> None:
        if self._context is not None:
            try:
                await self._context.close()
            except Exception as e:
                logger.debug(f"[BROWSER] Context close failed: {type(e).__name__}")
            self._context = None
        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as e:
                logger.debug(f"[BROWSER] Browser close failed: {type(e).__name__}")
            self._browser = None
        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.debug(f"[BROWSER] Playwright stop failed: {type(e).__name__}")
            self._playwright = None

    async def ensure_browser(self) -> BrowserContext:
        """브라우저 컨텍스트 확보 (연결이 끊겼으면 재실행)

        Raises:
            BrowserException: 재시도 후에도 실행 실패
        """
        async with self._lock:
            if self.is_connected and self._context is not None:
                return self._context

            await self._cleanup()

            last_err: Optional[Exception] = None
            for attempt in range(1, self.launch_retries + 1):
                try:
                    logger.info(f"[BROWSER] Launching browser (attempt {attempt}/{self.launch_retries})...")
                    self._playwright = await asyncio.wait_for(async_playwright().start(), timeout=20.0)
                    self._browser = await asyncio.wait_for(
                        self._playwright.chromium.launch(
                            headless=self.headless,
                            args=build_launch_args(),
                            timeout=settings.browser_protocol_timeout_ms,
                        ),
                        timeout=25.0,
                    )
                    self._context = await self._browser.new_context(
                        user_agent=settings.browser_user_agent,
                    )
                    logger.info("[BROWSER] Browser launched successfully")
                    return self._context
                except Exception as e:
                    last_err = e
                    logger.error(
                        f"[BROWSER] Launch failed (attempt {attempt}/{self.launch_retries}): "
                        f"{type(e).__name__}: {e}"
                    )
                    await self._cleanup()
                    if attempt < self.launch_retries:
                        wait_time = min(2.0 * attempt, 10.0)
                        logger.info(f"[BROWSER] Waiting {wait_time:.1f}s before retry...")
                        await asyncio.sleep(wait_time)

            raise BrowserException(f"Browser launch failed after retries: {last_err}")

    async def new_page(self) -> Optional[Page]:
        """페이지 핸들 획득

        Returns:
            Page 또는 None (실행 실패/슬롯 부족)
        """
        try:
            await asyncio.wait_for(self._slots.acquire(), timeout=self.acquire_timeout_s)
        except asyncio.TimeoutError:
            logger.warning(f"[BROWSER] No free page slot within {self.acquire_timeout_s}s")
            return None

        try:
            context = await self.ensure_browser()
            page = await context.new_page()
        except Exception as e:
            self._slots.release()
            logger.error(f"[BROWSER] Failed to open page: {type(e).__name__}: {e}")
            return None

        page.set_default_timeout(settings.browser_protocol_timeout_ms)
        page.set_default_navigation_timeout(settings.browser_protocol_timeout_ms)
        page.once("close", lambda _page: self._slots.release())
        return page

    async def warmup(self) -> None:
        await self.ensure_browser()

    async def close(self) -> None:
        async with self._lock:
            await self._cleanup()
        logger.info("[BROWSER] Browser closed")
