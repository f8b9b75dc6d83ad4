"""페이지 안정화(settle) 감지.

고정 sleep 대신 네트워크가 잠잠해지는 순간을 기다립니다.
- DOMContentLoaded 후 짧은 디바운스 (250ms / 500ms)
- 404 센티널이 이미 있으면 즉시 종료
- 아니면 quiet period: 요청이 끝날 때마다 창을 다시 시작, 10초 상한
"""

from __future__ import annotations

import asyncio
import re
from time import monotonic
from typing import Callable, Optional, Pattern

from playwright.async_api import Page, Request, Response

from src.core.config import settings
from src.core.logging import logger
from src.utils.url_utils import strip_query

SHORT_WINDOW_MS = 100


def monotonic_ms() -> float:
    return monotonic() * 1000


def build_not_found_pattern(page_id: Optional[str] = None) -> Pattern[str]:
    """`id="404-page"` 형태의 센티널 요소 매칭 패턴"""
    page_id = page_id or settings.not_found_page_id
    return re.compile(rf"id=[\"']?{re.escape(page_id)}[\"']?")


def debounce_ms(bandwidth_level: int) -> tuple[int, int]:
    """(네비게이션 후 디바운스, quiet period 초기 창)"""
    if bandwidth_level > 1:
        return 250, 200
    return 500, 500


class QuietPeriod:
    """단일 "quiet-until" 시각으로 표현한 디바운스 상태 머신

    restart()가 호출될 때마다 quiet-until을 now + window로 다시 잡고
    대기 중인 wait()를 깨워 남은 시간을 재계산하게 합니다.
    wait()는 quiet-until이 지나거나 상한에 닿으면 끝납니다.

    Usage:
        period = QuietPeriod(initial_window_ms=200, ceiling_ms=10000)
        page.on("requestfinished", lambda req: period.restart())
        reason = await period.wait()  # "quiet" | "ceiling"
    """

    def __init__(
        self,
        initial_window_ms: int,
        ceiling_ms: Optional[int] = None,
        clock: Callable[[], float] = monotonic_ms,
    ):
        self.initial_window_ms = initial_window_ms
        self.ceiling_ms = ceiling_ms or settings.settle_ceiling_ms
        self._clock = clock
        started = clock()
        self.quiet_until = started + initial_window_ms
        self.deadline = started + self.ceiling_ms
        self.restarts = 0
        self._wakeup = asyncio.Event()

    def restart(self, window_ms: Optional[int] = None) -> None:
        window = self.initial_window_ms if window_ms is None else window_ms
        self.quiet_until = self._clock() + window
        self.restarts += 1
        self._wakeup.set()

    async def wait(self) -> str:
        while True:
            now = self._clock()
            if now >= self.deadline:
                return "ceiling"
            if now >= self.quiet_until:
                return "quiet"

            self._wakeup.clear()
            sleep_ms = min(self.quiet_until, self.deadline) - now
            try:
                await asyncio.wait_for(self._wakeup.wait(), timeout=sleep_ms / 1000)
            except asyncio.TimeoutError:
                pass


async def wait_for_network_quiet(page: Page, initial_window_ms: int, ceiling_ms: Optional[int] = None) -> str:
    """페이지 네트워크 이벤트로 QuietPeriod를 구동"""
    period = QuietPeriod(initial_window_ms, ceiling_ms)
    served_from_cache: set[Request] = set()

    def on_response(response: Response) -> None:
        if response.from_service_worker:
            served_from_cache.add(response.request)

    def on_request_finished(request: Request) -> None:
        if request in served_from_cache:
            served_from_cache.discard(request)
            period.restart(SHORT_WINDOW_MS)
        else:
            period.restart()

    def on_request_failed(request: Request) -> None:
        period.restart(SHORT_WINDOW_MS)

    page.on("response", on_response)
    page.on("requestfinished", on_request_finished)
    page.on("requestfailed", on_request_failed)
    try:
        reason = await period.wait()
    finally:
        page.remove_listener("response", on_response)
        page.remove_listener("requestfinished", on_request_finished)
        page.remove_listener("requestfailed", on_request_failed)

    logger.debug(f"[BROWSER] Settled ({reason}) after {period.restarts} restarts")
    return reason


async def wait_for_response(
    page: Page,
    url: str,
    bandwidth_level: Optional[int] = None,
    not_found_pattern: Optional[Pattern[str]] = None,
) -> Optional[Response]:
    """네비게이션 + settle 감지

    타임아웃을 포함한 모든 네비게이션 오류는 그대로 올려보냅니다.
    분류(타임아웃이면 best-effort, 아니면 치명적)는 호출 측 책임입니다.

    Returns:
        네비게이션 Response (없을 수 있음)
    """
    level = settings.bandwidth_level if bandwidth_level is None else bandwidth_level
    pattern = not_found_pattern or build_not_found_pattern()
    settle_delay_ms, initial_window_ms = debounce_ms(level)

    response = await page.goto(strip_query(url), wait_until="domcontentloaded")
    await asyncio.sleep(settle_delay_ms / 1000)

    html = await page.content()
    if pattern.search(html):
        return response

    await wait_for_network_quiet(page, initial_window_ms)
    return response
