"""Execution Strategy - Acquisition path selection and error classification

Determines which acquisition path runs and how navigation errors are treated.
"""

import asyncio
from enum import Enum
from typing import Iterable

from playwright.async_api import TimeoutError as PlaywrightTimeoutError


class ExecutionPath(str, Enum):
    """실행 경로

    렌더링 결과가 만들어진 경로를 나타냅니다.
    """

    CACHE = "cache"
    STALE = "stale"
    EXTERNAL_CRAWL = "crawler"
    BROWSER = "render"


class ExecutionStrategy:
    """실행 전략 결정

    Usage:
        strategy = ExecutionStrategy(cacheable_status_codes=[200, 302])

        if strategy.should_use_external_crawl(settings.crawler):
            outcome = await external.fetch(...)
        if strategy.should_fallback_to_browser(settings.crawler, status):
            outcome = await browser.execute(...)
    """

    def __init__(self, cacheable_status_codes: Iterable[int] = (200, 302)):
        self.cacheable_status_codes = frozenset(int(code) for code in cacheable_status_codes)

    @staticmethod
    def should_use_external_crawl(endpoint: str) -> bool:
        """외부 크롤 엔드포인트가 설정된 경우에만 먼저 시도"""
        return bool(endpoint)

    @staticmethod
    def should_fallback_to_browser(endpoint: str, status: int) -> bool:
        """브라우저 렌더링 경로로 전환 여부

        - 외부 크롤 엔드포인트가 없거나
        - 외부 크롤 결과가 500인 경우 (네트워크/파싱 오류 포함)
        """
        return not endpoint or status == 500

    @staticmethod
    def is_timeout_error(error: BaseException) -> bool:
        """타임아웃 계열 오류 여부

        타임아웃은 best-effort로 진행하고, 그 외 네비게이션 오류는 치명적으로 처리합니다.
        """
        return isinstance(error, (PlaywrightTimeoutError, asyncio.TimeoutError, TimeoutError))

    def is_cacheable(self, status: int) -> bool:
        """캐시 가능한 상태 코드인지 (기본: 200, 302)"""
        return status in self.cacheable_status_codes
