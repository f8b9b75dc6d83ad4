"""Playwright page 설정/보조 함수.

Page 생성 후 요청 가로채기(리소스 차단)와 봇 정보 헤더 설정을 분리합니다.
"""

from __future__ import annotations

import re

from playwright.async_api import Page, Request, Route

from src.core.config import settings
from src.core.logging import logger
from src.utils.url_utils import extract_special_info

BLOCKED_RESOURCE_TYPES = frozenset({"font", "image", "media", "imageset"})
BLOCKED_URL_PATTERN = re.compile(r"(socket.io.min.js)+(?:$)|data:image/[a-z]*.?;base64")


async def route_handler(route: Route, request: Request) -> None:
    """요청 가로채기 정책

    - stylesheet: 네트워크 없이 빈 200 응답
    - font/image/media/imageset, 분석 스크립트/base64 이미지: 차단
    - 그 외: 그대로 진행
    """
    try:
        if request.resource_type == "stylesheet":
            await route.fulfill(status=200, body="")
        elif request.resource_type in BLOCKED_RESOURCE_TYPES or BLOCKED_URL_PATTERN.search(request.url or ""):
            await route.abort()
        else:
            await route.continue_()
    except Exception as e:
        # 페이지가 이미 닫힌 뒤 도착한 요청
        logger.debug(f"[BROWSER] Route handling skipped: {type(e).__name__}")


def build_extra_headers(url: str) -> dict[str, str]:
    """URL 쿼리의 봇/디바이스/로케일/환경 정보 + service 마커 헤더"""
    headers = dict(extract_special_info(url))
    headers["service"] = settings.render_service_marker
    return headers


async def configure_page(page: Page, url: str) -> Page:
    await page.route("**/*", route_handler)
    await page.set_extra_http_headers(build_extra_headers(url))
    return page
