"""External Crawl Executor - 다른 렌더 서버 인스턴스에 렌더링 위임

설정된 crawler 엔드포인트로 GET 요청을 보내고 결과를 AcquisitionOutcome으로 변환합니다.
네트워크/파싱 오류는 절대 예외로 올리지 않고 ExternalCrawlFailed(500)로 바꿉니다.
"""

from __future__ import annotations

import json
import re
from typing import Optional

from src.core.config import settings
from src.core.exceptions import ExternalCrawlException
from src.core.logging import logger, sanitize_for_log
from src.engine.result import AcquisitionOutcome, ExternalCrawlFailed, ExternalCrawlSuccess

from .http_client import SharedHttpClient

# 본문 전체가 하나의 JSON 객체 모양일 때만 JSON으로 해석
_JSON_DOCUMENT_RE = re.compile(r"^\{[\s\S]*\}$")

CRAWL_HEADERS = {"Accept": "text/html; charset=utf-8"}


def decode_crawl_body(http_status: int, body: str) -> tuple[int, str]:
    """응답 본문 해석

    - JSON 객체 본문: {"status": ..., "html" | "data": ...} (html 우선, status 없으면 HTTP 상태)
    - 그 외: 본문 전체가 HTML

    Raises:
        ExternalCrawlException: JSON 모양인데 파싱 불가이거나 html/data 키가 없음
    """
    if not _JSON_DOCUMENT_RE.match(body):
        return http_status, body

    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise ExternalCrawlException(f"invalid JSON body: {e}")

    html = data.get("html")
    if not isinstance(html, str):
        html = data.get("data")
    if not isinstance(html, str):
        raise ExternalCrawlException("JSON body has no html or data")

    try:
        status = int(data.get("status", http_status))
    except (TypeError, ValueError):
        raise ExternalCrawlException(f"invalid status in JSON body: {data.get('status')!r}")
    return status, html


class ExternalCrawlExecutor:
    """외부 크롤 엔드포인트 실행자

    Usage:
        executor = ExternalCrawlExecutor(http_client, endpoint=settings.crawler)
        outcome = await executor.fetch(url, started_at)
    """

    def __init__(
        self,
        http_client: SharedHttpClient,
        endpoint: Optional[str] = None,
        secret_key: Optional[str] = None,
        timeout_s: Optional[float] = None,
    ):
        self.http_client = http_client
        self.endpoint = settings.crawler if endpoint is None else endpoint
        self.secret_key = settings.crawler_secret_key if secret_key is None else secret_key
        self.timeout_s = timeout_s or settings.crawler_request_timeout_s

    def build_params(self, url: str, started_at: int) -> dict[str, str]:
        params = {
            "startGenerating": str(started_at),
            "isFirstRequest": "true",
            "url": url,
        }
        if self.secret_key:
            params["crawlerSecretKey"] = self.secret_key
        return params

    async def fetch(self, url: str, started_at: int) -> AcquisitionOutcome:
        """외부 엔드포인트에서 렌더링 결과 획득

        Returns:
            ExternalCrawlSuccess(status, html) 또는 ExternalCrawlFailed(500)
        """
        if not self.endpoint:
            return ExternalCrawlFailed()

        logger.info(f"[EXTERNAL_CRAWL] Requesting url={sanitize_for_log(url)}")
        try:
            http_status, body = await self.http_client.get_text(
                self.endpoint,
                timeout_s=self.timeout_s,
                params=self.build_params(url, started_at),
                headers=CRAWL_HEADERS,
            )
            status, html = decode_crawl_body(http_status, body)
        except Exception as e:
            logger.warning(f"[EXTERNAL_CRAWL] Failed: {type(e).__name__}: {e}")
            return ExternalCrawlFailed()

        if status == 500:
            logger.warning("[EXTERNAL_CRAWL] Endpoint answered 500")
            return ExternalCrawlFailed()

        logger.info(f"[EXTERNAL_CRAWL] Done: status={status}, length={len(html)}")
        return ExternalCrawlSuccess(status=status, html=html)
