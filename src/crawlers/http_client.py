"""공유 HTTP 클라이언트 (curl_cffi)

- 외부 크롤 엔드포인트 호출마다 AsyncSession을 만들면 TLS/커넥션 오버헤드가
  렌더링 예산을 잡아먹으므로 프로세스 단위로 세션을 재사용합니다.
- 앱 lifespan에서 생성하고 종료 시 close()로 정리합니다.
"""

from __future__ import annotations

import asyncio
from typing import Dict, Optional

from curl_cffi.requests import AsyncSession

from src.core.config import settings
from src.core.logging import logger


class SharedHttpClient:
    def __init__(self, impersonate: Optional[str] = None, max_clients: int = 20) -> None:
        self._lock = asyncio.Lock()
        self._session: Optional[AsyncSession] = None
        self._impersonate = impersonate or settings.crawler_http_impersonate
        self._max_clients = max_clients

    async def _ensure_session(self) -> AsyncSession:
        async with self._lock:
            if self._session is not None:
                return self._session
            self._session = AsyncSession(
                impersonate=self._impersonate,
                allow_redirects=True,
                max_clients=self._max_clients,
                trust_env=False,
            )
            return self._session

    async def get_text(
        self,
        url: str,
        *,
        timeout_s: float,
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
        follow_redirects: bool = True,
    ) -> tuple[int, str]:
        """GET 요청 후 (status, body) 반환

        네트워크 오류는 그대로 올려보냅니다. 호출 측에서 결과 타입으로 변환합니다.
        """
        sess = await self._ensure_session()
        resp = await sess.get(
            url,
            params=params,
            headers=headers,
            timeout=timeout_s,
            allow_redirects=follow_redirects,
        )
        status = getattr(resp, "status_code", 0) or 0
        text = getattr(resp, "text", "") or ""
        return status, text

    async def close(self) -> None:
        async with self._lock:
            if self._session is None:
                return
            try:
                await self._session.close()
            except Exception as e:
                logger.debug(f"[HTTP_CLIENT] Session close failed: {type(e).__name__}: {e}")
            self._session = None
