"""전역 테스트 설정

역할:
- 테스트 환경 구성 (src import 전에 환경 변수 설정)
- 공통 Dummy/Fake 주입

금지:
- 실제 네트워크/브라우저 사용
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

# settings는 import 시점에 한 번 로드되므로 가장 먼저 설정
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "INFO"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""
os.environ["CRAWLER"] = ""
os.environ["CRAWLER_SECRET_KEY"] = ""
os.environ["OPTIMIZER_BACKEND"] = "thread"
os.environ["BROWSER_WARMUP"] = "false"

# 프로젝트 루트를 경로에 추가
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest  # noqa: E402

from src.engine.result import CacheEntry, ContentState, RenderResult  # noqa: E402


@dataclass
class DummyCache:
    """오케스트레이터 Unit 테스트용 더미 캐시

    - CacheStore 계약 (get / set / remove / achieve) 구현
    - 저장된 값을 메모리에 유지하고 호출을 기록
    """

    store: dict[str, CacheEntry] = field(default_factory=dict)
    set_calls: list[tuple[str, str, ContentState]] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    achieve_calls: int = 0
    fail_set: bool = False
    clock: int = 1_000

    async def get(self, url: str) -> Optional[CacheEntry]:
        return self.store.get(url)

    async def set(self, url: str, html: str, content_state: ContentState) -> Optional[RenderResult]:
        self.set_calls.append((url, html, content_state))
        if self.fail_set:
            return None
        self.clock += 1
        self.store[url] = CacheEntry(
            url=url, html=html, last_written_at=self.clock, content_state=content_state
        )
        return RenderResult(status=200, html=html)

    async def remove(self, url: str) -> None:
        self.removed.append(url)
        self.store.pop(url, None)

    async def achieve(self, url: str) -> Optional[RenderResult]:
        self.achieve_calls += 1
        entry = self.store.get(url)
        return entry.to_result() if entry else None


@pytest.fixture
def dummy_cache() -> DummyCache:
    return DummyCache()


@pytest.fixture
def product_url() -> str:
    return "https://example.com/product/42"


@pytest.fixture
def rendered_html() -> str:
    return (
        "<html><head><title>Product 42</title>"
        "<script src=\"/app.js\"></script>"
        "<script type=\"application/ld+json\">{\"@type\": \"Product\"}</script>"
        "</head><body><div id=\"root\"><h1>Product 42</h1></div></body></html>"
    )


@pytest.fixture
def not_found_html() -> str:
    return "<html><body><div id=\"404-page\">Not found</div></body></html>"
