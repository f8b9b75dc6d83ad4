"""Render Result - Request/result/outcome types for the ISR engine

요청 단위 타입(RenderRequest, AcquisitionOutcome, RenderResult)과
요청 사이에 살아남는 유일한 상태인 CacheEntry를 정의합니다.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

NOT_FOUND_HTML = "Page not found!"


class ContentState(str, Enum):
    """캐시에 저장된 HTML의 처리 상태

    캐시 저장소는 이 태그를 그대로 신뢰하고 내용을 추측하지 않습니다.
    """

    RAW = "raw"  # 최적화를 거치지 않은 HTML
    OPTIMIZED = "optimized"  # full 최적화 완료


@dataclass(frozen=True)
class RenderRequest:
    """렌더링 요청

    Attributes:
        url: 렌더링 대상 URL (봇 정보 쿼리 포함 가능)
        is_first_request: 이 URL에 대한 첫 요청인지 여부 (캐시 엔트리 없음)
        started_at: 요청 시작 시각 (epoch ms)
    """

    url: str
    is_first_request: bool
    started_at: int


@dataclass(frozen=True)
class RenderResult:
    """렌더링 결과

    html이 None이면 "결과 없음"이 아니라 상태 코드만 전달하는 결과입니다
    (예: {status: 500}). 결과 자체가 없을 때는 RenderResult 대신 None을 반환합니다.
    """

    status: int
    html: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.status in (200, 302) and self.html is not None

    @classmethod
    def not_found(cls) -> "RenderResult":
        return cls(status=404, html=NOT_FOUND_HTML)

    @classmethod
    def error(cls, status: int = 500) -> "RenderResult":
        return cls(status=status)

    def to_dict(self) -> dict:
        data: dict = {"status": self.status}
        if self.html is not None:
            data["html"] = self.html
        return data


@dataclass(frozen=True)
class CacheEntry:
    """캐시 엔트리 (URL당 하나, 항상 통째로 교체)

    Attributes:
        url: 캐시 키가 되는 원본 URL
        html: 저장된 HTML
        last_written_at: 마지막 저장 시각 (epoch ms)
        content_state: RAW | OPTIMIZED
    """

    url: str
    html: str
    last_written_at: int
    content_state: ContentState = ContentState.OPTIMIZED

    def age_seconds(self, now_ms: int) -> float:
        return max(0.0, (now_ms - self.last_written_at) / 1000.0)

    def is_stale(self, now_ms: int, fresh_seconds: int) -> bool:
        return self.age_seconds(now_ms) > fresh_seconds

    def to_result(self) -> RenderResult:
        return RenderResult(status=200, html=self.html)


# ============================================================================
# Acquisition outcomes (tagged variant)
# ============================================================================

@dataclass(frozen=True)
class AcquisitionOutcome:
    """콘텐츠 획득 결과 (외부 크롤 / 브라우저 렌더링)"""


@dataclass(frozen=True)
class ExternalCrawlSuccess(AcquisitionOutcome):
    status: int
    html: str


@dataclass(frozen=True)
class ExternalCrawlFailed(AcquisitionOutcome):
    status: int = 500


@dataclass(frozen=True)
class BrowserRenderSuccess(AcquisitionOutcome):
    status: int
    html: str


@dataclass(frozen=True)
class BrowserRenderFailed(AcquisitionOutcome):
    """브라우저 렌더링 실패

    fatal=True: 타임아웃이 아닌 네비게이션 오류 → {status: 500} 즉시 반환
    fatal=False: 렌더링 후 HTML 읽기 실패 → 결과 없음
    """

    fatal: bool


@dataclass(frozen=True)
class NoRendererAvailable(AcquisitionOutcome):
    """페이지 핸들을 얻지 못함 (브라우저 풀 소진/설정 오류)"""
