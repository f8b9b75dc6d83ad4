"""Pydantic 스키마 정의"""
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator
from datetime import datetime

from src.engine.result import ContentState


class CachedPage(BaseModel):
    """캐시에 저장되는 페이지 (JSON 직렬화 포맷)"""

    url: str = Field(..., min_length=1, description="원본 URL")
    html: str = Field(..., description="저장된 HTML")
    content_state: ContentState = Field(ContentState.OPTIMIZED, description="raw | optimized")
    last_written_at: int = Field(..., ge=0, description="마지막 저장 시각 (epoch ms)")


class OptimizeRequest(BaseModel):
    """HTML 최적화 요청 (외부 소비자용)"""

    html: str = Field(..., min_length=1, max_length=20_000_000, description="원본 HTML")

    @field_validator("html")
    @classmethod
    def validate_html(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("html은 공백만으로 구성될 수 없습니다")
        return v


class OptimizeResponse(BaseModel):
    """HTML 최적화 응답"""

    status: str = Field(..., description="success or error")
    deep: bool = Field(..., description="full 최적화 적용 여부")
    html: Optional[str] = Field(None, description="최적화된 HTML")
    message: str = Field("", description="응답 메시지")
    error_code: Optional[str] = Field(None, description="에러 코드 (실패 시)")


class RenderLogItem(BaseModel):
    """렌더 로그 항목"""

    id: int
    url: str
    status: Optional[int] = None
    source: Optional[str] = None
    elapsed_ms: Optional[float] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RenderStatsResponse(BaseModel):
    """렌더 통계 응답"""

    total_renders: int
    status_counts: dict[str, int]
    recent: List[RenderLogItem]


class HealthResponse(BaseModel):
    """헬스 체크 응답"""
    status: str
    timestamp: datetime
    version: str
    cache_backend: str
    browser_connected: bool
