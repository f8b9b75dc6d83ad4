"""Render Routes - 봇 렌더링 엔드포인트

HTTP Layer는 RenderService로 요청을 위임하는 단순한 Translator 역할만 수행합니다.
같은 엔드포인트가 다른 인스턴스의 외부 크롤 엔드포인트로도 쓰입니다
(startGenerating / isFirstRequest / crawlerSecretKey 쿼리).
"""

import hmac
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from src.api.dependencies import get_render_service
from src.core.config import settings
from src.core.database import get_db
from src.core.logging import logger, sanitize_for_log
from src.engine import ExecutionPath
from src.engine.deadline import now_ms
from src.repositories.impl.render_log_repository import RenderLogRepository
from src.schemas.render_schema import RenderLogItem, RenderStatsResponse
from src.services.impl.render_service import RenderService
from src.utils.url_utils import validate_render_url

router = APIRouter(tags=["render"])


def _is_valid_secret(provided: Optional[str]) -> bool:
    if not settings.crawler_secret_key:
        return True
    return hmac.compare_digest(provided or "", settings.crawler_secret_key)


@router.get("/render", response_class=HTMLResponse)
async def render_page(
    background_tasks: BackgroundTasks,
    url: str = Query(..., min_length=1, max_length=2048, description="렌더링 대상 URL"),
    is_first_request: Optional[bool] = Query(None, alias="isFirstRequest"),
    start_generating: Optional[int] = Query(None, alias="startGenerating", ge=0),
    crawler_secret_key: Optional[str] = Query(None, alias="crawlerSecretKey"),
    db: Session = Depends(get_db),
    render_service: RenderService = Depends(get_render_service),
):
    """렌더링된 HTML 반환 (캐시 우선)

    Flow:
        1. URL 검증
        2. 외부 크롤 호출이면 비밀 키 확인 후 곧바로 렌더링
        3. 아니면 캐시 우선 조회 (stale이면 백그라운드 재생성)
        4. 결과 상태 코드 그대로 text/html 응답, 결과 없음은 500
        5. 백그라운드로 로그 저장
    """
    if not validate_render_url(url):
        logger.warning(f"[API] Invalid render url: {sanitize_for_log(url)}")
        raise HTTPException(status_code=400, detail="url must be an absolute http(s) URL")

    is_crawl_call = (
        is_first_request is not None
        or start_generating is not None
        or crawler_secret_key is not None
    )
    started_at = now_ms()

    if is_crawl_call:
        if not _is_valid_secret(crawler_secret_key):
            logger.warning("[API] Rejected crawl call with invalid secret key")
            raise HTTPException(status_code=403, detail="Invalid crawler secret key")

        result = await render_service.regenerate(
            url,
            is_first_request=True if is_first_request is None else is_first_request,
            started_at=start_generating,
        )
        source = ExecutionPath.BROWSER
    else:
        served = await render_service.get_page(url)
        result, source = served.result, served.source

    elapsed_ms = float(now_ms() - started_at)
    status = result.status if result is not None else None

    background_tasks.add_task(
        _log_render,
        db=db,
        url=url,
        status=status,
        source=source.value,
        elapsed_ms=elapsed_ms,
    )

    logger.info(f"[API] Render served: status={status}, source={source.value}, elapsed={elapsed_ms:.0f}ms")

    if result is None:
        return HTMLResponse(content="", status_code=500)
    return HTMLResponse(content=result.html or "", status_code=result.status)


def _log_render(
    db: Session,
    url: str,
    status: Optional[int],
    source: Optional[str] = None,
    elapsed_ms: Optional[float] = None,
):
    """렌더 로그 저장 (백그라운드)"""
    try:
        RenderLogRepository(db).create(
            url=url,
            status=status,
            source=source,
            elapsed_ms=elapsed_ms,
        )
        logger.debug(f"[API] Render log saved: status={status}")
    except Exception as e:
        logger.error(f"[API] Failed to save render log: {e}")


@router.get("/api/v1/render/logs", response_model=List[RenderLogItem])
async def get_render_logs(
    limit: int = Query(20, ge=1, le=200),
    db: Session = Depends(get_db),
):
    """최근 렌더 로그"""
    return RenderLogRepository(db).get_recent_logs(limit=limit)


@router.get("/api/v1/render/stats", response_model=RenderStatsResponse)
async def get_render_stats(db: Session = Depends(get_db)):
    """렌더 통계 (전체 수, 상태 코드별 수, 최근 10건)"""
    repo = RenderLogRepository(db)
    return RenderStatsResponse(
        total_renders=repo.get_total_count(),
        status_counts=repo.get_status_counts(),
        recent=[RenderLogItem.model_validate(log) for log in repo.get_recent_logs(limit=10)],
    )
