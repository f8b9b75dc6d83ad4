"""Optimize Routes - 외부 소비자용 HTML 최적화 엔드포인트"""

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_optimizer
from src.core.exceptions import OptimizationException
from src.core.logging import logger
from src.schemas.render_schema import OptimizeRequest, OptimizeResponse
from src.services.impl.optimizer_service import OptimizerPool

router = APIRouter(prefix="/api/v1", tags=["optimize"])


@router.post("/optimize", response_model=OptimizeResponse)
async def optimize_html(
    request: OptimizeRequest,
    deep: bool = Query(False, description="True면 full 최적화, 기본은 shallow"),
    optimizer: OptimizerPool = Depends(get_optimizer),
):
    """HTML 최적화 (기본 shallow)"""
    logger.info(f"[API] Optimize request: length={len(request.html)}, deep={deep}")

    try:
        if deep:
            html = await optimizer.optimize(request.html, deep=True)
        else:
            html = await optimizer.shallow_optimize(request.html)
    except OptimizationException as e:
        logger.warning(f"[API] Optimize failed: {e}")
        return OptimizeResponse(
            status="error",
            deep=deep,
            html=None,
            message="HTML 최적화에 실패했습니다.",
            error_code=e.error_code,
        )

    return OptimizeResponse(status="success", deep=deep, html=html, message="최적화 완료")
