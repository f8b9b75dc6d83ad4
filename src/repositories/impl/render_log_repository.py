"""렌더 로그 리포지토리 - DB 접근 로직"""
from typing import List, Optional, Any, cast
from sqlalchemy.orm import Session
from sqlalchemy import func, desc

from src.repositories.models import RenderLog
from src.core.logging import logger
from src.core.exceptions import DatabaseException


class RenderLogRepository:
    """렌더 로그 데이터 액세스 레이어"""

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        url: str,
        status: Optional[int],
        source: Optional[str] = None,
        elapsed_ms: Optional[float] = None,
    ) -> RenderLog:
        """렌더 로그 생성"""
        try:
            log = RenderLog(
                url=url,
                status=status,
                source=source,
                elapsed_ms=elapsed_ms,
            )
            self.db.add(log)
            self.db.commit()
            self.db.refresh(log)
            logger.debug(f"Render log created: {log.id}")
            return log
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create render log: {e}")
            raise DatabaseException(f"Failed to create render log: {e}")

    def get_total_count(self) -> int:
        """전체 렌더 요청 수"""
        return self.db.query(func.count(RenderLog.id)).scalar() or 0

    def get_status_counts(self) -> dict[str, int]:
        """상태 코드별 요청 수 ({"200": 10, "404": 2, "none": 1})"""
        rows: List[Any] = self.db.query(
            RenderLog.status,
            func.count(RenderLog.id).label("count"),
        ).group_by(RenderLog.status).all()

        return {
            str(row.status) if row.status is not None else "none": int(cast(Any, row.count))
            for row in rows
        }

    def get_recent_logs(self, limit: int = 20) -> List[RenderLog]:
        """최근 로그 조회"""
        return self.db.query(RenderLog).order_by(
            desc(RenderLog.created_at), desc(RenderLog.id)
        ).limit(limit).all()
