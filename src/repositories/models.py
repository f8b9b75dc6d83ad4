"""데이터베이스 모델"""
from sqlalchemy import Column, Integer, String, TIMESTAMP, func, Index, Float
from src.core.database import Base


class RenderLog(Base):
    """렌더링 요청 로그 테이블"""

    __tablename__ = "render_logs"

    id = Column(Integer, primary_key=True, index=True)
    url = Column(String(2048), nullable=False, index=True)
    status = Column(Integer, nullable=True, index=True)  # None: 결과 없음 (호출자 폴백)
    source = Column(String(32), nullable=True)  # cache | stale | render | crawler
    elapsed_ms = Column(Float, nullable=True)
    created_at = Column(TIMESTAMP, server_default=func.now(), index=True)

    __table_args__ = (
        Index('idx_render_status_created', 'status', 'created_at'),
    )

    def __repr__(self) -> str:
        return f"<RenderLog(id={self.id}, url={self.url}, status={self.status})>"
