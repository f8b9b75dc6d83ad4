"""Deadline Tracker - Wall-clock budget arithmetic for ISR rendering

예산 구조 (기본값):
- 전체: 20초 (서버리스 환경은 5초)
- 분류/최적화/캐시 저장 여유분: 1.5초 (BudgetCheck1에서 미리 차감)
- 나머지: 외부 크롤 또는 브라우저 렌더링
"""

from time import time
from typing import Callable, Optional


def now_ms() -> int:
    """현재 시각 (epoch 밀리초)"""
    return int(time() * 1000)


class DeadlineTracker:
    """렌더링 시간 예산 계산기

    상태를 저장하지 않는 순수 계산기입니다. 남은 예산은 매 결정 시점마다
    `now - started_at`으로 다시 계산합니다.

    Usage:
        tracker = DeadlineTracker(total_timeout_ms=20000)
        started_at = now_ms()

        # 분류/최적화 구간 1.5초를 미리 빼고 시작 가능 여부 판단
        if tracker.remaining(started_at, 1500) <= 0:
            ...  # stale 캐시 폴백
    """

    def __init__(
        self,
        total_timeout_ms: Optional[int] = None,
        clock: Callable[[], int] = now_ms,
    ):
        """
        Args:
            total_timeout_ms: 전체 예산 (ms). 없으면 설정값 사용
            clock: epoch ms를 반환하는 시계 (테스트 주입용)
        """
        if total_timeout_ms is None:
            from src.core.config import settings

            total_timeout_ms = settings.total_timeout_ms

        self.total_timeout_ms = total_timeout_ms
        self._clock = clock

    def now(self) -> int:
        return self._clock()

    def remaining(self, started_at: Optional[int], reserved_gap_ms: int = 0) -> int:
        """남은 예산 (ms)

        Args:
            started_at: 요청 시작 시각 (epoch ms). 없으면 0 반환
            reserved_gap_ms: 이후 단계를 위해 미리 차감할 시간 (ms)

        Returns:
            int: TOTAL_TIMEOUT - reserved_gap_ms - (now - started_at). 음수 가능
        """
        if not started_at:
            return 0
        return int(self.total_timeout_ms - reserved_gap_ms - (self._clock() - started_at))

    def is_exhausted(self, started_at: Optional[int], reserved_gap_ms: int = 0) -> bool:
        """예산 소진 여부"""
        return self.remaining(started_at, reserved_gap_ms) <= 0

    def elapsed(self, started_at: int) -> int:
        """시작 이후 경과 시간 (ms)"""
        return max(0, self._clock() - started_at)

    def get_report(self, started_at: int) -> dict:
        """예산 사용 리포트 (로그용)"""
        return {
            "total_budget_ms": self.total_timeout_ms,
            "elapsed_ms": self.elapsed(started_at),
            "remaining_ms": self.remaining(started_at),
        }
