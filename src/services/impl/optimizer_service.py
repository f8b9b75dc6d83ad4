"""HTML 최적화 워커 풀 서비스

selectolax 규칙 적용은 CPU 작업이므로 이벤트 루프 밖(프로세스/스레드 풀)에서 실행합니다.
풀 수명은 앱 lifespan이 관리하고, 서버리스 환경에서는 작업마다 풀을 종료합니다.
"""

import asyncio
from concurrent.futures import BrokenExecutor, Executor, ProcessPoolExecutor, ThreadPoolExecutor
from typing import Optional

from src.core.config import settings
from src.core.exceptions import OptimizationException
from src.core.logging import logger
from src.utils.html.optimize import optimize_content

MIN_WORKERS = 2


class OptimizerPool:
    """bounded HTML 최적화 풀

    Usage:
        pool = OptimizerPool()
        html = await pool.optimize(raw_html, deep=True)
        pool.shutdown()
    """

    def __init__(
        self,
        max_workers: Optional[int] = None,
        backend: Optional[str] = None,
        job_timeout_s: Optional[float] = None,
        terminate_after_use: Optional[bool] = None,
    ):
        """
        Args:
            max_workers: 최대 워커 수 (최소 2로 보정)
            backend: "process" | "thread"
            job_timeout_s: 작업 하나의 최대 시간 (초)
            terminate_after_use: True면 작업마다 풀 종료 (서버리스)
        """
        self.max_workers = max(MIN_WORKERS, max_workers or settings.max_workers)
        self.backend = (backend or settings.optimizer_backend).lower()
        self.job_timeout_s = job_timeout_s or settings.optimizer_job_timeout_s
        self.terminate_after_use = (
            settings.terminate_pool_after_use if terminate_after_use is None else terminate_after_use
        )
        self._executor: Optional[Executor] = None

    def _new_executor(self, max_workers: int) -> Executor:
        if self.backend == "thread":
            return ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="optimizer")
        return ProcessPoolExecutor(max_workers=max_workers)

    def _ensure_executor(self) -> Executor:
        if self._executor is None:
            self._executor = self._new_executor(self.max_workers)
            logger.info(f"[OPTIMIZER] Pool started ({self.backend}, max_workers={self.max_workers})")
        return self._executor

    async def optimize(self, html: str, deep: bool = True) -> str:
        """HTML 최적화

        terminate_after_use면 작업 전용 풀을 만들고 그 풀만 종료합니다.
        공유 풀은 다른 요청의 작업이 대기 중일 수 있으므로 건드리지 않습니다.

        Args:
            html: 원본 HTML
            deep: True면 full 단계 (disable_deep_optimize 설정 시 shallow로 낮춤)

        Returns:
            최적화된 HTML

        Raises:
            OptimizationException: 워커 예외, 스케줄 실패, 취소, 타임아웃
        """
        effective_deep = deep and not settings.disable_deep_optimize
        compress = not settings.disable_compress_html
        job_executor: Optional[Executor] = None

        try:
            if self.terminate_after_use:
                job_executor = self._new_executor(1)
                executor = job_executor
            else:
                executor = self._ensure_executor()
            loop = asyncio.get_running_loop()
            return await asyncio.wait_for(
                loop.run_in_executor(executor, optimize_content, html, effective_deep, compress),
                timeout=self.job_timeout_s,
            )
        except asyncio.TimeoutError:
            logger.error(f"[OPTIMIZER] Job timed out after {self.job_timeout_s}s")
            raise OptimizationException("job timed out", details={"timeout_s": self.job_timeout_s})
        except asyncio.CancelledError:
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                raise
            # 호출자가 아니라 풀 종료로 취소된 작업
            logger.error("[OPTIMIZER] Job cancelled by pool shutdown")
            raise OptimizationException("job cancelled")
        except BrokenExecutor as e:
            logger.error(f"[OPTIMIZER] Pool is broken, resetting: {e}")
            if job_executor is None:
                self.shutdown()
            raise OptimizationException("worker pool is broken") from e
        except Exception as e:
            logger.error(f"[OPTIMIZER] Job failed: {type(e).__name__}: {e}")
            raise OptimizationException(f"{type(e).__name__}: {e}") from e
        finally:
            if job_executor is not None:
                job_executor.shutdown(wait=False)

    async def shallow_optimize(self, html: str) -> str:
        """가벼운 최적화 (script/style/prefetch/트래킹 iframe 제거만)"""
        return await self.optimize(html, deep=False)

    def shutdown(self) -> None:
        """풀 종료 (다음 작업 시 다시 생성됨)"""
        if self._executor is None:
            return
        executor, self._executor = self._executor, None
        executor.shutdown(wait=False, cancel_futures=True)
        logger.info("[OPTIMIZER] Pool terminated")
