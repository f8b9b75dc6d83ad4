"""설정 관리 - 환경 변수 로드 및 검증"""
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    """애플리케이션 설정"""

    environment: str = "development"

    # 서버리스(Lambda 등) 실행 환경: 예산 5초 + 워커 풀 요청별 종료
    serverless: bool = False

    # 렌더링 예산
    # - duration_timeout_ms: 한 요청에서 렌더링을 시도할 수 있는 전체 시간
    # - gap_duration_ms: 분류/최적화/캐시 저장 구간을 위해 미리 빼두는 시간
    duration_timeout_ms: int = 20000
    gap_duration_ms: int = 1500

    # HTML 최적화 워커 풀
    max_workers: int = 7
    optimizer_backend: str = "process"  # process | thread
    optimizer_job_timeout_s: float = 30.0
    disable_compress_html: bool = False
    disable_deep_optimize: bool = False
    disable_optimize: bool = False

    # 페이지 분류
    not_found_page_id: str = "404-page"
    cacheable_status_codes: list[int] = [200, 302]

    # 외부 크롤 엔드포인트 (다른 렌더 서버 인스턴스)
    crawler: str = ""
    crawler_secret_key: str = ""
    crawler_request_timeout_s: float = 30.0
    crawler_http_impersonate: str = "chrome110"

    # 브라우저 렌더링
    bandwidth_level: int = 2
    settle_ceiling_ms: int = 10000
    browser_protocol_timeout_ms: int = 240000
    browser_max_pages: int = 10
    browser_page_acquire_timeout_s: float = 5.0
    browser_launch_retries: int = 3
    browser_headless: bool = True
    browser_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    browser_warmup: bool = True
    # 렌더 대상 앱이 SSR 요청을 구분할 때 보는 `service` 헤더 값
    render_service_marker: str = "puppeteer"

    # 캐시
    redis_url: str = ""
    cache_fresh_seconds: int = 3600
    cache_retention_seconds: int = 604800  # 7일

    # 렌더 로그 DB
    database_url: str = "sqlite:///./isr_render.db"

    # API
    api_title: str = "ISR 렌더링 서비스"
    api_version: str = "1.0.0"
    api_description: str = "봇 요청에 대해 렌더링된 HTML을 캐시 우선으로 제공합니다."

    # 로깅
    log_level: str = "INFO"

    @property
    def total_timeout_ms(self) -> int:
        """실제 적용되는 전체 예산 (서버리스는 5초 고정)"""
        return 5000 if self.serverless else self.duration_timeout_ms

    @property
    def terminate_pool_after_use(self) -> bool:
        """서버리스에서는 워커가 남지 않도록 작업마다 풀을 종료"""
        return self.serverless

    @field_validator(
        "duration_timeout_ms",
        "settle_ceiling_ms",
        "browser_protocol_timeout_ms",
        "browser_max_pages",
        "cache_fresh_seconds",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("value must be positive")
        return v

    @field_validator("gap_duration_ms")
    @classmethod
    def validate_gap_duration(cls, v: int) -> int:
        if v < 0:
            raise ValueError("gap_duration_ms must be >= 0")
        return v

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("max_workers must be positive")
        return v

    @field_validator("optimizer_backend")
    @classmethod
    def validate_optimizer_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in ("process", "thread"):
            raise ValueError("optimizer_backend must be 'process' or 'thread'")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
