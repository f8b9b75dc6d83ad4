"""로깅 설정 (Security Enhanced)"""
import logging
import re
import sys
import os
from src.core.config import settings


# Production 환경에서는 DEBUG 로그 비활성화
IS_PRODUCTION = os.getenv("ENVIRONMENT", settings.environment) == "production"


def setup_logging() -> logging.Logger:
    """로거 초기화 및 설정"""

    logger = logging.getLogger("isr_renderer")

    # Production에서는 최소 INFO 레벨
    log_level = settings.log_level.upper()
    if IS_PRODUCTION and log_level == "DEBUG":
        log_level = "INFO"

    logger.setLevel(getattr(logging, log_level))

    # 콘솔 핸들러
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, log_level))

    # 포맷터 (민감 정보 제외)
    if IS_PRODUCTION:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    console_handler.setFormatter(formatter)

    if not logger.handlers:
        logger.addHandler(console_handler)

    return logger


logger = setup_logging()


# 외부 크롤 호출의 비밀 키 쿼리 값
_SECRET_QUERY_RE = re.compile(r"(crawlerSecretKey=)[^&#\s]*", re.IGNORECASE)


def sanitize_for_log(value: str, max_length: int = 100) -> str:
    """로깅용 문자열 반환 (crawlerSecretKey 값 마스킹 + 길이 제한)

    Args:
        value: 로깅할 문자열 (주로 렌더링 URL)
        max_length: 최대 길이

    Returns:
        마스킹/절단된 문자열
    """
    if not value:
        return "[empty]"

    result = _SECRET_QUERY_RE.sub(r"\1***", value)

    if len(result) > max_length:
        result = result[:max_length] + "..."

    return result
