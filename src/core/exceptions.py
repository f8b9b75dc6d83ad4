"""커스텀 예외 정의 (Structured Exception Hierarchy)"""
from typing import Any, Optional


class RendererException(Exception):
    """기본 예외 클래스 - 모든 커스텀 예외의 부모"""
    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


# 렌더링(브라우저/외부 크롤) 관련 예외
class BrowserException(RendererException):
    """브라우저 실행/페이지 생성 오류"""
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, "BROWSER_ERROR", details)


class NavigationException(RendererException):
    """페이지 이동 중 타임아웃이 아닌 오류 (치명적)"""
    def __init__(self, url: str, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Navigation failed for {url}: {reason}"
        super().__init__(message, "NAVIGATION_ERROR", details or {"url": url, "reason": reason})


class ExternalCrawlException(RendererException):
    """외부 크롤 엔드포인트 호출/파싱 오류"""
    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"External crawl failed: {reason}"
        super().__init__(message, "EXTERNAL_CRAWL_ERROR", details or {"reason": reason})


class OptimizationException(RendererException):
    """HTML 최적화 워커 실패 (예외, 스케줄 실패, 타임아웃)"""
    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"HTML optimization failed: {reason}"
        super().__init__(message, "OPTIMIZATION_ERROR", details or {"reason": reason})


# 캐시 관련 예외
class CacheException(RendererException):
    """캐시 관련 예외"""
    def __init__(self, message: str, error_code: str = "CACHE_ERROR", details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code or "CACHE_ERROR", details)


class CacheConnectionException(CacheException):
    """캐시 연결 실패"""
    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Failed to connect to cache: {reason}"
        super().__init__(message, "CACHE_CONNECTION_ERROR", details)


class CacheSerializationException(CacheException):
    """캐시 직렬화/역직렬화 오류"""
    def __init__(self, operation: str, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Cache {operation} failed: {reason}"
        super().__init__(message, "CACHE_SERIALIZATION_ERROR",
                        details or {"operation": operation, "reason": reason})


# 데이터베이스 관련 예외
class DatabaseException(RendererException):
    """데이터베이스 관련 예외"""
    def __init__(self, message: str, error_code: str = "DB_ERROR", details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code or "DB_ERROR", details)


# 유효성 검증 관련 예외
class ValidationException(RendererException):
    """유효성 검증 예외"""
    def __init__(self, field: str, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Validation failed for '{field}': {reason}"
        super().__init__(message, "VALIDATION_ERROR",
                        details or {"field": field, "reason": reason})


class InvalidURLException(ValidationException):
    """유효하지 않은 URL"""
    def __init__(self, url: str, reason: str, details: Optional[dict[str, Any]] = None):
        super().__init__("url", f"{reason} (url: {url})", details)
