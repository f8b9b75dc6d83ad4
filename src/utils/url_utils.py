"""URL 파싱 유틸리티"""
import re
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

# 봇/디바이스/로케일/환경 정보는 요청 레이어가 URL 쿼리에 순서대로 붙여 보냅니다.
SPECIAL_INFO_PATTERN = re.compile(
    r"botInfo=(?P<botInfo>[^&]*)"
    r"&deviceInfo=(?P<deviceInfo>[^&]*)"
    r"&localeInfo=(?P<localeInfo>[^&]*)"
    r"&environmentInfo=(?P<environmentInfo>[^&]*)"
)

# 캐시 키에서 제외할 쿼리 파라미터
_VOLATILE_PARAMS = {"crawlerSecretKey", "startGenerating", "isFirstRequest"}


def extract_special_info(url: str) -> dict[str, str]:
    """
    URL 쿼리에서 봇/디바이스/로케일/환경 정보 추출

    Examples:
        >>> extract_special_info("https://a.com/p?botInfo=%7B%7D&deviceInfo=d&localeInfo=l&environmentInfo=e")
        {'botInfo': '%7B%7D', 'deviceInfo': 'd', 'localeInfo': 'l', 'environmentInfo': 'e'}
        >>> extract_special_info("https://a.com/p")
        {}

    Args:
        url: 렌더링 대상 URL

    Returns:
        네 개의 그룹이 모두 있으면 dict, 없으면 빈 dict. 값은 디코딩하지 않습니다.
    """
    if not url:
        return {}

    match = SPECIAL_INFO_PATTERN.search(url)
    if not match:
        return {}
    return match.groupdict()


def strip_query(url: str) -> str:
    """쿼리 스트링을 제거한 URL (브라우저 네비게이션용)"""
    return url.split("?", 1)[0]


def normalize_cache_url(url: str) -> str:
    """캐시 키용 URL 정규화

    - scheme/host 소문자화
    - fragment 제거
    - 요청마다 달라지는 파라미터(crawlerSecretKey 등) 제거
    """
    if not url:
        return ""

    parsed = urlparse(url.strip())
    query = [
        (k, v) for k, v in parse_qsl(parsed.query, keep_blank_values=True)
        if k not in _VOLATILE_PARAMS
    ]
    return urlunparse((
        parsed.scheme.lower(),
        parsed.netloc.lower(),
        parsed.path or "/",
        parsed.params,
        urlencode(query),
        "",
    ))


def validate_render_url(url: Optional[str]) -> bool:
    """렌더링 가능한 절대 http(s) URL인지 확인"""
    if not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)
