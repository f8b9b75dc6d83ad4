"""해싱 유틸리티"""
import hashlib


def hash_string(text: str) -> str:
    """
    문자열을 MD5 해시로 변환

    Args:
        text: 해시할 문자열

    Returns:
        MD5 해시 문자열
    """
    return hashlib.md5(text.encode()).hexdigest()


def generate_cache_key(url: str) -> str:
    """
    렌더링 URL로 캐시 키 생성

    Args:
        url: 렌더링 대상 URL

    Returns:
        캐시 키 (예: "isr:5d41402abc4b2a76b9719d911017c592")
    """
    from src.utils.url_utils import normalize_cache_url

    normalized = normalize_cache_url(url)
    hashed = hash_string(normalized)
    return f"isr:{hashed}"
