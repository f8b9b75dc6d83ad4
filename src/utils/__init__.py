"""Utilities package - Flat structure (no nested directories)

HTML 최적화 규칙은 워커 프로세스에서 import되므로 별도 하위 패키지(html/)에 둡니다.
"""

# Hash utilities
from .hash_utils import hash_string, generate_cache_key

# URL utilities
from .url_utils import (
    extract_special_info,
    normalize_cache_url,
    strip_query,
    validate_render_url,
)

__all__ = [
    # hash
    "hash_string",
    "generate_cache_key",
    # url
    "extract_special_info",
    "normalize_cache_url",
    "strip_query",
    "validate_render_url",
]
