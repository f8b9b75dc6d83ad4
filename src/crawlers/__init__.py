"""Content acquisition (external crawl endpoint + Playwright render).

공개 API는 이 파일에서만 export합니다.
"""

from .browser_render import BrowserRenderExecutor
from .external_crawl import ExternalCrawlExecutor
from .http_client import SharedHttpClient

__all__ = [
    "BrowserRenderExecutor",
    "ExternalCrawlExecutor",
    "SharedHttpClient",
]
