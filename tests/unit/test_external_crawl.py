"""ExternalCrawlExecutor 유닛 테스트 (HTTP 클라이언트 Mock)"""
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.exceptions import ExternalCrawlException
from src.crawlers.external_crawl import CRAWL_HEADERS, ExternalCrawlExecutor, decode_crawl_body
from src.engine import ExternalCrawlFailed, ExternalCrawlSuccess

ENDPOINT = "http://crawler.internal/render"
URL = "https://example.com/product/42"


def make_executor(response=None, error=None, secret_key=""):
    client = MagicMock()
    client.get_text = AsyncMock(return_value=response, side_effect=error)
    return ExternalCrawlExecutor(client, endpoint=ENDPOINT, secret_key=secret_key, timeout_s=5.0), client


class TestDecodeCrawlBody:
    def test_plain_html(self):
        assert decode_crawl_body(200, "<html></html>") == (200, "<html></html>")

    def test_json_document(self):
        assert decode_crawl_body(200, '{"status": 404, "html": "<p>gone</p>"}') == (404, "<p>gone</p>")

    def test_json_without_status_uses_http_status(self):
        assert decode_crawl_body(302, '{"html": "<p>moved</p>"}') == (302, "<p>moved</p>")

    def test_multiline_json(self):
        assert decode_crawl_body(200, '{\n  "html": "<p>x</p>"\n}') == (200, "<p>x</p>")

    def test_invalid_json_shape(self):
        with pytest.raises(ExternalCrawlException):
            decode_crawl_body(200, "{not json}")

    def test_json_data_key(self):
        assert decode_crawl_body(200, '{"status": 200, "data": "<html><body>ok</body></html>"}') == (
            200,
            "<html><body>ok</body></html>",
        )

    def test_html_key_wins_over_data(self):
        assert decode_crawl_body(200, '{"html": "<p>a</p>", "data": "<p>b</p>"}') == (200, "<p>a</p>")

    def test_json_without_html(self):
        with pytest.raises(ExternalCrawlException):
            decode_crawl_body(200, '{"status": 200}')


@pytest.mark.asyncio
async def test_fetch_success_sends_expected_request():
    executor, client = make_executor(response=(200, "<html>ok</html>"))

    outcome = await executor.fetch(URL, started_at=1700000000000)

    assert outcome == ExternalCrawlSuccess(status=200, html="<html>ok</html>")
    args, kwargs = client.get_text.call_args
    assert args == (ENDPOINT,)
    assert kwargs["params"] == {
        "startGenerating": "1700000000000",
        "isFirstRequest": "true",
        "url": URL,
    }
    assert kwargs["headers"] == CRAWL_HEADERS
    assert kwargs["headers"]["Accept"] == "text/html; charset=utf-8"


@pytest.mark.asyncio
async def test_fetch_adds_secret_key_when_configured():
    executor, client = make_executor(response=(200, "<html>ok</html>"), secret_key="s3cret")

    await executor.fetch(URL, started_at=1)

    assert client.get_text.call_args.kwargs["params"]["crawlerSecretKey"] == "s3cret"


@pytest.mark.asyncio
async def test_network_error_becomes_failed_outcome():
    executor, _ = make_executor(error=ConnectionError("refused"))

    outcome = await executor.fetch(URL, started_at=1)

    assert outcome == ExternalCrawlFailed()
    assert outcome.status == 500


@pytest.mark.asyncio
async def test_parse_error_becomes_failed_outcome():
    executor, _ = make_executor(response=(200, "{broken"))
    # "{broken"은 JSON 모양이 아니므로 HTML로 취급
    assert await executor.fetch(URL, started_at=1) == ExternalCrawlSuccess(status=200, html="{broken")

    executor, _ = make_executor(response=(200, "{broken}"))
    assert await executor.fetch(URL, started_at=1) == ExternalCrawlFailed()


@pytest.mark.asyncio
async def test_http_500_becomes_failed_outcome():
    executor, _ = make_executor(response=(500, "Internal Server Error"))
    assert await executor.fetch(URL, started_at=1) == ExternalCrawlFailed()


@pytest.mark.asyncio
async def test_no_endpoint_never_calls_network():
    client = MagicMock()
    client.get_text = AsyncMock()
    executor = ExternalCrawlExecutor(client, endpoint="", secret_key="")

    assert await executor.fetch(URL, started_at=1) == ExternalCrawlFailed()
    client.get_text.assert_not_called()


@pytest.mark.asyncio
async def test_fetch_accepts_data_shaped_reply():
    executor, _ = make_executor(response=(200, '{"status": 200, "data": "<html><body>ok</body></html>"}'))

    outcome = await executor.fetch(URL, started_at=1)

    assert outcome == ExternalCrawlSuccess(status=200, html="<html><body>ok</body></html>")
