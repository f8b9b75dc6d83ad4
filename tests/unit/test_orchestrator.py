"""RenderOrchestrator 유닛 테스트.

협력 객체(캐시/브라우저/최적화/외부 크롤)는 모두 Dummy/Mock으로 주입합니다.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.exceptions import OptimizationException
from src.services.impl.optimizer_service import OptimizerPool
from src.engine import (
    BrowserRenderFailed,
    BrowserRenderSuccess,
    CacheEntry,
    ContentState,
    DeadlineTracker,
    ExternalCrawlFailed,
    ExternalCrawlSuccess,
    NoRendererAvailable,
    RenderOrchestrator,
    RenderResult,
)

NOW = 1_700_000_000_000


@pytest.fixture
def deadline():
    return DeadlineTracker(total_timeout_ms=20000, clock=lambda: NOW)


@pytest.fixture
def mock_browser(rendered_html):
    browser = MagicMock()
    browser.execute = AsyncMock(return_value=BrowserRenderSuccess(status=200, html=rendered_html))
    return browser


@pytest.fixture
def mock_optimizer():
    optimizer = MagicMock()
    optimizer.optimize = AsyncMock(side_effect=lambda html, deep: f"<!-- optimized -->{html}")
    return optimizer


@pytest.fixture
def mock_external(rendered_html):
    external = MagicMock()
    external.endpoint = "http://crawler.internal/render"
    external.fetch = AsyncMock(return_value=ExternalCrawlSuccess(status=200, html=rendered_html))
    return external


def build(dummy_cache, mock_browser, mock_optimizer, deadline, external=None) -> RenderOrchestrator:
    orchestrator = RenderOrchestrator(
        cache=dummy_cache,
        browser_renderer=mock_browser,
        optimizer=mock_optimizer,
        external_crawler=external,
        deadline=deadline,
    )
    orchestrator.optimize_enabled = True
    return orchestrator


def test_requires_collaborators(dummy_cache, mock_browser, mock_optimizer):
    with pytest.raises(ValueError):
        RenderOrchestrator(cache=None, browser_renderer=mock_browser, optimizer=mock_optimizer)
    with pytest.raises(ValueError):
        RenderOrchestrator(cache=dummy_cache, browser_renderer=None, optimizer=mock_optimizer)
    with pytest.raises(ValueError):
        RenderOrchestrator(cache=dummy_cache, browser_renderer=mock_browser, optimizer=None)


# ============================================================================
# BudgetCheck1
# ============================================================================

@pytest.mark.asyncio
async def test_budget_exhausted_serves_stale_on_repeat_request(
    dummy_cache, mock_browser, mock_optimizer, deadline, mock_external, product_url
):
    """예산 소진 + 재요청: achieve 결과 그대로, 획득 시도 없음"""
    dummy_cache.store[product_url] = CacheEntry(
        url=product_url, html="<p>old</p>", last_written_at=1, content_state=ContentState.OPTIMIZED
    )
    orchestrator = build(dummy_cache, mock_browser, mock_optimizer, deadline, mock_external)

    result = await orchestrator.render(product_url, is_first_request=False, started_at=NOW - 18_600)

    assert result == RenderResult(status=200, html="<p>old</p>")
    assert dummy_cache.achieve_calls == 1
    mock_external.fetch.assert_not_called()
    mock_browser.execute.assert_not_called()
    mock_optimizer.optimize.assert_not_called()


@pytest.mark.asyncio
async def test_budget_exhausted_repeat_request_without_entry(
    dummy_cache, mock_browser, mock_optimizer, deadline, product_url
):
    orchestrator = build(dummy_cache, mock_browser, mock_optimizer, deadline)

    result = await orchestrator.render(product_url, is_first_request=False, started_at=NOW - 30_000)

    assert result is None
    mock_browser.execute.assert_not_called()


@pytest.mark.asyncio
async def test_budget_exhausted_first_request_returns_nothing(
    dummy_cache, mock_browser, mock_optimizer, deadline, mock_external, product_url
):
    """예산 소진 + 첫 요청: None, 부수 효과 없음"""
    orchestrator = build(dummy_cache, mock_browser, mock_optimizer, deadline, mock_external)

    result = await orchestrator.render(product_url, is_first_request=True, started_at=NOW - 18_501)

    assert result is None
    assert dummy_cache.achieve_calls == 0
    assert dummy_cache.set_calls == []
    assert dummy_cache.removed == []
    mock_external.fetch.assert_not_called()
    mock_browser.execute.assert_not_called()


@pytest.mark.asyncio
async def test_budget_boundary_still_renders(
    dummy_cache, mock_browser, mock_optimizer, deadline, product_url
):
    """남은 예산이 1ms라도 있으면 획득 진행"""
    orchestrator = build(dummy_cache, mock_browser, mock_optimizer, deadline)

    result = await orchestrator.render(product_url, is_first_request=True, started_at=NOW - 18_499)

    assert result is not None
    mock_browser.execute.assert_awaited_once_with(product_url)


# ============================================================================
# Acquisition
# ============================================================================

@pytest.mark.asyncio
async def test_external_crawl_success_is_optimized_and_cached(
    dummy_cache, mock_browser, mock_optimizer, deadline, mock_external, product_url, rendered_html
):
    """외부 크롤 200 → full 최적화 1회 + 최적화 HTML 캐시 저장"""
    orchestrator = build(dummy_cache, mock_browser, mock_optimizer, deadline, mock_external)

    result = await orchestrator.render(product_url, is_first_request=True, started_at=NOW)

    optimized = f"<!-- optimized -->{rendered_html}"
    mock_external.fetch.assert_awaited_once_with(product_url, NOW)
    mock_optimizer.optimize.assert_awaited_once_with(rendered_html, deep=True)
    mock_browser.execute.assert_not_called()
    assert dummy_cache.set_calls == [(product_url, optimized, ContentState.OPTIMIZED)]
    assert result == RenderResult(status=200, html=optimized)


@pytest.mark.asyncio
async def test_external_crawl_failure_falls_back_to_browser_once(
    dummy_cache, mock_browser, mock_optimizer, deadline, mock_external, product_url
):
    mock_external.fetch = AsyncMock(return_value=ExternalCrawlFailed())
    orchestrator = build(dummy_cache, mock_browser, mock_optimizer, deadline, mock_external)

    result = await orchestrator.render(product_url, is_first_request=True, started_at=NOW)

    assert mock_browser.execute.await_count == 1
    assert result is not None and result.status == 200


@pytest.mark.asyncio
async def test_external_crawl_non_500_does_not_use_browser(
    dummy_cache, mock_browser, mock_optimizer, deadline, mock_external, product_url
):
    mock_external.fetch = AsyncMock(return_value=ExternalCrawlSuccess(status=302, html="<p>moved</p>"))
    orchestrator = build(dummy_cache, mock_browser, mock_optimizer, deadline, mock_external)

    result = await orchestrator.render(product_url, is_first_request=True, started_at=NOW)

    mock_browser.execute.assert_not_called()
    assert result == RenderResult(status=200, html="<!-- optimized --><p>moved</p>")


@pytest.mark.asyncio
async def test_without_endpoint_uses_browser_only(
    dummy_cache, mock_browser, mock_optimizer, deadline, product_url
):
    external = MagicMock()
    external.endpoint = ""
    external.fetch = AsyncMock()
    orchestrator = build(dummy_cache, mock_browser, mock_optimizer, deadline, external)

    await orchestrator.render(product_url, is_first_request=True, started_at=NOW)

    external.fetch.assert_not_called()
    mock_browser.execute.assert_awaited_once()


@pytest.mark.asyncio
async def test_no_page_handle_serves_stale_on_repeat_request(
    dummy_cache, mock_browser, mock_optimizer, deadline, product_url
):
    dummy_cache.store[product_url] = CacheEntry(url=product_url, html="<p>old</p>", last_written_at=1)
    mock_browser.execute = AsyncMock(return_value=NoRendererAvailable())
    orchestrator = build(dummy_cache, mock_browser, mock_optimizer, deadline)

    result = await orchestrator.render(product_url, is_first_request=False, started_at=NOW)

    assert result == RenderResult(status=200, html="<p>old</p>")
    assert dummy_cache.achieve_calls == 1
    assert dummy_cache.set_calls == []


@pytest.mark.asyncio
async def test_no_page_handle_on_first_request_returns_nothing(
    dummy_cache, mock_browser, mock_optimizer, deadline, product_url
):
    mock_browser.execute = AsyncMock(return_value=NoRendererAvailable())
    orchestrator = build(dummy_cache, mock_browser, mock_optimizer, deadline)

    result = await orchestrator.render(product_url, is_first_request=True, started_at=NOW)

    assert result is None
    assert dummy_cache.achieve_calls == 0


@pytest.mark.asyncio
async def test_fatal_navigation_error_returns_500_without_stale_fallback(
    dummy_cache, mock_browser, mock_optimizer, deadline, product_url
):
    """치명적 렌더링 오류는 stale 캐시가 있어도 500"""
    dummy_cache.store[product_url] = CacheEntry(url=product_url, html="<p>old</p>", last_written_at=1)
    mock_browser.execute = AsyncMock(return_value=BrowserRenderFailed(fatal=True))
    orchestrator = build(dummy_cache, mock_browser, mock_optimizer, deadline)

    result = await orchestrator.render(product_url, is_first_request=False, started_at=NOW)

    assert result == RenderResult(status=500)
    assert result.html is None
    assert dummy_cache.achieve_calls == 0
    assert dummy_cache.removed == []
    assert dummy_cache.set_calls == []
    assert product_url in dummy_cache.store


@pytest.mark.asyncio
async def test_content_read_failure_returns_nothing(
    dummy_cache, mock_browser, mock_optimizer, deadline, product_url
):
    mock_browser.execute = AsyncMock(return_value=BrowserRenderFailed(fatal=False))
    orchestrator = build(dummy_cache, mock_browser, mock_optimizer, deadline)

    result = await orchestrator.render(product_url, is_first_request=True, started_at=NOW)

    assert result is None
    assert dummy_cache.set_calls == []


# ============================================================================
# Classification
# ============================================================================

@pytest.mark.asyncio
async def test_not_found_sentinel_evicts_and_returns_literal(
    dummy_cache, mock_browser, mock_optimizer, deadline, product_url, not_found_html
):
    dummy_cache.store[product_url] = CacheEntry(url=product_url, html="<p>old</p>", last_written_at=1)
    mock_browser.execute = AsyncMock(return_value=BrowserRenderSuccess(status=404, html=not_found_html))
    orchestrator = build(dummy_cache, mock_browser, mock_optimizer, deadline)

    result = await orchestrator.render(product_url, is_first_request=False, started_at=NOW)

    assert result == RenderResult(status=404, html="Page not found!")
    assert dummy_cache.removed == [product_url]
    assert product_url not in dummy_cache.store
    mock_optimizer.optimize.assert_not_called()


@pytest.mark.asyncio
async def test_other_uncacheable_status_returns_raw_html(
    dummy_cache, mock_browser, mock_optimizer, deadline, mock_external, product_url
):
    mock_external.fetch = AsyncMock(return_value=ExternalCrawlSuccess(status=403, html="<p>forbidden</p>"))
    orchestrator = build(dummy_cache, mock_browser, mock_optimizer, deadline, mock_external)

    result = await orchestrator.render(product_url, is_first_request=True, started_at=NOW)

    assert result == RenderResult(status=403, html="<p>forbidden</p>")
    assert dummy_cache.removed == [product_url]
    assert dummy_cache.set_calls == []


# ============================================================================
# Optimization / CacheWrite
# ============================================================================

@pytest.mark.asyncio
async def test_optimization_failure_never_writes_cache(
    dummy_cache, mock_browser, mock_optimizer, deadline, product_url
):
    mock_optimizer.optimize = AsyncMock(side_effect=OptimizationException("worker crashed"))
    orchestrator = build(dummy_cache, mock_browser, mock_optimizer, deadline)

    result = await orchestrator.render(product_url, is_first_request=True, started_at=NOW)

    assert result is None
    assert dummy_cache.set_calls == []


@pytest.mark.asyncio
async def test_disabled_optimization_caches_raw_html(
    dummy_cache, mock_browser, mock_optimizer, deadline, product_url, rendered_html
):
    orchestrator = build(dummy_cache, mock_browser, mock_optimizer, deadline)
    orchestrator.optimize_enabled = False

    result = await orchestrator.render(product_url, is_first_request=True, started_at=NOW)

    mock_optimizer.optimize.assert_not_called()
    assert dummy_cache.set_calls == [(product_url, rendered_html, ContentState.RAW)]
    assert result == RenderResult(status=200, html=rendered_html)


@pytest.mark.asyncio
async def test_cache_write_failure_still_returns_content(
    dummy_cache, mock_browser, mock_optimizer, deadline, product_url, rendered_html
):
    dummy_cache.fail_set = True
    orchestrator = build(dummy_cache, mock_browser, mock_optimizer, deadline)

    result = await orchestrator.render(product_url, is_first_request=True, started_at=NOW)

    assert result == RenderResult(status=200, html=f"<!-- optimized -->{rendered_html}")


@pytest.mark.asyncio
async def test_repeated_render_overwrites_with_non_decreasing_freshness(
    dummy_cache, mock_browser, mock_optimizer, deadline, product_url
):
    orchestrator = build(dummy_cache, mock_browser, mock_optimizer, deadline)

    await orchestrator.render(product_url, is_first_request=True, started_at=NOW)
    first = dummy_cache.store[product_url]
    await orchestrator.render(product_url, is_first_request=False, started_at=NOW)
    second = dummy_cache.store[product_url]

    assert [call[0] for call in dummy_cache.set_calls] == [product_url, product_url]
    assert second.last_written_at >= first.last_written_at
    assert second.html == first.html


# ============================================================================
# Robustness
# ============================================================================

@pytest.mark.asyncio
async def test_unexpected_collaborator_error_is_swallowed(
    dummy_cache, mock_browser, mock_optimizer, deadline, product_url
):
    mock_browser.execute = AsyncMock(side_effect=RuntimeError("boom"))
    orchestrator = build(dummy_cache, mock_browser, mock_optimizer, deadline)

    result = await orchestrator.render(product_url, is_first_request=True, started_at=NOW)

    assert result is None


@pytest.mark.asyncio
async def test_missing_started_at_uses_current_time(
    dummy_cache, mock_browser, mock_optimizer, deadline, product_url
):
    orchestrator = build(dummy_cache, mock_browser, mock_optimizer, deadline)

    result = await orchestrator.render(product_url, is_first_request=True)

    assert result is not None
    mock_browser.execute.assert_awaited_once()


@pytest.mark.asyncio
async def test_concurrent_renders_with_per_job_optimizer_pool(dummy_cache, mock_browser, deadline):
    pool = OptimizerPool(max_workers=2, backend="thread", terminate_after_use=True)
    orchestrator = build(dummy_cache, mock_browser, pool, deadline)

    results = await asyncio.gather(
        *(orchestrator.render(f"https://example.com/p/{i}", True, NOW) for i in range(4)),
        return_exceptions=True,
    )

    assert all(isinstance(result, RenderResult) for result in results)
    assert all(result.status == 200 for result in results)
    assert len(dummy_cache.set_calls) == 4
