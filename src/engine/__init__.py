"""Engine Layer - Core Render-and-Cache Orchestration

This module provides the core engine layer of the renderer:
- RenderOrchestrator: Main entry point for one render-and-cache pass
- DeadlineTracker: Wall-clock budget arithmetic (20s, 5s serverless)
- RenderResult / CacheEntry / AcquisitionOutcome: Result types
- ExecutionStrategy: Acquisition path selection and error classification
- CacheAdapter: Cache service adapter
"""

from .cache_adapter import CacheAdapter
from .deadline import DeadlineTracker, now_ms
from .orchestrator import RenderOrchestrator
from .result import (
    AcquisitionOutcome,
    BrowserRenderFailed,
    BrowserRenderSuccess,
    CacheEntry,
    ContentState,
    ExternalCrawlFailed,
    ExternalCrawlSuccess,
    NoRendererAvailable,
    RenderRequest,
    RenderResult,
)
from .strategy import ExecutionPath, ExecutionStrategy

__all__ = [
    "RenderOrchestrator",
    "DeadlineTracker",
    "now_ms",
    "CacheAdapter",
    "RenderRequest",
    "RenderResult",
    "CacheEntry",
    "ContentState",
    "ExecutionStrategy",
    "ExecutionPath",
    # Acquisition outcomes
    "AcquisitionOutcome",
    "ExternalCrawlSuccess",
    "ExternalCrawlFailed",
    "BrowserRenderSuccess",
    "BrowserRenderFailed",
    "NoRendererAvailable",
]
