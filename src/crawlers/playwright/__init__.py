"""Playwright module for the browser render path."""

from .browser import BrowserManager, build_launch_args
from .pages import configure_page, route_handler
from .settle import QuietPeriod, wait_for_response

__all__ = [
    "BrowserManager",
    "build_launch_args",
    "configure_page",
    "route_handler",
    "QuietPeriod",
    "wait_for_response",
]
