"""HTML optimization rules package."""

from .optimize import FULL_RULES, SHALLOW_RULES, Rule, compress_html, optimize_content

__all__ = ["FULL_RULES", "SHALLOW_RULES", "Rule", "compress_html", "optimize_content"]
