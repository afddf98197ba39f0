from __future__ import annotations

"""Shared data structures for license inspection.

The definitions live in domain-focused modules; this module re-exports them so
callers have a single stable import path.
"""

from .types_issues import ARROW, NO_LICENSE, Issue
from .types_report import Report
from .types_risk import (
    DEFAULT_MAX_HOPS,
    POSITIVE_LIST,
    SEVERITY_LEVELS,
    SeverityLabels,
    severity_rank,
)

__all__ = [
    "ARROW",
    "DEFAULT_MAX_HOPS",
    "Issue",
    "NO_LICENSE",
    "POSITIVE_LIST",
    "Report",
    "SEVERITY_LEVELS",
    "SeverityLabels",
    "severity_rank",
]
