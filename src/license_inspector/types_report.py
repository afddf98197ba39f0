from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .types_issues import Issue
from .types_risk import SEVERITY_LEVELS, SeverityLabels, severity_rank


@dataclass
class Report:
    issues: list[Issue]
    generated_at: datetime
    severity_labels: SeverityLabels = field(default_factory=SeverityLabels)

    @property
    def severity_counts(self) -> dict[str, int]:
        """Issue counts per severity, worst first, zero buckets included."""

        counts = {label: 0 for label in reversed(SEVERITY_LEVELS)}
        for issue in self.issues:
            counts[issue.severity] = counts.get(issue.severity, 0) + 1
        return counts

    @property
    def worst_severity(self) -> Optional[str]:
        if not self.issues:
            return None
        return max((issue.severity for issue in self.issues), key=severity_rank)

    def issues_at_or_above(self, threshold: str) -> list[Issue]:
        floor = severity_rank(threshold)
        return [issue for issue in self.issues if severity_rank(issue.severity) >= floor]
