from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Mapping, Optional

# Warnings NG severities, best first.
SEVERITY_LEVELS = ("LOW", "NORMAL", "HIGH", "ERROR")

# Pre-approved even though they are not OSI licenses.
POSITIVE_LIST = ("CC0-1.0", "CC-BY-4.0", "Unlicense")

DEFAULT_MAX_HOPS = 100


def severity_rank(label: str) -> int:
    """Return the position of ``label`` in :data:`SEVERITY_LEVELS` (0 = best)."""

    try:
        return SEVERITY_LEVELS.index(label.upper())
    except ValueError as exc:
        raise ValueError(
            f"Unknown severity {label!r}; expected one of {', '.join(SEVERITY_LEVELS)}"
        ) from exc


@dataclass(frozen=True)
class SeverityLabels:
    """Severity reported for each outcome of the license decision table.

    The outcomes are fixed; the label attached to each one is configuration.
    ``missing`` and ``unresolved`` share the worst tier by default, ``review``
    is the "flag for a human" tier below it.
    """

    missing: str = "ERROR"
    unresolved: str = "ERROR"
    review: str = "HIGH"
    positive: str = "NORMAL"
    approved: str = "LOW"

    def __post_init__(self) -> None:
        for item in fields(self):
            value = getattr(self, item.name)
            severity_rank(value)
            object.__setattr__(self, item.name, value.upper())

    @classmethod
    def preset(cls, name: Optional[str]) -> "SeverityLabels":
        key = (name or "default").lower()
        if key == "default":
            return cls()
        if key == "legacy":
            return cls(missing="HIGH", unresolved="HIGH", review="ERROR")
        raise ValueError(f"Unknown severity preset: {name}")

    def with_overrides(self, overrides: Mapping[str, str] | None) -> "SeverityLabels":
        if not overrides:
            return self
        known = {item.name for item in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ValueError(f"Unknown severity outcome(s): {', '.join(unknown)}")
        values = self.as_dict()
        values.update({key: str(value) for key, value in overrides.items()})
        return SeverityLabels(**values)

    def as_dict(self) -> dict[str, str]:
        return {item.name: getattr(self, item.name) for item in fields(self)}
