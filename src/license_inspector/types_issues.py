from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

NO_LICENSE = "n/a"
ARROW = " → "


@dataclass(frozen=True)
class Issue:
    package_name: str
    license_type: Optional[str]
    file_name: str
    severity: str
    chain: Tuple[str, ...] = ()
    line_start: Optional[int] = None
    message: str = "Dependency tree"

    @property
    def type(self) -> str:
        return NO_LICENSE if self.license_type is None else self.license_type

    @property
    def description(self) -> str:
        """The ancestry chain rendered root first."""

        return ARROW.join(self.chain)

    def as_dict(self) -> dict:
        payload: dict = {
            "packageName": self.package_name,
            "type": self.type,
            "fileName": self.file_name,
        }
        if self.line_start is not None:
            payload["lineStart"] = self.line_start
        payload.update(
            {
                "severity": self.severity,
                "message": self.message,
                "description": self.description,
            }
        )
        return payload
