"""License risk classification.

The decision table is fixed; which Warnings NG severity each outcome maps to
comes from :class:`~license_inspector.types_risk.SeverityLabels`.

1. nothing declared                 -> ``missing``
2. not canonicalisable              -> ``positive`` if on the allow-list, else ``unresolved``
3. OSI-approved                     -> ``approved``
4. on the allow-list                -> ``positive``
5. anything else                    -> ``review``
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .spdx import LicenseOracle, SpdxOracle
from .types_risk import POSITIVE_LIST, SeverityLabels

logger = logging.getLogger(__name__)


class SeverityClassifier:
    def __init__(
        self,
        oracle: LicenseOracle | None = None,
        labels: SeverityLabels | None = None,
        positive_list: Iterable[str] = POSITIVE_LIST,
    ) -> None:
        self.oracle = oracle if oracle is not None else SpdxOracle()
        self.labels = labels or SeverityLabels()
        self.positive_list = tuple(positive_list)
        self._memo: dict[str, str] = {}

    def is_on_positive_list(self, license_type: Optional[str]) -> bool:
        return license_type in self.positive_list

    def outcome(self, license_type: Optional[str]) -> str:
        """Name of the decision-table row that ``license_type`` falls into."""

        if not license_type:
            return "missing"

        spdx_id = self.oracle.correct_to_canonical_id(license_type)
        if not spdx_id:
            return "positive" if self.is_on_positive_list(license_type) else "unresolved"

        if self.oracle.is_osi_approved(spdx_id):
            return "approved"

        if self.is_on_positive_list(spdx_id) or self.is_on_positive_list(license_type):
            return "positive"

        return "review"

    def classify(self, license_type: Optional[str]) -> str:
        key = license_type or ""
        if key not in self._memo:
            outcome = self.outcome(license_type)
            self._memo[key] = getattr(self.labels, outcome)
            logger.debug("License %r classified as %s (%s)", license_type, self._memo[key], outcome)
        return self._memo[key]
