from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import yaml

from .types import POSITIVE_LIST, Issue, Report, SeverityLabels, severity_rank


class PolicyError(RuntimeError):
    """The policy file is unreadable or contains invalid values."""


@dataclass
class PolicyException:
    package: str
    reason: str = ""
    approved_by: Optional[str] = None
    expires: Optional[datetime] = None

    def expired(self, now: datetime) -> bool:
        return bool(self.expires and self.expires < now)

    def as_dict(self) -> dict:
        return {
            "package": self.package,
            "reason": self.reason,
            "approved_by": self.approved_by,
            "expires": self.expires.isoformat() if self.expires else None,
        }


@dataclass
class Policy:
    severity_labels: SeverityLabels = field(default_factory=SeverityLabels)
    label_overrides: dict[str, str] = field(default_factory=dict)
    positive_list: tuple[str, ...] = POSITIVE_LIST
    fail_on: Optional[str] = None
    disallow: List[str] = field(default_factory=list)
    exceptions: List[PolicyException] = field(default_factory=list)

    def apply_preset(self, preset: str) -> None:
        """Swap the base label set while keeping the file's per-outcome overrides."""

        self.severity_labels = SeverityLabels.preset(preset).with_overrides(self.label_overrides)


@dataclass
class PolicyEvaluation:
    passed: bool
    failures: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    used_exceptions: List[PolicyException] = field(default_factory=list)
    expired_exceptions: List[PolicyException] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "passed": self.passed,
            "failures": self.failures,
            "warnings": self.warnings,
            "used_exceptions": [exc.as_dict() for exc in self.used_exceptions],
            "expired_exceptions": [exc.as_dict() for exc in self.expired_exceptions],
        }


def _parse_expiry(value) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value))
        except ValueError as exc:
            raise PolicyError(f"Invalid exception expiry {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def load_policy(path: Path) -> Policy:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise PolicyError(f"Unable to load policy {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise PolicyError(f"Policy {path} must be a mapping")

    overrides = raw.get("severity_labels") or {}
    if not isinstance(overrides, dict):
        raise PolicyError(f"'severity_labels' in {path} must be a mapping")
    overrides = {str(key): str(value) for key, value in overrides.items()}

    try:
        labels = SeverityLabels.preset(raw.get("severity_preset")).with_overrides(overrides)
        fail_on = raw.get("fail_on")
        if fail_on is not None:
            fail_on = str(fail_on).upper()
            severity_rank(fail_on)
    except ValueError as exc:
        raise PolicyError(f"Invalid policy {path}: {exc}") from exc

    exceptions: list[PolicyException] = []
    for entry in raw.get("exceptions", []) or []:
        if not isinstance(entry, dict) or not entry.get("package"):
            raise PolicyError(f"Policy exceptions need a 'package' key: {entry!r}")
        exceptions.append(
            PolicyException(
                package=str(entry["package"]),
                reason=str(entry.get("reason", "")),
                approved_by=entry.get("approved_by"),
                expires=_parse_expiry(entry.get("expires")),
            )
        )

    positive_list = raw.get("positive_list")
    return Policy(
        severity_labels=labels,
        label_overrides=overrides,
        positive_list=tuple(positive_list) if positive_list is not None else POSITIVE_LIST,
        fail_on=fail_on,
        disallow=[str(item) for item in raw.get("disallow") or []],
        exceptions=exceptions,
    )


def _match_exception(issue: Issue, policy: Policy, now: datetime) -> PolicyException | None:
    for exc in policy.exceptions:
        if exc.package == issue.package_name and not exc.expired(now):
            return exc
    return None


def evaluate_policy(report: Report, policy: Policy, now: datetime | None = None) -> PolicyEvaluation:
    failures: list[str] = []
    warnings: list[str] = []
    used_exceptions: list[PolicyException] = []
    now = now or datetime.now(timezone.utc)

    for issue in report.issues:
        reasons = []
        if issue.license_type and issue.license_type in policy.disallow:
            reasons.append(f"license {issue.license_type} is disallowed")
        if policy.fail_on and severity_rank(issue.severity) >= severity_rank(policy.fail_on):
            reasons.append(f"severity {issue.severity} at or above {policy.fail_on}")
        if not reasons:
            continue
        matched = _match_exception(issue, policy, now)
        if matched:
            used_exceptions.append(matched)
            continue
        failures.append(f"{issue.package_name} ({issue.type}): {'; '.join(reasons)} [{issue.description}]")

    expired = [exc for exc in policy.exceptions if exc.expired(now)]
    for exc in expired:
        warnings.append(f"Exception for {exc.package} expired on {exc.expires.isoformat()}")

    return PolicyEvaluation(
        passed=not failures,
        failures=failures,
        warnings=warnings,
        used_exceptions=used_exceptions,
        expired_exceptions=expired,
    )


def write_github_check(path: Path, evaluation: PolicyEvaluation, report: Report) -> None:
    payload = {
        "conclusion": "success" if evaluation.passed else "failure",
        "summary": "; ".join(evaluation.failures) if evaluation.failures else "All policy checks passed.",
        "details": evaluation.as_dict(),
        "severity_counts": report.severity_counts,
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


def diff_reports(base: dict, target: dict) -> dict:
    """Compare two ``{"issues": [...]}`` documents by package name."""

    base_issues = {i["packageName"]: i for i in base.get("issues", [])}
    target_issues = {i["packageName"]: i for i in target.get("issues", [])}

    added = sorted(set(target_issues) - set(base_issues))
    removed = sorted(set(base_issues) - set(target_issues))

    changed = []
    for name in sorted(set(base_issues).intersection(target_issues)):
        before, after = base_issues[name], target_issues[name]
        if before.get("severity") != after.get("severity") or before.get("type") != after.get("type"):
            changed.append(
                f"{name}: {before.get('type')} {before.get('severity')} -> {after.get('type')} {after.get('severity')}"
            )

    return {
        "added_packages": added,
        "removed_packages": removed,
        "changed_packages": changed,
    }
