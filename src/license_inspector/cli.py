from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

import click

from .policy import Policy, PolicyError, diff_reports, evaluate_policy, load_policy, write_github_check
from .project_loader import ProjectInputError
from .reporting import write_report
from .tree_walker import scan_project
from .types import DEFAULT_MAX_HOPS, SEVERITY_LEVELS

logger = logging.getLogger(__name__)

DEFAULT_REPORT = "licenseReport.json"


def _default_max_hops() -> int:
    env_value = os.getenv("LICENSE_INSPECTOR_MAX_HOPS")
    try:
        return int(env_value) if env_value is not None else DEFAULT_MAX_HOPS
    except ValueError:
        return DEFAULT_MAX_HOPS


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )


def _resolve_policy(
    policy_path: Optional[str], severity_preset: Optional[str], fail_on: Optional[str]
) -> Policy:
    policy = load_policy(Path(policy_path)) if policy_path else Policy()
    if severity_preset:
        policy.apply_preset(severity_preset)
    if fail_on:
        policy.fail_on = fail_on.upper()
    return policy


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=lambda: os.getenv("LICENSE_INSPECTOR_LOG_LEVEL", "WARNING"),
    show_default="WARNING",
    help="Logging verbosity (env: LICENSE_INSPECTOR_LOG_LEVEL).",
)
def main(log_level: str) -> None:
    """License Inspector CLI."""

    _configure_logging(log_level)


@main.command()
@click.option(
    "--project-dir",
    type=click.Path(exists=True, file_okay=False, path_type=str),
    default=".",
    show_default=True,
    help="Project root holding package.json, package-lock.json and node_modules.",
)
@click.option(
    "--package-json",
    type=click.Path(dir_okay=False, path_type=str),
    help="Project manifest (defaults to <project-dir>/package.json).",
)
@click.option(
    "--package-lock",
    type=click.Path(dir_okay=False, path_type=str),
    help="Lock file (defaults to <project-dir>/package-lock.json).",
)
@click.option(
    "--node-modules",
    type=click.Path(file_okay=False, path_type=str),
    help="Installed package root (defaults to <project-dir>/node_modules).",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["json", "markdown", "md", "html"], case_sensitive=False),
    default="json",
    show_default=True,
    help="Output format for the report.",
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False, writable=True, allow_dash=True, path_type=str),
    default=DEFAULT_REPORT,
    show_default=True,
    help="Report destination; '-' writes to stdout.",
)
@click.option(
    "--policy",
    type=click.Path(exists=True, dir_okay=False, path_type=str),
    help="Policy YAML file (severity labels, allow-list, gate rules, exceptions).",
)
@click.option(
    "--severity-preset",
    type=click.Choice(["default", "legacy"], case_sensitive=False),
    help="Severity label set; overrides the policy file's preset.",
)
@click.option(
    "--fail-on",
    type=click.Choice(SEVERITY_LEVELS, case_sensitive=False),
    help="Exit non-zero when any issue is at or above this severity.",
)
@click.option(
    "--max-hops",
    type=click.IntRange(min=1),
    default=_default_max_hops,
    show_default=str(DEFAULT_MAX_HOPS),
    help="Upper bound on dependency chain length (env: LICENSE_INSPECTOR_MAX_HOPS).",
)
@click.option(
    "--github-check-output",
    type=click.Path(dir_okay=False, writable=True, path_type=str),
    help="Write a GitHub Check-style JSON summary of the policy gate.",
)
@click.option(
    "--baseline-report",
    type=click.Path(exists=True, dir_okay=False, path_type=str),
    help="Previous JSON report to diff against.",
)
def scan(
    project_dir: str,
    package_json: Optional[str],
    package_lock: Optional[str],
    node_modules: Optional[str],
    fmt: str,
    output: str,
    policy: Optional[str],
    severity_preset: Optional[str],
    fail_on: Optional[str],
    max_hops: int,
    github_check_output: Optional[str],
    baseline_report: Optional[str],
) -> None:
    """Scan installed packages and write the license report."""

    try:
        policy_data = _resolve_policy(policy, severity_preset, fail_on)
    except PolicyError as exc:
        click.echo(str(exc), err=True)
        raise SystemExit(2)

    root = Path(project_dir)
    try:
        report = scan_project(
            root,
            node_modules=Path(node_modules) if node_modules else None,
            package_json=Path(package_json) if package_json else None,
            package_lock=Path(package_lock) if package_lock else None,
            labels=policy_data.severity_labels,
            positive_list=policy_data.positive_list,
            max_hops=max_hops,
        )
    except ProjectInputError as exc:
        click.echo(f"Unable to scan {root}: {exc}", err=True)
        raise SystemExit(2)

    if output == "-":
        click.echo(write_report(report, fmt, None))
    else:
        write_report(report, fmt, Path(output))
        logger.info("Wrote %s report to %s", fmt, output)

    counts = ", ".join(f"{label}={count}" for label, count in report.severity_counts.items())
    click.echo(f"Scanned {len(report.issues)} packages: {counts}", err=True)

    if baseline_report:
        try:
            base_data = json.loads(Path(baseline_report).read_text(encoding="utf-8"))
            target_data = {"issues": [issue.as_dict() for issue in report.issues]}
            _echo_diff(diff_reports(base_data, target_data), err=True)
        except (OSError, ValueError) as exc:
            click.echo(f"Unable to diff with baseline report: {exc}", err=True)

    evaluation = evaluate_policy(report, policy_data)
    for warning in evaluation.warnings:
        click.echo(f"warning: {warning}", err=True)
    if github_check_output:
        write_github_check(Path(github_check_output), evaluation, report)
    if not evaluation.passed:
        for failure in evaluation.failures:
            click.echo(f"policy: {failure}", err=True)
        raise SystemExit(1)


def _echo_diff(summary: dict, err: bool = False) -> None:
    def _join(values: list[str]) -> str:
        return ", ".join(values) if values else "none"

    click.echo("License report changes:", err=err)
    click.echo(f"  Added: {_join(summary['added_packages'])}", err=err)
    click.echo(f"  Removed: {_join(summary['removed_packages'])}", err=err)
    click.echo(f"  Changed: {_join(summary['changed_packages'])}", err=err)


@main.command()
@click.argument("base", type=click.Path(exists=True, dir_okay=False, path_type=str))
@click.argument("target", type=click.Path(exists=True, dir_okay=False, path_type=str))
def diff(base: str, target: str) -> None:
    """Compare two JSON license reports and surface drift."""

    try:
        base_data = json.loads(Path(base).read_text(encoding="utf-8"))
        target_data = json.loads(Path(target).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        click.echo(f"Unable to read reports: {exc}", err=True)
        raise SystemExit(2)
    if not isinstance(base_data, dict) or not isinstance(target_data, dict):
        click.echo("Unable to read reports: expected a JSON object with an 'issues' list", err=True)
        raise SystemExit(2)

    _echo_diff(diff_reports(base_data, target_data))


if __name__ == "__main__":
    main()
