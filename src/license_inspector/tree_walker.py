from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

from .ancestry import AncestryResolver
from .license_extractor import extract_license, find_license_line
from .project_loader import ProjectInputError, load_dependency_graph, load_root_declaration
from .severity import SeverityClassifier
from .spdx import LicenseOracle
from .types import DEFAULT_MAX_HOPS, POSITIVE_LIST, Issue, Report, SeverityLabels

logger = logging.getLogger(__name__)

TYPES_SCOPE = "@types"


def _list_dir(path: Path) -> list[Path]:
    return sorted(path.iterdir(), key=lambda entry: entry.name)


def _is_package_dir(entry: Path) -> bool:
    if entry.name.startswith("."):
        return False
    # lstat semantics: linked packages are not walked
    return entry.is_dir() and not entry.is_symlink()


def iter_package_dirs(node_modules: Path) -> Iterator[str]:
    """Yield installed package names (``name`` or ``@scope/name``)."""

    try:
        entries = _list_dir(node_modules)
    except OSError as exc:
        raise ProjectInputError(f"Unable to read installed packages in {node_modules}: {exc}") from exc

    for entry in entries:
        if not _is_package_dir(entry):
            continue
        if not entry.name.startswith("@"):
            yield entry.name
            continue
        if entry.name == TYPES_SCOPE:
            continue
        try:
            scoped = _list_dir(entry)
        except OSError as exc:
            logger.warning("Skipping scope %s: %s", entry.name, exc)
            continue
        for child in scoped:
            if _is_package_dir(child):
                yield f"{entry.name}/{child.name}"


def build_issue(
    node_modules: Path,
    package_name: str,
    classifier: SeverityClassifier,
    resolver: AncestryResolver,
) -> Optional[Issue]:
    manifest_path = node_modules / package_name / "package.json"
    try:
        raw = manifest_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug("No package.json for %s", package_name)
        return None
    except (OSError, ValueError) as exc:
        logger.warning("Skipping %s: unable to read %s: %s", package_name, manifest_path, exc)
        return None

    try:
        manifest = json.loads(raw)
    except ValueError as exc:
        logger.warning("Skipping %s: malformed %s: %s", package_name, manifest_path, exc)
        return None
    if not isinstance(manifest, dict):
        logger.warning("Skipping %s: %s is not a JSON object", package_name, manifest_path)
        return None

    license_type = extract_license(manifest)
    return Issue(
        package_name=package_name,
        license_type=license_type,
        file_name=manifest_path.as_posix(),
        severity=classifier.classify(license_type),
        chain=tuple(resolver.resolve_chain(package_name)),
        line_start=find_license_line(raw),
    )


def scan_installed_packages(
    node_modules: Path,
    classifier: SeverityClassifier,
    resolver: AncestryResolver,
) -> List[Issue]:
    issues: List[Issue] = []
    for package_name in iter_package_dirs(node_modules):
        issue = build_issue(node_modules, package_name, classifier, resolver)
        if issue:
            issues.append(issue)
    logger.info("Collected %d issues from %s", len(issues), node_modules)
    return issues


def scan_project(
    project_dir: Path,
    node_modules: Path | None = None,
    package_json: Path | None = None,
    package_lock: Path | None = None,
    labels: SeverityLabels | None = None,
    positive_list: Iterable[str] = POSITIVE_LIST,
    max_hops: int = DEFAULT_MAX_HOPS,
    oracle: LicenseOracle | None = None,
) -> Report:
    """Load the project inputs, walk ``node_modules`` and build a report."""

    roots = load_root_declaration(package_json or project_dir / "package.json")
    graph = load_dependency_graph(package_lock or project_dir / "package-lock.json")
    resolver = AncestryResolver(graph, roots, max_hops=max_hops)
    labels = labels or SeverityLabels()
    classifier = SeverityClassifier(oracle=oracle, labels=labels, positive_list=positive_list)

    issues = scan_installed_packages(node_modules or project_dir / "node_modules", classifier, resolver)
    return Report(issues=issues, generated_at=datetime.now(timezone.utc), severity_labels=labels)
