from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping

from .ancestry import DependencyGraph, RootDeclaration

logger = logging.getLogger(__name__)


class ProjectInputError(RuntimeError):
    """The project manifest, lock file or install root cannot be used."""


def _read_json_object(path: Path, what: str) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ProjectInputError(f"{what} not found: {path}") from exc
    except (OSError, ValueError) as exc:
        raise ProjectInputError(f"Unable to read {what} {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ProjectInputError(f"{what} {path} must contain a JSON object")
    return data


def load_root_declaration(path: Path) -> RootDeclaration:
    data = _read_json_object(path, "Project manifest")
    for key in ("dependencies", "devDependencies"):
        block = data.get(key)
        if block is not None and not isinstance(block, dict):
            raise ProjectInputError(f"'{key}' in {path} must be an object")
    roots = RootDeclaration.from_manifest(data)
    logger.debug("Loaded %d root dependencies from %s", len(roots), path)
    return roots


def _flatten_v1(dependencies: Mapping[str, Any], prefix: str, packages: dict[str, dict]) -> None:
    for name, details in dependencies.items():
        if not isinstance(details, dict):
            continue
        install_path = f"{prefix}node_modules/{name}"
        packages[install_path] = {"dependencies": details.get("requires") or {}}
        nested = details.get("dependencies")
        if isinstance(nested, dict):
            _flatten_v1(nested, f"{install_path}/", packages)


def lock_packages(data: Mapping[str, Any]) -> dict[str, dict]:
    """Return the lock file's install-path table, converting lockfileVersion 1."""

    packages = data.get("packages")
    if packages is not None:
        if not isinstance(packages, dict):
            raise ProjectInputError("'packages' in lock file must be an object")
        return packages

    flattened: dict[str, dict] = {}
    legacy = data.get("dependencies")
    if isinstance(legacy, dict):
        _flatten_v1(legacy, "", flattened)
    elif legacy is not None:
        raise ProjectInputError("'dependencies' in lock file must be an object")
    return flattened


def load_dependency_graph(path: Path) -> DependencyGraph:
    data = _read_json_object(path, "Lock file")
    graph = DependencyGraph.from_packages(lock_packages(data))
    logger.debug(
        "Loaded dependency graph with %d entries from %s (lockfileVersion %s)",
        len(graph),
        path,
        data.get("lockfileVersion", "unknown"),
    )
    return graph
