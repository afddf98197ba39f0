"""Reconstruct which packages pulled a dependency into the tree.

The lock file records, per install location, the names each installed package
requires. Walking that relation backwards from a package until a direct
project dependency is reached gives the chain a reviewer needs to decide
where a license problem comes from.

Only one path is reported. When a package is required by several parents the
first one in lock file order wins, which keeps the output stable between runs
on the same lock file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional

from .types_risk import DEFAULT_MAX_HOPS

logger = logging.getLogger(__name__)

NESTING_MARKER = "node_modules/"


def bare_package_name(install_path: str) -> str:
    """``node_modules/a/node_modules/@s/b`` -> ``@s/b``."""

    return install_path.split(NESTING_MARKER)[-1]


@dataclass(frozen=True)
class RootDeclaration:
    """Names the project depends on directly (runtime or development)."""

    names: frozenset[str] = frozenset()

    @classmethod
    def from_manifest(cls, manifest: Mapping) -> "RootDeclaration":
        names: set[str] = set()
        for key in ("dependencies", "devDependencies"):
            block = manifest.get(key) or {}
            names.update(block)
        return cls(frozenset(names))

    def __contains__(self, name: object) -> bool:
        return name in self.names

    def __len__(self) -> int:
        return len(self.names)


@dataclass
class DependencyGraph:
    """Install path -> names required by the package installed there.

    ``optional`` holds names listed only under ``optionalDependencies``. They
    are consulted for a parent only when no entry lists the child under
    ``dependencies``, so they never change the first-match choice.
    """

    requirements: dict[str, tuple[str, ...]] = field(default_factory=dict)
    optional: dict[str, tuple[str, ...]] = field(default_factory=dict)
    _parents: dict[str, list[str]] = field(default_factory=dict, init=False, repr=False)
    _optional_parents: dict[str, list[str]] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        # Child -> parent install paths, in declaration order.
        for table, index in ((self.requirements, self._parents), (self.optional, self._optional_parents)):
            for install_path, required in table.items():
                if not bare_package_name(install_path):
                    continue
                for name in required:
                    index.setdefault(name, []).append(install_path)

    @classmethod
    def from_packages(cls, packages: Mapping[str, Mapping]) -> "DependencyGraph":
        requirements: dict[str, tuple[str, ...]] = {}
        optional: dict[str, tuple[str, ...]] = {}
        for install_path, record in packages.items():
            if not isinstance(record, Mapping):
                continue
            required = record.get("dependencies")
            names = tuple(required) if isinstance(required, Mapping) else ()
            requirements[install_path] = names
            extra = record.get("optionalDependencies")
            if isinstance(extra, Mapping):
                optional_names = tuple(name for name in extra if name not in names)
                if optional_names:
                    optional[install_path] = optional_names
        return cls(requirements, optional)

    def __len__(self) -> int:
        return len(self.requirements)

    def parents_of(self, name: str) -> list[str]:
        return list(self._parents.get(name) or self._optional_parents.get(name, ()))

    def first_parent(self, name: str) -> Optional[str]:
        candidates = self._parents.get(name) or self._optional_parents.get(name)
        if not candidates:
            return None
        return bare_package_name(candidates[0])


class AncestryResolver:
    """Resolve root-first dependency chains with memoised path compression.

    ``_cache[name]`` holds the chain from ``name`` up to the top of its
    resolved path, ``name`` first. Every chain that gets materialised writes
    each of its suffixes back, so any node already seen resolves without
    touching the graph again.
    """

    def __init__(
        self,
        graph: DependencyGraph,
        roots: RootDeclaration | Iterable[str],
        max_hops: int = DEFAULT_MAX_HOPS,
    ) -> None:
        self.graph = graph
        self.roots = roots if isinstance(roots, RootDeclaration) else RootDeclaration(frozenset(roots))
        self.max_hops = max_hops
        self.lookups = 0
        self._cache: dict[str, list[str]] = {}

    def _remember(self, chain: list[str]) -> None:
        for index, name in enumerate(chain):
            self._cache[name] = chain[index:]

    def resolve_chain(self, package_name: Optional[str]) -> list[str]:
        if not package_name:
            return []

        chain = [package_name]
        current: Optional[str] = package_name
        hop = 1
        while current is not None and current not in self.roots and hop < self.max_hops:
            cached = self._cache.get(current)
            if cached is not None:
                combined = chain + cached[1:]
                self._remember(combined)
                return combined[::-1]

            self.lookups += 1
            current = self.graph.first_parent(current)
            if current is not None:
                chain.append(current)
            hop += 1

        if current is None:
            logger.debug("No parent found above %s; chain for %s is orphaned", chain[-1], package_name)
        elif current not in self.roots:
            logger.debug("Stopped resolving %s after %d hops", package_name, self.max_hops)

        self._remember(chain)
        return chain[::-1]

    def cache_snapshot(self) -> dict[str, tuple[str, ...]]:
        return {name: tuple(chain) for name, chain in self._cache.items()}
