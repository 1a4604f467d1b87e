# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""Contract dependency graph and build ordering.

Contracts (crates tagged ``contract = true``) may depend on other
contracts; a contract has to be built after everything it calls into.

Architecture — Edge Direction::

    Forward edges (``edges``): dependent → dependencies (who needs what)
    Reverse edges (``reverse_edges``): dependency → dependents (who uses me)

    token ──→ registry ←── exchange

    edges["token"] = ["registry"]
    reverse_edges["registry"] = ["exchange", "token"]

Nodes are keyed by cargo package id. A contract that only appears as the
dependency of an input package is still a node, so ordering across it is
respected, but :func:`get_workspace` leaves it out of the result.

Data Flow::

    get_workspace(packages)
      │
      ├─ build_contract_graph()   get_contract_deps() per package
      ├─ topo_sort()              Kahn's algorithm, grouped by level
      └─ flatten, keep input packages only

Usage::

    from loambuild.deps import get_workspace_contracts
    from loambuild.graph import get_workspace

    contracts = get_workspace_contracts(Path('Cargo.toml'))
    for pkg in get_workspace(contracts):
        print(pkg.name)
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

from loambuild.backends import CargoResolver, ResolutionProvider
from loambuild.deps import get_contract_deps
from loambuild.errors import E, LoamBuildError
from loambuild.logging import get_logger
from loambuild.package import Package

logger = get_logger(__name__)


@dataclass
class DependencyGraph:
    """A directed graph of contract dependencies.

    Attributes:
        packages: Mapping from package id to :class:`Package`.
        edges: Forward adjacency list (dependent → list of dependencies).
        reverse_edges: Reverse adjacency list (dependency → list of dependents).
    """

    packages: dict[str, Package] = field(default_factory=dict)
    edges: dict[str, list[str]] = field(default_factory=dict)
    reverse_edges: dict[str, list[str]] = field(default_factory=dict)

    def add_node(self, pkg: Package) -> None:
        """Register ``pkg`` as a node; a no-op if already present."""
        if pkg.id in self.packages:
            return
        self.packages[pkg.id] = pkg
        self.edges[pkg.id] = []
        self.reverse_edges[pkg.id] = []

    def add_dependency(self, dependency: Package, dependent: Package) -> None:
        """Add the edge ``dependency → dependent``, registering both nodes."""
        self.add_node(dependency)
        self.add_node(dependent)
        if dependency.id in self.edges[dependent.id]:
            return
        self.edges[dependent.id].append(dependency.id)
        self.reverse_edges[dependency.id].append(dependent.id)

    def sort_key(self, pkg_id: str) -> tuple[str, str]:
        """Order nodes by package name, then id."""
        return (self.packages[pkg_id].name, pkg_id)

    @property
    def names(self) -> list[str]:
        """Sorted list of all package names in the graph."""
        return sorted(p.name for p in self.packages.values())

    def __len__(self) -> int:
        """Return the number of nodes in the graph."""
        return len(self.packages)


def build_contract_graph(
    packages: list[Package],
    *,
    provider: ResolutionProvider | None = None,
) -> DependencyGraph:
    """Build the contract graph for ``packages``.

    Each package's contract dependencies are looked up from its own
    manifest with :func:`~loambuild.deps.get_contract_deps`.

    Raises:
        LoamBuildError: Anything :func:`~loambuild.deps.get_deps` raises.
    """
    provider = provider or CargoResolver()
    graph = DependencyGraph()
    for pkg in packages:
        for dep in get_contract_deps(pkg.manifest_path, provider=provider):
            graph.add_dependency(dep, pkg)
        graph.add_node(pkg)

    logger.debug(
        'built_contract_graph',
        packages=len(graph),
        edges=sum(len(deps) for deps in graph.edges.values()),
    )
    return graph


def detect_cycles(graph: DependencyGraph) -> list[list[str]]:
    """Detect cycles in the graph using DFS.

    Returns:
        Each cycle as a list of package names that starts and ends with
        the same name. Empty if the graph is acyclic.
    """
    _white, _gray, _black = 0, 1, 2
    color: dict[str, int] = {pid: _white for pid in graph.packages}
    parent: dict[str, str | None] = {pid: None for pid in graph.packages}
    cycles: list[list[str]] = []

    def _dfs(node: str) -> None:
        color[node] = _gray
        for neighbor in graph.edges.get(node, []):
            if color[neighbor] == _gray:
                # Back edge; walk parents to reconstruct the loop.
                cycle = [neighbor]
                current = node
                while current != neighbor:
                    cycle.append(current)
                    p = parent.get(current)
                    if p is None:
                        break
                    current = p
                cycle.append(neighbor)
                cycle.reverse()
                cycles.append([graph.packages[pid].name for pid in cycle])
            elif color[neighbor] == _white:
                parent[neighbor] = node
                _dfs(neighbor)
        color[node] = _black

    for pid in sorted(graph.packages, key=graph.sort_key):
        if color[pid] == _white:
            _dfs(pid)

    if cycles:
        logger.warning('cycles_detected', count=len(cycles))
    return cycles


def topo_sort(graph: DependencyGraph) -> list[list[Package]]:
    """Topological sort with level grouping (Kahn's algorithm).

    Level 0 holds contracts with no contract dependencies, level 1 those
    depending only on level 0, and so on. Contracts in one level can be
    built in parallel. Each level is sorted by name.

    Raises:
        LoamBuildError: ``LB-GRAPH-CYCLE-DETECTED`` if some nodes can never
            become ready.
    """
    in_degree = {pid: len(graph.edges[pid]) for pid in graph.packages}
    queue: deque[str] = deque(pid for pid in graph.packages if in_degree[pid] == 0)

    levels: list[list[Package]] = []
    processed = 0
    while queue:
        level_ids = sorted(queue, key=graph.sort_key)
        queue.clear()
        levels.append([graph.packages[pid] for pid in level_ids])
        processed += len(level_ids)

        for pid in level_ids:
            for dependent in graph.reverse_edges.get(pid, []):
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    queue.append(dependent)

    if processed != len(graph.packages):
        cycles = detect_cycles(graph)
        cycle_strs = [' → '.join(c) for c in cycles]
        raise LoamBuildError(
            code=E.GRAPH_CYCLE_DETECTED,
            message=f'Circular contract dependencies detected: {cycle_strs}',
            hint='Remove the dependency loop between these contracts.',
        )

    logger.debug('topo_sort_complete', levels=len(levels), packages=processed)
    return levels


def get_workspace(
    packages: list[Package],
    *,
    provider: ResolutionProvider | None = None,
) -> list[Package]:
    """Return ``packages`` in contract build order.

    Every package comes after the contracts it depends on, directly or
    through contracts that are not in ``packages``. Relative order of
    independent packages is not part of the contract.

    Raises:
        LoamBuildError: ``LB-GRAPH-CYCLE-DETECTED`` on a dependency loop,
            or anything :func:`~loambuild.deps.get_deps` raises.
    """
    graph = build_contract_graph(packages, provider=provider)
    wanted = {p.id: p for p in packages}
    res: list[Package] = []
    for level in topo_sort(graph):
        res.extend(wanted[p.id] for p in level if p.id in wanted)
    logger.info('workspace_ordered', order=[p.name for p in res])
    return res


__all__ = [
    'DependencyGraph',
    'build_contract_graph',
    'detect_cycles',
    'get_workspace',
    'topo_sort',
]
