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

"""Tests for loambuild.graph module."""

from __future__ import annotations

import pytest
from loambuild.errors import E, LoamBuildError
from loambuild.graph import (
    DependencyGraph,
    build_contract_graph,
    detect_cycles,
    get_workspace,
    topo_sort,
)
from loambuild.package import Package

from tests._fakes import FakeResolver, make_pkg


def _contract(name: str) -> Package:
    return make_pkg(name, tags=['contract'])


def _names(packages: list[Package]) -> list[str]:
    return [p.name for p in packages]


class TestDependencyGraph:
    """Node and edge bookkeeping."""

    def test_add_dependency(self) -> None:
        """Edges are stored in both directions."""
        a, b = _contract('a'), _contract('b')
        graph = DependencyGraph()
        graph.add_dependency(b, a)
        assert graph.edges[a.id] == [b.id]
        assert graph.reverse_edges[b.id] == [a.id]
        assert graph.names == ['a', 'b']

    def test_duplicate_edge_ignored(self) -> None:
        """Adding the same edge twice keeps one edge."""
        a, b = _contract('a'), _contract('b')
        graph = DependencyGraph()
        graph.add_dependency(b, a)
        graph.add_dependency(b, a)
        assert graph.edges[a.id] == [b.id]

    def test_add_node_idempotent(self) -> None:
        """Re-adding a node keeps its edges."""
        a, b = _contract('a'), _contract('b')
        graph = DependencyGraph()
        graph.add_dependency(b, a)
        graph.add_node(a)
        assert graph.edges[a.id] == [b.id]
        assert len(graph) == 2


class TestBuildContractGraph:
    """build_contract_graph queries each package's own manifest."""

    def test_isolated_nodes(self) -> None:
        """Packages without contract deps are still nodes."""
        a, b = _contract('a'), _contract('b')
        resolver = FakeResolver.from_workspace([a, b])
        graph = build_contract_graph([a, b], provider=resolver)
        assert graph.names == ['a', 'b']
        assert all(not deps for deps in graph.edges.values())

    def test_queries_each_manifest(self) -> None:
        """One metadata query per input package."""
        a, b = _contract('a'), _contract('b')
        resolver = FakeResolver.from_workspace([a, b], deps={'a': ['b']})
        build_contract_graph([a, b], provider=resolver)
        assert resolver.metadata_calls == [a.manifest_path, b.manifest_path]


class TestTopoSort:
    """Level-grouped Kahn sort."""

    def test_levels(self) -> None:
        """Diamond graph produces three levels."""
        a, b, c, d = (_contract(n) for n in 'abcd')
        graph = DependencyGraph()
        graph.add_dependency(d, b)
        graph.add_dependency(d, c)
        graph.add_dependency(b, a)
        graph.add_dependency(c, a)
        levels = [_names(level) for level in topo_sort(graph)]
        assert levels == [['d'], ['b', 'c'], ['a']]

    def test_empty(self) -> None:
        """An empty graph has no levels."""
        assert topo_sort(DependencyGraph()) == []

    def test_cycle_raises(self) -> None:
        """Unpoppable nodes are reported, not dropped."""
        a, b, ok = _contract('a'), _contract('b'), _contract('ok')
        graph = DependencyGraph()
        graph.add_node(ok)
        graph.add_dependency(a, b)
        graph.add_dependency(b, a)
        with pytest.raises(LoamBuildError) as exc_info:
            topo_sort(graph)
        assert exc_info.value.code == E.GRAPH_CYCLE_DETECTED
        assert 'LB-GRAPH-CYCLE-DETECTED' in str(exc_info.value)


class TestDetectCycles:
    """DFS cycle detection."""

    def test_acyclic(self) -> None:
        """No cycles in a chain."""
        a, b = _contract('a'), _contract('b')
        graph = DependencyGraph()
        graph.add_dependency(a, b)
        assert detect_cycles(graph) == []

    def test_triangle(self) -> None:
        """a → b → c → a is found; bystanders are not in it."""
        a, b, c, ok = _contract('a'), _contract('b'), _contract('c'), _contract('ok')
        graph = DependencyGraph()
        graph.add_node(ok)
        graph.add_dependency(b, a)
        graph.add_dependency(c, b)
        graph.add_dependency(a, c)
        cycles = detect_cycles(graph)
        assert cycles, 'Expected a cycle'
        names = {n for cycle in cycles for n in cycle}
        assert names == {'a', 'b', 'c'}
        assert cycles[0][0] == cycles[0][-1]


class TestGetWorkspace:
    """Workspace ordering end to end against fixture resolutions."""

    def test_scenario(self) -> None:
        """[a, b] with a depending on b orders as [b, a]."""
        a, b = _contract('a'), _contract('b')
        resolver = FakeResolver.from_workspace([a, b], deps={'a': ['b']})
        assert get_workspace([a, b], provider=resolver) == [b, a]

    def test_dependencies_first(self) -> None:
        """Every dependency precedes its dependents."""
        names = ['registry', 'token', 'exchange', 'oracle', 'vault']
        pkgs = {n: _contract(n) for n in names}
        deps = {
            'token': ['registry'],
            'exchange': ['token', 'oracle'],
            'vault': ['exchange', 'registry'],
        }
        resolver = FakeResolver.from_workspace(list(pkgs.values()), deps=deps)
        order = _names(get_workspace([pkgs[n] for n in reversed(names)], provider=resolver))
        assert sorted(order) == sorted(names)
        for dependent, direct in deps.items():
            for dep in direct:
                assert order.index(dep) < order.index(dependent), f'{dep} must precede {dependent} in {order}'

    def test_returns_input_records(self) -> None:
        """Output elements are the packages passed in."""
        a, b = _contract('a'), _contract('b')
        resolver = FakeResolver.from_workspace([a, b], deps={'a': ['b']})
        out = get_workspace([a, b], provider=resolver)
        assert out[0] is b
        assert out[1] is a

    def test_drops_dependency_only_nodes(self) -> None:
        """Contracts outside the input still constrain order but are not returned."""
        a, mid, c = _contract('a'), _contract('mid'), _contract('c')
        resolver = FakeResolver.from_workspace([a, mid, c], deps={'a': ['mid'], 'mid': ['c']})
        assert get_workspace([a, c], provider=resolver) == [c, a]

    def test_plain_crates_between_contracts(self) -> None:
        """A contract reached through a plain crate is still a dependency."""
        a, glue, b = _contract('a'), make_pkg('glue'), _contract('b')
        resolver = FakeResolver.from_workspace([a, glue, b], deps={'a': ['glue'], 'glue': ['b']})
        assert get_workspace([a, b], provider=resolver) == [b, a]

    def test_independent_packages(self) -> None:
        """Independent packages are all returned."""
        pkgs = [_contract(n) for n in ('x', 'y', 'z')]
        resolver = FakeResolver.from_workspace(pkgs)
        assert set(get_workspace(pkgs, provider=resolver)) == set(pkgs)

    def test_empty(self) -> None:
        """No packages, no order."""
        assert get_workspace([], provider=FakeResolver()) == []

    def test_cycle(self) -> None:
        """Mutually dependent contracts are an error."""
        a, b = _contract('a'), _contract('b')
        resolver = FakeResolver.from_workspace([a, b], deps={'a': ['b'], 'b': ['a']})
        with pytest.raises(LoamBuildError) as exc_info:
            get_workspace([a, b], provider=resolver)
        assert exc_info.value.code == E.GRAPH_CYCLE_DETECTED
