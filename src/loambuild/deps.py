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

"""Transitive dependency enumeration and loam tag filtering.

``cargo metadata`` knows every package of a resolution but not which of
them the root really uses through normal edges; ``cargo tree`` knows the
latter but only prints text. :func:`get_deps` joins the two::

    cargo metadata ──→ {"utilv2.0.0": Package(util), ...}
                                   ▲
    cargo tree     ──→ "util v2.0.0 (/work/util)"
                        └──┬──┘ └─┬──┘
                        tokens[0] + tokens[1]

Lines that do not resolve are skipped. ``cargo tree`` output is not a
stable interface and may carry headers, warnings or crates that the
metadata query did not report.

Usage::

    from loambuild.deps import get_contract_deps, get_riff_deps

    for src, out in get_riff_deps(Path('contracts/app/Cargo.toml')):
        print(src, '→', out)
"""

from __future__ import annotations

from pathlib import Path

from loambuild.backends import CargoResolver, ResolutionProvider
from loambuild.config import out_dir, source_entry
from loambuild.errors import E, LoamBuildError
from loambuild.logging import get_logger
from loambuild.package import DepKind, Package

logger = get_logger(__name__)


def correlation_key(name: str, version: str) -> str:
    """Return the key matching a package to its ``cargo tree`` line.

    ``cargo tree`` prints ``name v1.2.3``; joining the two tokens gives
    ``namev1.2.3``, which is what this returns for ``('name', '1.2.3')``.
    """
    return f'{name}v{version}'


def _tree_line_key(line: str) -> str | None:
    tokens = line.split()
    if len(tokens) < 2:
        return None
    return tokens[0] + tokens[1]


def _manifest_parent(manifest_path: Path) -> Path:
    parent = manifest_path.parent
    if parent == manifest_path:
        raise LoamBuildError(
            code=E.PARENT_NOT_FOUND,
            message=f'Failed to get parent of {manifest_path}',
        )
    return parent


def get_deps(manifest_path: Path, *, provider: ResolutionProvider | None = None) -> list[Package]:
    """Return the normal-edge dependency closure of a crate, root included.

    The root package is always the last element and appears exactly once.
    Every other package appears once, in first-seen ``cargo tree`` order.

    Args:
        manifest_path: Path to the root crate's ``Cargo.toml``.
        provider: Where metadata and trees come from; defaults to
            :class:`~loambuild.backends.cargo.CargoResolver`.

    Raises:
        LoamBuildError: ``LB-METADATA``, ``LB-ROOT-NOT-FOUND``,
            ``LB-PARENT-NOT-FOUND`` or ``LB-CARGO-TREE``.
    """
    provider = provider or CargoResolver()
    graph = provider.query_metadata(manifest_path)

    root = graph.root_package(manifest_path)
    if root is None:
        raise LoamBuildError(
            code=E.ROOT_NOT_FOUND,
            message=f'Failed to find root package with manifest_path {manifest_path}',
        )

    packages = {correlation_key(p.name, p.version): p for p in graph.packages}

    parent = _manifest_parent(manifest_path)
    lines = provider.query_raw_tree(parent)

    res: list[Package] = []
    seen: set[Package] = set()
    skipped = 0
    for line in lines:
        key = _tree_line_key(line)
        pkg = packages.get(key) if key is not None else None
        if pkg is None:
            if line.strip():
                skipped += 1
                logger.debug('tree_line_unresolved', line=line)
            continue
        if pkg == root or pkg in seen:
            continue
        seen.add(pkg)
        res.append(pkg)
    res.append(root)

    logger.debug(
        'resolved_deps',
        root=root.name,
        count=len(res),
        skipped_lines=skipped,
    )
    return res


def get_loam_deps(
    manifest_path: Path,
    kind: DepKind,
    *,
    provider: ResolutionProvider | None = None,
) -> list[tuple[Path, Path]]:
    """Return ``(source_entry, out_dir)`` pairs for crates tagged ``kind``.

    The root crate is always included, tagged or not. Each crate ``name``
    at version ``version`` maps to::

        (<crate dir>/src/lib.rs, <name><version>/loam/<name with _>)

    The result has set semantics; its order is unspecified.

    Raises:
        LoamBuildError: Anything :func:`get_deps` raises, or
            ``LB-PARENT-NOT-FOUND`` for a crate manifest without a parent.
    """
    deps = get_deps(manifest_path, provider=provider)
    root = deps[-1]
    pairs: set[tuple[Path, Path]] = set()
    for p in deps:
        if not (p.has_tag(kind) or p == root):
            continue
        target = Path(f'{p.name}{p.version}')
        pairs.add((source_entry(_manifest_parent(p.manifest_path)), out_dir(target, p.name)))
    return list(pairs)


def get_riff_deps(manifest_path: Path, *, provider: ResolutionProvider | None = None) -> list[tuple[Path, Path]]:
    """Riff (pluggable component) pairs of a crate; see :func:`get_loam_deps`."""
    return get_loam_deps(manifest_path, DepKind.RIFF, provider=provider)


def get_contract_deps(manifest_path: Path, *, provider: ResolutionProvider | None = None) -> list[Package]:
    """Return the contracts a crate depends on, excluding the crate itself."""
    deps = get_deps(manifest_path, provider=provider)
    root = deps[-1]
    return [p for p in deps if p.has_tag(DepKind.CONTRACT) and p != root]


def get_workspace_contracts(
    manifest_path: Path,
    *,
    provider: ResolutionProvider | None = None,
) -> list[Package]:
    """Return the workspace members of ``manifest_path`` tagged as contracts.

    Works for virtual workspace manifests, which have no root package.
    """
    provider = provider or CargoResolver()
    graph = provider.query_metadata(manifest_path)
    contracts = [p for p in graph.members() if p.has_tag(DepKind.CONTRACT)]
    logger.info('workspace_contracts', count=len(contracts), contracts=[p.name for p in contracts])
    return contracts


__all__ = [
    'correlation_key',
    'get_contract_deps',
    'get_deps',
    'get_loam_deps',
    'get_riff_deps',
    'get_workspace_contracts',
]
