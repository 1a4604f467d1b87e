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

"""Resolved package records and their loam tags.

A crate opts into loam by setting boolean flags in its manifest::

    [package.metadata.loam]
    contract = true     # deployable unit, built in dependency order
    riff = true         # pluggable component, compiled into its users

Crates that never mention loam are simply untagged; no shape of
``package.metadata`` is an error.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from loambuild.config import TAG_NAMESPACE
from loambuild.errors import E, LoamBuildError


class DepKind(str, Enum):
    """Loam tag categories."""

    RIFF = 'riff'
    CONTRACT = 'contract'

    def __str__(self) -> str:
        """Return the tag key as written in ``Cargo.toml``."""
        return self.value


@dataclass(frozen=True)
class Package:
    """One package of a cargo resolution.

    Equality and hashing use only :attr:`manifest_path`, so the same crate
    reported twice compares equal regardless of its other fields.

    Attributes:
        id: Cargo package id, unique within one ``cargo metadata`` run.
        name: Crate name.
        version: Resolved version string.
        manifest_path: Path to the crate's ``Cargo.toml``.
        metadata: The crate's ``package.metadata`` table, if any.
    """

    id: str = field(compare=False)
    name: str = field(compare=False)
    version: str = field(compare=False)
    manifest_path: Path
    metadata: Any = field(default=None, compare=False, repr=False)  # noqa: ANN401 - freeform JSON

    def has_tag(self, kind: DepKind | str) -> bool:
        """Return whether ``package.metadata.loam.<kind>`` is ``true``.

        Anything other than a JSON boolean ``true`` at that location,
        including a missing table, counts as untagged.
        """
        if not isinstance(self.metadata, Mapping):
            return False
        namespace = self.metadata.get(TAG_NAMESPACE)
        if not isinstance(namespace, Mapping):
            return False
        return namespace.get(str(kind)) is True

    is_dep = has_tag

    @property
    def manifest_dir(self) -> Path:
        """Directory containing the manifest."""
        return self.manifest_path.parent


@dataclass(frozen=True)
class ResolvedGraph:
    """The part of ``cargo metadata`` output loambuild needs.

    Attributes:
        packages: Every package known to the resolution.
        root_id: Id of the resolve root; ``None`` for a virtual manifest.
        workspace_members: Ids of the workspace member packages.
    """

    packages: tuple[Package, ...] = ()
    root_id: str | None = None
    workspace_members: tuple[str, ...] = ()

    def root_package(self, manifest_path: Path) -> Package | None:
        """Return the package the query was rooted at.

        Without a resolve root, fall back to the package whose manifest is
        ``manifest_path``. Both sides are resolved first, since cargo
        reports absolute paths.
        """
        if self.root_id is not None:
            return next((p for p in self.packages if p.id == self.root_id), None)
        wanted = manifest_path.resolve()
        return next((p for p in self.packages if p.manifest_path.resolve() == wanted), None)

    def members(self) -> list[Package]:
        """Workspace member packages, in metadata order."""
        by_id = {p.id: p for p in self.packages}
        return [by_id[pid] for pid in self.workspace_members if pid in by_id]


def _package_from_json(raw: Mapping[str, Any]) -> Package:
    return Package(
        id=str(raw['id']),
        name=str(raw['name']),
        version=str(raw['version']),
        manifest_path=Path(raw['manifest_path']),
        metadata=raw.get('metadata'),
    )


def parse_metadata(data: Mapping[str, Any]) -> ResolvedGraph:
    """Build a :class:`ResolvedGraph` from ``cargo metadata`` JSON.

    Args:
        data: The decoded ``cargo metadata --format-version 1`` document.

    Raises:
        LoamBuildError: ``LB-METADATA`` if required fields are missing.
    """
    try:
        packages = tuple(_package_from_json(p) for p in data['packages'])
        resolve = data.get('resolve') or {}
        root_id = resolve.get('root')
        members = tuple(str(m) for m in data.get('workspace_members') or ())
    except (KeyError, TypeError, AttributeError) as exc:
        raise LoamBuildError(
            code=E.METADATA,
            message=f'Unexpected cargo metadata format: {exc!r}',
            hint='Is the installed cargo recent enough to support --format-version 1?',
        ) from exc

    return ResolvedGraph(
        packages=packages,
        root_id=str(root_id) if root_id is not None else None,
        workspace_members=members,
    )


__all__ = [
    'DepKind',
    'Package',
    'ResolvedGraph',
    'parse_metadata',
]
