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

"""Resolution provider protocol for loambuild.

The dependency logic in :mod:`loambuild.deps` and :mod:`loambuild.graph`
never shells out itself; it asks a :class:`ResolutionProvider`.
Implementations:

- :class:`~loambuild.backends.cargo.CargoResolver` — ``cargo metadata`` and ``cargo tree``
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from loambuild.backends.cargo import CargoResolver as CargoResolver
from loambuild.package import ResolvedGraph

__all__ = [
    'CargoResolver',
    'ResolutionProvider',
]


@runtime_checkable
class ResolutionProvider(Protocol):
    """Source of package metadata and raw dependency trees."""

    def query_metadata(self, manifest_path: Path) -> ResolvedGraph:
        """Return the full resolution for ``manifest_path``.

        Raises:
            LoamBuildError: ``LB-METADATA`` on any failure.
        """
        ...

    def query_raw_tree(self, manifest_dir: Path) -> list[str]:
        """Return the normal-edge dependency tree of ``manifest_dir``, one line per crate.

        Each line starts with ``<name> v<version>``; the rest is ignored.

        Raises:
            LoamBuildError: ``LB-CARGO-TREE`` if the tree cannot be produced.
        """
        ...
