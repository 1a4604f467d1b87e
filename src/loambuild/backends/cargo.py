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

"""Cargo resolution backend for loambuild.

The :class:`CargoResolver` implements the
:class:`~loambuild.backends.ResolutionProvider` protocol with two cargo
commands:

- ``cargo metadata --format-version 1 --manifest-path <manifest>`` gives
  every package of the resolution with its id, version, manifest path and
  ``package.metadata`` table.
- ``cargo tree --prefix none --edges normal`` run in the crate directory
  lists the crates the root actually depends on through normal (not dev,
  not build) edges, one per line::

      app v1.0.0 (/work/app)
      util v2.0.0 (/work/util)
      serde v1.0.197
      serde_derive v1.0.197 (proc-macro)
      util v2.0.0 (/work/util) (*)

Only the first two tokens of a line matter to loambuild.
"""

from __future__ import annotations

import json
from pathlib import Path

from loambuild.backends._run import TimeoutExpired, run_command
from loambuild.config import LoamConfig
from loambuild.errors import E, LoamBuildError
from loambuild.logging import get_logger
from loambuild.package import ResolvedGraph, parse_metadata

log = get_logger('loambuild.backends.cargo')


class CargoResolver:
    """Cargo :class:`~loambuild.backends.ResolutionProvider` implementation.

    Args:
        config: Cargo invocation settings; defaults to :class:`LoamConfig`.
    """

    def __init__(self, config: LoamConfig | None = None) -> None:
        """Initialize with optional configuration."""
        self._config = config or LoamConfig()

    def query_metadata(self, manifest_path: Path) -> ResolvedGraph:
        """Run ``cargo metadata`` for ``manifest_path`` and parse it.

        Raises:
            LoamBuildError: ``LB-METADATA`` if cargo cannot run, exits
                non-zero, times out or prints something other than JSON.
        """
        cmd = [
            self._config.cargo,
            'metadata',
            '--format-version',
            '1',
            '--manifest-path',
            str(manifest_path),
            *self._config.cargo_flags,
        ]
        try:
            result = run_command(cmd, timeout=self._config.timeout)
        except (OSError, UnicodeDecodeError, TimeoutExpired) as exc:
            raise LoamBuildError(
                code=E.METADATA,
                message=f'Failed to run cargo metadata for {manifest_path}: {exc}',
            ) from exc

        if not result.ok:
            raise LoamBuildError(
                code=E.METADATA,
                message=f'cargo metadata failed for {manifest_path}: {result.stderr.strip()}',
            )

        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as exc:
            raise LoamBuildError(
                code=E.METADATA,
                message=f'cargo metadata printed invalid JSON for {manifest_path}: {exc}',
            ) from exc

        graph = parse_metadata(data)
        log.debug(
            'metadata_loaded',
            manifest=str(manifest_path),
            packages=len(graph.packages),
            root=graph.root_id,
        )
        return graph

    def query_raw_tree(self, manifest_dir: Path) -> list[str]:
        """Run ``cargo tree`` in ``manifest_dir`` and return its lines.

        A non-zero exit is logged but not fatal: whatever cargo printed is
        still returned.

        Raises:
            LoamBuildError: ``LB-CARGO-TREE`` if cargo cannot be started,
                times out, or its output is not UTF-8.
        """
        cmd = [
            self._config.cargo,
            'tree',
            '--prefix',
            'none',
            '--edges',
            'normal',
            *self._config.cargo_flags,
        ]
        try:
            result = run_command(cmd, cwd=manifest_dir, timeout=self._config.timeout)
        except (OSError, UnicodeDecodeError, TimeoutExpired) as exc:
            raise LoamBuildError(
                code=E.CARGO_TREE,
                message=f'Failed to cargo tree at manifest_path {manifest_dir}: {exc}',
            ) from exc

        if not result.ok:
            log.warning('cargo_tree_nonzero_exit', cwd=str(manifest_dir), return_code=result.return_code)

        lines = result.stdout.splitlines()
        log.debug('cargo_tree_loaded', cwd=str(manifest_dir), lines=len(lines))
        return lines


__all__ = [
    'CargoResolver',
]
