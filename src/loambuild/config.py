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

"""Build-output conventions and ``loam.toml`` configuration.

The path conventions are part of the contract with the downstream build
step and are not configurable::

    <target-root>/loam/<crate_name_with_underscores>     output directory
    <crate-dir>/src/lib.rs                               source entry

Tags are read from ``[package.metadata.loam]`` in each crate's
``Cargo.toml``.

``loam.toml`` only tunes how cargo is invoked::

    cargo = "cargo"     # binary to run
    timeout = 300       # seconds per cargo invocation
    offline = false     # pass --offline
    locked = false      # pass --locked
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import tomlkit
import tomlkit.exceptions

from loambuild.errors import E, LoamBuildError
from loambuild.logging import get_logger

logger = get_logger(__name__)

# Key under ``package.metadata`` holding the tag flags.
TAG_NAMESPACE = 'loam'

# Sub-directory of a target root that receives generated crates.
OUT_NAMESPACE = 'loam'

# Source entry of a crate, relative to its manifest directory.
SOURCE_DIR = 'src'
ENTRY_FILE = 'lib.rs'

CONFIG_FILENAME = 'loam.toml'

DEFAULT_TIMEOUT_SECONDS = 300

VALID_KEYS: frozenset[str] = frozenset({
    'cargo',
    'locked',
    'offline',
    'timeout',
})

_TYPE_MAP: dict[str, type] = {
    'cargo': str,
    'locked': bool,
    'offline': bool,
    'timeout': int,
}


def out_dir(target_dir: Path, name: str) -> Path:
    """Return the output directory for crate ``name`` under ``target_dir``.

    Dashes are not valid in Rust identifiers, so ``my-crate`` becomes
    ``my_crate``.
    """
    return target_dir / OUT_NAMESPACE / name.replace('-', '_')


def source_entry(manifest_dir: Path) -> Path:
    """Return the source entry file of the crate in ``manifest_dir``."""
    return manifest_dir / SOURCE_DIR / ENTRY_FILE


@dataclass(frozen=True)
class LoamConfig:
    """How cargo is invoked.

    Attributes:
        cargo: The cargo executable.
        timeout: Seconds before a cargo invocation is killed.
        offline: Pass ``--offline`` to cargo.
        locked: Pass ``--locked`` to cargo.
        config_path: The ``loam.toml`` that was loaded, if any.
    """

    cargo: str = 'cargo'
    timeout: int = DEFAULT_TIMEOUT_SECONDS
    offline: bool = False
    locked: bool = False
    config_path: Path | None = None

    @property
    def cargo_flags(self) -> list[str]:
        """Flags shared by every cargo subcommand we run."""
        flags: list[str] = []
        if self.offline:
            flags.append('--offline')
        if self.locked:
            flags.append('--locked')
        return flags


def _validate(raw: dict[str, Any]) -> None:  # noqa: ANN401 - dynamic config values
    """Raise on unknown keys, wrong types and out-of-range values."""
    for key in raw:
        if key not in VALID_KEYS:
            suggestion = difflib.get_close_matches(key, VALID_KEYS, n=1, cutoff=0.6)
            hint = f"Did you mean '{suggestion[0]}'?" if suggestion else f'Valid keys: {sorted(VALID_KEYS)}'
            raise LoamBuildError(
                code=E.CONFIG_INVALID_KEY,
                message=f"Unknown key '{key}' in {CONFIG_FILENAME}",
                hint=hint,
            )

    for key, value in raw.items():
        expected = _TYPE_MAP[key]
        # bool is a subclass of int; ``timeout = true`` is still wrong.
        if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
            raise LoamBuildError(
                code=E.CONFIG_INVALID_VALUE,
                message=f"'{key}' must be {expected.__name__}, got {type(value).__name__}",
                hint=f'Check the value of {key} in {CONFIG_FILENAME}.',
            )

    if 'timeout' in raw and raw['timeout'] <= 0:
        raise LoamBuildError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"'timeout' must be positive, got {raw['timeout']}",
        )
    if 'cargo' in raw and not raw['cargo'].strip():
        raise LoamBuildError(
            code=E.CONFIG_INVALID_VALUE,
            message="'cargo' must not be empty",
        )


def load_config(root: Path) -> LoamConfig:
    """Load and validate ``loam.toml`` from ``root``.

    A missing file is not an error; defaults are returned.

    Raises:
        LoamBuildError: If the file cannot be read, parsed or validated.
    """
    config_path = root / CONFIG_FILENAME
    if not config_path.is_file():
        logger.debug('no_loam_config', path=str(config_path))
        return LoamConfig()

    try:
        text = config_path.read_text(encoding='utf-8')
    except OSError as exc:
        raise LoamBuildError(
            code=E.CONFIG_PARSE_ERROR,
            message=f'Failed to read {config_path}: {exc}',
        ) from exc

    try:
        doc = tomlkit.parse(text)
    except tomlkit.exceptions.ParseError as exc:
        raise LoamBuildError(
            code=E.CONFIG_PARSE_ERROR,
            message=f'Invalid TOML in {config_path}: {exc}',
        ) from exc

    raw: dict[str, Any] = doc.unwrap()  # noqa: ANN401
    _validate(raw)

    config = LoamConfig(**raw, config_path=config_path)
    logger.debug('loaded_loam_config', path=str(config_path), keys=sorted(raw))
    return config


__all__ = [
    'CONFIG_FILENAME',
    'ENTRY_FILE',
    'LoamConfig',
    'OUT_NAMESPACE',
    'SOURCE_DIR',
    'TAG_NAMESPACE',
    'load_config',
    'out_dir',
    'source_entry',
]
