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

"""Structured logging for loambuild.

Configures `structlog <https://www.structlog.org/>`_ on top of the standard
library root logger. Everything goes to stderr so that ``loambuild order
--format json`` can be piped without log noise on stdout.

The CLI binds the manifest it was pointed at with :func:`bind_manifest`, so
every line carries a ``manifest`` key; that is how a failing ``cargo tree``
run is traced back to the crate that asked for it.

Usage::

    from loambuild.logging import bind_manifest, configure_logging, get_logger

    configure_logging(verbose=True)
    bind_manifest(Path('contracts/app/Cargo.toml'))
    log = get_logger(__name__)
    log.debug('tree_line_unresolved', line='serde v1.0.0')
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import structlog


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    json_log: bool = False,
) -> None:
    """Configure structlog for loambuild.

    Safe to call more than once; the last call wins.

    Args:
        verbose: Enable debug-level output (every cargo invocation,
            every skipped ``cargo tree`` line).
        quiet: Only warnings and errors.
        json_log: One JSON object per line instead of console output.
    """
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        format='%(message)s',
        stream=sys.stderr,
        level=level,
        force=True,
    )

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_log:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


def bind_manifest(manifest_path: Path) -> None:
    """Attach ``manifest=<manifest_path>`` to every following log line.

    Replaces whatever context was bound before, so one process resolving
    several manifests in turn never mixes them up.
    """
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(manifest=str(manifest_path))


def get_logger(name: str = 'loambuild') -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger named ``name``."""
    return structlog.get_logger(name)


__all__ = [
    'bind_manifest',
    'configure_logging',
    'get_logger',
]
