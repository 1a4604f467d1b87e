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

"""Structured error system for loambuild.

Every failure carries a ``LB-NAMED-KEY`` code, a message and an optional
hint. Nothing here is retried: each error ends the operation that raised it
and reaches the caller unchanged.

Code categories::

    LB-ROOT-*       The manifest has no package of its own
    LB-CARGO-*      ``cargo metadata`` / ``cargo tree`` failures
    LB-PARENT-*     Malformed manifest paths
    LB-GRAPH-*      Contract dependency graph errors
    LB-CONFIG-*     ``loam.toml`` errors

Usage::

    from loambuild.errors import E, LoamBuildError

    raise LoamBuildError(
        code=E.ROOT_NOT_FOUND,
        message=f'Failed to find root package with manifest_path {path}',
    )
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from typing import TextIO

from rich.console import Console
from rich.markup import escape as rich_escape


class ErrorCode(str, Enum):
    """All loambuild diagnostic codes."""

    ROOT_NOT_FOUND = 'LB-ROOT-NOT-FOUND'
    CARGO_TREE = 'LB-CARGO-TREE'
    PARENT_NOT_FOUND = 'LB-PARENT-NOT-FOUND'
    METADATA = 'LB-METADATA'

    GRAPH_CYCLE_DETECTED = 'LB-GRAPH-CYCLE-DETECTED'

    CONFIG_INVALID_KEY = 'LB-CONFIG-INVALID-KEY'
    CONFIG_INVALID_VALUE = 'LB-CONFIG-INVALID-VALUE'
    CONFIG_PARSE_ERROR = 'LB-CONFIG-PARSE-ERROR'


# Convenience alias for shorter imports.
E = ErrorCode


@dataclass(frozen=True)
class ErrorInfo:
    """Metadata for a single error code.

    Attributes:
        code: The ``LB-NAMED-KEY`` error code.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    code: ErrorCode
    message: str
    hint: str = ''


class LoamBuildError(Exception):
    """Base exception for all loambuild errors.

    When wrapping a lower-level failure, raise with ``from exc`` so the
    original cause stays available on ``__cause__``.

    Args:
        code: The error code from :class:`ErrorCode`.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    def __init__(self, code: ErrorCode, message: str, hint: str = '') -> None:
        """Initialize with an error code, message, and optional hint."""
        self.info = ErrorInfo(code=code, message=message, hint=hint)
        super().__init__(f'[{code.value}] {message}')

    @property
    def code(self) -> ErrorCode:
        """The error code."""
        return self.info.code

    @property
    def hint(self) -> str:
        """Suggestion for fixing this error, or empty string."""
        return self.info.hint


ERRORS: dict[ErrorCode, ErrorInfo] = {
    E.ROOT_NOT_FOUND: ErrorInfo(
        code=E.ROOT_NOT_FOUND,
        message='The manifest does not correspond to any package in its own cargo metadata.',
        hint='Point --manifest-path at a package Cargo.toml, not a virtual workspace manifest.',
    ),
    E.CARGO_TREE: ErrorInfo(
        code=E.CARGO_TREE,
        message='Failed to run cargo tree or to decode its output.',
        hint='Check that cargo is installed and on PATH.',
    ),
    E.PARENT_NOT_FOUND: ErrorInfo(
        code=E.PARENT_NOT_FOUND,
        message='A manifest path has no parent directory.',
        hint='Pass the path to a Cargo.toml file, e.g. ./Cargo.toml.',
    ),
    E.METADATA: ErrorInfo(
        code=E.METADATA,
        message='cargo metadata failed.',
        hint="Run 'cargo metadata --format-version 1' by hand to see the underlying error.",
    ),
    E.GRAPH_CYCLE_DETECTED: ErrorInfo(
        code=E.GRAPH_CYCLE_DETECTED,
        message='Circular dependency detected between contracts.',
        hint='A contract cannot be deployed before a contract that depends on it.',
    ),
    E.CONFIG_INVALID_KEY: ErrorInfo(
        code=E.CONFIG_INVALID_KEY,
        message='Unknown key in loam.toml.',
    ),
}


def explain(code: str) -> str | None:
    """Return a detailed explanation for an error code.

    Args:
        code: The error code string, e.g. ``"LB-CARGO-TREE"``.

    Returns:
        A formatted explanation string, or ``None`` if the code is unknown.
    """
    try:
        error_code = ErrorCode(code)
    except ValueError:
        return None

    info = ERRORS.get(error_code)
    if info is None:
        return f'{code}: No detailed explanation available.'

    lines = [f'{code}: {info.message}']
    if info.hint:
        lines.append(f'  Hint: {info.hint}')
    return '\n'.join(lines)


def render_error(exc: LoamBuildError, *, file: TextIO | None = None) -> None:
    """Render an error in Rust-compiler style.

    Output format::

        error[LB-ROOT-NOT-FOUND]: Failed to find root package ...
          |
          = hint: Point --manifest-path at a package Cargo.toml ...

    Args:
        exc: The error to render.
        file: Output stream (defaults to ``sys.stderr``).
    """
    out = file or sys.stderr

    if out.isatty():
        console = Console(file=out, highlight=False)
        msg = rich_escape(exc.info.message)
        console.print(
            f'[bold red]error[/bold red][bold red]\\[{exc.code.value}][/bold red][bold]: {msg}[/bold]',
        )
        if exc.hint:
            console.print('  [dim]|[/dim]')
            console.print(f'  [dim]=[/dim] [cyan]hint[/cyan]: {rich_escape(exc.hint)}')
        console.print()
    else:
        print(f'error[{exc.code.value}]: {exc.info.message}', file=out)  # noqa: T201 - CLI output
        if exc.hint:
            print('  |', file=out)  # noqa: T201 - CLI output
            print(f'  = hint: {exc.hint}', file=out)  # noqa: T201 - CLI output
        print(file=out)  # noqa: T201 - CLI output


__all__ = [
    'E',
    'ERRORS',
    'ErrorCode',
    'ErrorInfo',
    'LoamBuildError',
    'explain',
    'render_error',
]
