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

"""Central subprocess abstraction for loambuild.

Every cargo invocation goes through :func:`run_command`, which logs the
command, enforces a timeout and returns a :class:`CommandResult`.

Stdout is decoded as strict UTF-8. Undecodable output raises
:class:`UnicodeDecodeError` so callers can report it instead of working
on mangled text.
"""

from __future__ import annotations

import subprocess  # noqa: S404 - subprocess is the core purpose of this module
import time
from dataclasses import dataclass
from pathlib import Path

from loambuild.config import DEFAULT_TIMEOUT_SECONDS
from loambuild.logging import get_logger

log = get_logger('loambuild.backends.run')


@dataclass(frozen=True)
class CommandResult:
    """Result of a subprocess invocation.

    Attributes:
        command: The command that was executed.
        return_code: Process exit code (0 = success).
        stdout: Captured standard output.
        stderr: Captured standard error.
        duration: Wall-clock duration in milliseconds.
    """

    command: list[str]
    return_code: int
    stdout: str = ''
    stderr: str = ''
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        """Whether the command exited with status 0."""
        return self.return_code == 0


def run_command(
    cmd: list[str],
    *,
    cwd: Path | str | None = None,
    timeout: int = DEFAULT_TIMEOUT_SECONDS,
) -> CommandResult:
    """Run ``cmd`` and capture its output.

    Args:
        cmd: Command and arguments.
        cwd: Working directory for the command.
        timeout: Seconds to wait before killing the process.

    Raises:
        OSError: If the executable cannot be started.
        UnicodeDecodeError: If stdout is not valid UTF-8.
        subprocess.TimeoutExpired: If the command exceeds ``timeout``.
    """
    cmd_str = ' '.join(cmd)
    log.debug('run_command', cmd=cmd_str, cwd=str(cwd or '.'))

    start = time.monotonic()
    try:
        result = subprocess.run(  # noqa: S603 -- arguments are built by the cargo backend
            cmd,
            cwd=cwd,
            capture_output=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        duration = (time.monotonic() - start) * 1000
        log.error('command_timeout', cmd=cmd_str, timeout=timeout, duration=duration)
        raise

    duration = (time.monotonic() - start) * 1000
    stdout = result.stdout.decode('utf-8')
    stderr = result.stderr.decode('utf-8', errors='replace')
    cmd_result = CommandResult(
        command=cmd,
        return_code=result.returncode,
        stdout=stdout,
        stderr=stderr,
        duration=duration,
    )

    if result.returncode != 0:
        log.warning(
            'command_failed',
            cmd=cmd_str,
            return_code=result.returncode,
            stderr=stderr[:500],
            duration=duration,
        )
    else:
        log.debug('command_ok', cmd=cmd_str, duration=duration)

    return cmd_result


# Re-exported so callers need not import subprocess (S404).
TimeoutExpired = subprocess.TimeoutExpired

__all__ = [
    'CommandResult',
    'TimeoutExpired',
    'run_command',
]
