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

"""CLI entry point for loambuild.

Subcommands::

    loambuild deps       List the normal-edge dependency closure of a crate
    loambuild riffs      List riff (source entry, output dir) pairs
    loambuild contracts  List the contracts a crate depends on
    loambuild order      Print the workspace's contracts in build order
    loambuild explain    Explain an error code

Usage::

    loambuild --manifest-path contracts/app/Cargo.toml riffs
    loambuild order --format json
    loambuild explain LB-CARGO-TREE
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from rich_argparse import RichHelpFormatter

from loambuild import __version__
from loambuild.backends import CargoResolver
from loambuild.config import load_config
from loambuild.deps import get_contract_deps, get_deps, get_riff_deps, get_workspace_contracts
from loambuild.errors import LoamBuildError, explain, render_error
from loambuild.graph import get_workspace
from loambuild.logging import bind_manifest, configure_logging, get_logger
from loambuild.package import Package

logger = get_logger(__name__)


def _resolver(manifest_path: Path) -> CargoResolver:
    return CargoResolver(load_config(manifest_path.parent))


def _package_entry(pkg: Package) -> dict[str, str]:
    return {
        'name': pkg.name,
        'version': pkg.version,
        'manifest_path': str(pkg.manifest_path),
    }


def _print_packages(packages: list[Package], fmt: str) -> None:
    if fmt == 'json':
        print(json.dumps([_package_entry(p) for p in packages], indent=2))  # noqa: T201 - CLI output
        return
    for pkg in packages:
        print(f'{pkg.name} {pkg.version} ({pkg.manifest_path})')  # noqa: T201 - CLI output


def _cmd_deps(args: argparse.Namespace) -> int:
    """Handle the ``deps`` subcommand."""
    manifest_path = Path(args.manifest_path)
    _print_packages(get_deps(manifest_path, provider=_resolver(manifest_path)), args.format)
    return 0


def _cmd_riffs(args: argparse.Namespace) -> int:
    """Handle the ``riffs`` subcommand."""
    manifest_path = Path(args.manifest_path)
    pairs = sorted(get_riff_deps(manifest_path, provider=_resolver(manifest_path)))
    if args.format == 'json':
        data = [{'source': str(src), 'out_dir': str(out)} for src, out in pairs]
        print(json.dumps(data, indent=2))  # noqa: T201 - CLI output
    else:
        for src, out in pairs:
            print(f'{src} -> {out}')  # noqa: T201 - CLI output
    return 0


def _cmd_contracts(args: argparse.Namespace) -> int:
    """Handle the ``contracts`` subcommand."""
    manifest_path = Path(args.manifest_path)
    _print_packages(get_contract_deps(manifest_path, provider=_resolver(manifest_path)), args.format)
    return 0


def _cmd_order(args: argparse.Namespace) -> int:
    """Handle the ``order`` subcommand."""
    manifest_path = Path(args.manifest_path)
    resolver = _resolver(manifest_path)
    contracts = get_workspace_contracts(manifest_path, provider=resolver)
    _print_packages(get_workspace(contracts, provider=resolver), args.format)
    return 0


def _cmd_explain(args: argparse.Namespace) -> int:
    """Handle the ``explain`` subcommand."""
    text = explain(args.code)
    if text is None:
        print(f'Unknown error code: {args.code}', file=sys.stderr)  # noqa: T201 - CLI output
        return 1
    print(text)  # noqa: T201 - CLI output
    return 0


def _add_format(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--format',
        choices=['text', 'json'],
        default='text',
        help='Output format (default: text).',
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser.

    Returns:
        Configured :class:`argparse.ArgumentParser`.
    """
    RichHelpFormatter.styles['argparse.groups'] = 'bold yellow'
    parser = argparse.ArgumentParser(
        prog='loambuild',
        description='Resolve loam riffs and contracts and order contract builds.',
        formatter_class=RichHelpFormatter,
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}',
    )
    parser.add_argument(
        '--manifest-path',
        metavar='PATH',
        default='Cargo.toml',
        help='Path to the Cargo.toml to resolve (default: ./Cargo.toml).',
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging.')
    parser.add_argument('--quiet', '-q', action='store_true', help='Only log warnings and errors.')
    parser.add_argument('--json-log', action='store_true', help='Emit logs as JSON lines on stderr.')

    subparsers = parser.add_subparsers(dest='command')

    deps_parser = subparsers.add_parser(
        'deps',
        help='List the dependency closure of the crate.',
        formatter_class=RichHelpFormatter,
    )
    _add_format(deps_parser)

    riffs_parser = subparsers.add_parser(
        'riffs',
        help='List riff source entries and their output directories.',
        formatter_class=RichHelpFormatter,
    )
    _add_format(riffs_parser)

    contracts_parser = subparsers.add_parser(
        'contracts',
        help='List the contracts the crate depends on.',
        formatter_class=RichHelpFormatter,
    )
    _add_format(contracts_parser)

    order_parser = subparsers.add_parser(
        'order',
        help="Print the workspace's contracts in build order.",
        formatter_class=RichHelpFormatter,
    )
    _add_format(order_parser)

    explain_parser = subparsers.add_parser(
        'explain',
        help='Explain an error code.',
        formatter_class=RichHelpFormatter,
    )
    explain_parser.add_argument('code', help='Error code, e.g. LB-CARGO-TREE.')

    return parser


_COMMANDS = {
    'deps': _cmd_deps,
    'riffs': _cmd_riffs,
    'contracts': _cmd_contracts,
    'order': _cmd_order,
    'explain': _cmd_explain,
}


def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet, json_log=args.json_log)

    handler = _COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        print(  # noqa: T201 - CLI output
            f'\n{parser.prog}: error: please provide a command',
            file=sys.stderr,
        )
        return 2
    bind_manifest(Path(args.manifest_path))

    try:
        return handler(args)
    except LoamBuildError as exc:
        render_error(exc)
        return 1
    except KeyboardInterrupt:
        logger.info('interrupted')
        return 130


def _main() -> None:
    """Wrapper for pyproject.toml [project.scripts] entry point."""
    sys.exit(main())


__all__ = [
    'build_parser',
    'main',
]
