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

"""Tests for loambuild.cli module."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import structlog
from loambuild import cli

from tests._fakes import FakeResolver, make_pkg


@pytest.fixture
def resolver(monkeypatch: pytest.MonkeyPatch) -> FakeResolver:
    """A workspace where app uses riff util and contract core, and core uses contract base."""
    app = make_pkg('app', tags=['contract'])
    util = make_pkg('util', '2.0.0', tags=['riff'])
    core = make_pkg('core', tags=['contract'])
    base = make_pkg('base', tags=['contract'])
    fake = FakeResolver.from_workspace(
        [app, util, core, base],
        deps={'app': ['util', 'core'], 'core': ['base']},
    )
    monkeypatch.setattr(cli, '_resolver', lambda _manifest_path: fake)
    return fake


def _run(*argv: str) -> int:
    return cli.main(['--quiet', '--manifest-path', '/work/app/Cargo.toml', *argv])


class TestCommands:
    """Subcommands print resolved data."""

    def test_deps_json(self, resolver: FakeResolver, capsys: pytest.CaptureFixture[str]) -> None:
        """deps lists the closure with the root last."""
        assert _run('deps', '--format', 'json') == 0
        data = json.loads(capsys.readouterr().out)
        assert data[-1]['name'] == 'app'
        assert {d['name'] for d in data} == {'app', 'util', 'core', 'base'}

    def test_riffs_text(self, resolver: FakeResolver, capsys: pytest.CaptureFixture[str]) -> None:
        """riffs prints source -> out_dir pairs."""
        assert _run('riffs') == 0
        out = capsys.readouterr().out.splitlines()
        assert f'{Path("/work/util/src/lib.rs")} -> {Path("util2.0.0/loam/util")}' in out
        assert len(out) == 2

    def test_contracts(self, resolver: FakeResolver, capsys: pytest.CaptureFixture[str]) -> None:
        """contracts lists contract deps, not the crate itself."""
        assert _run('contracts', '--format', 'json') == 0
        names = {d['name'] for d in json.loads(capsys.readouterr().out)}
        assert names == {'core', 'base'}

    def test_order(self, resolver: FakeResolver, capsys: pytest.CaptureFixture[str]) -> None:
        """order puts dependencies first."""
        assert _run('order', '--format', 'json') == 0
        names = [d['name'] for d in json.loads(capsys.readouterr().out)]
        assert names == ['base', 'core', 'app']

    def test_default_manifest_path(self, resolver: FakeResolver, capsys: pytest.CaptureFixture[str]) -> None:
        """Run from the crate dir, the default Cargo.toml gives the same answers."""
        resolver.alias(Path('Cargo.toml'), Path('/work/app/Cargo.toml'))

        assert cli.main(['--quiet', 'contracts', '--format', 'json']) == 0
        names = {d['name'] for d in json.loads(capsys.readouterr().out)}
        assert names == {'core', 'base'}

        assert cli.main(['--quiet', 'riffs', '--format', 'json']) == 0
        outs = {d['out_dir'] for d in json.loads(capsys.readouterr().out)}
        assert outs == {str(Path('app1.0.0/loam/app')), str(Path('util2.0.0/loam/util'))}
        assert resolver.metadata_calls == [Path('Cargo.toml'), Path('Cargo.toml')]
        assert structlog.contextvars.get_contextvars() == {'manifest': 'Cargo.toml'}

    def test_error_exit_code(self, resolver: FakeResolver, capsys: pytest.CaptureFixture[str]) -> None:
        """A LoamBuildError is rendered and exits 1."""
        resolver.tree_error = True
        assert _run('deps') == 1
        assert 'error[LB-CARGO-TREE]' in capsys.readouterr().err


class TestExplainAndUsage:
    """Commands that never touch cargo."""

    def test_explain(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Known codes are explained."""
        assert cli.main(['explain', 'LB-ROOT-NOT-FOUND']) == 0
        assert 'LB-ROOT-NOT-FOUND' in capsys.readouterr().out

    def test_explain_unknown(self) -> None:
        """Unknown codes exit 1."""
        assert cli.main(['explain', 'LB-WHAT']) == 1

    def test_no_command(self) -> None:
        """Missing subcommand exits 2."""
        assert cli.main(['--quiet']) == 2

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        """--version prints the package version."""
        with pytest.raises(SystemExit):
            cli.main(['--version'])
        assert 'loambuild' in capsys.readouterr().out
