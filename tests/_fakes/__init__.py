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

"""Shared test fakes for loambuild.

Usage::

    from tests._fakes import FakeResolver, make_pkg

    core = make_pkg('core', tags=['contract'])
    app = make_pkg('app')
    resolver = FakeResolver.from_workspace([app, core], deps={'app': ['core']})
"""

from tests._fakes._resolver import FakeResolver as FakeResolver, make_pkg as make_pkg, tree_line as tree_line

__all__ = [
    'FakeResolver',
    'make_pkg',
    'tree_line',
]
