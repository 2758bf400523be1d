# vim: ts=4:sw=4:sts=4:et:ft=python
# -*- mode: python; tab-width: 4; indent-tabs-mode: nil; -*-
#
# GNU General Public License v3.0+
# SPDX-License-Identifier: GPL-3.0-or-later
# (see COPYING or https://www.gnu.org/licenses/gpl-3.0.txt)
#
# Copyright (c) 2025 oØ.o (@o0-o)
#
# This file is part of the litmus-helpers project.

from __future__ import annotations

import tempfile
from typing import Generator

import pytest

from litmus.context import ExecutionContext
from tests.utils import FakeEngine

INVENTORY = """\
version: 2
groups:
  - name: ssh_nodes
    targets:
      - uri: sut.example.com
        config:
          transport: ssh
          ssh:
            user: root
  - name: winrm_nodes
    targets: []
"""


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path) -> None:
    """Clear helper environment variables and redirect temp files.

    Manifests materialized during a test land in the test's own
    ``tmp_path`` rather than the shared system temp directory.
    """
    for var in ("TARGET_HOST", "RSPEC_DEBUG", "GITHUB_OUTPUT"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))


@pytest.fixture
def engine() -> FakeEngine:
    """Create a recording engine double."""
    return FakeEngine()


@pytest.fixture
def local_context(engine) -> Generator[ExecutionContext, None, None]:
    """Create a context for the local target backed by the fake engine."""
    yield ExecutionContext(
        target=None,
        engine=engine,
        modulepath="/work/spec/fixtures/modules",
    )


@pytest.fixture
def inventory_file(tmp_path) -> str:
    """Write an inventory describing a single ssh target."""
    path = tmp_path / "litmus_inventory.yaml"
    path.write_text(INVENTORY)
    return str(path)


@pytest.fixture
def remote_context(
    engine, inventory_file
) -> Generator[ExecutionContext, None, None]:
    """Create a context for the remote ``sut.example.com`` target."""
    yield ExecutionContext(
        target="sut.example.com",
        engine=engine,
        inventory_path=inventory_file,
        modulepath="/work/spec/fixtures/modules",
    )
