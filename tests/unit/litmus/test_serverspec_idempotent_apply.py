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

import glob
import os
import tempfile

import pytest

from litmus.errors import LitmusExecutionError, LitmusUsageError
from litmus.serverspec import idempotent_apply
from tests.utils import success_record


def test_idempotent_apply_runs_twice(engine, local_context):
    """The same manifest file is applied twice, the second catching changes."""
    engine.queue(
        "run_command",
        success_record(stdout="Notice: created"),
        success_record(stdout="Notice: Applied catalog"),
    )

    result = idempotent_apply("file { '/tmp/x': }", context=local_context)

    first, second = engine.calls_to("run_command")
    assert "--detailed-exitcodes" not in first["command"]
    assert "--detailed-exitcodes" in second["command"]
    assert first["command"].split()[2] == second["command"].split()[2]
    assert result.stdout == "Notice: Applied catalog"


def test_idempotent_apply_detects_changes_on_second_run(
    engine, local_context
):
    """Changes reported by the second run break idempotence."""
    engine.queue(
        "run_command",
        success_record(exit_code=0),
        success_record(exit_code=2, stdout="Notice: changed"),
    )

    with pytest.raises(LitmusExecutionError, match="--detailed-exitcodes"):
        idempotent_apply("file { '/tmp/x': }", context=local_context)


def test_idempotent_apply_first_run_failure(engine, local_context):
    engine.queue("run_command", success_record(exit_code=1))

    with pytest.raises(LitmusExecutionError):
        idempotent_apply("fail('nope')", context=local_context)

    assert len(engine.calls_to("run_command")) == 1


def test_idempotent_apply_forwards_options(engine, local_context):
    idempotent_apply(
        "notify { 'x': }",
        opts={"prefix_command": "LANG=C", "hiera_config": "/h.yaml"},
        context=local_context,
    )

    for call in engine.calls_to("run_command"):
        assert call["command"].startswith("LANG=C puppet apply ")
        assert "--hiera_config='/h.yaml'" in call["command"]


def test_idempotent_apply_remote_uploads_once(engine, remote_context):
    idempotent_apply("notify { 'x': }", context=remote_context)

    (upload,) = engine.calls_to("upload_file")
    for call in engine.calls_to("run_command"):
        assert call["command"].startswith(
            f"puppet apply {upload['destination']}"
        )


@pytest.mark.parametrize("reserved", ["catch_changes", "manifest_file_location"])
def test_idempotent_apply_rejects_reserved_options(local_context, reserved):
    with pytest.raises(LitmusUsageError, match=reserved):
        idempotent_apply(
            "notify { 'x': }",
            opts={reserved: "/x"},
            context=local_context,
        )


@pytest.mark.parametrize("manifest", [None, ""])
def test_idempotent_apply_requires_manifest(engine, local_context, manifest):
    with pytest.raises(LitmusUsageError, match="please pass a manifest"):
        idempotent_apply(manifest, context=local_context)

    assert engine.calls == []


def test_idempotent_apply_validates_options_before_writing(
    engine, local_context
):
    """Unknown options are rejected before any manifest file is written."""
    with pytest.raises(LitmusUsageError):
        idempotent_apply(
            "notify { 'x': }", opts={"bogus": 1}, context=local_context
        )

    pattern = os.path.join(tempfile.gettempdir(), "manifest_*.pp")
    assert glob.glob(pattern) == []
    assert engine.calls == []
