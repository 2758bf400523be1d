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

"""Acceptance test helpers for Puppet content."""

from .context import ExecutionContext
from .engine import Engine, LocalEngine
from .errors import (
    LitmusEngineError,
    LitmusError,
    LitmusExecutionError,
    LitmusInventoryError,
    LitmusTargetError,
    LitmusUploadError,
    LitmusUsageError,
)
from .result import CommandResult
from .serverspec import (
    apply_manifest,
    create_manifest_file,
    idempotent_apply,
    run_script,
    run_shell,
    run_task,
    upload_file,
)

__all__ = [
    "ExecutionContext",
    "Engine",
    "LocalEngine",
    "CommandResult",
    "LitmusError",
    "LitmusEngineError",
    "LitmusExecutionError",
    "LitmusInventoryError",
    "LitmusTargetError",
    "LitmusUploadError",
    "LitmusUsageError",
    "apply_manifest",
    "create_manifest_file",
    "idempotent_apply",
    "run_script",
    "run_shell",
    "run_task",
    "upload_file",
]
