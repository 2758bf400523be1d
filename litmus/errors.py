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

"""Exception hierarchy for the litmus acceptance helpers."""

from __future__ import annotations

from typing import Any, Optional

from ansible.errors import AnsibleError


class LitmusError(AnsibleError):
    """Base class for every error raised by the litmus helpers."""


class LitmusUsageError(LitmusError):
    """Raised for invalid, missing or mutually exclusive arguments."""


class LitmusInventoryError(LitmusError):
    """Raised when the inventory file is missing or malformed."""


class LitmusEngineError(LitmusError):
    """Raised when an engine cannot serve the requested operation."""


class LitmusTargetError(LitmusError):
    """Raised when an engine response does not hold exactly one target."""


class LitmusExecutionError(LitmusError):
    """
    Raised when a command, task or script fails on the target.

    :param str message: Human readable failure description
    :param Optional[str] command: The invocation that was dispatched
    :param Any result: The raw per-target records returned by the engine
    """

    def __init__(
        self,
        message: str,
        command: Optional[str] = None,
        result: Any = None,
    ) -> None:
        super().__init__(message)
        self.command = command
        self.result = result


class LitmusUploadError(LitmusExecutionError):
    """Raised when a file upload does not report success."""
