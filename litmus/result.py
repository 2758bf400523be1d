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

"""
Result shapes exchanged between the helpers and an execution engine.

Engines answer every operation with a list of per-target records::

    [{"target": "localhost",
      "status": "success" | "failure",
      "value": {"exit_code": 0, "stdout": "...", "stderr": "...",
                "_output": "...",
                "_error": {"msg": "...", "details": {"exitcode": 1}}}}]

Records are parsed into a :class:`Success` or :class:`Failure` so callers
never have to dig through nested optional keys, and the helpers hand a
:class:`CommandResult` back to the test suite.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from litmus.errors import LitmusTargetError

FAILURE_EXIT_CODE = 255


@dataclass(frozen=True)
class Success:
    """A target record whose status is ``success``."""

    exit_code: int
    stdout: Optional[str]
    stderr: Optional[str]
    value: Dict[str, Any] = field(default_factory=dict)

    @property
    def output(self) -> Optional[str]:
        """Unstructured output, when the engine reported any."""
        return self.value.get("_output")


@dataclass(frozen=True)
class Failure:
    """A target record whose status is anything but ``success``."""

    exit_code: int
    message: Optional[str]
    details: Dict[str, Any] = field(default_factory=dict)
    value: Dict[str, Any] = field(default_factory=dict)

    @property
    def stdout(self) -> Optional[str]:
        return self.value.get("stdout")

    @property
    def stderr(self) -> Optional[str]:
        return self.value.get("stderr")

    @property
    def output(self) -> Optional[str]:
        return self.value.get("_output")


Outcome = Union[Success, Failure]


@dataclass
class CommandResult:
    """
    Uniform result handed back to the test suite.

    ``exit_code`` is always populated. ``result`` carries the raw value
    payload for tasks and uploads and stays ``None`` for commands.
    """

    exit_code: int
    stdout: Optional[str] = None
    stderr: Optional[str] = None
    result: Optional[Dict[str, Any]] = None


def _record_value(record: Dict[str, Any]) -> Dict[str, Any]:
    value = record.get("value", record.get("result"))
    if value is None:
        return {}
    if not isinstance(value, dict):
        return {"_output": value}
    return value


def parse_record(record: Dict[str, Any]) -> Outcome:
    """
    Parse a single engine record into a :class:`Success` or
    :class:`Failure`.

    :param dict record: One per-target record from an engine response
    :returns Outcome: The tagged outcome
    """
    value = _record_value(record)
    exit_code = value.get("exit_code")

    if record.get("status") == "success":
        return Success(
            exit_code=exit_code if isinstance(exit_code, int) else 0,
            stdout=value.get("stdout"),
            stderr=value.get("stderr"),
            value=value,
        )

    error = value.get("_error") or {}
    details = error.get("details") or {}

    if not isinstance(exit_code, int):
        exit_code = details.get("exitcode", FAILURE_EXIT_CODE)
        if not isinstance(exit_code, int):
            exit_code = FAILURE_EXIT_CODE

    return Failure(
        exit_code=exit_code,
        message=error.get("msg"),
        details=details,
        value=value,
    )


def single_record(
    records: List[Dict[str, Any]], action: str
) -> Dict[str, Any]:
    """
    Return the only record of an engine response.

    The helpers always address exactly one target, so anything other than
    a single record means the engine resolved the target to a group or to
    nothing at all.

    :param list records: Records returned by the engine
    :param str action: Name of the dispatched action, for error messages
    :returns dict: The single record
    :raises LitmusTargetError: If there is not exactly one record
    """
    if not isinstance(records, list) or len(records) != 1:
        count = len(records) if isinstance(records, list) else 0
        raise LitmusTargetError(
            f"{action} expected a result for exactly one target, "
            f"got {count}"
        )
    return records[0]
