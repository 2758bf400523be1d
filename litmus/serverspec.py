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
Helpers for running Puppet content against the system under test.

Every helper targets the system named by ``TARGET_HOST`` (or the one held
by an explicit :class:`~litmus.context.ExecutionContext`), dispatches
through the context's engine and returns a
:class:`~litmus.result.CommandResult`. A failure raises
:class:`~litmus.errors.LitmusExecutionError` unless the caller passed
``expect_failures`` in ``opts``, in which case the failure comes back as
a result with a non-zero ``exit_code``.

Usage::

    from litmus.serverspec import apply_manifest, idempotent_apply

    def test_motd():
        idempotent_apply("class { 'motd': content => 'hello' }")
        result = run_shell("cat /etc/motd")
        assert "hello" in result.stdout
"""

from __future__ import annotations

import os
import random
import tempfile
import time
from typing import Any, Callable, Dict, List, Optional

from ansible.utils.display import Display

from litmus.context import ExecutionContext
from litmus.errors import (
    LitmusExecutionError,
    LitmusUploadError,
    LitmusUsageError,
)
from litmus.options import (
    APPLY_ARGUMENT_SPEC,
    COMMON_ARGUMENT_SPEC,
    validate_options,
)
from litmus.result import (
    FAILURE_EXIT_CODE,
    CommandResult,
    Failure,
    parse_record,
    single_record,
)

display = Display()

Callback = Callable[[CommandResult], Any]

REMOTE_TMPDIR = "/tmp"

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(number: int) -> str:
    digits = ""
    while True:
        number, rem = divmod(number, 36)
        digits = _BASE36[rem] + digits
        if not number:
            return digits


def _finish(
    result: CommandResult, callback: Optional[Callback]
) -> CommandResult:
    if callback is not None:
        callback(result)
    return result


def _command_result(
    records: List[Dict[str, Any]],
    action: str,
    invocation: str,
    expect_failures: bool,
) -> CommandResult:
    """
    Normalize the response of a command or script run.

    :param list records: Engine response
    :param str action: Helper name used in the failure message
    :param str invocation: Command line or script path that was run
    :param bool expect_failures: Return failures instead of raising
    :returns CommandResult: Normalized result
    :raises LitmusExecutionError: On a non-zero exit code when failures
        are not expected
    """
    outcome = parse_record(single_record(records, action))

    if outcome.exit_code != 0 and not expect_failures:
        raise LitmusExecutionError(
            f"{action} failed\n`{invocation}`\n======\n{records}",
            command=invocation,
            result=records,
        )

    stderr = outcome.stderr
    if isinstance(outcome, Failure) and stderr is None:
        stderr = outcome.message

    return CommandResult(
        exit_code=outcome.exit_code,
        stdout=outcome.stdout,
        stderr=stderr,
    )


def create_manifest_file(
    manifest: str, context: Optional[ExecutionContext] = None
) -> str:
    """
    Write a manifest to a temporary file, copying it to the target when
    the target is remote.

    :param str manifest: Puppet manifest code
    :param Optional[ExecutionContext] context: Execution context,
        defaults to one built from the environment
    :returns str: Path of the manifest as seen by the target
    :raises LitmusUploadError: If the copy to a remote target fails
    """
    context = context or ExecutionContext.from_env()

    filename = (
        f"manifest_{time.strftime('%Y%m%d')}_{os.getpid()}_"
        f"{_base36(random.randrange(0x100000000))}.pp"
    )
    local_path = os.path.join(tempfile.gettempdir(), filename)
    with open(local_path, "w", encoding="utf-8") as f:
        f.write(manifest)

    if context.is_local:
        return local_path

    remote_path = f"{REMOTE_TMPDIR}/{filename}"
    display.vvv(f"Uploading manifest {local_path} to {context.target}")
    records = context.engine.upload_file(
        local_path,
        remote_path,
        context.target,
        options={},
        config=None,
        inventory=context.inventory(),
    )
    record = single_record(records, "create manifest file")
    if record.get("status") != "success":
        raise LitmusUploadError(
            str(record.get("value", record.get("result"))),
            command=local_path,
            result=records,
        )

    return remote_path


def build_apply_command(
    manifest_file_location: str,
    opts: Dict[str, Any],
    is_local: bool,
    modulepath: str,
) -> str:
    """
    Build the ``puppet apply`` command line.

    Flags are appended in a fixed order, each only when its option is
    set.

    :param str manifest_file_location: Manifest path on the target
    :param dict opts: Validated apply options
    :param bool is_local: Whether the target is the local host
    :param str modulepath: Module path for local runs
    :returns str: The command line
    """
    command = f"puppet apply {manifest_file_location}"
    if opts.get("prefix_command"):
        command = f"{opts['prefix_command']} {command}"
    if is_local:
        command += f" --modulepath {modulepath}"
    if opts.get("hiera_config") is not None:
        command += f" --hiera_config='{opts['hiera_config']}'"
    if opts.get("catch_changes"):
        command += " --detailed-exitcodes"
    if opts.get("debug"):
        command += " --debug"
    if opts.get("noop"):
        command += " --noop"
    return command


def apply_manifest(
    manifest: Optional[str] = None,
    opts: Optional[Dict[str, Any]] = None,
    callback: Optional[Callback] = None,
    context: Optional[ExecutionContext] = None,
) -> CommandResult:
    """
    Apply a manifest on the target and return the result of the run.

    When ``RSPEC_DEBUG`` is set the command line, exit code and output of
    the run are printed to stderr.

    :param Optional[str] manifest: Puppet manifest code; mutually
        exclusive with ``manifest_file_location``
    :param Optional[dict] opts: Options altering the run:

        - ``catch_changes`` (bool): use detailed exit codes, so any
          change fails the run
        - ``expect_failures`` (bool): return a failed run instead of
          raising
        - ``manifest_file_location`` (str): manifest already on the
          target
        - ``hiera_config`` (str): path to the hiera configuration
        - ``prefix_command`` (str): prepended to the command, e.g.
          ``export LANGUAGE='ja'``
        - ``debug`` (bool): run with ``--debug``
        - ``noop`` (bool): run with ``--noop``

    :param Optional[Callable] callback: Called with the result before it
        is returned, for additional validation
    :param Optional[ExecutionContext] context: Execution context,
        defaults to one built from the environment
    :returns CommandResult: Result of the apply
    :raises LitmusUsageError: If both or neither of ``manifest`` and
        ``manifest_file_location`` are given
    :raises LitmusExecutionError: If the run exits non-zero and failures
        are not expected
    """
    opts = validate_options(opts, APPLY_ARGUMENT_SPEC, "apply manifest")
    context = context or ExecutionContext.from_env()

    manifest_file_location = opts.get("manifest_file_location")

    if manifest is not None and manifest_file_location is not None:
        raise LitmusUsageError(
            "manifest and manifest_file_location in the opts hash are "
            "mutually exclusive arguments, pick one"
        )
    if not manifest and manifest_file_location is None:
        raise LitmusUsageError(
            "please pass a manifest or the manifest_file_location in the "
            "opts hash"
        )

    if manifest_file_location is None:
        manifest_file_location = create_manifest_file(
            manifest, context=context
        )

    command = build_apply_command(
        manifest_file_location, opts, context.is_local, context.modulepath
    )
    display.vvv(f"Applying manifest on {context.target or 'localhost'}")
    records = context.engine.run_command(
        command,
        context.target,
        config=None,
        inventory=context.inventory(),
    )

    result = _command_result(
        records, "apply manifest", command, opts["expect_failures"]
    )
    _finish(result, callback)

    if context.debug:
        display.display(
            f"apply manifest succeeded\n {command}\n======\n"
            f"with status {result.exit_code}",
            stderr=True,
        )
        display.display(result.stderr or "", stderr=True)
        display.display(result.stdout or "", stderr=True)

    return result


def idempotent_apply(
    manifest: str,
    opts: Optional[Dict[str, Any]] = None,
    context: Optional[ExecutionContext] = None,
) -> CommandResult:
    """
    Apply a manifest twice: once to converge, once to prove nothing else
    changes.

    The first run raises on errors, the second run uses detailed exit
    codes so any change raises as well.

    :param str manifest: Puppet manifest code
    :param Optional[dict] opts: Extra apply options forwarded to both
        runs; ``catch_changes`` and ``manifest_file_location`` are set by
        this helper
    :param Optional[ExecutionContext] context: Execution context
    :returns CommandResult: Result of the second run
    """
    validate_options(opts, APPLY_ARGUMENT_SPEC, "idempotent apply")
    opts = dict(opts or {})
    for reserved in ("catch_changes", "manifest_file_location"):
        if reserved in opts:
            raise LitmusUsageError(
                f"idempotent_apply sets {reserved} itself, do not pass it"
            )
    if not manifest:
        raise LitmusUsageError("please pass a manifest to idempotent_apply")

    context = context or ExecutionContext.from_env()
    manifest_file_location = create_manifest_file(manifest, context=context)

    apply_manifest(
        None,
        opts=dict(
            opts,
            catch_changes=False,
            manifest_file_location=manifest_file_location,
        ),
        context=context,
    )
    return apply_manifest(
        None,
        opts=dict(
            opts,
            catch_changes=True,
            manifest_file_location=manifest_file_location,
        ),
        context=context,
    )


def run_shell(
    command: str,
    opts: Optional[Dict[str, Any]] = None,
    callback: Optional[Callback] = None,
    context: Optional[ExecutionContext] = None,
) -> CommandResult:
    """
    Run a shell command on the target.

    :param str command: The command to execute
    :param Optional[dict] opts: ``expect_failures`` (bool) returns a
        failed run instead of raising
    :param Optional[Callable] callback: Called with the result
    :param Optional[ExecutionContext] context: Execution context
    :returns CommandResult: Result of the command
    :raises LitmusExecutionError: On a non-zero exit code
    """
    opts = validate_options(opts, COMMON_ARGUMENT_SPEC, "shell")
    context = context or ExecutionContext.from_env()

    records = context.engine.run_command(
        command,
        context.target,
        config=None,
        inventory=context.inventory(),
    )
    result = _command_result(
        records, "shell", command, opts["expect_failures"]
    )
    return _finish(result, callback)


def upload_file(
    source: str,
    destination: str,
    opts: Optional[Dict[str, Any]] = None,
    options: Optional[Dict[str, Any]] = None,
    callback: Optional[Callback] = None,
    context: Optional[ExecutionContext] = None,
) -> CommandResult:
    """
    Copy a file or directory to the target.

    :param str source: Local path to copy from
    :param str destination: Path on the target to copy to
    :param Optional[dict] opts: ``expect_failures`` (bool) returns a
        failed upload instead of raising
    :param Optional[dict] options: Options passed through to the engine
    :param Optional[Callable] callback: Called with the result
    :param Optional[ExecutionContext] context: Execution context
    :returns CommandResult: Result of the upload, ``exit_code`` 255 on
        failure
    :raises LitmusUploadError: If the upload fails and failures are not
        expected
    """
    opts = validate_options(opts, COMMON_ARGUMENT_SPEC, "upload file")
    context = context or ExecutionContext.from_env()

    records = context.engine.upload_file(
        source,
        destination,
        context.target,
        options=options or {},
        config=None,
        inventory=context.inventory(),
    )
    outcome = parse_record(single_record(records, "upload file"))

    result = CommandResult(
        exit_code=0,
        stdout=outcome.output,
        stderr=None,
        result=outcome.value,
    )

    if isinstance(outcome, Failure):
        if not opts["expect_failures"]:
            raise LitmusUploadError(
                f"upload file failed\n======\n{records}",
                command=source,
                result=records,
            )
        result.exit_code = FAILURE_EXIT_CODE
        result.stderr = outcome.message

    return _finish(result, callback)


def run_task(
    task_name: str,
    params: Optional[Dict[str, Any]] = None,
    opts: Optional[Dict[str, Any]] = None,
    callback: Optional[Callback] = None,
    context: Optional[ExecutionContext] = None,
) -> CommandResult:
    """
    Run a task on the target.

    Tasks are resolved from the fixtures module path. On success
    ``stdout`` holds the task's unstructured output, or a rendering of
    the whole result value when the task returned structured data only.

    :param str task_name: Name of the task, e.g. ``facts`` or
        ``package::linux``
    :param Optional[dict] params: Task parameters
    :param Optional[dict] opts: ``expect_failures`` (bool) returns a
        failed task instead of raising
    :param Optional[Callable] callback: Called with the result
    :param Optional[ExecutionContext] context: Execution context
    :returns CommandResult: Result of the task with ``result`` holding
        the raw value
    :raises LitmusExecutionError: If the task fails and failures are not
        expected
    """
    opts = validate_options(opts, COMMON_ARGUMENT_SPEC, "task")
    context = context or ExecutionContext.from_env()

    records = context.engine.run_task(
        task_name,
        context.target,
        params or {},
        config={"modulepath": context.modulepath},
        inventory=context.inventory(),
    )
    outcome = parse_record(single_record(records, "task"))

    if isinstance(outcome, Failure):
        if not opts["expect_failures"]:
            raise LitmusExecutionError(
                f"task failed\n`{task_name}`\n======\n{records}",
                command=task_name,
                result=records,
            )
        result = CommandResult(
            exit_code=outcome.exit_code,
            stdout=None,
            stderr=outcome.message,
            result=outcome.value,
        )
    else:
        stdout = outcome.output
        if stdout is None:
            stdout = str(outcome.value)
        result = CommandResult(
            exit_code=0,
            stdout=stdout,
            stderr=None,
            result=outcome.value,
        )

    return _finish(result, callback)


def run_script(
    script: str,
    opts: Optional[Dict[str, Any]] = None,
    arguments: Optional[List[str]] = None,
    options: Optional[Dict[str, Any]] = None,
    callback: Optional[Callback] = None,
    context: Optional[ExecutionContext] = None,
) -> CommandResult:
    """
    Run a local script on the target.

    :param str script: Path to the script on the local machine
    :param Optional[dict] opts: ``expect_failures`` (bool) returns a
        failed run instead of raising
    :param Optional[list] arguments: Arguments passed to the script
    :param Optional[dict] options: Options passed through to the engine,
        e.g. ``env_vars``
    :param Optional[Callable] callback: Called with the result
    :param Optional[ExecutionContext] context: Execution context
    :returns CommandResult: Result of the script
    :raises LitmusExecutionError: On a non-zero exit code
    """
    opts = validate_options(opts, COMMON_ARGUMENT_SPEC, "script run")
    context = context or ExecutionContext.from_env()

    records = context.engine.run_script(
        script,
        context.target,
        arguments or [],
        options=options or {},
        config=None,
        inventory=context.inventory(),
    )
    result = _command_result(
        records, "script run", script, opts["expect_failures"]
    )
    return _finish(result, callback)
