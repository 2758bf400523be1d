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
Execution engines the helpers delegate to.

An engine runs commands, tasks and scripts and uploads files on a named
target, answering each call with a list of per-target records (see
:mod:`litmus.result`). Remote transports are provided by the caller as an
:class:`Engine` subclass; :class:`LocalEngine` covers the local target
with plain subprocesses.
"""

from __future__ import annotations

import glob
import json
import os
import shutil
import subprocess
import sys
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union

from ansible.module_utils.common.text.converters import to_text
from ansible.utils.display import Display

from litmus.errors import LitmusEngineError

display = Display()

Records = List[Dict[str, Any]]

LOCAL_TARGETS = (None, "localhost")


class Engine(ABC):
    """
    Contract for execution engines.

    Every method returns a list with one record per target the engine
    resolved ``target`` to.
    """

    @abstractmethod
    def run_command(
        self,
        command: str,
        target: Optional[str],
        config: Optional[Dict[str, Any]] = None,
        inventory: Optional[Dict[str, Any]] = None,
    ) -> Records:
        pass

    @abstractmethod
    def upload_file(
        self,
        source: str,
        destination: str,
        target: Optional[str],
        options: Optional[Dict[str, Any]] = None,
        config: Optional[Dict[str, Any]] = None,
        inventory: Optional[Dict[str, Any]] = None,
    ) -> Records:
        pass

    @abstractmethod
    def run_task(
        self,
        task_name: str,
        target: Optional[str],
        params: Optional[Dict[str, Any]] = None,
        config: Optional[Dict[str, Any]] = None,
        inventory: Optional[Dict[str, Any]] = None,
    ) -> Records:
        pass

    @abstractmethod
    def run_script(
        self,
        script: str,
        target: Optional[str],
        arguments: Optional[List[str]] = None,
        options: Optional[Dict[str, Any]] = None,
        config: Optional[Dict[str, Any]] = None,
        inventory: Optional[Dict[str, Any]] = None,
    ) -> Records:
        pass


class LocalEngine(Engine):
    """
    Engine for the local target, backed by :mod:`subprocess`.

    Records mirror what a remote engine reports so the helpers cannot
    tell the difference:

    - commands and scripts report ``exit_code``, ``stdout`` and
      ``stderr`` and fail on a non-zero exit code
    - uploads copy files or directory trees
    - tasks are looked up in the module path and receive their
      parameters both as ``PT_<name>`` environment variables and as JSON
      on stdin
    """

    def _check_target(self, target: Optional[str]) -> None:
        if target not in LOCAL_TARGETS:
            raise LitmusEngineError(
                f"LocalEngine cannot reach target '{target}'; "
                "pass an ExecutionContext with an engine for remote targets"
            )

    def _exec(
        self,
        cmd: Union[str, List[str]],
        stdin: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        Run a command and collect its exit code and output.

        :param Union[str, List[str]] cmd: Shell string or argv list
        :param Optional[str] stdin: Data to feed on standard input
        :param Optional[dict] env: Full environment for the child
        :returns dict: ``exit_code``, ``stdout`` and ``stderr``
        """
        if isinstance(cmd, list):
            shell = False
        elif isinstance(cmd, str):
            shell = True
        else:
            raise TypeError(
                f"Expected cmd to be str or list, got {type(cmd).__name__}"
            )

        display.vvv(f"Running locally: {cmd}")
        try:
            proc = subprocess.run(
                cmd,
                input=stdin.encode("utf-8") if stdin else None,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                shell=shell,
                env=env,
                check=False,
            )
        except OSError as e:
            return {"exit_code": 127, "stdout": "", "stderr": to_text(e)}

        return {
            "exit_code": proc.returncode,
            "stdout": to_text(proc.stdout, errors="surrogate_or_strict"),
            "stderr": to_text(proc.stderr, errors="surrogate_or_strict"),
        }

    def _record(
        self,
        action: str,
        obj: str,
        value: Dict[str, Any],
        kind: str,
    ) -> Records:
        """Wrap an exit-code bearing value into a single record list."""
        status = "success"
        exit_code = value.get("exit_code", 0)
        if exit_code != 0 or "_error" in value:
            status = "failure"
            value.setdefault(
                "_error",
                {
                    "kind": kind,
                    "msg": f"The {action} failed with exit code {exit_code}",
                    "details": {"exitcode": exit_code},
                },
            )
        return [
            {
                "target": "localhost",
                "action": action,
                "object": obj,
                "status": status,
                "value": value,
            }
        ]

    def run_command(self, command, target, config=None, inventory=None):
        self._check_target(target)
        value = self._exec(command)
        return self._record(
            "command", command, value, "puppetlabs.tasks/command-error"
        )

    def upload_file(
        self,
        source,
        destination,
        target,
        options=None,
        config=None,
        inventory=None,
    ):
        self._check_target(target)
        display.vvv(f"Copying {source} to {destination}")
        try:
            if os.path.isdir(source):
                shutil.copytree(source, destination, dirs_exist_ok=True)
            else:
                shutil.copy(source, destination)
        except OSError as e:
            value = {
                "_error": {
                    "kind": "puppetlabs.tasks/upload-error",
                    "msg": f"Uploading '{source}' failed: {e}",
                    "details": {},
                }
            }
        else:
            value = {
                "_output": f"Uploaded '{source}' to 'localhost:{destination}'"
            }

        return self._record(
            "upload", source, value, "puppetlabs.tasks/upload-error"
        )

    def _find_task(self, task_name: str, modulepath: Any) -> Optional[str]:
        """
        Locate a task implementation on the module path.

        ``module::task`` maps to ``<path>/module/tasks/task.*`` and a bare
        ``module`` to ``module::init``. Task metadata (``.json``) is
        skipped.

        :param str task_name: Task name
        :param Any modulepath: Single path, ``os.pathsep`` separated
            string or list of paths
        :returns Optional[str]: Path to the executable, or None
        """
        module, _, task = task_name.partition("::")
        task = task or "init"

        if isinstance(modulepath, str):
            paths = modulepath.split(os.pathsep)
        else:
            paths = list(modulepath or [])

        for path in paths:
            pattern = os.path.join(path, module, "tasks", f"{task}.*")
            for candidate in sorted(glob.glob(pattern)):
                if not candidate.endswith(".json"):
                    return candidate
        return None

    def _interpreter(self, path: str) -> List[str]:
        if path.endswith(".py"):
            return [sys.executable, path]
        if os.access(path, os.X_OK):
            return [path]
        return ["sh", path]

    def run_task(
        self, task_name, target, params=None, config=None, inventory=None
    ):
        self._check_target(target)
        params = params or {}
        modulepath = (config or {}).get("modulepath", [])

        task_path = self._find_task(task_name, modulepath)
        if task_path is None:
            value = {
                "_error": {
                    "kind": "bolt/unknown-task",
                    "msg": f"Could not find a task named '{task_name}'",
                    "details": {},
                }
            }
            return self._record("task", task_name, value, "bolt/unknown-task")

        env = dict(os.environ)
        for key, val in params.items():
            env[f"PT_{key}"] = val if isinstance(val, str) else json.dumps(val)

        executed = self._exec(
            self._interpreter(task_path), stdin=json.dumps(params), env=env
        )

        try:
            value = json.loads(executed["stdout"])
        except ValueError:
            value = None
        if not isinstance(value, dict):
            value = {"_output": executed["stdout"]}

        if executed["exit_code"] != 0 and "_error" not in value:
            value["_error"] = {
                "kind": "puppetlabs.tasks/task-error",
                "msg": (
                    executed["stderr"].strip()
                    or f"The task failed with exit code {executed['exit_code']}"
                ),
                "details": {"exitcode": executed["exit_code"]},
            }

        return self._record(
            "task", task_name, value, "puppetlabs.tasks/task-error"
        )

    def run_script(
        self,
        script,
        target,
        arguments=None,
        options=None,
        config=None,
        inventory=None,
    ):
        self._check_target(target)
        env = None
        env_vars = (options or {}).get("env_vars")
        if env_vars:
            env = dict(os.environ)
            env.update({k: str(v) for k, v in env_vars.items()})

        cmd = self._interpreter(script) + [str(a) for a in arguments or []]
        value = self._exec(cmd, env=env)
        return self._record(
            "script", script, value, "puppetlabs.tasks/command-error"
        )
