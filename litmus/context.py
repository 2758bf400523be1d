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
Execution context shared by the helpers.

The context answers "where does this run": the target name, the engine
that reaches it and the inventory that describes it. Helpers build one
from the process environment on every call unless the caller passes
their own, which keeps target selection testable without touching
``os.environ``.
"""

from __future__ import annotations

import os
from typing import Any, Dict, Mapping, Optional

from litmus.engine import Engine, LocalEngine
from litmus.errors import LitmusInventoryError
from litmus.inventory import (
    inventory_hash_from_inventory_file,
    targets_in_inventory,
)

LOCALHOST = "localhost"


def fixtures_modulepath() -> str:
    """Return the module path used for local applies and tasks."""
    return os.path.join(os.getcwd(), "spec", "fixtures", "modules")


class ExecutionContext:
    """
    Target, engine and inventory for a single helper invocation.

    :param Optional[str] target: Target name; ``None`` or ``localhost``
        runs locally
    :param Optional[Engine] engine: Engine that executes operations,
        defaults to :class:`LocalEngine`
    :param Optional[str] inventory_path: Inventory file override
    :param bool debug: Print apply diagnostics
    :param Optional[str] modulepath: Module path override
    """

    def __init__(
        self,
        target: Optional[str] = None,
        engine: Optional[Engine] = None,
        inventory_path: Optional[str] = None,
        debug: bool = False,
        modulepath: Optional[str] = None,
    ) -> None:
        self.target = target
        self.engine = engine or LocalEngine()
        self.inventory_path = inventory_path
        self.debug = debug
        self.modulepath = modulepath or fixtures_modulepath()
        self._inventory: Optional[Dict[str, Any]] = None

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        engine: Optional[Engine] = None,
    ) -> "ExecutionContext":
        """
        Build a context from ``TARGET_HOST`` and ``RSPEC_DEBUG``.

        :param Optional[Mapping] environ: Environment to read, defaults
            to ``os.environ``
        :param Optional[Engine] engine: Engine to attach
        :returns ExecutionContext: A fresh context
        """
        if environ is None:
            environ = os.environ
        return cls(
            target=environ.get("TARGET_HOST"),
            engine=engine,
            debug=bool(environ.get("RSPEC_DEBUG")),
        )

    @property
    def is_local(self) -> bool:
        return self.target is None or self.target == LOCALHOST

    def inventory(self) -> Optional[Dict[str, Any]]:
        """
        Return the inventory for a remote target, loading it once.

        :returns Optional[dict]: ``None`` for a local target
        :raises LitmusInventoryError: If the target is not in the
            inventory
        """
        if self.is_local:
            return None

        if self._inventory is None:
            inventory = inventory_hash_from_inventory_file(
                self.inventory_path
            )
            if self.target not in targets_in_inventory(inventory):
                raise LitmusInventoryError(
                    f"Target '{self.target}' is not in the inventory"
                )
            self._inventory = inventory

        return self._inventory
