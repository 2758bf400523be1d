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

"""Loading and querying the acceptance test inventory file."""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

import yaml

from litmus.errors import LitmusInventoryError

INVENTORY_PATH = os.path.join("spec", "fixtures", "litmus_inventory.yaml")


def inventory_hash_from_inventory_file(
    inventory_full_path: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Read the inventory file into a dictionary.

    :param Optional[str] inventory_full_path: Path to the inventory,
        defaults to ``spec/fixtures/litmus_inventory.yaml`` under the
        current directory
    :returns dict: Parsed inventory
    :raises LitmusInventoryError: If the file is missing or is not a
        YAML mapping
    """
    path = inventory_full_path or os.path.join(os.getcwd(), INVENTORY_PATH)

    if not os.path.isfile(path):
        raise LitmusInventoryError(f"There is no inventory file at '{path}'")

    with open(path, "r") as f:
        try:
            inventory = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise LitmusInventoryError(
                f"Unable to parse inventory file '{path}': {e}"
            )

    if not isinstance(inventory, dict):
        raise LitmusInventoryError(
            f"Inventory file '{path}' does not contain a mapping"
        )

    return inventory


def targets_in_inventory(inventory: Dict[str, Any]) -> List[str]:
    """
    List every reference that names a target in an inventory, recursing
    into nested groups.

    A target can be referred to by its ``name``, its ``uri`` and any of
    its ``alias`` entries.

    :param dict inventory: Inventory as returned by
        :func:`inventory_hash_from_inventory_file`
    :returns list: Target references in declaration order, without
        duplicates
    """
    names: List[str] = []

    def _walk(group: Dict[str, Any]) -> None:
        for target in group.get("targets") or []:
            if isinstance(target, str):
                refs = [target]
            else:
                aliases = target.get("alias") or []
                if isinstance(aliases, str):
                    aliases = [aliases]
                refs = [target.get("name"), target.get("uri")] + list(aliases)
            for ref in refs:
                if ref and ref not in names:
                    names.append(ref)
        for child in group.get("groups") or []:
            _walk(child)

    _walk(inventory)
    return names
