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

"""Argument specs and validation for helper options."""

from __future__ import annotations

from typing import Any, Dict, Optional

from ansible.module_utils.common.arg_spec import ArgumentSpecValidator

from litmus.errors import LitmusUsageError

COMMON_ARGUMENT_SPEC = {
    'expect_failures': {'type': 'bool', 'default': False},
}

APPLY_ARGUMENT_SPEC = dict(
    COMMON_ARGUMENT_SPEC,
    catch_changes={'type': 'bool', 'default': False},
    manifest_file_location={'type': 'str'},
    hiera_config={'type': 'str'},
    prefix_command={'type': 'str'},
    debug={'type': 'bool', 'default': False},
    noop={'type': 'bool', 'default': False},
)


def validate_options(
    opts: Optional[Dict[str, Any]],
    argument_spec: Dict[str, Dict[str, Any]],
    action: str,
) -> Dict[str, Any]:
    """
    Validate a helper options dictionary against an argument spec.

    :param Optional[dict] opts: Options passed by the caller
    :param dict argument_spec: Ansible style argument spec
    :param str action: Name of the helper, for error messages
    :returns dict: Validated options with defaults filled in
    :raises LitmusUsageError: On unknown keys or invalid values
    """
    if opts is None:
        opts = {}
    if not isinstance(opts, dict):
        raise LitmusUsageError(
            f"{action} expects opts to be a dict, got {type(opts).__name__}"
        )

    result = ArgumentSpecValidator(argument_spec).validate(opts)
    if result.error_messages:
        raise LitmusUsageError(
            f"Invalid options for {action}: "
            f"{'; '.join(result.error_messages)}"
        )

    return result.validated_parameters
