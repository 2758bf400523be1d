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
Generate the acceptance test matrix from metadata.json.

Platforms come from ``operatingsystem_support`` and Puppet collections
from the ``puppet`` entry in ``requirements``. The matrix is written to
``$GITHUB_OUTPUT`` as the ``matrix`` output.
"""

import json
import os
import re
import sys

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import Version

IMAGE_TABLE = {
    "RedHat-7": "rhel-7",
    "RedHat-8": "rhel-8",
    "SLES-12": "sles-12",
    "SLES-15": "sles-15",
    "Windows-2012 R2": "windows-2012-r2-core",
    "Windows-2016": "windows-2016",
    "Windows-2019": "windows-2019-core",
}

DOCKER_PLATFORMS = [
    "CentOS-6",
    "CentOS-7",
    "CentOS-8",
    "Debian-10",
    "Debian-8",
    "Debian-9",
    "OracleLinux-6",
    "OracleLinux-7",
    "Scientific-6",
    "Scientific-7",
    "Ubuntu-14.04",
    "Ubuntu-16.04",
    "Ubuntu-18.04",
    "Ubuntu-20.04",
]

# Latest release in each collection, compared against the requirement
COLLECTION_TABLE = {
    "5.5.22": "puppet5",
    "6.21.0": "puppet6-nightly",
    "7.4.0": "puppet7-nightly",
}

# Two clauses only, e.g. ">= 6.21.0 < 7.0.0"
VERSION_REQUIREMENT_RE = re.compile(
    r"^([>=<]{1,2})\s*([\d.]+)\s+([>=<]{1,2})\s*([\d.]+)$"
)


def release_sort_key(release):
    """Sort releases on their leading number, e.g. '2012 R2' -> 2012."""
    match = re.match(r"\d+", str(release))
    return int(match.group()) if match else 0


def platforms_from_metadata(metadata):
    """Map supported operating system releases to test images."""
    platforms = []

    support = sorted(
        metadata.get("operatingsystem_support", []),
        key=lambda sup: sup["operatingsystem"],
    )
    for sup in support:
        os_name = sup["operatingsystem"]
        releases = sorted(
            sup.get("operatingsystemrelease", []), key=release_sort_key
        )
        for release in releases:
            image_key = f"{os_name}-{release}"
            if image_key in IMAGE_TABLE:
                platforms.append(IMAGE_TABLE[image_key])
            elif image_key in DOCKER_PLATFORMS:
                print(f"Expecting {image_key} test using docker on travis")
            else:
                print(f"::warning::Cannot find image for {image_key}")

    return platforms


def parse_version_requirement(requirement):
    """
    Turn a two clause version requirement into a SpecifierSet.

    Returns None if the requirement is not understood.
    """
    if not isinstance(requirement, str):
        return None

    match = VERSION_REQUIREMENT_RE.match(requirement.strip())
    if match is None:
        return None

    cmp_one, ver_one, cmp_two, ver_two = match.groups()
    clauses = []
    for cmp, ver in ((cmp_one, ver_one), (cmp_two, ver_two)):
        if cmp == "=":
            cmp = "=="
        clauses.append(f"{cmp}{ver}")

    try:
        return SpecifierSet(",".join(clauses))
    except InvalidSpecifier:
        return None


def collections_from_metadata(metadata):
    """Select the collections satisfying the puppet requirement."""
    collections = []

    for req in metadata.get("requirements") or []:
        if req.get("name") != "puppet":
            continue

        requirement = req.get("version_requirement")
        specifier = parse_version_requirement(requirement)
        if specifier is None:
            print(
                f"::warning::Didn't recognize version_requirement "
                f"'{requirement}'"
            )
            break

        for version, collection in COLLECTION_TABLE.items():
            if Version(version) in specifier:
                collections.append(collection)

    if not collections:
        collections = list(COLLECTION_TABLE.values())

    return collections


def build_matrix(metadata):
    """Build the deduplicated, sorted platform x collection matrix."""
    return {
        "platform": sorted(set(platforms_from_metadata(metadata))),
        "collection": sorted(set(collections_from_metadata(metadata))),
    }


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    metadata_path = argv[0] if argv else "metadata.json"

    output_path = os.environ.get("GITHUB_OUTPUT")
    if not output_path:
        print("::error::GITHUB_OUTPUT environment variable not set")
        return 1

    with open(metadata_path, "r") as f:
        metadata = json.load(f)

    matrix = build_matrix(metadata)

    with open(output_path, "a") as f:
        f.write(f"matrix={json.dumps(matrix, separators=(',', ':'))}\n")

    cells = len(matrix["platform"]) * len(matrix["collection"])
    print(f"Created matrix with {cells} cells")
    return 0


if __name__ == "__main__":
    sys.exit(main())
