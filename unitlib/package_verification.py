#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# ****************************************************************************************************************************************************
# * BSD 3-Clause License
# *
# * Copyright (c) 2025, Mana Battery
# * All rights reserved.
# *
# * Redistribution and use in source and binary forms, with or without modification, are permitted provided that the following conditions are met:
# *
# * 1. Redistributions of source code must retain the above copyright notice, this list of conditions and the following disclaimer.
# * 2. Redistributions in binary form must reproduce the above copyright notice, this list of conditions and the following disclaimer in the
# *    documentation and/or other materials provided with the distribution.
# * 3. Neither the name of the copyright holder nor the names of its contributors may be used to endorse or promote products derived from this
# *    software without specific prior written permission.
# *
# * THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO,
# * THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR
# * CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO,
# * PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
# * LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
# * EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
# ****************************************************************************************************************************************************
"""Runtime package verification for buildCheckUnits.

The analysis relies on NetworkX features that older releases lack
(topological_generations needs 2.6), so the CLI checks installed versions
before doing any work instead of failing halfway through a run.
"""

import logging
from importlib.metadata import PackageNotFoundError, version
from typing import Dict, Optional, Tuple

from packaging.version import parse

from .color_utils import print_error, print_info, print_success
from .constants import PackageRequirementError

logger = logging.getLogger(__name__)

# PyPI package name -> minimum version
PACKAGE_REQUIREMENTS: Dict[str, str] = {
    "networkx": "2.6",
    "colorama": "0.4",
    "packaging": "20.0",
}


def check_package_version(package_name: str, min_version: Optional[str] = None) -> Tuple[bool, bool, Optional[str]]:
    """Check whether a package is installed and new enough.

    Args:
        package_name: PyPI package name (e.g. 'networkx')
        min_version: Minimum version; defaults to PACKAGE_REQUIREMENTS

    Returns:
        Tuple of (is_installed, meets_version, installed_version)

    Raises:
        ValueError: If no requirement is known for package_name
    """
    if min_version is None:
        min_version = PACKAGE_REQUIREMENTS.get(package_name)
        if min_version is None:
            raise ValueError(f"No version requirement specified for {package_name}")

    try:
        installed_version = version(package_name)
    except PackageNotFoundError:
        return False, False, None

    return True, parse(installed_version) >= parse(min_version), installed_version


def require_package(package_name: str, context: str = "unit analysis") -> None:
    """Ensure a package from PACKAGE_REQUIREMENTS is usable.

    Raises:
        PackageRequirementError: If the package is missing or too old
    """
    min_version = PACKAGE_REQUIREMENTS[package_name]
    is_installed, meets_version, installed_version = check_package_version(package_name, min_version)

    if not is_installed:
        raise PackageRequirementError(f"{package_name} is required for {context}. Install with: pip install '{package_name}>={min_version}'")
    if not meets_version:
        raise PackageRequirementError(
            f"{package_name} {installed_version} is too old for {context}. Upgrade with: pip install --upgrade '{package_name}>={min_version}'"
        )

    logger.debug("%s %s satisfies >=%s", package_name, installed_version, min_version)


def check_all_packages() -> bool:
    """Check every runtime package and print its status.

    Returns:
        True if all packages are installed and new enough
    """
    print_info("Checking runtime packages...")
    all_ok = True

    for package_name, min_version in PACKAGE_REQUIREMENTS.items():
        is_installed, meets_version, installed_version = check_package_version(package_name, min_version)
        if is_installed and meets_version:
            print_success(f"  {package_name} {installed_version}")
        elif is_installed:
            print_error(f"  {package_name} {installed_version} (need >={min_version})", prefix=False)
            all_ok = False
        else:
            print_error(f"  {package_name} not installed (need >={min_version})", prefix=False)
            all_ok = False

    if all_ok:
        print_success("All required packages are available")
    else:
        requirements = " ".join(f"'{name}>={ver}'" for name, ver in PACKAGE_REQUIREMENTS.items())
        print_error(f"Some required packages are missing or too old. Install with: pip install {requirements}")
    return all_ok
