# -*- coding: utf-8 -*-
# Tincture: Resolving and applying color management transforms.
#
# Copyright (c) 2026 opticsWolf
#
# SPDX-License-Identifier: LGPL-3.0-or-later

"""
Project metadata for Tincture, plus the versions of the libraries it runs on
(handy when comparing processor output across machines).
"""

from importlib import metadata as _metadata
from typing import Final

__title__: Final[str] = "Tincture"
__description__: Final[str] = (
    "Resolves OpenColorIO configurations into reusable compiled color "
    "transforms and applies them to in-memory RGB pixels."
)
__version__: Final[str] = "0.1.0"
__author__: Final[str] = "opticsWolf"
__license__: Final[str] = "LGPL-3.0-or-later"
__copyright__: Final[str] = "Copyright (c) 2026 opticsWolf"

# Import name -> distribution name on the package index.
_RUNTIME_DISTRIBUTIONS: Final[dict[str, str]] = {
    "PyOpenColorIO": "opencolorio",
    "numpy": "numpy",
    "numba": "numba",
    "scipy": "scipy",
}


def runtime_versions() -> dict[str, str]:
    """Installed versions of the runtime dependencies ("missing" if absent)."""
    versions = {}
    for module, dist in _RUNTIME_DISTRIBUTIONS.items():
        try:
            versions[module] = _metadata.version(dist)
        except _metadata.PackageNotFoundError:
            versions[module] = "missing"
    return versions


def metadata_summary() -> dict[str, str]:
    """Returns a dictionary of project metadata for introspection."""
    return {
        "title": __title__,
        "version": __version__,
        "license": __license__,
        "description": __description__,
        "copyright": __copyright__,
        **{f"runtime.{k}": v for k, v in runtime_versions().items()},
    }
