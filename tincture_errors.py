# -*- coding: utf-8 -*-
"""
Tincture: Resolving and applying color management transforms
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: tincture_errors.py — Error taxonomy shared by every Tincture module.

Every exception carries an ``ErrorKind`` so callers that only care about the
failure family can branch on ``exc.kind`` instead of the concrete class:

    LOAD_FAILED     configuration unreadable or unparseable
    UNKNOWN_NAME    display, view, role or color space not in the config
    BUILD_FAILED    no transform path, or the engine failed to compile one
    INVALID_HANDLE  operation attempted on a released handle

Name lookups performed while building a processor are reported as
``ProcessorBuildFailed`` with ``kind == ErrorKind.UNKNOWN_NAME``; the specific
``UnknownName`` subclass is attached as ``__cause__``.
"""

from __future__ import annotations

import enum
from typing import Optional

__all__ = [
    "ErrorKind",
    "TinctureError",
    "ConfigLoadFailed",
    "UnknownName",
    "UnknownDisplay",
    "UnknownView",
    "UnknownRole",
    "UnknownColorSpace",
    "ProcessorBuildFailed",
    "InvalidHandle",
    "CubeParseError",
    "BakeCancelled",
]


class ErrorKind(enum.Enum):
    """Failure families a caller can distinguish."""
    LOAD_FAILED = "load_failed"
    UNKNOWN_NAME = "unknown_name"
    BUILD_FAILED = "build_failed"
    INVALID_HANDLE = "invalid_handle"


class TinctureError(Exception):
    """Base class for all Tincture failures."""
    kind: ErrorKind = ErrorKind.BUILD_FAILED


# ═══════════════════════════════════════════════════════════════════════════════
# 1.  Loading
# ═══════════════════════════════════════════════════════════════════════════════
class ConfigLoadFailed(TinctureError):
    """
    A configuration could not be produced from *location*.

    ``reason`` is ``"unreadable"`` when the location does not exist or cannot
    be read, ``"malformed"`` when the engine could not parse it, and
    ``"invalid"`` when it parsed but failed validation.  Callers are not
    required to distinguish these.
    """
    kind = ErrorKind.LOAD_FAILED

    def __init__(self, location: str, reason: str, detail: str = "") -> None:
        self.location = location
        self.reason = reason
        self.detail = detail
        msg = f"failed to load color config {location!r} ({reason})"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


# ═══════════════════════════════════════════════════════════════════════════════
# 2.  Name resolution
# ═══════════════════════════════════════════════════════════════════════════════
class UnknownName(TinctureError, LookupError):
    """A name is not declared by the loaded configuration."""
    kind = ErrorKind.UNKNOWN_NAME
    category: str = "name"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"unknown {self.category} {name!r}")


class UnknownDisplay(UnknownName):
    category = "display"


class UnknownView(UnknownName):
    category = "view"

    def __init__(self, name: str, display: Optional[str] = None) -> None:
        self.display = display
        super().__init__(name)
        if display is not None:
            self.args = (f"unknown view {name!r} for display {display!r}",)


class UnknownRole(UnknownName):
    category = "role"


class UnknownColorSpace(UnknownName):
    category = "color space"


# ═══════════════════════════════════════════════════════════════════════════════
# 3.  Building & handles
# ═══════════════════════════════════════════════════════════════════════════════
class ProcessorBuildFailed(TinctureError):
    """
    No processor could be built.

    ``kind`` is ``BUILD_FAILED`` for engine/path failures and
    ``UNKNOWN_NAME`` when an endpoint could not be resolved; ``name`` then
    holds the offending name.
    """
    kind = ErrorKind.BUILD_FAILED

    def __init__(
        self,
        message: str,
        *,
        name: Optional[str] = None,
        kind: Optional[ErrorKind] = None,
    ) -> None:
        self.name = name
        if kind is not None:
            self.kind = kind
        super().__init__(message)

    @classmethod
    def from_unknown(cls, exc: UnknownName) -> "ProcessorBuildFailed":
        """Wrap a resolution failure; the caller chains it with ``from exc``."""
        return cls(str(exc), name=exc.name, kind=ErrorKind.UNKNOWN_NAME)


class InvalidHandle(TinctureError):
    """Operation attempted on a released configuration or processor."""
    kind = ErrorKind.INVALID_HANDLE


# ═══════════════════════════════════════════════════════════════════════════════
# 4.  Cube LUTs
# ═══════════════════════════════════════════════════════════════════════════════
class CubeParseError(TinctureError, ValueError):
    """Malformed ``.cube`` text."""
    kind = ErrorKind.LOAD_FAILED


class BakeCancelled(TinctureError):
    """A LUT bake was cancelled by its progress callback."""
    kind = ErrorKind.BUILD_FAILED
