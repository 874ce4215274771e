# -*- coding: utf-8 -*-
"""
Tincture: Resolving and applying color management transforms
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: tincture_config.py — Read-only handle over an OpenColorIO configuration.

Design notes:
  1.  Loading is atomic.  The engine parses the document (and, with
      ``validate=True``, runs its consistency check) before a ``ColorConfig``
      is constructed, so a handle either exists and is fully usable, or
      ``ConfigLoadFailed`` was raised.  Validation is opt-in: the engine
      rejects documents with no displays, which are otherwise loadable and
      simply list none.
  2.  Displays, views, roles and color-space names are snapshotted into
      tuples/dicts at load time.  Queries never touch the engine again and
      return the same sequences on every call (declaration order).
  3.  No module-level registry: every load yields an independent handle.
  4.  ``release()`` drops the engine object.  Further queries raise
      ``InvalidHandle``; releasing twice is a no-op.  Processors built from
      the handle keep working after it is released.

Thread safety:
  The handle is never mutated after load (``release`` aside), so concurrent
  readers need no locking.
"""

from __future__ import annotations

import logging
import os
from types import MappingProxyType
from typing import (
    TYPE_CHECKING,
    Dict,
    Final,
    Mapping,
    Optional,
    Tuple,
    Union,
)

import PyOpenColorIO as ocio

from tincture_errors import (
    ConfigLoadFailed,
    InvalidHandle,
    UnknownDisplay,
    UnknownRole,
)

if TYPE_CHECKING:
    from tincture_processor import Processor

__all__ = [
    "SCENE_LINEAR_ROLE",
    "BUILTIN_CONFIG_ALIASES",
    "ColorConfig",
    "load_config",
    "release_config",
    "list_displays",
    "list_views",
    "resolve_role",
]

log = logging.getLogger(__name__)

# --- Constants ---
SCENE_LINEAR_ROLE: Final[str] = "scene_linear"
BUILTIN_URI_PREFIX: Final[str] = "ocio://"

# Short names accepted wherever a config location is expected.
BUILTIN_CONFIG_ALIASES: Final[Mapping[str, str]] = MappingProxyType({
    "default": "ocio://default",
    "cg": "ocio://cg-config-latest",
    "studio": "ocio://studio-config-latest",
    "aces1.3": "ocio://cg-config-v1.0.0_aces-v1.3_ocio-v2.1",
})

PathLike = Union[str, "os.PathLike[str]"]


def _resolve_location(location: PathLike) -> str:
    """Map aliases to builtin URIs; pass paths and URIs through."""
    text = os.fspath(location)
    return BUILTIN_CONFIG_ALIASES.get(text.strip().lower(), text)


# ═══════════════════════════════════════════════════════════════════════════════
# 1.  ColorConfig
# ═══════════════════════════════════════════════════════════════════════════════
class ColorConfig:
    """
    Immutable view of a loaded color-management configuration.

    Use ``ColorConfig.from_file`` / ``load_config`` or
    ``ColorConfig.from_string`` to create one; the constructor expects an
    engine config that has already been parsed.

    Supports the context-manager protocol::

        with load_config("studio.ocio") as cfg:
            proc = cfg.display_view_processor("sRGB", "Standard")
    """

    __slots__ = (
        "_config",
        "_source",
        "_name",
        "_description",
        "_displays",
        "_views",
        "_roles",
        "_color_spaces",
    )

    def __init__(self, config: ocio.Config, source: str) -> None:
        self._config: Optional[ocio.Config] = config
        self._source = source
        self._name: str = config.getName() or ""
        self._description: str = config.getDescription() or ""
        self._displays: Tuple[str, ...] = tuple(config.getDisplays())
        self._views: Dict[str, Tuple[str, ...]] = {
            display: tuple(config.getViews(display)) for display in self._displays
        }
        self._roles: Dict[str, str] = {
            role: color_space for role, color_space in config.getRoles()
        }
        self._color_spaces: Tuple[str, ...] = tuple(config.getColorSpaceNames())

    # -- construction ------------------------------------------------------
    @classmethod
    def from_file(cls, location: PathLike, *, validate: bool = False) -> ColorConfig:
        """
        Load the configuration at *location*.

        *location* may be a filesystem path, an ``ocio://`` builtin URI, or
        one of the ``BUILTIN_CONFIG_ALIASES`` keys.  With ``validate=True``
        the engine's consistency check runs too (dangling roles, displays
        pointing at missing color spaces, no displays at all).

        Raises:
            ConfigLoadFailed: unreadable path, unparseable or invalid document.
        """
        source = _resolve_location(location)
        if not source.startswith(BUILTIN_URI_PREFIX) and not os.path.isfile(source):
            raise ConfigLoadFailed(source, "unreadable", "no such file")
        try:
            engine_config = ocio.Config.CreateFromFile(source)
        except ocio.Exception as exc:
            raise ConfigLoadFailed(source, "malformed", str(exc)) from exc
        handle = cls._from_engine(engine_config, source, validate)
        log.debug(
            "Loaded color config %r: %d displays, %d color spaces.",
            source, len(handle._displays), len(handle._color_spaces),
        )
        return handle

    @classmethod
    def from_string(
        cls, text: str, source: str = "<string>", *, validate: bool = False
    ) -> ColorConfig:
        """Load a configuration held in memory (YAML text)."""
        try:
            engine_config = ocio.Config.CreateFromStream(text)
        except ocio.Exception as exc:
            raise ConfigLoadFailed(source, "malformed", str(exc)) from exc
        handle = cls._from_engine(engine_config, source, validate)
        log.debug("Loaded color config from %s.", source)
        return handle

    @classmethod
    def _from_engine(cls, engine_config: ocio.Config, source: str, validate: bool) -> ColorConfig:
        try:
            if validate:
                engine_config.validate()
            return cls(engine_config, source)
        except ocio.Exception as exc:
            raise ConfigLoadFailed(source, "invalid", str(exc)) from exc

    # -- lifetime ----------------------------------------------------------
    def release(self) -> None:
        """Drop the engine config. Idempotent."""
        if self._config is None:
            return
        self._config = None
        log.debug("Released color config %r.", self._source)

    @property
    def released(self) -> bool:
        return self._config is None

    def __enter__(self) -> ColorConfig:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "released" if self._config is None else f"{len(self._displays)} displays"
        return f"ColorConfig(source={self._source!r}, {state})"

    def _engine(self) -> ocio.Config:
        """Return the live engine config or raise ``InvalidHandle``."""
        config = self._config
        if config is None:
            raise InvalidHandle(f"color config {self._source!r} has been released")
        return config

    # -- metadata ----------------------------------------------------------
    @property
    def source(self) -> str:
        """Path or URI the configuration was loaded from."""
        return self._source

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    # -- structural queries ------------------------------------------------
    def displays(self) -> Tuple[str, ...]:
        """Declared displays in document order (empty when none)."""
        self._engine()
        return self._displays

    def views(self, display: str) -> Tuple[str, ...]:
        """
        Views declared for *display*, in document order.

        Raises:
            UnknownDisplay: *display* is not one of ``displays()``.
        """
        self._engine()
        try:
            return self._views[display]
        except KeyError:
            raise UnknownDisplay(display) from None

    def resolve_role(self, role: str) -> str:
        """
        Color-space name bound to *role*.

        Raises:
            UnknownRole: the configuration does not define *role*.
        """
        self._engine()
        try:
            return self._roles[role]
        except KeyError:
            raise UnknownRole(role) from None

    def roles(self) -> Mapping[str, str]:
        """Read-only role → color-space mapping."""
        self._engine()
        return MappingProxyType(self._roles)

    def color_spaces(self) -> Tuple[str, ...]:
        """Active color-space names in document order."""
        self._engine()
        return self._color_spaces

    def has_color_space(self, name: str) -> bool:
        """True if *name* resolves to a color space (roles and aliases included)."""
        return self._engine().getColorSpace(name) is not None

    def default_display(self) -> str:
        """The engine's default display, or ``""`` when none is declared."""
        engine = self._engine()
        if not self._displays:
            return ""
        return engine.getDefaultDisplay()

    def default_view(self, display: str) -> str:
        """The engine's default view for *display*."""
        engine = self._engine()
        if display not in self._views:
            raise UnknownDisplay(display)
        return engine.getDefaultView(display)

    # -- processor construction (see tincture_processor) -------------------
    def processor(self, src: str, dst: str, *, strict: bool = False) -> Processor:
        """Build a processor between two color spaces."""
        from tincture_processor import build_processor
        return build_processor(self, src, dst, strict=strict)

    def display_view_processor(
        self, display: str, view: str, *, strict: bool = False
    ) -> Processor:
        """Build a scene-linear → (display, view) processor."""
        from tincture_processor import build_display_view_processor
        return build_display_view_processor(self, display, view, strict=strict)


# ═══════════════════════════════════════════════════════════════════════════════
# 2.  Functional surface
# ═══════════════════════════════════════════════════════════════════════════════
def load_config(location: PathLike, *, validate: bool = False) -> ColorConfig:
    """Load a configuration from a path, ``ocio://`` URI or builtin alias."""
    return ColorConfig.from_file(location, validate=validate)


def release_config(config: Optional[ColorConfig]) -> None:
    """Release *config*; ``None`` and already-released handles are ignored."""
    if config is not None:
        config.release()


def list_displays(config: ColorConfig) -> Tuple[str, ...]:
    return config.displays()


def list_views(config: ColorConfig, display: str) -> Tuple[str, ...]:
    return config.views(display)


def resolve_role(config: ColorConfig, role: str) -> str:
    return config.resolve_role(role)
