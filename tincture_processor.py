# -*- coding: utf-8 -*-
"""
Tincture: Resolving and applying color management transforms
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: tincture_processor.py — Compiled, directional transform handles.

A ``Processor`` wraps the engine's CPU processor for one resolved pair of
endpoints.  Building is expensive (graph search + compilation); applying is
the hot path and is safe to call per pixel.

Endpoints:
  - color-space pair:  ``build_processor(config, src, dst)``
  - display + view:    ``build_display_view_processor(config, display, view)``
    (source is the config's ``scene_linear`` role, direction fixed forward)

Apply contract:
  ``apply_rgb`` mutates a 3-channel buffer in place using float32 math and
  never clamps.  An absent or released processor, an absent, immutable,
  integer-typed or wrongly sized buffer, and non-finite values are silent
  no-ops.  This
  relaxation exists only on ``apply_rgb``; processors built with
  ``strict=True`` raise instead.  ``apply_array`` is the batch form and
  always raises on bad input.

Thread safety:
  A processor is immutable after construction.  Concurrent ``apply_rgb`` /
  ``apply_array`` calls on disjoint buffers are safe when ``is_dynamic`` is
  False: the engine's CPU processor is then const and holds no mutable
  cache.  Dynamic processors expose engine-side properties that can be
  changed under a running apply; ``thread_safe`` reports this.
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import MutableSequence
from typing import Any, Optional

import numpy as np
import PyOpenColorIO as ocio

from tincture_config import SCENE_LINEAR_ROLE, ColorConfig
from tincture_errors import (
    InvalidHandle,
    ProcessorBuildFailed,
    UnknownColorSpace,
    UnknownName,
    UnknownView,
)

__all__ = [
    "Processor",
    "build_processor",
    "build_display_view_processor",
    "release_processor",
    "apply_rgb",
]

log = logging.getLogger(__name__)

PIXEL_DTYPE = np.float32


def _as_pixel(rgb: Any) -> Optional[np.ndarray]:
    """
    Return a float32 (3,) view or copy of *rgb*, or None if it is unusable.

    A float32 C-contiguous ndarray of size 3 is returned as-is so the engine
    writes straight into the caller's memory.  Integer arrays are rejected;
    writing the result back would truncate it.
    """
    if isinstance(rgb, np.ndarray):
        if rgb.size != 3 or not rgb.flags.writeable:
            return None
        if not np.issubdtype(rgb.dtype, np.floating):
            return None
        if rgb.dtype == PIXEL_DTYPE and rgb.ndim == 1 and rgb.flags.c_contiguous:
            pixel = rgb
        else:
            try:
                pixel = np.ascontiguousarray(rgb, dtype=PIXEL_DTYPE).reshape(3)
            except (TypeError, ValueError):
                return None
    elif isinstance(rgb, MutableSequence) and not isinstance(rgb, bytearray):
        if len(rgb) != 3:
            return None
        try:
            pixel = np.array(rgb, dtype=PIXEL_DTYPE)
        except (TypeError, ValueError):
            return None
        if pixel.shape != (3,):
            return None
    else:
        return None

    if not np.isfinite(pixel).all():
        return None
    return pixel


# ═══════════════════════════════════════════════════════════════════════════════
# 1.  Processor
# ═══════════════════════════════════════════════════════════════════════════════
class Processor:
    """
    Compiled CPU transform between two resolved endpoints.

    Self-contained once built: it does not reference the ``ColorConfig`` it
    came from, so releasing the config leaves the processor usable.

    Attributes (read-only):
        source / destination : str
            Human-readable endpoint labels.
        cache_id : str
            Engine cache identifier; equal ids mean equal pipelines.
        is_noop, is_identity, has_channel_crosstalk, is_dynamic : bool
            Engine facts captured at build time.
    """

    __slots__ = (
        "_cpu",
        "_source",
        "_destination",
        "_cache_id",
        "_is_noop",
        "_is_identity",
        "_crosstalk",
        "_dynamic",
        "_strict",
    )

    def __init__(
        self,
        processor: ocio.Processor,
        source: str,
        destination: str,
        *,
        strict: bool = False,
    ) -> None:
        cpu = processor.getDefaultCPUProcessor()
        self._cpu: Optional[ocio.CPUProcessor] = cpu
        self._source = source
        self._destination = destination
        self._cache_id: str = processor.getCacheID()
        self._is_noop: bool = processor.isNoOp()
        self._is_identity: bool = cpu.isIdentity()
        self._crosstalk: bool = processor.hasChannelCrosstalk()
        self._dynamic: bool = processor.isDynamic()
        self._strict = strict

    # -- lifetime ----------------------------------------------------------
    def release(self) -> None:
        """Drop the compiled pipeline. Idempotent."""
        if self._cpu is None:
            return
        self._cpu = None
        log.debug("Released processor %s -> %s.", self._source, self._destination)

    @property
    def released(self) -> bool:
        return self._cpu is None

    def __enter__(self) -> Processor:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()

    def __repr__(self) -> str:
        state = " released" if self._cpu is None else ""
        return f"Processor({self._source!r} -> {self._destination!r}{state})"

    # -- metadata ----------------------------------------------------------
    @property
    def source(self) -> str:
        return self._source

    @property
    def destination(self) -> str:
        return self._destination

    @property
    def cache_id(self) -> str:
        return self._cache_id

    @property
    def is_noop(self) -> bool:
        return self._is_noop

    @property
    def is_identity(self) -> bool:
        return self._is_identity

    @property
    def has_channel_crosstalk(self) -> bool:
        return self._crosstalk

    @property
    def is_dynamic(self) -> bool:
        return self._dynamic

    @property
    def thread_safe(self) -> bool:
        """True when concurrent applies on disjoint buffers are safe."""
        return not self._dynamic

    @property
    def strict(self) -> bool:
        return self._strict

    # -- application -------------------------------------------------------
    def apply_rgb(self, rgb: Any) -> None:
        """
        Transform one RGB triple in place.

        *rgb* is a list or numpy array holding exactly three finite values.
        Invalid input is ignored unless the processor was built strict.
        """
        cpu = self._cpu
        if cpu is None:
            if self._strict:
                raise InvalidHandle(f"{self!r} has been released")
            return

        pixel = _as_pixel(rgb)
        if pixel is None:
            if self._strict:
                raise ValueError(
                    f"Expected a mutable buffer of 3 finite values, got {rgb!r}"
                )
            return

        cpu.applyRGB(pixel)

        if pixel is rgb:
            return
        if isinstance(rgb, np.ndarray):
            rgb[...] = pixel.reshape(rgb.shape)
        else:
            rgb[:] = [float(v) for v in pixel]

    def apply_array(self, pixels: np.ndarray) -> np.ndarray:
        """
        Transform a batch of RGB pixels in place and return it.

        Args:
            pixels: float32, C-contiguous, writeable array with last
                dimension 3, e.g. (N, 3) or (H, W, 3).

        Raises:
            InvalidHandle: the processor has been released.
            ValueError: *pixels* does not meet the layout above.
        """
        cpu = self._cpu
        if cpu is None:
            raise InvalidHandle(f"{self!r} has been released")
        if not isinstance(pixels, np.ndarray):
            raise ValueError(f"Expected a numpy array, got {type(pixels).__name__}")
        if pixels.ndim == 0 or pixels.shape[-1] != 3:
            raise ValueError(f"Expected last dimension size 3, got shape {pixels.shape}")
        if pixels.dtype != PIXEL_DTYPE:
            raise ValueError(f"Expected float32 pixels, got {pixels.dtype}")
        if not (pixels.flags.c_contiguous and pixels.flags.writeable):
            raise ValueError("Pixels must be a writeable C-contiguous array")
        if pixels.size:
            # Packed (N, 3) view over the caller's memory.
            cpu.applyRGB(pixels.reshape(-1, 3))
        return pixels


# ═══════════════════════════════════════════════════════════════════════════════
# 2.  Builders
# ═══════════════════════════════════════════════════════════════════════════════
def _compile(
    engine_processor: ocio.Processor,
    source: str,
    destination: str,
    strict: bool,
) -> Processor:
    processor = Processor(engine_processor, source, destination, strict=strict)
    if processor.is_dynamic:
        log.debug(
            "Processor %s -> %s has dynamic properties; applies are not thread-safe.",
            source, destination,
        )
        if strict:
            warnings.warn(
                f"{processor!r} has dynamic properties; concurrent applies "
                f"must be serialised by the caller.",
                RuntimeWarning,
                stacklevel=3,
            )
    log.debug("Built processor %s -> %s (cache id %s).", source, destination, processor.cache_id)
    return processor


def build_processor(
    config: ColorConfig, src: str, dst: str, *, strict: bool = False
) -> Processor:
    """
    Build a forward processor from color space *src* to *dst*.

    Both names may be color-space names or roles.

    Raises:
        InvalidHandle: *config* has been released.
        ProcessorBuildFailed: unknown name (``kind`` UNKNOWN_NAME) or no
            transform path / compilation error (``kind`` BUILD_FAILED).
    """
    engine = config._engine()
    for name in (src, dst):
        if not config.has_color_space(name):
            cause = UnknownColorSpace(name)
            raise ProcessorBuildFailed.from_unknown(cause) from cause
    try:
        engine_processor = engine.getProcessor(src, dst)
        return _compile(engine_processor, src, dst, strict)
    except ocio.Exception as exc:
        raise ProcessorBuildFailed(
            f"no transform from {src!r} to {dst!r}: {exc}"
        ) from exc


def build_display_view_processor(
    config: ColorConfig, display: str, view: str, *, strict: bool = False
) -> Processor:
    """
    Build a forward processor from the ``scene_linear`` role to a
    (display, view) pair.

    Raises:
        InvalidHandle: *config* has been released.
        ProcessorBuildFailed: unknown display or view, missing
            ``scene_linear`` role, or no valid path.
    """
    engine = config._engine()
    try:
        source = config.resolve_role(SCENE_LINEAR_ROLE)
        if view not in config.views(display):
            raise UnknownView(view, display=display)
    except UnknownName as exc:
        raise ProcessorBuildFailed.from_unknown(exc) from exc

    transform = ocio.DisplayViewTransform()
    transform.setSrc(source)
    transform.setDisplay(display)
    transform.setView(view)
    destination = f"{display}/{view}"
    try:
        engine_processor = engine.getProcessor(transform, ocio.TRANSFORM_DIR_FORWARD)
        return _compile(engine_processor, source, destination, strict)
    except ocio.Exception as exc:
        raise ProcessorBuildFailed(
            f"no transform from {source!r} to {destination!r}: {exc}"
        ) from exc


# ═══════════════════════════════════════════════════════════════════════════════
# 3.  Null-tolerant functional surface
# ═══════════════════════════════════════════════════════════════════════════════
def release_processor(processor: Optional[Processor]) -> None:
    """Release *processor*; ``None`` and already-released handles are ignored."""
    if processor is not None:
        processor.release()


def apply_rgb(processor: Optional[Processor], rgb: Any) -> None:
    """
    Apply *processor* to *rgb* in place.

    Does nothing when either argument is ``None``.
    """
    if processor is None or rgb is None:
        return
    processor.apply_rgb(rgb)
