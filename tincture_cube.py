# -*- coding: utf-8 -*-
"""
Tincture: Resolving and applying color management transforms
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: tincture_cube.py — Baking processors to ``.cube`` LUTs and applying them.

A ``.cube`` file holds an optional 1D shaper and an optional 3D lattice over
the [0, 1] domain.  Lattice rows are ordered with the red index varying
fastest, then green, then blue.

Baking samples a ``Processor`` once per lattice point; it is the offline
counterpart of ``Processor.apply_array`` and is not meant for the hot path.
Applying a parsed LUT clamps inputs to the domain, runs the shaper with
per-channel linear interpolation, then the lattice with trilinear
interpolation.
"""

from __future__ import annotations

import io
import os
from typing import Callable, Final, List, Optional, Union

import numpy as np
from numba import njit
from scipy.interpolate import RegularGridInterpolator

from tincture_errors import BakeCancelled, CubeParseError
from tincture_processor import Processor

__all__ = [
    "DEFAULT_CUBE_SIZE",
    "CubeLut",
    "bake_cube",
    "parse_cube",
    "load_cube",
]

DEFAULT_CUBE_SIZE: Final[int] = 33
DEFAULT_TITLE: Final[str] = "Tincture 3D LUT"

_IGNORED_KEYWORDS: Final[tuple[str, ...]] = (
    "TITLE",
    "DOMAIN_MIN",
    "DOMAIN_MAX",
    "DOMAIN_1D",
    "DOMAIN_2D",
    "LUT_1D_INPUT_RANGE",
    "LUT_3D_INPUT_RANGE",
)

ProgressCallback = Callable[[float], bool]


@njit(cache=True)
def _cube_lattice(size: int) -> np.ndarray:
    """
    Uniform RGB lattice of ``size**3`` points, red fastest.

    Row ``b * size * size + g * size + r`` holds ``(r, g, b) / (size - 1)``.
    """
    out = np.empty((size * size * size, 3), dtype=np.float32)
    denom = max(size - 1, 1)
    i = 0
    for b in range(size):
        for g in range(size):
            for r in range(size):
                out[i, 0] = r / denom
                out[i, 1] = g / denom
                out[i, 2] = b / denom
                i += 1
    return out


# ═══════════════════════════════════════════════════════════════════════════════
# 1.  Baking
# ═══════════════════════════════════════════════════════════════════════════════
def bake_cube(
    processor: Processor,
    size: int = DEFAULT_CUBE_SIZE,
    *,
    title: str = DEFAULT_TITLE,
    progress: Optional[ProgressCallback] = None,
) -> str:
    """
    Sample *processor* on a ``size**3`` lattice and return ``.cube`` text.

    Output values are written unclamped with 10 decimals.

    Args:
        processor: A live processor.
        size: Lattice points per axis (>= 2).
        title: Written to the ``TITLE`` line.
        progress: Called with a percentage after each blue slice; returning
            False cancels the bake.

    Raises:
        ValueError: *size* < 2.
        InvalidHandle: *processor* has been released.
        BakeCancelled: *progress* returned False.
    """
    if size < 2:
        raise ValueError(f"LUT size must be >= 2, got {size}")

    lattice = _cube_lattice(size)
    slice_len = size * size
    for b in range(size):
        start = b * slice_len
        processor.apply_array(lattice[start:start + slice_len])
        if progress is not None and not progress(100.0 * (b + 1) / size):
            raise BakeCancelled(f"bake of {processor!r} cancelled at slice {b + 1}/{size}")

    buf = io.StringIO()
    buf.write(f'TITLE "{title}"\n')
    buf.write(f"LUT_3D_SIZE {size}\n")
    buf.write("DOMAIN_MIN 0.0 0.0 0.0\n")
    buf.write("DOMAIN_MAX 1.0 1.0 1.0\n")
    np.savetxt(buf, lattice.astype(np.float64), fmt="%.10f")
    return buf.getvalue()


# ═══════════════════════════════════════════════════════════════════════════════
# 2.  Parsed LUT
# ═══════════════════════════════════════════════════════════════════════════════
class CubeLut:
    """
    A parsed ``.cube`` LUT: optional shaper (N, 3) and optional lattice
    (size**3, 3), red fastest.
    """

    __slots__ = ("shaper", "cube", "_shaper_grid", "_interp")

    def __init__(
        self,
        shaper: Optional[np.ndarray] = None,
        cube: Optional[np.ndarray] = None,
    ) -> None:
        self.shaper = None if shaper is None else np.asarray(shaper, dtype=np.float64)
        self.cube = None if cube is None else np.asarray(cube, dtype=np.float64)
        self._shaper_grid: Optional[np.ndarray] = None
        self._interp: Optional[RegularGridInterpolator] = None

        if self.shaper is not None:
            n = self.shaper.shape[0]
            if self.shaper.shape != (n, 3) or n < 2:
                raise ValueError(f"Shaper must be (N>=2, 3), got {self.shaper.shape}")
            self._shaper_grid = np.linspace(0.0, 1.0, n)

        if self.cube is not None:
            size = round(self.cube.shape[0] ** (1.0 / 3.0))
            if self.cube.shape != (size ** 3, 3) or size < 2:
                raise ValueError(f"Cube must be (size**3, 3) with size>=2, got {self.cube.shape}")
            grid = np.linspace(0.0, 1.0, size)
            # Rows are [b][g][r]; the interpolator wants axes in (r, g, b) order.
            values = self.cube.reshape(size, size, size, 3).transpose(2, 1, 0, 3)
            self._interp = RegularGridInterpolator(
                (grid, grid, grid), values, method="linear"
            )

    @property
    def shaper_size(self) -> int:
        return 0 if self.shaper is None else self.shaper.shape[0]

    @property
    def cube_size(self) -> int:
        return 0 if self._interp is None else self._interp.grid[0].shape[0]

    def __repr__(self) -> str:
        return f"CubeLut(shaper_size={self.shaper_size}, cube_size={self.cube_size})"

    def apply(self, rgb: Union[np.ndarray, List[float]]) -> np.ndarray:
        """
        Apply the LUT to RGB values with last dimension 3, e.g. (3,), (N, 3)
        or (H, W, 3).

        Returns:
            float64 array with the same shape as *rgb*.
        """
        arr = np.asarray(rgb, dtype=np.float64)
        if arr.ndim == 0 or arr.shape[-1] != 3:
            raise ValueError(f"Expected last dimension size 3, got shape {arr.shape}")
        flat = arr.reshape(-1, 3)

        out = np.clip(flat, 0.0, 1.0)
        if self._shaper_grid is not None:
            out = np.stack(
                [np.interp(out[:, c], self._shaper_grid, self.shaper[:, c]) for c in range(3)],
                axis=-1,
            )
        if self._interp is not None:
            out = self._interp(np.clip(out, 0.0, 1.0))

        return out.reshape(arr.shape)


# ═══════════════════════════════════════════════════════════════════════════════
# 3.  Parsing
# ═══════════════════════════════════════════════════════════════════════════════
def _parse_size(keyword: str, rest: str, lineno: int) -> int:
    try:
        return int(rest.strip())
    except ValueError:
        raise CubeParseError(f"line {lineno}: invalid {keyword} {rest.strip()!r}") from None


def parse_cube(text: str) -> CubeLut:
    """
    Parse ``.cube`` text into a ``CubeLut``.

    Raises:
        CubeParseError: bad size, non-numeric row, or table length mismatch.
    """
    section: Optional[str] = None
    shaper_size = 0
    cube_size = 0
    shaper_rows: List[List[float]] = []
    cube_rows: List[List[float]] = []

    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("LUT_1D_SIZE"):
            shaper_size = _parse_size("LUT_1D_SIZE", line[len("LUT_1D_SIZE"):], lineno)
            section = "1d"
            continue
        if line.startswith("LUT_3D_SIZE"):
            cube_size = _parse_size("LUT_3D_SIZE", line[len("LUT_3D_SIZE"):], lineno)
            section = "3d"
            continue
        if line.startswith(_IGNORED_KEYWORDS):
            continue

        parts = line.split()
        if len(parts) != 3:
            continue
        try:
            row = [float(p) for p in parts]
        except ValueError:
            raise CubeParseError(f"line {lineno}: non-numeric row {line!r}") from None
        if section == "1d":
            shaper_rows.append(row)
        elif section == "3d":
            cube_rows.append(row)

    if shaper_size and len(shaper_rows) != shaper_size:
        raise CubeParseError(
            f"1D table has {len(shaper_rows)} rows, expected {shaper_size}"
        )
    if cube_size and len(cube_rows) != cube_size ** 3:
        raise CubeParseError(
            f"3D table has {len(cube_rows)} rows, expected {cube_size ** 3}"
        )

    try:
        return CubeLut(
            shaper=np.array(shaper_rows) if shaper_size else None,
            cube=np.array(cube_rows) if cube_size else None,
        )
    except ValueError as exc:
        raise CubeParseError(str(exc)) from exc


def load_cube(path: Union[str, "os.PathLike[str]"]) -> CubeLut:
    """Read and parse a ``.cube`` file."""
    with open(path, "r", encoding="utf-8") as fh:
        return parse_cube(fh.read())
