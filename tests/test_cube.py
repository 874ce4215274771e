# -*- coding: utf-8 -*-
"""
Tincture: Resolving and applying color management transforms
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Tests for tincture_cube: baking processors and applying parsed .cube LUTs.
"""

import numpy as np
import pytest

from tincture_cube import CubeLut, _cube_lattice, bake_cube, load_cube, parse_cube
from tincture_errors import BakeCancelled, CubeParseError, InvalidHandle

IDENTITY_1D = (
    'TITLE "id"\n'
    "LUT_1D_SIZE 2\n"
    "DOMAIN_MIN 0.0 0.0 0.0\n"
    "DOMAIN_MAX 1.0 1.0 1.0\n"
    "0.0 0.0 0.0\n"
    "1.0 1.0 1.0\n"
)

IDENTITY_3D = (
    'TITLE "id3d"\n'
    "LUT_3D_SIZE 2\n"
    "DOMAIN_MIN 0.0 0.0 0.0\n"
    "DOMAIN_MAX 1.0 1.0 1.0\n"
    "0.0 0.0 0.0\n"
    "1.0 0.0 0.0\n"
    "0.0 1.0 0.0\n"
    "1.0 1.0 0.0\n"
    "0.0 0.0 1.0\n"
    "1.0 0.0 1.0\n"
    "0.0 1.0 1.0\n"
    "1.0 1.0 1.0\n"
)


# ---------------------------------------------------------------------------
# Lattice
# ---------------------------------------------------------------------------
def test_lattice_is_red_fastest():
    lattice = _cube_lattice(3)
    assert lattice.shape == (27, 3)
    assert lattice.dtype == np.float32
    np.testing.assert_allclose(lattice[1], [0.5, 0.0, 0.0])
    np.testing.assert_allclose(lattice[3], [0.0, 0.5, 0.0])
    np.testing.assert_allclose(lattice[9], [0.0, 0.0, 0.5])
    np.testing.assert_allclose(lattice[-1], [1.0, 1.0, 1.0])


# ---------------------------------------------------------------------------
# Parsing & applying
# ---------------------------------------------------------------------------
def test_identity_shaper():
    lut = parse_cube(IDENTITY_1D)
    assert lut.shaper_size == 2
    assert lut.cube_size == 0
    np.testing.assert_allclose(lut.apply([0.2, 0.4, 0.8]), [0.2, 0.4, 0.8], atol=1e-6)


def test_identity_cube():
    lut = parse_cube(IDENTITY_3D)
    assert lut.cube_size == 2
    np.testing.assert_allclose(lut.apply([0.2, 0.3, 0.4]), [0.2, 0.3, 0.4], atol=1e-6)


def test_apply_batch_and_clamp_to_domain():
    lut = parse_cube(IDENTITY_3D)
    out = lut.apply(np.array([[0.2, 0.3, 0.4], [-1.0, 2.0, 0.5]]))
    assert out.shape == (2, 3)
    np.testing.assert_allclose(out, [[0.2, 0.3, 0.4], [0.0, 1.0, 0.5]], atol=1e-6)


def test_shaper_then_cube():
    halve = "LUT_1D_SIZE 2\n0.0 0.0 0.0\n0.5 0.5 0.5\n"
    lut = parse_cube(halve + IDENTITY_3D)
    np.testing.assert_allclose(lut.apply([0.8, 0.4, 0.2]), [0.4, 0.2, 0.1], atol=1e-6)


def test_comments_and_blank_lines_are_skipped():
    text = "# generated\n\n" + IDENTITY_3D.replace("LUT_3D_SIZE 2\n", "LUT_3D_SIZE 2\n# rows\n\n")
    assert parse_cube(text).cube_size == 2


def test_wrong_row_count_is_rejected():
    truncated = IDENTITY_3D.rsplit("\n", 2)[0] + "\n"
    with pytest.raises(CubeParseError):
        parse_cube(truncated)


@pytest.mark.parametrize(
    "text",
    [
        "LUT_3D_SIZE two\n",
        "LUT_1D_SIZE 2\n0.0 zero 0.0\n1.0 1.0 1.0\n",
        "LUT_3D_SIZE 1\n0.0 0.0 0.0\n",
    ],
)
def test_malformed_cube_is_rejected(text):
    with pytest.raises(CubeParseError):
        parse_cube(text)
    with pytest.raises(ValueError):
        parse_cube(text)


@pytest.mark.parametrize("text", [IDENTITY_1D, IDENTITY_3D])
def test_apply_image_shaped_input(text):
    lut = parse_cube(text)
    image = np.tile(np.array([0.2, 0.4, 0.6]), (2, 4, 1))
    image[1, 3] = [0.9, 0.1, 0.5]
    out = lut.apply(image)
    assert out.shape == (2, 4, 3)
    np.testing.assert_allclose(out, image, atol=1e-6)


def test_apply_rejects_bad_shape():
    lut = parse_cube(IDENTITY_3D)
    with pytest.raises(ValueError):
        lut.apply([0.1, 0.2])


def test_load_cube_from_disk(tmp_path):
    path = tmp_path / "id.cube"
    path.write_text(IDENTITY_3D, encoding="utf-8")
    assert isinstance(load_cube(path), CubeLut)


# ---------------------------------------------------------------------------
# Baking
# ---------------------------------------------------------------------------
def test_identity_bake_parses_back_to_identity(config):
    proc = config.processor("lin_srgb", "lin_srgb")
    text = bake_cube(proc, size=5, title="identity")
    assert text.startswith('TITLE "identity"\nLUT_3D_SIZE 5\n')

    lut = parse_cube(text)
    assert lut.cube_size == 5
    samples = np.array([[0.1, 0.2, 0.3], [0.9, 0.05, 0.6], [1.0, 1.0, 1.0]])
    np.testing.assert_allclose(lut.apply(samples), samples, atol=1e-6)


def test_baked_lut_approximates_processor(config):
    proc = config.display_view_processor("sRGB", "Standard")
    lut = parse_cube(bake_cube(proc, size=33))

    pixel = np.array([0.5, 0.5, 0.5], dtype=np.float32)
    proc.apply_rgb(pixel)
    # 0.5 sits exactly on the lattice, so no interpolation error.
    np.testing.assert_allclose(lut.apply([0.5, 0.5, 0.5]), pixel, atol=1e-6)


def test_progress_reports_and_cancels(config):
    proc = config.processor("lin_srgb", "srgb_display")
    seen = []

    def progress(pct):
        seen.append(pct)
        return pct < 50.0

    with pytest.raises(BakeCancelled):
        bake_cube(proc, size=4, progress=progress)
    assert seen == [25.0, 50.0]


def test_bake_rejects_tiny_size_and_released_processor(config):
    proc = config.processor("lin_srgb", "srgb_display")
    with pytest.raises(ValueError):
        bake_cube(proc, size=1)
    proc.release()
    with pytest.raises(InvalidHandle):
        bake_cube(proc, size=2)
