# -*- coding: utf-8 -*-
"""
Tincture: Resolving and applying color management transforms
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Shared fixtures: small OpenColorIO v1 configurations written to tmp_path.
"""

import textwrap

import pytest

from tincture_config import ColorConfig, load_config

STUDIO_CONFIG = textwrap.dedent("""\
    ocio_profile_version: 1

    search_path: ""
    strictparsing: true
    luma: [0.2126, 0.7152, 0.0722]

    roles:
      default: raw
      reference: lin_srgb
      scene_linear: {scene_linear}
      color_picking: srgb_display
      data: raw

    displays:
      Rec1886:
        - !<View> {{name: Standard, colorspace: gamma24_display}}
      sRGB:
        - !<View> {{name: Standard, colorspace: srgb_display}}
        - !<View> {{name: Raw, colorspace: raw}}

    active_displays: []
    active_views: []

    colorspaces:
      - !<ColorSpace>
        name: lin_srgb
        family: linear
        equalitygroup: ""
        bitdepth: 32f
        description: Scene-linear, Rec.709 primaries
        isdata: false
        allocation: lg2
        allocationvars: [-8, 5, 0.00390625]

      - !<ColorSpace>
        name: srgb_display
        family: display
        equalitygroup: ""
        bitdepth: 32f
        description: Pure 2.2 power encoding
        isdata: false
        allocation: uniform
        from_reference: !<ExponentTransform> {{value: [2.2, 2.2, 2.2, 1], direction: inverse}}

      - !<ColorSpace>
        name: gamma24_display
        family: display
        equalitygroup: ""
        bitdepth: 32f
        description: Pure 2.4 power encoding
        isdata: false
        allocation: uniform
        from_reference: !<ExponentTransform> {{value: [2.4, 2.4, 2.4, 1], direction: inverse}}

      - !<ColorSpace>
        name: raw
        family: ""
        equalitygroup: ""
        bitdepth: 32f
        description: Non-color data
        isdata: true
        allocation: uniform
    """)

NO_SCENE_LINEAR_CONFIG = textwrap.dedent("""\
    ocio_profile_version: 1

    search_path: ""
    strictparsing: true

    roles:
      default: raw
      reference: lin_srgb

    displays:
      sRGB:
        - !<View> {name: Standard, colorspace: lin_srgb}

    active_displays: []
    active_views: []

    colorspaces:
      - !<ColorSpace>
        name: lin_srgb
        bitdepth: 32f
        isdata: false
        allocation: uniform

      - !<ColorSpace>
        name: raw
        bitdepth: 32f
        isdata: true
        allocation: uniform
    """)


def studio_config_text(scene_linear: str = "lin_srgb") -> str:
    return STUDIO_CONFIG.format(scene_linear=scene_linear)


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "studio.ocio"
    path.write_text(studio_config_text(), encoding="utf-8")
    return path


@pytest.fixture
def config(config_path):
    cfg = load_config(config_path)
    yield cfg
    cfg.release()


@pytest.fixture
def no_scene_linear_config():
    cfg = ColorConfig.from_string(NO_SCENE_LINEAR_CONFIG)
    yield cfg
    cfg.release()
