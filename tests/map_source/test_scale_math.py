"""
Tests for the TerraServer scale ladder.

Checks the meters-per-pixel <-> scale level conversion, including the levels
that only exist for some imagery types.
"""

import pytest

from pyearthtile.map.terraserver_map_source import (
    TerraserverType,
    mpp_to_scale,
    scale_to_mpp,
)

ALL_TYPES = list(TerraserverType)
LADDER = [0.25, 0.5, 1, 2, 4, 8, 16, 32, 64, 128, 256, 512]


def _allowed(mpp, provider_type):
    if mpp in (0.25, 0.5):
        return provider_type == TerraserverType.URBAN
    if mpp == 1:
        return provider_type != TerraserverType.TOPO
    return True


@pytest.mark.parametrize('provider_type', ALL_TYPES)
@pytest.mark.parametrize('mpp', LADDER)
def test_ladder_round_trip(mpp, provider_type):
    """Every allowed rung maps back to the same meters per pixel."""
    scale = mpp_to_scale(mpp, provider_type)
    if _allowed(mpp, provider_type):
        assert scale is not None
        assert scale_to_mpp(scale) == mpp
    else:
        assert scale is None


def test_scale_levels_follow_the_table():
    assert mpp_to_scale(0.25, TerraserverType.URBAN) == 8
    assert mpp_to_scale(0.5, TerraserverType.URBAN) == 9
    assert mpp_to_scale(1.0, TerraserverType.AERIAL) == 10
    assert mpp_to_scale(2.0, TerraserverType.TOPO) == 11
    assert mpp_to_scale(512.0, TerraserverType.AERIAL) == 19


def test_type_gated_levels():
    assert mpp_to_scale(0.25, TerraserverType.AERIAL) is None
    assert mpp_to_scale(0.25, TerraserverType.TOPO) is None
    assert mpp_to_scale(0.5, TerraserverType.AERIAL) is None
    assert mpp_to_scale(0.5, TerraserverType.TOPO) is None
    assert mpp_to_scale(1.0, TerraserverType.TOPO) is None
    assert mpp_to_scale(1.0, TerraserverType.URBAN) == 10


@pytest.mark.parametrize('mpp', [0.33, 0.1, 1.1, 3.0, 5.0, 1024.0, 0.0, -1.0])
def test_off_ladder_resolutions_are_unrepresentable(mpp):
    assert mpp_to_scale(mpp, TerraserverType.URBAN) is None


def test_margin_of_error():
    # 1.0002 * 4 is within 0.001 of 4
    assert mpp_to_scale(1.0002, TerraserverType.AERIAL) == 10
    # 1.001 * 4 is 0.004 away
    assert mpp_to_scale(1.001, TerraserverType.AERIAL) is None


def test_scale_to_mpp():
    assert scale_to_mpp(10) == 1.0
    assert scale_to_mpp(8) == 0.25
    assert scale_to_mpp(19) == 512.0


@pytest.mark.parametrize('mpp', [float('nan'), float('inf'), float('-inf')])
def test_non_finite_resolution_has_no_scale(mpp):
    assert mpp_to_scale(mpp, TerraserverType.URBAN) is None
