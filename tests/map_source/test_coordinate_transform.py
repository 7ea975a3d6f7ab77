"""
Tests for the UTM coordinate <-> TerraServer tile address mapping.
"""

import pytest

from pyearthtile.map.coordinates import LatLonCoordinate, TileAddress, UTMCoordinate
from pyearthtile.map.terraserver_map_source import (
    MapCoordError,
    TerraserverMapSource,
    TerraserverType,
    coord_to_tile_address,
    tile_address_to_center_coordinate,
)

COORD = UTMCoordinate(zone=33, easting=500000, northing=4600000)


def test_known_tile_address():
    addr = coord_to_tile_address(COORD, 1.0, 1.0, TerraserverType.URBAN)
    assert addr == TileAddress(scale=10, x=2500, y=23000, zone=33)


def test_bound_to_map_source():
    source = TerraserverMapSource('Terraserver.Aerial')
    assert source.coord_to_tile_address(COORD, 4.0, 4.0) == TileAddress(scale=12, x=625, y=5750, zone=33)


def test_non_utm_coordinate_rejected_first():
    coord = LatLonCoordinate(lat=41.5, lon=15.0)
    # Rejected before resolution checks, even with anisotropic or off-ladder input
    assert coord_to_tile_address(coord, 1.0, 1.0, TerraserverType.AERIAL) is MapCoordError.INVALID_COORDINATE_SYSTEM
    assert coord_to_tile_address(coord, 1.0, 2.0, TerraserverType.AERIAL) is MapCoordError.INVALID_COORDINATE_SYSTEM
    assert coord_to_tile_address(coord, 0.33, 0.33, TerraserverType.AERIAL) is MapCoordError.INVALID_COORDINATE_SYSTEM


def test_anisotropic_resolution_rejected():
    assert coord_to_tile_address(COORD, 1.0, 2.0, TerraserverType.URBAN) is MapCoordError.ANISOTROPIC_RESOLUTION
    # Anisotropy wins over an off-ladder x resolution
    assert coord_to_tile_address(COORD, 0.33, 2.0, TerraserverType.URBAN) is MapCoordError.ANISOTROPIC_RESOLUTION


def test_unsupported_resolution():
    assert coord_to_tile_address(COORD, 0.33, 0.33, TerraserverType.URBAN) is MapCoordError.UNSUPPORTED_RESOLUTION
    assert coord_to_tile_address(COORD, 1.0, 1.0, TerraserverType.TOPO) is MapCoordError.UNSUPPORTED_RESOLUTION


def test_center_of_tile():
    center = tile_address_to_center_coordinate(TileAddress(scale=10, x=2500, y=23000, zone=33))
    assert center == UTMCoordinate(zone=33, easting=500100.0, northing=4600100.0)


@pytest.mark.parametrize('mpp', [0.25, 0.5, 1, 2, 8, 64, 512])
@pytest.mark.parametrize('easting,northing', [
    (500000, 4600000),
    (345678.9, 4123456.7),
    (699999.99, 9999.5),
])
def test_center_lies_within_tile_footprint(mpp, easting, northing):
    """The inverse is lossy: it returns the tile centre, within one footprint of the input."""
    coord = UTMCoordinate(zone=17, easting=easting, northing=northing)
    addr = coord_to_tile_address(coord, mpp, mpp, TerraserverType.URBAN)
    assert isinstance(addr, TileAddress)
    center = tile_address_to_center_coordinate(addr)
    assert center.zone == 17
    assert abs(center.easting - easting) <= 200 * mpp
    assert abs(center.northing - northing) <= 200 * mpp


def test_positive_coordinates_truncate():
    coord = UTMCoordinate(zone=10, easting=399.9, northing=200.0)
    addr = coord_to_tile_address(coord, 1.0, 1.0, TerraserverType.AERIAL)
    assert (addr.x, addr.y) == (1, 1)


def test_negative_coordinates_truncate_toward_zero():
    coord = UTMCoordinate(zone=10, easting=-150.0, northing=-450.0)
    addr = coord_to_tile_address(coord, 1.0, 1.0, TerraserverType.AERIAL)
    # Flooring would give (-1, -3)
    assert (addr.x, addr.y) == (0, -2)


def test_negative_fractional_meters_dropped_first():
    # int(-199.9) == -199, then -199 / 200 truncates to 0
    coord = UTMCoordinate(zone=10, easting=-199.9, northing=-400.5)
    addr = coord_to_tile_address(coord, 1.0, 1.0, TerraserverType.AERIAL)
    assert (addr.x, addr.y) == (0, -2)


def test_non_finite_resolution_unsupported():
    inf = float('inf')
    assert coord_to_tile_address(COORD, inf, inf, TerraserverType.AERIAL) is MapCoordError.UNSUPPORTED_RESOLUTION


@pytest.mark.parametrize('easting,northing', [
    (float('inf'), 4600000),
    (500000, float('-inf')),
    (float('nan'), 4600000),
])
def test_non_finite_coordinate_rejected(easting, northing):
    coord = UTMCoordinate(zone=33, easting=easting, northing=northing)
    assert coord_to_tile_address(coord, 1.0, 1.0, TerraserverType.AERIAL) is MapCoordError.INVALID_COORDINATE
