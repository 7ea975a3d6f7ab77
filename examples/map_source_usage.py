"""
Example usage of the TerraserverMapSource class.

This script walks from a coordinate to a tile address, back to the tile
centre, and downloads the tile.
"""

import logging
import os
import tempfile

from pyearthtile.map import (
    FetchResult,
    LatLonCoordinate,
    MapCoordError,
    TerraserverMapSource,
    UTMCoordinate,
)
from pyearthtile.map.coordinates import latlon_to_utm


def example_list_providers():
    """List all registered map sources."""
    print("=" * 60)
    print("Example 1: List Available Map Sources")
    print("=" * 60)

    for provider in TerraserverMapSource.get_available_providers():
        info = TerraserverMapSource.get_provider_info(provider)
        print(f"  - {provider:20s} | id: {info['unique_id']} | "
              f"Tile: {info['tile_size_x']}x{info['tile_size_y']} | {info['description']}")
    print()


def example_tile_address():
    """Map a UTM coordinate to a tile and back."""
    print("=" * 60)
    print("Example 2: Coordinate -> Tile Address -> Tile Centre")
    print("=" * 60)

    source = TerraserverMapSource('Terraserver.Urban')
    coord = UTMCoordinate(zone=33, easting=500000, northing=4600000)

    for mpp in (0.25, 1.0, 0.33):
        addr = source.coord_to_tile_address(coord, mpp, mpp)
        if isinstance(addr, MapCoordError):
            print(f"  {mpp:5.2f} m/px: no tile ({addr.value})")
            continue
        center = source.tile_address_to_center_coordinate(addr)
        print(f"  {mpp:5.2f} m/px: {addr} -> centre E {center.easting:.1f} N {center.northing:.1f}")
        print(f"             {source.request_for_tile(addr).url}")
    print()


def example_from_latlon():
    """Convert a lat/lon position first (requires GDAL)."""
    print("=" * 60)
    print("Example 3: Start From Latitude/Longitude")
    print("=" * 60)

    source = TerraserverMapSource('Terraserver.Topo')
    utm = latlon_to_utm(LatLonCoordinate(lat=38.8895, lon=-77.0353))
    print(f"  {utm}")
    print(f"  Tile at 2 m/px: {source.coord_to_tile_address(utm, 2.0, 2.0)}")
    print()


def example_download():
    """Download one tile."""
    print("=" * 60)
    print("Example 4: Download A Tile")
    print("=" * 60)

    source = TerraserverMapSource('Terraserver.Aerial')
    addr = source.coord_to_tile_address(UTMCoordinate(zone=18, easting=323000, northing=4306000), 1.0, 1.0)
    destination = os.path.join(tempfile.gettempdir(), f"terraserver_{addr.scale}_{addr.x}_{addr.y}.jpg")

    result = source.fetch_tile(addr, destination)
    if result == FetchResult.SUCCESS:
        print(f"  Saved tile to: {destination}")
    else:
        print(f"  Download failed: {result.name}")
    print(f"  {source.get_license_info()}")
    print()


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)

    example_list_providers()
    example_tile_address()
    example_from_latlon()
    example_download()
