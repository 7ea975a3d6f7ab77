"""
TerraServer Map Source Module

This module maps UTM coordinates onto the TerraServer-USA tile grid and
builds the download requests for its tiles.

TerraServer tiles are 200x200 pixel images laid out per UTM zone. A tile is
addressed by imagery type, scale level, grid x/y and zone. Scale levels form
a power-of-two ladder: scale 10 is 1 meter per pixel, each step up doubles the
ground resolution.

Main Class:
    TerraserverMapSource: Map source for the Aerial, Topo and Urban imagery

Example:
    >>> source = TerraserverMapSource('Terraserver.Topo')
    >>> coord = UTMCoordinate(zone=33, easting=500000, northing=4600000)
    >>> addr = source.coord_to_tile_address(coord, 2.0, 2.0)
    >>> source.request_for_tile(addr).uri
    '/tile.ashx?T=2&S=11&X=1250&Y=11500&Z=33'
"""

import math
from enum import Enum, IntEnum
from typing import List, Optional, Union

from .base_map_source import BaseMapSource
from .coordinates import GeoCoordinate, Resolution, TileAddress, UTMCoordinate
from .download import DownloadOptions
from .file_check import check_map_file

TERRASERVER_SITE = 'terraserver-usa.com'
TERRASERVER_TILE_SIZE = 200
MARGIN_OF_ERROR = 0.001

DRAWMODE_UTM = 'utm'


class TerraserverType(IntEnum):
    """Imagery category, sent as the T parameter of a tile request."""
    AERIAL = 1
    TOPO = 2
    URBAN = 4


class MapCoordError(Enum):
    """Reasons a coordinate has no tile address."""
    INVALID_COORDINATE_SYSTEM = 'invalid_coordinate_system'
    ANISOTROPIC_RESOLUTION = 'anisotropic_resolution'
    UNSUPPORTED_RESOLUTION = 'unsupported_resolution'
    INVALID_COORDINATE = 'invalid_coordinate'


# mpp * 4 -> scale level
_SCALE_TABLE = {
    1: 8,
    2: 9,
    4: 10,
    8: 11,
    16: 12,
    32: 13,
    64: 14,
    128: 15,
    256: 16,
    512: 17,
    1024: 18,
    2048: 19,
}


def mpp_to_scale(mpp: float, provider_type: int) -> Optional[int]:
    """
    Convert meters per pixel to a TerraServer scale level.

    Args:
        mpp: Ground resolution in meters per pixel
        provider_type: Imagery type; 0.25 and 0.5 mpp exist only for Urban,
                       1 mpp does not exist for Topo

    Returns:
        Scale level, or None if the resolution is not on the ladder for this type

    Example:
        >>> mpp_to_scale(1.0, TerraserverType.AERIAL)
        10
        >>> mpp_to_scale(0.25, TerraserverType.TOPO) is None
        True
    """
    if not math.isfinite(mpp):
        return None
    scaled = mpp * 4
    t = int(scaled)
    if abs(scaled - t) > MARGIN_OF_ERROR:
        return None

    if t in (1, 2) and provider_type != TerraserverType.URBAN:
        return None
    if t == 4 and provider_type == TerraserverType.TOPO:
        return None
    return _SCALE_TABLE.get(t)


def scale_to_mpp(scale: int) -> float:
    """Return the meters per pixel of a scale level."""
    return 2.0 ** (scale - 10)


def coord_to_tile_address(
    coord: GeoCoordinate,
    x_mpp: float,
    y_mpp: float,
    provider_type: int,
    tile_size: int = TERRASERVER_TILE_SIZE
) -> Union[TileAddress, MapCoordError]:
    """
    Compute the address of the tile containing a UTM coordinate.

    Tile indices truncate toward zero, both when dropping the fractional
    meters of the coordinate and when dividing by the tile footprint. For
    negative eastings/northings this differs from flooring: -150 m at 1 mpp
    lands in tile 0, not -1.

    Args:
        coord: UTM coordinate; any other coordinate system is rejected
        x_mpp: Horizontal meters per pixel
        y_mpp: Vertical meters per pixel, must equal x_mpp
        provider_type: Imagery type
        tile_size: Tile width in pixels

    Returns:
        TileAddress, or the MapCoordError explaining why there is none
    """
    if not isinstance(coord, UTMCoordinate):
        return MapCoordError.INVALID_COORDINATE_SYSTEM
    if not Resolution(x_mpp, y_mpp).is_square:
        return MapCoordError.ANISOTROPIC_RESOLUTION

    scale = mpp_to_scale(x_mpp, provider_type)
    if scale is None:
        return MapCoordError.UNSUPPORTED_RESOLUTION

    if not (math.isfinite(coord.easting) and math.isfinite(coord.northing)):
        return MapCoordError.INVALID_COORDINATE

    footprint = tile_size * x_mpp
    x = int(int(coord.easting) / footprint)
    y = int(int(coord.northing) / footprint)
    return TileAddress(scale=scale, x=x, y=y, zone=coord.zone)


def tile_address_to_center_coordinate(
    addr: TileAddress,
    tile_size: int = TERRASERVER_TILE_SIZE
) -> UTMCoordinate:
    """Return the UTM coordinate of the centre of a tile."""
    mpp = scale_to_mpp(addr.scale)
    return UTMCoordinate(
        zone=addr.zone,
        easting=(addr.x * tile_size + tile_size / 2) * mpp,
        northing=(addr.y * tile_size + tile_size / 2) * mpp,
    )


class TerraserverMapSource(BaseMapSource):
    """
    Map source for TerraServer-USA imagery.

    Each registered provider is one imagery type. The type, tile size and
    draw mode come from the registry and are fixed for the lifetime of the
    instance.

    Attributes:
        provider (str): Provider name (e.g., 'Terraserver.Aerial')
        provider_type (TerraserverType): Imagery type sent with each request
        unique_id (int): Map source id
        host (str): Tile server host name

    Example:
        >>> source = TerraserverMapSource('Terraserver.Urban')
        >>> addr = source.coord_to_tile_address(
        ...     UTMCoordinate(zone=33, easting=500000, northing=4600000), 0.25, 0.25)
        >>> addr
        TileAddress(scale=8, x=10000, y=92000, zone=33)
    """

    _PROVIDERS = {
        'Terraserver.Aerial': {
            'unique_id': 1,
            'provider_type': TerraserverType.AERIAL,
            'tile_size_x': TERRASERVER_TILE_SIZE,
            'tile_size_y': TERRASERVER_TILE_SIZE,
            'draw_mode': DRAWMODE_UTM,
            'host': TERRASERVER_SITE,
            'host_env': 'TERRASERVER_HOST',
            'uri_template': '/tile.ashx?T={type}&S={scale}&X={x}&Y={y}&Z={zone}',
            'description': 'USGS digital orthophoto quadrangles (black and white aerial photos)',
            'attribution': 'Imagery: USGS, TerraServer-USA',
            'license_url': 'https://www.usgs.gov/information-policies-and-instructions/copyrights-and-credits',
        },
        'Terraserver.Topo': {
            'unique_id': 2,
            'provider_type': TerraserverType.TOPO,
            'tile_size_x': TERRASERVER_TILE_SIZE,
            'tile_size_y': TERRASERVER_TILE_SIZE,
            'draw_mode': DRAWMODE_UTM,
            'host': TERRASERVER_SITE,
            'host_env': 'TERRASERVER_HOST',
            'uri_template': '/tile.ashx?T={type}&S={scale}&X={x}&Y={y}&Z={zone}',
            'description': 'USGS digital raster graphics (scanned topographic maps)',
            'attribution': 'Maps: USGS, TerraServer-USA',
            'license_url': 'https://www.usgs.gov/information-policies-and-instructions/copyrights-and-credits',
        },
        'Terraserver.Urban': {
            'unique_id': 4,
            'provider_type': TerraserverType.URBAN,
            'tile_size_x': TERRASERVER_TILE_SIZE,
            'tile_size_y': TERRASERVER_TILE_SIZE,
            'draw_mode': DRAWMODE_UTM,
            'host': TERRASERVER_SITE,
            'host_env': 'TERRASERVER_HOST',
            'uri_template': '/tile.ashx?T={type}&S={scale}&X={x}&Y={y}&Z={zone}',
            'description': 'USGS high resolution color urban area imagery',
            'attribution': 'Imagery: USGS, TerraServer-USA',
            'license_url': 'https://www.usgs.gov/information-policies-and-instructions/copyrights-and-credits',
        },
    }

    _DOWNLOAD_OPTIONS = DownloadOptions(referer=None, follow_location=0, check_file=check_map_file)

    def __init__(self, provider: str, **kwargs) -> None:
        """
        Initialize a TerraserverMapSource instance.

        Args:
            provider: Provider name (e.g., 'Terraserver.Topo')
            **kwargs: `host` and `fetcher`, passed on to BaseMapSource

        Raises:
            ValueError: If provider name is not recognized
        """
        super().__init__(provider, **kwargs)
        self.provider_type = TerraserverType(self._config['provider_type'])

    def download_options(self) -> DownloadOptions:
        return self._DOWNLOAD_OPTIONS

    def coord_to_tile_address(
        self,
        coord: GeoCoordinate,
        x_mpp: float,
        y_mpp: float
    ) -> Union[TileAddress, MapCoordError]:
        """
        Compute the tile address for a coordinate at the requested resolution.

        Args:
            coord: UTM coordinate
            x_mpp: Horizontal meters per pixel
            y_mpp: Vertical meters per pixel

        Returns:
            TileAddress, or a MapCoordError

        Example:
            >>> source = TerraserverMapSource('Terraserver.Urban')
            >>> source.coord_to_tile_address(
            ...     UTMCoordinate(zone=33, easting=500000, northing=4600000), 1.0, 1.0)
            TileAddress(scale=10, x=2500, y=23000, zone=33)
        """
        return coord_to_tile_address(coord, x_mpp, y_mpp, self.provider_type, self.tile_size_x)

    def tile_address_to_center_coordinate(self, addr: TileAddress) -> UTMCoordinate:
        """Return the UTM coordinate of the centre of `addr`."""
        return tile_address_to_center_coordinate(addr, self.tile_size_x)

    def supports_mpp(self, mpp: float) -> bool:
        return mpp_to_scale(mpp, self.provider_type) is not None

    def supported_mpps(self) -> List[float]:
        """Resolutions available for this imagery type, finest first."""
        return [scale_to_mpp(scale) for t, scale in sorted(_SCALE_TABLE.items())
                if mpp_to_scale(t / 4, self.provider_type) is not None]

    def tiles_for_extent(
        self,
        lower_left: UTMCoordinate,
        upper_right: UTMCoordinate,
        mpp: float
    ) -> Union[List[TileAddress], MapCoordError]:
        """
        List the tile addresses covering a UTM extent.

        Both corners must lie in the same zone. Corners given in the wrong
        order are swapped, so any two opposite corners describe the same extent.

        Args:
            lower_left: South-west corner
            upper_right: North-east corner
            mpp: Meters per pixel

        Returns:
            Tile addresses row by row from south to north, or a MapCoordError
        """
        first = self.coord_to_tile_address(lower_left, mpp, mpp)
        if isinstance(first, MapCoordError):
            return first
        last = self.coord_to_tile_address(upper_right, mpp, mpp)
        if isinstance(last, MapCoordError):
            return last
        if first.zone != last.zone:
            return MapCoordError.INVALID_COORDINATE_SYSTEM

        x_min, x_max = sorted((first.x, last.x))
        y_min, y_max = sorted((first.y, last.y))
        return [
            TileAddress(scale=first.scale, x=x, y=y, zone=first.zone)
            for y in range(y_min, y_max + 1)
            for x in range(x_min, x_max + 1)
        ]
