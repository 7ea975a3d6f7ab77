"""Coordinate and tile address types used by the map sources.

A geographic coordinate is either a UTM position or a latitude/longitude
pair. Map sources working on a UTM tile grid only accept the UTM variant;
`latlon_to_utm` converts the other one when a caller starts from degrees.
"""
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class UTMCoordinate:
    """UTM position in meters."""
    zone: int
    easting: float
    northing: float
    hemisphere: str = 'N'


@dataclass(frozen=True)
class LatLonCoordinate:
    """WGS84 position in degrees."""
    lat: float
    lon: float


GeoCoordinate = Union[UTMCoordinate, LatLonCoordinate]


@dataclass(frozen=True)
class TileAddress:
    """Discrete key of one downloadable tile: scale level, grid x/y and UTM zone."""
    scale: int
    x: int
    y: int
    zone: int


@dataclass(frozen=True)
class Resolution:
    """Ground resolution in meters per pixel along each axis."""
    x_mpp: float
    y_mpp: float

    @property
    def is_square(self) -> bool:
        return self.x_mpp == self.y_mpp


def utm_zone_for_longitude(lon: float) -> int:
    """Return the standard 6-degree UTM zone number for a longitude."""
    zone = int((lon + 180.0) / 6.0) + 1
    return max(1, min(60, zone))


def latlon_to_utm(coord: LatLonCoordinate) -> UTMCoordinate:
    """
    Project a WGS84 coordinate onto its UTM zone.

    Uses the plain 6-degree zone of the longitude (no Norway/Svalbard
    exceptions). Requires GDAL.

    Args:
        coord: Latitude/longitude in degrees

    Returns:
        UTMCoordinate in the WGS84 / UTM zone of the longitude

    Example:
        >>> latlon_to_utm(LatLonCoordinate(lat=0.0, lon=15.0))
        UTMCoordinate(zone=33, easting=500000.0, northing=0.0, hemisphere='N')
    """
    from osgeo import osr

    zone = utm_zone_for_longitude(coord.lon)
    hemisphere = 'N' if coord.lat >= 0 else 'S'
    epsg = (32600 if hemisphere == 'N' else 32700) + zone

    pSrc = osr.SpatialReference()
    pSrc.ImportFromEPSG(4326)
    pSrc.SetAxisMappingStrategy(osr.OAMS_TRADITIONAL_GIS_ORDER)
    pDst = osr.SpatialReference()
    pDst.ImportFromEPSG(epsg)
    pDst.SetAxisMappingStrategy(osr.OAMS_TRADITIONAL_GIS_ORDER)

    transform = osr.CoordinateTransformation(pSrc, pDst)
    easting, northing, _ = transform.TransformPoint(coord.lon, coord.lat)
    return UTMCoordinate(zone=zone, easting=easting, northing=northing, hemisphere=hemisphere)
