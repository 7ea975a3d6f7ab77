"""
PyEarthTile Map Module

Provides map sources that map coordinates onto provider tile grids and
download their tiles.

Main Components:
- TerraserverMapSource: TerraServer-USA UTM tile grid (Aerial, Topo, Urban)
- HttpTileFetcher: default tile fetcher with a downloaded-file validity check
- StyleRenderer: explicit-result wrapper around an external style renderer
"""

from pyearthtile.map.coordinates import LatLonCoordinate, TileAddress, UTMCoordinate
from pyearthtile.map.download import FetchResult, HttpTileFetcher, TileFetcher
from pyearthtile.map.style_renderer import RenderStatus, StyleRenderer
from pyearthtile.map.terraserver_map_source import MapCoordError, TerraserverMapSource, TerraserverType

__all__ = [
    'FetchResult',
    'HttpTileFetcher',
    'LatLonCoordinate',
    'MapCoordError',
    'RenderStatus',
    'StyleRenderer',
    'TerraserverMapSource',
    'TerraserverType',
    'TileAddress',
    'TileFetcher',
    'UTMCoordinate',
]
