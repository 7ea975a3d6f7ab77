"""Render map styles through an external rendering engine.

The engine (e.g. Mapnik bindings) is a black box: it loads a style file for
a given output size and paints a bounding box given in Web Mercator meters.
`StyleRenderer` wraps it so that every call returns a `RenderResult` instead
of raising, and converts the engine's premultiplied RGBA buffer into a plain
RGB array.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple
import logging

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

# Only Web Mercator output is supported
OUTPUT_EPSG = 3857

BoundingBox = Tuple[float, float, float, float]


class RenderStatus(Enum):
    SUCCESS = 'success'
    NOT_PAINTED = 'not_painted'
    LOAD_ERROR = 'load_error'
    RENDER_ERROR = 'render_error'


@dataclass(frozen=True)
class RenderResult:
    """Outcome of a load or render call.

    Attributes:
        status: RenderStatus
        pixels: (height, width, 3) uint8 RGB array on a successful render
        reason: Error message for LOAD_ERROR / RENDER_ERROR
    """
    status: RenderStatus
    pixels: Optional[np.ndarray] = None
    reason: str = ''

    @property
    def ok(self) -> bool:
        return self.status == RenderStatus.SUCCESS

    def as_image(self) -> 'Image.Image':
        if self.pixels is None:
            raise ValueError(f"No pixels to convert (status: {self.status.value})")
        return Image.fromarray(self.pixels)


class RenderEngine(ABC):
    """Contract of the external rendering engine."""

    @abstractmethod
    def load_style(self, path: str, width: int, height: int, buffer_size: int) -> Any:
        """Load a style file and return an engine handle. May raise."""

    @abstractmethod
    def render(self, handle: Any, bbox: BoundingBox) -> Tuple[np.ndarray, bool]:
        """Paint `bbox` (minx, miny, maxx, maxy in EPSG:3857).

        Returns the premultiplied RGBA buffer and whether anything was painted.
        May raise.
        """


def default_buffer_size(width: int, height: int) -> int:
    """Pixels rendered outside the tile so labels near the edge still show.

    128 for a 256x256 tile: a quarter of the summed sides, not
    `width + height/4` (which would give 320).
    """
    return (width + height) // 4


def unpremultiply_rgba(buffer: np.ndarray) -> np.ndarray:
    """
    Convert a premultiplied RGBA buffer to straight RGB.

    Fully transparent pixels become black.

    Args:
        buffer: (height, width, 4) uint8 array

    Returns:
        (height, width, 3) uint8 array
    """
    rgba = buffer.astype(np.uint32)
    alpha = rgba[..., 3:4]
    rgb = np.zeros(rgba[..., :3].shape, dtype=np.uint32)
    np.floor_divide(rgba[..., :3] * 255, alpha, out=rgb, where=alpha > 0)
    return np.clip(rgb, 0, 255).astype(np.uint8)


def lonlat_to_web_mercator(lon: float, lat: float) -> Tuple[float, float]:
    """Project a WGS84 lon/lat pair to Web Mercator meters."""
    from osgeo import osr

    pSrc = osr.SpatialReference()
    pSrc.ImportFromEPSG(4326)
    pSrc.SetAxisMappingStrategy(osr.OAMS_TRADITIONAL_GIS_ORDER)
    pDst = osr.SpatialReference()
    pDst.ImportFromEPSG(OUTPUT_EPSG)
    pDst.SetAxisMappingStrategy(osr.OAMS_TRADITIONAL_GIS_ORDER)
    x, y, _ = osr.CoordinateTransformation(pSrc, pDst).TransformPoint(lon, lat)
    return x, y


class StyleRenderer:
    """
    Explicit-result wrapper around a RenderEngine.

    Example:
        >>> renderer = StyleRenderer(engine)
        >>> renderer.load('osm.xml', 256, 256).status
        <RenderStatus.SUCCESS: 'success'>
        >>> result = renderer.render(51.6, -0.2, 51.4, 0.1)
        >>> if result.ok:
        ...     result.as_image().save('tile.png')
    """

    def __init__(self, engine: RenderEngine) -> None:
        self.engine = engine
        self._handle = None
        self.width = 0
        self.height = 0

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(engine={self.engine!r}, size={self.width}x{self.height})"

    def load(self, path: str, width: int, height: int, buffer_size: Optional[int] = None) -> RenderResult:
        """
        Load (or reload) a style for the given output size.

        Args:
            path: Style file
            width: Output width in pixels
            height: Output height in pixels
            buffer_size: Edge buffer in pixels, defaults to `default_buffer_size`

        Returns:
            RenderResult with SUCCESS or LOAD_ERROR
        """
        if buffer_size is None:
            buffer_size = default_buffer_size(width, height)
        try:
            handle = self.engine.load_style(path, width, height, buffer_size)
        except Exception as e:
            logger.debug("An error occurred while loading the style '%s': %s", path, e)
            self._handle = None
            return RenderResult(RenderStatus.LOAD_ERROR, reason=str(e) or e.__class__.__name__)

        self._handle = handle
        self.width = width
        self.height = height
        return RenderResult(RenderStatus.SUCCESS)

    def render_bbox(self, bbox: BoundingBox) -> RenderResult:
        """Render a bounding box already expressed in Web Mercator meters."""
        if self._handle is None:
            return RenderResult(RenderStatus.LOAD_ERROR, reason='no style loaded')
        try:
            buffer, painted = self.engine.render(self._handle, bbox)
        except Exception as e:
            logger.warning("An error occurred while rendering: %s", e)
            return RenderResult(RenderStatus.RENDER_ERROR, reason=str(e) or e.__class__.__name__)

        if not painted:
            logger.warning("%s: area not rendered", self.__class__.__name__)
            return RenderResult(RenderStatus.NOT_PAINTED)
        return RenderResult(RenderStatus.SUCCESS, pixels=unpremultiply_rgba(np.asarray(buffer)))

    def render(self, lat_tl: float, lon_tl: float, lat_br: float, lon_br: float) -> RenderResult:
        """
        Render the area between a top-left and a bottom-right lat/lon corner.

        Returns:
            RenderResult with the RGB pixels, NOT_PAINTED, LOAD_ERROR or RENDER_ERROR
        """
        try:
            x0, y0 = lonlat_to_web_mercator(lon_tl, lat_tl)
            x1, y1 = lonlat_to_web_mercator(lon_br, lat_br)
        except Exception as e:
            logger.warning("Cannot project the render area to Web Mercator: %s", e)
            return RenderResult(RenderStatus.RENDER_ERROR, reason=str(e) or e.__class__.__name__)
        return self.render_bbox((x0, y0, x1, y1))
