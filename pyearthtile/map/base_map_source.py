"""Base map source utilities and base class.

This module provides a small base class that centralizes common logic
shared by map source implementations in this package:
- provider registry handling and introspection (by name and unique id)
- host resolution (argument, environment variable, registry default)
- URI building for templated tile endpoints
- delegation of tile downloads to a tile fetcher

Subclasses should define a `_PROVIDERS` class attribute describing
available providers and implement the coordinate <-> tile address mapping.
"""
from abc import ABC, abstractmethod
from typing import Callable, Dict, Any, Iterable, List, Optional, Tuple
from datetime import datetime
import logging
import os
import warnings

from .coordinates import GeoCoordinate, TileAddress, UTMCoordinate
from .download import DownloadOptions, FetchResult, HttpTileFetcher, TileFetcher, TileRequest

logger = logging.getLogger(__name__)


class BaseMapSource(ABC):
    """Minimal base class for map sources.

    Subclasses should set a class-level `_PROVIDERS` dict mapping provider
    names to configuration dictionaries. Each configuration carries at least
    `unique_id`, `tile_size_x`, `tile_size_y`, `draw_mode`, `host` and
    `uri_template`.
    """

    _PROVIDERS: Dict[str, Dict[str, Any]] = {}

    def __init__(
        self,
        provider: str,
        host: Optional[str] = None,
        fetcher: Optional[TileFetcher] = None
    ) -> None:
        if provider not in self._PROVIDERS:
            available = ', '.join(self._PROVIDERS.keys())
            raise ValueError(f"Unknown provider '{provider}'. Available providers: {available}")

        self.provider = provider
        self._config = self._PROVIDERS[provider].copy()
        self.unique_id = self._config.get('unique_id')
        self.tile_size_x = self._config.get('tile_size_x')
        self.tile_size_y = self._config.get('tile_size_y')
        self.draw_mode = self._config.get('draw_mode')
        self.fetcher = fetcher or HttpTileFetcher()

        # Host resolution
        if host:
            self.host = host
        else:
            env_key = self._config.get('host_env')
            env_host = os.environ.get(env_key) if env_key else None
            if env_key and env_host == '':
                warnings.warn(
                    f"{env_key} is set but empty; using default host for '{provider}'.",
                    UserWarning,
                )
            self.host = env_host or self._config.get('host', '')

    # Instance methods

    def get_url_template(self) -> str:
        """Get the URI template for this provider.

        Returns:
            URI template string with placeholders for {type}, {scale}, {x}, {y} and {zone}
        """
        return self._config.get('uri_template', '')

    def _build_tile_uri(self, addr: TileAddress) -> str:
        """Format the configured URI template for a tile address."""
        template = self.get_url_template()
        return template.format(
            type=int(self._config.get('provider_type', 0)),
            scale=addr.scale,
            x=addr.x,
            y=addr.y,
            zone=addr.zone,
        )

    def download_options(self) -> DownloadOptions:
        """Download policy handed to the fetcher with each request."""
        return DownloadOptions()

    def request_for_tile(self, addr: TileAddress) -> TileRequest:
        """
        Compose the fetch request for a tile.

        Args:
            addr: Tile address produced by `coord_to_tile_address`

        Returns:
            TileRequest with host, URI and validity policy
        """
        return TileRequest(host=self.host, uri=self._build_tile_uri(addr), options=self.download_options())

    def fetch_tile(self, addr: TileAddress, destination: str) -> FetchResult:
        """
        Download one tile into `destination`.

        The status reported by the fetcher is returned unchanged; no retry
        happens here.
        """
        request = self.request_for_tile(addr)
        result = self.fetcher.fetch_request(request, destination)
        if result != FetchResult.SUCCESS:
            logger.info("%s: fetch of %s returned %s", self.provider, addr, result.name)
        return result

    def fetch_tiles(
        self,
        addresses: Iterable[TileAddress],
        destination_for: Callable[[TileAddress], str]
    ) -> Dict[TileAddress, FetchResult]:
        """
        Download several tiles one after the other.

        Args:
            addresses: Tile addresses to download
            destination_for: Maps a tile address to its destination file path

        Returns:
            Dict of tile address -> FetchResult
        """
        results = {}
        for addr in addresses:
            results[addr] = self.fetch_tile(addr, destination_for(addr))
        return results

    @abstractmethod
    def coord_to_tile_address(self, coord: GeoCoordinate, x_mpp: float, y_mpp: float):
        """Return the TileAddress for `coord` at the given resolution, or an error value."""

    @abstractmethod
    def tile_address_to_center_coordinate(self, addr: TileAddress) -> UTMCoordinate:
        """Return the coordinate of the centre of `addr`."""

    def get_license_info(self, year: Optional[str] = None, include_url: bool = False) -> str:
        """
        Get the attribution string for the provider.

        Args:
            year: Optional year to include in attribution (default: current year)
            include_url: If True, includes the license URL in the attribution string

        Returns:
            Formatted attribution/license string
        """
        if year is None:
            year = str(datetime.now().year)

        attribution = self._config.get('attribution', 'Map tiles')
        license_url = self._config.get('license_url', '')

        license_info = f"{attribution} ({year})"
        if include_url and license_url:
            license_info += f". License: {license_url}"
        return license_info

    @property
    def tile_size(self) -> Tuple[int, int]:
        return self.tile_size_x, self.tile_size_y

    def __repr__(self) -> str:
        return (f"{self.__class__.__name__}(provider='{self.provider}', "
                f"unique_id={self.unique_id}, tile_size={self.tile_size_x}x{self.tile_size_y})")

    # Class methods

    @classmethod
    def get_available_providers(cls) -> List[str]:
        """Return a list of provider keys supported by this map source class."""
        return list(cls._PROVIDERS.keys())

    @classmethod
    def get_provider_info(cls, provider: Optional[str] = None) -> Dict[str, Any]:
        """Return info for a single provider or for all providers.

        Raises ValueError if a requested provider is unknown.
        """
        if provider:
            if provider not in cls._PROVIDERS:
                raise ValueError(f"Unknown provider '{provider}'")
            return cls._PROVIDERS[provider].copy()
        return {k: v.copy() for k, v in cls._PROVIDERS.items()}

    @classmethod
    def provider_for_id(cls, unique_id: int) -> str:
        """Return the provider key registered under a unique id.

        Raises ValueError if no provider uses that id.
        """
        for name, config in cls._PROVIDERS.items():
            if config.get('unique_id') == unique_id:
                return name
        raise ValueError(f"No map source registered with id {unique_id}")

    @classmethod
    def from_id(cls, unique_id: int, **kwargs) -> 'BaseMapSource':
        """Instantiate the provider registered under `unique_id`."""
        return cls(cls.provider_for_id(unique_id), **kwargs)
