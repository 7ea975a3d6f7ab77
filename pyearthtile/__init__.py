"""PyEarthTile: tile-grid map sources."""

__version__ = '0.1.0'
