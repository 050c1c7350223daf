"""Favorites store components.

The persistence layer is kept apart from :mod:`catalog_api.services.favorites_service`
so the service can be exercised against test doubles implementing the same
primitives.
"""

from .persistence import FavoritesPersistence, ScanResult

__all__ = [
    "FavoritesPersistence",
    "ScanResult",
]
