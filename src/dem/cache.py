"""In-memory LRU cache of decoded rasters.

Decoding a DTM is the slow step; profile queries are cheap. RasterCache lets
the calling layer decode once and reuse the immutable grid across requests.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

from shared.constants import RASTER_CACHE_MAX_ENTRIES

if TYPE_CHECKING:
    from collections.abc import Callable

    from dem.grid import RasterGrid

logger = logging.getLogger(__name__)


@dataclass
class RasterCacheStats:
    """Counters describing cache usage."""

    entries: int
    hits: int
    misses: int
    evictions: int


class RasterCache:
    """Thread-safe LRU cache of RasterGrid instances keyed by raster id.

    Usage:
        cache = RasterCache(max_entries=4)
        grid = cache.get_or_load('site-a.tif', lambda: decode_geotiff(path))
    """

    def __init__(self, max_entries: int = RASTER_CACHE_MAX_ENTRIES) -> None:
        self._max = max(1, int(max_entries))
        self._grids: dict[str, RasterGrid] = {}
        self._lru: list[str] = []
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._grids)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._grids

    def _touch(self, key: str) -> None:
        """Move key to end of LRU list."""
        if key in self._lru:
            self._lru.remove(key)
        self._lru.append(key)

    def _remember(self, key: str, grid: RasterGrid) -> None:
        self._grids[key] = grid
        self._touch(key)
        while len(self._lru) > self._max:
            old = self._lru.pop(0)
            self._grids.pop(old, None)
            self._evictions += 1
            logger.debug('Evicted raster %s from cache', old)

    def get(self, key: str) -> RasterGrid | None:
        with self._lock:
            grid = self._grids.get(key)
            if grid is None:
                self._misses += 1
                return None
            self._hits += 1
            self._touch(key)
            return grid

    def put(self, key: str, grid: RasterGrid) -> None:
        with self._lock:
            self._remember(key, grid)

    def get_or_load(self, key: str, loader: Callable[[], RasterGrid]) -> RasterGrid:
        """Return the cached grid or decode it with ``loader`` and remember it.

        The loader runs outside the lock; if two threads race on the same key
        the first stored grid wins. Loader errors propagate and nothing is cached.
        """
        cached = self.get(key)
        if cached is not None:
            return cached
        logger.info('Raster cache miss for %s, decoding', key)
        grid = loader()
        with self._lock:
            existing = self._grids.get(key)
            if existing is not None:
                self._touch(key)
                return existing
            self._remember(key, grid)
        return grid

    def evict(self, key: str) -> bool:
        """Drop one raster (e.g. when the DTM is unloaded). True if it was cached."""
        with self._lock:
            if key not in self._grids:
                return False
            self._grids.pop(key)
            self._lru.remove(key)
            return True

    def clear(self) -> None:
        with self._lock:
            self._grids.clear()
            self._lru.clear()

    def stats(self) -> RasterCacheStats:
        with self._lock:
            return RasterCacheStats(
                entries=len(self._grids),
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
            )
