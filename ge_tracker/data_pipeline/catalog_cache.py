"""
ge_tracker.data_pipeline.catalog_cache — Item catalog held in memory with a TTL.

The full catalog (id, name, price, volume for every tradeable item) is
loaded from a bulk dump at most once per TTL window (default 30 minutes).
Search runs against this copy instead of hitting the API per keystroke.

The cache owns its clock so expiry is testable without sleeping.  A failed
or empty load leaves the previous entries in place: stale data is better
than no data.  Two requests may refresh at the same time; the last writer
wins, which only costs a redundant download.

Typical usage::

    cache = CatalogCache(ttl_seconds=1800)
    await cache.refresh(client.fetch_catalog)
    for entry in cache.entries(): ...
"""

from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable, Dict, List, Optional

from ge_tracker.core.constants import CATALOG_TTL_SECONDS
from ge_tracker.domain.models import CatalogEntry

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
CatalogLoader = Callable[[], Awaitable[Optional[Dict[int, CatalogEntry]]]]


class CatalogCache:
    """In-memory item catalog with lazy, TTL-gated refresh.

    Parameters
    ----------
    ttl_seconds:
        How long a loaded catalog is considered fresh.
    clock:
        Returns the current time in seconds; defaults to ``time.time``.
    """

    def __init__(
        self,
        ttl_seconds: float = CATALOG_TTL_SECONDS,
        clock: Optional[Clock] = None,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock or time.time
        self._entries: Dict[int, CatalogEntry] = {}
        self._fetched_at: Optional[float] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def fetched_at(self) -> Optional[float]:
        return self._fetched_at

    def __len__(self) -> int:
        return len(self._entries)

    def is_stale(self) -> bool:
        """True if the catalog has never been loaded or has expired."""
        if self._fetched_at is None:
            return True
        return (self._clock() - self._fetched_at) > self._ttl

    def entries(self) -> List[CatalogEntry]:
        return list(self._entries.values())

    def get(self, item_id: int) -> Optional[CatalogEntry]:
        return self._entries.get(item_id)

    def replace(self, entries: Dict[int, CatalogEntry]) -> None:
        """Swap in a freshly loaded catalog and restart the TTL window."""
        self._entries = dict(entries)
        self._fetched_at = self._clock()

    async def refresh(self, loader: CatalogLoader, force: bool = False) -> bool:
        """Reload through ``loader`` if stale (or ``force``).

        Returns True when the cache holds fresh data afterwards.  Loader
        failures are logged and the stale entries kept.
        """
        if not force and not self.is_stale():
            return True

        try:
            loaded = await loader()
        except Exception as exc:
            logger.warning(
                "CatalogCache: refresh failed - %s (keeping %d stale entries)",
                exc, len(self._entries),
            )
            return False

        if not loaded:
            logger.warning(
                "CatalogCache: loader returned no data (keeping %d stale entries)",
                len(self._entries),
            )
            return False

        self.replace(loaded)
        logger.debug("CatalogCache: refreshed catalog (%d items)", len(loaded))
        return True
