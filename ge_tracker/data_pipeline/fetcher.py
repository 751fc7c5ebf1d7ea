"""
GE Flip Tracker — Grand Exchange market data client.

Wraps all HTTP calls to the RS3 Grand Exchange price API into a single,
reusable class.  Handles timeouts, retries and response validation, and
exposes typed results to the analytics layer.

Every public method degrades to ``None`` / ``[]`` on failure — network
errors, non-2xx replies, unparseable JSON or an unexpected shape all mean
"no data" to the caller, and none of them raise.

Usage::

    async with GEClient() as client:
        item    = await client.get_price("Abyssal whip")
        matches = await client.search("rune")
        history = await client.get_history(4151)
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Union

import httpx
from pydantic import BaseModel, ValidationError

from ge_tracker import config
from ge_tracker.core.constants import HISTORY_MAX_POINTS, SEARCH_MIN_QUERY_LENGTH
from ge_tracker.core.exceptions import MarketDataUnavailable
from ge_tracker.data_pipeline.catalog_cache import CatalogCache
from ge_tracker.data_pipeline.search import rank_items
from ge_tracker.domain.models import CatalogEntry, GEItem, PricePoint

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Response rows: anything that does not validate is dropped
# ---------------------------------------------------------------------------

class _LatestRow(BaseModel):
    id: int
    price: int
    volume: Optional[int] = None
    timestamp: Optional[Union[str, int]] = None
    name: Optional[str] = None


class _HistoryRow(BaseModel):
    timestamp: int
    price: int
    volume: Optional[int] = None


class _CatalogRow(BaseModel):
    id: int
    name: str
    price: int
    volume: Optional[int] = None


def _point_date(timestamp: int) -> date:
    """History timestamps are epoch milliseconds; tolerate seconds too."""
    seconds = timestamp / 1000 if timestamp > 10**11 else timestamp
    return datetime.fromtimestamp(seconds, tz=timezone.utc).date()


class GEClient:
    """Async HTTP client for the Grand Exchange price API.

    Instantiate once per process; the internal ``httpx.AsyncClient`` is
    lazily created and reused across calls.  The catalog cache is owned by
    the client and may be injected for tests.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        catalog_url: Optional[str] = None,
        icon_base: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        search_limit: Optional[int] = None,
        cache: Optional[CatalogCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or config.GE_API_BASE).rstrip("/")
        self.catalog_url = catalog_url or config.GE_CATALOG_URL
        self.icon_base = (icon_base or config.GE_ICON_BASE).rstrip("/")
        self.timeout = timeout if timeout is not None else config.MARKET_HTTP_TIMEOUT_SECONDS
        self.max_retries = max(1, max_retries if max_retries is not None else config.MARKET_HTTP_MAX_RETRIES)
        self.backoff_seconds = (
            backoff_seconds if backoff_seconds is not None else config.MARKET_HTTP_BACKOFF_SECONDS
        )
        self.search_limit = search_limit or config.SEARCH_RESULT_LIMIT
        self.cache = cache if cache is not None else CatalogCache(ttl_seconds=config.CATALOG_TTL_SECONDS)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "GEClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _client_get(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers={"User-Agent": config.GE_USER_AGENT},
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def _request_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET ``url`` with retries and exponential backoff.

        Raises ``MarketDataUnavailable`` once retries are exhausted or on a
        non-retryable failure.  Only 429s and transport errors are
        retried.
        """
        client = await self._client_get()
        delay = self.backoff_seconds
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                resp = await client.get(url, params=params)
                resp.raise_for_status()
                return resp.json()
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                if status != 429:
                    raise MarketDataUnavailable("HTTP error", {"status": status, "url": url}) from exc
                last_error = exc
                logger.warning("GE API rate-limited; retry %d/%d in %.1fs", attempt, self.max_retries, delay)
            except httpx.TransportError as exc:
                last_error = exc
                logger.warning(
                    "GE API request failed (%s); retry %d/%d in %.1fs",
                    exc, attempt, self.max_retries, delay,
                )
            except httpx.RequestError as exc:
                # Redirect loops and undecodable bodies will not fix themselves.
                raise MarketDataUnavailable(
                    "Request error", {"url": url, "error": type(exc).__name__}
                ) from exc
            except ValueError as exc:
                raise MarketDataUnavailable("Invalid JSON", {"url": url}) from exc

            if attempt < self.max_retries:
                await asyncio.sleep(delay)
                delay *= 2

        raise MarketDataUnavailable(
            "Request failed after retries",
            {"url": url, "attempts": self.max_retries, "error": last_error},
        )

    async def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> Optional[Any]:
        """Like ``_request_json`` but logs and returns ``None`` on failure."""
        try:
            return await self._request_json(url, params)
        except MarketDataUnavailable as exc:
            logger.error("GE API unavailable: %s", exc)
            return None

    def icon_url(self, item_id: int) -> str:
        return f"{self.icon_base}/obj_sprite.gif?id={item_id}"

    def _to_item(self, row: _LatestRow, name: str) -> GEItem:
        return GEItem(
            id=row.id,
            name=name,
            price=row.price,
            volume=row.volume,
            timestamp=str(row.timestamp) if row.timestamp is not None else None,
            icon=self.icon_url(row.id),
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_price(self, name: str) -> Optional[GEItem]:
        """Current price for the item called ``name``, or ``None``.

        The API answers ``{"<Item name>": {"id": ..., "price": ..., ...}}``;
        the first entry that validates wins.
        """
        data = await self._get(f"{self.base_url}/latest", params={"name": name})
        if not isinstance(data, dict):
            return None

        for found_name, raw in data.items():
            try:
                row = _LatestRow.model_validate(raw)
            except ValidationError:
                continue
            return self._to_item(row, found_name)
        return None

    async def get_item(self, item_id: int) -> Optional[GEItem]:
        """Current price for ``item_id``, or ``None``."""
        data = await self._get(f"{self.base_url}/latest", params={"id": item_id})
        if not isinstance(data, dict):
            return None

        raw = data.get(str(item_id))
        if not isinstance(raw, dict):
            return None
        try:
            row = _LatestRow.model_validate({"id": item_id, **raw})
        except ValidationError as exc:
            logger.warning("GE API: malformed latest entry for item %d: %s", item_id, exc)
            return None

        cached = self.cache.get(item_id)
        name = row.name or (cached.name if cached else f"Item {item_id}")
        return self._to_item(row, name)

    async def get_history(self, item_id: int) -> Optional[List[PricePoint]]:
        """Up to 90 days of daily prices for ``item_id``, oldest first.

        Rows are deduplicated by calendar date (the last row for a date
        wins).  Returns ``None`` when the source has no usable rows.
        """
        data = await self._get(f"{self.base_url}/last90d", params={"id": item_id})
        if not isinstance(data, dict):
            return None

        rows = data.get(str(item_id))
        if not isinstance(rows, list):
            return None

        by_date: Dict[date, PricePoint] = {}
        for raw in rows:
            try:
                row = _HistoryRow.model_validate(raw)
            except ValidationError:
                continue
            day = _point_date(row.timestamp)
            by_date[day] = PricePoint(date=day, price=row.price, volume=row.volume)

        if not by_date:
            logger.info("GE API: no usable history for item %d", item_id)
            return None

        series = sorted(by_date.values(), key=lambda p: p.date)
        return series[-HISTORY_MAX_POINTS:]

    async def fetch_catalog(self) -> Optional[Dict[int, CatalogEntry]]:
        """Download the bulk catalog dump.

        Returns a dict keyed by integer item ID, or ``None`` on failure.
        Metadata keys in the dump (``%JAGEX_TIMESTAMP%`` and friends) are
        skipped along with any row that fails validation.
        """
        data = await self._get(self.catalog_url)
        if not isinstance(data, dict):
            return None

        catalog: Dict[int, CatalogEntry] = {}
        for key, raw in data.items():
            if key.startswith("%") or not isinstance(raw, dict):
                continue
            try:
                row = _CatalogRow.model_validate(raw)
            except ValidationError:
                continue
            catalog[row.id] = CatalogEntry(id=row.id, name=row.name, price=row.price, volume=row.volume)
        return catalog or None

    async def refresh_catalog(self, force: bool = False) -> bool:
        """Refresh the catalog cache if it has expired."""
        return await self.cache.refresh(self.fetch_catalog, force=force)

    async def search(self, query: str) -> List[GEItem]:
        """Ranked catalog matches for ``query``, best first.

        Queries shorter than two characters return ``[]`` without touching
        the network.  If the catalog has never loaded, a single
        latest-by-name lookup stands in.
        """
        query = (query or "").strip()
        if len(query) < SEARCH_MIN_QUERY_LENGTH:
            return []

        await self.refresh_catalog()
        if not len(self.cache):
            item = await self.get_price(query)
            return [item] if item else []

        return [
            GEItem(
                id=entry.id,
                name=entry.name,
                price=entry.price,
                volume=entry.volume,
                icon=self.icon_url(entry.id),
            )
            for entry in rank_items(self.cache.entries(), query, limit=self.search_limit)
        ]

    async def close(self) -> None:
        """Cleanly close the underlying HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
