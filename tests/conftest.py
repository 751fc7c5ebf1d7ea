"""
Pytest configuration and shared fixtures.

Fixtures available to all tests:
  • make_series(prices, ...)  — ascending daily PricePoint list
  • make_flip(...)            — a Flip, completed by default
  • catalog_entries           — small catalog for search / cache tests
"""

from __future__ import annotations

import os
import sys
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence

import pytest

# Ensure the project root is on the path so all ge_tracker imports resolve.
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from ge_tracker.domain.models import CatalogEntry, Flip, PricePoint  # noqa: E402

NOW = datetime(2024, 6, 1, 12, 0, 0)


# ---------------------------------------------------------------------------
# Price series factory
# ---------------------------------------------------------------------------

def _series(prices: Sequence[int], start: date = date(2024, 1, 1)) -> List[PricePoint]:
    return [
        PricePoint(date=start + timedelta(days=i), price=p, volume=1_000)
        for i, p in enumerate(prices)
    ]


@pytest.fixture
def make_series():
    return _series


# ---------------------------------------------------------------------------
# Flip factory
# ---------------------------------------------------------------------------

def _flip(
    item_name: str = "Abyssal whip",
    buy_price: int = 1_000_000,
    sell_price: Optional[int] = 1_100_000,
    quantity: int = 1,
    hold_hours: float = 2,
    days_ago: float = 3,
    **kwargs,
) -> Flip:
    buy_date = kwargs.pop("buy_date", NOW - timedelta(days=days_ago))
    if "sell_date" in kwargs:
        sell_date = kwargs.pop("sell_date")
    else:
        sell_date = buy_date + timedelta(hours=hold_hours) if sell_price else None
    return Flip(
        item_name=item_name,
        buy_price=buy_price,
        sell_price=sell_price,
        quantity=quantity,
        buy_date=buy_date,
        sell_date=sell_date,
        **kwargs,
    )


@pytest.fixture
def make_flip():
    return _flip


@pytest.fixture
def now():
    return NOW


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

@pytest.fixture
def catalog_entries() -> List[CatalogEntry]:
    return [
        CatalogEntry(id=1289, name="Rune sword", price=20_000, volume=5_000),
        CatalogEntry(id=451, name="Runite ore", price=12_000, volume=90_000),
        CatalogEntry(id=1279, name="Iron sword", price=150, volume=3_000),
        CatalogEntry(id=561, name="Nature rune", price=250, volume=2_000_000),
        CatalogEntry(id=4151, name="Abyssal whip", price=1_200_000, volume=800),
    ]
