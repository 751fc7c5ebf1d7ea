"""
ge_tracker.analytics.tax — Grand Exchange tax and flip profit.

Tax rules:

* 2% of the per-unit sell price, floored per unit, then multiplied by the
  quantity (never floored on the aggregate).
* Zero for bonds (by item id, or by name as a fallback) and for units sold
  at 49 GP or less.
* The total for one sale is capped at 5M GP.  When the cap bites, the
  per-unit figure is recomputed as ``total / quantity`` so per-unit and
  total values agree.

Pure functions, no I/O.  Inputs are assumed valid (positive prices,
quantity >= 1); validation happens in ``ge_tracker.api.schemas``.
"""

from __future__ import annotations

import math
from typing import Optional, Tuple

from ge_tracker.core.constants import (
    BOND_ITEM_IDS,
    BOND_NAME_FRAGMENT,
    GE_TAX_CAP,
    GE_TAX_EXEMPT_MAX_PRICE,
    GE_TAX_RATE,
    ROI_DECIMALS,
)
from ge_tracker.core.utils import round_half_up, safe_div
from ge_tracker.domain.models import Flip, FlipSummary, TaxCalculation

BOND_EXEMPT_REASON = "Bonds are tax exempt"
LOW_PRICE_EXEMPT_REASON = (
    f"Items sold for {GE_TAX_EXEMPT_MAX_PRICE} gp or less are tax exempt"
)


def is_bond_item(item_id: Optional[int]) -> bool:
    return bool(item_id) and item_id in BOND_ITEM_IDS


def is_tax_exempt(
    sell_price: int,
    item_id: Optional[int] = None,
    item_name: Optional[str] = None,
) -> Tuple[bool, Optional[str]]:
    """Return ``(exempt, reason)`` for a sale at ``sell_price`` per unit."""
    if is_bond_item(item_id):
        return True, BOND_EXEMPT_REASON
    if item_name and BOND_NAME_FRAGMENT in item_name.lower():
        return True, BOND_EXEMPT_REASON
    if sell_price <= GE_TAX_EXEMPT_MAX_PRICE:
        return True, LOW_PRICE_EXEMPT_REASON
    return False, None


def tax_per_item(
    sell_price: int,
    item_id: Optional[int] = None,
    item_name: Optional[str] = None,
) -> int:
    """Floored, uncapped tax on one unit."""
    exempt, _ = is_tax_exempt(sell_price, item_id, item_name)
    if exempt:
        return 0
    return math.floor(sell_price * GE_TAX_RATE)


def calculate_flip_tax(
    sell_price: int,
    buy_price: int,
    quantity: int = 1,
    item_id: Optional[int] = None,
    item_name: Optional[str] = None,
) -> TaxCalculation:
    """Tax, net proceeds, profit and ROI for selling ``quantity`` units.

    Example — 10 units bought at 2.5M and sold at 2.75M::

        gross 27,500,000 - tax 550,000 = net 26,950,000
        profit 1,950,000 on 25,000,000 cost → ROI 7.8%
    """
    exempt, reason = is_tax_exempt(sell_price, item_id, item_name)
    raw_per_item = 0 if exempt else math.floor(sell_price * GE_TAX_RATE)

    raw_total = raw_per_item * quantity
    total_tax = min(raw_total, GE_TAX_CAP)

    effective_per_item = safe_div(total_tax, quantity)
    gross_sell_total = sell_price * quantity
    net_sell_total = gross_sell_total - total_tax
    total_cost = buy_price * quantity
    profit = net_sell_total - total_cost
    roi = safe_div(profit, total_cost) * 100

    return TaxCalculation(
        tax_per_item=effective_per_item,
        raw_tax_per_item=raw_per_item,
        total_tax=total_tax,
        net_sell_per_item=safe_div(net_sell_total, quantity),
        net_sell_total=net_sell_total,
        gross_sell_total=gross_sell_total,
        total_cost=total_cost,
        profit=profit,
        profit_per_item=safe_div(profit, quantity),
        roi=round_half_up(roi, ROI_DECIMALS),
        is_tax_exempt=exempt,
        exempt_reason=reason,
        tax_capped=raw_total > GE_TAX_CAP,
    )


def summarize_flip(flip: Flip) -> FlipSummary:
    """Attach tax figures to a stored flip.

    A flip without a sell price has no profit, ROI or tax yet; those stay
    ``None`` so the caller can render an explicit "open" state.
    """
    if not flip.sell_price:
        return FlipSummary(flip=flip, status=flip.status)

    calc = calculate_flip_tax(
        flip.sell_price,
        flip.buy_price,
        flip.quantity,
        item_id=flip.item_id,
        item_name=flip.item_name,
    )
    return FlipSummary(flip=flip, status=flip.status, tax=calc)
