"""
GE Flip Tracker — request schemas (Pydantic).

Everything user-entered passes through these models before reaching the
tax calculator or the flip store, so the core can assume:
  • prices and quantities are positive integers (GP)
  • a sell date never exists without a sell price

Price fields also accept shorthand strings: "2.5m", "500k", "1,250".
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator, model_validator

from ge_tracker.analytics.tax import calculate_flip_tax
from ge_tracker.core.utils import parse_gp
from ge_tracker.domain.models import Flip, TaxCalculation


def _coerce_gp(value: Any) -> Any:
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str):
        parsed = parse_gp(value)
        if parsed is None:
            raise ValueError(f"not a GP amount: {value!r}")
        return parsed
    return value


class _GPModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("buy_price", "sell_price", mode="before", check_fields=False)
    @classmethod
    def _gp_shorthand(cls, value: Any) -> Any:
        return _coerce_gp(value)


class FlipCreate(_GPModel):
    """Payload for logging a new flip."""

    item_name: str = Field(min_length=1, max_length=255)
    item_id: Optional[PositiveInt] = None
    item_icon: Optional[str] = None

    quantity: PositiveInt = 1
    buy_price: PositiveInt
    sell_price: Optional[PositiveInt] = None
    buy_date: Optional[datetime] = None
    sell_date: Optional[datetime] = None

    notes: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=64)
    strategy_tag: Optional[str] = Field(default=None, max_length=64)
    is_members: Optional[bool] = None

    @model_validator(mode="after")
    def _sell_date_needs_price(self) -> "FlipCreate":
        if self.sell_date is not None and self.sell_price is None:
            raise ValueError("sell_date requires sell_price")
        return self

    def to_flip(self, user_id: Optional[str] = None) -> Flip:
        return Flip(
            user_id=user_id,
            item_name=self.item_name,
            item_id=self.item_id,
            item_icon=self.item_icon,
            quantity=self.quantity,
            buy_price=self.buy_price,
            sell_price=self.sell_price,
            buy_date=self.buy_date or datetime.now(timezone.utc).replace(tzinfo=None),
            sell_date=self.sell_date,
            notes=self.notes,
            category=self.category,
            strategy_tag=self.strategy_tag,
            is_members=self.is_members,
        )


# Columns every stored flip must keep; an update may change but not null them.
_REQUIRED_ON_UPDATE = ("item_name", "quantity", "buy_price", "buy_date")


class FlipUpdate(_GPModel):
    """Partial update; only fields the caller sent are applied."""

    item_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    item_id: Optional[PositiveInt] = None
    item_icon: Optional[str] = None

    quantity: Optional[PositiveInt] = None
    buy_price: Optional[PositiveInt] = None
    sell_price: Optional[PositiveInt] = None
    buy_date: Optional[datetime] = None
    sell_date: Optional[datetime] = None

    notes: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=64)
    strategy_tag: Optional[str] = Field(default=None, max_length=64)
    is_members: Optional[bool] = None

    @model_validator(mode="after")
    def _required_not_cleared(self) -> "FlipUpdate":
        cleared = sorted(
            name for name in _REQUIRED_ON_UPDATE
            if name in self.model_fields_set and getattr(self, name) is None
        )
        if cleared:
            raise ValueError(f"cannot be cleared: {', '.join(cleared)}")
        return self

    @model_validator(mode="after")
    def _sell_date_needs_price(self) -> "FlipUpdate":
        # Clearing the sell price while setting a sell date is contradictory.
        if (
            self.sell_date is not None
            and "sell_price" in self.model_fields_set
            and self.sell_price is None
        ):
            raise ValueError("sell_date requires sell_price")
        return self

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class TaxRequest(_GPModel):
    """Inputs for a one-off tax / profit calculation."""

    sell_price: PositiveInt
    buy_price: PositiveInt
    quantity: PositiveInt = 1
    item_id: Optional[PositiveInt] = None
    item_name: Optional[str] = None

    def calculate(self) -> TaxCalculation:
        return calculate_flip_tax(
            self.sell_price,
            self.buy_price,
            self.quantity,
            item_id=self.item_id,
            item_name=self.item_name,
        )
