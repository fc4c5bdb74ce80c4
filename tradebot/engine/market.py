"""
Market and order book types shared by the engine, strategies and adapters.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional, Tuple

from .enums import OrderType


@dataclass(frozen=True, eq=False)
class Market:
    """
    A market the bot trades on, e.g. BTC/USDT.

    Two markets are the same market if their ids match.
    """
    id: str
    name: str
    base_currency: str
    counter_currency: str

    def __eq__(self, other) -> bool:
        if not isinstance(other, Market):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


@dataclass(frozen=True)
class MarketOrder:
    type: OrderType
    price: Decimal
    quantity: Decimal
    total: Decimal = Decimal("0")

    @classmethod
    def of(cls, order_type: OrderType, price: Decimal, quantity: Decimal) -> "MarketOrder":
        return cls(order_type, price, quantity, price * quantity)


@dataclass(frozen=True)
class MarketOrderBook:
    """Snapshot of a market's resting orders, best price first on each side."""
    market_id: str
    buy_orders: Tuple[MarketOrder, ...] = ()
    sell_orders: Tuple[MarketOrder, ...] = ()

    @property
    def best_bid(self) -> Optional[Decimal]:
        return self.buy_orders[0].price if self.buy_orders else None

    @property
    def best_ask(self) -> Optional[Decimal]:
        return self.sell_orders[0].price if self.sell_orders else None


@dataclass(frozen=True)
class OpenOrder:
    """One of our own orders still resting on the exchange."""
    id: str
    market_id: str
    type: OrderType
    price: Decimal
    quantity: Decimal
    original_quantity: Decimal
    total: Decimal
    creation_date: Optional[datetime] = None


@dataclass(frozen=True)
class BalanceInfo:
    """Wallet balances keyed by currency code."""
    available: Dict[str, Decimal] = field(default_factory=dict)
    on_hold: Dict[str, Decimal] = field(default_factory=dict)
