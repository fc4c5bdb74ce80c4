"""
Abstract interface for exchange adapters.

Strategies only ever talk to the exchange through this contract. Every call
may raise ExchangeError: network kind (transient) or protocol kind (fatal).
"""
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List

from .enums import OrderType
from .market import BalanceInfo, MarketOrderBook, OpenOrder


class TradingApi(ABC):
    """
    Capability set of one exchange.

    Implementations own no engine state; they are pure capability providers.
    """

    @abstractmethod
    def get_implementation_name(self) -> str:
        pass

    @abstractmethod
    def get_market_orders(self, market_id: str) -> MarketOrderBook:
        """Current order book, best price first on each side."""
        pass

    @abstractmethod
    def get_your_open_orders(self, market_id: str) -> List[OpenOrder]:
        """Orders placed by this account that are still open."""
        pass

    @abstractmethod
    def get_latest_market_price(self, market_id: str) -> Decimal:
        """Price of the last trade on the market."""
        pass

    @abstractmethod
    def create_order(self, market_id: str, order_type: OrderType,
                     amount: Decimal, price: Decimal) -> str:
        """
        Place a limit order.

        Returns:
            The exchange order id.
        """
        pass

    @abstractmethod
    def cancel_order(self, order_id: str, market_id: str) -> bool:
        pass

    @abstractmethod
    def get_balance_info(self) -> BalanceInfo:
        pass

    def get_balance(self, currency: str) -> Decimal:
        """
        Available balance for one currency.
        A currency the exchange does not report counts as zero.
        """
        return self.get_balance_info().available.get(currency, Decimal("0"))

    @abstractmethod
    def get_percentage_of_buy_order_taken_for_exchange_fee(self, market_id: str) -> Decimal:
        pass

    @abstractmethod
    def get_percentage_of_sell_order_taken_for_exchange_fee(self, market_id: str) -> Decimal:
        pass
