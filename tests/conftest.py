"""
Shared fixtures: an in-memory exchange and simple recording strategies.
"""
import threading
from decimal import Decimal

import pytest

from tradebot.engine.config import EngineConfig
from tradebot.engine.enums import OrderType
from tradebot.engine.market import BalanceInfo, Market, MarketOrder, MarketOrderBook, OpenOrder
from tradebot.engine.registry import MarketBinding
from tradebot.engine.strategy import StrategyConfig, TradingStrategy
from tradebot.engine.trading_api import TradingApi


class FakeTradingApi(TradingApi):
    """In-memory exchange. Set attributes to shape responses, or *_error to raise."""

    def __init__(self):
        self.bids = [(Decimal("100"), Decimal("1"))]
        self.asks = [(Decimal("102"), Decimal("1"))]
        self.last_price = Decimal("100")
        self.open_orders = []
        self.balances = {"USDT": Decimal("1000")}
        self.created = []
        self.balance_calls = 0
        self.book_error = None
        self.balance_error = None
        self.create_error = None
        self._next_id = 1

    def get_implementation_name(self):
        return "fake"

    def get_market_orders(self, market_id):
        if self.book_error:
            raise self.book_error
        return MarketOrderBook(
            market_id=market_id,
            buy_orders=tuple(MarketOrder.of(OrderType.BUY, p, q) for p, q in self.bids),
            sell_orders=tuple(MarketOrder.of(OrderType.SELL, p, q) for p, q in self.asks),
        )

    def get_your_open_orders(self, market_id):
        return [o for o in self.open_orders if o.market_id == market_id]

    def get_latest_market_price(self, market_id):
        return self.last_price

    def create_order(self, market_id, order_type, amount, price):
        if self.create_error:
            raise self.create_error
        order_id = f"order-{self._next_id}"
        self._next_id += 1
        self.created.append((market_id, order_type, amount, price))
        self.open_orders.append(OpenOrder(
            id=order_id, market_id=market_id, type=order_type, price=price,
            quantity=amount, original_quantity=amount, total=price * amount))
        return order_id

    def cancel_order(self, order_id, market_id):
        before = len(self.open_orders)
        self.open_orders = [o for o in self.open_orders if o.id != order_id]
        return len(self.open_orders) < before

    def get_balance_info(self):
        self.balance_calls += 1
        if self.balance_error:
            raise self.balance_error
        return BalanceInfo(available=dict(self.balances))

    def get_percentage_of_buy_order_taken_for_exchange_fee(self, market_id):
        return Decimal("0.001")

    def get_percentage_of_sell_order_taken_for_exchange_fee(self, market_id):
        return Decimal("0.001")

    def fill_all(self):
        self.open_orders = []


class RecordingStrategy(TradingStrategy):
    """Appends (market id, thread id) to a shared log on every execute()."""

    def __init__(self, calls, error=None, init_error=None):
        self.calls = calls
        self.error = error
        self.init_error = init_error
        self.market = None

    def init(self, trading_api, market, config):
        if self.init_error:
            raise self.init_error
        self.market = market

    def execute(self):
        self.calls.append((self.market.id, threading.get_ident()))
        if self.error:
            raise self.error


def make_market(market_id="BTC/USDT"):
    base, counter = market_id.split("/")
    return Market(id=market_id, name=market_id, base_currency=base, counter_currency=counter)


def make_binding(strategy, market_id="BTC/USDT", items=None):
    return MarketBinding(
        market=make_market(market_id),
        strategy=strategy,
        strategy_id="test-strategy",
        strategy_config=StrategyConfig(items or {}),
    )


@pytest.fixture
def fake_api():
    return FakeTradingApi()


@pytest.fixture
def engine_config():
    return EngineConfig(
        bot_id="test-bot",
        bot_name="Test Bot",
        emergency_stop_currency="USDT",
        emergency_stop_balance=Decimal("1.0"),
        trade_cycle_interval=1,
    )
