"""
Tests for the example scalping strategy order lifecycle.
"""
import logging
from decimal import Decimal

import pytest

from tradebot.engine.enums import OrderType
from tradebot.engine.errors import ConfigurationError, ExchangeError, StrategyError
from tradebot.engine.strategies import ExampleScalpingStrategy, OrderState
from tradebot.engine.strategy import StrategyConfig

from conftest import make_market

DEFAULT_ITEMS = {
    "counter-currency-buy-order-amount": "20",
    "minimum-percentage-gain": "1",
}


def make_strategy(api, items=None):
    strategy = ExampleScalpingStrategy()
    strategy.init(api, make_market(), StrategyConfig(items or DEFAULT_ITEMS))
    return strategy


def test_init_converts_percentage_gain(fake_api):
    strategy = make_strategy(fake_api)
    assert strategy.counter_currency_buy_order_amount == Decimal("20")
    assert strategy.minimum_percentage_gain == Decimal("0.01")


@pytest.mark.parametrize("items", [
    {"minimum-percentage-gain": "1"},
    {"counter-currency-buy-order-amount": "20"},
    {"counter-currency-buy-order-amount": "twenty", "minimum-percentage-gain": "1"},
    {"counter-currency-buy-order-amount": "0", "minimum-percentage-gain": "1"},
    {"counter-currency-buy-order-amount": "20", "minimum-percentage-gain": "-1"},
    {"counter-currency-buy-order-amount": "NaN", "minimum-percentage-gain": "1"},
    {"counter-currency-buy-order-amount": "sNaN", "minimum-percentage-gain": "1"},
    {"counter-currency-buy-order-amount": "Infinity", "minimum-percentage-gain": "1"},
    {"counter-currency-buy-order-amount": "20", "minimum-percentage-gain": "NaN"},
    {"counter-currency-buy-order-amount": "20", "minimum-percentage-gain": "Infinity"},
])
def test_invalid_config_raises(fake_api, items):
    with pytest.raises(ConfigurationError):
        make_strategy(fake_api, items)


@pytest.mark.parametrize("side", ["bids", "asks"])
def test_empty_order_book_is_skipped(fake_api, side):
    setattr(fake_api, side, [])
    strategy = make_strategy(fake_api)

    strategy.execute()

    assert fake_api.created == []
    assert strategy.last_order == OrderState()


@pytest.mark.parametrize("side", ["bids", "asks"])
def test_empty_order_book_leaves_pending_buy_untouched(fake_api, side):
    setattr(fake_api, side, [])
    strategy = make_strategy(fake_api)
    pending = OrderState(id="old-buy", type=OrderType.BUY,
                         price=Decimal("100"), amount=Decimal("0.2"))
    strategy.last_order = pending

    strategy.execute()

    assert fake_api.created == []
    assert strategy.last_order == pending


def test_first_execute_places_buy_at_best_bid(fake_api):
    strategy = make_strategy(fake_api)

    strategy.execute()

    assert fake_api.created == [("BTC/USDT", OrderType.BUY, Decimal("0.20000000"), Decimal("100"))]
    order = strategy.last_order
    assert order.type is OrderType.BUY
    assert order.price == Decimal("100")
    assert order.amount == Decimal("0.2")
    assert order.id == "order-1"


def test_buy_amount_rounds_down(fake_api):
    fake_api.last_price = Decimal("3")
    strategy = make_strategy(fake_api)

    strategy.execute()

    assert strategy.last_order.amount == Decimal("6.66666666")


def test_filled_buy_places_sell_with_gain(fake_api):
    strategy = make_strategy(fake_api)
    strategy.last_order = OrderState(id="old-buy", type=OrderType.BUY,
                                     price=Decimal("100"), amount=Decimal("0.2"))

    strategy.execute()

    assert fake_api.created == [("BTC/USDT", OrderType.SELL, Decimal("0.2"), Decimal("101.00000000"))]
    assert strategy.last_order.type is OrderType.SELL
    assert strategy.last_order.price == Decimal("101")
    assert strategy.last_order.amount == Decimal("0.2")


def test_sell_price_rounds_up(fake_api):
    strategy = make_strategy(fake_api)
    strategy.last_order = OrderState(id="old-buy", type=OrderType.BUY,
                                     price=Decimal("33.33333333"), amount=Decimal("0.5"))

    strategy.execute()

    assert strategy.last_order.price == Decimal("33.66666667")


def test_open_buy_is_held(fake_api):
    strategy = make_strategy(fake_api)
    strategy.execute()
    placed = strategy.last_order

    strategy.execute()
    strategy.execute()

    assert len(fake_api.created) == 1
    assert strategy.last_order == placed


def test_filled_sell_places_new_buy(fake_api):
    strategy = make_strategy(fake_api)
    strategy.execute()
    fake_api.fill_all()
    strategy.execute()
    fake_api.fill_all()
    fake_api.bids = [(Decimal("99"), Decimal("2"))]
    fake_api.last_price = Decimal("80")

    strategy.execute()

    market_id, order_type, amount, price = fake_api.created[-1]
    assert order_type is OrderType.BUY
    assert price == Decimal("99")
    assert amount == Decimal("0.25")
    assert strategy.last_order.type is OrderType.BUY


def test_open_sell_with_higher_ask_is_logged_not_raised(fake_api, caplog):
    strategy = make_strategy(fake_api)
    strategy.execute()
    fake_api.fill_all()
    strategy.execute()
    sell = strategy.last_order
    fake_api.asks = [(Decimal("150"), Decimal("1"))]

    with caplog.at_level(logging.ERROR):
        strategy.execute()

    assert strategy.last_order == sell
    assert len(fake_api.created) == 2
    assert "Anomaly" in caplog.text


def test_transient_failure_is_swallowed(fake_api):
    fake_api.book_error = ExchangeError.network("read timeout")
    strategy = make_strategy(fake_api)

    strategy.execute()

    assert strategy.last_order == OrderState()


def test_fatal_failure_becomes_strategy_error(fake_api):
    fake_api.create_error = ExchangeError.protocol("insufficient funds")
    strategy = make_strategy(fake_api)

    with pytest.raises(StrategyError) as exc_info:
        strategy.execute()

    assert exc_info.value.is_fatal
    assert isinstance(exc_info.value.cause, ExchangeError)
    assert strategy.last_order == OrderState()


def test_describe_state(fake_api):
    strategy = make_strategy(fake_api)
    assert strategy.describe_state()["order_type"] == ""

    strategy.execute()

    state = strategy.describe_state()
    assert state == {"order_id": "order-1", "order_type": "BUY", "price": "100", "amount": "0.2"}
