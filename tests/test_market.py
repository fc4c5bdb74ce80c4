from decimal import Decimal

from tradebot.engine.enums import EngineState, FailureKind, OrderType
from tradebot.engine.errors import (
    ConfigurationError, ExchangeError, StrategyError, classify_failure,
)
from tradebot.engine.market import Market, MarketOrder, MarketOrderBook
from tradebot.utils import format_decimal, round_amount_down, round_price_up


def test_market_equality_is_by_id():
    a = Market(id="BTC/USDT", name="Bitcoin", base_currency="BTC", counter_currency="USDT")
    b = Market(id="BTC/USDT", name="Other name", base_currency="XBT", counter_currency="USD")
    c = Market(id="ETH/USDT", name="Bitcoin", base_currency="BTC", counter_currency="USDT")

    assert a == b
    assert a != c
    assert len({a, b, c}) == 2


def test_empty_order_book():
    book = MarketOrderBook(market_id="BTC/USDT")
    assert book.best_bid is None
    assert book.best_ask is None


def test_market_order_total():
    order = MarketOrder.of(OrderType.BUY, Decimal("100"), Decimal("0.25"))
    assert order.total == Decimal("25")


def test_rounding():
    assert round_amount_down(Decimal("0.123456789")) == Decimal("0.12345678")
    assert round_price_up(Decimal("0.123456781")) == Decimal("0.12345679")
    assert round_price_up(Decimal("101")) == Decimal("101")


def test_format_decimal():
    assert format_decimal(Decimal("0.20000000")) == "0.2"
    assert format_decimal(Decimal("100")) == "100"
    assert format_decimal(None) == "N/A"


def test_failure_classification():
    assert classify_failure(ExchangeError.network("timeout")) is FailureKind.TRANSIENT
    assert classify_failure(ExchangeError.protocol("bad")) is FailureKind.FATAL
    assert classify_failure(StrategyError("stop")) is FailureKind.FATAL
    assert classify_failure(ConfigurationError("missing")) is FailureKind.FATAL
    assert classify_failure(ValueError("unknown")) is FailureKind.FATAL


def test_failure_message_includes_cause():
    error = StrategyError("order rejected", ValueError("bad price"))
    assert str(error) == "order rejected (cause: bad price)"


def test_terminal_states():
    assert EngineState.STOPPED.is_terminal
    assert EngineState.CRITICAL_ERROR.is_terminal
    assert not EngineState.RUNNING.is_terminal
