import pytest

from tradebot.engine.config import ExchangeConfig, MarketConfig, StrategyDefinition
from tradebot.engine.errors import ConfigurationError
from tradebot.engine.registry import MarketRegistry, load_strategy_class
from tradebot.engine.strategies import ExampleScalpingStrategy
from tradebot.exchange import create_trading_api


def market(market_id, enabled=True, strategy_id="scalper"):
    base, counter = market_id.split("/")
    return MarketConfig(id=market_id, name=market_id, base_currency=base,
                        counter_currency=counter, enabled=enabled,
                        trading_strategy_id=strategy_id)


SCALPER = StrategyDefinition(id="scalper", name="Scalper", class_name="example-scalping",
                             config_items={"minimum-percentage-gain": "1"})


def test_registered_strategy_name():
    assert load_strategy_class("example-scalping") is ExampleScalpingStrategy


def test_dotted_strategy_path():
    cls = load_strategy_class("tradebot.engine.strategies.scalping.ExampleScalpingStrategy")
    assert cls is ExampleScalpingStrategy


@pytest.mark.parametrize("class_name", [
    "no-such-strategy",
    "tradebot.engine.strategies.scalping.Missing",
    "tradebot.engine.market.Market",
])
def test_bad_strategy_class(class_name):
    with pytest.raises(ConfigurationError):
        load_strategy_class(class_name)


def test_bindings_skip_disabled_and_keep_order():
    registry = MarketRegistry(
        [market("ETH/USDT"), market("LTC/USDT", enabled=False), market("BTC/USDT")],
        [SCALPER],
    )

    bindings = registry.build_bindings()

    assert [b.market.id for b in bindings] == ["ETH/USDT", "BTC/USDT"]
    assert bindings[0].strategy is not bindings[1].strategy
    assert bindings[0].strategy_config.get_config_item("minimum-percentage-gain") == "1"
    assert bindings[0].market.base_currency == "ETH"


def test_unknown_strategy_id():
    registry = MarketRegistry([market("BTC/USDT", strategy_id="missing")], [SCALPER])
    with pytest.raises(ConfigurationError, match="unknown strategy"):
        registry.build_bindings()


def test_duplicate_market_ids():
    with pytest.raises(ConfigurationError):
        MarketRegistry([market("BTC/USDT"), market("BTC/USDT")], [SCALPER])


def test_unknown_exchange_adapter():
    config = ExchangeConfig(name="X", exchange_id="binance", adapter="carrier-pigeon")
    with pytest.raises(ConfigurationError):
        create_trading_api(config)
