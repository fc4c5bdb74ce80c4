"""
Market registry.

Resolves configuration names to implementations:
- strategy className -> TradingStrategy subclass (registered name or dotted path)
- enabled markets -> one (Market, Strategy) binding each, in configuration order
"""

import importlib
import logging
from dataclasses import dataclass
from typing import Dict, List, Type

from .config import MarketConfig, StrategyDefinition
from .errors import ConfigurationError
from .market import Market
from .strategies import ExampleScalpingStrategy
from .strategy import StrategyConfig, TradingStrategy

logger = logging.getLogger(__name__)

STRATEGY_MAP: Dict[str, Type[TradingStrategy]] = {
    "example-scalping": ExampleScalpingStrategy,
}


def load_strategy_class(class_name: str) -> Type[TradingStrategy]:
    """
    Look up a registered strategy name, else import "package.module.ClassName".
    """
    if class_name in STRATEGY_MAP:
        return STRATEGY_MAP[class_name]

    module_name, _, attr = class_name.rpartition(".")
    if not module_name:
        raise ConfigurationError(
            f"Unknown strategy '{class_name}'. Available: {', '.join(STRATEGY_MAP)}")
    try:
        module = importlib.import_module(module_name)
        cls = getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Cannot load strategy class '{class_name}'", e)

    if not isinstance(cls, type) or not issubclass(cls, TradingStrategy):
        raise ConfigurationError(f"'{class_name}' is not a TradingStrategy")
    return cls


@dataclass
class MarketBinding:
    """One enabled market and the strategy instance that trades it."""
    market: Market
    strategy: TradingStrategy
    strategy_id: str
    strategy_config: StrategyConfig


class MarketRegistry:
    """
    Holds the configured markets and strategy definitions.

    Every market gets its own strategy instance, so no two markets share
    order state.
    """

    def __init__(self, markets: List[MarketConfig], strategies: List[StrategyDefinition]):
        seen = set()
        for market in markets:
            if market.id in seen:
                raise ConfigurationError(f"Duplicate market id '{market.id}'")
            seen.add(market.id)
        self.markets = list(markets)
        self.strategies = {s.id: s for s in strategies}

    def enabled_markets(self) -> List[MarketConfig]:
        return [m for m in self.markets if m.enabled]

    def build_bindings(self) -> List[MarketBinding]:
        bindings = []
        for market_config in self.enabled_markets():
            definition = self.strategies.get(market_config.trading_strategy_id)
            if definition is None:
                raise ConfigurationError(
                    f"Market '{market_config.id}' references unknown strategy "
                    f"'{market_config.trading_strategy_id}'"
                )
            strategy_cls = load_strategy_class(definition.class_name)
            market = Market(
                id=market_config.id,
                name=market_config.name,
                base_currency=market_config.base_currency,
                counter_currency=market_config.counter_currency,
            )
            bindings.append(MarketBinding(
                market=market,
                strategy=strategy_cls(),
                strategy_id=definition.id,
                strategy_config=StrategyConfig(definition.config_items),
            ))

        skipped = len(self.markets) - len(bindings)
        logger.info(f"Built {len(bindings)} market binding(s), {skipped} disabled market(s) skipped")
        return bindings
