"""
Exchange adapters.

Modules:
- ccxt_adapter: TradingApi over any exchange ccxt supports

EXCHANGE_MAP resolves the 'adapter' name in exchange.yaml to an implementation.
"""

import logging
from typing import Dict, Type

from ..engine.config import ExchangeConfig
from ..engine.errors import ConfigurationError
from ..engine.trading_api import TradingApi
from .ccxt_adapter import CcxtTradingApi

logger = logging.getLogger(__name__)

EXCHANGE_MAP: Dict[str, Type[TradingApi]] = {
    "ccxt": CcxtTradingApi,
}


def create_trading_api(exchange_config: ExchangeConfig) -> TradingApi:
    api_cls = EXCHANGE_MAP.get(exchange_config.adapter)
    if api_cls is None:
        raise ConfigurationError(
            f"Unknown exchange adapter '{exchange_config.adapter}'. Available: {', '.join(EXCHANGE_MAP)}")
    logger.info(f"Using exchange adapter '{exchange_config.adapter}' for {exchange_config.name}")
    return api_cls(exchange_config)


__all__ = ["CcxtTradingApi", "EXCHANGE_MAP", "create_trading_api"]
