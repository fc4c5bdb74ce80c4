"""
Exchange adapter backed by ccxt.

ccxt speaks the exchange wire protocols; this module maps its unified API
onto TradingApi and its error hierarchy onto FailureKind:

- ccxt.NetworkError (timeouts, DDoS protection, maintenance) -> transient
- ccxt.ExchangeError matching a configured non-fatal code/message -> transient
- any other ccxt error, or a malformed response -> fatal

Market ids are ccxt unified symbols, e.g. "BTC/USDT".
"""

import logging
import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Optional

import ccxt

from ..engine.config import ExchangeConfig
from ..engine.enums import OrderType
from ..engine.errors import ConfigurationError, ExchangeError
from ..engine.market import BalanceInfo, MarketOrder, MarketOrderBook, OpenOrder
from ..engine.trading_api import TradingApi

logger = logging.getLogger(__name__)

MALFORMED_RESPONSE_ERRORS = (KeyError, IndexError, TypeError, ValueError, InvalidOperation)


def _to_decimal(value: Any) -> Decimal:
    if value is None:
        raise ValueError("missing numeric value")
    return Decimal(str(value))


class CcxtTradingApi(TradingApi):

    def __init__(self, config: ExchangeConfig, exchange: Optional[ccxt.Exchange] = None):
        """
        Args:
            config: Exchange settings from exchange.yaml
            exchange: Pre-built ccxt exchange (tests); built from config otherwise
        """
        self.config = config
        self.exchange = exchange if exchange is not None else self._create_exchange(config)
        self._non_fatal_patterns = [
            re.compile(rf"\b{code}\b") for code in config.non_fatal_error_codes
        ]
        self._markets_loaded = False

    @staticmethod
    def _create_exchange(config: ExchangeConfig) -> ccxt.Exchange:
        exchange_cls = getattr(ccxt, config.exchange_id, None)
        if exchange_cls is None:
            raise ConfigurationError(f"ccxt does not support exchange '{config.exchange_id}'")

        params = {
            'enableRateLimit': True,
            'timeout': config.connection_timeout * 1000,
            'options': dict(config.other_config),
        }
        if config.api_key:
            params['apiKey'] = config.api_key
        if config.secret:
            params['secret'] = config.secret

        exchange = exchange_cls(params)
        if config.sandbox:
            exchange.set_sandbox_mode(True)
        logger.info(f"Connected ccxt exchange '{config.exchange_id}' (sandbox={config.sandbox})")
        return exchange

    def get_implementation_name(self) -> str:
        return f"ccxt {self.config.exchange_id}"

    # --- Market data ---

    def get_market_orders(self, market_id: str) -> MarketOrderBook:
        book = self._call("fetch order book", self.exchange.fetch_order_book, market_id)
        try:
            buy_orders = tuple(
                MarketOrder.of(OrderType.BUY, _to_decimal(entry[0]), _to_decimal(entry[1]))
                for entry in book['bids']
            )
            sell_orders = tuple(
                MarketOrder.of(OrderType.SELL, _to_decimal(entry[0]), _to_decimal(entry[1]))
                for entry in book['asks']
            )
        except MALFORMED_RESPONSE_ERRORS as e:
            raise ExchangeError.protocol(f"Malformed order book for {market_id}", e)
        return MarketOrderBook(market_id=market_id, buy_orders=buy_orders, sell_orders=sell_orders)

    def get_latest_market_price(self, market_id: str) -> Decimal:
        ticker = self._call("fetch ticker", self.exchange.fetch_ticker, market_id)
        try:
            return _to_decimal(ticker['last'])
        except MALFORMED_RESPONSE_ERRORS as e:
            raise ExchangeError.protocol(f"Malformed ticker for {market_id}", e)

    # --- Orders ---

    def get_your_open_orders(self, market_id: str) -> List[OpenOrder]:
        orders = self._call("fetch open orders", self.exchange.fetch_open_orders, market_id)
        try:
            return [self._parse_open_order(order, market_id) for order in orders]
        except MALFORMED_RESPONSE_ERRORS as e:
            raise ExchangeError.protocol(f"Malformed open orders for {market_id}", e)

    @staticmethod
    def _parse_open_order(order: Dict[str, Any], market_id: str) -> OpenOrder:
        price = _to_decimal(order['price'])
        original = _to_decimal(order['amount'])
        remaining = order.get('remaining')
        quantity = _to_decimal(remaining) if remaining is not None else original
        timestamp = order.get('timestamp')
        return OpenOrder(
            id=str(order['id']),
            market_id=market_id,
            type=OrderType.BUY if order['side'] == 'buy' else OrderType.SELL,
            price=price,
            quantity=quantity,
            original_quantity=original,
            total=price * quantity,
            creation_date=datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc) if timestamp else None,
        )

    def create_order(self, market_id: str, order_type: OrderType,
                     amount: Decimal, price: Decimal) -> str:
        side = 'buy' if order_type is OrderType.BUY else 'sell'
        result = self._call(
            f"create {side} order", self.exchange.create_limit_order,
            market_id, side, f"{amount:f}", f"{price:f}")
        try:
            return str(result['id'])
        except MALFORMED_RESPONSE_ERRORS as e:
            raise ExchangeError.protocol(f"Exchange returned no order id for {side} on {market_id}", e)

    def cancel_order(self, order_id: str, market_id: str) -> bool:
        try:
            self._call("cancel order", self.exchange.cancel_order, order_id, market_id)
        except ExchangeError as e:
            if isinstance(e.cause, ccxt.OrderNotFound):
                logger.warning(f"Order {order_id} on {market_id} not found, nothing to cancel")
                return False
            raise
        return True

    # --- Account ---

    def get_balance_info(self) -> BalanceInfo:
        balance = self._call("fetch balance", self.exchange.fetch_balance)
        try:
            available = {c: _to_decimal(v) for c, v in balance['free'].items() if v is not None}
            on_hold = {c: _to_decimal(v) for c, v in balance['used'].items() if v is not None}
        except MALFORMED_RESPONSE_ERRORS as e:
            raise ExchangeError.protocol("Malformed balance response", e)
        return BalanceInfo(available=available, on_hold=on_hold)

    def get_percentage_of_buy_order_taken_for_exchange_fee(self, market_id: str) -> Decimal:
        return self._taker_fee(market_id)

    def get_percentage_of_sell_order_taken_for_exchange_fee(self, market_id: str) -> Decimal:
        return self._taker_fee(market_id)

    def _taker_fee(self, market_id: str) -> Decimal:
        """Fee as a fraction of the order, e.g. 0.001 for 0.1%."""
        if not self._markets_loaded:
            self._call("load markets", self.exchange.load_markets)
            self._markets_loaded = True
        market = self._call("look up market", self.exchange.market, market_id)
        try:
            return _to_decimal(market['taker'])
        except MALFORMED_RESPONSE_ERRORS as e:
            raise ExchangeError.protocol(f"No taker fee for {market_id}", e)

    # --- Error mapping ---

    def _call(self, description: str, fn: Callable, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except ccxt.NetworkError as e:
            raise ExchangeError.network(f"{self.config.name}: {description} failed", e)
        except ccxt.ExchangeError as e:
            if self._is_non_fatal(str(e)):
                raise ExchangeError.network(f"{self.config.name}: {description} failed (non-fatal)", e)
            raise ExchangeError.protocol(f"{self.config.name}: {description} rejected", e)
        except ccxt.BaseError as e:
            raise ExchangeError.protocol(f"{self.config.name}: {description} failed", e)

    def _is_non_fatal(self, message: str) -> bool:
        if any(pattern.search(message) for pattern in self._non_fatal_patterns):
            return True
        return any(m in message for m in self.config.non_fatal_error_messages)
