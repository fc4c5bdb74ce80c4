"""
Example scalping strategy.

Manages one order at a time on a single market:

    none -> BUY    place a buy at the best bid
    BUY  -> SELL   once the buy has filled, sell the same amount at
                   price * (1 + minimum gain)
    SELL -> BUY    once the sell has filled, buy again at the best bid

Resting orders are never cancelled or amended. This is a worked example of
the engine contract, not a profitable algorithm.

Config items (strategies.yaml):
    counter-currency-buy-order-amount   counter currency to spend per buy
    minimum-percentage-gain             e.g. 1 for 1%
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, Optional

from ..enums import FailureKind, OrderType
from ..errors import ConfigurationError, StrategyError, TradingFailure
from ..market import Market
from ..strategy import StrategyConfig, TradingStrategy
from ..trading_api import TradingApi
from ...utils import EIGHT_PLACES, format_decimal, round_amount_down, round_price_up

logger = logging.getLogger(__name__)

BUY_AMOUNT_KEY = "counter-currency-buy-order-amount"
MINIMUM_GAIN_KEY = "minimum-percentage-gain"


@dataclass
class OrderState:
    """
    The last order this strategy placed.

    type is None until the first order; after that it is always BUY or SELL.
    """
    id: Optional[str] = None
    type: Optional[OrderType] = None
    price: Decimal = Decimal("0")
    amount: Decimal = Decimal("0")


class ExampleScalpingStrategy(TradingStrategy):

    def __init__(self):
        self.trading_api: Optional[TradingApi] = None
        self.market: Optional[Market] = None
        self.counter_currency_buy_order_amount = Decimal("0")
        self.minimum_percentage_gain = Decimal("0")
        self.last_order = OrderState()

    def init(self, trading_api: TradingApi, market: Market, config: StrategyConfig) -> None:
        self.trading_api = trading_api
        self.market = market

        self.counter_currency_buy_order_amount = self._read_decimal(config, BUY_AMOUNT_KEY)
        if self.counter_currency_buy_order_amount <= 0:
            raise ConfigurationError(
                f"{BUY_AMOUNT_KEY} must be positive: {self.counter_currency_buy_order_amount}")

        percentage = self._read_decimal(config, MINIMUM_GAIN_KEY)
        if percentage < 0:
            raise ConfigurationError(f"{MINIMUM_GAIN_KEY} must not be negative: {percentage}")
        self.minimum_percentage_gain = (percentage / Decimal("100")).quantize(
            EIGHT_PLACES, rounding=ROUND_HALF_UP)

        logger.info(
            f"[{market.name}] Initialised: buy amount={format_decimal(self.counter_currency_buy_order_amount)} "
            f"{market.counter_currency}, min gain={format_decimal(self.minimum_percentage_gain)}"
        )

    def execute(self) -> None:
        market = self.market
        try:
            book = self.trading_api.get_market_orders(market.id)
            if not book.buy_orders or not book.sell_orders:
                logger.warning(
                    f"[{market.name}] Order book is empty (bids={len(book.buy_orders)}, "
                    f"asks={len(book.sell_orders)}); skipping cycle"
                )
                return

            bid = book.best_bid
            ask = book.best_ask
            logger.info(f"[{market.name}] Best bid={format_decimal(bid)} best ask={format_decimal(ask)}")

            if self.last_order.type is None:
                self._place_buy(bid)
            elif self.last_order.type is OrderType.BUY:
                self._after_buy()
            else:
                self._after_sell(bid, ask)

        except TradingFailure as e:
            if e.kind is FailureKind.TRANSIENT:
                logger.warning(f"[{market.name}] Transient failure, will retry next cycle: {e}")
                return
            logger.error(f"[{market.name}] Fatal failure: {e}")
            if isinstance(e, StrategyError):
                raise
            raise StrategyError(f"{market.name}: {e.message}", e)

    def describe_state(self) -> Dict[str, str]:
        order = self.last_order
        return {
            "order_id": order.id or "",
            "order_type": order.type.value if order.type else "",
            "price": format_decimal(order.price),
            "amount": format_decimal(order.amount),
        }

    # --- State transitions ---

    def _place_buy(self, bid: Decimal) -> None:
        amount = self._buy_amount()
        logger.info(
            f"[{self.market.name}] Placing BUY {format_decimal(amount)} "
            f"{self.market.base_currency} @ {format_decimal(bid)}"
        )
        order_id = self.trading_api.create_order(self.market.id, OrderType.BUY, amount, bid)
        self.last_order = OrderState(id=order_id, type=OrderType.BUY, price=bid, amount=amount)
        logger.info(f"[{self.market.name}] BUY order placed: id={order_id}")

    def _after_buy(self) -> None:
        if self._still_open(self.last_order.id):
            logger.info(
                f"[{self.market.name}] BUY {self.last_order.id} @ "
                f"{format_decimal(self.last_order.price)} not filled yet; holding"
            )
            return

        new_ask = round_price_up(self.last_order.price * (Decimal("1") + self.minimum_percentage_gain))
        amount = self.last_order.amount
        logger.info(
            f"[{self.market.name}] BUY {self.last_order.id} filled; placing SELL "
            f"{format_decimal(amount)} @ {format_decimal(new_ask)}"
        )
        order_id = self.trading_api.create_order(self.market.id, OrderType.SELL, amount, new_ask)
        self.last_order = OrderState(id=order_id, type=OrderType.SELL, price=new_ask, amount=amount)
        logger.info(f"[{self.market.name}] SELL order placed: id={order_id}")

    def _after_sell(self, bid: Decimal, ask: Decimal) -> None:
        if not self._still_open(self.last_order.id):
            logger.info(f"[{self.market.name}] SELL {self.last_order.id} filled")
            self._place_buy(bid)
            return

        held = self.last_order.price
        if ask < held:
            logger.info(
                f"[{self.market.name}] SELL @ {format_decimal(held)} still open; "
                f"market ask {format_decimal(ask)} is below it, waiting"
            )
        elif ask > held:
            # Our ask is the lowest on the book, so this should not happen
            logger.error(
                f"[{self.market.name}] Anomaly: market ask {format_decimal(ask)} is above "
                f"our open SELL @ {format_decimal(held)}; the order should have filled"
            )
        else:
            logger.info(
                f"[{self.market.name}] SELL @ {format_decimal(held)} is the best ask, waiting for a fill"
            )

    # --- Helpers ---

    def _buy_amount(self) -> Decimal:
        last_price = self.trading_api.get_latest_market_price(self.market.id)
        if last_price <= 0:
            raise StrategyError(
                f"{self.market.name}: exchange reported a non-positive last trade price {last_price}")
        return round_amount_down(self.counter_currency_buy_order_amount / last_price)

    def _still_open(self, order_id: Optional[str]) -> bool:
        open_orders = self.trading_api.get_your_open_orders(self.market.id)
        return any(order.id == order_id for order in open_orders)

    @staticmethod
    def _read_decimal(config: StrategyConfig, key: str) -> Decimal:
        raw = config.get_config_item(key)
        if raw is None or not raw.strip():
            raise ConfigurationError(f"Mandatory config item '{key}' is missing")
        try:
            value = Decimal(raw.strip())
        except InvalidOperation as e:
            raise ConfigurationError(f"Config item '{key}' is not a number: {raw!r}", e)
        if not value.is_finite():
            raise ConfigurationError(f"Config item '{key}' is not a number: {raw!r}")
        return value
