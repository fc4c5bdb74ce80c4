"""
Emergency stop guard.

Checked before every trade cycle: if the wallet balance of the emergency stop
currency drops strictly below the configured threshold, the bot must stop
trading. A threshold of 0 disables the check.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .config import EngineConfig
from .enums import FailureKind
from .errors import TradingFailure
from .trading_api import TradingApi
from ..utils import format_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RiskCheckResult:
    tripped: bool
    enforced: bool
    balance: Optional[Decimal] = None
    message: str = ""


class EmergencyStopGuard:
    """
    Enforces:
    1. Balance of emergency_stop_currency >= emergency_stop_balance
    2. Threshold 0 -> never checked, adapter not called
    3. Transient balance query failure -> check skipped this cycle

    Fatal balance query failures are re-raised for the engine to classify.
    """

    def __init__(self, trading_api: TradingApi, config: EngineConfig):
        self.trading_api = trading_api
        self.currency = config.emergency_stop_currency
        self.threshold = config.emergency_stop_balance

    @property
    def enabled(self) -> bool:
        return self.threshold != 0

    def check(self) -> RiskCheckResult:
        if not self.enabled:
            return RiskCheckResult(tripped=False, enforced=False,
                                   message="Emergency stop check disabled")

        try:
            balance = self.trading_api.get_balance(self.currency)
        except TradingFailure as e:
            if e.kind is not FailureKind.TRANSIENT:
                raise
            message = f"Could not fetch {self.currency} balance, emergency stop not enforced this cycle: {e}"
            logger.warning(message)
            return RiskCheckResult(tripped=False, enforced=False, message=message)

        if balance < self.threshold:
            message = (
                f"EMERGENCY STOP: {self.currency} balance {format_decimal(balance)} "
                f"is below the limit {format_decimal(self.threshold)}"
            )
            logger.critical(message)
            return RiskCheckResult(tripped=True, enforced=True, balance=balance, message=message)

        logger.debug(
            f"Emergency stop check OK: {self.currency} balance {format_decimal(balance)} "
            f">= {format_decimal(self.threshold)}"
        )
        return RiskCheckResult(tripped=False, enforced=True, balance=balance)
