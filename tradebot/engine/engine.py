"""
Trading engine: the cycle scheduler and top-level state machine.

States: IDLE -> RUNNING -> (STOPPED | CRITICAL_ERROR)

Every cycle:
1. Run the emergency stop guard. Tripped -> CRITICAL_ERROR, no strategy runs.
2. Call execute() once on each bound strategy, in configuration order,
   on this one thread.
3. Transient failure -> log, next market. Fatal failure -> abort cycle, STOPPED.
4. Wait trade_cycle_interval seconds (fixed delay), or less if stop() is called.

Failures are classified by FailureKind only. Anything unrecognised is fatal.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from .alerts import EmailAlerter
from .config import EngineConfig
from .enums import EngineState, FailureKind
from .errors import TradingFailure, classify_failure
from .models import EngineSnapshot, MarketStatus
from .registry import MarketBinding
from .risk import EmergencyStopGuard
from .trading_api import TradingApi

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShutdownReason:
    """
    Why the engine stopped.

    kind is None for an operator stop.
    """
    state: EngineState
    kind: Optional[FailureKind]
    message: str
    cause: Optional[BaseException] = None

    @property
    def is_operator_stop(self) -> bool:
        return self.kind is None


class TradingEngine:

    def __init__(self,
                 config: EngineConfig,
                 trading_api: TradingApi,
                 bindings: List[MarketBinding],
                 alerter: Optional[EmailAlerter] = None,
                 on_shutdown: Optional[Callable[[ShutdownReason], None]] = None,
                 wait: Optional[Callable[[float], bool]] = None):
        """
        Args:
            config: Engine settings (read-only)
            trading_api: Exchange adapter, also used by the emergency stop guard
            bindings: Enabled markets and their strategies, in configuration order
            alerter: Optional email alerter for fatal shutdowns
            on_shutdown: Called exactly once with the shutdown reason
            wait: Sleep between cycles; returns True if woken by stop().
                  Defaults to waiting on the internal stop event.
        """
        self.config = config
        self.trading_api = trading_api
        self.bindings = list(bindings)
        self.alerter = alerter
        self.on_shutdown = on_shutdown
        self.risk_guard = EmergencyStopGuard(trading_api, config)

        self._stop_event = threading.Event()
        self._wait = wait or self._stop_event.wait
        self._lock = threading.Lock()
        self._state = EngineState.IDLE
        self._started = False
        self._shutdown_reason: Optional[ShutdownReason] = None

        # Engine thread only
        self._cycle_count = 0
        self._last_cycle_started: Optional[datetime] = None
        self._last_cycle_finished: Optional[datetime] = None
        self._last_balance: Optional[Decimal] = None
        self._last_errors: Dict[str, Optional[str]] = {}

        self._snapshot = self._build_snapshot()

    # --- Public API ---

    @property
    def state(self) -> EngineState:
        with self._lock:
            return self._state

    @property
    def shutdown_reason(self) -> Optional[ShutdownReason]:
        with self._lock:
            return self._shutdown_reason

    @property
    def cycle_count(self) -> int:
        return self._cycle_count

    @property
    def snapshot(self) -> EngineSnapshot:
        """Latest published status. Safe to read from any thread."""
        return self._snapshot

    def stop(self) -> None:
        """
        Request an operator stop. Thread-safe.

        The current cycle is allowed to finish; no further cycle starts.
        """
        if not self._stop_event.is_set():
            logger.warning("Stop requested by operator")
        self._stop_event.set()

    def start_background(self, max_cycles: Optional[int] = None) -> threading.Thread:
        """Run the engine on a dedicated daemon thread."""
        thread = threading.Thread(
            target=self.run, kwargs={"max_cycles": max_cycles},
            name=f"engine-{self.config.bot_id}", daemon=True)
        thread.start()
        return thread

    def run(self, max_cycles: Optional[int] = None) -> ShutdownReason:
        """
        Blocking main loop. Returns when the engine reaches a terminal state.

        Args:
            max_cycles: Stop (as if by operator) after this many cycles
        """
        with self._lock:
            if self._started:
                raise RuntimeError("TradingEngine.run() can only be called once")
            self._started = True

        logger.info(
            f"Starting {self.config.bot_name} ({self.config.bot_id}) on "
            f"{self.trading_api.get_implementation_name()} with {len(self.bindings)} market(s)"
        )
        logger.info(f"Engine config: {self.config.to_dict()}")

        reason = self._init_strategies()
        if reason is not None:
            return self._shutdown(reason)

        self._set_state(EngineState.RUNNING)

        while True:
            if self._stop_event.is_set():
                return self._shutdown(self._operator_stop("Stopped by operator"))

            reason = self._run_cycle()
            self._publish_snapshot()
            if reason is not None:
                return self._shutdown(reason)

            if max_cycles is not None and self._cycle_count >= max_cycles:
                return self._shutdown(self._operator_stop(f"Completed {max_cycles} cycle(s)"))

            logger.debug(f"Sleeping {self.config.trade_cycle_interval}s until next cycle")
            self._wait(self.config.trade_cycle_interval)

    # --- Lifecycle ---

    def _init_strategies(self) -> Optional[ShutdownReason]:
        for binding in self.bindings:
            try:
                binding.strategy.init(self.trading_api, binding.market, binding.strategy_config)
            except Exception as e:
                message = (f"Failed to initialise strategy '{binding.strategy_id}' "
                           f"for market {binding.market.name}: {e}")
                logger.error(message)
                return ShutdownReason(EngineState.STOPPED, FailureKind.FATAL, message, e)
            self._last_errors[binding.market.id] = None
            logger.info(f"Strategy '{binding.strategy_id}' bound to market {binding.market.name}")
        return None

    def _run_cycle(self) -> Optional[ShutdownReason]:
        self._cycle_count += 1
        self._last_cycle_started = datetime.now()
        logger.info(f"*** Trade cycle {self._cycle_count} ***")

        try:
            result = self.risk_guard.check()
        except Exception as e:
            message = f"Emergency stop check failed: {e}"
            logger.error(message)
            return ShutdownReason(EngineState.STOPPED, FailureKind.FATAL, message, e)

        if result.balance is not None:
            self._last_balance = result.balance
        if result.tripped:
            return ShutdownReason(EngineState.CRITICAL_ERROR, FailureKind.FATAL, result.message)

        for binding in self.bindings:
            market = binding.market
            try:
                binding.strategy.execute()
            except Exception as e:
                if classify_failure(e) is FailureKind.TRANSIENT:
                    logger.warning(f"[{market.name}] Transient failure, retrying next cycle: {e}")
                    self._last_errors[market.id] = str(e)
                    continue
                message = f"Strategy '{binding.strategy_id}' failed on market {market.name}: {e}"
                logger.error(message, exc_info=not isinstance(e, TradingFailure))
                return ShutdownReason(EngineState.STOPPED, FailureKind.FATAL, message, e)
            self._last_errors[market.id] = None

        self._last_cycle_finished = datetime.now()
        return None

    def _shutdown(self, reason: ShutdownReason) -> ShutdownReason:
        with self._lock:
            self._state = reason.state
            self._shutdown_reason = reason

        if reason.is_operator_stop:
            logger.info(f"Engine {reason.state.value}: {reason.message}")
        else:
            logger.critical(f"Engine {reason.state.value}: {reason.message}")
            self._send_alert(reason)

        self._publish_snapshot()
        if self.on_shutdown is not None:
            self.on_shutdown(reason)
        return reason

    def _send_alert(self, reason: ShutdownReason) -> None:
        if self.alerter is None or not self.alerter.enabled:
            return
        if reason.state is EngineState.CRITICAL_ERROR:
            subject = "CRITICAL: emergency stop triggered"
        else:
            subject = "FATAL: bot stopped"
        body = (
            f"Bot: {self.config.bot_name} ({self.config.bot_id})\n"
            f"State: {reason.state.value}\n"
            f"Cycle: {self._cycle_count}\n"
            f"Time: {datetime.now().isoformat()}\n\n"
            f"{reason.message}\n"
        )
        if reason.cause is not None:
            body += f"\nCause: {reason.cause!r}\n"
        body += "\nThe bot will not trade again until it is restarted."
        self.alerter.send_message(subject, body)

    # --- State / snapshots ---

    def _set_state(self, state: EngineState) -> None:
        with self._lock:
            previous, self._state = self._state, state
        logger.info(f"Engine state: {previous.value} -> {state.value}")
        self._publish_snapshot()

    @staticmethod
    def _operator_stop(message: str) -> ShutdownReason:
        return ShutdownReason(EngineState.STOPPED, None, message)

    def _publish_snapshot(self) -> None:
        self._snapshot = self._build_snapshot()

    def _build_snapshot(self) -> EngineSnapshot:
        with self._lock:
            state = self._state
            reason = self._shutdown_reason

        markets = []
        for binding in self.bindings:
            markets.append(MarketStatus(
                market_id=binding.market.id,
                market_name=binding.market.name,
                strategy_id=binding.strategy_id,
                last_error=self._last_errors.get(binding.market.id),
                strategy_state=self._describe_strategy(binding),
            ))

        return EngineSnapshot(
            bot_id=self.config.bot_id,
            bot_name=self.config.bot_name,
            state=state,
            cycle_count=self._cycle_count,
            last_cycle_started=self._last_cycle_started,
            last_cycle_finished=self._last_cycle_finished,
            emergency_stop_balance=self._last_balance,
            shutdown_reason=reason.message if reason else None,
            markets=markets,
        )

    def _describe_strategy(self, binding: MarketBinding) -> Dict[str, str]:
        # describe_state() is only safe once init() has bound the strategy
        if not self._started:
            return {}
        try:
            return {str(k): str(v) for k, v in binding.strategy.describe_state().items()}
        except Exception as e:
            logger.error(f"[{binding.market.name}] describe_state() failed: {e}", exc_info=True)
            return {}
