"""
Trading engine core.

A cycle scheduler with strict state machine discipline that drives
pluggable strategies against an exchange adapter.

Modules:
- enums: Engine states, order types, failure kinds
- errors: Failures crossing the adapter / strategy / engine boundaries
- market: Market, order book, open order and balance types
- trading_api: Exchange adapter contract
- strategy: Strategy contract and its key/value config
- strategies: Bundled strategies (example scalping)
- config: YAML configuration loading
- registry: Market -> strategy bindings
- risk: Emergency stop guard
- models: Status snapshots (pydantic)
- alerts: Email alerts
- logfile: Log file reader
- logger: Logging setup
- engine: The trading engine (IDLE -> RUNNING -> STOPPED | CRITICAL_ERROR)

Key principles:
- Fail safe by stopping
- Single-threaded, ordered strategy execution
- Explicit state transitions
"""

from .enums import EngineState, OrderType, FailureKind
from .errors import TradingFailure, ExchangeError, StrategyError, ConfigurationError, classify_failure
from .market import Market, MarketOrder, MarketOrderBook, OpenOrder, BalanceInfo
from .trading_api import TradingApi
from .strategy import TradingStrategy, StrategyConfig
from .config import (
    EngineConfig, MarketConfig, StrategyDefinition, ExchangeConfig,
    SmtpConfig, EmailAlertsConfig, BotConfig, load_bot_config,
)
from .registry import MarketRegistry, MarketBinding, STRATEGY_MAP, load_strategy_class
from .risk import EmergencyStopGuard, RiskCheckResult
from .models import EngineSnapshot, MarketStatus
from .alerts import EmailAlerter
from .logfile import BotLogfileService
from .engine import TradingEngine, ShutdownReason

__all__ = [
    # Enums
    'EngineState',
    'OrderType',
    'FailureKind',

    # Errors
    'TradingFailure',
    'ExchangeError',
    'StrategyError',
    'ConfigurationError',
    'classify_failure',

    # Market types
    'Market',
    'MarketOrder',
    'MarketOrderBook',
    'OpenOrder',
    'BalanceInfo',

    # Contracts
    'TradingApi',
    'TradingStrategy',
    'StrategyConfig',

    # Config
    'EngineConfig',
    'MarketConfig',
    'StrategyDefinition',
    'ExchangeConfig',
    'SmtpConfig',
    'EmailAlertsConfig',
    'BotConfig',
    'load_bot_config',

    # Registry
    'MarketRegistry',
    'MarketBinding',
    'STRATEGY_MAP',
    'load_strategy_class',

    # Risk
    'EmergencyStopGuard',
    'RiskCheckResult',

    # Status
    'EngineSnapshot',
    'MarketStatus',

    # Alerts / logs
    'EmailAlerter',
    'BotLogfileService',

    # Engine
    'TradingEngine',
    'ShutdownReason',
]
