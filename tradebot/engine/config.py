"""
Configuration loading.

Single source of truth for the bot's YAML config directory:

    engine.yaml        engine: block (bot identity, emergency stop, cycle interval)
    markets.yaml       markets: list
    strategies.yaml    strategies: list
    exchange.yaml      exchange: block
    email-alerts.yaml  emailAlerts: block (optional)

Everything is loaded once at startup and treated as read-only for the
lifetime of the process. Any problem raises ConfigurationError.
"""

import os
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from dotenv import load_dotenv

from .errors import ConfigurationError

ENGINE_CONFIG_FILENAME = "engine.yaml"
MARKETS_CONFIG_FILENAME = "markets.yaml"
STRATEGIES_CONFIG_FILENAME = "strategies.yaml"
EXCHANGE_CONFIG_FILENAME = "exchange.yaml"
EMAIL_ALERTS_CONFIG_FILENAME = "email-alerts.yaml"

BOT_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
BOT_NAME_PATTERN = re.compile(r"^[A-Za-z0-9 ]+$")


@dataclass(frozen=True)
class EngineConfig:
    """
    Core engine configuration.

    Frozen: reloading requires a restart.
    """
    bot_id: str
    bot_name: str
    emergency_stop_currency: str
    emergency_stop_balance: Decimal
    trade_cycle_interval: int

    def __post_init__(self):
        if not BOT_ID_PATTERN.match(self.bot_id or ""):
            raise ConfigurationError(
                f"botId must be alphanumeric (underscores and dashes allowed): {self.bot_id!r}")
        if not BOT_NAME_PATTERN.match(self.bot_name or ""):
            raise ConfigurationError(
                f"botName must be alphanumeric (spaces allowed): {self.bot_name!r}")
        if not self.emergency_stop_currency:
            raise ConfigurationError("emergencyStopCurrency must be set")
        if not self.emergency_stop_balance.is_finite():
            raise ConfigurationError(
                f"emergencyStopBalance must be a finite number: {self.emergency_stop_balance}")
        if self.emergency_stop_balance < 0:
            raise ConfigurationError(
                f"emergencyStopBalance must not be negative: {self.emergency_stop_balance}")
        if self.trade_cycle_interval < 1:
            raise ConfigurationError(
                f"tradeCycleInterval must be at least 1 second: {self.trade_cycle_interval}")

    @property
    def emergency_stop_enabled(self) -> bool:
        return self.emergency_stop_balance != 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for logging."""
        return {
            "bot_id": self.bot_id,
            "bot_name": self.bot_name,
            "emergency_stop_currency": self.emergency_stop_currency,
            "emergency_stop_balance": str(self.emergency_stop_balance),
            "trade_cycle_interval": self.trade_cycle_interval,
        }


@dataclass(frozen=True)
class MarketConfig:
    id: str
    name: str
    base_currency: str
    counter_currency: str
    enabled: bool
    trading_strategy_id: str


@dataclass(frozen=True)
class StrategyDefinition:
    id: str
    name: str
    class_name: str
    description: str = ""
    config_items: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ExchangeConfig:
    """
    Exchange adapter settings.

    Credentials may come from EXCHANGE_API_KEY / EXCHANGE_API_SECRET
    (environment or .env) instead of the YAML file.
    """
    name: str
    exchange_id: str
    adapter: str = "ccxt"
    api_key: Optional[str] = None
    secret: Optional[str] = None
    sandbox: bool = False
    connection_timeout: int = 30
    non_fatal_error_codes: Tuple[int, ...] = ()
    non_fatal_error_messages: Tuple[str, ...] = ()
    other_config: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class SmtpConfig:
    host: str
    tls_port: int
    account_username: str
    account_password: str
    from_address: str
    to_address: str


@dataclass(frozen=True)
class EmailAlertsConfig:
    enabled: bool = False
    smtp: Optional[SmtpConfig] = None


@dataclass(frozen=True)
class BotConfig:
    """Everything loaded from one config directory."""
    engine: EngineConfig
    markets: List[MarketConfig]
    strategies: List[StrategyDefinition]
    exchange: ExchangeConfig
    email_alerts: EmailAlertsConfig


# --- YAML helpers ---

def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse {path}", e)
    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected a mapping at the top of {path}")
    return data


def _require(data: Dict[str, Any], key: str, where: str) -> Any:
    value = data.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ConfigurationError(f"Mandatory '{key}' missing in {where}")
    return value


def _to_decimal(value: Any, key: str, where: str) -> Decimal:
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ConfigurationError(f"'{key}' in {where} is not a number: {value!r}", e)
    if not result.is_finite():
        raise ConfigurationError(f"'{key}' in {where} is not a finite number: {value!r}")
    return result


def _to_int(value: Any, key: str, where: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"'{key}' in {where} is not an integer: {value!r}", e)


def _to_bool(value: Any, key: str, where: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigurationError(f"'{key}' in {where} must be true or false: {value!r}")
    return value


def _require_mapping(value: Any, where: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigurationError(f"Expected a mapping in {where}, got {value!r}")
    return value


# --- Loaders ---

def load_engine_config(path: Path) -> EngineConfig:
    data = _read_yaml(path)
    engine = data.get("engine")
    if not isinstance(engine, dict):
        raise ConfigurationError(f"Missing 'engine' block in {path}")

    where = str(path)
    return EngineConfig(
        bot_id=str(_require(engine, "botId", where)),
        bot_name=str(_require(engine, "botName", where)),
        emergency_stop_currency=str(_require(engine, "emergencyStopCurrency", where)),
        emergency_stop_balance=_to_decimal(
            _require(engine, "emergencyStopBalance", where), "emergencyStopBalance", where),
        trade_cycle_interval=_to_int(
            _require(engine, "tradeCycleInterval", where), "tradeCycleInterval", where),
    )


def load_market_configs(path: Path) -> List[MarketConfig]:
    data = _read_yaml(path)
    entries = data.get("markets") or []
    if not isinstance(entries, list):
        raise ConfigurationError(f"'markets' in {path} must be a list")

    markets = []
    seen = set()
    for i, entry in enumerate(entries):
        where = f"{path} (market #{i + 1})"
        entry = _require_mapping(entry, where)
        market = MarketConfig(
            id=str(_require(entry, "id", where)),
            name=str(_require(entry, "name", where)),
            base_currency=str(_require(entry, "baseCurrency", where)),
            counter_currency=str(_require(entry, "counterCurrency", where)),
            enabled=_to_bool(entry.get("enabled", True), "enabled", where),
            trading_strategy_id=str(_require(entry, "tradingStrategyId", where)),
        )
        if market.id in seen:
            raise ConfigurationError(f"Duplicate market id '{market.id}' in {path}")
        seen.add(market.id)
        markets.append(market)
    return markets


def load_strategy_definitions(path: Path) -> List[StrategyDefinition]:
    data = _read_yaml(path)
    entries = data.get("strategies") or []
    if not isinstance(entries, list):
        raise ConfigurationError(f"'strategies' in {path} must be a list")

    strategies = []
    seen = set()
    for i, entry in enumerate(entries):
        where = f"{path} (strategy #{i + 1})"
        entry = _require_mapping(entry, where)
        items = entry.get("configItems") or {}
        if not isinstance(items, dict):
            raise ConfigurationError(f"'configItems' in {where} must be a mapping")
        definition = StrategyDefinition(
            id=str(_require(entry, "id", where)),
            name=str(_require(entry, "name", where)),
            class_name=str(_require(entry, "className", where)),
            description=str(entry.get("description") or ""),
            config_items={str(k): str(v) for k, v in items.items()},
        )
        if definition.id in seen:
            raise ConfigurationError(f"Duplicate strategy id '{definition.id}' in {path}")
        seen.add(definition.id)
        strategies.append(definition)
    return strategies


def load_exchange_config(path: Path) -> ExchangeConfig:
    data = _read_yaml(path)
    exchange = data.get("exchange")
    if not isinstance(exchange, dict):
        raise ConfigurationError(f"Missing 'exchange' block in {path}")

    where = str(path)
    auth = _require_mapping(exchange.get("authenticationConfig") or {}, f"{path} (authenticationConfig)")
    network = _require_mapping(exchange.get("networkConfig") or {}, f"{path} (networkConfig)")
    other = _require_mapping(exchange.get("otherConfig") or {}, f"{path} (otherConfig)")

    # Environment (or .env) wins over the file
    load_dotenv()
    api_key = os.environ.get("EXCHANGE_API_KEY") or auth.get("apiKey")
    secret = os.environ.get("EXCHANGE_API_SECRET") or auth.get("secret")

    codes = tuple(_to_int(c, "nonFatalErrorCodes", where)
                  for c in network.get("nonFatalErrorCodes") or [])
    messages = tuple(str(m) for m in network.get("nonFatalErrorMessages") or [])

    return ExchangeConfig(
        name=str(_require(exchange, "name", where)),
        exchange_id=str(_require(exchange, "exchangeId", where)),
        adapter=str(exchange.get("adapter") or "ccxt"),
        api_key=api_key,
        secret=secret,
        sandbox=_to_bool(exchange.get("sandbox", False), "sandbox", where),
        connection_timeout=_to_int(network.get("connectionTimeout", 30), "connectionTimeout", where),
        non_fatal_error_codes=codes,
        non_fatal_error_messages=messages,
        other_config={str(k): str(v) for k, v in other.items()},
    )


def load_email_alerts_config(path: Path) -> EmailAlertsConfig:
    """Optional file: a missing file means alerts are disabled."""
    if not path.exists():
        return EmailAlertsConfig()

    data = _read_yaml(path)
    alerts = _require_mapping(data.get("emailAlerts") or {}, f"{path} (emailAlerts)")
    enabled = _to_bool(alerts.get("enabled", False), "enabled", str(path))
    smtp_block = alerts.get("smtpConfig")

    if not enabled:
        return EmailAlertsConfig(enabled=False)
    if not isinstance(smtp_block, dict):
        raise ConfigurationError(f"Email alerts enabled but 'smtpConfig' missing in {path}")

    where = f"{path} (smtpConfig)"
    smtp = SmtpConfig(
        host=str(_require(smtp_block, "host", where)),
        tls_port=_to_int(_require(smtp_block, "tlsPort", where), "tlsPort", where),
        account_username=str(_require(smtp_block, "accountUsername", where)),
        account_password=str(_require(smtp_block, "accountPassword", where)),
        from_address=str(_require(smtp_block, "fromAddress", where)),
        to_address=str(_require(smtp_block, "toAddress", where)),
    )
    return EmailAlertsConfig(enabled=True, smtp=smtp)


def load_bot_config(config_dir: str) -> BotConfig:
    base = Path(config_dir)
    return BotConfig(
        engine=load_engine_config(base / ENGINE_CONFIG_FILENAME),
        markets=load_market_configs(base / MARKETS_CONFIG_FILENAME),
        strategies=load_strategy_definitions(base / STRATEGIES_CONFIG_FILENAME),
        exchange=load_exchange_config(base / EXCHANGE_CONFIG_FILENAME),
        email_alerts=load_email_alerts_config(base / EMAIL_ALERTS_CONFIG_FILENAME),
    )
