from abc import ABC, abstractmethod
from typing import Dict, Iterator, Mapping, Optional

from .market import Market
from .trading_api import TradingApi


class StrategyConfig(Mapping):
    """
    Read-only key/value config for one strategy, as loaded from strategies.yaml.
    Values are strings; each strategy validates its own keys in init().
    """

    def __init__(self, items: Optional[Mapping[str, str]] = None):
        self._items: Dict[str, str] = {str(k): str(v) for k, v in (items or {}).items()}

    def get_config_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def __getitem__(self, key: str) -> str:
        return self._items[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"StrategyConfig({self._items})"


class TradingStrategy(ABC):
    """
    Abstract base class for all trading strategies.

    The engine guarantees:
    1. init() is called once, before the first trade cycle
    2. execute() is called exactly once per trade cycle
    3. execute() is never called concurrently, with itself or any other strategy

    So a strategy needs no locking around its own state.

    execute() may raise StrategyError to tell the engine to shut the bot down.
    Network hiccups should be logged and swallowed so the next cycle retries.
    """

    @abstractmethod
    def init(self, trading_api: TradingApi, market: Market, config: StrategyConfig) -> None:
        """
        Bind the strategy to its market and validate its config.
        Raises ConfigurationError if a mandatory config item is missing or invalid.
        """
        pass

    @abstractmethod
    def execute(self) -> None:
        pass

    def describe_state(self) -> Dict[str, str]:
        """
        State summary for status snapshots. Called on the engine thread only.
        """
        return {}
