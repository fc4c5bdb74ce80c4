"""
Failures that cross the adapter / strategy / engine boundaries.

Every failure carries a FailureKind. The engine looks at that kind and
nothing else when deciding whether to keep trading.
"""

from typing import Optional

from .enums import FailureKind


class TradingFailure(Exception):
    """Base failure: a kind, a message and an optional cause."""

    def __init__(self, kind: FailureKind, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.cause = cause

    @property
    def is_fatal(self) -> bool:
        return self.kind is FailureKind.FATAL

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message} (cause: {self.cause})"
        return self.message


class ExchangeError(TradingFailure):
    """
    Raised by exchange adapters.

    Use network() for timeouts / connection resets and protocol() for
    malformed responses or errors reported by the exchange.
    """

    @classmethod
    def network(cls, message: str, cause: Optional[BaseException] = None) -> "ExchangeError":
        return cls(FailureKind.TRANSIENT, message, cause)

    @classmethod
    def protocol(cls, message: str, cause: Optional[BaseException] = None) -> "ExchangeError":
        return cls(FailureKind.FATAL, message, cause)


class StrategyError(TradingFailure):
    """Raised by a strategy to tell the engine to shut the bot down."""

    def __init__(self, message: str, cause: Optional[BaseException] = None,
                 kind: FailureKind = FailureKind.FATAL):
        super().__init__(kind, message, cause)


class ConfigurationError(TradingFailure):
    """Missing or invalid configuration. Always fatal."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(FailureKind.FATAL, message, cause)


def classify_failure(exc: BaseException) -> FailureKind:
    """Anything we do not recognise is treated as fatal."""
    if isinstance(exc, TradingFailure):
        return exc.kind
    return FailureKind.FATAL
