"""
Engine states and trading enums.

Explicit naming keeps state transitions auditable in the logs.
"""

from enum import Enum


class EngineState(str, Enum):
    """
    Lifecycle of the trading engine.

    IDLE: constructed, no cycle has run yet
    RUNNING: cycles are being scheduled
    STOPPED: terminal; operator stop or fatal strategy/config failure
    CRITICAL_ERROR: terminal; the emergency stop tripped
    """
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    STOPPED = "STOPPED"
    CRITICAL_ERROR = "CRITICAL_ERROR"

    @property
    def is_terminal(self) -> bool:
        return self in (EngineState.STOPPED, EngineState.CRITICAL_ERROR)


class OrderType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class FailureKind(str, Enum):
    """
    How the engine reacts to a failure.

    TRANSIENT: log it, retry the same market next cycle
    FATAL: stop the bot now
    """
    TRANSIENT = "TRANSIENT"
    FATAL = "FATAL"
