"""
Pydantic models for engine status snapshots.

Snapshots are immutable and rebuilt by the engine thread after each cycle,
so other threads can read them without touching strategy state.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import EngineState


class MarketStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    market_id: str
    market_name: str
    strategy_id: str
    last_error: Optional[str] = None
    strategy_state: Dict[str, str] = Field(default_factory=dict)


class EngineSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    bot_id: str
    bot_name: str
    state: EngineState
    cycle_count: int = 0
    last_cycle_started: Optional[datetime] = None
    last_cycle_finished: Optional[datetime] = None
    emergency_stop_balance: Optional[Decimal] = None
    shutdown_reason: Optional[str] = None
    markets: List[MarketStatus] = Field(default_factory=list)
