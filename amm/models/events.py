"""Pydantic models for observable engine events.

Each event carries enough data for an external indexer to rebuild pool
history without reading engine state.
"""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field


class Event(BaseModel):
    """Base class for engine events."""

    name: ClassVar[str] = "Event"

    timestamp: int = Field(ge=0, description="Engine time the event was emitted at.")

    model_config = ConfigDict(frozen=True)


class PoolCreated(Event):
    name: ClassVar[str] = "PoolCreated"

    token_a: str
    token_b: str
    creator: str
    pool_count: int


class LiquidityAdded(Event):
    name: ClassVar[str] = "LiquidityAdded"

    provider: str
    to: str
    token_a: str
    token_b: str
    amount_a: int
    amount_b: int
    liquidity: int


class LiquidityRemoved(Event):
    name: ClassVar[str] = "LiquidityRemoved"

    provider: str
    to: str
    token_a: str
    token_b: str
    amount_a: int
    amount_b: int
    liquidity: int


class Swap(Event):
    name: ClassVar[str] = "Swap"

    sender: str
    to: str
    token_in: str
    token_out: str
    amount_in: int
    amount_out: int
    trading_fee: int
    protocol_fee: int


class ReservesUpdated(Event):
    name: ClassVar[str] = "ReservesUpdated"

    token_a: str
    token_b: str
    reserve_a: int
    reserve_b: int


class LiquidityLocked(Event):
    name: ClassVar[str] = "LiquidityLocked"

    project_id: int
    token_a: str
    token_b: str
    owner: str
    amount: int
    unlock_time: int


class LiquidityUnlocked(Event):
    name: ClassVar[str] = "LiquidityUnlocked"

    project_id: int
    token_a: str
    token_b: str
    owner: str
    unlocked_amount: int


class ProtocolFeesCollected(Event):
    name: ClassVar[str] = "ProtocolFeesCollected"

    token_a: str
    token_b: str
    recipient: str
    amount_a: int
    amount_b: int


class FeeConfigUpdated(Event):
    name: ClassVar[str] = "FeeConfigUpdated"

    trading_fee_bps: int
    protocol_fee_bps: int
    fee_recipient: str
    fees_enabled: bool
