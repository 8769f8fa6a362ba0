"""Connectivity Schemas - Pydantic models with field-level validation for API boundaries.

Invariants:
    - RawEventIn satisfies the RawConnectivityEvent protocol structurally
    - is_connected=None is accepted (platform could not tell) and treated as offline
    - type is stripped and lower-cased; empty becomes "unknown"
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator


class RawEventIn(BaseModel):
    """Raw connectivity report pushed by a platform sensor."""
    is_connected: bool | None
    is_internet_reachable: bool | None = None
    type: str = Field("unknown", max_length=32)
    details: dict[str, Any] | None = None

    @field_validator("type")
    @classmethod
    def normalize_type(cls, v: str) -> str:
        v = v.strip().lower()
        return v or "unknown"


class ConnectivityStateOut(BaseModel):
    """Public view of the current ConnectivityState."""
    connected: bool
    internet_reachable: bool | None
    transport_kind: str
    details: Any = None
    available: bool


class QueueEntryOut(BaseModel):
    id: str
    name: str
    enqueued_at: str
    replay_count: int


class CancelAllOut(BaseModel):
    cancelled: int
