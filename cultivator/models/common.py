"""Shared types, helpers, and base models used across cultivator domain models."""

from datetime import datetime, timezone
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, Field
from uuid_extensions import uuid7


def utc_now() -> datetime:
    """Return the current UTC timestamp (timezone-aware)."""
    return datetime.now(tz=timezone.utc)


def new_uuid7() -> UUID:
    """Generate a new time-sortable UUID v7."""
    return uuid7()


def to_epoch_ms(moment: datetime) -> int:
    """Convert a timezone-aware datetime to epoch milliseconds."""
    return int(moment.timestamp() * 1000)


def from_epoch_ms(value: int) -> datetime:
    """Convert epoch milliseconds to a UTC datetime."""
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


# --- Reusable annotated types ---

UUIDv7 = Annotated[UUID, Field(description="Time-sortable UUID v7.")]
UTCTimestamp = Annotated[
    datetime, Field(description="UTC timezone-aware timestamp.")
]
EpochMillis = Annotated[
    int, Field(ge=0, description="Milliseconds since the Unix epoch.")
]


# --- Base model ---


class CultivatorBase(BaseModel):
    """Base model with common configuration for all cultivator Pydantic models."""

    model_config = {
        "populate_by_name": True,
        "ser_json_timedelta": "iso8601",
        "protected_namespaces": (),
    }
