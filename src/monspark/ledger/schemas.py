"""Pydantic views of ledger records (camelCase on the wire)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import AliasChoices, Field, field_validator

from monspark.schemas import CamelModel

TransactionType = Literal["tip", "donation", "transfer", "bridge"]
TransactionStatus = Literal["pending", "completed", "failed"]
AllocationStatus = Literal["active", "reverted"]
ActivityType = Literal["quest_completed", "gas_allocated", "gas_reverted", "transaction", "level_up"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Transaction(CamelModel):
    id: str
    type: TransactionType
    amount: str
    to: str | None = Field(
        default=None, validation_alias=AliasChoices("to", "to_address"), serialization_alias="to"
    )
    from_: str | None = Field(
        default=None, validation_alias=AliasChoices("from", "from_", "from_address"), serialization_alias="from"
    )
    timestamp: datetime = Field(default_factory=utcnow)
    status: TransactionStatus = "pending"
    tx_hash: str | None = None

    @field_validator("timestamp")
    @classmethod
    def timestamp_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class GasAllocation(CamelModel):
    allocation_id: str
    amount: str
    timestamp: datetime = Field(default_factory=utcnow)
    status: AllocationStatus = "active"
    transaction_id: str | None = None

    @field_validator("timestamp")
    @classmethod
    def timestamp_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class Activity(CamelModel):
    id: str
    user_address: str
    type: ActivityType
    description: str
    timestamp: datetime = Field(default_factory=utcnow)
    metadata: dict[str, Any] | None = Field(default=None, validation_alias=AliasChoices("extra_data", "metadata"))

    @field_validator("timestamp")
    @classmethod
    def timestamp_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class UserRecord(CamelModel):
    address: str
    quest_progress: dict[int, bool] = {}
    transactions: list[Transaction] = []
    allocations: list[GasAllocation] = []
    created_at: datetime | None = None
    last_active: datetime | None = None

    @field_validator("created_at", "last_active")
    @classmethod
    def timestamps_utc(cls, value: datetime | None) -> datetime | None:
        return None if value is None else _as_utc(value)

    @classmethod
    def empty(cls, address: str) -> UserRecord:
        """Default view for an address the ledger has never seen."""
        return cls(address=address)
