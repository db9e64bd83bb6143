"""ORM models for the off-chain ledger.

Addresses are stored lower-cased. Ordered collections (transactions,
allocations, activity feed) are ordered by their surrogate ``seq`` key,
which follows insertion order.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from monspark.db.base import Base, BigIntPK, JSONType


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class LedgerUser(Base):
    """One row per wallet address."""

    __tablename__ = "ledger_users"

    address: Mapped[str] = mapped_column(String(42), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_active: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class QuestProgress(Base):
    """Local completion cache. Rows are only ever inserted, never cleared."""

    __tablename__ = "quest_progress"

    address: Mapped[str] = mapped_column(
        String(42), ForeignKey("ledger_users.address", ondelete="CASCADE"), primary_key=True
    )
    quest_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# ---------------------------------------------------------------------------
# Transactions and gas allocations
# ---------------------------------------------------------------------------


class LedgerTransaction(Base):
    """Value transfers recorded against a user (tips, donations, transfers, bridges)."""

    __tablename__ = "ledger_transactions"

    seq: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)
    address: Mapped[str] = mapped_column(
        String(42), ForeignKey("ledger_users.address", ondelete="CASCADE"), index=True, nullable=False
    )
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    amount: Mapped[str] = mapped_column(String(80), nullable=False)
    to_address: Mapped[str | None] = mapped_column(String(128), nullable=True)
    from_address: Mapped[str | None] = mapped_column(String(128), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    tx_hash: Mapped[str | None] = mapped_column(String(66), nullable=True)


class GasAllocationRow(Base):
    """Gas credit allocations mirrored from the GasManager contract."""

    __tablename__ = "gas_allocations"

    seq: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    allocation_id: Mapped[str] = mapped_column(String(66), index=True, nullable=False)
    address: Mapped[str] = mapped_column(
        String(42), ForeignKey("ledger_users.address", ondelete="CASCADE"), index=True, nullable=False
    )
    amount: Mapped[str] = mapped_column(String(80), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")
    transaction_id: Mapped[str | None] = mapped_column(String(128), nullable=True)


# ---------------------------------------------------------------------------
# Activity feed
# ---------------------------------------------------------------------------


class ActivityRow(Base):
    """Global activity feed, capped and newest first by ``seq``."""

    __tablename__ = "activity_feed"

    seq: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    user_address: Mapped[str] = mapped_column(String(42), index=True, nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    extra_data: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSONType, nullable=True)
