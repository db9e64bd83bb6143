"""Ledger Store: CRUD over user records and the global activity feed.

No business rules live here. Every mutating method commits its own unit of
work, so each call is atomic and durable when it returns. Rows are updated
individually, never rewritten as a whole snapshot.

Policies:
- Unknown addresses read as ``None``; they are created on first write.
- Quest flags are monotonic.
- Transaction and allocation updates on an unknown id are silent no-ops.
- Status updates never move backwards (pending -> completed/failed,
  active -> reverted).
- The activity feed keeps only the newest ``max_activities`` entries.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from monspark.db.models import (
    ActivityRow,
    GasAllocationRow,
    LedgerTransaction,
    LedgerUser,
    QuestProgress,
)
from monspark.errors import InvalidStateTransition
from monspark.ledger.ids import generate_id
from monspark.ledger.schemas import (
    Activity,
    GasAllocation,
    Transaction,
    UserRecord,
    utcnow,
)

logger = structlog.get_logger()

DEFAULT_MAX_ACTIVITIES = 100

_TRANSACTION_FIELDS = {
    "type": "type",
    "amount": "amount",
    "to": "to_address",
    "from_": "from_address",
    "timestamp": "timestamp",
    "status": "status",
    "tx_hash": "tx_hash",
}
_ALLOCATION_FIELDS = {"amount", "timestamp", "status", "transaction_id"}

# Allowed status moves; staying in place is always allowed.
_TRANSACTION_MOVES = {"pending": {"completed", "failed"}}
_ALLOCATION_MOVES = {"active": {"reverted"}}


def _check_move(kind: str, current: str, target: str, moves: dict[str, set[str]]) -> None:
    if target != current and target not in moves.get(current, set()):
        msg = f"Cannot move {kind} from {current} to {target}"
        raise InvalidStateTransition(msg)


class LedgerStore:
    """Ledger persistence bound to one database session."""

    def __init__(self, db: AsyncSession, max_activities: int = DEFAULT_MAX_ACTIVITIES) -> None:
        self.db = db
        self.max_activities = max_activities

    # ── Users ──

    async def _get_user_row(self, address: str) -> LedgerUser | None:
        result = await self.db.execute(
            select(LedgerUser).where(LedgerUser.address == address.lower())
        )
        return result.scalar_one_or_none()

    async def _ensure_user_row(self, address: str, now: datetime | None = None) -> LedgerUser:
        """Get or create the user row, refreshing ``last_active``. Flushes, does not commit."""
        now = now or utcnow()
        row = await self._get_user_row(address)
        if row is None:
            row = LedgerUser(address=address.lower(), created_at=now, last_active=now)
            self.db.add(row)
        else:
            row.last_active = now
        await self.db.flush()
        return row

    async def _build_record(self, row: LedgerUser) -> UserRecord:
        progress = await self.db.execute(
            select(QuestProgress.quest_id, QuestProgress.completed)
            .where(QuestProgress.address == row.address)
            .order_by(QuestProgress.quest_id)
        )
        return UserRecord(
            address=row.address,
            quest_progress={quest_id: completed for quest_id, completed in progress},
            transactions=await self.get_transactions(row.address),
            allocations=await self.get_allocations(row.address),
            created_at=row.created_at,
            last_active=row.last_active,
        )

    async def get_user(self, address: str) -> UserRecord | None:
        """Return the user's record, or None for an address never written."""
        row = await self._get_user_row(address)
        if row is None:
            return None
        return await self._build_record(row)

    async def get_all_addresses(self) -> list[str]:
        result = await self.db.execute(select(LedgerUser.address).order_by(LedgerUser.created_at))
        return list(result.scalars().all())

    async def create_user(self, address: str) -> UserRecord:
        """Create the user if absent. Existing records are returned untouched."""
        row = await self._get_user_row(address)
        if row is None:
            now = utcnow()
            row = LedgerUser(address=address.lower(), created_at=now, last_active=now)
            self.db.add(row)
            await self.db.commit()
            logger.info("ledger_user_created", address=row.address)
        return await self._build_record(row)

    async def update_user(
        self,
        address: str,
        quest_progress: dict[int, bool] | None = None,
    ) -> UserRecord:
        """Merge fields into the user's record, creating it first if needed.

        Only ``True`` quest flags are applied; a flag is never cleared.
        ``last_active`` is always refreshed.
        """
        now = utcnow()
        row = await self._ensure_user_row(address, now)
        for quest_id, completed in (quest_progress or {}).items():
            if completed:
                await self._set_quest_flag(row.address, int(quest_id), now)
        await self.db.commit()
        return await self._build_record(row)

    # ── Quest progress ──

    async def _set_quest_flag(self, address: str, quest_id: int, now: datetime) -> bool:
        existing = await self.db.get(QuestProgress, (address, quest_id))
        if existing is not None:
            return False
        self.db.add(QuestProgress(address=address, quest_id=quest_id, completed=True, completed_at=now))
        await self.db.flush()
        return True

    async def mark_quest_completed(self, address: str, quest_id: int) -> None:
        """Set the local completion flag. Repeated calls are no-ops."""
        now = utcnow()
        row = await self._ensure_user_row(address, now)
        await self._set_quest_flag(row.address, quest_id, now)
        await self.db.commit()

    async def has_completed_quest(self, address: str, quest_id: int) -> bool:
        existing = await self.db.get(QuestProgress, (address.lower(), quest_id))
        return bool(existing and existing.completed)

    # ── Transactions ──

    async def add_transaction(self, address: str, transaction: Transaction) -> Transaction:
        row = await self._ensure_user_row(address)
        self.db.add(LedgerTransaction(
            id=transaction.id,
            address=row.address,
            type=transaction.type,
            amount=transaction.amount,
            to_address=transaction.to,
            from_address=transaction.from_,
            timestamp=transaction.timestamp,
            status=transaction.status,
            tx_hash=transaction.tx_hash,
        ))
        await self.db.commit()
        return transaction

    async def get_transactions(self, address: str) -> list[Transaction]:
        result = await self.db.execute(
            select(LedgerTransaction)
            .where(LedgerTransaction.address == address.lower())
            .order_by(LedgerTransaction.seq)
        )
        return [Transaction.model_validate(r) for r in result.scalars()]

    async def update_transaction(self, address: str, transaction_id: str, **updates: Any) -> Transaction | None:
        """Merge fields into a transaction. Unknown user or id is a silent no-op."""
        result = await self.db.execute(
            select(LedgerTransaction).where(
                LedgerTransaction.address == address.lower(),
                LedgerTransaction.id == transaction_id,
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None

        if "status" in updates:
            _check_move("transaction", row.status, updates["status"], _TRANSACTION_MOVES)
        for field, value in updates.items():
            column = _TRANSACTION_FIELDS.get(field)
            if column is None:
                msg = f"Unknown transaction field: {field}"
                raise ValueError(msg)
            setattr(row, column, value)

        await self._ensure_user_row(address)
        await self.db.commit()
        return Transaction.model_validate(row)

    async def find_transaction(self, transaction_id: str) -> tuple[str, Transaction] | None:
        """Look up a transaction by id across all users (unique index on id)."""
        result = await self.db.execute(
            select(LedgerTransaction).where(LedgerTransaction.id == transaction_id)
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        return row.address, Transaction.model_validate(row)

    # ── Gas allocations ──

    async def add_allocation(self, address: str, allocation: GasAllocation) -> GasAllocation:
        row = await self._ensure_user_row(address)
        self.db.add(GasAllocationRow(
            allocation_id=allocation.allocation_id,
            address=row.address,
            amount=allocation.amount,
            timestamp=allocation.timestamp,
            status=allocation.status,
            transaction_id=allocation.transaction_id,
        ))
        await self.db.commit()
        return allocation

    async def get_allocations(self, address: str) -> list[GasAllocation]:
        result = await self.db.execute(
            select(GasAllocationRow)
            .where(GasAllocationRow.address == address.lower())
            .order_by(GasAllocationRow.seq)
        )
        return [GasAllocation.model_validate(r) for r in result.scalars()]

    async def _get_allocation_row(self, address: str, allocation_id: str) -> GasAllocationRow | None:
        result = await self.db.execute(
            select(GasAllocationRow)
            .where(
                GasAllocationRow.address == address.lower(),
                GasAllocationRow.allocation_id == allocation_id,
            )
            .order_by(GasAllocationRow.seq)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_allocation(self, address: str, allocation_id: str) -> GasAllocation | None:
        row = await self._get_allocation_row(address, allocation_id)
        return GasAllocation.model_validate(row) if row else None

    async def update_allocation(self, address: str, allocation_id: str, **updates: Any) -> GasAllocation | None:
        """Merge fields into an allocation. Unknown user or id is a silent no-op."""
        row = await self._get_allocation_row(address, allocation_id)
        if row is None:
            return None

        if "status" in updates:
            _check_move("allocation", row.status, updates["status"], _ALLOCATION_MOVES)
        for field, value in updates.items():
            if field not in _ALLOCATION_FIELDS:
                msg = f"Unknown allocation field: {field}"
                raise ValueError(msg)
            setattr(row, field, value)

        await self._ensure_user_row(address)
        await self.db.commit()
        return GasAllocation.model_validate(row)

    # ── Activity feed ──

    async def add_activity(self, activity: Activity) -> Activity:
        """Insert at the head of the global feed and drop entries past the cap."""
        self.db.add(ActivityRow(
            id=activity.id,
            user_address=activity.user_address.lower(),
            type=activity.type,
            description=activity.description,
            timestamp=activity.timestamp,
            extra_data=activity.metadata,
        ))
        await self.db.flush()
        await self._prune_activities()
        await self.db.commit()
        return activity

    async def _prune_activities(self) -> int:
        cutoff_result = await self.db.execute(
            select(ActivityRow.seq)
            .order_by(ActivityRow.seq.desc())
            .offset(self.max_activities)
            .limit(1)
        )
        cutoff_seq = cutoff_result.scalar()
        if cutoff_seq is None:
            return 0

        result = await self.db.execute(delete(ActivityRow).where(ActivityRow.seq <= cutoff_seq))
        return result.rowcount  # type: ignore[return-value]

    async def get_all_activities(self, limit: int | None = None) -> list[Activity]:
        """Global feed, newest first."""
        query = select(ActivityRow).order_by(ActivityRow.seq.desc())
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return [Activity.model_validate(r) for r in result.scalars()]

    async def get_user_activities(self, address: str, limit: int = 20) -> list[Activity]:
        """The user's entries still inside the global window, newest first."""
        result = await self.db.execute(
            select(ActivityRow)
            .where(ActivityRow.user_address == address.lower())
            .order_by(ActivityRow.seq.desc())
            .limit(limit)
        )
        return [Activity.model_validate(r) for r in result.scalars()]

    # ── Utility ──

    @staticmethod
    def generate_id() -> str:
        return generate_id()
