"""Ledger store tests: users, transactions, allocations, activity cap."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from monspark.errors import InvalidStateTransition
from monspark.ledger.schemas import Activity, GasAllocation, Transaction, UserRecord
from monspark.ledger.store import LedgerStore

MIXED = "0xAbCdEf0123456789aBcDeF0123456789AbCdEf01"
LOWER = MIXED.lower()
OTHER = "0x1111111111111111111111111111111111111111"


def _activity(n: int, address: str = LOWER) -> Activity:
    return Activity(
        id=f"act-{n}",
        user_address=address,
        type="transaction",
        description=f"entry {n}",
        metadata={"n": n},
    )


class TestUsers:

    @pytest.mark.asyncio
    async def test_unknown_user_is_none(self, store: LedgerStore):
        assert await store.get_user(LOWER) is None

    @pytest.mark.asyncio
    async def test_lookup_is_case_insensitive(self, store: LedgerStore):
        await store.create_user(MIXED)
        record = await store.get_user(LOWER)
        assert record is not None
        assert record.address == LOWER
        assert await store.get_user(LOWER.upper().replace("0X", "0x")) is not None

    @pytest.mark.asyncio
    async def test_create_is_idempotent(self, store: LedgerStore):
        first = await store.create_user(LOWER)
        await store.mark_quest_completed(LOWER, 1)
        second = await store.create_user(MIXED)
        assert second.created_at == first.created_at
        assert second.quest_progress == {1: True}
        assert await store.get_all_addresses() == [LOWER]

    @pytest.mark.asyncio
    async def test_update_creates_and_merges(self, store: LedgerStore):
        record = await store.update_user(LOWER, quest_progress={2: True})
        assert record.quest_progress == {2: True}
        record = await store.update_user(LOWER, quest_progress={3: True})
        assert record.quest_progress == {2: True, 3: True}

    @pytest.mark.asyncio
    async def test_quest_flags_are_monotonic(self, store: LedgerStore):
        await store.update_user(LOWER, quest_progress={1: True})
        record = await store.update_user(LOWER, quest_progress={1: False})
        assert record.quest_progress == {1: True}

    @pytest.mark.asyncio
    async def test_mark_quest_completed_twice(self, store: LedgerStore):
        await store.mark_quest_completed(MIXED, 4)
        await store.mark_quest_completed(LOWER, 4)
        assert await store.has_completed_quest(MIXED, 4) is True
        assert await store.has_completed_quest(LOWER, 5) is False

    @pytest.mark.asyncio
    async def test_last_active_refreshed(self, store: LedgerStore):
        created = await store.create_user(LOWER)
        updated = await store.update_user(LOWER)
        assert updated.last_active >= created.last_active
        assert updated.created_at == created.created_at

    @pytest.mark.asyncio
    async def test_timestamps_are_utc(self, store: LedgerStore):
        await store.create_user(LOWER)
        record = await store.get_user(LOWER)
        assert record.created_at.tzinfo is not None
        assert record.last_active.utcoffset() == timezone.utc.utcoffset(None)

    def test_naive_timestamps_read_as_utc(self):
        naive = datetime(2026, 1, 2, 3, 4, 5)
        record = UserRecord(address=LOWER, created_at=naive, last_active=naive)
        assert record.created_at == naive.replace(tzinfo=timezone.utc)
        assert record.last_active.utcoffset() == timezone.utc.utcoffset(None)
        assert UserRecord.empty(LOWER).created_at is None


class TestTransactions:

    @pytest.mark.asyncio
    async def test_append_only_in_order(self, store: LedgerStore):
        for n in range(3):
            await store.add_transaction(MIXED, Transaction(id=f"tx-{n}", type="tip", amount="1.0"))
        transactions = await store.get_transactions(LOWER)
        assert [t.id for t in transactions] == ["tx-0", "tx-1", "tx-2"]
        assert transactions[0].status == "pending"

    @pytest.mark.asyncio
    async def test_to_and_from_round_trip(self, store: LedgerStore):
        await store.add_transaction(LOWER, Transaction(
            id="tx-1", type="transfer", amount="2.5", to=OTHER, from_=LOWER,
        ))
        (transaction,) = await store.get_transactions(LOWER)
        assert transaction.to == OTHER
        assert transaction.from_ == LOWER
        dumped = transaction.model_dump(by_alias=True)
        assert dumped["from"] == LOWER
        assert dumped["to"] == OTHER

    @pytest.mark.asyncio
    async def test_update_moves_forward(self, store: LedgerStore):
        await store.add_transaction(LOWER, Transaction(id="tx-1", type="bridge", amount="1.0"))
        updated = await store.update_transaction(LOWER, "tx-1", status="completed", tx_hash="0xabc")
        assert updated is not None
        assert updated.status == "completed"
        assert updated.tx_hash == "0xabc"

    @pytest.mark.asyncio
    async def test_update_backwards_rejected(self, store: LedgerStore):
        await store.add_transaction(LOWER, Transaction(id="tx-1", type="bridge", amount="1.0", status="failed"))
        with pytest.raises(InvalidStateTransition):
            await store.update_transaction(LOWER, "tx-1", status="pending")

    @pytest.mark.asyncio
    async def test_update_unknown_is_noop(self, store: LedgerStore):
        assert await store.update_transaction(LOWER, "missing", status="completed") is None
        assert await store.get_user(LOWER) is None

    @pytest.mark.asyncio
    async def test_find_across_users(self, store: LedgerStore):
        await store.add_transaction(OTHER, Transaction(id="tx-other", type="bridge", amount="3.0"))
        found = await store.find_transaction("tx-other")
        assert found is not None
        owner, transaction = found
        assert owner == OTHER
        assert transaction.amount == "3.0"
        assert await store.find_transaction("nope") is None


class TestAllocations:

    @pytest.mark.asyncio
    async def test_active_to_reverted(self, store: LedgerStore):
        await store.add_allocation(MIXED, GasAllocation(allocation_id="0x01", amount="0.05"))
        updated = await store.update_allocation(LOWER, "0x01", status="reverted")
        assert updated is not None
        assert updated.status == "reverted"
        assert (await store.get_allocation(LOWER, "0x01")).status == "reverted"

    @pytest.mark.asyncio
    async def test_reverted_again_is_noop(self, store: LedgerStore):
        await store.add_allocation(LOWER, GasAllocation(allocation_id="0x01", amount="0.05", status="reverted"))
        updated = await store.update_allocation(LOWER, "0x01", status="reverted")
        assert updated.status == "reverted"

    @pytest.mark.asyncio
    async def test_reverted_to_active_rejected(self, store: LedgerStore):
        await store.add_allocation(LOWER, GasAllocation(allocation_id="0x01", amount="0.05", status="reverted"))
        with pytest.raises(InvalidStateTransition):
            await store.update_allocation(LOWER, "0x01", status="active")

    @pytest.mark.asyncio
    async def test_unknown_allocation_is_noop(self, store: LedgerStore):
        await store.add_allocation(LOWER, GasAllocation(allocation_id="0x01", amount="0.05"))
        assert await store.update_allocation(LOWER, "0x02", status="reverted") is None
        (allocation,) = await store.get_allocations(LOWER)
        assert allocation.status == "active"

    @pytest.mark.asyncio
    async def test_user_record_includes_history(self, store: LedgerStore):
        await store.add_allocation(LOWER, GasAllocation(allocation_id="0x01", amount="0.05"))
        await store.add_transaction(LOWER, Transaction(id="tx-1", type="tip", amount="1.0"))
        record = await store.get_user(MIXED)
        assert [a.allocation_id for a in record.allocations] == ["0x01"]
        assert [t.id for t in record.transactions] == ["tx-1"]


class TestActivityFeed:

    @pytest.mark.asyncio
    async def test_newest_first(self, store: LedgerStore):
        for n in range(3):
            await store.add_activity(_activity(n))
        feed = await store.get_all_activities()
        assert [a.id for a in feed] == ["act-2", "act-1", "act-0"]
        assert feed[0].metadata == {"n": 2}

    @pytest.mark.asyncio
    async def test_capped_at_100(self, store: LedgerStore):
        for n in range(105):
            await store.add_activity(_activity(n))
        feed = await store.get_all_activities()
        assert len(feed) == 100
        assert feed[0].id == "act-104"
        assert feed[-1].id == "act-5"

    @pytest.mark.asyncio
    async def test_custom_cap(self, db_session):
        store = LedgerStore(db_session, max_activities=3)
        for n in range(5):
            await store.add_activity(_activity(n))
        assert [a.id for a in await store.get_all_activities()] == ["act-4", "act-3", "act-2"]

    @pytest.mark.asyncio
    async def test_limit(self, store: LedgerStore):
        for n in range(5):
            await store.add_activity(_activity(n))
        assert len(await store.get_all_activities(limit=2)) == 2

    @pytest.mark.asyncio
    async def test_user_feed_filters_case_insensitively(self, store: LedgerStore):
        await store.add_activity(_activity(0, LOWER))
        await store.add_activity(_activity(1, OTHER))
        await store.add_activity(_activity(2, LOWER))
        feed = await store.get_user_activities(MIXED)
        assert [a.id for a in feed] == ["act-2", "act-0"]
        assert len(await store.get_user_activities(LOWER, limit=1)) == 1
