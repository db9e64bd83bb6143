"""Read-only views over the per-user ledger."""

from __future__ import annotations

from monspark.ledger.addresses import normalize_address
from monspark.ledger.schemas import Transaction, UserRecord
from monspark.ledger.store import LedgerStore


async def get_user_view(store: LedgerStore, address: str) -> UserRecord:
    """The stored record, or an empty default view for an unknown address."""
    user = normalize_address(address)
    record = await store.get_user(user)
    if record is None:
        return UserRecord.empty(user)
    return record


async def list_transactions(store: LedgerStore, address: str) -> list[Transaction]:
    return await store.get_transactions(normalize_address(address))
