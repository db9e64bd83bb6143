"""Gas credit eligibility, allocation and reversion.

Allocation lifecycle: none -> active -> reverted. Eligibility is checked on
chain before any write so an ineligible user never costs a transaction; the
local record is written only after the chain reported the allocation, using
the id and amount from its ``GasAllocated`` event.

Reversion is local bookkeeping unless ``onchain`` is requested, and it is
accepted for any allocation id: an id the ledger has never seen leaves the
ledger unchanged and still reports success.
"""

from __future__ import annotations

import structlog

from monspark.activity.service import record_activity
from monspark.chain.gateway import ChainGateway
from monspark.chain.units import parse_ether
from monspark.errors import NotEligible, ValidationError
from monspark.gas.schemas import AllocateResponse, EligibilityResponse, PoolBalanceResponse, RevertResponse
from monspark.ledger.addresses import normalize_address
from monspark.ledger.schemas import GasAllocation
from monspark.ledger.store import LedgerStore

logger = structlog.get_logger()


async def check_eligibility(gateway: ChainGateway, address: str) -> EligibilityResponse:
    user = normalize_address(address)
    eligible_amount = await gateway.get_user_eligibility(user)
    return EligibilityResponse(
        address=address,
        eligible_amount=eligible_amount,
        is_eligible=parse_ether(eligible_amount) > 0,
    )


async def allocate(
    store: LedgerStore,
    gateway: ChainGateway,
    address: str | None,
    unit: str = "MON",
) -> AllocateResponse:
    """
    Allocate the user's eligible gas credit.

    Raises:
        ValidationError: Missing or malformed address.
        NotEligible: Eligible amount is zero; no transaction was sent.
        ChainWriteError: The allocation transaction failed.
        EventNotFound: The receipt had no GasAllocated event.
    """
    user = normalize_address(address)

    eligible_amount = await gateway.get_user_eligibility(user)
    if parse_ether(eligible_amount) == 0:
        msg = "User not eligible for gas allocation. Complete quests to earn gas eligibility"
        raise NotEligible(msg)

    allocated = await gateway.allocate_gas(user)

    await store.add_allocation(user, GasAllocation(
        allocation_id=allocated.allocation_id,
        amount=allocated.amount,
        status="active",
    ))
    await record_activity(
        store,
        user,
        "gas_allocated",
        f"Allocated {allocated.amount} {unit} gas",
        {"allocationId": allocated.allocation_id, "amount": allocated.amount, "txHash": allocated.tx_hash},
    )

    logger.info("gas_allocated", address=user, allocation_id=allocated.allocation_id, amount=allocated.amount)
    return AllocateResponse(success=True, allocation_id=allocated.allocation_id, amount=allocated.amount)


async def revert(
    store: LedgerStore,
    gateway: ChainGateway,
    address: str | None,
    allocation_id: str | None,
    onchain: bool = False,
) -> RevertResponse:
    """
    Mark an allocation as reverted.

    With ``onchain`` set, a known active allocation is first reverted on
    chain and a failure leaves the ledger unchanged.

    Raises:
        ValidationError: Missing allocation id or address.
        ChainWriteError: On-chain reversion requested and failed.
    """
    if not allocation_id or not address:
        msg = "Allocation ID and user address are required"
        raise ValidationError(msg)
    user = normalize_address(address)

    tx_hash = None
    if onchain:
        existing = await store.get_allocation(user, allocation_id)
        if existing is not None and existing.status == "active":
            tx_hash = (await gateway.revert_gas(allocation_id)).tx_hash

    updated = await store.update_allocation(user, allocation_id, status="reverted")
    if updated is None:
        logger.info("gas_revert_unknown_allocation", address=user, allocation_id=allocation_id)

    metadata = {"allocationId": allocation_id}
    if tx_hash:
        metadata["txHash"] = tx_hash
    await record_activity(store, user, "gas_reverted", "Gas returned to pool", metadata)

    logger.info("gas_reverted", address=user, allocation_id=allocation_id, onchain=tx_hash is not None)
    return RevertResponse(success=True, tx_hash=tx_hash)


async def pool_balance(gateway: ChainGateway, unit: str = "MON") -> PoolBalanceResponse:
    return PoolBalanceResponse(pool_balance=await gateway.get_pool_balance(), unit=unit)


async def allocation_history(store: LedgerStore, address: str) -> list[GasAllocation]:
    return await store.get_allocations(normalize_address(address))
