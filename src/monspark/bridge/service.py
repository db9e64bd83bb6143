"""Bridge quotes, initiation, completion and lookup.

Request lifecycle: none -> pending -> completed, or pending indefinitely.
``initiate`` only records a pending ``bridge`` transaction locally; an
external relayer settles it later through ``complete``. ``complete``
produces the confirmed tx hash but does not touch the local transaction,
whose status stays ``pending`` until updated through another channel.
"""

from __future__ import annotations

import structlog

from monspark.activity.service import record_activity
from monspark.bridge.catalog import SUPPORTED_CHAINS, SUPPORTED_TOKENS
from monspark.bridge.schemas import (
    CalculateResponse,
    CompleteResponse,
    InitiateResponse,
    SupportedResponse,
)
from monspark.chain.gateway import ChainGateway
from monspark.chain.schemas import BridgeRequest
from monspark.chain.units import parse_ether
from monspark.errors import ChainReadError, NotFoundError, ValidationError
from monspark.ledger.addresses import normalize_address
from monspark.ledger.ids import generate_id
from monspark.ledger.schemas import Transaction
from monspark.ledger.store import LedgerStore

logger = structlog.get_logger()


async def calculate(gateway: ChainGateway, input_amount: str | None, target_token: str | None) -> CalculateResponse:
    """Read-through to the on-chain output simulation. No local state."""
    if not input_amount or not target_token:
        msg = "Input amount and target token are required"
        raise ValidationError(msg)

    quote = await gateway.calculate_bridge_output(input_amount, target_token)
    return CalculateResponse(
        input_amount=input_amount,
        target_token=target_token,
        output_amount=quote.output_amount,
        fee=quote.fee,
    )


async def initiate(
    store: LedgerStore,
    address: str | None,
    amount: str | None,
    target_chain: str | None,
    target_token: str | None,
    unit: str = "MON",
    estimated_time: str = "2-5 minutes",
) -> InitiateResponse:
    """Record a pending bridge request for the relayer to settle."""
    if not address or not amount or not target_chain or not target_token:
        msg = "User address, amount, target chain, and target token are required"
        raise ValidationError(msg)
    user = normalize_address(address)
    if parse_ether(amount) == 0:
        msg = "Amount must be greater than zero"
        raise ValidationError(msg)

    request_id = generate_id()
    await store.add_transaction(user, Transaction(
        id=request_id,
        type="bridge",
        amount=amount,
        status="pending",
    ))
    await record_activity(
        store,
        user,
        "transaction",
        f"Bridge initiated: {amount} {unit} → {target_token}",
        {"requestId": request_id, "targetChain": target_chain, "targetToken": target_token},
    )

    logger.info("bridge_initiated", address=user, request_id=request_id, amount=amount, target_chain=target_chain)
    return InitiateResponse(success=True, request_id=request_id, estimated_time=estimated_time)


async def complete(gateway: ChainGateway, request_id: str | None) -> CompleteResponse:
    """Settle a bridge request on chain (relayer/operator call)."""
    if not request_id:
        msg = "Request ID is required"
        raise ValidationError(msg)

    receipt = await gateway.complete_bridge(request_id)
    logger.info("bridge_completed", request_id=request_id, tx_hash=receipt.tx_hash)
    return CompleteResponse(success=True, tx_hash=receipt.tx_hash)


async def lookup(store: LedgerStore, gateway: ChainGateway, request_id: str) -> BridgeRequest | Transaction:
    """
    Find a bridge request: chain first, then the local transaction index.

    Raises:
        NotFoundError: Neither the chain nor the ledger knows the id.
    """
    try:
        return await gateway.get_bridge_request(request_id)
    except NotFoundError:
        pass
    except ChainReadError as e:
        logger.warning("bridge_lookup_chain_unavailable", request_id=request_id, error=str(e))

    found = await store.find_transaction(request_id)
    if found is None:
        msg = f"Bridge request {request_id} not found"
        raise NotFoundError(msg)
    _, transaction = found
    return transaction


def supported() -> SupportedResponse:
    return SupportedResponse(chains=SUPPORTED_CHAINS, tokens=SUPPORTED_TOKENS)
