"""Gas credit endpoints: eligibility, allocate, revert, pool, history."""

from fastapi import APIRouter, Depends, HTTPException

from monspark.chain.gateway import ChainGateway
from monspark.config import Settings, get_settings
from monspark.dependencies import get_gateway, get_store
from monspark.errors import ChainReadError, ChainWriteError, EventNotFound, NotEligible, ValidationError
from monspark.gas import service
from monspark.gas.schemas import (
    AllocateRequest,
    AllocateResponse,
    AllocationHistoryResponse,
    EligibilityResponse,
    PoolBalanceResponse,
    RevertRequest,
    RevertResponse,
)
from monspark.ledger.store import LedgerStore

router = APIRouter(prefix="/api/gas", tags=["Gas"])


@router.get("/eligibility/{address}", response_model=EligibilityResponse)
async def get_eligibility(
    address: str,
    gateway: ChainGateway = Depends(get_gateway),
):
    """Eligible gas credit for a user, as an 18-decimal string."""
    try:
        return await service.check_eligibility(gateway, address)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except ChainReadError as e:
        raise HTTPException(status_code=500, detail=f"Failed to check eligibility: {e}") from e


@router.post("/allocate", response_model=AllocateResponse)
async def allocate_gas(
    body: AllocateRequest,
    store: LedgerStore = Depends(get_store),
    gateway: ChainGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
):
    """Allocate the user's eligible gas credit on chain and record it."""
    try:
        return await service.allocate(store, gateway, body.user_address, unit=settings.native_unit)
    except (ValidationError, NotEligible) as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except ChainWriteError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
    except (ChainReadError, EventNotFound) as e:
        raise HTTPException(status_code=500, detail=f"Failed to allocate gas: {e}") from e


@router.post("/revert", response_model=RevertResponse, response_model_exclude_none=True)
async def revert_gas(
    body: RevertRequest,
    store: LedgerStore = Depends(get_store),
    gateway: ChainGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
):
    """Return an allocation to the pool."""
    try:
        return await service.revert(
            store,
            gateway,
            body.user_address,
            body.allocation_id,
            onchain=settings.gas_revert_onchain,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except ChainWriteError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.get("/pool", response_model=PoolBalanceResponse)
async def get_pool_balance(
    gateway: ChainGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
):
    """Current GasManager pool balance."""
    try:
        return await service.pool_balance(gateway, unit=settings.native_unit)
    except ChainReadError as e:
        raise HTTPException(status_code=500, detail=f"Failed to fetch pool balance: {e}") from e


@router.get("/allocations/{address}", response_model=AllocationHistoryResponse, response_model_exclude_none=True)
async def get_allocations(
    address: str,
    store: LedgerStore = Depends(get_store),
):
    """The user's allocation history, oldest first."""
    try:
        allocations = await service.allocation_history(store, address)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return AllocationHistoryResponse(allocations=allocations)
