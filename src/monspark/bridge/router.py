"""Bridge endpoints: calculate, initiate, complete, lookup, supported assets."""

from fastapi import APIRouter, Depends, HTTPException

from monspark.bridge import service
from monspark.bridge.schemas import (
    BridgeLookupResponse,
    CalculateRequest,
    CalculateResponse,
    CompleteRequest,
    CompleteResponse,
    InitiateRequest,
    InitiateResponse,
    SupportedResponse,
)
from monspark.chain.gateway import ChainGateway
from monspark.config import Settings, get_settings
from monspark.dependencies import get_gateway, get_store
from monspark.errors import ChainReadError, ChainWriteError, NotFoundError, ValidationError
from monspark.ledger.store import LedgerStore

router = APIRouter(prefix="/api/bridge", tags=["Bridge"])


@router.post("/calculate", response_model=CalculateResponse)
async def calculate_output(
    body: CalculateRequest,
    gateway: ChainGateway = Depends(get_gateway),
):
    """Simulate the bridge output and fee for an input amount."""
    try:
        return await service.calculate(gateway, body.input_amount, body.target_token)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except ChainReadError as e:
        raise HTTPException(status_code=500, detail=f"Failed to calculate output: {e}") from e


@router.post("/initiate", response_model=InitiateResponse)
async def initiate_bridge(
    body: InitiateRequest,
    store: LedgerStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """Record a pending bridge request."""
    try:
        return await service.initiate(
            store,
            body.user_address,
            body.amount,
            body.target_chain,
            body.target_token,
            unit=settings.native_unit,
            estimated_time=settings.bridge_estimated_time,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.post("/complete", response_model=CompleteResponse)
async def complete_bridge(
    body: CompleteRequest,
    gateway: ChainGateway = Depends(get_gateway),
):
    """Complete a bridge request on chain (relayer/operator)."""
    try:
        return await service.complete(gateway, body.request_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except ChainWriteError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e


@router.get("/request/{request_id}", response_model=BridgeLookupResponse, response_model_exclude_none=True)
async def get_bridge_request(
    request_id: str,
    store: LedgerStore = Depends(get_store),
    gateway: ChainGateway = Depends(get_gateway),
):
    """On-chain bridge request, or the local pending transaction with that id."""
    try:
        request = await service.lookup(store, gateway, request_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail="Bridge request not found") from e
    return BridgeLookupResponse(request=request)


@router.get("/supported", response_model=SupportedResponse)
async def get_supported():
    """Supported target chains and tokens."""
    return service.supported()
