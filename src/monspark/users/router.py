"""User ledger endpoints: /api/users/*."""

from fastapi import APIRouter, Depends, HTTPException

from monspark.dependencies import get_store
from monspark.errors import ValidationError
from monspark.ledger.schemas import Transaction, UserRecord
from monspark.ledger.store import LedgerStore
from monspark.schemas import CamelModel
from monspark.users.service import get_user_view, list_transactions

router = APIRouter(prefix="/api/users", tags=["Users"])


class UserResponse(CamelModel):
    user: UserRecord


class TransactionListResponse(CamelModel):
    transactions: list[Transaction]


@router.get("/{address}", response_model=UserResponse, response_model_exclude_none=True)
async def get_user(
    address: str,
    store: LedgerStore = Depends(get_store),
):
    """Ledger record for an address. Unknown addresses get an empty view."""
    try:
        return UserResponse(user=await get_user_view(store, address))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@router.get("/{address}/transactions", response_model=TransactionListResponse, response_model_exclude_none=True)
async def get_user_transactions(
    address: str,
    store: LedgerStore = Depends(get_store),
):
    """The user's transactions in insertion order."""
    try:
        return TransactionListResponse(transactions=await list_transactions(store, address))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
