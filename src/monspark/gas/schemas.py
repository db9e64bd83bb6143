"""Pydantic request/response models for gas credit endpoints."""

from __future__ import annotations

from monspark.ledger.schemas import GasAllocation
from monspark.schemas import CamelModel


class EligibilityResponse(CamelModel):
    address: str
    eligible_amount: str
    is_eligible: bool


class AllocateRequest(CamelModel):
    user_address: str | None = None


class AllocateResponse(CamelModel):
    success: bool
    allocation_id: str
    amount: str


class RevertRequest(CamelModel):
    allocation_id: str | None = None
    user_address: str | None = None


class RevertResponse(CamelModel):
    success: bool
    tx_hash: str | None = None


class PoolBalanceResponse(CamelModel):
    pool_balance: str
    unit: str


class AllocationHistoryResponse(CamelModel):
    allocations: list[GasAllocation]
