"""Pydantic request/response models for bridge endpoints."""

from __future__ import annotations

from typing import Any

from monspark.chain.schemas import BridgeRequest
from monspark.ledger.schemas import Transaction
from monspark.schemas import CamelModel


class CalculateRequest(CamelModel):
    input_amount: str | None = None
    target_token: str | None = None


class CalculateResponse(CamelModel):
    input_amount: str
    target_token: str
    output_amount: str
    fee: str


class InitiateRequest(CamelModel):
    user_address: str | None = None
    amount: str | None = None
    target_chain: str | None = None
    target_token: str | None = None


class InitiateResponse(CamelModel):
    success: bool
    request_id: str
    message: str = "Bridge request initiated"
    estimated_time: str


class CompleteRequest(CamelModel):
    request_id: str | None = None


class CompleteResponse(CamelModel):
    success: bool
    tx_hash: str
    message: str = "Bridge completed successfully"


class BridgeLookupResponse(CamelModel):
    # On-chain request when the chain knows it, otherwise the local pending transaction.
    request: BridgeRequest | Transaction


class SupportedResponse(CamelModel):
    chains: list[dict[str, Any]]
    tokens: list[dict[str, Any]]
