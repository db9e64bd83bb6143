"""Typed results decoded from contract calls."""

from __future__ import annotations

from pydantic import Field

from monspark.schemas import CamelModel


class Quest(CamelModel):
    id: int
    name: str
    description: str
    xp_reward: int
    gas_reward: str
    is_active: bool
    completion_count: int
    completed: bool | None = None


class UserProgress(CamelModel):
    total_xp: int = Field(alias="totalXP")
    completed_quests: int
    level: int
    xp_to_next_level: int


class BridgeRequest(CamelModel):
    request_id: str
    user: str
    amount: str
    target_chain: str
    target_token: str
    timestamp: int
    is_completed: bool


class BridgeQuote(CamelModel):
    output_amount: str
    fee: str


class TxReceipt(CamelModel):
    tx_hash: str
    block_number: int | None = None


class GasAllocationReceipt(CamelModel):
    allocation_id: str
    amount: str
    tx_hash: str
