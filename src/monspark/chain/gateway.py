"""Chain Gateway: typed access to the QuestHub, GasManager and BridgeManager contracts.

Reads decode contract return values into typed results. Writes are built,
signed locally with the backend key, submitted, and awaited until the
receipt is available; a reverted receipt, a node error or a timeout raises
``ChainWriteError``. The gateway keeps no durable state.

web3's HTTP provider is blocking, so every node round trip runs in a worker
thread and is awaited.
"""

from __future__ import annotations

import asyncio
import re
from typing import Any

import structlog
from eth_account import Account
from web3 import Web3
from web3.exceptions import ContractLogicError
from web3.logs import DISCARD

from monspark.chain.abi import BRIDGE_MANAGER_ABI, GAS_MANAGER_ABI, QUEST_HUB_ABI
from monspark.chain.deployments import resolve_contract_addresses
from monspark.chain.schemas import (
    BridgeQuote,
    BridgeRequest,
    GasAllocationReceipt,
    Quest,
    TxReceipt,
    UserProgress,
)
from monspark.chain.units import format_ether, parse_ether
from monspark.config import Settings
from monspark.errors import (
    ChainConfigurationError,
    ChainReadError,
    ChainWriteError,
    EventNotFound,
    NotFoundError,
    ValidationError,
)

logger = structlog.get_logger()

_BYTES32 = re.compile(r"^0x[0-9a-fA-F]{64}$")


def _require_bytes32(value: str, label: str) -> str:
    if not isinstance(value, str) or not _BYTES32.match(value):
        msg = f"Invalid {label}: expected 32-byte hex string"
        raise ValidationError(msg)
    return value


class ChainGateway:
    """Stateless proxy over the three contracts, constructed once and injected."""

    def __init__(
        self,
        w3: Web3,
        account: Any,  # noqa: ANN401
        quest_hub: Any,  # noqa: ANN401
        gas_manager: Any,  # noqa: ANN401
        bridge_manager: Any,  # noqa: ANN401
        chain_id: int | None = None,
        receipt_timeout: int = 120,
    ) -> None:
        self.w3 = w3
        self.account = account
        self.quest_hub = quest_hub
        self.gas_manager = gas_manager
        self.bridge_manager = bridge_manager
        self.chain_id = chain_id
        self.receipt_timeout = receipt_timeout
        # One submission at a time so nonces are not reused.
        self._send_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> ChainGateway:
        """Build the gateway from RPC URL, signing key and resolved contract addresses."""
        addresses = resolve_contract_addresses(settings)
        if not settings.private_key:
            msg = "MONSPARK_PRIVATE_KEY is not configured"
            raise ChainConfigurationError(msg)
        try:
            account = Account.from_key(settings.private_key)
        except (ValueError, TypeError) as e:
            msg = f"Invalid signing key: {e}"
            raise ChainConfigurationError(msg) from e

        w3 = Web3(Web3.HTTPProvider(settings.rpc_url, request_kwargs={"timeout": settings.rpc_timeout_seconds}))

        def contract(address: str, abi: list[dict[str, Any]]) -> Any:  # noqa: ANN401
            return w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

        logger.info(
            "chain_gateway_initialized",
            rpc_url=settings.rpc_url,
            signer=account.address,
            gas_manager=addresses.gas_manager,
            quest_hub=addresses.quest_hub,
            bridge_manager=addresses.bridge_manager,
        )
        return cls(
            w3=w3,
            account=account,
            quest_hub=contract(addresses.quest_hub, QUEST_HUB_ABI),
            gas_manager=contract(addresses.gas_manager, GAS_MANAGER_ABI),
            bridge_manager=contract(addresses.bridge_manager, BRIDGE_MANAGER_ABI),
            chain_id=settings.chain_id,
            receipt_timeout=settings.tx_receipt_timeout_seconds,
        )

    # ── Plumbing ──

    async def _call(self, fn: Any, label: str) -> Any:  # noqa: ANN401
        try:
            return await asyncio.to_thread(fn.call)
        except Exception as e:
            logger.warning("chain_read_failed", call=label, error=str(e))
            msg = f"{label} failed: {e}"
            raise ChainReadError(msg) from e

    def _send(self, fn: Any) -> str:  # noqa: ANN401
        sender = self.account.address
        params: dict[str, Any] = {
            "from": sender,
            "nonce": self.w3.eth.get_transaction_count(sender, "pending"),
        }
        if self.chain_id is not None:
            params["chainId"] = self.chain_id
        tx = fn.build_transaction(params)
        signed = self.account.sign_transaction(tx)
        return Web3.to_hex(self.w3.eth.send_raw_transaction(signed.raw_transaction))

    async def _transact(self, fn: Any, label: str) -> tuple[str, Any]:  # noqa: ANN401
        """Submit, wait for the receipt, and fail on revert. Returns (tx_hash, receipt)."""
        tx_hash = None
        try:
            async with self._send_lock:
                tx_hash = await asyncio.to_thread(self._send, fn)
            receipt = await asyncio.to_thread(
                self.w3.eth.wait_for_transaction_receipt, tx_hash, timeout=self.receipt_timeout
            )
        except Exception as e:
            logger.error("chain_write_failed", call=label, tx_hash=tx_hash, error=str(e))
            msg = f"Failed to {label}: {e}"
            raise ChainWriteError(msg) from e

        if receipt["status"] == 0:
            logger.error("chain_write_reverted", call=label, tx_hash=tx_hash)
            msg = f"Failed to {label}: transaction {tx_hash} reverted"
            raise ChainWriteError(msg)

        logger.info("chain_write_confirmed", call=label, tx_hash=tx_hash, block=receipt.get("blockNumber"))
        return tx_hash, receipt

    # ── QuestHub ──

    async def get_quest(self, quest_id: int) -> Quest:
        name, description, xp_reward, gas_reward, is_active, completion_count = await self._call(
            self.quest_hub.functions.getQuest(quest_id), "getQuest"
        )
        return Quest(
            id=quest_id,
            name=name,
            description=description,
            xp_reward=int(xp_reward),
            gas_reward=format_ether(gas_reward),
            is_active=bool(is_active),
            completion_count=int(completion_count),
        )

    async def get_all_quests(self) -> list[Quest]:
        """Every quest 1..total. One failed lookup fails the whole listing."""
        total = await self._call(self.quest_hub.functions.getTotalQuests(), "getTotalQuests")
        return list(await asyncio.gather(*(self.get_quest(i) for i in range(1, int(total) + 1))))

    async def has_completed_quest(self, user: str, quest_id: int) -> bool:
        result = await self._call(
            self.quest_hub.functions.hasCompletedQuest(Web3.to_checksum_address(user), quest_id),
            "hasCompletedQuest",
        )
        return bool(result)

    async def verify_and_complete_quest(self, user: str, quest_id: int) -> TxReceipt:
        tx_hash, receipt = await self._transact(
            self.quest_hub.functions.verifyAndCompleteQuest(Web3.to_checksum_address(user), quest_id),
            "complete quest",
        )
        return TxReceipt(tx_hash=tx_hash, block_number=receipt.get("blockNumber"))

    async def get_user_progress(self, user: str) -> UserProgress:
        total_xp, completed_quests, level, xp_to_next = await self._call(
            self.quest_hub.functions.getUserProgress(Web3.to_checksum_address(user)),
            "getUserProgress",
        )
        return UserProgress(
            total_xp=int(total_xp),
            completed_quests=int(completed_quests),
            level=int(level),
            xp_to_next_level=int(xp_to_next),
        )

    # ── GasManager ──

    async def allocate_gas(self, user: str) -> GasAllocationReceipt:
        """Allocate gas and read the id and amount from the GasAllocated event.

        Raises:
            ChainWriteError: If the transaction fails.
            EventNotFound: If the receipt carries no GasAllocated log.
        """
        tx_hash, receipt = await self._transact(
            self.gas_manager.functions.allocateGas(Web3.to_checksum_address(user)),
            "allocate gas",
        )
        events = self.gas_manager.events.GasAllocated().process_receipt(receipt, errors=DISCARD)
        if not events:
            logger.error("gas_allocated_event_missing", tx_hash=tx_hash, user=user)
            raise EventNotFound("GasAllocated", tx_hash)

        args = events[0]["args"]
        return GasAllocationReceipt(
            allocation_id=Web3.to_hex(args["allocationId"]),
            amount=format_ether(args["amount"]),
            tx_hash=tx_hash,
        )

    async def revert_gas(self, allocation_id: str) -> TxReceipt:
        _require_bytes32(allocation_id, "allocation id")
        tx_hash, receipt = await self._transact(
            self.gas_manager.functions.revertGas(allocation_id), "revert gas"
        )
        return TxReceipt(tx_hash=tx_hash, block_number=receipt.get("blockNumber"))

    async def get_pool_balance(self) -> str:
        return format_ether(await self._call(self.gas_manager.functions.poolBalance(), "poolBalance"))

    async def get_user_eligibility(self, user: str) -> str:
        amount = await self._call(
            self.gas_manager.functions.userEligibleAmount(Web3.to_checksum_address(user)),
            "userEligibleAmount",
        )
        return format_ether(amount)

    # ── BridgeManager ──

    async def calculate_bridge_output(self, input_amount: str, target_token: str) -> BridgeQuote:
        output_amount, fee = await self._call(
            self.bridge_manager.functions.calculateBridgeOutput(parse_ether(input_amount), target_token),
            "calculateBridgeOutput",
        )
        return BridgeQuote(output_amount=format_ether(output_amount), fee=format_ether(fee))

    async def get_bridge_request(self, request_id: str) -> BridgeRequest:
        """Read a bridge request.

        Raises:
            NotFoundError: Malformed id, contract revert, or an empty record.
            ChainReadError: The node call itself failed.
        """
        if not isinstance(request_id, str) or not _BYTES32.match(request_id):
            msg = f"Bridge request {request_id} is not an on-chain id"
            raise NotFoundError(msg)

        try:
            user, amount, target_chain, target_token, timestamp, is_completed = await asyncio.to_thread(
                self.bridge_manager.functions.getBridgeRequest(request_id).call
            )
        except ContractLogicError as e:
            msg = f"Bridge request {request_id} not found on chain"
            raise NotFoundError(msg) from e
        except Exception as e:
            logger.warning("chain_read_failed", call="getBridgeRequest", error=str(e))
            msg = f"getBridgeRequest failed: {e}"
            raise ChainReadError(msg) from e

        if not user or int(user, 16) == 0:
            msg = f"Bridge request {request_id} not found on chain"
            raise NotFoundError(msg)

        return BridgeRequest(
            request_id=request_id,
            user=user,
            amount=format_ether(amount),
            target_chain=target_chain,
            target_token=target_token,
            timestamp=int(timestamp),
            is_completed=bool(is_completed),
        )

    async def complete_bridge(self, request_id: str) -> TxReceipt:
        _require_bytes32(request_id, "bridge request id")
        tx_hash, receipt = await self._transact(
            self.bridge_manager.functions.completeBridge(request_id), "complete bridge"
        )
        return TxReceipt(tx_hash=tx_hash, block_number=receipt.get("blockNumber"))

    # ── Node ──

    async def ping(self) -> int:
        """Latest block number; used by the readiness probe."""
        try:
            return int(await asyncio.to_thread(lambda: self.w3.eth.block_number))
        except Exception as e:
            msg = f"RPC unreachable: {e}"
            raise ChainReadError(msg) from e
