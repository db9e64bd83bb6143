"""Chain gateway tests against mocked web3 contract objects."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from web3.exceptions import ContractLogicError, TimeExhausted

from monspark.chain.gateway import ChainGateway
from monspark.config import Settings
from monspark.errors import (
    ChainConfigurationError,
    ChainReadError,
    ChainWriteError,
    EventNotFound,
    NotFoundError,
    ValidationError,
)

USER = "0xabcdef0123456789abcdef0123456789abcdef01"
SIGNER = "0x5555555555555555555555555555555555555555"
REQUEST_ID = "0x" + "ab" * 32
ZERO_HASH = "0x" + "00" * 32
HARDHAT_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
HARDHAT_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


def _returns(contract: MagicMock, function: str, value) -> MagicMock:
    """Make ``contract.functions.<function>(...).call()`` return ``value``."""
    fn = getattr(contract.functions, function)
    fn.return_value.call.return_value = value
    return fn


@pytest.fixture
def w3():
    w3 = MagicMock()
    w3.eth.get_transaction_count.return_value = 7
    w3.eth.send_raw_transaction.return_value = bytes(32)
    w3.eth.wait_for_transaction_receipt.return_value = {"status": 1, "blockNumber": 42}
    w3.eth.block_number = 4242
    return w3


@pytest.fixture
def account():
    account = MagicMock()
    account.address = SIGNER
    account.sign_transaction.return_value.raw_transaction = b"signed"
    return account


@pytest.fixture
def chain(w3, account):
    return ChainGateway(
        w3=w3,
        account=account,
        quest_hub=MagicMock(),
        gas_manager=MagicMock(),
        bridge_manager=MagicMock(),
        chain_id=10143,
        receipt_timeout=5,
    )


class TestQuestReads:

    @pytest.mark.asyncio
    async def test_get_quest_decodes_tuple(self, chain):
        _returns(chain.quest_hub, "getQuest", ("First Steps", "Connect", 50, 10**16, True, 3))
        quest = await chain.get_quest(1)
        assert quest.id == 1
        assert quest.xp_reward == 50
        assert quest.gas_reward == "0.01"
        assert quest.is_active is True
        assert quest.completion_count == 3

    @pytest.mark.asyncio
    async def test_get_all_quests_walks_one_to_total(self, chain):
        _returns(chain.quest_hub, "getTotalQuests", 3)
        get_quest = _returns(chain.quest_hub, "getQuest", ("Q", "D", 10, 0, True, 0))
        quests = await chain.get_all_quests()
        assert [q.id for q in quests] == [1, 2, 3]
        assert sorted(c.args[0] for c in get_quest.call_args_list) == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_get_all_quests_fails_as_a_whole(self, chain):
        _returns(chain.quest_hub, "getTotalQuests", 2)
        chain.quest_hub.functions.getQuest.return_value.call.side_effect = OSError("connection reset")
        with pytest.raises(ChainReadError, match="getQuest"):
            await chain.get_all_quests()

    @pytest.mark.asyncio
    async def test_user_progress(self, chain):
        _returns(chain.quest_hub, "getUserProgress", (250, 3, 3, 50))
        progress = await chain.get_user_progress(USER)
        assert progress.total_xp == 250
        assert progress.level == 3
        assert progress.model_dump(by_alias=True)["totalXP"] == 250

    @pytest.mark.asyncio
    async def test_has_completed_quest_uses_checksum_address(self, chain):
        fn = _returns(chain.quest_hub, "hasCompletedQuest", True)
        assert await chain.has_completed_quest(USER, 2) is True
        called_user, called_id = fn.call_args.args
        assert called_user.lower() == USER
        assert called_id == 2


class TestWrites:

    @pytest.mark.asyncio
    async def test_complete_quest_signs_and_sends(self, chain, w3, account):
        fn = chain.quest_hub.functions.verifyAndCompleteQuest
        receipt = await chain.verify_and_complete_quest(USER, 1)

        assert receipt.tx_hash == ZERO_HASH
        assert receipt.block_number == 42
        params = fn.return_value.build_transaction.call_args.args[0]
        assert params == {"from": SIGNER, "nonce": 7, "chainId": 10143}
        w3.eth.get_transaction_count.assert_called_once_with(SIGNER, "pending")
        w3.eth.send_raw_transaction.assert_called_once_with(b"signed")
        w3.eth.wait_for_transaction_receipt.assert_called_once_with(ZERO_HASH, timeout=5)

    @pytest.mark.asyncio
    async def test_no_chain_id_when_unset(self, chain):
        chain.chain_id = None
        await chain.verify_and_complete_quest(USER, 1)
        params = chain.quest_hub.functions.verifyAndCompleteQuest.return_value.build_transaction.call_args.args[0]
        assert "chainId" not in params

    @pytest.mark.asyncio
    async def test_reverted_receipt(self, chain, w3):
        w3.eth.wait_for_transaction_receipt.return_value = {"status": 0, "blockNumber": 43}
        with pytest.raises(ChainWriteError, match="reverted"):
            await chain.verify_and_complete_quest(USER, 1)

    @pytest.mark.asyncio
    async def test_receipt_timeout(self, chain, w3):
        w3.eth.wait_for_transaction_receipt.side_effect = TimeExhausted("not mined")
        with pytest.raises(ChainWriteError, match="complete quest"):
            await chain.verify_and_complete_quest(USER, 1)

    @pytest.mark.asyncio
    async def test_node_rejects_send(self, chain, w3):
        w3.eth.send_raw_transaction.side_effect = ValueError("insufficient funds for gas")
        with pytest.raises(ChainWriteError, match="insufficient funds"):
            await chain.verify_and_complete_quest(USER, 1)
        w3.eth.wait_for_transaction_receipt.assert_not_called()

    @pytest.mark.asyncio
    async def test_allocate_gas_reads_event(self, chain):
        event = chain.gas_manager.events.GasAllocated.return_value
        event.process_receipt.return_value = [
            {"args": {"allocationId": b"\x01" * 32, "user": USER, "amount": 5 * 10**16}},
        ]
        allocated = await chain.allocate_gas(USER)
        assert allocated.allocation_id == "0x" + "01" * 32
        assert allocated.amount == "0.05"
        assert allocated.tx_hash == ZERO_HASH

    @pytest.mark.asyncio
    async def test_allocate_gas_without_event(self, chain):
        chain.gas_manager.events.GasAllocated.return_value.process_receipt.return_value = []
        with pytest.raises(EventNotFound) as exc_info:
            await chain.allocate_gas(USER)
        assert exc_info.value.event_name == "GasAllocated"
        assert exc_info.value.tx_hash == ZERO_HASH

    @pytest.mark.asyncio
    async def test_revert_gas_requires_bytes32(self, chain, w3):
        with pytest.raises(ValidationError):
            await chain.revert_gas("1729265812345-k3j9x0a2b")
        w3.eth.send_raw_transaction.assert_not_called()

    @pytest.mark.asyncio
    async def test_complete_bridge(self, chain):
        receipt = await chain.complete_bridge(REQUEST_ID)
        chain.bridge_manager.functions.completeBridge.assert_called_once_with(REQUEST_ID)
        assert receipt.tx_hash == ZERO_HASH


class TestGasAndBridgeReads:

    @pytest.mark.asyncio
    async def test_pool_balance(self, chain):
        _returns(chain.gas_manager, "poolBalance", 1000 * 10**18)
        assert await chain.get_pool_balance() == "1000.0"

    @pytest.mark.asyncio
    async def test_eligibility(self, chain):
        _returns(chain.gas_manager, "userEligibleAmount", 0)
        assert await chain.get_user_eligibility(USER) == "0.0"

    @pytest.mark.asyncio
    async def test_calculate_output_parses_input(self, chain):
        fn = _returns(chain.bridge_manager, "calculateBridgeOutput", (99 * 10**16, 10**16))
        quote = await chain.calculate_bridge_output("1.0", "USDC")
        fn.assert_called_once_with(10**18, "USDC")
        assert quote.output_amount == "0.99"
        assert quote.fee == "0.01"

    @pytest.mark.asyncio
    async def test_bridge_request_found(self, chain):
        _returns(chain.bridge_manager, "getBridgeRequest", (USER, 10**18, "ethereum", "ETH", 1700000000, False))
        request = await chain.get_bridge_request(REQUEST_ID)
        assert request.request_id == REQUEST_ID
        assert request.amount == "1.0"
        assert request.is_completed is False

    @pytest.mark.asyncio
    async def test_bridge_request_zero_user(self, chain):
        _returns(chain.bridge_manager, "getBridgeRequest", ("0x" + "0" * 40, 0, "", "", 0, False))
        with pytest.raises(NotFoundError):
            await chain.get_bridge_request(REQUEST_ID)

    @pytest.mark.asyncio
    async def test_bridge_request_revert(self, chain):
        chain.bridge_manager.functions.getBridgeRequest.return_value.call.side_effect = ContractLogicError(
            "execution reverted"
        )
        with pytest.raises(NotFoundError):
            await chain.get_bridge_request(REQUEST_ID)

    @pytest.mark.asyncio
    async def test_bridge_request_local_id_never_hits_chain(self, chain):
        with pytest.raises(NotFoundError):
            await chain.get_bridge_request("1729265812345-k3j9x0a2b")
        chain.bridge_manager.functions.getBridgeRequest.assert_not_called()

    @pytest.mark.asyncio
    async def test_bridge_request_node_down(self, chain):
        chain.bridge_manager.functions.getBridgeRequest.return_value.call.side_effect = OSError("refused")
        with pytest.raises(ChainReadError):
            await chain.get_bridge_request(REQUEST_ID)

    @pytest.mark.asyncio
    async def test_ping(self, chain):
        assert await chain.ping() == 4242


class TestFromSettings:

    def _settings(self, tmp_path, **overrides) -> Settings:
        values = {
            "deployment_file": str(tmp_path / "absent.json"),
            "gas_manager_address": "0x1000000000000000000000000000000000000001",
            "quest_hub_address": "0x2000000000000000000000000000000000000002",
            "bridge_manager_address": "0x3000000000000000000000000000000000000003",
            "private_key": HARDHAT_KEY,
        }
        values.update(overrides)
        return Settings(**values)

    def test_builds_gateway(self, tmp_path):
        chain = ChainGateway.from_settings(self._settings(tmp_path, chain_id=31337))
        assert chain.account.address == HARDHAT_ADDRESS
        assert chain.chain_id == 31337
        assert chain.quest_hub.address == "0x2000000000000000000000000000000000000002"

    def test_missing_private_key(self, tmp_path):
        with pytest.raises(ChainConfigurationError, match="PRIVATE_KEY"):
            ChainGateway.from_settings(self._settings(tmp_path, private_key=""))

    def test_missing_contract_address(self, tmp_path):
        with pytest.raises(ChainConfigurationError, match="QuestHub"):
            ChainGateway.from_settings(self._settings(tmp_path, quest_hub_address=None))
