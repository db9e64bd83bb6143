"""Shared test fixtures."""

from __future__ import annotations

import os
from collections import Counter
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

os.environ.setdefault("MONSPARK_LOG_FORMAT", "console")
os.environ.setdefault("MONSPARK_REDIS_URL", "")
os.environ.setdefault("MONSPARK_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from monspark.chain.schemas import (  # noqa: E402
    BridgeQuote,
    BridgeRequest,
    GasAllocationReceipt,
    Quest,
    TxReceipt,
    UserProgress,
)
from monspark.chain.units import format_ether, parse_ether  # noqa: E402
from monspark.config import get_settings  # noqa: E402
from monspark.database import close_db, get_session, init_db  # noqa: E402
from monspark.errors import ChainReadError, ChainWriteError, NotFoundError  # noqa: E402
from monspark.ledger.store import LedgerStore  # noqa: E402
from monspark.main import create_app  # noqa: E402


XP_PER_LEVEL = 100
WRITE_CALLS = ("verify_and_complete_quest", "allocate_gas", "revert_gas", "complete_bridge")


class FakeChainGateway:
    """In-memory stand-in for ChainGateway with the same coroutine interface.

    ``calls`` counts every invocation by method name. ``fail_writes`` and
    ``fail_reads`` make the corresponding calls raise like a dead node would.
    """

    def __init__(self) -> None:
        self.quests: dict[int, Quest] = {
            1: Quest(
                id=1, name="First Steps", description="Connect your wallet",
                xp_reward=50, gas_reward="0.01", is_active=True, completion_count=0,
            ),
            2: Quest(
                id=2, name="Explorer", description="Make your first transaction",
                xp_reward=100, gas_reward="0.05", is_active=True, completion_count=0,
            ),
        }
        self.completed: set[tuple[str, int]] = set()
        self.xp: dict[str, int] = {}
        self.eligibility: dict[str, str] = {}
        self.pool_balance = "1000.0"
        self.bridge_requests: dict[str, BridgeRequest] = {}
        self.calls: Counter[str] = Counter()
        self.fail_writes = False
        self.fail_reads = False
        self._nonce = 0

    @property
    def write_calls(self) -> int:
        return sum(self.calls[name] for name in WRITE_CALLS)

    def _hash(self) -> str:
        self._nonce += 1
        return "0x" + format(self._nonce, "064x")

    def _read(self, name: str) -> None:
        self.calls[name] += 1
        if self.fail_reads:
            msg = f"{name} failed: connection refused"
            raise ChainReadError(msg)

    def _write(self, name: str, label: str) -> None:
        self.calls[name] += 1
        if self.fail_writes:
            msg = f"Failed to {label}: execution reverted"
            raise ChainWriteError(msg)

    async def get_quest(self, quest_id: int) -> Quest:
        self._read("get_quest")
        if quest_id not in self.quests:
            msg = f"getQuest failed: quest {quest_id} does not exist"
            raise ChainReadError(msg)
        return self.quests[quest_id]

    async def get_all_quests(self) -> list[Quest]:
        self._read("get_all_quests")
        return list(self.quests.values())

    async def has_completed_quest(self, user: str, quest_id: int) -> bool:
        self._read("has_completed_quest")
        return (user.lower(), quest_id) in self.completed

    async def verify_and_complete_quest(self, user: str, quest_id: int) -> TxReceipt:
        self._write("verify_and_complete_quest", "complete quest")
        self.completed.add((user.lower(), quest_id))
        quest = self.quests[quest_id]
        self.xp[user.lower()] = self.xp.get(user.lower(), 0) + quest.xp_reward
        self.quests[quest_id] = quest.model_copy(update={"completion_count": quest.completion_count + 1})
        return TxReceipt(tx_hash=self._hash(), block_number=self._nonce)

    async def get_user_progress(self, user: str) -> UserProgress:
        self._read("get_user_progress")
        xp = self.xp.get(user.lower(), 0)
        return UserProgress(
            total_xp=xp,
            completed_quests=sum(1 for u, _ in self.completed if u == user.lower()),
            level=xp // XP_PER_LEVEL + 1,
            xp_to_next_level=XP_PER_LEVEL - xp % XP_PER_LEVEL,
        )

    async def allocate_gas(self, user: str) -> GasAllocationReceipt:
        self._write("allocate_gas", "allocate gas")
        amount = self.eligibility.get(user.lower(), "0.0")
        self.eligibility[user.lower()] = "0.0"
        return GasAllocationReceipt(allocation_id=self._hash(), amount=amount, tx_hash=self._hash())

    async def revert_gas(self, allocation_id: str) -> TxReceipt:
        self._write("revert_gas", "revert gas")
        return TxReceipt(tx_hash=self._hash())

    async def get_pool_balance(self) -> str:
        self._read("get_pool_balance")
        return self.pool_balance

    async def get_user_eligibility(self, user: str) -> str:
        self._read("get_user_eligibility")
        return self.eligibility.get(user.lower(), "0.0")

    async def calculate_bridge_output(self, input_amount: str, target_token: str) -> BridgeQuote:
        self._read("calculate_bridge_output")
        amount = parse_ether(input_amount)
        fee = amount // 100
        return BridgeQuote(output_amount=format_ether(amount - fee), fee=format_ether(fee))

    async def get_bridge_request(self, request_id: str) -> BridgeRequest:
        self._read("get_bridge_request")
        if request_id not in self.bridge_requests:
            msg = f"Bridge request {request_id} not found on chain"
            raise NotFoundError(msg)
        return self.bridge_requests[request_id]

    async def complete_bridge(self, request_id: str) -> TxReceipt:
        self._write("complete_bridge", "complete bridge")
        return TxReceipt(tx_hash=self._hash())

    async def ping(self) -> int:
        self._read("ping")
        return 4_200_000


@pytest.fixture
def settings_env(tmp_path, monkeypatch):
    """Point settings at a throwaway SQLite file."""
    monkeypatch.setenv("MONSPARK_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    monkeypatch.setenv("MONSPARK_REDIS_URL", "")
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def database(settings_env) -> AsyncGenerator[None, None]:
    await init_db(settings_env.database_url)
    yield
    await close_db()


@pytest_asyncio.fixture
async def db_session(database) -> AsyncGenerator[AsyncSession, None]:
    """Get a direct database session for test assertions."""
    async for session in get_session():
        yield session
        await session.close()
        break


@pytest_asyncio.fixture
async def store(db_session: AsyncSession) -> LedgerStore:
    return LedgerStore(db_session)


@pytest.fixture
def gateway() -> FakeChainGateway:
    return FakeChainGateway()


@pytest_asyncio.fixture
async def client(database, gateway: FakeChainGateway) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client over the app with the fake gateway injected."""
    app = create_app(gateway=gateway)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
