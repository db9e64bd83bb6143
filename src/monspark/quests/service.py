"""Quest listing, progress and the at-most-once completion flow.

The on-chain QuestHub is the only authority on completion. The local
``quest_progress`` flag is a read cache written strictly after the chain
accepted the completion, so the ledger never claims a completion that did
not happen on chain.

The ``has_completed_quest`` pre-check is advisory: it is not atomic with
the write. Completions are serialized per (address, quest) inside this
process, and the local flag update is idempotent whichever request wins.
"""

from __future__ import annotations

import asyncio
import weakref

import structlog

from monspark.activity.service import record_activity
from monspark.chain.gateway import ChainGateway
from monspark.chain.schemas import Quest
from monspark.errors import AlreadyCompleted, ChainWriteError, CompletionFailed, ValidationError
from monspark.ledger.addresses import normalize_address
from monspark.ledger.store import LedgerStore
from monspark.quests.schemas import CompleteQuestResponse, ProgressView

logger = structlog.get_logger()

_completion_locks: weakref.WeakValueDictionary[tuple[str, int], asyncio.Lock] = weakref.WeakValueDictionary()


def _completion_lock(address: str, quest_id: int) -> asyncio.Lock:
    key = (address, quest_id)
    lock = _completion_locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _completion_locks[key] = lock
    return lock


def _check_quest_id(quest_id: int) -> None:
    if quest_id < 1:
        msg = "Quest ID must be a positive integer"
        raise ValidationError(msg)


async def list_quests(gateway: ChainGateway, address: str | None = None) -> list[Quest]:
    """All quests; each carries ``completed`` when an address is given."""
    quests = await gateway.get_all_quests()
    if not address:
        return quests

    user = normalize_address(address)
    flags = await asyncio.gather(*(gateway.has_completed_quest(user, q.id) for q in quests))
    return [q.model_copy(update={"completed": done}) for q, done in zip(quests, flags, strict=True)]


async def get_quest(gateway: ChainGateway, quest_id: int, address: str | None = None) -> Quest:
    _check_quest_id(quest_id)
    quest = await gateway.get_quest(quest_id)
    if address:
        done = await gateway.has_completed_quest(normalize_address(address), quest_id)
        quest = quest.model_copy(update={"completed": done})
    return quest


async def complete_quest(
    store: LedgerStore,
    gateway: ChainGateway,
    address: str | None,
    quest_id: int,
) -> CompleteQuestResponse:
    """Complete a quest on chain, then mirror it locally.

    Steps:
    1. Reject if the chain already reports the quest as completed.
    2. Submit the completion; on failure nothing local is touched.
    3. Set the local flag and append a ``quest_completed`` activity.
    4. Append a ``level_up`` activity when the level rose.

    Raises:
        ValidationError: Missing or malformed address, or a non-positive quest id.
        AlreadyCompleted: The chain already has this completion.
        CompletionFailed: The completion transaction failed.
    """
    user = normalize_address(address)
    _check_quest_id(quest_id)

    async with _completion_lock(user, quest_id):
        if await gateway.has_completed_quest(user, quest_id):
            msg = "Quest already completed"
            raise AlreadyCompleted(msg)

        before = await gateway.get_user_progress(user)
        try:
            receipt = await gateway.verify_and_complete_quest(user, quest_id)
        except ChainWriteError as e:
            logger.warning("quest_completion_failed", address=user, quest_id=quest_id, error=str(e))
            raise CompletionFailed(str(e)) from e

        await store.mark_quest_completed(user, quest_id)

    quest = (await gateway.get_quest(quest_id)).model_copy(update={"completed": True})
    await record_activity(
        store,
        user,
        "quest_completed",
        f"Completed quest: {quest.name}",
        {"questId": quest_id, "xpEarned": quest.xp_reward, "txHash": receipt.tx_hash},
    )

    progress = await gateway.get_user_progress(user)
    if progress.level > before.level:
        await record_activity(
            store,
            user,
            "level_up",
            f"Reached level {progress.level}",
            {"previousLevel": before.level, "newLevel": progress.level, "totalXP": progress.total_xp},
        )

    logger.info(
        "quest_completed",
        address=user,
        quest_id=quest_id,
        tx_hash=receipt.tx_hash,
        level=progress.level,
    )
    return CompleteQuestResponse(
        success=True,
        tx_hash=receipt.tx_hash,
        quest=quest,
        user_progress=progress,
    )


async def get_progress(store: LedgerStore, gateway: ChainGateway, address: str) -> ProgressView:
    """On-chain progress merged with the local completion flags."""
    user = normalize_address(address)
    progress = await gateway.get_user_progress(user)
    record = await store.get_user(user)
    return ProgressView(
        **progress.model_dump(),
        quests_completed=record.quest_progress if record else {},
    )

