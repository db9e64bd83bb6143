"""Quest endpoints: list, detail, complete, progress."""

from fastapi import APIRouter, Depends, HTTPException, Query

from monspark.chain.gateway import ChainGateway
from monspark.dependencies import get_gateway, get_store
from monspark.errors import AlreadyCompleted, ChainReadError, CompletionFailed, ValidationError
from monspark.ledger.store import LedgerStore
from monspark.quests import service
from monspark.quests.schemas import (
    CompleteQuestRequest,
    CompleteQuestResponse,
    ProgressResponse,
    QuestDetailResponse,
    QuestListResponse,
)

router = APIRouter(prefix="/api/quests", tags=["Quests"])


@router.get("", response_model=QuestListResponse, response_model_exclude_none=True)
async def list_quests(
    address: str | None = Query(None),
    gateway: ChainGateway = Depends(get_gateway),
):
    """All quests, with per-user ``completed`` flags when ``address`` is given."""
    try:
        quests = await service.list_quests(gateway, address)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except ChainReadError as e:
        raise HTTPException(status_code=500, detail=f"Failed to fetch quests: {e}") from e
    return QuestListResponse(quests=quests)


# Declared before /{quest_id} so "progress" is not parsed as an id.
@router.get("/progress/{address}", response_model=ProgressResponse)
async def get_progress(
    address: str,
    store: LedgerStore = Depends(get_store),
    gateway: ChainGateway = Depends(get_gateway),
):
    """On-chain XP/level merged with local quest completion flags."""
    try:
        progress = await service.get_progress(store, gateway, address)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except ChainReadError as e:
        raise HTTPException(status_code=500, detail=f"Failed to fetch progress: {e}") from e
    return ProgressResponse(progress=progress)


@router.get("/{quest_id}", response_model=QuestDetailResponse, response_model_exclude_none=True)
async def get_quest(
    quest_id: int,
    address: str | None = Query(None),
    gateway: ChainGateway = Depends(get_gateway),
):
    """Single quest, with ``completed`` when ``address`` is given."""
    try:
        quest = await service.get_quest(gateway, quest_id, address)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except ChainReadError as e:
        raise HTTPException(status_code=500, detail=f"Failed to fetch quest: {e}") from e
    return QuestDetailResponse(quest=quest)


@router.post("/{quest_id}/complete", response_model=CompleteQuestResponse)
async def complete_quest(
    quest_id: int,
    body: CompleteQuestRequest,
    store: LedgerStore = Depends(get_store),
    gateway: ChainGateway = Depends(get_gateway),
):
    """Verify and complete a quest on chain, then record it locally."""
    try:
        return await service.complete_quest(store, gateway, body.user_address, quest_id)
    except (ValidationError, AlreadyCompleted) as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except CompletionFailed as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
    except ChainReadError as e:
        raise HTTPException(status_code=500, detail=f"Failed to complete quest: {e}") from e
