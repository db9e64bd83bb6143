"""Pydantic request/response models for quest endpoints."""

from __future__ import annotations

from monspark.chain.schemas import Quest, UserProgress
from monspark.schemas import CamelModel


class QuestListResponse(CamelModel):
    quests: list[Quest]


class QuestDetailResponse(CamelModel):
    quest: Quest


class CompleteQuestRequest(CamelModel):
    user_address: str | None = None


class CompleteQuestResponse(CamelModel):
    success: bool
    tx_hash: str
    quest: Quest
    user_progress: UserProgress


class ProgressView(UserProgress):
    quests_completed: dict[int, bool] = {}


class ProgressResponse(CamelModel):
    progress: ProgressView
