"""Activity feed endpoints."""

from fastapi import APIRouter, Depends, Query

from monspark.activity.service import feed_limit, global_feed, user_feed
from monspark.dependencies import get_store
from monspark.ledger.schemas import Activity
from monspark.ledger.store import LedgerStore
from monspark.schemas import CamelModel

router = APIRouter(prefix="/api/activity", tags=["Activity"])


class ActivityFeedResponse(CamelModel):
    activities: list[Activity]


@router.get("", response_model=ActivityFeedResponse, response_model_exclude_none=True)
async def list_activities(
    limit: str | None = Query(None),
    store: LedgerStore = Depends(get_store),
):
    """Global activity feed, newest first."""
    activities = await global_feed(store, feed_limit(limit, store.max_activities))
    return ActivityFeedResponse(activities=activities)


@router.get("/{address}", response_model=ActivityFeedResponse, response_model_exclude_none=True)
async def list_user_activities(
    address: str,
    limit: str | None = Query(None),
    store: LedgerStore = Depends(get_store),
):
    """Activity for one address (case-insensitive), newest first."""
    activities = await user_feed(store, address, feed_limit(limit, store.max_activities))
    return ActivityFeedResponse(activities=activities)
