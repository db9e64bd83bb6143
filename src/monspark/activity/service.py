"""Activity recording for the global and per-user feeds."""

from __future__ import annotations

from typing import Any

import structlog

from monspark.ledger.ids import generate_id
from monspark.ledger.schemas import Activity, ActivityType
from monspark.ledger.store import LedgerStore

logger = structlog.get_logger()

DEFAULT_FEED_LIMIT = 20


async def record_activity(
    store: LedgerStore,
    address: str,
    activity_type: ActivityType,
    description: str,
    metadata: dict[str, Any] | None = None,
) -> Activity:
    """Append an entry to the head of the global feed."""
    activity = Activity(
        id=generate_id(),
        user_address=address.lower(),
        type=activity_type,
        description=description,
        metadata=metadata,
    )
    await store.add_activity(activity)
    logger.debug("activity_recorded", activity_type=activity_type, address=activity.user_address)
    return activity


def feed_limit(raw: str | None, cap: int) -> int:
    """Parse a ``limit`` query value.

    Missing, non-numeric and non-positive values fall back to the default.
    Anything above the feed cap is clamped to it.
    """
    try:
        limit = int(raw) if raw is not None else DEFAULT_FEED_LIMIT
    except ValueError:
        limit = DEFAULT_FEED_LIMIT
    if limit < 1:
        limit = DEFAULT_FEED_LIMIT
    return min(limit, cap)


async def global_feed(store: LedgerStore, limit: int = DEFAULT_FEED_LIMIT) -> list[Activity]:
    return await store.get_all_activities(limit=limit)


async def user_feed(store: LedgerStore, address: str, limit: int = DEFAULT_FEED_LIMIT) -> list[Activity]:
    """The user's entries still inside the global retention window.

    Per-user views are filtered from the global feed, so older entries age
    out once enough newer activity from any user has been recorded.
    """
    return await store.get_user_activities(address, limit=limit)
