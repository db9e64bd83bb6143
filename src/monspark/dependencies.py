"""Shared FastAPI dependencies."""

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from monspark.chain.gateway import ChainGateway
from monspark.config import Settings, get_settings
from monspark.database import get_session
from monspark.ledger.store import LedgerStore


def get_store(
    db: AsyncSession = Depends(get_session),  # noqa: B008
    settings: Settings = Depends(get_settings),  # noqa: B008
) -> LedgerStore:
    """Ledger store bound to the request's database session."""
    return LedgerStore(db, max_activities=settings.activity_feed_max_items)


def get_gateway(request: Request) -> ChainGateway:
    """The chain gateway constructed at startup (or injected by create_app)."""
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        raise HTTPException(status_code=503, detail="Chain gateway not configured")
    return gateway
