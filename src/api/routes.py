"""Liveness endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from src.store import InMemoryStore, get_store

router = APIRouter()


@router.get("/ping")
async def ping() -> dict:
    return {"message": "EcoWear API is running!"}


@router.get("/health")
async def health_check(store: InMemoryStore = Depends(get_store)) -> dict:
    """Health check endpoint.

    Returns:
        Status, timestamp in ISO8601 format and registered user count
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "users": store.count_users(),
    }
