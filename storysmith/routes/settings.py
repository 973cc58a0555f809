"""Health check and settings endpoints."""

from fastapi import APIRouter, Depends

from storysmith.storage import KeyValueStore, get_config, public_config, update_config

from .deps import get_kv

router = APIRouter()


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/settings")
async def get_settings(kv: KeyValueStore = Depends(get_kv)):
    """Get app settings. API keys are reported as set/unset only."""
    return public_config(get_config(kv))


@router.patch("/settings")
async def update_settings(body: dict, kv: KeyValueStore = Depends(get_kv)):
    """Update app settings (partial merge)."""
    return public_config(update_config(kv, body))
