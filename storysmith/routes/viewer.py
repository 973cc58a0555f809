"""Per-book viewer preferences: session, flags, bookmarks."""

from fastapi import APIRouter, Depends

from storysmith.storage import (
    KeyValueStore,
    add_bookmark,
    load_viewer_state,
    remove_bookmark,
    reset_viewer_state,
    set_flag,
    set_viewer_story_state,
    update_viewer_session,
)

from .deps import get_kv
from .models import FlagBody

router = APIRouter()


@router.get("/viewer/{book_id}/session")
async def get_session(book_id: str, kv: KeyValueStore = Depends(get_kv)):
    return load_viewer_state(kv, book_id)


@router.patch("/viewer/{book_id}/session")
async def patch_session(book_id: str, body: dict, kv: KeyValueStore = Depends(get_kv)):
    """Merge viewer settings (currentIndex, theme, fontScale, ...). Unknown keys are ignored."""
    return update_viewer_session(kv, book_id, body)


@router.delete("/viewer/{book_id}/session")
async def delete_session(book_id: str, kv: KeyValueStore = Depends(get_kv)):
    return reset_viewer_state(kv, book_id)


@router.put("/viewer/{book_id}/flags/{flag}")
async def put_flag(book_id: str, flag: str, body: FlagBody, kv: KeyValueStore = Depends(get_kv)):
    return set_flag(kv, book_id, flag, body.value)


@router.put("/viewer/{book_id}/story-state")
async def put_story_state(book_id: str, body: dict, kv: KeyValueStore = Depends(get_kv)):
    """Attach a StoryState to the viewer record."""
    return set_viewer_story_state(kv, book_id, body)


@router.post("/viewer/{book_id}/bookmarks/{page_index}")
async def post_bookmark(book_id: str, page_index: int, kv: KeyValueStore = Depends(get_kv)):
    return add_bookmark(kv, book_id, page_index)


@router.delete("/viewer/{book_id}/bookmarks/{page_index}")
async def delete_bookmark(book_id: str, page_index: int, kv: KeyValueStore = Depends(get_kv)):
    return remove_bookmark(kv, book_id, page_index)
