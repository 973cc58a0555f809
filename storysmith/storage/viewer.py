"""Per-book viewer preferences (page position, theme, bookmarks, flags).

Each book's record lives in the key-value store under
"storysmith_v1_progress_<book_id>":

  {
    "version": 2,
    "metadata": {"session_id": "viewer_<book_id>", "last_updated": <millis>},
    "viewer_session": {currentIndex, mode, theme, followSystem, reducedMotion,
                       fontScale, vellumExpanded, vellumPosition, flags, bookmarks},
    "story_state": <StoryState or null>
  }

Version-1 records kept the viewer fields at the root (with "lastUpdated");
they are migrated into the envelope on load.
"""

import copy
import logging
from typing import Any

from storysmith.story_state import now_millis

from .kv import KeyValueStore

logger = logging.getLogger(__name__)

VIEWER_STATE_VERSION = 2

VIEWER_SESSION_DEFAULTS: dict[str, Any] = {
    "currentIndex": 0,
    "mode": "storybook",
    "theme": "system",
    "followSystem": True,
    "reducedMotion": False,
    "fontScale": 1,
    "vellumExpanded": True,
    "vellumPosition": {"x": 0, "y": 0},
    "flags": {},
    "bookmarks": [],
}


def viewer_key(book_id: str) -> str:
    return f"storysmith_v1_progress_{book_id}"


def default_viewer_state(book_id: str) -> dict[str, Any]:
    return {
        "version": VIEWER_STATE_VERSION,
        "metadata": {"session_id": f"viewer_{book_id}", "last_updated": now_millis()},
        "viewer_session": copy.deepcopy(VIEWER_SESSION_DEFAULTS),
        "story_state": None,
    }


def _check_session(book_id: str, session: Any) -> dict[str, Any]:
    """Defaults merged with a stored session; wrongly typed parts fall back to defaults."""
    merged = copy.deepcopy(VIEWER_SESSION_DEFAULTS)
    if not isinstance(session, dict):
        if session is not None:
            logger.warning("Unreadable viewer session for %s, using defaults", book_id)
        return merged
    merged.update(session)
    if not isinstance(merged["flags"], dict):
        logger.warning("Unreadable viewer flags for %s, using defaults", book_id)
        merged["flags"] = {}
    marks = merged["bookmarks"]
    if not isinstance(marks, list) or not all(isinstance(b, int) for b in marks):
        logger.warning("Unreadable viewer bookmarks for %s, using defaults", book_id)
        merged["bookmarks"] = []
    return merged


def _migrate(book_id: str, stored: dict[str, Any]) -> dict[str, Any]:
    state = default_viewer_state(book_id)
    if "viewer_session" in stored:
        state.update(stored)
        if not isinstance(state["metadata"], dict):
            state["metadata"] = default_viewer_state(book_id)["metadata"]
        state["viewer_session"] = _check_session(book_id, stored["viewer_session"])
        state["story_state"] = stored.get("story_state")
        return state

    fields = {k: v for k, v in stored.items() if k not in ("version", "lastUpdated")}
    state["viewer_session"] = _check_session(book_id, fields)
    if stored.get("lastUpdated"):
        state["metadata"]["last_updated"] = stored["lastUpdated"]
    logger.info("Migrated flat viewer record for %s", book_id)
    return state


def load_viewer_state(kv: KeyValueStore, book_id: str) -> dict[str, Any]:
    stored = kv.get(viewer_key(book_id))
    if stored is None:
        return default_viewer_state(book_id)
    if not isinstance(stored, dict):
        logger.warning("Unreadable viewer record for %s, using defaults", book_id)
        return default_viewer_state(book_id)
    return _migrate(book_id, stored)


def save_viewer_state(kv: KeyValueStore, book_id: str, state: dict[str, Any]) -> dict[str, Any]:
    state["metadata"] = {**state.get("metadata", {}), "last_updated": now_millis()}
    kv.put(viewer_key(book_id), state)
    return state


def update_viewer_session(
    kv: KeyValueStore, book_id: str, updates: dict[str, Any]
) -> dict[str, Any]:
    """Merge updates into viewer_session (only known fields) and persist."""
    state = load_viewer_state(kv, book_id)
    for key, value in updates.items():
        if key in VIEWER_SESSION_DEFAULTS:
            state["viewer_session"][key] = value
    return save_viewer_state(kv, book_id, state)


def set_flag(kv: KeyValueStore, book_id: str, flag: str, value: Any = True) -> dict[str, Any]:
    state = load_viewer_state(kv, book_id)
    state["viewer_session"]["flags"][flag] = value
    return save_viewer_state(kv, book_id, state)


def add_bookmark(kv: KeyValueStore, book_id: str, page_index: int) -> dict[str, Any]:
    state = load_viewer_state(kv, book_id)
    marks = set(state["viewer_session"]["bookmarks"])
    marks.add(page_index)
    state["viewer_session"]["bookmarks"] = sorted(marks)
    return save_viewer_state(kv, book_id, state)


def remove_bookmark(kv: KeyValueStore, book_id: str, page_index: int) -> dict[str, Any]:
    state = load_viewer_state(kv, book_id)
    marks = state["viewer_session"]["bookmarks"]
    state["viewer_session"]["bookmarks"] = [b for b in marks if b != page_index]
    return save_viewer_state(kv, book_id, state)


def set_viewer_story_state(
    kv: KeyValueStore, book_id: str, story_state: dict[str, Any] | None
) -> dict[str, Any]:
    """Attach a StoryState without touching the viewer session."""
    state = load_viewer_state(kv, book_id)
    state["story_state"] = story_state
    return save_viewer_state(kv, book_id, state)


def reset_viewer_state(kv: KeyValueStore, book_id: str) -> dict[str, Any]:
    kv.delete(viewer_key(book_id))
    return default_viewer_state(book_id)
