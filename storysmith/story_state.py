"""Canonical StoryState envelope: factory, structural check, normalization, viewer adapter.

Shape:
  {
    "version": 1,
    "metadata":      {"session_id", "last_updated" (epoch millis), "last_prompt"},
    "story_data":    {"story_title", "thematic_tone", "visual_style", "visual_consistency_tag"},
    "story_content": {"CharacterBlock", "StoryBlueprintBlock", "SceneJSON_array",
                      "Cover", "AssetsManifest"},
  }

StoryStates are plain dicts so they round-trip through JSON untouched.
Validity here is structural only; stage completeness lives in bundles.validator.

Normalization accepts three inputs:
  valid StoryState   → returned as-is (same object)
  legacy flat book   → {title, pages[...], author?, tableOfContents?} converted
  anything else      → a fresh empty StoryState (logged)

The legacy viewer data (author, tableOfContents) rides along under the
"_viewerMeta" key so to_viewer_book() can reproduce it.
"""

import logging
import random
import string
import time
from dataclasses import dataclass
from typing import Any, Literal

from storysmith.models import AssetsManifest

logger = logging.getLogger(__name__)

STORY_STATE_VERSION = 1
DEFAULT_STORY_TITLE = "Untitled Story"
DEFAULT_AUTHOR = "StorySmith"
PLACEHOLDER_COVER_URL = "/books/sample/cover.svg"
PLACEHOLDER_PAGE_URL = "/books/sample/page-1.svg"

_BASE36 = string.digits + string.ascii_lowercase


def now_millis() -> int:
    return int(time.time() * 1000)


def new_session_id(now: int | None = None) -> str:
    """"ss_<epoch-millis>_<7 base36 chars>", e.g. "ss_1718000000000_k3j9x0a"."""
    if now is None:
        now = now_millis()
    suffix = "".join(random.choice(_BASE36) for _ in range(7))
    return f"ss_{now}_{suffix}"


def create_empty_story_state(overrides: dict[str, Any] | None = None) -> dict[str, Any]:
    """Create a StoryState with default sections.

    Each of metadata / story_data / story_content in `overrides` is merged
    key-by-key over the defaults; override keys win.
    """
    overrides = overrides or {}
    now = now_millis()
    return {
        "version": STORY_STATE_VERSION,
        "metadata": {
            "session_id": new_session_id(now),
            "last_updated": now,
            "last_prompt": None,
            **(overrides.get("metadata") or {}),
        },
        "story_data": {
            "story_title": DEFAULT_STORY_TITLE,
            "thematic_tone": None,
            "visual_style": None,
            "visual_consistency_tag": None,
            **(overrides.get("story_data") or {}),
        },
        "story_content": {
            "CharacterBlock": None,
            "StoryBlueprintBlock": None,
            "SceneJSON_array": [],
            "Cover": None,
            "AssetsManifest": None,
            **(overrides.get("story_content") or {}),
        },
    }


def is_valid_story_state(obj: Any) -> bool:
    """Structural check of the envelope. Never raises."""
    if not isinstance(obj, dict):
        return False
    version = obj.get("version")
    if isinstance(version, bool) or not isinstance(version, (int, float)):
        return False
    for section in ("metadata", "story_data", "story_content"):
        if not isinstance(obj.get(section), dict):
            return False
    return isinstance(obj["story_content"].get("SceneJSON_array"), list)


def is_flat_viewer_schema(obj: Any) -> bool:
    return (
        isinstance(obj, dict)
        and isinstance(obj.get("pages"), list)
        and isinstance(obj.get("title"), str)
    )


# ── Normalization ────────────────────────────────────────


NormalizeOutcome = Literal["valid", "recovered", "empty"]


@dataclass
class NormalizeResult:
    """What normalize() did with its input.

    valid      input was already a StoryState (story_state is the input object)
    recovered  legacy flat book converted
    empty      input unusable; story_state is a fresh empty StoryState
    """

    outcome: NormalizeOutcome
    story_state: dict[str, Any]

    @property
    def gave_up(self) -> bool:
        return self.outcome == "empty"


def normalize(value: Any) -> NormalizeResult:
    if is_valid_story_state(value):
        return NormalizeResult("valid", value)
    if is_flat_viewer_schema(value):
        return NormalizeResult("recovered", _flat_to_story_state(value))
    logger.warning(
        "Unknown StoryState input (%s), returning empty StoryState",
        type(value).__name__,
    )
    return NormalizeResult("empty", create_empty_story_state())


def normalize_to_story_state(value: Any) -> dict[str, Any]:
    """Return a StoryState for any input. Valid input is returned unchanged."""
    return normalize(value).story_state


def _flat_to_story_state(flat: dict[str, Any]) -> dict[str, Any]:
    now = now_millis()
    pages = [p for p in flat["pages"] if isinstance(p, dict)]
    cover_page = next((p for p in pages if p.get("type") == "cover"), None)
    content_pages = [p for p in pages if p.get("type") != "cover"]

    scenes = []
    for index, page in enumerate(content_pages):
        image_url = page.get("imageUrl") or None
        scenes.append({
            "scene_id": page.get("id") or f"scene_{index + 1}",
            "scene_title": page.get("title") or f"Scene {index + 1}",
            "scene_status": "illustrated" if image_url else "pending_illustration",
            "scene_text_components": None,
            "scene_full_text": page.get("text") or "",
            "illustration_prompt": None,
            "illustration_url": image_url,
            "continuity_notes": None,
            "hotspots": page.get("hotspots") or [],
        })

    cover = None
    if cover_page is not None:
        cover = {
            "cover_image_url": cover_page.get("imageUrl") or None,
            "cover_image_prompt": None,
            "cover_title": cover_page.get("text") or flat["title"] or None,
            "author_attribution": flat.get("author") or None,
            "dedication": None,
        }

    return {
        "version": STORY_STATE_VERSION,
        "metadata": {
            "session_id": flat.get("id") or new_session_id(now),
            "last_updated": now,
            "last_prompt": None,
        },
        "story_data": {
            "story_title": flat["title"] or DEFAULT_STORY_TITLE,
            "thematic_tone": None,
            "visual_style": None,
            "visual_consistency_tag": None,
        },
        "story_content": {
            "CharacterBlock": None,
            "StoryBlueprintBlock": None,
            "SceneJSON_array": scenes,
            "Cover": cover,
            "AssetsManifest": None,
        },
        "_viewerMeta": {
            "author": flat.get("author") or None,
            "tableOfContents": flat.get("tableOfContents") or [],
        },
    }


# ── Derived data ─────────────────────────────────────────


def touch(story_state: dict[str, Any], prompt: str | None = None) -> dict[str, Any]:
    """Stamp metadata.last_updated (and last_prompt when given)."""
    metadata = story_state.setdefault("metadata", {})
    metadata["last_updated"] = now_millis()
    if prompt is not None:
        metadata["last_prompt"] = prompt
    return story_state


def character_details_from_hero(block: dict[str, Any]) -> dict[str, Any]:
    """Nested character_details view of the top-level hero fields."""
    return {
        "name": block.get("hero_name"),
        "description": block.get("hero_description"),
        "traits": block.get("traits"),
        "hero_image_prompt": block.get("hero_image_prompt"),
        "hero_image_url": block.get("hero_image_url"),
    }


def build_assets_manifest(story_state: dict[str, Any]) -> dict[str, Any]:
    """Summarize every generated media URL in the StoryState."""
    content = story_state.get("story_content") or {}
    hero = content.get("CharacterBlock") or {}
    cover = content.get("Cover") or {}
    scenes = content.get("SceneJSON_array") or []
    manifest = AssetsManifest(
        hero_image=hero.get("hero_image_url"),
        cover_image=cover.get("cover_image_url"),
        scene_images=[s["illustration_url"] for s in scenes if s.get("illustration_url")],
    )
    return manifest.model_dump()


# ── Viewer adapter ───────────────────────────────────────


def to_viewer_book(story_state: Any) -> dict[str, Any]:
    """Flatten a StoryState into the read-only viewer's page list.

    Cover (if any) is the first page, then one page per scene. Missing
    illustrations fall back to the bundled sample artwork.
    """
    if not is_valid_story_state(story_state):
        logger.warning("Invalid StoryState passed to to_viewer_book")
        return {"id": "unknown", "title": "Error", "author": "", "pages": [], "tableOfContents": []}

    story_data = story_state["story_data"]
    content = story_state["story_content"]
    viewer_meta = story_state.get("_viewerMeta") or {}

    pages: list[dict[str, Any]] = []
    toc: list[dict[str, Any]] = []

    cover = content.get("Cover")
    if cover:
        pages.append({
            "id": "cover",
            "type": "cover",
            "imageUrl": cover.get("cover_image_url") or PLACEHOLDER_COVER_URL,
            "text": cover.get("cover_title") or story_data.get("story_title"),
            "textPosition": "center",
            "hotspots": [],
        })
        toc.append({"id": "cover", "title": "Cover"})

    for number, scene in enumerate(content["SceneJSON_array"], start=1):
        pages.append({
            "id": scene.get("scene_id"),
            "type": "spread",
            "imageUrl": scene.get("illustration_url") or PLACEHOLDER_PAGE_URL,
            "text": scene.get("scene_full_text") or "",
            "hotspots": scene.get("hotspots") or [],
        })
        toc.append({"id": scene.get("scene_id"), "title": f"Chapter {number}"})

    return {
        "id": story_state["metadata"].get("session_id"),
        "title": story_data.get("story_title"),
        "author": viewer_meta.get("author") or DEFAULT_AUTHOR,
        "pages": pages,
        "tableOfContents": viewer_meta.get("tableOfContents") or toc,
    }
