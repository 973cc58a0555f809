"""Batch illustration of scenes and cover, with per-item failure tracking.

One job per scene ("scene:<scene_id>") plus one for the cover ("cover"),
run one after another. A failed job records its error and the batch moves
on; a later run with retry_failed_only=True re-runs just those jobs.

Once every scene and the cover carry a URL, AssetsManifest is rebuilt.
"""

import logging
from collections.abc import Callable
from typing import Any

from storysmith.generation import GenerationError, ImageGenerator
from storysmith.models import ItemProgress
from storysmith.story_state import build_assets_manifest, touch

logger = logging.getLogger(__name__)

COVER_KEY = "cover"

Progress = dict[str, ItemProgress]


def scene_key(scene: dict[str, Any], position: int) -> str:
    """Progress key for a scene; falls back to its 1-based position when it has no id."""
    scene_id = scene.get("scene_id")
    if scene_id is None or scene_id == "":
        return f"scene:#{position}"
    return f"scene:{scene_id}"


def _jobs(story_state: dict[str, Any]) -> list[tuple[str, dict[str, Any], str, str]]:
    """(key, target, prompt field, url field) for every illustratable item."""
    content = story_state.get("story_content") or {}
    jobs = [
        (scene_key(scene, i), scene, "illustration_prompt", "illustration_url")
        for i, scene in enumerate(content.get("SceneJSON_array") or [], start=1)
    ]
    if content.get("Cover"):
        jobs.append((COVER_KEY, content["Cover"], "cover_image_prompt", "cover_image_url"))
    return jobs


def is_fully_illustrated(story_state: dict[str, Any]) -> bool:
    content = story_state.get("story_content") or {}
    scenes = content.get("SceneJSON_array") or []
    cover = content.get("Cover") or {}
    return (
        bool(scenes)
        and all(s.get("illustration_url") for s in scenes)
        and bool(cover.get("cover_image_url"))
    )


def failed_keys(progress: Progress) -> list[str]:
    return [key for key, item in progress.items() if item.status == "failed"]


async def illustrate_story(
    story_state: dict[str, Any],
    generate_image: ImageGenerator,
    *,
    progress: Progress | None = None,
    retry_failed_only: bool = False,
    on_progress: Callable[[ItemProgress], None] | None = None,
) -> Progress:
    """Generate missing illustrations in place and return per-item progress.

    Scope: items without a URL, or (retry_failed_only) items whose entry in
    `progress` is failed. Items outside the scope keep their progress entry.
    """
    progress = dict(progress or {})
    retry = set(failed_keys(progress)) if retry_failed_only else None

    def report(item: ItemProgress) -> None:
        progress[item.key] = item
        if on_progress is not None:
            on_progress(item)

    for key, target, prompt_field, url_field in _jobs(story_state):
        if retry is not None:
            if key not in retry:
                continue
        elif target.get(url_field):
            progress.setdefault(key, ItemProgress(key=key, status="done", url=target[url_field]))
            continue

        prompt = target.get(prompt_field)
        if not prompt:
            report(ItemProgress(key=key, status="failed", error="No illustration prompt to draw from."))
            continue

        report(ItemProgress(key=key, status="running"))
        try:
            url = await generate_image(prompt)
        except GenerationError as e:
            logger.warning("Illustration failed for %s: %s", key, e)
            report(ItemProgress(key=key, status="failed", error=str(e)))
            continue
        except Exception as e:
            logger.exception("Unexpected error illustrating %s", key)
            report(ItemProgress(key=key, status="failed", error=f"Image generation failed: {e}"))
            continue

        target[url_field] = url
        if key != COVER_KEY:
            target["scene_status"] = "illustrated"
        report(ItemProgress(key=key, status="done", url=url))

    if is_fully_illustrated(story_state):
        story_state.setdefault("story_content", {})["AssetsManifest"] = build_assets_manifest(story_state)
    touch(story_state)
    return progress
