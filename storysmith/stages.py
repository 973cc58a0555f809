"""Stage flow: the StoryState edits made between bundle handoffs.

  Forge (Act I)   set_hero, suggest_hero_names, forge_hero_reply
  Spin  (Act II)  generate_blueprint, set_blueprint, weave_scene_reply,
                  upsert_scene, set_cover
  Bind  (Act III) finalize_binding (illustrations: see storysmith.illustration)

All edits happen in place on the given StoryState and stamp
metadata.last_updated. Scenes are addressed by str(scene_id).
"""

import json
import logging
import re
from typing import Any

from storysmith.generation import GenerationError, TextGenerator
from storysmith.models import CharacterBlock, Cover, Scene
from storysmith.prompts import (
    blueprint_prompt,
    cover_prompt,
    hero_names_prompt,
    scene_illustration_prompt,
    scene_weaver_prompt,
)
from storysmith.story_state import character_details_from_hero, touch

logger = logging.getLogger(__name__)

SCENE_WEAVER_SYSTEM = "You are The Architect of Arcs."
HERO_FORGE_SYSTEM = (
    "You are the Keeper of the Forge. Help the guest shape a storybook hero: "
    "a name, a short description, a few traits, and a portrait prompt."
)

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def _content(story_state: dict[str, Any]) -> dict[str, Any]:
    return story_state.setdefault("story_content", {})


# ── Forge ────────────────────────────────────────────────


def set_hero(story_state: dict[str, Any], hero: CharacterBlock | dict[str, Any]) -> dict[str, Any]:
    """Store the hero and mirror it into character_details."""
    if isinstance(hero, CharacterBlock):
        block = hero.model_dump()
    else:
        block = CharacterBlock.model_validate(hero).model_dump()
    details = dict(block.get("character_details") or {})
    details.update(character_details_from_hero(block))
    block["character_details"] = details
    _content(story_state)["CharacterBlock"] = block
    touch(story_state)
    return block


async def suggest_hero_names(generate: TextGenerator, gender: str, count: int = 5) -> list[str]:
    reply = await generate("suggest_names", "", hero_names_prompt(gender, count))
    names = _parse_json_reply(reply)
    if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
        raise GenerationError("Name suggestions were not a JSON array of strings")
    return names


async def forge_hero_reply(
    generate: TextGenerator, story_state: dict[str, Any], message: str
) -> str:
    """One turn of the hero-forging conversation."""
    reply = await generate("forge_hero", HERO_FORGE_SYSTEM, message)
    touch(story_state, prompt=message)
    return reply


# ── Spin ─────────────────────────────────────────────────


def _parse_json_reply(reply: str) -> Any:
    text = _FENCE.sub("", reply.strip())
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise GenerationError("The story service returned something that is not JSON") from e


async def generate_blueprint(generate: TextGenerator, story_state: dict[str, Any]) -> dict[str, Any]:
    """Ask the text service for a StoryBlueprintBlock and store it.

    The reply may be the block itself, {"StoryBlueprintBlock": ...} or
    {"story_content": {"StoryBlueprintBlock": ...}}.
    """
    data = _parse_json_reply(
        await generate("blueprint", SCENE_WEAVER_SYSTEM, blueprint_prompt(story_state))
    )
    if isinstance(data, dict) and isinstance(data.get("story_content"), dict):
        data = data["story_content"]
    if isinstance(data, dict) and "StoryBlueprintBlock" in data:
        data = data["StoryBlueprintBlock"]
    if not isinstance(data, dict) or not data:
        raise GenerationError("The story service returned an empty blueprint")
    return set_blueprint(story_state, data)


def set_blueprint(story_state: dict[str, Any], blueprint: dict[str, Any]) -> dict[str, Any]:
    _content(story_state)["StoryBlueprintBlock"] = blueprint
    touch(story_state)
    return blueprint


async def weave_scene_reply(
    generate: TextGenerator, story_state: dict[str, Any], message: str
) -> str:
    reply = await generate(
        "scene_weaver", SCENE_WEAVER_SYSTEM, scene_weaver_prompt(story_state, message)
    )
    touch(story_state, prompt=message)
    return reply


def find_scene(story_state: dict[str, Any], scene_id: Any) -> dict[str, Any] | None:
    for scene in _content(story_state).get("SceneJSON_array") or []:
        if str(scene.get("scene_id")) == str(scene_id):
            return scene
    return None


def upsert_scene(story_state: dict[str, Any], scene: Scene | dict[str, Any]) -> dict[str, Any]:
    """Replace the scene with the same scene_id, or append a new one."""
    if isinstance(scene, Scene):
        record = scene.model_dump()
    else:
        record = Scene.model_validate(scene).model_dump()
    if not record.get("illustration_prompt"):
        record["illustration_prompt"] = scene_illustration_prompt(story_state, record)

    scenes = _content(story_state).setdefault("SceneJSON_array", [])
    for index, existing in enumerate(scenes):
        if str(existing.get("scene_id")) == str(record["scene_id"]):
            scenes[index] = record
            break
    else:
        scenes.append(record)
    touch(story_state)
    return record


def set_cover(story_state: dict[str, Any], **fields: Any) -> dict[str, Any]:
    """Merge fields into Cover; fill a missing cover_image_prompt from the template."""
    content = _content(story_state)
    merged = {**(content.get("Cover") or {}), **fields}
    cover = Cover.model_validate(merged).model_dump()
    if not cover.get("cover_image_prompt"):
        cover["cover_image_prompt"] = cover_prompt(story_state)
    content["Cover"] = cover
    touch(story_state)
    return cover


# ── Bind ─────────────────────────────────────────────────


def finalize_binding(story_state: dict[str, Any], author: str, dedication: str) -> dict[str, Any]:
    """Record the author line and dedication on the cover."""
    content = _content(story_state)
    cover = dict(content.get("Cover") or {})
    cover["author_attribution"] = author
    cover["dedication"] = dedication
    content["Cover"] = cover
    touch(story_state)
    logger.info("Bound story %s", (story_state.get("metadata") or {}).get("session_id"))
    return cover
