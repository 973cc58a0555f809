"""Tests for the Forge / Spin / Bind StoryState edits."""

import json

import pytest
from pydantic import ValidationError
from unittest.mock import AsyncMock

from storysmith.bundles import validate_part1_bundle, validate_part2_bundle
from storysmith.generation import GenerationError
from storysmith.models import CharacterBlock
from storysmith.stages import (
    HERO_FORGE_SYSTEM,
    SCENE_WEAVER_SYSTEM,
    finalize_binding,
    find_scene,
    forge_hero_reply,
    generate_blueprint,
    set_blueprint,
    set_cover,
    set_hero,
    suggest_hero_names,
    upsert_scene,
    weave_scene_reply,
)
from storysmith.story_state import create_empty_story_state


@pytest.fixture
def story_state():
    ss = create_empty_story_state({"metadata": {"last_updated": 0}})
    set_hero(ss, {"hero_name": "Astra Vale", "traits": ["curious"]})
    return ss


# ── Forge ────────────────────────────────────────────────────


def test_set_hero_mirrors_character_details(story_state):
    hero = story_state["story_content"]["CharacterBlock"]
    assert hero["hero_name"] == "Astra Vale"
    assert hero["character_details"]["name"] == "Astra Vale"
    assert hero["character_details"]["traits"] == ["curious"]
    assert story_state["metadata"]["last_updated"] > 0
    assert validate_part1_bundle(story_state).valid


def test_set_hero_accepts_model_and_keeps_extras():
    ss = create_empty_story_state()
    set_hero(ss, CharacterBlock(hero_name="Pip", species="otter"))
    hero = ss["story_content"]["CharacterBlock"]
    assert hero["species"] == "otter"
    assert hero["character_details"]["name"] == "Pip"


def test_set_hero_requires_name():
    with pytest.raises(ValidationError):
        set_hero(create_empty_story_state(), {"traits": ["brave"]})


async def test_suggest_hero_names():
    generate = AsyncMock(return_value='```json\n["Astra", "Pip", "Wren"]\n```')
    names = await suggest_hero_names(generate, "girl", 3)
    assert names == ["Astra", "Pip", "Wren"]
    stage, _, prompt = generate.call_args.args
    assert stage == "suggest_names"
    assert "list of 3" in prompt


async def test_suggest_hero_names_rejects_non_list():
    generate = AsyncMock(return_value='{"names": ["Astra"]}')
    with pytest.raises(GenerationError):
        await suggest_hero_names(generate, "boy")


async def test_forge_hero_reply_records_prompt(story_state):
    generate = AsyncMock(return_value="What is your hero afraid of?")
    reply = await forge_hero_reply(generate, story_state, "A brave otter")
    assert reply == "What is your hero afraid of?"
    assert generate.call_args.args[1] == HERO_FORGE_SYSTEM
    assert story_state["metadata"]["last_prompt"] == "A brave otter"


# ── Spin ─────────────────────────────────────────────────────


BLUEPRINT = {"structure": {"numberOfScenes": 3}, "summary_sections": {"beginning": "A gate."}}


@pytest.mark.parametrize("reply", [
    json.dumps(BLUEPRINT),
    json.dumps({"StoryBlueprintBlock": BLUEPRINT}),
    json.dumps({"story_content": {"StoryBlueprintBlock": BLUEPRINT}}),
    "```json\n" + json.dumps(BLUEPRINT) + "\n```",
])
async def test_generate_blueprint_accepts_shapes(story_state, reply):
    generate = AsyncMock(return_value=reply)
    block = await generate_blueprint(generate, story_state)
    assert block == BLUEPRINT
    assert story_state["story_content"]["StoryBlueprintBlock"] == BLUEPRINT
    assert generate.call_args.args[1] == SCENE_WEAVER_SYSTEM


@pytest.mark.parametrize("reply", ["Sorry, I cannot.", "[]", "{}"])
async def test_generate_blueprint_rejects_other_replies(story_state, reply):
    with pytest.raises(GenerationError):
        await generate_blueprint(AsyncMock(return_value=reply), story_state)
    assert story_state["story_content"]["StoryBlueprintBlock"] is None


def test_set_blueprint(story_state):
    set_blueprint(story_state, BLUEPRINT)
    assert story_state["story_content"]["StoryBlueprintBlock"] == BLUEPRINT


async def test_weave_scene_reply(story_state):
    generate = AsyncMock(return_value="Scene one begins...")
    reply = await weave_scene_reply(generate, story_state, "Start at the gate")
    assert reply == "Scene one begins..."
    stage, system, prompt = generate.call_args.args
    assert stage == "scene_weaver"
    assert system == SCENE_WEAVER_SYSTEM
    assert "Start at the gate" in prompt
    assert story_state["metadata"]["last_prompt"] == "Start at the gate"


def test_upsert_scene_appends_in_order(story_state):
    upsert_scene(story_state, {"scene_id": 1, "scene_title": "Gate"})
    upsert_scene(story_state, {"scene_id": 2, "scene_title": "Map"})
    titles = [s["scene_title"] for s in story_state["story_content"]["SceneJSON_array"]]
    assert titles == ["Gate", "Map"]


def test_upsert_scene_replaces_by_string_id(story_state):
    upsert_scene(story_state, {"scene_id": 1, "scene_title": "Gate"})
    upsert_scene(story_state, {"scene_id": "1", "scene_title": "Gate, revised"})
    scenes = story_state["story_content"]["SceneJSON_array"]
    assert len(scenes) == 1
    assert scenes[0]["scene_title"] == "Gate, revised"
    assert find_scene(story_state, 1) is scenes[0]
    assert find_scene(story_state, 99) is None


def test_upsert_scene_fills_prompt(story_state):
    scene = upsert_scene(story_state, {"scene_id": 1, "scene_title": "Gate"})
    assert scene["illustration_prompt"] == (
        'An illustration for "Gate" featuring Astra Vale. Style: 3D animated Film'
    )


def test_upsert_scene_keeps_given_prompt(story_state):
    scene = upsert_scene(story_state, {"scene_id": 1, "illustration_prompt": "custom"})
    assert scene["illustration_prompt"] == "custom"


def test_set_cover_merges_and_fills_prompt(story_state):
    set_cover(story_state, cover_title="Astra and the Gate")
    cover = set_cover(story_state, cover_image_url="/cover.png")
    assert cover["cover_title"] == "Astra and the Gate"
    assert cover["cover_image_url"] == "/cover.png"
    assert "Astra Vale" in cover["cover_image_prompt"]


def test_spin_output_passes_part2(story_state):
    upsert_scene(story_state, {"scene_id": 1, "scene_title": "Gate"})
    set_cover(story_state)
    assert validate_part2_bundle(story_state).valid


# ── Bind ─────────────────────────────────────────────────────


def test_finalize_binding(story_state):
    set_cover(story_state, cover_image_prompt="a gate")
    cover = finalize_binding(story_state, "Mira", "For Theo")
    assert cover["author_attribution"] == "Mira"
    assert cover["dedication"] == "For Theo"
    assert cover["cover_image_prompt"] == "a gate"
