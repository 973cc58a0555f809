"""Ready-made StoryStates for each stage, used by the dev simulator and demo data.

Each builder returns a fresh StoryState that passes its own stage's
validator and no later one:

  make_part1_fixture   hero only
  make_part2_fixture   + three scenes with prompts, cover prompt
  make_final_fixture   + placeholder illustration URLs and AssetsManifest
"""

from collections.abc import Callable
from typing import Any

from storysmith.story_state import (
    build_assets_manifest,
    character_details_from_hero,
    create_empty_story_state,
)

FIXTURE_SCENES = [
    {
        "scene_id": 1,
        "scene_title": "The Whispering Gate",
        "scene_full_text": "Astra finds a gate that only opens for a vow spoken aloud.",
        "illustration_prompt": (
            "A twilight stone archway in a quiet forest, soft lantern glow, "
            "adventurous but cozy mood."
        ),
    },
    {
        "scene_id": 2,
        "scene_title": "The Borrowed Map",
        "scene_full_text": "A rival offers help, for a price that feels too kind.",
        "illustration_prompt": (
            "A small tavern table with an old map unfurled, warm candlelight, "
            "subtle tension, fantasy-lite."
        ),
    },
    {
        "scene_id": 3,
        "scene_title": "Promise in the Rain",
        "scene_full_text": (
            "A choice: save face or save someone. Astra chooses the harder good."
        ),
        "illustration_prompt": (
            "Rainy street at night, hero offering a cloak to someone in need, "
            "reflective puddles, hopeful tone."
        ),
    },
]

FIXTURE_COVER_PROMPT = (
    "A premium illustrated book cover: Astra Vale before a whispering forest gate, "
    "twilight palette, elegant typography space."
)


def make_part1_fixture() -> dict[str, Any]:
    hero = {
        "hero_name": "Astra Vale",
        "hero_description": "A brave heart with a clever grin.",
        "traits": ["curious", "steadfast", "quick-witted"],
        "flaw": "overcommits to helping",
        "goal": "protect a small town's secret",
    }
    hero["character_details"] = character_details_from_hero(hero)
    return create_empty_story_state({
        "story_data": {"story_title": "Fixture: Part 1 (Hero)"},
        "story_content": {"CharacterBlock": hero},
    })


def make_part2_fixture() -> dict[str, Any]:
    story_state = make_part1_fixture()
    story_state["story_data"]["story_title"] = "Fixture: Part 2 (Story)"
    content = story_state["story_content"]
    content["SceneJSON_array"] = [
        {**scene, "scene_status": "pending_illustration", "illustration_url": ""}
        for scene in FIXTURE_SCENES
    ]
    content["Cover"] = {"cover_image_prompt": FIXTURE_COVER_PROMPT}
    return story_state


def make_final_fixture() -> dict[str, Any]:
    story_state = make_part2_fixture()
    story_state["story_data"]["story_title"] = "Fixture: Final (Bound)"
    content = story_state["story_content"]
    for number, scene in enumerate(content["SceneJSON_array"], start=1):
        scene["scene_status"] = "illustrated"
        scene["illustration_url"] = f"https://example.com/fixture/scene-{number}.jpg"
    content["Cover"]["cover_image_url"] = "https://example.com/fixture/cover.jpg"
    content["AssetsManifest"] = build_assets_manifest(story_state)
    return story_state


FIXTURE_BUILDERS: dict[str, Callable[[], dict[str, Any]]] = {
    "Part1": make_part1_fixture,
    "Part2": make_part2_fixture,
    "Final": make_final_fixture,
}
