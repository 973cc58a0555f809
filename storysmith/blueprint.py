"""Read-only summaries of a StoryState for the stage screens."""

from typing import Any


def blueprint_from_story_state(story_state: dict[str, Any] | None) -> dict[str, Any]:
    """Condense a StoryState into {premise, scenes: [{title, beat}], theme}.

    The premise comes from the blueprint summary sections when present,
    otherwise it is assembled from the hero, scene count and title. Each
    scene's beat is the first sentence of its text.
    """
    if not story_state:
        return {"premise": "", "scenes": [], "theme": None}

    content = story_state.get("story_content") or {}
    story_data = story_state.get("story_data") or {}
    summary = (content.get("StoryBlueprintBlock") or {}).get("summary_sections") or {}
    parts = [summary.get(k) for k in ("beginning", "middle", "end") if summary.get(k)]

    hero = content.get("CharacterBlock") or {}
    hero_name = (
        hero.get("hero_name")
        or (hero.get("character_details") or {}).get("name")
        or "The hero"
    )
    title = story_data.get("story_title") or "this tale"
    scene_list = content.get("SceneJSON_array") or []

    if parts:
        premise = " ".join(parts)
    elif scene_list:
        premise = f"{hero_name} faces a {len(scene_list)}-scene journey in {title}."
    else:
        premise = f"{hero_name} steps into {title}."

    scenes = []
    for index, scene in enumerate(scene_list, start=1):
        first = (scene.get("scene_full_text") or "").split(". ")[0].strip()
        if first:
            beat = first if first.endswith(".") else f"{first}."
        else:
            beat = "Scene beat not specified."
        scenes.append({"title": scene.get("scene_title") or f"Scene {index}", "beat": beat})

    return {"premise": premise, "scenes": scenes, "theme": story_data.get("thematic_tone") or None}


def production_checklist(story_state: dict[str, Any]) -> list[dict[str, Any]]:
    """Progress markers for the Bind screen, in display order."""
    content = story_state.get("story_content") or {}
    scenes = content.get("SceneJSON_array") or []
    cover = content.get("Cover") or {}

    illustrated = sum(1 for s in scenes if s.get("illustration_url"))
    prompts_ready = (
        bool(scenes)
        and all(s.get("illustration_prompt") for s in scenes)
        and bool(cover.get("cover_image_prompt"))
    )
    illustrations_ready = (
        bool(scenes) and illustrated == len(scenes) and bool(cover.get("cover_image_url"))
    )

    return [
        {"label": "Hero", "ready": bool(content.get("CharacterBlock"))},
        {"label": "Story Scenes", "ready": bool(scenes)},
        {"label": "Illustration Prompts", "ready": prompts_ready},
        {"label": f"Illustrations ({illustrated}/{len(scenes)})", "ready": illustrations_ready},
        {"label": "Export Ready", "ready": illustrations_ready and bool(content.get("AssetsManifest"))},
    ]
