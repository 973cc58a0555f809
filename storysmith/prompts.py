"""Handlebars prompt templates for the generation services."""

import json
from collections.abc import Callable
from typing import Any

import pybars

DEFAULT_VISUAL_STYLE = "3D animated Film"

SCENE_ILLUSTRATION_TEMPLATE = (
    'An illustration for "{{{scene.scene_title}}}" featuring {{{hero.name}}}. '
    "Style: {{{style}}}"
)

COVER_TEMPLATE = (
    "A premium illustrated book cover: {{{hero.name}}} in \"{{{title}}}\", "
    "{{{style}}}{{#if tone}}, {{{tone}}} mood{{/if}}, elegant typography space."
)

BLUEPRINT_TEMPLATE = """You are The Architect of Arcs. Plan a children's picture book for this hero.

Hero name: {{{hero.name}}}
{{#if hero.description}}Description: {{{hero.description}}}
{{/if}}{{#if traits}}Traits: {{{traits}}}
{{/if}}Story title: {{{title}}}
Visual style: {{{style}}}

Reply with JSON only, shaped as:
{"StoryBlueprintBlock": {"structure": {"numberOfScenes": <3-8>},
 "summary_sections": {"beginning": "...", "middle": "...", "end": "..."}}}"""

SCENE_WEAVER_TEMPLATE = """Current story state:
{{{state_json}}}

Guest message:
"{{{message}}}"
"""

HERO_NAMES_TEMPLATE = (
    "Generate a list of {{count}} heroic fantasy names for a {{{gender}}} child. "
    "The names should be short and easy to pronounce. Return the list as a simple "
    "JSON array of strings. Do not include any other text."
)


_compiler = pybars.Compiler()
_cache: dict[str, Callable] = {}


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


def render_prompt(template_str: str, context: dict[str, Any]) -> str:
    """Compile and render a Handlebars template with the given context.

    Templates are cached by source string to avoid recompilation.
    """
    try:
        compiled = _cache.get(template_str)
        if compiled is None:
            compiled = _compiler.compile(template_str)
            _cache[template_str] = compiled
        return str(compiled(context))
    except Exception as e:
        raise PromptError(f"Template error: {e}") from e


def hero_details(story_state: dict[str, Any]) -> dict[str, Any]:
    """The hero as later stages read it: character_details, else top-level fields."""
    block = (story_state.get("story_content") or {}).get("CharacterBlock") or {}
    details = dict(block.get("character_details") or {})
    details.setdefault("name", block.get("hero_name"))
    details.setdefault("description", block.get("hero_description"))
    details.setdefault("traits", block.get("traits"))
    if not details.get("name"):
        details["name"] = "the brave hero"
    return details


def _format_traits(traits: Any) -> str:
    if not traits:
        return ""
    if isinstance(traits, str):
        return traits
    if isinstance(traits, list):
        return ", ".join(str(t) for t in traits if t)
    if isinstance(traits, dict):
        return ", ".join(f"{k}: {v}" for k, v in traits.items())
    return str(traits)


def build_context(story_state: dict[str, Any], **extra: Any) -> dict[str, Any]:
    """Template variables drawn from a StoryState, plus any extras."""
    story_data = story_state.get("story_data") or {}
    hero = hero_details(story_state)
    ctx: dict[str, Any] = {
        "title": story_data.get("story_title") or "",
        "tone": story_data.get("thematic_tone") or "",
        "style": story_data.get("visual_style") or DEFAULT_VISUAL_STYLE,
        "hero": hero,
        "traits": _format_traits(hero.get("traits")),
    }
    ctx.update(extra)
    return ctx


def scene_illustration_prompt(story_state: dict[str, Any], scene: dict[str, Any]) -> str:
    return render_prompt(SCENE_ILLUSTRATION_TEMPLATE, build_context(story_state, scene=scene))


def cover_prompt(story_state: dict[str, Any]) -> str:
    return render_prompt(COVER_TEMPLATE, build_context(story_state))


def blueprint_prompt(story_state: dict[str, Any]) -> str:
    return render_prompt(BLUEPRINT_TEMPLATE, build_context(story_state))


def scene_weaver_prompt(story_state: dict[str, Any], message: str) -> str:
    state_json = json.dumps(story_state, indent=2, ensure_ascii=False)
    return render_prompt(
        SCENE_WEAVER_TEMPLATE, build_context(story_state, state_json=state_json, message=message)
    )


def hero_names_prompt(gender: str, count: int = 5) -> str:
    return render_prompt(HERO_NAMES_TEMPLATE, {"gender": gender, "count": count})
