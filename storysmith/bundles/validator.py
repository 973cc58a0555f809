"""Stage completeness checks for StoryStates and bundle envelopes.

Requirements are cumulative:
  Part1  CharacterBlock with hero_name
  Part2  Part1 + at least one scene, illustration_prompt on every scene,
         Cover.cover_image_prompt
  Final  Part2 + illustration_url on every scene, Cover.cover_image_url,
         AssetsManifest

Every violation is collected; nothing short-circuits inside a stage check.
The same check runs with two message catalogs: IMPORT_MESSAGES (shown when
a user uploads a bundle) and EXPORT_MESSAGES (raised by the exporter).

None of these functions raise, whatever they are given.
"""

from typing import Any

from storysmith.models import ValidationResult

VALID_BUNDLE_TYPES = ("Part1", "Part2", "Final")

NOT_JSON = "Invalid file format. Please upload a .json file."
MISSING_BUNDLE_TYPE = "This doesn't appear to be a StorySmith bundle."
MISSING_STORY_STATE = "This bundle is missing the StoryState data."
INVALID_STORY_STATE = "The StoryState in this bundle is invalid or malformed."

IMPORT_MESSAGES: dict[str, str] = {
    "missing_character_block": "This bundle is missing hero data. Please complete Act I first.",
    "missing_hero_name": "This bundle is missing the hero name. Please complete Act I first.",
    "missing_scenes": "This bundle has no scenes. Please complete Act II first.",
    "missing_scene_prompt": "Scene {num}{ref} is missing an illustration prompt.",
    "missing_scene_url": "Scene {num}{ref} is missing an illustration URL.",
    "missing_cover_prompt": "This bundle is missing a cover image prompt.",
    "missing_cover_url": "This bundle is missing a cover image URL. Please generate the cover image first.",
    "missing_assets_manifest": "This bundle is missing the assets manifest. Please complete all image generation first.",
    "scene_ref": " ({scene_id})",
    "scene_ref_unknown": "",
}

EXPORT_MESSAGES: dict[str, str] = {
    "missing_character_block": "Missing CharacterBlock: Hero data is required for {stage} export.",
    "missing_hero_name": "Missing hero_name in CharacterBlock: Hero must have a name.",
    "missing_scenes": "Missing scenes: {stage} export requires at least one scene in SceneJSON_array.",
    "missing_scene_prompt": "Scene {num}{ref} is missing an illustration_prompt.",
    "missing_scene_url": "Scene {num}{ref} is missing an illustration_url.",
    "missing_cover_prompt": "Missing cover_image_prompt: Cover must have an illustration prompt for {stage} export.",
    "missing_cover_url": "Missing cover_image_url: Cover image must be generated for {stage} export.",
    "missing_assets_manifest": "Missing AssetsManifest: {stage} export requires a complete assets manifest.",
    "scene_ref": " ({scene_id})",
    "scene_ref_unknown": " (unknown)",
}


def wrong_bundle_type(actual: str, expected: str) -> str:
    return f"This is a {actual} bundle. This step requires a {expected} bundle."


def unknown_bundle_type(bundle_type: Any) -> str:
    return (
        f'Unknown bundle type: "{bundle_type}". '
        f"Expected one of: {', '.join(VALID_BUNDLE_TYPES)}."
    )


def _scene_ref(scene: dict[str, Any], messages: dict[str, str]) -> str:
    scene_id = scene.get("scene_id")
    if scene_id is None or scene_id == "":
        return messages["scene_ref_unknown"]
    return messages["scene_ref"].format(scene_id=scene_id)


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def stage_errors(
    story_state: Any, stage: str, messages: dict[str, str] = IMPORT_MESSAGES
) -> list[str]:
    """List every unmet requirement of `stage` (an entry of VALID_BUNDLE_TYPES)."""
    errors: list[str] = []
    content = _as_dict(_as_dict(story_state).get("story_content"))

    def msg(key: str, **kwargs: Any) -> str:
        return messages[key].format(stage=stage, **kwargs)

    hero = content.get("CharacterBlock")
    if not hero:
        errors.append(msg("missing_character_block"))
    elif not _as_dict(hero).get("hero_name"):
        errors.append(msg("missing_hero_name"))

    if stage == "Part1":
        return errors
    final = stage == "Final"

    scenes = content.get("SceneJSON_array")
    if not isinstance(scenes, list) or not scenes:
        errors.append(msg("missing_scenes"))
    else:
        for num, raw in enumerate(scenes, start=1):
            scene = _as_dict(raw)
            ref = _scene_ref(scene, messages)
            if not scene.get("illustration_prompt"):
                errors.append(msg("missing_scene_prompt", num=num, ref=ref))
            if final and not scene.get("illustration_url"):
                errors.append(msg("missing_scene_url", num=num, ref=ref))

    cover = _as_dict(content.get("Cover"))
    if not cover.get("cover_image_prompt"):
        errors.append(msg("missing_cover_prompt"))
    if final:
        if not cover.get("cover_image_url"):
            errors.append(msg("missing_cover_url"))
        if not content.get("AssetsManifest"):
            errors.append(msg("missing_assets_manifest"))

    return errors


def validate_story_state(
    story_state: Any, stage: str, messages: dict[str, str] = IMPORT_MESSAGES
) -> ValidationResult:
    if stage not in VALID_BUNDLE_TYPES:
        return ValidationResult(valid=False, errors=[f'Unknown expected bundle type: "{stage}".'])
    errors = stage_errors(story_state, stage, messages)
    return ValidationResult(valid=not errors, errors=errors)


def validate_part1_bundle(story_state: Any) -> ValidationResult:
    return validate_story_state(story_state, "Part1")


def validate_part2_bundle(story_state: Any) -> ValidationResult:
    return validate_story_state(story_state, "Part2")


def validate_final_bundle(story_state: Any) -> ValidationResult:
    return validate_story_state(story_state, "Final")


def validate_bundle_envelope(bundle: Any) -> ValidationResult:
    """Check bundleType and StoryState presence on a parsed bundle."""
    if not isinstance(bundle, dict):
        return ValidationResult(valid=False, errors=[NOT_JSON])

    errors: list[str] = []
    bundle_type = bundle.get("bundleType")
    if not bundle_type:
        errors.append(MISSING_BUNDLE_TYPE)
    elif bundle_type not in VALID_BUNDLE_TYPES:
        errors.append(unknown_bundle_type(bundle_type))

    story_state = bundle.get("StoryState")
    if not story_state:
        errors.append(MISSING_STORY_STATE)
    elif not isinstance(story_state, dict):
        errors.append(INVALID_STORY_STATE)

    return ValidationResult(valid=not errors, errors=errors)


def validate_bundle(bundle: Any, expected: str) -> ValidationResult:
    """Envelope check, then type match, then the expected stage's content check.

    A type mismatch is reported alone so the user is told which bundle to
    upload instead of a list of unrelated missing fields.
    """
    envelope = validate_bundle_envelope(bundle)
    if not envelope.valid:
        return envelope

    if bundle["bundleType"] != expected:
        return ValidationResult(
            valid=False, errors=[wrong_bundle_type(bundle["bundleType"], expected)]
        )

    return validate_story_state(bundle["StoryState"], expected)
