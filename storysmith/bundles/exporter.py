"""Bundle export: StoryState → versioned JSON envelope for a stage handoff."""

import json
from datetime import datetime, timezone
from typing import Any

from storysmith.models import ExportResult
from storysmith.story_state import is_valid_story_state, normalize

from .validator import EXPORT_MESSAGES, VALID_BUNDLE_TYPES, stage_errors

BUNDLE_VERSION = "1.0"
MIME_TYPE = "application/json"

BUNDLE_FILENAMES: dict[str, str] = {
    "Part1": "MyHeroAssetBundle_Part1.json",
    "Part2": "MyStoryAssetBundle_Part2.json",
    "Final": "MyStoryAssetBundle_Final.json",
}


class BundleExportError(ValueError):
    """Raised when a StoryState cannot be exported for the requested stage.

    `errors` holds the individual validation messages (empty for bad
    bundle types and unusable input).
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


def iso_timestamp() -> str:
    """UTC ISO-8601 with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def export_bundle(story_state: Any, bundle_type: str) -> ExportResult:
    """Validate `story_state` for `bundle_type` and serialize it as a bundle.

    Raises BundleExportError for an unknown bundle type, input that cannot be
    normalized to a StoryState, or unmet stage requirements. The message of
    the last case lists every problem, one per "- " line.
    """
    if bundle_type not in BUNDLE_FILENAMES:
        raise BundleExportError(
            f'Invalid bundleType: "{bundle_type}". '
            f"Must be one of: {', '.join(VALID_BUNDLE_TYPES)}"
        )

    result = normalize(story_state)
    if result.gave_up or not is_valid_story_state(result.story_state):
        raise BundleExportError(
            "Invalid storyState after normalization: The provided data could not be "
            "converted to a valid StoryState. Ensure the object has the required "
            "structure (version, metadata, story_data, story_content)."
        )
    normalized = result.story_state

    errors = stage_errors(normalized, bundle_type, EXPORT_MESSAGES)
    if errors:
        raise BundleExportError(
            f"Validation failed for {bundle_type} export:\n- " + "\n- ".join(errors),
            errors,
        )

    envelope = {
        "bundleType": bundle_type,
        "bundleVersion": BUNDLE_VERSION,
        "exportedAt": iso_timestamp(),
        "StoryState": normalized,
    }
    try:
        json_string = json.dumps(envelope, indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise BundleExportError(f"StoryState could not be serialized to JSON: {e}") from e

    return ExportResult(
        filename=BUNDLE_FILENAMES[bundle_type],
        mime=MIME_TYPE,
        json_string=json_string,
        object=envelope,
    )
