"""Bundle import: JSON text → migrated, validated, normalized StoryState.

Steps (each stops the import on failure):
  1. parse        empty text and syntax errors both → NOT_JSON
  2. migrate      legacy shapes rewritten to the current envelope (never fails)
  3. validate     envelope, bundleType vs expected stage, stage content,
                  checked against the bundle as written, before any repair
  4. normalize    StoryState payload → canonical StoryState
  5. re-check     structural validity of the result → INVALID_STORY_STATE

Public entry points never raise; every outcome is an ImportResult.
"""

import asyncio
import copy
import json
import logging
import os
from pathlib import Path
from typing import Any

from storysmith.models import ImportResult
from storysmith.story_state import (
    character_details_from_hero,
    is_valid_story_state,
    normalize,
    normalize_to_story_state,
)

from .exporter import iso_timestamp
from .validator import INVALID_STORY_STATE, NOT_JSON, validate_bundle

logger = logging.getLogger(__name__)

CURRENT_BUNDLE_VERSION = "1.0"
LEGACY_BUNDLE_VERSION = "0.9"


# ── Parsing ──────────────────────────────────────────────


def parse_json_string(text: str | None) -> tuple[Any, str | None]:
    """Return (data, None) or (None, user-facing error)."""
    if not text or not text.strip():
        return None, NOT_JSON
    try:
        return json.loads(text), None
    except json.JSONDecodeError:
        return None, NOT_JSON


async def read_text(file: Any) -> str:
    """Read an uploaded file (anything with an async read()) or a path as UTF-8."""
    if isinstance(file, (str, os.PathLike)):
        return await asyncio.to_thread(Path(file).read_text, encoding="utf-8")
    data = await file.read()
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    return data


async def parse_json_file(file: Any) -> tuple[Any, str | None]:
    try:
        text = await read_text(file)
    except (OSError, UnicodeDecodeError) as e:
        return None, f"Failed to read file: {e}"
    return parse_json_string(text)


# ── Legacy migration ─────────────────────────────────────


def _upgrade_0_9_to_1_0(bundle: dict[str, Any]) -> None:
    """v0.9 → v1.0. The two versions share a layout; only the stamp changes."""
    bundle["bundleVersion"] = CURRENT_BUNDLE_VERSION


def migrate_legacy_bundle(bundle: Any) -> Any:
    """Rewrite older bundle shapes into the current envelope.

    Handles:
      - missing bundleVersion (assumed 0.9)
      - "SessionState" instead of "StoryState"
      - a bare flat viewer book (root-level pages) → wrapped in an envelope
      - CharacterBlock without character_details → synthesized from hero fields
      - bundleVersion 0.9 → 1.0

    Works on a copy; non-dict input is returned unchanged.
    """
    if not isinstance(bundle, dict):
        return bundle

    migrated = copy.deepcopy(bundle)
    actions: list[str] = []

    if not migrated.get("bundleVersion"):
        migrated["bundleVersion"] = LEGACY_BUNDLE_VERSION
        actions.append("Added missing bundleVersion (assumed v0.9)")

    if migrated.get("SessionState") and not migrated.get("StoryState"):
        migrated["StoryState"] = migrated.pop("SessionState")
        actions.append("Migrated SessionState alias to StoryState")

    if isinstance(migrated.get("pages"), list) and not migrated.get("StoryState"):
        migrated = {
            "bundleType": migrated.get("bundleType") or "Part1",
            "bundleVersion": CURRENT_BUNDLE_VERSION,
            "exportedAt": iso_timestamp(),
            "StoryState": normalize_to_story_state(migrated),
        }
        actions.append("Migrated flat schema to canonical bundle envelope")

    story_state = migrated.get("StoryState")
    content = story_state.get("story_content") if isinstance(story_state, dict) else None
    hero = content.get("CharacterBlock") if isinstance(content, dict) else None
    if isinstance(hero, dict) and hero.get("hero_name") and not hero.get("character_details"):
        hero["character_details"] = character_details_from_hero(hero)
        actions.append("Normalized CharacterBlock to include character_details")

    if migrated.get("bundleVersion") == LEGACY_BUNDLE_VERSION:
        _upgrade_0_9_to_1_0(migrated)
        actions.append("Upgraded bundleVersion from v0.9 to v1.0")

    if actions:
        logger.info("Bundle migration applied: %s", "; ".join(actions))
    return migrated


# ── Import ───────────────────────────────────────────────


def _fail(*errors: str) -> ImportResult:
    return ImportResult(success=False, story_state=None, errors=list(errors))


def _import_parsed(data: Any, expected: str) -> ImportResult:
    bundle = migrate_legacy_bundle(data)

    validation = validate_bundle(bundle, expected)
    if not validation.valid:
        return _fail(*validation.errors)

    result = normalize(bundle["StoryState"])
    if result.gave_up or not is_valid_story_state(result.story_state):
        logger.error(
            "StoryState unusable after normalization (outcome=%s, keys=%s)",
            result.outcome,
            sorted(bundle["StoryState"]),
        )
        return _fail(INVALID_STORY_STATE)

    logger.info("Imported %s bundle (%s)", expected, result.outcome)
    return ImportResult(success=True, story_state=result.story_state, errors=[])


def _run(data: Any, expected: str) -> ImportResult:
    try:
        return _import_parsed(data, expected)
    except Exception as e:
        logger.exception("Unexpected error while importing %s bundle", expected)
        return _fail(f"Failed to import bundle: {e}")


def import_bundle_from_string(json_string: str | None, expected: str) -> ImportResult:
    """Import a bundle from JSON text, expecting a `expected` stage bundle."""
    data, error = parse_json_string(json_string)
    if error:
        return _fail(error)
    return _run(data, expected)


async def import_bundle(file: Any, expected: str) -> ImportResult:
    """Import a bundle from an uploaded file or a filesystem path."""
    data, error = await parse_json_file(file)
    if error:
        return _fail(error)
    return _run(data, expected)
