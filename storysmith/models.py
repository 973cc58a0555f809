"""Core types shared by the bundle pipeline, stage flow, and API.

StoryStates themselves stay plain dicts; these pydantic models cover the
records that cross a boundary (API bodies, pipeline results, batch progress).
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

BundleType = Literal["Part1", "Part2", "Final"]

SceneStatus = Literal["draft", "pending_illustration", "illustrated", "approved"]

ItemStatus = Literal["pending", "running", "done", "failed"]


class Scene(BaseModel):
    """One entry of SceneJSON_array. Unknown keys are kept."""

    model_config = ConfigDict(extra="allow")

    scene_id: int | str
    scene_title: str = ""
    scene_status: SceneStatus = "draft"
    scene_full_text: str = ""
    illustration_prompt: str | None = None
    illustration_url: str | None = None
    continuity_notes: str | None = None
    hotspots: list[dict] = Field(default_factory=list)


class CharacterBlock(BaseModel):
    """The forged hero."""

    model_config = ConfigDict(extra="allow")

    hero_name: str
    hero_description: str | None = None
    hero_image_url: str | None = None
    hero_image_prompt: str | None = None
    traits: Any = None


class Cover(BaseModel):
    model_config = ConfigDict(extra="allow")

    cover_image_prompt: str | None = None
    cover_image_url: str | None = None
    cover_title: str | None = None
    author_attribution: str | None = None
    dedication: str | None = None


class AssetsManifest(BaseModel):
    """Denormalized list of every generated media URL."""

    hero_image: str | None = None
    cover_image: str | None = None
    scene_images: list[str] = Field(default_factory=list)


class ValidationResult(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)


class ExportResult(BaseModel):
    """A bundle ready to hand to the user as a download."""

    filename: str
    mime: str
    json_string: str
    object: dict[str, Any]


class ImportResult(BaseModel):
    success: bool
    story_state: dict[str, Any] | None = None
    errors: list[str] = Field(default_factory=list)


class ItemProgress(BaseModel):
    """Progress of one illustration job (a scene or the cover)."""

    key: str  # "scene:<scene_id>" | "cover"
    status: ItemStatus = "pending"
    url: str | None = None
    error: str | None = None
