"""Shared dependencies: stores from app.state, generation backends, admin gate."""

import os
from typing import Any

from fastapi import Depends, Header, HTTPException, Request

from storysmith.generation import ImageGenerator, OpenAIClient, TextGenerator
from storysmith.storage import KeyValueStore, ProjectStore, get_config

DEFAULT_ADMIN_PASSWORD = "6425"


def get_kv(request: Request) -> KeyValueStore:
    return request.app.state.kv


def get_projects(request: Request) -> ProjectStore:
    return request.app.state.projects


def project_story_state(
    project_id: str, projects: ProjectStore = Depends(get_projects)
) -> dict[str, Any]:
    """The project's StoryState, or 404."""
    story_state = projects.get_story_state(project_id)
    if story_state is None:
        raise HTTPException(404, "Project not found")
    return story_state


def get_generation_client(
    kv: KeyValueStore = Depends(get_kv),
    x_openai_key: str | None = Header(default=None, alias="X-OpenAI-Key"),
) -> OpenAIClient:
    return OpenAIClient.from_config(get_config(kv), api_key=x_openai_key)


def get_text_generator(client: OpenAIClient = Depends(get_generation_client)) -> TextGenerator:
    return client.chat


def get_image_generator(client: OpenAIClient = Depends(get_generation_client)) -> ImageGenerator:
    return client.image


def require_admin(x_admin_password: str | None = Header(default=None, alias="X-Admin-Password")):
    """Shared-secret gate for dev tools. Not an authentication scheme."""
    expected = os.getenv("ADMIN_PASSWORD", DEFAULT_ADMIN_PASSWORD)
    if not x_admin_password or x_admin_password.strip() != expected:
        raise HTTPException(status_code=401, detail="Invalid admin password")
    return True
