"""Text and image generation endpoints. Backend failures become 502."""

from fastapi import APIRouter, Depends, HTTPException

from storysmith.generation import GenerationError, ImageGenerator, TextGenerator
from storysmith.illustration import illustrate_story
from storysmith.models import ItemProgress
from storysmith.stages import (
    forge_hero_reply,
    generate_blueprint,
    suggest_hero_names,
    weave_scene_reply,
)
from storysmith.storage import ProjectStore

from .deps import get_image_generator, get_projects, get_text_generator, project_story_state
from .models import GenerateImageBody, GenerateNamesBody, MessageBody

router = APIRouter()


@router.post("/generate/image")
async def generate_image(
    body: GenerateImageBody, image: ImageGenerator = Depends(get_image_generator)
):
    """Generate one image from a prompt. Returns its URL."""
    try:
        url = await image(body.prompt)
    except GenerationError as e:
        raise HTTPException(502, str(e))
    return {"url": url}


@router.post("/generate/names")
async def generate_names(
    body: GenerateNamesBody, text: TextGenerator = Depends(get_text_generator)
):
    """Suggest hero names."""
    try:
        names = await suggest_hero_names(text, body.gender, body.count)
    except GenerationError as e:
        raise HTTPException(502, str(e))
    return {"names": names}


@router.post("/projects/{project_id}/generate/hero")
async def forge_hero(
    project_id: str,
    body: MessageBody,
    story_state: dict = Depends(project_story_state),
    projects: ProjectStore = Depends(get_projects),
    text: TextGenerator = Depends(get_text_generator),
):
    """One turn of the hero-forging conversation."""
    try:
        reply = await forge_hero_reply(text, story_state, body.message)
    except GenerationError as e:
        raise HTTPException(502, str(e))
    projects.save_story_state(project_id, story_state)
    return {"reply": reply}


@router.post("/projects/{project_id}/generate/blueprint")
async def blueprint(
    project_id: str,
    story_state: dict = Depends(project_story_state),
    projects: ProjectStore = Depends(get_projects),
    text: TextGenerator = Depends(get_text_generator),
):
    """Ask the story service for a blueprint and store it."""
    try:
        block = await generate_blueprint(text, story_state)
    except GenerationError as e:
        raise HTTPException(502, str(e))
    projects.save_story_state(project_id, story_state)
    return block


@router.post("/projects/{project_id}/generate/scene")
async def weave_scene(
    project_id: str,
    body: MessageBody,
    story_state: dict = Depends(project_story_state),
    projects: ProjectStore = Depends(get_projects),
    text: TextGenerator = Depends(get_text_generator),
):
    """One turn of the scene-weaving conversation."""
    try:
        reply = await weave_scene_reply(text, story_state, body.message)
    except GenerationError as e:
        raise HTTPException(502, str(e))
    projects.save_story_state(project_id, story_state)
    return {"reply": reply}


@router.post("/projects/{project_id}/illustrate")
async def illustrate(
    project_id: str,
    retry_failed_only: bool = False,
    story_state: dict = Depends(project_story_state),
    projects: ProjectStore = Depends(get_projects),
    image: ImageGenerator = Depends(get_image_generator),
):
    """Illustrate every scene and the cover that lack an image.

    With retry_failed_only, only the items that failed last time are retried.
    Per-item failures are reported in the progress map, not as an HTTP error.
    """
    previous = {
        key: ItemProgress.model_validate(item)
        for key, item in projects.get_illustration_progress(project_id).items()
    }
    progress = await illustrate_story(
        story_state, image, progress=previous, retry_failed_only=retry_failed_only
    )
    dumped = {key: item.model_dump() for key, item in progress.items()}
    projects.save_illustration_progress(project_id, dumped)
    projects.save_story_state(project_id, story_state)
    return {"progress": dumped, "story_state": story_state}
