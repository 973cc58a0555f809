"""Forge / Spin / Bind edits on a project's StoryState, plus read-only summaries."""

from fastapi import APIRouter, Depends

from storysmith.blueprint import blueprint_from_story_state, production_checklist
from storysmith.models import CharacterBlock, Scene
from storysmith.stages import finalize_binding, set_blueprint, set_cover, set_hero, upsert_scene
from storysmith.storage import ProjectStore
from storysmith.story_state import to_viewer_book

from .deps import get_projects, project_story_state
from .models import CoverUpdate, FinalizeBody

router = APIRouter()


@router.put("/projects/{project_id}/hero")
async def put_hero(
    project_id: str,
    body: CharacterBlock,
    story_state: dict = Depends(project_story_state),
    projects: ProjectStore = Depends(get_projects),
):
    """Set the hero (CharacterBlock)."""
    hero = set_hero(story_state, body)
    projects.save_story_state(project_id, story_state)
    return hero


@router.put("/projects/{project_id}/blueprint")
async def put_blueprint(
    project_id: str,
    body: dict,
    story_state: dict = Depends(project_story_state),
    projects: ProjectStore = Depends(get_projects),
):
    blueprint = set_blueprint(story_state, body)
    projects.save_story_state(project_id, story_state)
    return blueprint


@router.put("/projects/{project_id}/scenes")
async def put_scene(
    project_id: str,
    body: Scene,
    story_state: dict = Depends(project_story_state),
    projects: ProjectStore = Depends(get_projects),
):
    """Add a scene, or replace the one with the same scene_id."""
    scene = upsert_scene(story_state, body)
    projects.save_story_state(project_id, story_state)
    return scene


@router.patch("/projects/{project_id}/cover")
async def patch_cover(
    project_id: str,
    body: CoverUpdate,
    story_state: dict = Depends(project_story_state),
    projects: ProjectStore = Depends(get_projects),
):
    """Merge fields into the cover (partial update)."""
    cover = set_cover(story_state, **body.model_dump(exclude_none=True))
    projects.save_story_state(project_id, story_state)
    return cover


@router.post("/projects/{project_id}/finalize")
async def finalize(
    project_id: str,
    body: FinalizeBody,
    story_state: dict = Depends(project_story_state),
    projects: ProjectStore = Depends(get_projects),
):
    """Record author and dedication on the cover."""
    cover = finalize_binding(story_state, body.author, body.dedication)
    projects.save_story_state(project_id, story_state)
    return cover


@router.get("/projects/{project_id}/checklist")
async def checklist(story_state: dict = Depends(project_story_state)):
    return production_checklist(story_state)


@router.get("/projects/{project_id}/summary")
async def summary(story_state: dict = Depends(project_story_state)):
    """Premise, scene beats and theme."""
    return blueprint_from_story_state(story_state)


@router.get("/projects/{project_id}/viewer-book")
async def viewer_book(story_state: dict = Depends(project_story_state)):
    """The StoryState flattened into viewer pages."""
    return to_viewer_book(story_state)
