"""Dev simulator: create projects pre-filled with stage fixtures."""

from fastapi import APIRouter, Depends, HTTPException

from storysmith.fixtures import FIXTURE_BUILDERS
from storysmith.storage import ProjectStore

from .deps import get_projects, require_admin

router = APIRouter(dependencies=[Depends(require_admin)])


@router.post("/dev/fixtures/{stage}")
async def create_fixture_project(stage: str, projects: ProjectStore = Depends(get_projects)):
    """Create a project whose StoryState is the Part1/Part2/Final fixture."""
    build = FIXTURE_BUILDERS.get(stage)
    if build is None:
        raise HTTPException(404, f"Unknown fixture stage: {stage}")
    project = projects.create_project(f"Fixture: {stage}")
    story_state = projects.save_story_state(project["id"], build())
    return {"project": projects.get_project(project["id"]), "story_state": story_state}
