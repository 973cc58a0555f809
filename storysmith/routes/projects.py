"""Project CRUD, StoryState read/replace, and the active project."""

from fastapi import APIRouter, Depends, HTTPException

from storysmith.bundles import INVALID_STORY_STATE
from storysmith.storage import ProjectStore
from storysmith.story_state import normalize

from .deps import get_projects, project_story_state
from .models import ActiveProjectBody, CreateProject, UpdateProject

router = APIRouter()


@router.get("/projects")
async def list_projects(projects: ProjectStore = Depends(get_projects)):
    """List all projects, most recently updated first."""
    return projects.list_projects()


@router.post("/projects")
async def create_project(body: CreateProject, projects: ProjectStore = Depends(get_projects)):
    """Create a project with an empty StoryState."""
    return projects.create_project(body.title, body.visual_style)


@router.get("/projects/{project_id}")
async def get_project(project_id: str, projects: ProjectStore = Depends(get_projects)):
    project = projects.get_project(project_id)
    if not project:
        raise HTTPException(404, "Project not found")
    return project


@router.patch("/projects/{project_id}")
async def update_project(
    project_id: str, body: UpdateProject, projects: ProjectStore = Depends(get_projects)
):
    """Rename a project."""
    updated = projects.update_project(project_id, body.model_dump(exclude_none=True))
    if not updated:
        raise HTTPException(404, "Project not found")
    return updated


@router.delete("/projects/{project_id}")
async def delete_project(project_id: str, projects: ProjectStore = Depends(get_projects)):
    """Delete a project and its StoryState."""
    if not projects.delete_project(project_id):
        raise HTTPException(404, "Project not found")
    return {"ok": True}


@router.get("/projects/{project_id}/story-state")
async def get_story_state(story_state: dict = Depends(project_story_state)):
    return story_state


@router.put("/projects/{project_id}/story-state")
async def replace_story_state(
    project_id: str, body: dict, projects: ProjectStore = Depends(get_projects)
):
    """Replace the StoryState. Legacy flat books are converted first."""
    if projects.get_project(project_id) is None:
        raise HTTPException(404, "Project not found")
    result = normalize(body)
    if result.gave_up:
        raise HTTPException(422, {"errors": [INVALID_STORY_STATE]})
    return projects.save_story_state(project_id, result.story_state)


@router.get("/active-project")
async def get_active_project(projects: ProjectStore = Depends(get_projects)):
    return {"project_id": projects.get_active_project_id()}


@router.put("/active-project")
async def set_active_project(
    body: ActiveProjectBody, projects: ProjectStore = Depends(get_projects)
):
    if projects.get_project(body.project_id) is None:
        raise HTTPException(404, "Project not found")
    projects.set_active_project_id(body.project_id)
    return {"project_id": body.project_id}
