"""Bundle export (download), import (upload) and validation endpoints."""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile

from storysmith.bundles import BundleExportError, export_bundle, import_bundle, validate_bundle
from storysmith.storage import ProjectStore

from .deps import get_projects, project_story_state

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/projects/{project_id}/bundles/{bundle_type}")
async def download_bundle(bundle_type: str, story_state: dict = Depends(project_story_state)):
    """Export the project's StoryState as a Part1/Part2/Final bundle file."""
    try:
        result = export_bundle(story_state, bundle_type)
    except BundleExportError as e:
        raise HTTPException(400, {"message": str(e), "errors": e.errors})
    return Response(
        content=result.json_string,
        media_type=result.mime,
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )


@router.post("/projects/{project_id}/bundles/import")
async def import_into_project(
    project_id: str,
    expected: str = Query(...),
    file: UploadFile = File(...),
    projects: ProjectStore = Depends(get_projects),
):
    """Import a bundle file and replace the project's StoryState with it."""
    if projects.get_project(project_id) is None:
        raise HTTPException(404, "Project not found")
    result = await import_bundle(file, expected)
    if not result.success:
        raise HTTPException(422, {"errors": result.errors})
    projects.save_story_state(project_id, result.story_state)
    logger.info("Imported %s bundle into project %s", expected, project_id)
    return result.model_dump()


@router.post("/bundles/import")
async def import_standalone(expected: str = Query(...), file: UploadFile = File(...)):
    """Import a bundle file without storing it."""
    result = await import_bundle(file, expected)
    if not result.success:
        raise HTTPException(422, {"errors": result.errors})
    return result.model_dump()


@router.post("/bundles/validate")
async def validate(body: dict, expected: str = Query(...)):
    """Check a parsed bundle against the expected stage."""
    return validate_bundle(body, expected).model_dump()
