"""FastAPI API endpoints under /api.

Endpoint groups: health + settings, projects (CRUD, StoryState, active
project), stage flow (hero, blueprint, scenes, cover, finalize, summaries),
bundles (export, import, validate), generation (images, names, blueprint,
scene weaving, batch illustration), viewer preferences, and the dev
fixture simulator. Project resources are nested under /api/projects/{project_id}/.

Stores are read from app.state (see storysmith.app.create_app).
"""

from fastapi import APIRouter

from .bundles import router as bundles_router
from .dev import router as dev_router
from .generation import router as generation_router
from .projects import router as projects_router
from .settings import router as settings_router
from .stages import router as stages_router
from .viewer import router as viewer_router

router = APIRouter()
router.include_router(settings_router)
router.include_router(projects_router)
router.include_router(stages_router)
router.include_router(bundles_router)
router.include_router(generation_router)
router.include_router(viewer_router)
router.include_router(dev_router)
