import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from storysmith.routes import router
from storysmith.storage import open_storage

load_dotenv(Path(__file__).parent.parent / ".env")

DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"

logger = logging.getLogger(__name__)


def create_app(data_dir: Path | None = None) -> FastAPI:
    resolved = data_dir or Path(os.getenv("DATA_DIR", str(DEFAULT_DATA_DIR)))
    kv, projects = open_storage(resolved)

    app = FastAPI(title="StorySmith")
    app.state.kv = kv
    app.state.projects = projects
    app.include_router(router, prefix="/api")
    logger.debug("StorySmith data directory: %s", resolved)
    return app


# Default app instance for uvicorn (uses DATA_DIR env var or default)
app = create_app()
