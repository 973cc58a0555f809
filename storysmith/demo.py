"""Create demo projects for development/testing."""

import logging

from storysmith.fixtures import FIXTURE_BUILDERS
from storysmith.storage import ProjectStore

logger = logging.getLogger(__name__)

DEMO_TITLES = {
    "Part1": "Astra Vale (hero forged)",
    "Part2": "Astra Vale and the Whispering Gate (story spun)",
    "Final": "Astra Vale and the Whispering Gate (bound)",
}


def create_demo_data(projects: ProjectStore) -> list[dict]:
    """Wipe existing projects and create one per stage. Returns the new projects."""
    for project in projects.list_projects():
        projects.delete_project(project["id"])

    created = []
    for stage, build in FIXTURE_BUILDERS.items():
        project = projects.create_project(DEMO_TITLES[stage])
        projects.save_story_state(project["id"], build())
        created.append(projects.get_project(project["id"]))

    # The finished book opens first.
    projects.set_active_project_id(created[-1]["id"])
    logger.info("Created %d demo projects", len(created))
    return created
