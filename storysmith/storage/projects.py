"""Project list and per-project StoryState, stored as JSON files.

Directory layout:

    {base}/
      projects/
        {id}.json        ← {id, title, createdAt, updatedAt}
      story-states/
        {id}.json        ← the project's StoryState

The active project id lives in the key-value store, not on disk here.
"""

from __future__ import annotations

import json
import logging
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from storysmith.prompts import DEFAULT_VISUAL_STYLE
from storysmith.story_state import create_empty_story_state, touch

from .kv import KeyValueStore

logger = logging.getLogger(__name__)

ACTIVE_PROJECT_KEY = "storysmith_mvp_active_project_id"
ILLUSTRATION_PROGRESS_PREFIX = "storysmith_illustration_progress_"

_ID_RE = re.compile(r"[A-Za-z0-9_-]+")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProjectStore:
    def __init__(self, base_path: Path, kv: KeyValueStore) -> None:
        self._kv = kv
        self._projects = base_path / "projects"
        self._states = base_path / "story-states"
        self._projects.mkdir(parents=True, exist_ok=True)
        self._states.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Internal path helpers
    # ------------------------------------------------------------------

    def _project_file(self, project_id: str) -> Path | None:
        if not _ID_RE.fullmatch(project_id):
            return None
        return self._projects / f"{project_id}.json"

    def _state_file(self, project_id: str) -> Path | None:
        if not _ID_RE.fullmatch(project_id):
            return None
        return self._states / f"{project_id}.json"

    def _read_json(self, path: Path | None) -> Any:
        if path is None or not path.is_file():
            return None
        return json.loads(path.read_text())

    def _write_json(self, path: Path, data: Any) -> None:
        path.write_text(json.dumps(data, indent=2, ensure_ascii=False))

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def list_projects(self) -> list[dict[str, Any]]:
        """All projects, most recently updated first."""
        projects = [json.loads(p.read_text()) for p in self._projects.glob("*.json")]
        return sorted(projects, key=lambda p: p.get("updatedAt", ""), reverse=True)

    def get_project(self, project_id: str) -> dict[str, Any] | None:
        return self._read_json(self._project_file(project_id))

    def create_project(self, title: str, visual_style: str | None = None) -> dict[str, Any]:
        """Create a project and its initial empty StoryState."""
        now = _now_iso()
        project = {"id": str(uuid.uuid4()), "title": title, "createdAt": now, "updatedAt": now}
        self._write_json(self._projects / f"{project['id']}.json", project)

        story_state = create_empty_story_state({
            "story_data": {"visual_style": visual_style or DEFAULT_VISUAL_STYLE},
        })
        self._write_json(self._states / f"{project['id']}.json", story_state)
        logger.info("Created project %s (%s)", project["id"], title)
        return project

    def update_project(self, project_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
        """Update mutable project fields (title). Returns the updated project."""
        project = self.get_project(project_id)
        if project is None:
            return None
        if "title" in fields:
            project["title"] = fields["title"]
        project["updatedAt"] = _now_iso()
        self._write_json(self._projects / f"{project_id}.json", project)
        return project

    def delete_project(self, project_id: str) -> bool:
        path = self._project_file(project_id)
        if path is None or not path.is_file():
            return False
        path.unlink()
        state_path = self._states / f"{project_id}.json"
        if state_path.is_file():
            state_path.unlink()
        self._kv.delete(ILLUSTRATION_PROGRESS_PREFIX + project_id)
        if self.get_active_project_id() == project_id:
            self.clear_active_project_id()
        logger.info("Deleted project %s", project_id)
        return True

    # ------------------------------------------------------------------
    # StoryState
    # ------------------------------------------------------------------

    def get_story_state(self, project_id: str) -> dict[str, Any] | None:
        return self._read_json(self._state_file(project_id))

    def save_story_state(
        self, project_id: str, story_state: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Persist a StoryState and bump the project's updatedAt. None if no such project."""
        if self.get_project(project_id) is None:
            return None
        touch(story_state)
        self._write_json(self._states / f"{project_id}.json", story_state)
        self.update_project(project_id, {})
        return story_state

    # ------------------------------------------------------------------
    # Active project
    # ------------------------------------------------------------------

    def get_active_project_id(self) -> str | None:
        return self._kv.get(ACTIVE_PROJECT_KEY)

    def set_active_project_id(self, project_id: str) -> None:
        self._kv.put(ACTIVE_PROJECT_KEY, project_id)

    def clear_active_project_id(self) -> None:
        self._kv.delete(ACTIVE_PROJECT_KEY)

    # ------------------------------------------------------------------
    # Illustration progress
    # ------------------------------------------------------------------

    def get_illustration_progress(self, project_id: str) -> dict[str, Any]:
        """Last batch's per-item progress, keyed like storysmith.illustration."""
        return self._kv.get(ILLUSTRATION_PROGRESS_PREFIX + project_id) or {}

    def save_illustration_progress(self, project_id: str, progress: dict[str, Any]) -> None:
        self._kv.put(ILLUSTRATION_PROGRESS_PREFIX + project_id, progress)
