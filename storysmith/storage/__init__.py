"""File-based JSON storage for projects, settings, and viewer preferences.

Data layout:
  data/
    projects/<id>.json       Project metadata (id, title, createdAt, updatedAt)
    story-states/<id>.json   The project's StoryState
    settings.json            Key-value store: app config, active project id,
                             per-book viewer preferences

Nothing here is a module-level singleton: build a JsonFileStore and a
ProjectStore for a data directory (open_storage) and pass them along.

Config: get_config(kv) returns defaults merged with stored values.
update_config(kv, fields) merges api_keys provider-by-provider and
overwrites scalars. Legacy bare "openai_key"/"google_key" entries are
folded into api_keys on read.
"""

from pathlib import Path

from .config import (  # noqa: F401
    get_config,
    public_config,
    update_config,
)
from .kv import (  # noqa: F401
    JsonFileStore,
    KeyValueStore,
    MemoryStore,
)
from .projects import (  # noqa: F401
    ACTIVE_PROJECT_KEY,
    ProjectStore,
)
from .viewer import (  # noqa: F401
    add_bookmark,
    load_viewer_state,
    remove_bookmark,
    reset_viewer_state,
    set_flag,
    set_viewer_story_state,
    update_viewer_session,
)


def open_storage(data_dir: Path) -> tuple[JsonFileStore, ProjectStore]:
    """Create the data directory and return (kv, projects) rooted in it."""
    data_dir.mkdir(parents=True, exist_ok=True)
    kv = JsonFileStore(data_dir / "settings.json")
    return kv, ProjectStore(data_dir, kv)
