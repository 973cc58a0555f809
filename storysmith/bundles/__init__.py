"""Bundle handoff between the three creation stages.

A bundle is the portable JSON file one stage hands to the next:

  {
    "bundleType": "Part1" | "Part2" | "Final",
    "bundleVersion": "1.0",
    "exportedAt": "<ISO-8601>",
    "StoryState": {...}
  }

  Part1  Forge → Spin   hero only            MyHeroAssetBundle_Part1.json
  Part2  Spin → Bind    scenes + prompts     MyStoryAssetBundle_Part2.json
  Final  Bind → viewer  all illustrations    MyStoryAssetBundle_Final.json

validator  stage completeness + envelope checks (never raise)
exporter   export_bundle() raises BundleExportError on any failure
importer   import_bundle*/migrate_legacy_bundle() never raise

Importers trust bundleType inside the file, never the filename.
"""

from .exporter import (  # noqa: F401
    BUNDLE_FILENAMES,
    BUNDLE_VERSION,
    MIME_TYPE,
    BundleExportError,
    export_bundle,
)
from .importer import (  # noqa: F401
    CURRENT_BUNDLE_VERSION,
    LEGACY_BUNDLE_VERSION,
    import_bundle,
    import_bundle_from_string,
    migrate_legacy_bundle,
    parse_json_file,
    parse_json_string,
)
from .validator import (  # noqa: F401
    EXPORT_MESSAGES,
    IMPORT_MESSAGES,
    INVALID_STORY_STATE,
    MISSING_BUNDLE_TYPE,
    MISSING_STORY_STATE,
    NOT_JSON,
    VALID_BUNDLE_TYPES,
    stage_errors,
    validate_bundle,
    validate_bundle_envelope,
    validate_final_bundle,
    validate_part1_bundle,
    validate_part2_bundle,
    validate_story_state,
    wrong_bundle_type,
)
