"""FastMCP server exposing the bundle pipeline as MCP tools.

Tools:
  - validate_bundle(bundle, expected)       check a parsed bundle for a stage
  - export_bundle(story_state, bundle_type) build a bundle; errors are returned, not raised
  - import_bundle(json_string, expected)    parse, migrate, validate and normalize

The tools are stateless: StoryStates travel in and out as JSON.

Usage:
    python -m storysmith.mcp_server
"""

from mcp.server.fastmcp import FastMCP

from storysmith import bundles

mcp = FastMCP("storysmith-bundles")


@mcp.tool()
def validate_bundle(bundle: dict, expected: str) -> dict:
    """Validate a bundle against the expected stage (Part1, Part2, Final)."""
    return bundles.validate_bundle(bundle, expected).model_dump()


@mcp.tool()
def export_bundle(story_state: dict, bundle_type: str) -> dict:
    """Export a StoryState as a bundle. Returns {filename, bundle} or {errors}."""
    try:
        result = bundles.export_bundle(story_state, bundle_type)
    except bundles.BundleExportError as e:
        return {"message": str(e), "errors": e.errors}
    return {"filename": result.filename, "bundle": result.object}


@mcp.tool()
def import_bundle(json_string: str, expected: str) -> dict:
    """Import bundle JSON text. Returns {success, story_state, errors}."""
    return bundles.import_bundle_from_string(json_string, expected).model_dump()


if __name__ == "__main__":
    mcp.run()
