"""MCP Server for the website generator.

Holds one editing session and provides tools for:
- Generating a site from a description
- Reading and editing the current HTML/CSS
- Undo/redo over manual edits
- Rendering a preview and exporting a zip archive

Supports both STDIO and HTTP transports.

Usage:
    # STDIO (for Claude Desktop, etc.)
    python -m sitegen.mcp_server

    # HTTP (for remote access)
    python -m sitegen.mcp_server --transport http --port 8000

Environment Variables:
    GEMINI_API_KEY: API key for the text and image models (required)
    SITEGEN_STATE_FILE: Where the session is saved between runs
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP

from .cli_output import document_to_dict, format_progress
from .config import load_settings
from .document import GenerationRequest, PipelineProgress
from .errors import SitegenError, classify_error, user_message
from .export import EXPORT_FILENAME
from .session import SiteSession

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
LOGGER = logging.getLogger(__name__)

# Load .env before reading environment variables
load_dotenv()

mcp = FastMCP(
    name="Website Generator",
    instructions="""
    Generates complete single-page websites with AI-written HTML/CSS and
    AI-rendered images, and keeps one editable site in the session.

    1. generate_site: create a new site from a description
    2. get_site / update_site: read or replace the current HTML and CSS
    3. undo / redo: step through manual edits
    4. render_preview: the self-contained HTML document
    5. export_site: write index.html + images/ as a zip archive
    """,
)

_SESSION: Optional[SiteSession] = None


def get_session() -> SiteSession:
    """The process-wide session, restored from disk on first use."""
    global _SESSION
    if _SESSION is None:
        _SESSION = SiteSession(load_settings())
        if _SESSION.restore():
            LOGGER.info("Resumed previously saved site")
    return _SESSION


def _error_payload(exc: BaseException) -> str:
    LOGGER.error("%s: %s", type(exc).__name__, exc)
    return json.dumps(
        {
            "error": user_message(exc),
            "category": classify_error(exc).value,
            "detail": str(exc),
        },
        ensure_ascii=False,
    )


def _state_payload(session: SiteSession, **extra) -> str:
    payload = {
        "has_site": session.has_site,
        "can_undo": session.history.can_undo,
        "can_redo": session.history.can_redo,
        "history_length": len(session.history),
        "history_cursor": session.history.cursor,
    }
    payload.update(extra)
    return json.dumps(payload, indent=2, ensure_ascii=False)


# =============================================================================
# GENERATION
# =============================================================================


@mcp.tool
async def generate_site(
    idea: str,
    page_type: str = "landing page",
    language: str = "",
    sections: Optional[List[str]] = None,
    image_count: int = 3,
):
    """
    Generate a complete single-page website and make it the current site.

    Args:
        idea: Free-text description of the website
        page_type: Page type, e.g. "landing page", "portfolio", "blog"
        language: Target language of the content (default: language of the idea)
        sections: Ordered list of required sections, e.g. ["about", "menu", "contact"]
        image_count: Number of images to generate (default: 3)

    Returns:
        JSON with the document summary and the progress log.
    """
    session = get_session()
    request = GenerationRequest(
        idea=idea,
        page_type=page_type,
        language=language,
        sections=list(sections or []),
        image_count=image_count,
    )
    log: List[str] = []

    def on_progress(progress: PipelineProgress) -> None:
        log.append(format_progress(progress))

    try:
        document = await session.generate(request, progress=on_progress)
    except (SitegenError, ValueError) as exc:
        return _error_payload(exc)

    return _state_payload(session, document=document_to_dict(document), progress=log)


# =============================================================================
# EDITING
# =============================================================================


@mcp.tool
async def get_site():
    """Return the current HTML, CSS and image summary."""
    session = get_session()
    if session.document is None:
        return _state_payload(session, document=None)
    return _state_payload(session, document=document_to_dict(session.document))


@mcp.tool
async def update_site(html: str, css: str):
    """
    Replace the current HTML and CSS (records an undo step).

    Args:
        html: Full HTML markup without the style block
        css: Style sheet text

    Returns:
        JSON with the history state and the rendered preview.
    """
    session = get_session()
    preview = session.apply_edit(html, css)
    return _state_payload(session, preview=preview)


@mcp.tool
async def undo():
    """Revert to the previous HTML/CSS snapshot."""
    session = get_session()
    preview = session.undo()
    if preview is None:
        return _state_payload(session, moved=False)
    return _state_payload(session, moved=True, preview=preview)


@mcp.tool
async def redo():
    """Re-apply the next HTML/CSS snapshot."""
    session = get_session()
    preview = session.redo()
    if preview is None:
        return _state_payload(session, moved=False)
    return _state_payload(session, moved=True, preview=preview)


@mcp.tool
async def render_preview():
    """Return the current site as one self-contained HTML document."""
    session = get_session()
    preview = session.preview()
    if preview is None:
        return json.dumps({"error": "No website has been generated yet."})
    return preview


@mcp.tool
async def export_site(output: str = EXPORT_FILENAME):
    """
    Export the current site as a zip archive (index.html + images/).

    Args:
        output: Target file or directory (default: ai-generated-website.zip)

    Returns:
        JSON with the written path.
    """
    session = get_session()
    try:
        path = await session.exporter.export_to_path(session.document, output)
    except SitegenError as exc:
        return _error_payload(exc)
    return json.dumps({"path": str(Path(path).resolve())}, ensure_ascii=False)


# =============================================================================
# CLI ENTRY POINT
# =============================================================================


def main():
    """CLI entry point for running the MCP server."""
    parser = argparse.ArgumentParser(
        description="Run the website generator MCP server.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
    GEMINI_API_KEY       API key for the text and image models
    SITEGEN_STATE_FILE   Saved session location (default: ~/.config/sitegen/state.json)

Examples:
    # STDIO transport (default, for Claude Desktop)
    python -m sitegen.mcp_server

    # HTTP transport (for remote access)
    python -m sitegen.mcp_server --transport http --port 8000
""",
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to for HTTP transport (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to for HTTP transport (default: 8000)",
    )

    args = parser.parse_args()

    settings = load_settings()
    LOGGER.info("Text model: %s", settings.text_model)
    LOGGER.info("Image model: %s", settings.image_model)
    LOGGER.info("API key: %s", "Configured" if settings.api_key else "Missing")

    if args.transport == "http":
        LOGGER.info("Starting MCP server on http://%s:%d/mcp", args.host, args.port)
        mcp.run(transport="http", host=args.host, port=args.port)
    else:
        LOGGER.info("Starting MCP server with STDIO transport")
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
