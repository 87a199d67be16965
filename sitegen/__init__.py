"""Generate complete single-page websites with generative AI.

This package turns a natural-language description into an editable
website. It supports:

- Structured HTML/CSS generation with image placeholders
- Prompt refinement and image rendering for every placeholder
- Favicon and SEO meta generation
- Undo/redo over manual HTML/CSS edits
- Sandboxed previews and zip export
- Local persistence of the current site

Example usage:

    from sitegen import GenerationRequest, generate_site_async, export_site_async

    request = GenerationRequest(
        idea="bakery landing page",
        sections=["about", "menu", "contact"],
        image_count=2,
    )
    document = await generate_site_async(request)
    for image in document.images:
        print(image.placeholder_id, image.failed)

    await export_site_async(document, "bakery.zip")

    # Interactive editing with history
    from sitegen import SiteSession

    session = SiteSession()
    await session.generate(request)
    session.apply_edit(document.html_body, document.css + "body { color: navy; }")
    session.undo()
"""

from __future__ import annotations

from .config import GeneratorSettings, load_settings
from .document import (
    Document,
    FaviconAsset,
    GenerationRequest,
    HistorySnapshot,
    ImageAsset,
    ImagePromptSpec,
    PipelineProgress,
    SiteDraft,
)
from .errors import (
    DegradedAssetError,
    ErrorCategory,
    ExportInProgressError,
    ExportPreconditionError,
    FatalPipelineError,
    GenAIError,
    GenerationInProgressError,
    ParseError,
    PersistenceWriteError,
    SitegenError,
    StorageQuotaError,
    classify_error,
    user_message,
)
from .export import ExportAssembler, export_site, export_site_async
from .genai import GenAIClient
from .history import HistoryManager
from .markup import MarkupTree, PageMeta, resolve, split_markup
from .persistence import DebouncedSaver, StateStore, load_document, save_document
from .pipeline import AssetPipeline, generate_site, generate_site_async
from .preview import render, render_document, render_sandbox_page
from .session import SiteSession

__all__ = [
    # Document types
    "Document",
    "FaviconAsset",
    "GenerationRequest",
    "HistorySnapshot",
    "ImageAsset",
    "ImagePromptSpec",
    "PipelineProgress",
    "SiteDraft",
    # Config
    "GeneratorSettings",
    "load_settings",
    # Errors
    "SitegenError",
    "GenAIError",
    "ParseError",
    "FatalPipelineError",
    "DegradedAssetError",
    "GenerationInProgressError",
    "ExportPreconditionError",
    "ExportInProgressError",
    "PersistenceWriteError",
    "StorageQuotaError",
    "ErrorCategory",
    "classify_error",
    "user_message",
    # Generation
    "GenAIClient",
    "AssetPipeline",
    "generate_site",
    "generate_site_async",
    # Markup and preview
    "MarkupTree",
    "PageMeta",
    "resolve",
    "split_markup",
    "render",
    "render_document",
    "render_sandbox_page",
    # History, persistence, session
    "HistoryManager",
    "StateStore",
    "DebouncedSaver",
    "save_document",
    "load_document",
    "SiteSession",
    # Export
    "ExportAssembler",
    "export_site",
    "export_site_async",
    # MCP Server
    "mcp",
]


def get_mcp_server():
    """Get the MCP server instance (lazy import to avoid dependency if not needed)."""
    from .mcp_server import mcp

    return mcp


# Lazy import for mcp to avoid requiring fastmcp if not used
def __getattr__(name):
    if name == "mcp":
        from .mcp_server import mcp

        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
