"""Output and formatting helpers for CLI commands."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .document import Document, ImageAsset, PipelineProgress


def shorten_url(url: str, limit: int = 60) -> str:
    """Abbreviate inline ``data:`` references for display."""
    if url.startswith("data:"):
        header = url.split(",", 1)[0]
        return f"{header},… ({len(url)} chars)"
    if len(url) > limit:
        return url[: limit - 1] + "…"
    return url


def _image_to_dict(image: ImageAsset, *, full_urls: bool) -> Dict[str, Any]:
    return {
        "id": image.placeholder_id,
        "url": image.rendered_url if full_urls else shorten_url(image.rendered_url),
        "prompt": image.final_prompt,
        "failed": image.failed,
    }


def document_to_dict(document: Document, *, full_urls: bool = False) -> Dict[str, Any]:
    """Convert document to a JSON-serializable summary."""
    return {
        "page_title": document.page_title,
        "meta_description": document.meta_description,
        "meta_keywords": document.meta_keywords,
        "html": document.html_body,
        "css": document.css,
        "images": [_image_to_dict(image, full_urls=full_urls) for image in document.images],
        "favicon": (
            _image_to_dict(document.favicon, full_urls=full_urls)
            if document.favicon
            else None
        ),
    }


def format_document_markdown(document: Document) -> str:
    """Format a short human-readable summary of a generated site.

    Example output:
    # Sunrise Bakery

    _Fresh bread every morning._

    ## Images (2)
    - `hero-image`: golden loaves on a rustic table
    - `menu-image` (failed): pastry counter
    """
    lines = [f"# {document.page_title or 'Untitled site'}", ""]
    if document.meta_description:
        lines.append(f"_{document.meta_description}_")
        lines.append("")
    if document.meta_keywords:
        lines.append(f"**Keywords:** {document.meta_keywords}")
        lines.append("")

    lines.append(f"## Images ({len(document.images)})")
    for image in document.images:
        marker = " (failed)" if image.failed else ""
        lines.append(f"- `{image.placeholder_id}`{marker}: {image.final_prompt}")
    lines.append("")
    lines.append(f"**Favicon:** {'yes' if document.favicon else 'no'}")
    lines.append(
        f"**Markup:** {len(document.html_body)} chars HTML, {len(document.css)} chars CSS"
    )
    return "\n".join(lines)


def format_progress(progress: PipelineProgress) -> str:
    if progress.total:
        return f"[{progress.stage}] {progress.current}/{progress.total} {progress.message}"
    return f"[{progress.stage}] {progress.message}"


def write_output(text: str, output: Optional[str]) -> None:
    """Print *text* or write it to *output*."""
    if output is None:
        print(text)
        return
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    logging.info("Wrote %s", path)


def document_json(document: Document, *, full_urls: bool = False) -> str:
    return json.dumps(document_to_dict(document, full_urls=full_urls), indent=2, ensure_ascii=False)
