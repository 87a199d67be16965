"""Self-contained preview rendering."""

from __future__ import annotations

import html as html_lib
import logging
from pathlib import Path
from typing import Iterable, Optional, Union

from .document import Document, FaviconAsset, ImageAsset
from .markup import PageMeta, resolve

LOGGER = logging.getLogger(__name__)

SANDBOX_POLICY = "allow-same-origin"

_SANDBOX_PAGE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>html, body {{ margin: 0; height: 100%; }} iframe {{ border: 0; width: 100%; height: 100%; }}</style>
</head>
<body>
<iframe sandbox="{policy}" srcdoc="{srcdoc}"></iframe>
</body>
</html>
"""


def render(
    html: str,
    css: str,
    assets: Iterable[ImageAsset],
    favicon: Optional[FaviconAsset] = None,
    meta: Optional[PageMeta] = None,
) -> str:
    """Compose editor HTML, editor CSS and assets into one document.

    Rebuilt from scratch on every call.
    """
    return resolve(html, assets, favicon, meta, css=css)


def document_meta(document: Document) -> PageMeta:
    return PageMeta(
        description=document.meta_description,
        keywords=document.meta_keywords,
    )


def render_document(document: Document) -> str:
    return render(
        document.html_body,
        document.css,
        document.images,
        document.favicon,
        document_meta(document),
    )


def render_sandbox_page(markup: str, *, title: str = "Preview") -> str:
    """Wrap *markup* in a host page that shows it in a sandboxed frame.

    Scripts in the generated site do not run, and the frame cannot reach
    the host page.
    """
    return _SANDBOX_PAGE.format(
        title=html_lib.escape(title),
        policy=SANDBOX_POLICY,
        srcdoc=html_lib.escape(markup, quote=True),
    )


def write_preview(
    document: Document,
    path: Union[str, Path],
    *,
    sandbox: bool = True,
) -> Path:
    """Render *document* and write it to *path*."""
    markup = render_document(document)
    if sandbox:
        markup = render_sandbox_page(markup, title=document.page_title or "Preview")
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(markup, encoding="utf-8")
    LOGGER.info("Wrote preview to %s", target)
    return target
