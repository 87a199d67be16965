"""Placeholder resolution over parsed markup.

``MarkupTree`` is the only place that knows about the HTML parser. It
normalizes any markup into ``<html><head>…</head><body>…</body></html>``
so that every operation (find by id, style injection, icon and meta
find-or-create) behaves the same for full documents and fragments.

Resolution is idempotent: resolving already-resolved markup with the same
assets yields identical output, and never duplicates style, meta, or icon
elements.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from bs4 import BeautifulSoup, Doctype, Tag
from bs4.element import Stylesheet

from .document import FaviconAsset, ImageAsset

LOGGER = logging.getLogger(__name__)

DOCTYPE = "<!DOCTYPE html>"

_HEAD_TAGS = frozenset({"title", "meta", "link", "style", "base", "script"})


@dataclass(slots=True)
class PageMeta:
    """Document-level metadata written into the head."""

    description: Optional[str] = None
    keywords: Optional[str] = None
    title: Optional[str] = None


def sanitize_placeholder_id(placeholder_id: str) -> str:
    """Turn a placeholder id into a safe file stem."""
    return re.sub(r"[^a-z0-9]", "_", placeholder_id, flags=re.IGNORECASE).lower()


class MarkupTree:
    """A parsed, normalized HTML document."""

    def __init__(self, markup: str):
        self.soup = BeautifulSoup((markup or "").replace("\ufeff", ""), "html.parser")
        self._normalize()

    # -- structure ---------------------------------------------------------

    @property
    def html(self) -> Tag:
        return self.soup.find("html")

    @property
    def head(self) -> Tag:
        return self.html.find("head", recursive=False)

    @property
    def body(self) -> Tag:
        return self.html.find("body", recursive=False)

    def _normalize(self) -> None:
        soup = self.soup
        for node in list(soup.contents):
            if isinstance(node, Doctype):
                node.extract()

        html = soup.find("html")
        if html is None:
            html = soup.new_tag("html")
            head = soup.new_tag("head")
            body = soup.new_tag("body")
            for node in list(soup.contents):
                node.extract()
                if isinstance(node, Tag) and node.name == "head":
                    _move_children(node, head)
                elif isinstance(node, Tag) and node.name == "body":
                    _move_children(node, body)
                elif isinstance(node, Tag) and node.name in _HEAD_TAGS and not _has_content(body):
                    head.append(node)
                else:
                    body.append(node)
            html.append(head)
            html.append(body)
            soup.append(html)
            return

        # Anything outside <html> belongs to the body.
        for node in list(soup.contents):
            if node is html:
                continue
            node.extract()
            if isinstance(node, Tag) or node.strip():
                self._ensure_body(html).append(node)

        head = html.find("head", recursive=False)
        if head is None:
            head = soup.new_tag("head")
            html.insert(0, head)
        self._ensure_body(html)

    def _ensure_body(self, html: Tag) -> Tag:
        body = html.find("body", recursive=False)
        if body is not None:
            return body
        body = self.soup.new_tag("body")
        for node in list(html.contents):
            if isinstance(node, Tag) and node.name == "head":
                continue
            body.append(node.extract())
        html.append(body)
        return body

    # -- queries -----------------------------------------------------------

    def find_by_id(self, element_id: str) -> Optional[Tag]:
        """First element carrying *element_id*; later duplicates are ignored."""
        if not element_id:
            return None
        return self.soup.find(id=element_id)

    # -- mutations ---------------------------------------------------------

    def extract_style(self) -> str:
        """Remove the first ``<style>`` element and return its text."""
        style = self.soup.find("style")
        if style is None:
            return ""
        css = style.get_text()
        style.decompose()
        return css

    def set_style(self, css: str) -> None:
        """Keep exactly one style block carrying *css*.

        The first existing block is reused in place; a new one goes to the end
        of the head.
        """
        styles = self.soup.find_all("style")
        for extra in styles[1:]:
            extra.decompose()
        if styles:
            style = styles[0]
        else:
            style = self.soup.new_tag("style")
            self.head.append(style)
        style.string = Stylesheet(css or "")

    def set_image_source(self, element_id: str, src: str, alt: Optional[str] = None) -> bool:
        element = self.find_by_id(element_id)
        if element is None:
            LOGGER.debug("No element with id %r; skipping", element_id)
            return False
        if element.name != "img":
            nested = element.find("img")
            if nested is None:
                LOGGER.debug("Element %r is not an image; skipping", element_id)
                return False
            element = nested
        element["src"] = src
        if alt is not None:
            element["alt"] = alt
        return True

    def set_icon(self, href: str) -> None:
        """Find or create the single icon link and point it at *href*."""
        links = [
            link
            for link in self.soup.find_all("link")
            if "icon" in [value.lower() for value in _rel_values(link)]
        ]
        if links:
            icon = links[0]
            for extra in links[1:]:
                extra.decompose()
        else:
            icon = self.soup.new_tag("link", rel="icon")
            self.head.append(icon)
        icon["href"] = href

    def set_meta(self, name: str, content: str) -> None:
        """Find or create ``<meta name=…>`` and set its content."""
        meta = self.soup.find(
            "meta", attrs={"name": re.compile(rf"^{re.escape(name)}$", re.I)}
        )
        if meta is None:
            meta = self.soup.new_tag("meta", attrs={"name": name})
            self.head.append(meta)
        meta["content"] = content

    def set_title(self, text: str) -> None:
        title = self.soup.find("title")
        if title is None:
            title = self.soup.new_tag("title")
            self.head.insert(0, title)
        title.string = text

    def apply_meta(self, meta: Optional[PageMeta]) -> None:
        if meta is None:
            return
        if meta.title:
            self.set_title(meta.title)
        if meta.description:
            self.set_meta("description", meta.description)
        if meta.keywords:
            self.set_meta("keywords", meta.keywords)

    def serialize(self) -> str:
        return f"{DOCTYPE}\n{self.html}"


def _has_content(tag: Tag) -> bool:
    return any(isinstance(node, Tag) or node.strip() for node in tag.contents)


def _move_children(source: Tag, target: Tag) -> None:
    for child in list(source.contents):
        target.append(child.extract())


def _rel_values(link: Tag) -> Iterable[str]:
    rel = link.get("rel") or []
    if isinstance(rel, str):
        return rel.split()
    return rel


def split_markup(markup: str) -> Tuple[str, str]:
    """Separate the first style block from the markup.

    Returns ``(html_without_style, css)``.
    """
    tree = MarkupTree(markup)
    css = tree.extract_style()
    return tree.serialize(), css


def resolve(
    markup: str,
    assets: Iterable[ImageAsset],
    favicon: Optional[FaviconAsset] = None,
    meta: Optional[PageMeta] = None,
    *,
    css: Optional[str] = None,
    use_prompt_alt: bool = True,
) -> str:
    """Write asset references into their placeholders and return new markup.

    Placeholders that are missing from the markup are skipped silently.
    When *css* is given it becomes the document's only style block.
    """
    tree = MarkupTree(markup)
    if css is not None:
        tree.set_style(css)
    for asset in assets:
        tree.set_image_source(
            asset.placeholder_id,
            asset.rendered_url,
            alt=asset.final_prompt if use_prompt_alt and asset.final_prompt else None,
        )
    if favicon is not None and favicon.rendered_url:
        tree.set_icon(favicon.rendered_url)
    tree.apply_meta(meta)
    return tree.serialize()
