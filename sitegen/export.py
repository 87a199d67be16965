"""Export the current document as a portable zip archive.

Archive layout::

    index.html
    images/<sanitized-placeholder-id>.jpeg
    images/favicon.jpeg
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import io
import logging
import zipfile
from pathlib import Path
from typing import Awaitable, Callable, Optional, Union
from urllib.parse import unquote_to_bytes

import httpx

from .document import Document
from .errors import ExportInProgressError, ExportPreconditionError, SitegenError
from .markup import MarkupTree, sanitize_placeholder_id
from .preview import document_meta

LOGGER = logging.getLogger(__name__)

EXPORT_FILENAME = "ai-generated-website.zip"
IMAGES_DIR = "images"
IMAGE_EXTENSION = ".jpeg"
FAVICON_FILENAME = f"favicon{IMAGE_EXTENSION}"

PayloadFetcher = Callable[[str], Awaitable[bytes]]


def decode_data_url(url: str) -> bytes:
    """Decode a ``data:`` reference into raw bytes."""
    header, sep, payload = url.partition(",")
    if not sep or not header.lower().startswith("data:"):
        raise ValueError("Not a data URL")
    if header.lower().endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=False)
        except binascii.Error as exc:
            raise ValueError(f"Invalid base64 payload: {exc}") from exc
    return unquote_to_bytes(payload)


async def fetch_payload(url: str) -> bytes:
    """Fetch the bytes behind an asset reference."""
    if url.lower().startswith("data:"):
        return decode_data_url(url)
    async with httpx.AsyncClient(follow_redirects=True, timeout=30.0) as client:
        response = await client.get(url)
        response.raise_for_status()
        return response.content


class ExportAssembler:
    """Builds the export archive; one export at a time."""

    def __init__(self, fetcher: Optional[PayloadFetcher] = None):
        self.fetcher = fetcher or fetch_payload
        self.running = False

    async def export(self, document: Optional[Document]) -> bytes:
        """Return the zip archive for *document* as bytes.

        Raises:
            ExportPreconditionError: Nothing has been generated yet.
            ExportInProgressError: Another export is running.
            SitegenError: An asset payload could not be fetched.
        """
        if document is None or not document.has_markup or not document.images:
            raise ExportPreconditionError(
                "Please generate a website first before exporting."
            )
        if self.running:
            raise ExportInProgressError("An export is already in progress.")

        self.running = True
        try:
            return await self._assemble(document)
        finally:
            self.running = False

    async def _assemble(self, document: Document) -> bytes:
        tree = MarkupTree(document.html_body)
        files: list[tuple[str, bytes]] = []

        for image in document.images:
            if tree.find_by_id(image.placeholder_id) is None:
                LOGGER.debug("Placeholder %r not in markup; skipping", image.placeholder_id)
                continue
            filename = sanitize_placeholder_id(image.placeholder_id) + IMAGE_EXTENSION
            relative = f"{IMAGES_DIR}/{filename}"
            payload = await self._fetch(image.rendered_url, image.placeholder_id)
            tree.set_image_source(image.placeholder_id, relative)
            files.append((relative, payload))

        if document.favicon is not None and document.favicon.rendered_url:
            relative = f"{IMAGES_DIR}/{FAVICON_FILENAME}"
            payload = await self._fetch(document.favicon.rendered_url, "favicon")
            tree.set_icon(relative)
            files.append((relative, payload))

        tree.apply_meta(document_meta(document))
        tree.set_style(document.css)

        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            archive.writestr("index.html", tree.serialize())
            for name, payload in files:
                archive.writestr(name, payload)

        LOGGER.info("Exported archive with %d asset file(s)", len(files))
        return buffer.getvalue()

    async def _fetch(self, url: str, placeholder_id: str) -> bytes:
        try:
            return await self.fetcher(url)
        except (httpx.HTTPError, ValueError) as exc:
            raise SitegenError(
                f"Could not fetch image payload for {placeholder_id!r}: {exc}"
            ) from exc

    async def export_to_path(
        self, document: Optional[Document], target: Union[str, Path]
    ) -> Path:
        """Export and write the archive; directories get the default file name."""
        archive = await self.export(document)
        path = Path(target)
        if path.is_dir() or str(target).endswith(("/", "\\")):
            path = path / EXPORT_FILENAME
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(archive)
        LOGGER.info("Wrote %s", path)
        return path


async def export_site_async(
    document: Optional[Document], target: Union[str, Path] = EXPORT_FILENAME
) -> Path:
    return await ExportAssembler().export_to_path(document, target)


def export_site(
    document: Optional[Document], target: Union[str, Path] = EXPORT_FILENAME
) -> Path:
    """Synchronous wrapper for export_site_async."""
    return asyncio.run(export_site_async(document, target))
