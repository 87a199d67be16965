"""Tests for sitegen.export module."""

from __future__ import annotations

import asyncio
import base64
import io
import zipfile
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from sitegen.document import Document, FaviconAsset, ImageAsset
from sitegen.errors import ExportInProgressError, ExportPreconditionError, SitegenError
from sitegen.export import (
    EXPORT_FILENAME,
    ExportAssembler,
    decode_data_url,
    export_site,
    fetch_payload,
)
from sitegen.markup import MarkupTree, split_markup
from sitegen.pipeline import FAILED_IMAGE_URL

_HERO = base64.b64encode(b"hero-bytes").decode()
_FAVICON = base64.b64encode(b"favicon-bytes").decode()


def _document(bakery_html: str, **overrides) -> Document:
    body, css = split_markup(bakery_html)
    values = dict(
        html_body=body,
        css=css,
        images=[
            ImageAsset("hero-image", f"data:image/jpeg;base64,{_HERO}", "warm bread"),
            ImageAsset("menu-image", "https://img.test/menu.jpeg", "pastry"),
        ],
        favicon=FaviconAsset(rendered_url=f"data:image/jpeg;base64,{_FAVICON}"),
        meta_description="Fresh bread",
        meta_keywords="bakery",
        page_title="Sunrise Bakery",
    )
    values.update(overrides)
    return Document(**values)


def _read_zip(data: bytes) -> dict:
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        return {name: archive.read(name) for name in archive.namelist()}


async def _fetcher(url: str) -> bytes:
    if url.startswith("data:"):
        return decode_data_url(url)
    return b"remote:" + url.encode()


class TestDecodeDataUrl:
    def test_base64(self):
        assert decode_data_url(f"data:image/jpeg;base64,{_HERO}") == b"hero-bytes"

    def test_percent_encoded(self):
        assert decode_data_url("data:text/plain,a%20b") == b"a b"

    def test_not_a_data_url(self):
        with pytest.raises(ValueError):
            decode_data_url("https://img.test/a.jpeg")


class TestPreconditions:
    @pytest.mark.asyncio
    async def test_no_document(self):
        with pytest.raises(ExportPreconditionError, match="generate a website first"):
            await ExportAssembler(_fetcher).export(None)

    @pytest.mark.asyncio
    async def test_no_images(self, bakery_html):
        with pytest.raises(ExportPreconditionError):
            await ExportAssembler(_fetcher).export(_document(bakery_html, images=[]))

    @pytest.mark.asyncio
    async def test_empty_markup(self, bakery_html):
        with pytest.raises(ExportPreconditionError):
            await ExportAssembler(_fetcher).export(_document(bakery_html, html_body="  "))


class TestArchive:
    @pytest.mark.asyncio
    async def test_layout(self, bakery_html):
        files = _read_zip(await ExportAssembler(_fetcher).export(_document(bakery_html)))

        assert set(files) == {
            "index.html",
            "images/hero_image.jpeg",
            "images/menu_image.jpeg",
            "images/favicon.jpeg",
        }
        assert files["images/hero_image.jpeg"] == b"hero-bytes"
        assert files["images/menu_image.jpeg"] == b"remote:https://img.test/menu.jpeg"
        assert files["images/favicon.jpeg"] == b"favicon-bytes"

    @pytest.mark.asyncio
    async def test_index_references_relative_paths(self, bakery_html):
        files = _read_zip(await ExportAssembler(_fetcher).export(_document(bakery_html)))
        index = files["index.html"].decode("utf-8")
        tree = MarkupTree(index)

        assert index.startswith("<!DOCTYPE html>")
        assert tree.find_by_id("hero-image")["src"] == "images/hero_image.jpeg"
        assert tree.find_by_id("menu-image")["src"] == "images/menu_image.jpeg"
        assert tree.soup.find("link", rel="icon")["href"] == "images/favicon.jpeg"
        assert tree.soup.find("meta", attrs={"name": "keywords"})["content"] == "bakery"
        assert "font-family: sans-serif" in tree.soup.find("style").get_text()
        assert "data:image" not in index

    @pytest.mark.asyncio
    async def test_edited_css_is_exported(self, bakery_html):
        document = _document(bakery_html, css="body { color: navy; }")
        files = _read_zip(await ExportAssembler(_fetcher).export(document))
        tree = MarkupTree(files["index.html"].decode("utf-8"))
        styles = tree.soup.find_all("style")
        assert len(styles) == 1
        assert styles[0].get_text() == "body { color: navy; }"

    @pytest.mark.asyncio
    async def test_missing_placeholder_skipped(self, bakery_html):
        document = _document(bakery_html)
        document.images.append(ImageAsset("gone", "data:image/jpeg;base64,AA", "p"))
        files = _read_zip(await ExportAssembler(_fetcher).export(document))
        assert "images/gone.jpeg" not in files

    @pytest.mark.asyncio
    async def test_no_favicon(self, bakery_html):
        files = _read_zip(
            await ExportAssembler(_fetcher).export(_document(bakery_html, favicon=None))
        )
        assert "images/favicon.jpeg" not in files


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_second_export_rejected(self, bakery_html):
        gate = asyncio.Event()

        async def slow_fetcher(url: str) -> bytes:
            await gate.wait()
            return b"x"

        assembler = ExportAssembler(slow_fetcher)
        first = asyncio.create_task(assembler.export(_document(bakery_html)))
        await asyncio.sleep(0)
        assert assembler.running

        with pytest.raises(ExportInProgressError):
            await assembler.export(_document(bakery_html))

        gate.set()
        await first
        assert not assembler.running

    @pytest.mark.asyncio
    async def test_flag_reset_after_failure(self, bakery_html):
        async def failing(url: str) -> bytes:
            raise httpx.ConnectError("offline")

        assembler = ExportAssembler(failing)
        with pytest.raises(SitegenError, match="Could not fetch image payload"):
            await assembler.export(_document(bakery_html))
        assert not assembler.running

    @pytest.mark.asyncio
    async def test_failed_image_unreachable_aborts_export(self, tmp_path, bakery_html):
        async def placeholder_host_down(url: str) -> bytes:
            if url == FAILED_IMAGE_URL:
                raise httpx.ConnectError("placeholder host unreachable")
            return await _fetcher(url)

        document = _document(
            bakery_html,
            images=[
                ImageAsset("hero-image", f"data:image/jpeg;base64,{_HERO}", "warm bread"),
                ImageAsset("menu-image", FAILED_IMAGE_URL, "pastry", failed=True),
            ],
        )
        assembler = ExportAssembler(placeholder_host_down)
        target = tmp_path / "site.zip"
        with pytest.raises(SitegenError, match="'menu-image'"):
            await assembler.export_to_path(document, target)
        assert not target.exists()
        assert not assembler.running


class TestExportToPath:
    @pytest.mark.asyncio
    async def test_directory_gets_default_name(self, tmp_path, bakery_html):
        path = await ExportAssembler(_fetcher).export_to_path(_document(bakery_html), tmp_path)
        assert path == tmp_path / EXPORT_FILENAME
        assert zipfile.is_zipfile(path)

    @pytest.mark.asyncio
    async def test_explicit_file(self, tmp_path, bakery_html):
        target = tmp_path / "nested" / "site.zip"
        path = await ExportAssembler(_fetcher).export_to_path(_document(bakery_html), target)
        assert path == target
        assert target.is_file()

    def test_sync_wrapper(self, tmp_path, bakery_html):
        document = _document(bakery_html, images=[ImageAsset("hero-image", f"data:image/jpeg;base64,{_HERO}", "p")], favicon=None)
        path = export_site(document, tmp_path / "site.zip")
        assert set(_read_zip(path.read_bytes())) == {"index.html", "images/hero_image.jpeg"}


@pytest.mark.asyncio
async def test_fetch_payload_remote():
    mock_response = MagicMock()
    mock_response.content = b"remote"
    mock_response.raise_for_status = MagicMock()

    mc = AsyncMock()
    mc.get = AsyncMock(return_value=mock_response)
    mc.__aenter__ = AsyncMock(return_value=mc)
    mc.__aexit__ = AsyncMock(return_value=False)

    with patch("sitegen.export.httpx.AsyncClient", return_value=mc):
        assert await fetch_payload("https://img.test/a.jpeg") == b"remote"
    mc.get.assert_awaited_once_with("https://img.test/a.jpeg")


@pytest.mark.asyncio
async def test_fetch_payload_data_url_stays_local():
    with patch("sitegen.export.httpx.AsyncClient") as client_cls:
        assert await fetch_payload(f"data:image/jpeg;base64,{_HERO}") == b"hero-bytes"
    client_cls.assert_not_called()
