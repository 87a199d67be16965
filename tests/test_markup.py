"""Tests for sitegen.markup module."""

from __future__ import annotations

import re

from sitegen.document import FaviconAsset, ImageAsset
from sitegen.markup import (
    MarkupTree,
    PageMeta,
    resolve,
    sanitize_placeholder_id,
    split_markup,
)


def _assets(*pairs):
    return [ImageAsset(pid, url, f"prompt for {pid}") for pid, url in pairs]


class TestMarkupTree:
    def test_fragment_is_wrapped(self):
        tree = MarkupTree("<style>p{}</style>\n<p>hello</p>")
        assert tree.head.find("style") is not None
        assert tree.body.find("p").get_text() == "hello"
        assert tree.serialize().startswith("<!DOCTYPE html>\n<html>")

    def test_head_tags_after_content_stay_in_body(self):
        tree = MarkupTree("<p>first</p><script>run()</script>")
        assert tree.body.find("script") is not None
        assert tree.head.find("script") is None

    def test_missing_head_and_body_created(self):
        tree = MarkupTree("<html><p>x</p></html>")
        assert tree.head is not None
        assert tree.body.find("p") is not None

    def test_doctype_not_duplicated(self):
        markup = MarkupTree("<!DOCTYPE html><html><head></head><body></body></html>").serialize()
        assert markup.count("<!DOCTYPE html>") == 1

    def test_byte_order_mark_removed(self):
        tree = MarkupTree("\ufeff<p>x</p>")
        assert "\ufeff" not in tree.serialize()

    def test_find_by_id_first_match(self):
        tree = MarkupTree('<img id="a" alt="one"><img id="a" alt="two">')
        assert tree.find_by_id("a")["alt"] == "one"
        assert tree.find_by_id("") is None

    def test_extract_style(self):
        tree = MarkupTree("<html><head><style>a{color:red}</style></head><body></body></html>")
        assert tree.extract_style() == "a{color:red}"
        assert tree.soup.find("style") is None
        assert tree.extract_style() == ""

    def test_set_image_source_on_wrapper(self):
        tree = MarkupTree('<div id="hero"><img alt="x"></div>')
        assert tree.set_image_source("hero", "u.jpeg")
        assert tree.soup.find("img")["src"] == "u.jpeg"

    def test_set_image_source_without_image(self):
        tree = MarkupTree('<div id="hero">text</div>')
        assert not tree.set_image_source("hero", "u.jpeg")
        assert not tree.set_image_source("missing", "u.jpeg")

    def test_set_meta_find_or_create(self):
        tree = MarkupTree('<html><head><meta name="description" content="old"></head><body></body></html>')
        tree.set_meta("description", "new")
        tree.set_meta("keywords", "a, b")
        metas = tree.soup.find_all("meta", attrs={"name": "description"})
        assert len(metas) == 1
        assert metas[0]["content"] == "new"
        assert tree.soup.find("meta", attrs={"name": "keywords"})["content"] == "a, b"

    def test_set_meta_matches_name_case_insensitively(self):
        tree = MarkupTree(
            "<html><head><meta name='Description' content='old'></head><body></body></html>"
        )
        tree.set_meta("description", "new")
        metas = tree.soup.find_all("meta", attrs={"name": re.compile("^description$", re.I)})
        assert len(metas) == 1
        assert metas[0]["content"] == "new"

    def test_set_icon_collapses_duplicates(self):
        tree = MarkupTree(
            '<html><head><link rel="icon" href="a.png">'
            '<link rel="shortcut icon" href="b.png"></head><body></body></html>'
        )
        tree.set_icon("c.jpeg")
        icons = tree.soup.find_all("link")
        assert len(icons) == 1
        assert icons[0]["href"] == "c.jpeg"

    def test_set_title(self):
        tree = MarkupTree("<p>x</p>")
        tree.set_title("Hello")
        assert tree.head.find("title").get_text() == "Hello"


def test_sanitize_placeholder_id():
    assert sanitize_placeholder_id("Hero-Image 1") == "hero_image_1"
    assert sanitize_placeholder_id("café") == "caf_"


def test_split_markup(bakery_html):
    html, css = split_markup(bakery_html)
    assert "font-family: sans-serif" in css
    assert ".hero > img" in css
    assert "<style" not in html
    assert 'id="hero-image"' in html


class TestResolve:
    def test_sets_sources_and_alt(self, bakery_html):
        result = resolve(bakery_html, _assets(("hero-image", "h.jpeg"), ("menu-image", "m.jpeg")))
        tree = MarkupTree(result)
        assert tree.find_by_id("hero-image")["src"] == "h.jpeg"
        assert tree.find_by_id("hero-image")["alt"] == "prompt for hero-image"
        assert tree.find_by_id("menu-image")["src"] == "m.jpeg"

    def test_keeps_alt_when_disabled(self, bakery_html):
        result = resolve(bakery_html, _assets(("hero-image", "h.jpeg")), use_prompt_alt=False)
        assert MarkupTree(result).find_by_id("hero-image")["alt"] == "bread"

    def test_missing_placeholder_skipped(self):
        result = resolve("<p>no images</p>", _assets(("hero-image", "h.jpeg")))
        assert "h.jpeg" not in result
        assert "<p>no images</p>" in result

    def test_duplicate_ids_first_wins(self):
        result = resolve('<img id="a"><img id="a">', _assets(("a", "u.jpeg")))
        images = MarkupTree(result).soup.find_all("img")
        assert images[0]["src"] == "u.jpeg"
        assert not images[1].has_attr("src")

    def test_css_replaces_style_block(self, bakery_html):
        result = resolve(bakery_html, [], css="body { color: navy; }")
        tree = MarkupTree(result)
        styles = tree.soup.find_all("style")
        assert len(styles) == 1
        assert styles[0].get_text() == "body { color: navy; }"

    def test_css_added_to_fragment(self):
        result = resolve("<p>x</p>", [], css="p { margin: 0; }")
        tree = MarkupTree(result)
        assert tree.head.find("style").get_text() == "p { margin: 0; }"

    def test_css_not_entity_escaped(self):
        result = resolve("<p>x</p>", [], css=".a > .b { content: '&'; }")
        assert ".a > .b { content: '&'; }" in result

    def test_favicon_and_meta(self, bakery_html):
        favicon = FaviconAsset(rendered_url="data:image/jpeg;base64,AA")
        meta = PageMeta(description="Fresh bread", keywords="bakery")
        result = resolve(bakery_html, [], favicon, meta)
        tree = MarkupTree(result)
        assert tree.soup.find("link", rel="icon")["href"] == "data:image/jpeg;base64,AA"
        assert tree.soup.find("meta", attrs={"name": "description"})["content"] == "Fresh bread"
        assert tree.soup.find("meta", attrs={"name": "keywords"})["content"] == "bakery"

    def test_meta_with_capitalised_name_updated(self):
        html = "<html><head><meta name='Description' content='old'></head><body></body></html>"
        result = resolve(html, [], None, PageMeta(description="new"))
        metas = MarkupTree(result).soup.find_all(
            "meta", attrs={"name": re.compile("^description$", re.I)}
        )
        assert [m["content"] for m in metas] == ["new"]

    def test_idempotent(self, bakery_html):
        assets = _assets(("hero-image", "h.jpeg"), ("menu-image", "m.jpeg"))
        favicon = FaviconAsset(rendered_url="f.jpeg")
        meta = PageMeta(description="d", keywords="k")

        once = resolve(bakery_html, assets, favicon, meta, css="p{}")
        twice = resolve(once, assets, favicon, meta, css="p{}")

        assert once == twice
        tree = MarkupTree(twice)
        assert len(tree.soup.find_all("style")) == 1
        assert len(tree.soup.find_all("link")) == 1
        assert len(tree.soup.find_all("meta", attrs={"name": "description"})) == 1

    def test_idempotent_on_fragment(self):
        assets = _assets(("a", "a.jpeg"))
        once = resolve('<img id="a">', assets, css="img{}")
        assert resolve(once, assets, css="img{}") == once
