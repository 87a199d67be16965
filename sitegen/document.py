"""Data structures representing generated sites."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

FAVICON_ID = "favicon"


@dataclass(slots=True)
class GenerationRequest:
    """What the user asked for."""

    idea: str
    page_type: str = "landing page"
    language: str = ""
    sections: List[str] = field(default_factory=list)
    image_count: int = 3

    def normalized_sections(self) -> List[str]:
        return [s.strip() for s in self.sections if s and s.strip()]

    def validate(self) -> None:
        """Raise ValueError when the request cannot be sent to the model."""
        if not (self.idea or "").strip():
            raise ValueError("A website idea is required.")
        if self.image_count < 0:
            raise ValueError(
                f"Image count must be zero or more, got {self.image_count}."
            )
        seen: set[str] = set()
        for name in self.normalized_sections():
            key = name.lower()
            if key in seen:
                raise ValueError(f"Duplicate section: {name!r}")
            seen.add(key)


@dataclass(slots=True)
class ImagePromptSpec:
    """A placeholder id and the short prompt the model wrote for it."""

    placeholder_id: str
    prompt: str


@dataclass(slots=True)
class SiteDraft:
    """Structured reply of the website generation call."""

    page_title: str
    html_content: str
    image_prompts: List[ImagePromptSpec] = field(default_factory=list)
    meta_description: Optional[str] = None
    meta_keywords: Optional[str] = None
    favicon_prompt: Optional[str] = None


@dataclass(slots=True)
class ImageAsset:
    """A rendered (or failed) image bound to a placeholder id."""

    placeholder_id: str
    rendered_url: str
    final_prompt: str
    failed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.placeholder_id,
            "url": self.rendered_url,
            "prompt": self.final_prompt,
            "failed": self.failed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImageAsset":
        return cls(
            placeholder_id=str(data.get("id", "")),
            rendered_url=str(data.get("url", "")),
            final_prompt=str(data.get("prompt", "")),
            failed=bool(data.get("failed", False)),
        )


@dataclass(slots=True)
class FaviconAsset(ImageAsset):
    """The document icon. Bound to the icon link, not a body placeholder."""

    placeholder_id: str = FAVICON_ID
    rendered_url: str = ""
    final_prompt: str = ""


@dataclass(slots=True)
class Document:
    """The editable artifact shared by editors, preview, history and export."""

    html_body: str
    css: str
    images: List[ImageAsset] = field(default_factory=list)
    favicon: Optional[FaviconAsset] = None
    meta_description: Optional[str] = None
    meta_keywords: Optional[str] = None
    page_title: str = ""

    @property
    def has_markup(self) -> bool:
        return bool((self.html_body or "").strip())

    def with_text(self, html: str, css: str) -> "Document":
        """Return a copy carrying new editor text and the same assets."""
        return replace(self, html_body=html, css=css, images=list(self.images))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "html": self.html_body,
            "css": self.css,
            "images": [image.to_dict() for image in self.images],
            "favicon": self.favicon.to_dict() if self.favicon else None,
            "metaDescription": self.meta_description,
            "metaKeywords": self.meta_keywords,
            "pageTitle": self.page_title,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Document":
        images: List[ImageAsset] = []
        for raw in data.get("images") or []:
            if isinstance(raw, dict):
                images.append(ImageAsset.from_dict(raw))
        favicon_data = data.get("favicon")
        favicon = None
        if isinstance(favicon_data, dict) and favicon_data.get("url"):
            favicon = FaviconAsset(
                rendered_url=str(favicon_data.get("url", "")),
                final_prompt=str(favicon_data.get("prompt", "")),
                failed=bool(favicon_data.get("failed", False)),
            )
        return cls(
            html_body=str(data.get("html") or ""),
            css=str(data.get("css") or ""),
            images=images,
            favicon=favicon,
            meta_description=data.get("metaDescription"),
            meta_keywords=data.get("metaKeywords"),
            page_title=str(data.get("pageTitle") or ""),
        )


@dataclass(frozen=True, slots=True)
class HistorySnapshot:
    """Editor text at one point in time. Images are not part of history."""

    html: str
    css: str


@dataclass(slots=True)
class PipelineProgress:
    """Advisory progress event emitted by the asset pipeline."""

    stage: str
    message: str
    current: int = 0
    total: int = 0
