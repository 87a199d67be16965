"""Asset pipeline: structured generation, prompt refinement, image rendering.

Stages run strictly in order; within the refinement stage the calls run
concurrently and the stage completes only when every call has settled.
Only the structured generation stage can fail the run. Every later
failure is replaced by a fallback so that the resulting document always
carries one image asset per declared placeholder, in declaration order.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Protocol

from .config import GeneratorSettings, load_settings
from .document import (
    Document,
    FaviconAsset,
    GenerationRequest,
    ImageAsset,
    ImagePromptSpec,
    PipelineProgress,
    SiteDraft,
)
from .errors import DegradedAssetError, FatalPipelineError, SitegenError
from .genai import GenAIClient
from .markup import split_markup
from .prompts import (
    REFINE_SYSTEM_INSTRUCTION,
    WEBSITE_SCHEMA,
    WEBSITE_SYSTEM_INSTRUCTION,
    build_favicon_prompt,
    build_generation_prompt,
    build_refine_prompt,
    parse_site_draft,
)

LOGGER = logging.getLogger(__name__)

FAILED_IMAGE_URL = "https://via.placeholder.com/1280x720.png?text=Image+Failed+To+Load"

STRUCTURE_TEMPERATURE = 0.2
REFINE_TEMPERATURE = 0.5
IMAGE_ASPECT_RATIO = "16:9"
FAVICON_ASPECT_RATIO = "1:1"
IMAGE_MIME_TYPE = "image/jpeg"

ProgressCallback = Callable[[PipelineProgress], None]


class ModelClient(Protocol):
    async def generate_structured(
        self,
        prompt: str,
        *,
        system_instruction: str,
        schema: Dict[str, Any],
        temperature: float = 0.2,
    ) -> Dict[str, Any]: ...

    async def generate_text(
        self,
        prompt: str,
        *,
        system_instruction: str,
        temperature: float = 0.5,
        thinking_budget: Optional[int] = 0,
    ) -> str: ...

    async def generate_image(
        self,
        prompt: str,
        *,
        aspect_ratio: str = "16:9",
        mime_type: str = "image/jpeg",
    ) -> str: ...


class AssetPipeline:
    """Turns a GenerationRequest into a fully populated Document."""

    def __init__(
        self,
        client: ModelClient,
        *,
        progress: Optional[ProgressCallback] = None,
        failed_image_url: str = FAILED_IMAGE_URL,
    ):
        self.client = client
        self.progress = progress
        self.failed_image_url = failed_image_url

    def _report(self, stage: str, message: str, current: int = 0, total: int = 0) -> None:
        LOGGER.info(message)
        if self.progress is None:
            return
        try:
            self.progress(PipelineProgress(stage, message, current, total))
        except Exception as exc:  # progress is advisory
            LOGGER.warning("Progress callback failed: %s", exc)

    async def generate(self, request: GenerationRequest) -> Document:
        request.validate()

        draft = await self.generate_draft(request)
        refined = await self.refine_prompts(draft.image_prompts, request.idea)

        favicon: Optional[FaviconAsset] = None
        if draft.favicon_prompt:
            favicon = await self.render_favicon(draft.favicon_prompt)

        images = await self.render_images(refined)

        html_body, css = split_markup(draft.html_content)
        self._report("done", "Your website is ready.")
        return Document(
            html_body=html_body,
            css=css,
            images=images,
            favicon=favicon,
            meta_description=draft.meta_description,
            meta_keywords=draft.meta_keywords,
            page_title=draft.page_title,
        )

    async def generate_draft(self, request: GenerationRequest) -> SiteDraft:
        """Stage 1. Any failure here aborts the whole run."""
        self._report("request_sent", "Analyzing your request...")
        try:
            data = await self.client.generate_structured(
                build_generation_prompt(request),
                system_instruction=WEBSITE_SYSTEM_INSTRUCTION,
                schema=WEBSITE_SCHEMA,
                temperature=STRUCTURE_TEMPERATURE,
            )
            draft = parse_site_draft(data)
        except SitegenError as exc:
            raise FatalPipelineError(f"Website generation failed: {exc}") from exc
        except Exception as exc:
            LOGGER.exception("Unexpected error during structured generation")
            raise FatalPipelineError(f"Website generation failed: {exc}") from exc

        self._report(
            "structure_received",
            f"Received page structure with {len(draft.image_prompts)} image placeholder(s).",
        )
        return draft

    async def refine_prompts(
        self, specs: List[ImagePromptSpec], idea: str
    ) -> List[ImagePromptSpec]:
        """Stage 2. Failed refinements keep the short prompt."""
        if not specs:
            return []
        self._report(
            "optimizing_assets",
            f"Enhancing {len(specs)} image descriptions for photo-realism...",
        )

        async def refine(spec: ImagePromptSpec) -> ImagePromptSpec:
            try:
                text = await self.client.generate_text(
                    build_refine_prompt(spec.prompt, idea),
                    system_instruction=REFINE_SYSTEM_INSTRUCTION,
                    temperature=REFINE_TEMPERATURE,
                    thinking_budget=0,
                )
            except Exception as exc:
                _log_degraded(
                    DegradedAssetError(
                        f"Failed to improve prompt {spec.prompt!r}: {exc}",
                        spec.placeholder_id,
                    )
                )
                return spec
            return ImagePromptSpec(spec.placeholder_id, text.strip() or spec.prompt)

        return list(await asyncio.gather(*(refine(spec) for spec in specs)))

    async def render_favicon(self, prompt: str) -> Optional[FaviconAsset]:
        """Stage 3. Failure means no favicon."""
        self._report("favicon", "Designing a favicon...")
        final_prompt = build_favicon_prompt(prompt)
        try:
            url = await self.client.generate_image(
                final_prompt,
                aspect_ratio=FAVICON_ASPECT_RATIO,
                mime_type=IMAGE_MIME_TYPE,
            )
        except Exception as exc:
            _log_degraded(DegradedAssetError(f"Failed to generate favicon: {exc}", "favicon"))
            return None
        return FaviconAsset(rendered_url=url, final_prompt=final_prompt)

    async def render_images(self, specs: List[ImagePromptSpec]) -> List[ImageAsset]:
        """Stage 4. One call at a time, in source order."""
        total = len(specs)
        images: List[ImageAsset] = []
        for index, spec in enumerate(specs, start=1):
            self._report("rendering", f"Generating image {index} of {total}...", index, total)
            try:
                url = await self.client.generate_image(
                    spec.prompt,
                    aspect_ratio=IMAGE_ASPECT_RATIO,
                    mime_type=IMAGE_MIME_TYPE,
                )
                images.append(ImageAsset(spec.placeholder_id, url, spec.prompt))
            except Exception as exc:
                _log_degraded(
                    DegradedAssetError(
                        f"Failed to generate image for prompt {spec.prompt!r}: {exc}",
                        spec.placeholder_id,
                    )
                )
                images.append(
                    ImageAsset(spec.placeholder_id, self.failed_image_url, spec.prompt, failed=True)
                )
        return images


def _log_degraded(error: DegradedAssetError) -> None:
    LOGGER.warning("[%s] %s", error.placeholder_id or "-", error)


async def generate_site_async(
    request: GenerationRequest,
    *,
    settings: Optional[GeneratorSettings] = None,
    progress: Optional[ProgressCallback] = None,
) -> Document:
    """Generate a complete Document for *request*.

    Raises:
        ValueError: If the request is invalid.
        FatalPipelineError: If structured generation fails.
    """
    client = GenAIClient(settings or load_settings())
    return await AssetPipeline(client, progress=progress).generate(request)


def generate_site(
    request: GenerationRequest,
    *,
    settings: Optional[GeneratorSettings] = None,
    progress: Optional[ProgressCallback] = None,
) -> Document:
    """Synchronous wrapper for generate_site_async."""
    return asyncio.run(generate_site_async(request, settings=settings, progress=progress))
