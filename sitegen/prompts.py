"""Prompt text, the structured reply schema, and reply validation."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from .document import GenerationRequest, ImagePromptSpec, SiteDraft
from .errors import ParseError

# Gemini responseSchema (OpenAPI subset, upper-case type names).
WEBSITE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "pageTitle": {
            "type": "STRING",
            "description": "A concise, SEO-friendly title for the HTML page.",
        },
        "metaDescription": {
            "type": "STRING",
            "description": "A one or two sentence SEO meta description of the page.",
        },
        "metaKeywords": {
            "type": "STRING",
            "description": "A comma-separated list of SEO keywords for the page.",
        },
        "faviconPrompt": {
            "type": "STRING",
            "description": (
                "A short prompt (3-8 words) describing a simple icon that "
                "represents the website, used to generate its favicon."
            ),
        },
        "htmlContent": {
            "type": "STRING",
            "description": (
                "The complete, well-structured, and well-indented HTML code for "
                "the website. This should include a <head> with a <style> tag for "
                "modern, responsive, and well-formatted CSS, and a <body>. Use "
                "semantic HTML5 tags. Image placeholders should have unique `id` "
                "attributes, e.g., `<img id='hero-image' alt='...'>`."
            ),
        },
        "imagePrompts": {
            "type": "ARRAY",
            "description": (
                "An array of objects, each describing an image to be generated "
                "for the website."
            ),
            "items": {
                "type": "OBJECT",
                "properties": {
                    "id": {
                        "type": "STRING",
                        "description": (
                            "The unique ID of the <img> element in the HTML where "
                            "this image should be placed."
                        ),
                    },
                    "prompt": {
                        "type": "STRING",
                        "description": (
                            "A simple, concise prompt (3-10 words) for an image "
                            "that fits the website's theme. This will be enhanced "
                            "by another AI later."
                        ),
                    },
                },
                "required": ["id", "prompt"],
            },
        },
    },
    "required": ["pageTitle", "htmlContent", "imagePrompts"],
}

WEBSITE_SYSTEM_INSTRUCTION = """\
You are a world-class AI web designer. Your task is to generate a complete, single-page website based on the user's detailed request.
- The entire website, including all text content, headings, and labels, MUST be in the language requested by the user. If no language is requested, use the same language as the user's idea.
- Ensure the generated HTML and the CSS within the <style> tag are well-formatted with proper indentation for readability.
- Create modern, responsive, and aesthetically pleasing HTML and CSS.
- The CSS must be included within a single <style> tag in the <head>.
- Use semantic HTML5 tags (e.g., <header>, <main>, <section>, <footer>).
- For images, create placeholders like `<img id="unique-image-id-1" alt="descriptive alt text">` where the image should go.
- The 'id' for each image placeholder must be unique.
- Generate a simple, concise prompt (3-10 words) for each image placeholder. This prompt will be enhanced by another AI later.
- Provide an SEO meta description, meta keywords, and a short favicon prompt.
- Your entire response MUST be a single JSON object that strictly follows the provided schema. Do not include any markdown formatting (like ```json) or any other text outside of the JSON object."""

REFINE_SYSTEM_INSTRUCTION = """\
You are a world-class prompt engineer for generative AI image models. Your task is to take a simple image description and expand it into a detailed, descriptive prompt that will generate a stunning, photo-realistic image.

Focus on these elements:
- **Subject:** Clearly define the main subject and its actions or pose.
- **Setting/Background:** Describe the environment in detail.
- **Lighting:** Specify the type of lighting (e.g., golden hour, soft studio light, dramatic backlighting).
- **Composition:** Use photographic terms (e.g., wide-angle shot, close-up, rule of thirds).
- **Style/Mood:** Define the overall aesthetic (e.g., cinematic, ethereal, hyperrealistic, vintage photo).
- **Details:** Add specific, fine-grained details about textures, colors, and objects.

Keep every image stylistically consistent with the website's core idea.
The final output MUST be only the improved prompt as a single, concise string, without any preamble, labels, or explanation."""

FAVICON_STYLE_PREFIX = (
    "A minimalist flat vector icon, simple bold shapes, centered on a plain "
    "background, suitable as a website favicon: "
)


def build_generation_prompt(request: GenerationRequest) -> str:
    """Compose the user prompt for the structured generation call."""
    lines = [
        f'Generate a website based on this core idea: "{request.idea.strip()}".',
        "",
        "**Website Structure Constraints:**",
        f'- **Page Type:** This should be structured as a "{request.page_type}".',
    ]
    sections = request.normalized_sections()
    if sections:
        lines.append(
            "- **Required Sections:** The website MUST include the following "
            f"sections in a logical order: {', '.join(sections)}."
        )
    lines.append(
        f"- **Image Count:** Generate exactly {request.image_count} unique "
        "placeholder images for the site. Ensure the 'imagePrompts' array in "
        f"your response contains {request.image_count} items."
    )
    if request.language.strip():
        lines.append(
            f"- **Language:** Write all website content in {request.language.strip()}."
        )
    lines.append("")
    lines.append(
        "Respond with ONLY the JSON object, adhering strictly to the provided schema."
    )
    return "\n".join(lines)


def build_refine_prompt(short_prompt: str, idea: str) -> str:
    return (
        f'Website core idea: "{idea.strip()}"\n'
        f'Original prompt: "{short_prompt.strip()}"'
    )


def build_favicon_prompt(prompt: str) -> str:
    return FAVICON_STYLE_PREFIX + prompt.strip()


def _optional_text(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ParseError(f"'{key}' must be a string")
    value = value.strip()
    return value or None


def _required_text(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ParseError(f"Missing or empty '{key}' in model reply")
    return value


def parse_site_draft(data: Any) -> SiteDraft:
    """Validate a decoded structured reply and build a SiteDraft."""
    if not isinstance(data, dict):
        raise ParseError("Model reply must be a JSON object")

    page_title = _required_text(data, "pageTitle").strip()
    html_content = _required_text(data, "htmlContent")

    raw_prompts = data.get("imagePrompts")
    if not isinstance(raw_prompts, list):
        raise ParseError("'imagePrompts' must be an array")

    prompts: List[ImagePromptSpec] = []
    for index, raw in enumerate(raw_prompts):
        if not isinstance(raw, dict):
            raise ParseError(f"imagePrompts[{index}] must be an object")
        placeholder_id = raw.get("id")
        prompt = raw.get("prompt")
        if not isinstance(placeholder_id, str) or not placeholder_id.strip():
            raise ParseError(f"imagePrompts[{index}] has no id")
        if not isinstance(prompt, str):
            raise ParseError(f"imagePrompts[{index}] has no prompt")
        prompts.append(
            ImagePromptSpec(placeholder_id=placeholder_id.strip(), prompt=prompt.strip())
        )

    return SiteDraft(
        page_title=page_title,
        html_content=html_content,
        image_prompts=prompts,
        meta_description=_optional_text(data, "metaDescription"),
        meta_keywords=_optional_text(data, "metaKeywords"),
        favicon_prompt=_optional_text(data, "faviconPrompt"),
    )
