"""Client for the generative text and image models.

Talks to the Gemini REST API with ``httpx``. Three calls are exposed:

- ``generate_structured``: JSON reply constrained by a response schema
- ``generate_text``: free-form reply, trimmed
- ``generate_image``: one encoded image, returned as a ``data:`` reference

Example usage::

    from sitegen.config import load_settings
    from sitegen.genai import GenAIClient

    client = GenAIClient(load_settings())
    text = await client.generate_text("Say hi", system_instruction="Be brief.")
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import httpx

from .config import GeneratorSettings
from .errors import GenAIError, ParseError

LOGGER = logging.getLogger(__name__)

_BLOCKING_FINISH_REASONS = frozenset(
    {"SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII", "IMAGE_SAFETY"}
)


def _get_genai_client(settings: GeneratorSettings) -> httpx.AsyncClient:
    """Create an httpx async client for the model API."""
    return httpx.AsyncClient(
        base_url=settings.api_url,
        headers={
            "Accept": "application/json",
            "Content-Type": "application/json",
            "x-goog-api-key": settings.api_key or "",
        },
        timeout=settings.timeout,
    )


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            status = error.get("status")
            message = error.get("message") or ""
            return f"{status}: {message}" if status else message
    return response.text


def _extract_text(data: Dict[str, Any], model: str) -> str:
    feedback = data.get("promptFeedback") or {}
    if feedback.get("blockReason"):
        raise GenAIError(
            f"Prompt blocked by safety filters ({feedback['blockReason']})",
            model=model,
        )

    candidates = data.get("candidates") or []
    if not candidates:
        raise ParseError(f"Model {model} returned no candidates")

    candidate = candidates[0] or {}
    finish_reason = candidate.get("finishReason")
    parts = (candidate.get("content") or {}).get("parts") or []
    text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
    if not text and finish_reason in _BLOCKING_FINISH_REASONS:
        raise GenAIError(
            f"Reply blocked by safety filters ({finish_reason})", model=model
        )
    return text


class GenAIClient:
    """Async client for the text-generation and image-generation models."""

    def __init__(self, settings: GeneratorSettings):
        self.settings = settings

    async def _post(self, model: str, method: str, body: Dict[str, Any]) -> Dict[str, Any]:
        if not self.settings.api_key:
            raise GenAIError(
                "No API key configured. Set GEMINI_API_KEY.",
                status_code=401,
                model=model,
            )

        path = f"/v1beta/models/{model}:{method}"
        try:
            async with _get_genai_client(self.settings) as client:
                response = await client.post(path, json=body)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code
            raise GenAIError(
                f"Model API error: {status_code} - {_error_detail(exc.response)}",
                status_code=status_code,
                model=model,
            ) from exc
        except httpx.RequestError as exc:
            raise GenAIError(f"Request failed: {exc}", model=model) from exc
        except ValueError as exc:
            raise ParseError(f"Model API returned a non-JSON body: {exc}") from exc

        if not isinstance(data, dict):
            raise ParseError("Model API returned an unexpected body")
        return data

    async def generate_structured(
        self,
        prompt: str,
        *,
        system_instruction: str,
        schema: Dict[str, Any],
        temperature: float = 0.2,
    ) -> Dict[str, Any]:
        """Generate a JSON reply constrained by *schema* and decode it."""
        model = self.settings.text_model
        body = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "systemInstruction": {"parts": [{"text": system_instruction}]},
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": schema,
                "temperature": temperature,
            },
        }
        LOGGER.debug("Structured generation with %s", model)
        data = await self._post(model, "generateContent", body)
        text = _extract_text(data, model)

        try:
            decoded = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ParseError(f"Model reply is not valid JSON: {exc}") from exc
        if not isinstance(decoded, dict):
            raise ParseError("Model reply is not a JSON object")
        return decoded

    async def generate_text(
        self,
        prompt: str,
        *,
        system_instruction: str,
        temperature: float = 0.5,
        thinking_budget: Optional[int] = 0,
    ) -> str:
        """Generate a free-form reply and return it trimmed."""
        model = self.settings.text_model
        generation_config: Dict[str, Any] = {"temperature": temperature}
        if thinking_budget is not None:
            generation_config["thinkingConfig"] = {"thinkingBudget": thinking_budget}
        body = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "systemInstruction": {"parts": [{"text": system_instruction}]},
            "generationConfig": generation_config,
        }
        data = await self._post(model, "generateContent", body)
        text = _extract_text(data, model).strip()
        if not text:
            raise ParseError(f"Model {model} returned an empty reply")
        return text

    async def generate_image(
        self,
        prompt: str,
        *,
        aspect_ratio: str = "16:9",
        mime_type: str = "image/jpeg",
    ) -> str:
        """Render one image and return it as a ``data:`` reference."""
        model = self.settings.image_model
        body = {
            "instances": [{"prompt": prompt}],
            "parameters": {
                "sampleCount": 1,
                "aspectRatio": aspect_ratio,
                "outputOptions": {"mimeType": mime_type},
            },
        }
        data = await self._post(model, "predict", body)

        predictions = data.get("predictions") or []
        for prediction in predictions:
            if not isinstance(prediction, dict):
                continue
            encoded = prediction.get("bytesBase64Encoded")
            if encoded:
                returned_mime = prediction.get("mimeType") or mime_type
                return f"data:{returned_mime};base64,{encoded}"

        reason = ""
        for prediction in predictions:
            if isinstance(prediction, dict) and prediction.get("raiFilteredReason"):
                reason = str(prediction["raiFilteredReason"])
                break
        if reason:
            raise GenAIError(f"Image blocked by safety filters: {reason}", model=model)
        raise GenAIError(f"Model {model} returned no image", model=model)
