"""Grok generation backend — xAI API (OpenAI-compatible)."""

from __future__ import annotations

import logging

import httpx

from autoapply.backends.base import (
    GenerationError,
    GenerationRequest,
    GenerationResponse,
    build_user_message,
    parse_generation_payload,
    system_prompt_for,
)
from autoapply.config import settings

logger = logging.getLogger(__name__)

XAI_API_URL = "https://api.x.ai/v1/chat/completions"
DEFAULT_MODEL = "grok-4-1-fast"


class GrokBackend:
    """Generation backend using xAI's Grok API."""

    name: str = "Grok"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.api_key = api_key or settings.xai_api_key
        self.model = model or DEFAULT_MODEL
        self.timeout = timeout or settings.generation_timeout

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    XAI_API_URL,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "model": self.model,
                        "messages": [
                            {"role": "system", "content": system_prompt_for(request.task)},
                            {"role": "user", "content": build_user_message(request)},
                        ],
                        "temperature": 0.7,
                    },
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise GenerationError(f"Grok request failed: {exc}") from exc

        data = response.json()
        try:
            raw_text = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as exc:
            raise GenerationError(f"Grok returned an unexpected payload: {exc}") from exc
        if not raw_text.strip():
            raise GenerationError("Grok returned no text content")
        logger.debug("%s returned %d characters", self.name, len(raw_text))
        return parse_generation_payload(raw_text, self.name)
