"""Claude generation backend — Anthropic API via httpx."""

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

ANTHROPIC_API_URL = "https://api.anthropic.com/v1/messages"
DEFAULT_MODEL = "claude-opus-4-6"


class ClaudeBackend:
    """Generation backend using Anthropic's Claude API."""

    name: str = "Claude"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.api_key = api_key or settings.anthropic_api_key
        self.model = model or DEFAULT_MODEL
        self.timeout = timeout or settings.generation_timeout

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Generate content for one field via Claude."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    ANTHROPIC_API_URL,
                    headers={
                        "x-api-key": self.api_key,
                        "anthropic-version": "2023-06-01",
                        "content-type": "application/json",
                    },
                    json={
                        "model": self.model,
                        "max_tokens": 4096,
                        "system": system_prompt_for(request.task),
                        "messages": [{"role": "user", "content": build_user_message(request)}],
                    },
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise GenerationError(f"Claude request failed: {exc}") from exc

        data = response.json()
        raw_text = ""
        for block in data.get("content", []):
            if block.get("type") == "text":
                raw_text = block["text"]
                break
        if not raw_text.strip():
            raise GenerationError("Claude returned no text content")
        logger.debug("%s returned %d characters", self.name, len(raw_text))
        return parse_generation_payload(raw_text, self.name)
