"""Base protocol and wire types for text-generation backends."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

# Quality score assumed when the collaborator answers in plain text.
NEUTRAL_QUALITY_SCORE = 50.0


class GenerationError(RuntimeError):
    """A generation call failed: transport error, HTTP error or unusable payload."""


class GenerationTask(Enum):
    DRAFT = "draft"
    CRITIQUE = "critique"


@dataclass
class ToneProfile:
    formality: str
    emphasis: list[str] = field(default_factory=list)
    avoid: list[str] = field(default_factory=list)


@dataclass
class GenerationContext:
    grant_title: str
    funder: str
    funder_type: str
    amount: str | None = None
    requirements: list[str] = field(default_factory=list)
    user_profile_summary: str = ""
    custom_instructions: str | None = None
    guidance: list[str] = field(default_factory=list)
    draft: str | None = None


@dataclass
class GenerationConstraints:
    tone: ToneProfile
    word_limit: int | None = None


@dataclass
class GenerationRequest:
    """One round trip to the collaborator, for one field."""

    question: str
    context: GenerationContext
    constraints: GenerationConstraints
    task: GenerationTask = GenerationTask.DRAFT


@dataclass
class GenerationResponse:
    content: str
    quality_score: float = NEUTRAL_QUALITY_SCORE
    alternatives: list[str] = field(default_factory=list)
    feedback: list[str] = field(default_factory=list)
    raw_response: str = ""


@runtime_checkable
class GenerationBackend(Protocol):
    """Interface that all text-generation backends must implement."""

    name: str

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Produce content for a single field."""
        ...


DRAFT_SYSTEM_PROMPT = """\
You are an expert grant writer. Given an application question, the grant, \
the applicant's profile and a tone profile, write the applicant's answer.

Respond with valid JSON in this exact format:
{
  "content": "The answer text, ready to paste into the application.",
  "quality_score": 85,
  "alternatives": ["An alternative phrasing of the opening sentence."]
}

Rules:
- Write in the applicant's voice, first person plural.
- Stay within the word limit when one is given.
- Use only facts from the applicant profile; never invent figures or names.
- Set quality_score between 0 and 100 based on how well the available facts support the answer.
- Do not include headings, preambles or commentary outside the JSON.\
"""

CRITIQUE_SYSTEM_PROMPT = """\
You are a grant reviewer. Given an application question and the applicant's \
draft answer, critique the draft and propose a revision.

Respond with valid JSON in this exact format:
{
  "content": "The revised answer text.",
  "quality_score": 70,
  "feedback": ["A specific, actionable suggestion."]
}

Rules:
- quality_score rates the ORIGINAL draft between 0 and 100.
- Give at most six feedback items, most important first.
- Keep the revision within the word limit when one is given.
- Do not add facts that are not present in the draft or the applicant profile.\
"""


def system_prompt_for(task: GenerationTask) -> str:
    return CRITIQUE_SYSTEM_PROMPT if task is GenerationTask.CRITIQUE else DRAFT_SYSTEM_PROMPT


def build_user_message(request: GenerationRequest) -> str:
    """Build the user message from a generation request."""
    ctx = request.context
    tone = request.constraints.tone
    parts = [
        f"Question: {request.question}",
        f"\nGrant: {ctx.grant_title}",
        f"Funder: {ctx.funder} ({ctx.funder_type})",
    ]
    if ctx.amount:
        parts.append(f"Amount: {ctx.amount}")
    if ctx.requirements:
        parts.append("Requirements:\n" + "\n".join(f"- {r}" for r in ctx.requirements))
    if request.constraints.word_limit:
        parts.append(f"Word limit: {request.constraints.word_limit}")
    parts.append(f"\nTone: {tone.formality}")
    if tone.emphasis:
        parts.append("Emphasize: " + "; ".join(tone.emphasis))
    if tone.avoid:
        parts.append("Avoid: " + "; ".join(tone.avoid))
    if ctx.guidance:
        parts.append("A strong answer includes: " + "; ".join(ctx.guidance))
    if ctx.user_profile_summary:
        parts.append(f"\n--- Applicant Profile ---\n{ctx.user_profile_summary}")
    if ctx.custom_instructions:
        parts.append(f"\n--- Additional Instructions ---\n{ctx.custom_instructions}")
    if ctx.draft:
        parts.append(f"\n--- Draft To Review ---\n{ctx.draft}")
    return "\n".join(parts)


def _string_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def parse_generation_payload(raw_text: str, backend_name: str = "backend") -> GenerationResponse:
    """Parse a collaborator's JSON answer into a GenerationResponse.

    Plain-text answers are accepted as content with a neutral quality score.
    JSON that parses but lacks a string ``content`` yields empty content, which
    callers treat as an unusable answer.
    """
    text = raw_text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        text = text.rsplit("```", 1)[0]

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("%s: failed to parse structured response, using raw text: %s", backend_name, exc)
        return GenerationResponse(content=raw_text.strip(), raw_response=raw_text)

    if not isinstance(parsed, dict) or not isinstance(parsed.get("content"), str):
        logger.warning("%s: structured response has no text content", backend_name)
        return GenerationResponse(content="", raw_response=raw_text)

    return GenerationResponse(
        content=parsed["content"],
        quality_score=normalize_quality_score(parsed.get("quality_score")),
        alternatives=_string_list(parsed.get("alternatives")),
        feedback=_string_list(parsed.get("feedback")),
        raw_response=raw_text,
    )


def normalize_quality_score(value: object) -> float:
    """Clamp a reported quality score to 0-100; missing or non-finite scores are neutral."""
    if isinstance(value, bool):
        return NEUTRAL_QUALITY_SCORE
    try:
        score = float(value)
    except (TypeError, ValueError):
        return NEUTRAL_QUALITY_SCORE
    if not math.isfinite(score):
        return NEUTRAL_QUALITY_SCORE
    return min(max(score, 0.0), 100.0)
