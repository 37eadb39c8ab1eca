"""Narrative coordinator — packages fields for the generation backend and
turns its answers back into resolved values.

A bad answer is never an exception here: ``apply_generation_response`` returns
None and the caller decides how to surface the field to the user.
"""

from __future__ import annotations

import logging
import re

from autoapply.analysis.validation import validate_for
from autoapply.backends.base import (
    GenerationConstraints,
    GenerationContext,
    GenerationRequest,
    GenerationResponse,
    GenerationTask,
    ToneProfile,
    normalize_quality_score,
)
from autoapply.models.context import FunderType, GrantContext, UserContext
from autoapply.models.field import ClassifiedField, Field
from autoapply.models.result import ResolvedValue, UserInputRequest, ValueSource

logger = logging.getLogger(__name__)

FUNDER_TONE: dict[FunderType, ToneProfile] = {
    FunderType.FEDERAL: ToneProfile(
        formality="Technical, rigorous, and methodologically detailed",
        emphasis=[
            "Innovation and scientific merit",
            "Broader impacts",
            "Clear methodology and timeline",
            "Measurable outcomes",
            "Alignment with agency priorities",
        ],
        avoid=["Vague claims without evidence", "Marketing language", "Emotional appeals", "Undefined acronyms"],
    ),
    FunderType.FOUNDATION: ToneProfile(
        formality="Mission-driven storytelling with impact focus",
        emphasis=[
            "Connection to foundation mission",
            "Human impact and stories",
            "Sustainability plan",
            "Community engagement",
            "Outcomes over outputs",
        ],
        avoid=["Overly technical jargon", "Ignoring foundation priorities", "Short-term thinking only"],
    ),
    FunderType.CORPORATE: ToneProfile(
        formality="Business-oriented with ROI focus",
        emphasis=["Return on investment", "Scalability", "Brand alignment", "Measurable metrics", "Market potential"],
        avoid=["Academic language", "Ignoring business value", "Unrealistic projections"],
    ),
    FunderType.STATE: ToneProfile(
        formality="Local impact focused with practical applications",
        emphasis=[
            "State and local benefits",
            "Job creation",
            "Economic development",
            "Partnerships with local organizations",
        ],
        avoid=["Ignoring local context", "Generic approaches", "Missing state-specific requirements"],
    ),
}

PREAMBLE_PATTERN = re.compile(r"^(here is|here's|based on|i've written|let me|sure,)[^.]*\.\s*", re.IGNORECASE)
BLANK_LINES = re.compile(r"\n{3,}")
# Only cut back to a sentence end when that keeps most of the text.
SENTENCE_KEEP_RATIO = 0.7

PROFILE_SUMMARY_FIELDS = [
    ("Organization", "name"),
    ("Type", "type"),
    ("Legal structure", "legal_structure"),
    ("Location", None),
    ("Mission", "mission"),
    ("Vision", "vision"),
    ("Problem", "problem_statement"),
    ("Solution", "solution"),
    ("Target market", "target_market"),
    ("Team size", "team_size"),
    ("Founder background", "founder_background"),
    ("Annual revenue", "annual_revenue"),
    ("Funding sought", "funding_seeking"),
    ("Previous funding", "previous_funding"),
]


def summarize_user_context(user_context: UserContext) -> str:
    """Plain-text digest of the applicant's profile, documents and history."""
    lines: list[str] = []
    org = user_context.organization
    if org is not None:
        for label, attribute in PROFILE_SUMMARY_FIELDS:
            if attribute is None:
                location = ", ".join(part for part in (org.get("city"), org.get("state")) if part)
                if location:
                    lines.append(f"{label}: {location}")
                continue
            value = org.get(attribute)
            if value:
                lines.append(f"{label}: {value}")

    for doc in user_context.documents:
        if doc.team_data and doc.team_data.key_personnel:
            people = "; ".join(f"{p.name} ({p.title})" for p in doc.team_data.key_personnel)
            lines.append(f"Key personnel (from {doc.name}): {people}")
        if doc.program_data and doc.program_data.program_names:
            lines.append(f"Programs (from {doc.name}): {', '.join(doc.program_data.program_names)}")
        if doc.financial_data and doc.financial_data.total_revenue is not None:
            lines.append(f"Total revenue (from {doc.name}): {doc.financial_data.total_revenue:,.0f}")

    titles = [app.grant_title for app in user_context.previous_applications if app.grant_title]
    if titles:
        lines.append(f"Previous applications: {', '.join(titles[:5])}")
    return "\n".join(lines)


def _question(field: ClassifiedField) -> str:
    instructions = field.definition.instructions.strip()
    return f"{field.label}\n{instructions}" if instructions else field.label


def build_generation_request(
    field: ClassifiedField,
    grant: GrantContext,
    user_context: UserContext,
    custom_instructions: str | None = None,
) -> GenerationRequest:
    funder_type = grant.funder_type
    return GenerationRequest(
        question=_question(field),
        context=GenerationContext(
            grant_title=grant.title,
            funder=grant.funder,
            funder_type=funder_type.value,
            amount=grant.amount,
            requirements=list(grant.requirements),
            user_profile_summary=summarize_user_context(user_context),
            custom_instructions=custom_instructions,
            guidance=list(field.looking_for),
        ),
        constraints=GenerationConstraints(
            tone=FUNDER_TONE[funder_type],
            word_limit=field.definition.word_budget,
        ),
    )


def build_critique_request(
    field: ClassifiedField,
    grant: GrantContext,
    user_context: UserContext,
    content: str,
) -> GenerationRequest:
    request = build_generation_request(field, grant, user_context)
    request.context.draft = content
    request.task = GenerationTask.CRITIQUE
    return request


def clean_response(text: str, definition: Field) -> str:
    """Strip assistant preambles and fit the text to the field's limits."""
    cleaned = (text or "").strip()
    cleaned = PREAMBLE_PATTERN.sub("", cleaned, count=1)
    cleaned = BLANK_LINES.sub("\n\n", cleaned).strip()

    limit = definition.character_limit
    if limit and len(cleaned) > limit:
        cleaned = cleaned[: max(limit - 3, 0)].rstrip() + "..."

    word_limit = definition.word_limit
    if word_limit:
        words = cleaned.split()
        if len(words) > word_limit:
            truncated = " ".join(words[:word_limit])
            last_stop = truncated.rfind(".")
            if last_stop > len(truncated) * SENTENCE_KEEP_RATIO:
                truncated = truncated[: last_stop + 1]
            cleaned = truncated
    return cleaned


def apply_generation_response(
    field: ClassifiedField, response: GenerationResponse | None
) -> ResolvedValue | None:
    """Turn a backend answer into a generated value, or None if it is unusable."""
    if response is None or not isinstance(response.content, str):
        return None
    content = clean_response(response.content, field.definition)
    if not content:
        logger.warning("Empty generated content for %s", field.id)
        return None

    alternatives = [
        alt
        for alt in (clean_response(a, field.definition) for a in response.alternatives or [] if isinstance(a, str))
        if alt
    ]
    confidence = normalize_quality_score(response.quality_score) / 100
    return ResolvedValue(
        field_id=field.id,
        value=content,
        confidence=confidence,
        source=ValueSource.GENERATED,
        validation=validate_for(field, content),
        alternatives=alternatives,
    )


def user_input_prompt(field: ClassifiedField, reason: str | None = None) -> str:
    parts = [f'Please provide an answer for "{field.label}".']
    if reason:
        parts.append(f"We could not fill it automatically: {reason}.")
    else:
        parts.append("None of your profile, documents or previous applications covered it.")
    if field.looking_for:
        parts.append("Reviewers look for: " + "; ".join(field.looking_for) + ".")
    return " ".join(parts)


def user_input_request(field: ClassifiedField, reason: str | None = None) -> UserInputRequest:
    return UserInputRequest(
        field_id=field.id,
        label=field.label,
        prompt=user_input_prompt(field, reason),
        required=field.required,
    )
