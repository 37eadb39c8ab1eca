"""Auto-apply engine — the caller-facing surface and in-memory draft state."""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field

from autoapply.analysis.aggregator import aggregate
from autoapply.analysis.classifier import analyze_fields
from autoapply.analysis.resolvers import KnowledgeSnapshot, resolve_field, summarize_documents
from autoapply.analysis.templates import select_template
from autoapply.analysis.validation import improvement_suggestions, validate_for
from autoapply.backends.base import GenerationBackend, GenerationError, normalize_quality_score
from autoapply.config import Settings, settings
from autoapply.models.context import GrantContext, UserContext
from autoapply.models.field import ClassifiedField, Field
from autoapply.models.result import (
    ApplicationSnapshot,
    DocumentInsights,
    FieldImprovement,
    Resolution,
    ResolvedValue,
    UserInputRequest,
    ValidationResult,
)
from autoapply.orchestrator.dispatcher import GenerationDispatcher
from autoapply.orchestrator.narrative import (
    apply_generation_response,
    build_critique_request,
    build_generation_request,
    clean_response,
    user_input_prompt,
    user_input_request,
)

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 6


class DraftNotFoundError(KeyError):
    pass


class FieldNotFoundError(KeyError):
    pass


@dataclass
class ApplicationDraft:
    """One resolved application: fields, current values and the derived snapshot."""

    id: str
    grant: GrantContext
    user_context: UserContext
    fields: list[ClassifiedField]
    values: dict[str, ResolvedValue] = field(default_factory=dict)
    input_requests: dict[str, UserInputRequest] = field(default_factory=dict)
    insights: DocumentInsights = field(default_factory=DocumentInsights)
    template_key: str | None = None
    snapshot: ApplicationSnapshot | None = None
    _locks: dict[str, asyncio.Lock] = field(default_factory=dict, repr=False)

    def get_field(self, field_id: str) -> ClassifiedField:
        for f in self.fields:
            if f.id == field_id:
                return f
        raise FieldNotFoundError(field_id)

    def lock_for(self, field_id: str) -> asyncio.Lock:
        if field_id not in self._locks:
            self._locks[field_id] = asyncio.Lock()
        return self._locks[field_id]

    def refresh_snapshot(self) -> ApplicationSnapshot:
        self.snapshot = aggregate(self.fields, self.values)
        return self.snapshot


class AutoApplyEngine:
    """Resolves grant applications field by field.

    The generation backend is injected so tests can drive the engine with a
    scripted fake. Drafts live in memory for the lifetime of the engine.
    """

    def __init__(self, backend: GenerationBackend, config: Settings | None = None) -> None:
        self.backend = backend
        self.config = config or settings
        self.dispatcher = GenerationDispatcher(
            backend,
            concurrency=self.config.generation_concurrency,
            timeout=self.config.generation_timeout,
        )
        self._drafts: dict[str, ApplicationDraft] = {}

    def analyze_fields(self, fields: list[Field]) -> list[ClassifiedField]:
        return analyze_fields(fields)

    def select_template(self, grant: GrantContext) -> tuple[str, list[Field]]:
        return select_template(grant)

    def get_draft(self, draft_id: str) -> ApplicationDraft:
        try:
            return self._drafts[draft_id]
        except KeyError:
            raise DraftNotFoundError(draft_id) from None

    async def resolve_application(
        self,
        fields: list[Field] | None,
        user_context: UserContext,
        grant: GrantContext,
    ) -> ApplicationDraft:
        """Resolve every field of an application and store the resulting draft.

        With no live form fields the template registry supplies them. Field
        failures degrade to user-input requests; this never raises for them.
        """
        template_key = None
        if not fields:
            template_key, fields = select_template(grant)

        seen: set[str] = set()
        for f in fields:
            if f.id in seen:
                raise ValueError(f"Duplicate field id: {f.id}")
            seen.add(f.id)

        classified = analyze_fields(fields)
        knowledge = KnowledgeSnapshot.from_context(user_context, self.config)

        values: dict[str, ResolvedValue] = {}
        requests: dict[str, UserInputRequest] = {}
        candidates: dict[str, Resolution] = {}
        pending: list[ClassifiedField] = []

        for f in classified:
            resolution = resolve_field(f, knowledge)
            if resolution is not None and resolution.confidence >= self.config.confidence_floor:
                values[f.id] = self._accept(f, resolution)
                continue
            if resolution is not None:
                candidates[f.id] = resolution
            if f.needs_generation:
                pending.append(f)
            else:
                self._leave_for_user(f, candidates.get(f.id), values, requests)

        logger.info(
            "Resolved %d of %d fields from known sources, %d queued for generation",
            len(values), len(classified), len(pending),
        )

        if pending:
            outcome = await self.dispatcher.dispatch(
                [(f.id, build_generation_request(f, grant, user_context)) for f in pending]
            )
            for f in pending:
                value = apply_generation_response(f, outcome.responses.get(f.id))
                if value is not None:
                    values[f.id] = value
                    continue
                reason = outcome.failures.get(f.id, "the generated answer was empty or unusable")
                logger.warning("Field %s needs user input: %s", f.id, reason)
                self._leave_for_user(f, candidates.get(f.id), values, requests, reason)

        draft = ApplicationDraft(
            id=uuid.uuid4().hex,
            grant=grant,
            user_context=user_context,
            fields=classified,
            values=values,
            input_requests=requests,
            insights=summarize_documents(user_context, self.config),
            template_key=template_key,
        )
        draft.refresh_snapshot()
        self._drafts[draft.id] = draft
        logger.info("Draft %s created for %r", draft.id, grant.title)
        return draft

    async def regenerate_field(
        self,
        draft_id: str,
        field_id: str,
        custom_instructions: str | None = None,
    ) -> ResolvedValue:
        """Regenerate one prose field; stored state is untouched if generation fails."""
        draft = self.get_draft(draft_id)
        f = draft.get_field(field_id)
        if not f.definition.accepts_prose:
            raise ValueError(f"Field {field_id} takes a {f.definition.input_kind.value} input and cannot be generated")

        async with draft.lock_for(field_id):
            request = build_generation_request(f, draft.grant, draft.user_context, custom_instructions)
            response = await self.dispatcher.generate(request)
            value = apply_generation_response(f, response)
            if value is None:
                raise GenerationError(f"Generated answer for {field_id} was empty or unusable")
            draft.values[field_id] = value
            draft.input_requests.pop(field_id, None)
            draft.refresh_snapshot()

        logger.info("Regenerated %s in draft %s", field_id, draft_id)
        return value

    def validate_field(self, draft_id: str, field_id: str, content: str) -> ValidationResult:
        draft = self.get_draft(draft_id)
        return validate_for(draft.get_field(field_id), content)

    async def improve_field(
        self,
        draft_id: str,
        field_id: str,
        content: str | None = None,
    ) -> FieldImprovement:
        """Review one field with the heuristics and a backend critique.

        The critique is best effort: if it fails the heuristic score and
        suggestions are returned alone.
        """
        draft = self.get_draft(draft_id)
        f = draft.get_field(field_id)
        if content is None:
            current = draft.values.get(field_id)
            content = current.value if current is not None else ""
        if not content.strip():
            raise ValueError(f"Field {field_id} has no content to improve")

        heuristic = validate_for(f, content)
        suggestions = heuristic.improvements + improvement_suggestions(f.category, heuristic.score)
        score = heuristic.score
        revised = None
        try:
            response = await self.dispatcher.generate(
                build_critique_request(f, draft.grant, draft.user_context, content)
            )
        except GenerationError as exc:
            logger.warning("Critique for %s failed, using heuristics only: %s", field_id, exc)
            feedback = "Automated review unavailable; showing heuristic suggestions only."
        else:
            suggestions = response.feedback + suggestions
            score = round(normalize_quality_score(response.quality_score))
            if isinstance(response.content, str):
                revised = clean_response(response.content, f.definition) or None
            feedback = f"Reviewed by {self.backend.name}."

        unique: list[str] = []
        for suggestion in suggestions:
            if suggestion not in unique:
                unique.append(suggestion)
        return FieldImprovement(
            field_id=field_id,
            score=score,
            suggestions=unique[:MAX_SUGGESTIONS],
            feedback=feedback,
            revised_content=revised,
        )

    def _accept(self, f: ClassifiedField, resolution: Resolution) -> ResolvedValue:
        return ResolvedValue(
            field_id=f.id,
            value=resolution.value or "",
            confidence=resolution.confidence,
            source=resolution.source,
            validation=validate_for(f, resolution.value or ""),
        )

    def _leave_for_user(
        self,
        f: ClassifiedField,
        candidate: Resolution | None,
        values: dict[str, ResolvedValue],
        requests: dict[str, UserInputRequest],
        reason: str | None = None,
    ) -> None:
        """Record a user-input request, keeping any low-confidence candidate for confirmation."""
        if candidate is not None:
            value = self._accept(f, candidate)
            value.needs_user_input = True
            value.user_input_prompt = user_input_prompt(f, reason or "the best match found needs your confirmation")
            values[f.id] = value
        requests[f.id] = user_input_request(f, reason)
