"""Auto-apply — FastAPI application entry point."""

from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, HTTPException
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel

from autoapply.backends.base import GenerationBackend, GenerationError
from autoapply.backends.claude import ClaudeBackend
from autoapply.backends.grok import GrokBackend
from autoapply.config import Settings, settings
from autoapply.models.context import GrantContext, UserContext
from autoapply.models.field import ClassifiedField, Field
from autoapply.models.result import ResolvedValue, ValidationResult
from autoapply.orchestrator.engine import (
    ApplicationDraft,
    AutoApplyEngine,
    DraftNotFoundError,
    FieldNotFoundError,
)

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Auto-Apply",
    description="Grant application resolution and validation engine",
    version="0.1.0",
)


def build_backend(config: Settings = settings) -> GenerationBackend:
    """Build the configured text-generation backend."""
    model = config.generation_model or None
    name = config.generation_backend.lower()
    if name == "claude":
        return ClaudeBackend(model=model, timeout=config.generation_timeout)
    if name == "grok":
        return GrokBackend(model=model, timeout=config.generation_timeout)
    raise ValueError(f"Unknown generation backend: {config.generation_backend}")


_engine: AutoApplyEngine | None = None


def get_engine() -> AutoApplyEngine:
    global _engine
    if _engine is None:
        backend = build_backend()
        logger.info("Using %s generation backend", backend.name)
        _engine = AutoApplyEngine(backend)
    return _engine


# --- Request models ---


class AnalyzeRequest(BaseModel):
    fields: list[Field]


class TemplateRequest(BaseModel):
    grant: GrantContext


class ResolveRequest(BaseModel):
    grant: GrantContext
    fields: list[Field] = []
    user_context: UserContext | None = None


class RegenerateRequest(BaseModel):
    custom_instructions: str | None = None


class ValidateRequest(BaseModel):
    content: str


class ImproveRequest(BaseModel):
    content: str | None = None


# --- Serialization ---


def serialize_validation(result: ValidationResult) -> dict:
    data = jsonable_encoder(result)
    data["is_valid"] = result.is_valid
    return data


def serialize_value(value: ResolvedValue) -> dict:
    data = jsonable_encoder(value)
    data["validation"] = serialize_validation(value.validation)
    data["is_complete"] = value.is_complete
    return data


def serialize_classified(field: ClassifiedField) -> dict:
    definition = field.definition
    return {
        "id": field.id,
        "label": field.label,
        "input_kind": definition.input_kind.value,
        "required": field.required,
        "max_length": definition.max_length,
        "length_unit": definition.length_unit.value,
        "word_budget": definition.word_budget,
        "category": field.category.value,
        "strategy": field.strategy.value,
        "needs_generation": field.needs_generation,
        "looking_for": field.looking_for,
        "red_flags": field.red_flags,
    }


def serialize_draft(draft: ApplicationDraft) -> dict:
    return {
        "draft_id": draft.id,
        "template_key": draft.template_key,
        "grant_title": draft.grant.title,
        "fields": [serialize_classified(f) for f in draft.fields],
        "values": {field_id: serialize_value(v) for field_id, v in draft.values.items()},
        "input_requests": jsonable_encoder(list(draft.input_requests.values())),
        "snapshot": jsonable_encoder(draft.snapshot),
        "document_insights": jsonable_encoder(draft.insights),
    }


def _lookup_error(exc: KeyError) -> HTTPException:
    kind = "Draft" if isinstance(exc, DraftNotFoundError) else "Field"
    return HTTPException(status_code=404, detail=f"{kind} not found: {exc.args[0]}")


# --- Routes ---


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/api/fields/analyze")
async def analyze_fields(req: AnalyzeRequest, engine: AutoApplyEngine = Depends(get_engine)):
    return {"fields": [serialize_classified(f) for f in engine.analyze_fields(req.fields)]}


@app.post("/api/templates/select")
async def select_template(req: TemplateRequest, engine: AutoApplyEngine = Depends(get_engine)):
    key, fields = engine.select_template(req.grant)
    return {"template_key": key, "fields": jsonable_encoder(fields)}


@app.post("/api/applications/resolve")
async def resolve_application(req: ResolveRequest, engine: AutoApplyEngine = Depends(get_engine)):
    """Resolve every field of an application and return the stored draft."""
    try:
        draft = await engine.resolve_application(req.fields, req.user_context or UserContext(), req.grant)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return serialize_draft(draft)


@app.get("/api/applications/{draft_id}")
async def get_application(draft_id: str, engine: AutoApplyEngine = Depends(get_engine)):
    try:
        draft = engine.get_draft(draft_id)
    except DraftNotFoundError as exc:
        raise _lookup_error(exc)
    return serialize_draft(draft)


@app.post("/api/applications/{draft_id}/fields/{field_id}/regenerate")
async def regenerate_field(
    draft_id: str,
    field_id: str,
    req: RegenerateRequest,
    engine: AutoApplyEngine = Depends(get_engine),
):
    try:
        value = await engine.regenerate_field(draft_id, field_id, req.custom_instructions)
    except (DraftNotFoundError, FieldNotFoundError) as exc:
        raise _lookup_error(exc)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except GenerationError as exc:
        logger.error("Regeneration of %s failed: %s", field_id, exc)
        raise HTTPException(status_code=502, detail=str(exc))
    snapshot = engine.get_draft(draft_id).snapshot
    return {"value": serialize_value(value), "snapshot": jsonable_encoder(snapshot)}


@app.post("/api/applications/{draft_id}/fields/{field_id}/validate")
async def validate_field(
    draft_id: str,
    field_id: str,
    req: ValidateRequest,
    engine: AutoApplyEngine = Depends(get_engine),
):
    try:
        result = engine.validate_field(draft_id, field_id, req.content)
    except (DraftNotFoundError, FieldNotFoundError) as exc:
        raise _lookup_error(exc)
    return serialize_validation(result)


@app.post("/api/applications/{draft_id}/fields/{field_id}/improve")
async def improve_field(
    draft_id: str,
    field_id: str,
    req: ImproveRequest,
    engine: AutoApplyEngine = Depends(get_engine),
):
    try:
        improvement = await engine.improve_field(draft_id, field_id, req.content)
    except (DraftNotFoundError, FieldNotFoundError) as exc:
        raise _lookup_error(exc)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return jsonable_encoder(improvement)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("autoapply.main:app", host=settings.host, port=settings.port)
