"""Resolution, validation and aggregate result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


class ValueSource(Enum):
    PROFILE = "profile"
    DOCUMENT = "document"
    PREVIOUS = "previous"
    GENERATED = "generated"


class ReadinessLevel(Enum):
    READY = "ready"
    NEEDS_WORK = "needs_work"
    NOT_READY = "not_ready"


@dataclass
class ValidationIssue:
    severity: Severity
    code: str
    message: str


@dataclass
class ValidationResult:
    """Heuristic verdict on one field's content.

    ``is_valid`` is derived from the issues, never from the score: a single
    error makes the content invalid however well it otherwise scores.
    """

    score: int
    issues: list[ValidationIssue] = field(default_factory=list)
    improvements: list[str] = field(default_factory=list)
    strengths: list[str] = field(default_factory=list)
    word_count: int = 0

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity is Severity.WARNING]

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass
class Resolution:
    """What a single source resolver found for a field."""

    source: ValueSource
    value: str | None = None
    confidence: float = 0.0
    origin: str = ""

    @property
    def found(self) -> bool:
        return bool(self.value and self.value.strip())


@dataclass
class ResolvedValue:
    """The engine's recorded answer for one field, with a single attributed source."""

    field_id: str
    value: str
    confidence: float
    source: ValueSource
    validation: ValidationResult
    alternatives: list[str] = field(default_factory=list)
    needs_user_input: bool = False
    user_input_prompt: str | None = None

    @property
    def is_complete(self) -> bool:
        return bool(self.value.strip()) and not self.needs_user_input


@dataclass
class UserInputRequest:
    """A field the engine could not answer, with what the user should supply."""

    field_id: str
    label: str
    prompt: str
    required: bool = False


@dataclass
class DocumentInsights:
    documents_used: list[str] = field(default_factory=list)
    missing_documents: list[str] = field(default_factory=list)


@dataclass
class ApplicationSnapshot:
    """Application-level metrics, always recomputed in full from field state."""

    completion_percentage: int
    overall_confidence: int
    missing_requirements: list[str]
    readiness_level: ReadinessLevel
    total_fields: int = 0
    completed_fields: int = 0
    high_confidence_fields: int = 0
    needs_review_fields: int = 0
    critical_issues: list[str] = field(default_factory=list)
    improvements: list[str] = field(default_factory=list)
    summary: str = ""


@dataclass
class FieldImprovement:
    """Outcome of an on-demand, collaborator-assisted review of one field."""

    field_id: str
    score: int
    suggestions: list[str] = field(default_factory=list)
    feedback: str = ""
    revised_content: str | None = None
