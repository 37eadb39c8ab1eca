"""Application field data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class InputKind(Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    SELECT = "select"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    DATE = "date"
    NUMBER = "number"
    FILE = "file"


class LengthUnit(Enum):
    CHARACTERS = "characters"
    WORDS = "words"


class FieldCategory(Enum):
    ORGANIZATION_IDENTITY = "organization_identity"
    ORGANIZATION_BACKGROUND = "organization_background"
    MISSION_VISION = "mission_vision"
    PROBLEM_NEED = "problem_need"
    SOLUTION_APPROACH = "solution_approach"
    TARGET_POPULATION = "target_population"
    GEOGRAPHIC_SCOPE = "geographic_scope"
    PROJECT_DESCRIPTION = "project_description"
    GOALS_OBJECTIVES = "goals_objectives"
    ACTIVITIES_TIMELINE = "activities_timeline"
    OUTCOMES_IMPACT = "outcomes_impact"
    EVALUATION_PLAN = "evaluation_plan"
    TEAM_QUALIFICATIONS = "team_qualifications"
    ORGANIZATIONAL_CAPACITY = "organizational_capacity"
    PARTNERSHIPS = "partnerships"
    BUDGET_SUMMARY = "budget_summary"
    BUDGET_LINE_ITEMS = "budget_line_items"
    BUDGET_JUSTIFICATION = "budget_justification"
    SUSTAINABILITY = "sustainability"
    DIVERSIFIED_FUNDING = "diversified_funding"
    MATCHING_FUNDS = "matching_funds"
    FINANCIAL_HEALTH = "financial_health"
    INNOVATION = "innovation"
    COMMERCIALIZATION = "commercialization"
    INTELLECTUAL_PROPERTY = "intellectual_property"
    RISK_MITIGATION = "risk_mitigation"
    CONTACT_INFO = "contact_info"
    CERTIFICATIONS = "certifications"
    ATTACHMENTS = "attachments"
    REFERENCES = "references"
    OTHER = "other"


class ResponseStrategy(Enum):
    DIRECT = "direct"
    SYNTHESIZE = "synthesize"
    GENERATE = "generate"
    EXTRACT = "extract"


# Inputs that hold a structured choice or a file, never prose.
STRUCTURED_INPUTS = frozenset(
    {
        InputKind.SELECT,
        InputKind.CHECKBOX,
        InputKind.RADIO,
        InputKind.DATE,
        InputKind.NUMBER,
        InputKind.FILE,
    }
)

NARRATIVE_CATEGORIES = frozenset(
    {
        FieldCategory.PROBLEM_NEED,
        FieldCategory.SOLUTION_APPROACH,
        FieldCategory.PROJECT_DESCRIPTION,
        FieldCategory.OUTCOMES_IMPACT,
        FieldCategory.EVALUATION_PLAN,
        FieldCategory.TEAM_QUALIFICATIONS,
        FieldCategory.ORGANIZATIONAL_CAPACITY,
        FieldCategory.SUSTAINABILITY,
        FieldCategory.INNOVATION,
        FieldCategory.COMMERCIALIZATION,
        FieldCategory.ORGANIZATION_BACKGROUND,
        FieldCategory.MISSION_VISION,
        FieldCategory.BUDGET_JUSTIFICATION,
        FieldCategory.GOALS_OBJECTIVES,
        FieldCategory.ACTIVITIES_TIMELINE,
        FieldCategory.RISK_MITIGATION,
        FieldCategory.TARGET_POPULATION,
    }
)


def needs_generation(input_kind: InputKind, category: FieldCategory) -> bool:
    """Whether a field of this kind and category must be authored as prose."""
    if input_kind in STRUCTURED_INPUTS:
        return False
    return category in NARRATIVE_CATEGORIES


@dataclass
class Field:
    """A single application question as it appears on a form or template."""

    id: str
    label: str
    input_kind: InputKind = InputKind.TEXTAREA
    required: bool = False
    max_length: int | None = None
    length_unit: LengthUnit = LengthUnit.CHARACTERS
    instructions: str = ""
    options: list[str] = field(default_factory=list)

    @property
    def word_limit(self) -> int | None:
        if self.max_length is not None and self.length_unit is LengthUnit.WORDS:
            return self.max_length
        return None

    @property
    def word_budget(self) -> int | None:
        """Approximate word budget; character limits count five characters a word."""
        if self.max_length is None:
            return None
        if self.length_unit is LengthUnit.WORDS:
            return self.max_length
        return max(self.max_length // 5, 1)

    @property
    def character_limit(self) -> int | None:
        if self.max_length is not None and self.length_unit is LengthUnit.CHARACTERS:
            return self.max_length
        return None

    @property
    def accepts_prose(self) -> bool:
        return self.input_kind in (InputKind.TEXT, InputKind.TEXTAREA)


@dataclass
class ClassifiedField:
    """A field with its semantic category and derived routing flags."""

    definition: Field
    category: FieldCategory
    strategy: ResponseStrategy = ResponseStrategy.GENERATE
    looking_for: list[str] = field(default_factory=list)
    red_flags: list[str] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.definition.id

    @property
    def label(self) -> str:
        return self.definition.label

    @property
    def required(self) -> bool:
        return self.definition.required

    @property
    def needs_generation(self) -> bool:
        return needs_generation(self.definition.input_kind, self.category)
