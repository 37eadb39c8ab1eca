"""Source resolvers — answer fields from what the organization already told us.

Resolvers are consulted in a fixed trust order (profile, documents, prior
applications) and the first non-empty value wins. Confidences are never
combined across sources.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, runtime_checkable

from autoapply.config import Settings
from autoapply.models.context import (
    ApplicationStatus,
    DocumentExtraction,
    KeyPerson,
    OrganizationProfile,
    PriorApplication,
    UserContext,
)
from autoapply.models.field import NARRATIVE_CATEGORIES, ClassifiedField, FieldCategory
from autoapply.models.result import DocumentInsights, Resolution, ValueSource

logger = logging.getLogger(__name__)

PROFILE_CONFIDENCE = 0.90
DOCUMENT_CONFIDENCE = 0.75
PREVIOUS_CONFIDENCE = 0.65

# contact_info is deliberately absent: one profile attribute cannot answer
# email, phone and address questions alike.
CATEGORY_PROFILE_ATTRIBUTE: dict[FieldCategory, str] = {
    FieldCategory.ORGANIZATION_IDENTITY: "name",
    FieldCategory.MISSION_VISION: "mission",
    FieldCategory.FINANCIAL_HEALTH: "annual_revenue",
    FieldCategory.ORGANIZATIONAL_CAPACITY: "team_size",
    FieldCategory.TEAM_QUALIFICATIONS: "founder_background",
    FieldCategory.PROBLEM_NEED: "problem_statement",
    FieldCategory.SOLUTION_APPROACH: "solution",
    FieldCategory.TARGET_POPULATION: "target_market",
}

# Every keyword in a group must appear as a whole word in the label.
LABEL_PROFILE_ATTRIBUTES: list[tuple[tuple[str, ...], str]] = [
    (("organization", "name"), "name"),
    (("mission",), "mission"),
    (("ein",), "ein"),
    (("tax",), "ein"),
    (("website",), "website"),
    (("url",), "website"),
    (("city",), "city"),
    (("state",), "state"),
]

# category -> (extraction section, attribute, label keyword or None)
DOCUMENT_FIELD_MAP: dict[FieldCategory, list[tuple[str, str, str | None]]] = {
    FieldCategory.ORGANIZATION_IDENTITY: [("organization_info", "name", None)],
    FieldCategory.CERTIFICATIONS: [("organization_info", "ein", None)],
    FieldCategory.CONTACT_INFO: [("organization_info", "address", "address")],
    FieldCategory.FINANCIAL_HEALTH: [
        ("financial_data", "total_revenue", "revenue"),
        ("financial_data", "total_expenses", "budget"),
        ("financial_data", "total_expenses", "expense"),
        ("financial_data", "net_assets", "asset"),
    ],
    FieldCategory.TEAM_QUALIFICATIONS: [("team_data", "key_personnel", None)],
    FieldCategory.ORGANIZATIONAL_CAPACITY: [("team_data", "total_staff", "staff")],
    FieldCategory.GEOGRAPHIC_SCOPE: [("program_data", "geographic_area", None)],
}

REQUIRED_DOCUMENT_TYPES = ("990", "financials", "business_plan")

SUBMITTED_STATUSES = (ApplicationStatus.SUBMITTED, ApplicationStatus.AWARDED)


def _label_has_words(label: str, words: tuple[str, ...]) -> bool:
    return all(re.search(rf"\b{re.escape(word)}\b", label) for word in words)


def _format_value(value: object) -> str | None:
    """Render an extracted value as answer text."""
    if value is None:
        return None
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else f"{value:.2f}"
    if isinstance(value, list):
        parts = []
        for item in value:
            if isinstance(item, KeyPerson):
                line = f"{item.name}, {item.title}"
                if item.qualifications:
                    line += f": {item.qualifications}"
                parts.append(line)
            else:
                parts.append(str(item))
        return "; ".join(parts) or None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class KnowledgeSnapshot:
    """Read-only view of the knowledge sources, taken once per resolution pass."""

    profile: OrganizationProfile | None
    documents: tuple[DocumentExtraction, ...]
    previous_applications: tuple[PriorApplication, ...]
    weight_document_confidence: bool = False

    @classmethod
    def from_context(cls, user_context: UserContext, config: Settings) -> KnowledgeSnapshot:
        documents = tuple(
            doc for doc in user_context.documents
            if doc.confidence > config.min_extraction_confidence
        )
        submitted = [
            app for app in user_context.previous_applications
            if app.status in SUBMITTED_STATUSES
        ]
        submitted.sort(key=lambda app: app.submitted_at or datetime.min, reverse=True)
        return cls(
            profile=user_context.organization,
            documents=documents,
            previous_applications=tuple(submitted[: config.previous_application_limit]),
            weight_document_confidence=config.weight_document_confidence,
        )


@runtime_checkable
class SourceResolver(Protocol):
    source: ValueSource

    def resolve(self, field: ClassifiedField, snapshot: KnowledgeSnapshot) -> Resolution: ...


class ProfileResolver:
    source = ValueSource.PROFILE

    def resolve(self, field: ClassifiedField, snapshot: KnowledgeSnapshot) -> Resolution:
        profile = snapshot.profile
        if profile is None:
            return Resolution(self.source)

        attribute = CATEGORY_PROFILE_ATTRIBUTE.get(field.category)
        if attribute is not None:
            value = profile.get(attribute)
            if value:
                return Resolution(self.source, value, PROFILE_CONFIDENCE, attribute)
            return Resolution(self.source)

        # Narrative questions like "State your goals" must not pick up profile.state.
        if field.category in NARRATIVE_CATEGORIES:
            return Resolution(self.source)

        label = field.label.lower()
        for words, attr in LABEL_PROFILE_ATTRIBUTES:
            if _label_has_words(label, words):
                value = profile.get(attr)
                if value:
                    return Resolution(self.source, value, PROFILE_CONFIDENCE, attr)
        return Resolution(self.source)


class DocumentResolver:
    source = ValueSource.DOCUMENT

    def resolve(self, field: ClassifiedField, snapshot: KnowledgeSnapshot) -> Resolution:
        targets = DOCUMENT_FIELD_MAP.get(field.category)
        if not targets:
            return Resolution(self.source)

        label = field.label.lower()
        for document in snapshot.documents:
            for section_name, attribute, keyword in targets:
                if keyword is not None and keyword not in label:
                    continue
                section = getattr(document, section_name, None)
                if section is None:
                    continue
                value = _format_value(getattr(section, attribute, None))
                if not value:
                    continue
                confidence = DOCUMENT_CONFIDENCE
                if snapshot.weight_document_confidence:
                    confidence *= document.confidence
                return Resolution(
                    self.source, value, confidence, f"{document.name}:{section_name}.{attribute}"
                )
        return Resolution(self.source)


class PreviousApplicationResolver:
    source = ValueSource.PREVIOUS

    def resolve(self, field: ClassifiedField, snapshot: KnowledgeSnapshot) -> Resolution:
        field_id = field.id.lower()
        if not field_id:
            return Resolution(self.source)

        for app in snapshot.previous_applications:
            for key, response in app.responses.items():
                key_lower = key.lower()
                if not key_lower:
                    continue
                if key_lower in field_id or field_id in key_lower:
                    if response and response.strip():
                        return Resolution(
                            self.source, response.strip(), PREVIOUS_CONFIDENCE, f"{app.id}:{key}"
                        )
        return Resolution(self.source)


DEFAULT_RESOLVERS: tuple[SourceResolver, ...] = (
    ProfileResolver(),
    DocumentResolver(),
    PreviousApplicationResolver(),
)


def resolve_field(
    field: ClassifiedField,
    snapshot: KnowledgeSnapshot,
    resolvers: tuple[SourceResolver, ...] = DEFAULT_RESOLVERS,
) -> Resolution | None:
    """Return the first non-empty resolution in resolver order, or None."""
    for resolver in resolvers:
        resolution = resolver.resolve(field, snapshot)
        if resolution.found:
            logger.debug(
                "Resolved %s from %s (%s, confidence %.2f)",
                field.id, resolution.source.value, resolution.origin, resolution.confidence,
            )
            return resolution
    return None


def summarize_documents(user_context: UserContext, config: Settings) -> DocumentInsights:
    used = [
        doc.name for doc in user_context.documents
        if doc.confidence > config.min_extraction_confidence
    ]
    present = {doc.document_type for doc in user_context.documents}
    missing = [doc_type for doc_type in REQUIRED_DOCUMENT_TYPES if doc_type not in present]
    return DocumentInsights(documents_used=used, missing_documents=missing)
