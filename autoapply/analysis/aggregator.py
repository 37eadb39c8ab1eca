"""Application aggregator — full, side-effect-free recompute of the snapshot."""

from __future__ import annotations

import logging

from autoapply.models.field import ClassifiedField, FieldCategory
from autoapply.models.result import ApplicationSnapshot, ReadinessLevel, ResolvedValue

logger = logging.getLogger(__name__)

READY_COMPLETION = 80
NOT_READY_COMPLETION = 40
HIGH_CONFIDENCE = 0.75
REVIEW_CONFIDENCE = 0.6
MAX_IMPROVEMENTS = 5


def readiness(completion: int, missing: list[str], has_errors: bool) -> ReadinessLevel:
    # Errors dominate: an application with an error is never ready.
    if completion < NOT_READY_COMPLETION or has_errors:
        return ReadinessLevel.NOT_READY
    if completion >= READY_COMPLETION and not missing:
        return ReadinessLevel.READY
    return ReadinessLevel.NEEDS_WORK


def aggregate(
    fields: list[ClassifiedField],
    resolved: dict[str, ResolvedValue],
) -> ApplicationSnapshot:
    """Compute the application snapshot from the current field state.

    Fields without a resolved value are left out of the confidence mean
    instead of counting as zero.
    """
    total = len(fields)
    present = [(f, resolved[f.id]) for f in fields if f.id in resolved and resolved[f.id].value.strip()]

    completed = sum(1 for _, value in present if value.is_complete)
    completion = round(100 * completed / total) if total else 0

    if present:
        mean = sum(value.confidence for _, value in present) / len(present)
        overall_confidence = round(100 * mean)
    else:
        overall_confidence = 0

    missing = [
        f.label for f in fields
        if f.required and (f.id not in resolved or not resolved[f.id].is_complete)
    ]

    critical_issues: list[str] = []
    improvements: list[str] = []
    for f, value in present:
        for issue in value.validation.errors:
            critical_issues.append(f"{f.label}: {issue.message}")
        for suggestion in value.validation.improvements:
            if suggestion not in improvements:
                improvements.append(suggestion)

    level = readiness(completion, missing, bool(critical_issues))
    high_confidence = sum(1 for _, value in present if value.confidence >= HIGH_CONFIDENCE)
    needs_review = sum(
        1 for f, value in present
        if value.confidence < REVIEW_CONFIDENCE
        or not value.validation.is_valid
        or f.category is FieldCategory.OTHER
    )

    summary = (
        f"{completed} of {total} fields complete ({completion}%), "
        f"{len(missing)} required missing, readiness: {level.value}"
    )
    logger.info("Snapshot recomputed: %s", summary)

    return ApplicationSnapshot(
        completion_percentage=completion,
        overall_confidence=overall_confidence,
        missing_requirements=missing,
        readiness_level=level,
        total_fields=total,
        completed_fields=completed,
        high_confidence_fields=high_confidence,
        needs_review_fields=needs_review,
        critical_issues=critical_issues,
        improvements=improvements[:MAX_IMPROVEMENTS],
        summary=summary,
    )
