"""Tests for snapshot aggregation and readiness thresholds."""

from autoapply.analysis.aggregator import aggregate
from autoapply.models.field import ClassifiedField, Field, FieldCategory
from autoapply.models.result import (
    ReadinessLevel,
    ResolvedValue,
    Severity,
    ValidationIssue,
    ValidationResult,
    ValueSource,
)


def make_fields(count, required=False, category=FieldCategory.PROJECT_DESCRIPTION):
    return [
        ClassifiedField(Field(id=f"f{i}", label=f"Question {i}", required=required), category)
        for i in range(count)
    ]


def resolved(field_id, confidence=0.9, value="An answer.", needs_user_input=False, errors=0):
    issues = [ValidationIssue(Severity.ERROR, "over_word_limit", "Too long.") for _ in range(errors)]
    return ResolvedValue(
        field_id=field_id,
        value=value,
        confidence=confidence,
        source=ValueSource.PROFILE,
        validation=ValidationResult(score=95, issues=issues),
        needs_user_input=needs_user_input,
    )


def test_completion_counts_only_complete_values():
    fields = make_fields(10)
    values = {f"f{i}": resolved(f"f{i}") for i in range(6)}
    values["f6"] = resolved("f6", needs_user_input=True)
    values["f7"] = resolved("f7", value="")
    snapshot = aggregate(fields, values)
    assert snapshot.completion_percentage == 60
    assert snapshot.completed_fields == 6
    assert snapshot.total_fields == 10


def test_unresolved_fields_do_not_drag_confidence_down():
    fields = make_fields(4)
    values = {f.id: resolved(f.id, confidence=0.9) for f in fields}
    before = aggregate(fields, values).overall_confidence
    after = aggregate(fields + make_fields(5)[4:], values).overall_confidence
    assert before == after == 90


def test_ready_at_85_percent_with_nothing_missing():
    fields = make_fields(20)
    values = {f"f{i}": resolved(f"f{i}") for i in range(17)}
    snapshot = aggregate(fields, values)
    assert snapshot.completion_percentage == 85
    assert snapshot.missing_requirements == []
    assert snapshot.readiness_level is ReadinessLevel.READY


def test_needs_work_at_50_percent():
    fields = make_fields(10)
    values = {f"f{i}": resolved(f"f{i}") for i in range(5)}
    assert aggregate(fields, values).readiness_level is ReadinessLevel.NEEDS_WORK


def test_not_ready_at_30_percent_regardless_of_confidence():
    fields = make_fields(10)
    values = {f"f{i}": resolved(f"f{i}", confidence=1.0) for i in range(3)}
    snapshot = aggregate(fields, values)
    assert snapshot.overall_confidence == 100
    assert snapshot.readiness_level is ReadinessLevel.NOT_READY


def test_missing_required_fields_block_ready():
    fields = make_fields(10, required=True)
    values = {f"f{i}": resolved(f"f{i}") for i in range(9)}
    values["f9"] = resolved("f9", needs_user_input=True)
    snapshot = aggregate(fields, values)
    assert snapshot.completion_percentage == 90
    assert snapshot.missing_requirements == ["Question 9"]
    assert snapshot.readiness_level is ReadinessLevel.NEEDS_WORK


def test_any_error_makes_application_not_ready():
    fields = make_fields(10)
    values = {f.id: resolved(f.id) for f in fields}
    values["f3"] = resolved("f3", errors=1)
    snapshot = aggregate(fields, values)
    assert snapshot.completion_percentage == 100
    assert snapshot.readiness_level is ReadinessLevel.NOT_READY
    assert snapshot.critical_issues == ["Question 3: Too long."]
    assert snapshot.needs_review_fields == 1


def test_confidence_buckets():
    fields = make_fields(3)
    values = {
        "f0": resolved("f0", confidence=0.9),
        "f1": resolved("f1", confidence=0.65),
        "f2": resolved("f2", confidence=0.5),
    }
    snapshot = aggregate(fields, values)
    assert snapshot.high_confidence_fields == 1
    assert snapshot.needs_review_fields == 1
    assert snapshot.overall_confidence == 68


def test_aggregate_is_idempotent():
    fields = make_fields(5)
    values = {f"f{i}": resolved(f"f{i}") for i in range(3)}
    assert aggregate(fields, values) == aggregate(fields, values)


def test_empty_form():
    snapshot = aggregate([], {})
    assert snapshot.completion_percentage == 0
    assert snapshot.overall_confidence == 0
    assert snapshot.readiness_level is ReadinessLevel.NOT_READY


def test_other_category_always_needs_review():
    fields = make_fields(2) + make_fields(3, category=FieldCategory.OTHER)[2:]
    values = {f.id: resolved(f.id, confidence=0.9) for f in fields}
    snapshot = aggregate(fields, values)
    assert snapshot.completion_percentage == 100
    assert snapshot.high_confidence_fields == 3
    assert snapshot.needs_review_fields == 1
