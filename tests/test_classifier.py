"""Tests for field classification and the category guidance table."""

import pytest

from autoapply.analysis.classifier import CATEGORY_GUIDANCE, analyze_field, analyze_fields, classify
from autoapply.models.field import Field, FieldCategory, InputKind, ResponseStrategy


@pytest.mark.parametrize(
    "label, field_id, expected",
    [
        ("Budget Justification", "budget_justification", FieldCategory.BUDGET_JUSTIFICATION),
        ("Total Budget", "total_budget", FieldCategory.BUDGET_SUMMARY),
        ("Organization Name", "org_name", FieldCategory.ORGANIZATION_IDENTITY),
        ("EIN", "ein", FieldCategory.CERTIFICATIONS),
        ("Email Address", "email", FieldCategory.CONTACT_INFO),
        ("Statement of Need", "need", FieldCategory.PROBLEM_NEED),
        ("What is the state of the art?", "sota", FieldCategory.INNOVATION),
        ("Project Summary", "summary", FieldCategory.PROJECT_DESCRIPTION),
        ("Risks and Mitigation", "risks", FieldCategory.RISK_MITIGATION),
        ("Goals and Objectives", "goals", FieldCategory.GOALS_OBJECTIVES),
    ],
)
def test_classify_known_labels(label, field_id, expected):
    assert classify(label, field_id) is expected


def test_unmatched_label_falls_back_to_other():
    assert classify("Favorite color", "q17") is FieldCategory.OTHER


def test_classify_is_deterministic():
    first = classify("Describe your evaluation plan", "eval")
    for _ in range(20):
        assert classify("Describe your evaluation plan", "eval") is first


def test_budget_justification_wins_over_generic_budget():
    # Both patterns match; the narrower one is listed first.
    assert classify("Budget narrative", "budget") is FieldCategory.BUDGET_JUSTIFICATION
    assert classify("Budget", "budget") is FieldCategory.BUDGET_SUMMARY


def test_every_category_has_guidance():
    assert set(CATEGORY_GUIDANCE) == set(FieldCategory)


def test_analyze_field_attaches_guidance():
    classified = analyze_field(Field(id="need", label="Statement of Need"))
    assert classified.category is FieldCategory.PROBLEM_NEED
    assert classified.strategy is ResponseStrategy.SYNTHESIZE
    assert "Data-backed need" in classified.looking_for
    assert classified.needs_generation


def test_structured_inputs_never_need_generation():
    upload = analyze_field(Field(id="budget_justification", label="Budget Justification", input_kind=InputKind.FILE))
    assert upload.category is FieldCategory.BUDGET_JUSTIFICATION
    assert not upload.needs_generation


def test_short_identity_fields_do_not_need_generation():
    fields = analyze_fields([
        Field(id="org_name", label="Organization Name", input_kind=InputKind.TEXT),
        Field(id="email", label="Email", input_kind=InputKind.TEXT),
    ])
    assert [f.needs_generation for f in fields] == [False, False]
