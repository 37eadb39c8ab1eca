"""Tests for heuristic validation, scoring and improvement suggestions."""

from autoapply.analysis.validation import improvement_suggestions, is_specific, validate
from autoapply.models.field import FieldCategory
from autoapply.models.result import Severity


def codes(result):
    return [issue.code for issue in result.issues]


def test_empty_required_field_is_an_error():
    result = validate("", FieldCategory.PROBLEM_NEED, required=True)
    assert not result.is_valid
    assert result.errors[0].code == "required_empty"


def test_empty_optional_field_is_only_a_warning():
    result = validate("   ", FieldCategory.OTHER)
    assert result.is_valid
    assert result.warnings[0].code == "empty"


def test_error_makes_result_invalid_despite_high_score():
    content = " ".join(f"item{i}" for i in range(30))
    result = validate(content, FieldCategory.OTHER, word_limit=10)
    assert result.score == 80
    assert codes(result) == ["over_word_limit"]
    assert not result.is_valid


def test_character_limit_exceeded_is_an_error():
    result = validate("Riverbend serves 1,200 students.", FieldCategory.OTHER, character_limit=10)
    assert "over_character_limit" in codes(result)
    assert not result.is_valid


def test_clean_answer_scores_full_marks():
    result = validate("Riverbend serves 1,200 students.", FieldCategory.OTHER)
    assert result.score == 100
    assert result.issues == []
    assert result.word_count == 4
    assert "Free of common writing issues" in result.strengths


def test_short_narrative_is_warned():
    result = validate("We serve 40 families in Austin.", FieldCategory.PROBLEM_NEED)
    assert "too_short" in codes(result)
    assert result.is_valid


def test_minimum_never_exceeds_half_the_limit():
    content = " ".join(["Riverbend served 1,200 readers in 2023."] * 4)
    result = validate(content, FieldCategory.SOLUTION_APPROACH, word_limit=40)
    assert "too_short" not in codes(result)


def test_narrative_without_specifics_is_warned():
    result = validate("We help people learn and grow in our community every day.", FieldCategory.PROJECT_DESCRIPTION)
    assert "not_specific" in codes(result)
    assert "Add concrete evidence: numbers, dates, named partners or measurable results." in result.improvements


def test_proper_noun_counts_as_specific():
    assert is_specific("We partner with Austin Public Library.")
    assert is_specific("The pilot starts in September")
    assert not is_specific("we help. people learn.")


def test_budget_justification_keywords():
    result = validate(
        "We will buy things for the project and report results to the board in March.",
        FieldCategory.BUDGET_JUSTIFICATION,
    )
    assert "missing_keywords" in codes(result)
    assert result.is_valid

    result = validate(
        "Personnel costs cover two tutors at 20 hours a week from March to June.",
        FieldCategory.BUDGET_JUSTIFICATION,
    )
    assert "missing_keywords" not in codes(result)


def test_placeholders_are_errors():
    result = validate("Our annual budget is TBD.", FieldCategory.OTHER)
    assert "placeholder" in codes(result)
    assert not result.is_valid
    assert not validate("Contact [insert name here].", FieldCategory.OTHER).is_valid


def test_vague_and_weak_language_warnings():
    result = validate(
        "We hope to reach very many families in 2025 with really significant results.",
        FieldCategory.OTHER,
    )
    assert "vague_language" in codes(result)
    assert "weak_verbs" in codes(result)
    assert all(issue.severity is Severity.WARNING for issue in result.issues)


def test_overused_words_warning():
    content = "Reading matters. " * 6 + "Riverbend runs 3 programs."
    result = validate(content, FieldCategory.OTHER)
    assert "overused_words" in codes(result)


def test_score_deductions():
    # one error (placeholder) and two warnings (vague, weak verbs)
    result = validate("We might reach very many quite TBD families.", FieldCategory.OTHER)
    assert len(result.errors) == 1
    assert len(result.warnings) == 2
    assert result.score == 100 - 20 - 2 * 5


def test_improvement_suggestions_by_band():
    low = improvement_suggestions(FieldCategory.PROBLEM_NEED, 50)
    assert len(low) == 5
    assert low[0] == "Add specific data points and statistics to support your claims"
    assert improvement_suggestions(FieldCategory.PROBLEM_NEED, 95) == [
        "Include local or regional data specific to your service area",
        "Reference recent research or trends that highlight urgency",
    ]
    assert improvement_suggestions(FieldCategory.OTHER, 95) == []
