"""Validation and scoring — heuristic quality checks for a single answer.

The score is a deduction from 100. Errors cost more than warnings, and the
result is only valid when there are no errors at all, whatever the score.
"""

from __future__ import annotations

import re
from collections import Counter

from autoapply.models.field import NARRATIVE_CATEGORIES, ClassifiedField, FieldCategory
from autoapply.models.result import Severity, ValidationIssue, ValidationResult

ERROR_PENALTY = 20
WARNING_PENALTY = 5

DEFAULT_NARRATIVE_MIN_WORDS = 50

MIN_WORDS: dict[FieldCategory, int] = {
    FieldCategory.PROBLEM_NEED: 150,
    FieldCategory.SOLUTION_APPROACH: 200,
    FieldCategory.OUTCOMES_IMPACT: 150,
    FieldCategory.TEAM_QUALIFICATIONS: 150,
    FieldCategory.ORGANIZATION_BACKGROUND: 100,
    FieldCategory.BUDGET_SUMMARY: 100,
    FieldCategory.BUDGET_JUSTIFICATION: 100,
    FieldCategory.MISSION_VISION: 20,
}

# At least one keyword per category must appear (case-insensitive substring).
CATEGORY_KEYWORDS: dict[FieldCategory, tuple[str, ...]] = {
    FieldCategory.BUDGET_JUSTIFICATION: ("personnel", "equipment", "cost", "indirect"),
    FieldCategory.BUDGET_SUMMARY: ("budget", "cost", "total", "$"),
    FieldCategory.PROBLEM_NEED: ("data", "percent", "%", "statistic", "research", "study"),
    FieldCategory.SOLUTION_APPROACH: ("method", "approach", "activit", "timeline", "phase"),
    FieldCategory.OUTCOMES_IMPACT: ("measur", "metric", "target", "outcome", "increase", "reduce"),
    FieldCategory.EVALUATION_PLAN: ("measur", "data", "survey", "metric", "indicator", "assess"),
    FieldCategory.TEAM_QUALIFICATIONS: ("experience", "degree", "ph.d", "phd", "years", "expert"),
    FieldCategory.SUSTAINABILITY: ("funding", "revenue", "partner", "continu"),
    FieldCategory.COMMERCIALIZATION: ("market", "customer", "revenue", "pric"),
}

PLACEHOLDER_PATTERN = re.compile(
    r"\bTBD\b|\bTODO\b|\bX{3,}\b|(?i:\[\s*(insert|placeholder)[^\]]*\])"
)
VAGUE_PATTERN = re.compile(
    r"\b(very|really|kind of|sort of|somewhat|fairly|quite|significant(ly)?|"
    r"substantial(ly)?|many|several|numerous)\b",
    re.IGNORECASE,
)
WEAK_VERB_PATTERN = re.compile(
    r"\b(will try|hope to|intend to|would like|might|could potentially)\b",
    re.IGNORECASE,
)
NUMBER_PATTERN = re.compile(r"\d")
MONTH_PATTERN = re.compile(
    r"\b(january|february|march|april|june|july|august|september|october|"
    r"november|december|q[1-4])\b",
    re.IGNORECASE,
)
SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")

VAGUE_THRESHOLD = 3
OVERUSE_MIN_COUNT = 5
OVERUSE_SHARE = 0.03

STOP_WORDS = frozenset(
    "the a an and or but in on at to for of with by from as is was are were been be "
    "have has had do does did will would could should may might must shall can this "
    "that these those it its they them their we our you your he she his her which "
    "also more than into over such".split()
)

ISSUE_IMPROVEMENTS = {
    "placeholder": "Replace every placeholder with the actual information.",
    "over_word_limit": "Cut the response down to fit the word limit.",
    "over_character_limit": "Shorten the response to fit the character limit.",
    "too_short": "Expand the response with more detail and supporting evidence.",
    "not_specific": "Add concrete evidence: numbers, dates, named partners or measurable results.",
    "missing_keywords": "Address the elements reviewers expect for this section.",
    "vague_language": "Replace vague qualifiers with specific numbers and concrete details.",
    "weak_verbs": "Use confident, action-oriented verbs instead of hedging language.",
    "overused_words": "Vary your vocabulary to avoid repetition.",
}

SCORE_BAND_SUGGESTIONS: list[tuple[int, tuple[str, ...]]] = [
    (60, (
        "Add specific data points and statistics to support your claims",
        "Use concrete examples to illustrate your points",
        "Ensure all required information is included",
    )),
    (75, (
        "Strengthen your opening statement to immediately engage the reader",
        "Add more measurable outcomes and metrics",
        "Connect your work directly to the funder's stated priorities",
    )),
    (90, (
        "Polish language for maximum clarity and impact",
        "Ensure smooth transitions between ideas",
        "Double-check alignment with all stated requirements",
    )),
]

CATEGORY_SUGGESTIONS: dict[FieldCategory, tuple[str, ...]] = {
    FieldCategory.PROBLEM_NEED: (
        "Include local or regional data specific to your service area",
        "Reference recent research or trends that highlight urgency",
    ),
    FieldCategory.SOLUTION_APPROACH: (
        "Clearly explain why your approach will work",
        "Include a realistic timeline with milestones",
    ),
    FieldCategory.OUTCOMES_IMPACT: (
        "Define SMART outcomes (Specific, Measurable, Achievable, Relevant, Time-bound)",
        "Describe both short-term and long-term impacts",
    ),
    FieldCategory.BUDGET_SUMMARY: (
        "Justify each budget line item with clear rationale",
        "Mention any matching funds or in-kind contributions",
    ),
    FieldCategory.BUDGET_JUSTIFICATION: (
        "Tie each cost to a specific project activity",
        "Show cost-effectiveness or value for money",
    ),
    FieldCategory.TEAM_QUALIFICATIONS: (
        "Highlight specific credentials relevant to this project",
        "Mention past successes or track record",
    ),
    FieldCategory.SUSTAINABILITY: (
        "Describe multiple funding sources for continuation",
        "Mention any partnerships that support long-term viability",
    ),
    FieldCategory.EVALUATION_PLAN: (
        "Name the instruments and data sources you will use",
        "State how often progress will be reviewed",
    ),
}


def count_words(content: str) -> int:
    return len(content.split())


def minimum_words(category: FieldCategory, word_limit: int | None = None) -> int:
    minimum = MIN_WORDS.get(category)
    if minimum is None:
        minimum = DEFAULT_NARRATIVE_MIN_WORDS if category in NARRATIVE_CATEGORIES else 0
    if word_limit is not None:
        # Never demand more than half of what the form allows.
        minimum = min(minimum, word_limit // 2)
    return minimum


def is_specific(content: str) -> bool:
    """True when the text carries a number, a date, or a proper noun."""
    if NUMBER_PATTERN.search(content) or MONTH_PATTERN.search(content):
        return True
    for sentence in SENTENCE_SPLIT.split(content.strip()):
        words = sentence.split()[1:]
        if any(word[:1].isupper() and word != "I" for word in words):
            return True
    return False


def overused_words(content: str) -> list[str]:
    words = [w for w in re.findall(r"\b[a-z]+\b", content.lower()) if len(w) > 3 and w not in STOP_WORDS]
    if not words:
        return []
    total = count_words(content)
    return [
        word for word, count in Counter(words).most_common()
        if count >= OVERUSE_MIN_COUNT and count / total > OVERUSE_SHARE
    ]


def improvement_suggestions(category: FieldCategory, score: int) -> list[str]:
    """General suggestions for the score band plus two for the category."""
    suggestions: list[str] = []
    for ceiling, band in SCORE_BAND_SUGGESTIONS:
        if score < ceiling:
            suggestions.extend(band)
            break
    suggestions.extend(CATEGORY_SUGGESTIONS.get(category, ())[:2])
    return suggestions


def validate(
    content: str,
    category: FieldCategory,
    word_limit: int | None = None,
    character_limit: int | None = None,
    required: bool = False,
) -> ValidationResult:
    """Score a single answer against the length, specificity and keyword checks."""
    text = (content or "").strip()
    if not text:
        if required:
            issue = ValidationIssue(Severity.ERROR, "required_empty", "This field is required but has no content.")
        else:
            issue = ValidationIssue(Severity.WARNING, "empty", "This field has no content.")
        return ValidationResult(score=0, issues=[issue], improvements=["Provide a response for this field."])

    issues: list[ValidationIssue] = []
    strengths: list[str] = []
    word_count = count_words(text)

    if word_limit is not None and word_count > word_limit:
        issues.append(ValidationIssue(
            Severity.ERROR, "over_word_limit",
            f"Response is {word_count} words; the limit is {word_limit}.",
        ))
    if character_limit is not None and len(text) > character_limit:
        issues.append(ValidationIssue(
            Severity.ERROR, "over_character_limit",
            f"Response is {len(text)} characters; the limit is {character_limit}.",
        ))
    minimum = minimum_words(category, word_limit)
    if word_count < minimum:
        issues.append(ValidationIssue(
            Severity.WARNING, "too_short",
            f"Response is {word_count} words; aim for at least {minimum}.",
        ))
    elif minimum:
        strengths.append("Substantive length")

    if category in NARRATIVE_CATEGORIES:
        if is_specific(text):
            strengths.append("Includes concrete details")
        else:
            issues.append(ValidationIssue(
                Severity.WARNING, "not_specific",
                "No numbers, dates or named entities found to support the claims.",
            ))

    keywords = CATEGORY_KEYWORDS.get(category)
    if keywords:
        lowered = text.lower()
        if any(keyword in lowered for keyword in keywords):
            strengths.append("Covers the expected elements for this section")
        else:
            issues.append(ValidationIssue(
                Severity.WARNING, "missing_keywords",
                f"Expected a reference to at least one of: {', '.join(keywords)}.",
            ))

    placeholders = PLACEHOLDER_PATTERN.findall(text)
    if placeholders:
        issues.append(ValidationIssue(
            Severity.ERROR, "placeholder",
            "Missing data placeholder detected. Fill in specific information.",
        ))
    if len(VAGUE_PATTERN.findall(text)) >= VAGUE_THRESHOLD:
        issues.append(ValidationIssue(
            Severity.WARNING, "vague_language",
            "Vague language detected. Use specific numbers and concrete details.",
        ))
    if WEAK_VERB_PATTERN.search(text):
        issues.append(ValidationIssue(
            Severity.WARNING, "weak_verbs",
            "Weak or uncertain language. Use confident, action-oriented verbs.",
        ))
    repeated = overused_words(text)
    if repeated:
        issues.append(ValidationIssue(
            Severity.WARNING, "overused_words",
            f"Overused words: {', '.join(repeated[:3])}.",
        ))

    errors = sum(1 for issue in issues if issue.severity is Severity.ERROR)
    warnings = len(issues) - errors
    score = max(0, 100 - ERROR_PENALTY * errors - WARNING_PENALTY * warnings)
    if not issues:
        strengths.append("Free of common writing issues")

    improvements: list[str] = []
    for issue in issues:
        suggestion = ISSUE_IMPROVEMENTS.get(issue.code)
        if suggestion and suggestion not in improvements:
            improvements.append(suggestion)

    return ValidationResult(
        score=score,
        issues=issues,
        improvements=improvements,
        strengths=strengths,
        word_count=word_count,
    )


def validate_for(field: ClassifiedField, content: str) -> ValidationResult:
    """Validate content against a classified field's own limits and requirement flag."""
    definition = field.definition
    return validate(
        content,
        field.category,
        word_limit=definition.word_limit,
        character_limit=definition.character_limit,
        required=definition.required,
    )
