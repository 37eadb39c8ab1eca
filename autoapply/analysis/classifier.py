"""Field classifier — maps a raw form field to one semantic category.

Patterns are evaluated top to bottom against the lower-cased label and id and
the first hit wins, so narrower phrasings ("budget justification", "personnel
costs") must sit above the generic ones ("budget") they would otherwise lose to.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from autoapply.models.field import ClassifiedField, Field, FieldCategory, ResponseStrategy

logger = logging.getLogger(__name__)

C = FieldCategory

FIELD_PATTERNS: list[tuple[re.Pattern[str], FieldCategory]] = [
    (re.compile(r"budget[\s_]+(justification|narrative)|justif(y|ication)|explain[\s_]+(the[\s_]+)?costs?|why this amount|use[\s_]+of[\s_]+funds"), C.BUDGET_JUSTIFICATION),
    (re.compile(r"line[\s_-]?items?|personnel[\s_]+costs?|fringe|indirect[\s_]+(costs?|rate)|equipment|supplies|travel[\s_]+costs?"), C.BUDGET_LINE_ITEMS),
    (re.compile(r"match(ing)?[\s_]+(funds?|contribution)|cost[\s_-]+shar|in[\s_-]kind|leverag"), C.MATCHING_FUNDS),
    (re.compile(r"other[\s_]+funding|funding[\s_]+sources|additional[\s_]+support|diversif"), C.DIVERSIFIED_FUNDING),
    (re.compile(r"commerciali[sz]|go[\s_-]to[\s_-]market|revenue[\s_]+model|business[\s_]+model"), C.COMMERCIALIZATION),
    (re.compile(r"financial[\s_]+(statements?|health)|\b990\b|audit|annual[\s_]+(operating[\s_]+)?(budget|revenue)|fiscal|revenue"), C.FINANCIAL_HEALTH),
    (re.compile(r"\b(duns|uei|sam|cage)\b|unique[\s_]+entity|\bein\b|tax[\s_-]?(id|exempt)|employer[\s_]+identification|federal[\s_]+id|certif|registration"), C.CERTIFICATIONS),
    (re.compile(r"e-?mail|\bphone\b|telephone|(mailing|street|physical|postal|business)[\s_]+address|address[\s_]+line|^address\b|\bcity\b|\bstate\b(?![\s_]+(the|your|how|what|why|of))|\bzip\b|postal[\s_]+code|website|\burl\b|contact|authorized[\s_]+representative"), C.CONTACT_INFO),
    (re.compile(r"(organi[sz]ation|company|entity|applicant|legal)[\s_]*name|\borg[\s_]?name|legal[\s_]+structure|entity[\s_]+type"), C.ORGANIZATION_IDENTITY),
    (re.compile(r"mission|vision|core[\s_]+values"), C.MISSION_VISION),
    (re.compile(r"history|founded|established|background|years[\s_]+in[\s_]+operation|organi[sz]ation[\s_]+(overview|description)|about[\s_]+(the|your)[\s_]+organi[sz]ation"), C.ORGANIZATION_BACKGROUND),
    (re.compile(r"\brisks?\b|mitigat|contingenc|obstacle"), C.RISK_MITIGATION),
    (re.compile(r"target[\s_]+(population|audience|market)|beneficiar|population|demographic|who[\s_]+(will[\s_]+)?(you[\s_]+)?serve"), C.TARGET_POPULATION),
    (re.compile(r"problem|statement[\s_]+of[\s_]+need|\bneeds?\b|challenge|\bgap\b|significance"), C.PROBLEM_NEED),
    (re.compile(r"intellectual[\s_]+property|patent|trademark|\bip\b"), C.INTELLECTUAL_PROPERTY),
    (re.compile(r"market|customer"), C.COMMERCIALIZATION),
    (re.compile(r"innovat|intellectual[\s_]+merit|novel|cutting[\s_-]edge|state[\s_]+of[\s_]+the[\s_]+art|new[\s_]+approach"), C.INNOVATION),
    (re.compile(r"sustainab|after[\s_]+the[\s_]+grant|long[\s_-]term[\s_]+viab|continu(e|ation)|future[\s_]+funding"), C.SUSTAINABILITY),
    (re.compile(r"evaluat|measur|assess|metrics|indicators|how[\s_]+will[\s_]+you[\s_]+know"), C.EVALUATION_PLAN),
    (re.compile(r"\bgoals?\b|\bobjectives?\b|specific[\s_]+aims"), C.GOALS_OBJECTIVES),
    (re.compile(r"outcome|impact|expected[\s_]+results|benefit"), C.OUTCOMES_IMPACT),
    (re.compile(r"timeline|milestone|schedule|work[\s_]?plan|activities|\btasks\b|deliverables|start[\s_]+date|end[\s_]+date|project[\s_]+period"), C.ACTIVITIES_TIMELINE),
    (re.compile(r"capacity|capabilit|infrastructure|track[\s_]+record|team[\s_]+size|staff[\s_]+(count|size)|number[\s_]+of[\s_]+(staff|employees)|board"), C.ORGANIZATIONAL_CAPACITY),
    (re.compile(r"\bteam\b|\bstaff\b|personnel|key[\s_]+people|qualification|biograph|\bbios?\b|principal[\s_]+investigator|\bpi\b|executive[\s_]+director|leadership"), C.TEAM_QUALIFICATIONS),
    (re.compile(r"partner|collaborat|coalition|alliance|letters?[\s_]+of[\s_]+support|\bmou\b"), C.PARTNERSHIPS),
    (re.compile(r"reference|recommendation"), C.REFERENCES),
    (re.compile(r"geograph|service[\s_]+area|region|communities[\s_]+served"), C.GEOGRAPHIC_SCOPE),
    (re.compile(r"budget|amount[\s_]+requested|requested[\s_]+amount|funding[\s_]+request|total[\s_]+(project[\s_]+)?cost|\bcosts?\b|how[\s_]+much"), C.BUDGET_SUMMARY),
    (re.compile(r"solution|approach|methodolog|strategy|how[\s_]+will[\s_]+you|what[\s_]+will[\s_]+you[\s_]+do"), C.SOLUTION_APPROACH),
    (re.compile(r"project[\s_]+(description|summary|title|narrative|abstract)|executive[\s_]+summary|proposed[\s_]+project|describe[\s_]+(the|your)[\s_]+project|abstract|summary|overview"), C.PROJECT_DESCRIPTION),
    (re.compile(r"attach|upload|document|\bfile\b"), C.ATTACHMENTS),
]


@dataclass(frozen=True)
class CategoryGuidance:
    strategy: ResponseStrategy
    looking_for: tuple[str, ...] = ()
    red_flags: tuple[str, ...] = ()
    key_elements: tuple[str, ...] = ()


G = CategoryGuidance
S = ResponseStrategy

CATEGORY_GUIDANCE: dict[FieldCategory, CategoryGuidance] = {
    C.ORGANIZATION_IDENTITY: G(S.DIRECT, ("Legal registered name", "Consistency across documents"), ("DBA vs legal name confusion",)),
    C.ORGANIZATION_BACKGROUND: G(S.SYNTHESIZE, ("Key milestones", "Relevant history", "Growth trajectory"), ("Too brief", "Irrelevant details"), ("Founding story", "Key milestones", "Relevant achievements")),
    C.MISSION_VISION: G(S.DIRECT, ("Clear articulation of purpose", "Alignment with funder priorities"), ("Too vague", "Jargon-heavy"), ("Purpose", "Impact", "Connection to grant")),
    C.PROBLEM_NEED: G(S.SYNTHESIZE, ("Data-backed need", "Clear problem definition", "Urgency", "Local context"), ("No evidence", "Too broad", "Doesn't connect to solution"), ("Statistics", "Affected population", "Root causes", "Urgency")),
    C.SOLUTION_APPROACH: G(S.SYNTHESIZE, ("Clear methodology", "Evidence-based approach", "Feasibility"), ("Vague plans", "Unrealistic scope"), ("Methodology", "Activities", "Evidence base", "Timeline")),
    C.TARGET_POPULATION: G(S.SYNTHESIZE, ("Specific demographics", "Numbers served", "Selection criteria"), ("Too vague", "No numbers"), ("Demographics", "Numbers served", "Eligibility")),
    C.GEOGRAPHIC_SCOPE: G(S.SYNTHESIZE, ("Specific area", "Rationale for scope"), ("Too broad without justification",)),
    C.PROJECT_DESCRIPTION: G(S.SYNTHESIZE, ("Clear description", "Defined scope", "Logical flow"), ("Too vague", "Scope creep"), ("Scope", "Activities", "Expected results")),
    C.GOALS_OBJECTIVES: G(S.GENERATE, ("SMART goals", "Alignment with need"), ("Not measurable", "Too many goals"), ("Specific targets", "Deadlines", "Measures")),
    C.ACTIVITIES_TIMELINE: G(S.GENERATE, ("Specific activities", "Realistic timeline", "Milestones"), ("Vague", "Missing key activities"), ("Milestones", "Responsible parties", "Dates")),
    C.OUTCOMES_IMPACT: G(S.GENERATE, ("Measurable outcomes", "Realistic targets", "Clear metrics"), ("Only outputs not outcomes", "Unrealistic numbers"), ("Metrics", "Targets", "Long-term impact")),
    C.EVALUATION_PLAN: G(S.GENERATE, ("Clear metrics", "Data collection plan", "Use of results"), ("No metrics", "No plan for use"), ("Indicators", "Data collection", "Reporting")),
    C.TEAM_QUALIFICATIONS: G(S.SYNTHESIZE, ("Relevant experience", "Specific credentials", "Defined roles"), ("Generic bios", "Key positions unfilled"), ("Credentials", "Experience", "Roles")),
    C.ORGANIZATIONAL_CAPACITY: G(S.SYNTHESIZE, ("Relevant experience", "Infrastructure", "Track record"), ("Overpromising", "No track record"), ("Staffing", "Systems", "Past results")),
    C.PARTNERSHIPS: G(S.SYNTHESIZE, ("Defined roles", "Letters of support"), ("Vague commitments",)),
    C.BUDGET_SUMMARY: G(S.EXTRACT, ("Clear total", "Reasonable costs"), ("Math errors", "Missing categories")),
    C.BUDGET_LINE_ITEMS: G(S.GENERATE, ("Detailed breakdown", "Industry-standard rates"), ("Missing fringe", "No indirect")),
    C.BUDGET_JUSTIFICATION: G(S.GENERATE, ("Clear rationale", "Connection to activities", "Reasonable rates"), ("No justification", "Inflated costs"), ("Personnel", "Equipment", "Indirect costs", "Cost basis")),
    C.SUSTAINABILITY: G(S.GENERATE, ("Concrete plan", "Diverse funding sources"), ("Only relying on more grants", "No plan"), ("Funding sources", "Partnerships", "Earned revenue")),
    C.DIVERSIFIED_FUNDING: G(S.SYNTHESIZE, ("Multiple sources", "Commitment letters"), ("Only grants", "Speculative sources")),
    C.MATCHING_FUNDS: G(S.EXTRACT, ("Documented match", "Eligible sources"), ("Undocumented", "Math errors")),
    C.FINANCIAL_HEALTH: G(S.EXTRACT, ("Clean audit", "Diverse revenue"), ("Deficits", "Single funder dependency")),
    C.INNOVATION: G(S.SYNTHESIZE, ("Clear differentiation", "Evidence base", "Feasibility"), ("Not actually innovative", "Unproven"), ("Differentiation", "Prior art", "Evidence")),
    C.COMMERCIALIZATION: G(S.SYNTHESIZE, ("Market analysis", "Revenue model", "Customer validation"), ("No market research", "Unrealistic projections"), ("Market size", "Customers", "Revenue model", "Competition")),
    C.INTELLECTUAL_PROPERTY: G(S.GENERATE, ("Clear IP strategy", "Freedom to operate"), ("No strategy",)),
    C.RISK_MITIGATION: G(S.GENERATE, ("Identified risks", "Mitigation strategies"), ("No risks identified",), ("Risks", "Mitigation", "Contingency")),
    C.CONTACT_INFO: G(S.DIRECT, ("Complete information", "Authorized person"), ("Incomplete",)),
    C.CERTIFICATIONS: G(S.DIRECT, ("Valid numbers", "Active registration"), ("Expired", "Invalid format")),
    C.ATTACHMENTS: G(S.DIRECT, ("Required documents", "Correct format"), ("Missing documents",)),
    C.REFERENCES: G(S.DIRECT, ("Strong references", "Confirmed"), ("Not confirmed",)),
    C.OTHER: G(S.GENERATE),
}


def classify(label: str, field_id: str) -> FieldCategory:
    """Return the semantic category for a field; never raises, falls back to OTHER."""
    text = f"{label} {field_id}".lower().strip()
    for pattern, category in FIELD_PATTERNS:
        if pattern.search(text):
            return category
    return FieldCategory.OTHER


def guidance_for(category: FieldCategory) -> CategoryGuidance:
    return CATEGORY_GUIDANCE.get(category, CATEGORY_GUIDANCE[FieldCategory.OTHER])


def analyze_field(definition: Field) -> ClassifiedField:
    category = classify(definition.label, definition.id)
    guidance = guidance_for(category)
    logger.debug("Field %s classified as %s", definition.id, category.value)
    return ClassifiedField(
        definition=definition,
        category=category,
        strategy=guidance.strategy,
        looking_for=list(guidance.looking_for),
        red_flags=list(guidance.red_flags),
    )


def analyze_fields(definitions: list[Field]) -> list[ClassifiedField]:
    return [analyze_field(d) for d in definitions]
