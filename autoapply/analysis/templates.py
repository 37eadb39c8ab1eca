"""Template registry — canonical field lists for grants without a live form.

Selection walks a fixed precedence chain and the first rule that fires wins:
program keyword (SBIR/STTR, split by phase), named funder, domain keyword,
funder type, then the minimal generic template. Program templates are the
narrowest and most accurate, so they must never lose to a domain match.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

from autoapply.models.context import FunderType, GrantContext
from autoapply.models.field import Field, InputKind, LengthUnit

logger = logging.getLogger(__name__)


class SectionKind(Enum):
    NARRATIVE = "narrative"
    SHORT_ANSWER = "short_answer"
    BUDGET = "budget"
    ATTACHMENT = "attachment"
    CHECKBOX = "checkbox"
    SELECT = "select"


SECTION_INPUT_KINDS = {
    SectionKind.NARRATIVE: InputKind.TEXTAREA,
    SectionKind.SHORT_ANSWER: InputKind.TEXT,
    SectionKind.BUDGET: InputKind.TEXTAREA,
    SectionKind.ATTACHMENT: InputKind.FILE,
    SectionKind.CHECKBOX: InputKind.CHECKBOX,
    SectionKind.SELECT: InputKind.SELECT,
}


@dataclass(frozen=True)
class TemplateSection:
    id: str
    title: str
    kind: SectionKind
    instructions: str
    required: bool = True
    word_limit: int | None = None
    character_limit: int | None = None

    def to_field(self) -> Field:
        if self.word_limit is not None:
            max_length, unit = self.word_limit, LengthUnit.WORDS
        else:
            max_length, unit = self.character_limit, LengthUnit.CHARACTERS
        return Field(
            id=self.id,
            label=self.title,
            input_kind=SECTION_INPUT_KINDS[self.kind],
            required=self.required,
            max_length=max_length,
            length_unit=unit,
            instructions=self.instructions,
        )


N = SectionKind.NARRATIVE
A = SectionKind.SHORT_ANSWER
B = SectionKind.BUDGET
F = SectionKind.ATTACHMENT
T = TemplateSection

ORGANIZATION_NAME = T("organization_name", "Organization Name", A, "Legal name of your organization.")
AMOUNT_REQUESTED = T("amount_requested", "Amount Requested", A, "How much funding are you requesting?")

SECTION_TEMPLATES: dict[str, list[TemplateSection]] = {
    "sbir_phase1": [
        T("executive_summary", "Executive Summary", N, "Provide a brief overview of the proposed project including the problem, solution, and expected outcomes.", word_limit=500),
        T("problem_statement", "Problem Statement", N, "Describe the problem being addressed, its significance, and current limitations.", word_limit=1000),
        T("technical_approach", "Technical Approach", N, "Detail your methodology, research plan, and technical objectives.", word_limit=3000),
        T("team_qualifications", "Team Qualifications", N, "Describe key personnel qualifications and relevant experience.", word_limit=1000),
        T("commercialization", "Commercialization Plan", N, "Outline your path to market including customers, competition, and revenue model.", word_limit=1500),
        T("budget_narrative", "Budget Narrative", B, "Justify all proposed costs and explain how they support project objectives.", word_limit=1000),
    ],
    "sbir_phase2": [
        T("executive_summary", "Executive Summary", N, "Summarize the Phase II project, its objectives, and anticipated results.", word_limit=500),
        T("phase1_results", "Phase I Results and Outcomes", N, "Report the technical results of Phase I and how they demonstrate feasibility.", word_limit=1500),
        T("technical_objectives", "Technical Objectives", N, "State the specific technical objectives of the Phase II effort.", word_limit=1000),
        T("work_plan", "Work Plan and Milestones", N, "Describe the Phase II tasks, milestones, and schedule.", word_limit=3000),
        T("key_personnel", "Key Personnel Qualifications", N, "Describe the qualifications of the principal investigator and key staff.", word_limit=1000),
        T("commercialization_strategy", "Commercialization Strategy", N, "Describe the market, customers, competition, revenue model, and financing plan.", word_limit=3000),
        T("risk_management", "Technical Risks and Mitigation", N, "Identify major technical and business risks and how they will be mitigated.", word_limit=750),
        T("budget_justification", "Budget Justification", B, "Justify personnel, equipment, subcontract, and indirect costs.", word_limit=1500),
    ],
    "nsf_research": [
        T("project_summary", "Project Summary", N, "Summarize the project, its intellectual merit, and its broader impacts.", character_limit=4600),
        T("intellectual_merit", "Intellectual Merit", N, "Explain the potential to advance knowledge within and across fields.", word_limit=750),
        T("broader_impacts", "Broader Impacts", N, "Describe the potential to benefit society and contribute to desired societal outcomes.", word_limit=750),
        T("project_description", "Project Description", N, "Describe the research plan, methods, and expected results.", word_limit=5000),
        T("biographical_sketch", "Biographical Sketch", F, "Upload biographical sketches for senior personnel."),
        T("budget_justification", "Budget Justification", B, "Justify each budget category requested.", word_limit=1000),
        T("data_management_plan", "Data Management Plan", F, "Upload the data management and sharing plan."),
    ],
    "nih_r21": [
        T("specific_aims", "Specific Aims", N, "State the specific aims of the proposed research.", word_limit=500),
        T("significance", "Significance", N, "Explain the importance of the problem and the scientific premise.", word_limit=1000),
        T("innovation", "Innovation", N, "Explain how the application challenges current research paradigms.", word_limit=500),
        T("research_approach", "Research Approach", N, "Describe the overall strategy, methodology, and analyses.", word_limit=2500),
        T("key_personnel", "Key Personnel", N, "Describe the qualifications of senior and key personnel.", word_limit=750),
        T("budget_justification", "Budget Justification", B, "Justify personnel effort, equipment, and other costs.", word_limit=1000),
    ],
    "education_grant": [
        ORGANIZATION_NAME,
        T("statement_of_need", "Statement of Need", N, "Describe the educational need and the students affected.", word_limit=750),
        T("program_design", "Program Design and Approach", N, "Describe the curriculum, instructional approach, and activities.", word_limit=1500),
        T("target_population", "Target Population", N, "Describe the students and educators served and how many.", word_limit=500),
        T("learning_outcomes", "Expected Learning Outcomes", N, "Describe measurable learning outcomes.", word_limit=500),
        T("evaluation_plan", "Evaluation Plan", N, "Explain how progress toward outcomes will be measured.", word_limit=500),
        T("budget_narrative", "Budget Narrative", B, "Explain how funds will be used.", word_limit=500),
    ],
    "environmental_grant": [
        ORGANIZATION_NAME,
        T("environmental_problem", "Environmental Problem", N, "Describe the environmental problem and its local significance.", word_limit=750),
        T("project_approach", "Project Approach", N, "Describe your conservation or restoration approach.", word_limit=1500),
        T("geographic_area", "Geographic Service Area", N, "Describe the sites or region where work will occur.", word_limit=300),
        T("environmental_outcomes", "Environmental Outcomes", N, "Describe measurable environmental outcomes.", word_limit=500),
        T("sustainability", "Sustainability Plan", N, "How will results be maintained after the grant?", word_limit=500),
        T("budget_narrative", "Budget Narrative", B, "Explain how funds will be used.", word_limit=500),
    ],
    "health_services": [
        ORGANIZATION_NAME,
        T("community_need", "Community Health Need", N, "Describe the health need, with local data.", word_limit=750),
        T("service_model", "Service Delivery Approach", N, "Describe the services and how they will be delivered.", word_limit=1500),
        T("target_population", "Target Population", N, "Describe the patients or community members served.", word_limit=500),
        T("health_outcomes", "Health Outcomes", N, "Describe expected health outcomes and how they are measured.", word_limit=500),
        T("staff_qualifications", "Staff Qualifications", N, "Describe clinical and program staff qualifications.", word_limit=500),
        T("budget_narrative", "Budget Narrative", B, "Explain how funds will be used.", word_limit=500),
    ],
    "arts_culture": [
        ORGANIZATION_NAME,
        T("artistic_vision", "Artistic Vision", N, "Describe the artistic or cultural vision for the project.", word_limit=750),
        T("project_description", "Project Description", N, "Describe the program, performances, or exhibitions.", word_limit=1000),
        T("community_engagement", "Community Impact", N, "Describe the audiences reached and the community impact.", word_limit=500),
        T("artist_bios", "Artist and Staff Bios", N, "Provide bios for the lead artists and staff.", word_limit=500),
        T("budget_narrative", "Budget Narrative", B, "Explain how funds will be used.", word_limit=500),
        T("work_samples", "Work Samples", F, "Upload samples of recent work.", required=False),
    ],
    "workforce_development": [
        ORGANIZATION_NAME,
        T("workforce_need", "Workforce Need", N, "Describe the labor market need and the skills gap.", word_limit=750),
        T("training_approach", "Training Approach", N, "Describe the training model, curriculum, and credentials.", word_limit=1500),
        T("employer_partners", "Employer Partnerships", N, "Describe employer partners and their commitments.", word_limit=500),
        T("placement_outcomes", "Job Placement Outcomes", N, "Describe placement and wage outcomes and how they are tracked.", word_limit=500),
        T("budget_narrative", "Budget Narrative", B, "Explain how funds will be used.", word_limit=500),
    ],
    "technology_innovation": [
        ORGANIZATION_NAME,
        T("technology_summary", "Project Summary", N, "Summarize the technology and the problem it solves.", word_limit=500),
        T("innovation", "Innovation", N, "Explain what is novel relative to existing solutions.", word_limit=750),
        T("technical_approach", "Technical Approach", N, "Describe the development plan and technical milestones.", word_limit=1500),
        T("market_opportunity", "Market Opportunity", N, "Describe customers, market size, and the path to adoption.", word_limit=750),
        T("team_qualifications", "Team Qualifications", N, "Describe the team's technical and business expertise.", word_limit=500),
        T("budget_narrative", "Budget Narrative", B, "Explain how funds will be used.", word_limit=500),
    ],
    "federal_general": [
        ORGANIZATION_NAME,
        T("ein", "EIN", A, "Employer Identification Number."),
        T("uei", "Unique Entity Identifier (UEI)", A, "SAM.gov Unique Entity Identifier."),
        T("project_abstract", "Project Abstract", N, "Summarize the project in plain language.", word_limit=300),
        T("statement_of_need", "Statement of Need", N, "Describe the need with supporting data.", word_limit=1000),
        T("project_approach", "Project Approach", N, "Describe the methodology and activities.", word_limit=2000),
        T("evaluation_plan", "Evaluation Plan", N, "Describe performance measures and evaluation methods.", word_limit=750),
        T("organizational_capacity", "Organizational Capacity", N, "Describe your capacity to manage federal funds.", word_limit=750),
        T("budget_justification", "Budget Justification", B, "Justify each cost category.", word_limit=1000),
    ],
    "foundation_general": [
        T("organization_overview", "Organization Overview", N, "Describe your organization, its mission, and relevant history.", word_limit=500),
        T("statement_of_need", "Statement of Need", N, "Explain the problem you are addressing and why it matters.", word_limit=750),
        T("project_description", "Project Description", N, "Describe your proposed project, activities, and timeline.", word_limit=1500),
        T("outcomes_evaluation", "Outcomes and Evaluation", N, "What outcomes do you expect and how will you measure success?", word_limit=500),
        T("organizational_capacity", "Organizational Capacity", N, "Describe your team and organizational ability to execute this project.", word_limit=500),
        T("budget_request", "Budget and Request", B, "Provide a budget summary and explain how funds will be used.", word_limit=500),
        T("sustainability", "Sustainability Plan", N, "How will this project continue after the grant period?", word_limit=300),
    ],
    "corporate_general": [
        ORGANIZATION_NAME,
        T("project_summary", "Project Summary", N, "Describe the project and its alignment with our giving priorities.", word_limit=300),
        T("community_impact", "Community Impact", N, "Describe measurable impact in the communities we serve.", word_limit=500),
        T("employee_engagement", "Partnership Opportunities", N, "Describe volunteer or partnership opportunities for our employees.", required=False, word_limit=300),
        AMOUNT_REQUESTED,
        T("use_of_funds", "Use of Funds", B, "How will you use the grant funds?", word_limit=300),
    ],
    "state_general": [
        ORGANIZATION_NAME,
        T("ein", "EIN", A, "Employer Identification Number."),
        T("state_need", "Statement of Need", N, "Describe the need within the state, with local data.", word_limit=750),
        T("project_approach", "Project Approach", N, "Describe activities and local partners.", word_limit=1000),
        T("economic_impact", "Economic Impact", N, "Describe job creation and local economic benefits.", word_limit=500),
        T("budget_justification", "Budget Justification", B, "Justify each cost category.", word_limit=750),
    ],
    "simple_application": [
        T("project_title", "Project Title", A, "Provide a concise title for your project.", character_limit=100),
        ORGANIZATION_NAME,
        T("project_summary", "Project Summary", N, "Briefly describe your project and what you hope to accomplish.", word_limit=300),
        AMOUNT_REQUESTED,
        T("use_of_funds", "Use of Funds", N, "How will you use the grant funds?", word_limit=500),
    ],
}

GENERIC_TEMPLATE = "simple_application"

PROGRAM_PATTERN = re.compile(r"\b(sbir|sttr)\b")
PHASE_TWO_PATTERN = re.compile(r"\bphase[\s-]*(ii|2)\b")

NAMED_FUNDERS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\bnsf\b|national science foundation"), "nsf_research"),
    (re.compile(r"\bnih\b|national institutes? of health"), "nih_r21"),
]

DOMAIN_KEYWORDS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"education|school|literacy|stem learning"), "education_grant"),
    (re.compile(r"environment|conservation|climate|watershed"), "environmental_grant"),
    (re.compile(r"health|medical|clinic"), "health_services"),
    (re.compile(r"\barts?\b|culture|cultural|humanities"), "arts_culture"),
    (re.compile(r"workforce|job training|apprentice"), "workforce_development"),
    (re.compile(r"\btech|technology|innovation"), "technology_innovation"),
]

FUNDER_TYPE_TEMPLATES = {
    FunderType.FEDERAL: "federal_general",
    FunderType.FOUNDATION: "foundation_general",
    FunderType.CORPORATE: "corporate_general",
    FunderType.STATE: "state_general",
}


def template_key_for(grant: GrantContext) -> str:
    """Walk the precedence chain and return the first matching template key."""
    title = grant.title.lower()
    category = (grant.category or "").lower()
    funder = grant.funder.lower()
    program_text = f"{title} {category}"

    if PROGRAM_PATTERN.search(program_text):
        return "sbir_phase2" if PHASE_TWO_PATTERN.search(program_text) else "sbir_phase1"

    for pattern, key in NAMED_FUNDERS:
        if pattern.search(funder):
            return key

    for pattern, key in DOMAIN_KEYWORDS:
        if pattern.search(category) or pattern.search(title):
            return key

    funder_type = grant.declared_funder_type
    if funder_type is not None:
        return FUNDER_TYPE_TEMPLATES[funder_type]

    return GENERIC_TEMPLATE


def select_template(grant: GrantContext) -> tuple[str, list[Field]]:
    """Return the template key and its ordered fields for a grant."""
    key = template_key_for(grant)
    sections = SECTION_TEMPLATES.get(key, SECTION_TEMPLATES[GENERIC_TEMPLATE])
    logger.info("Selected template %s for grant %r", key, grant.title)
    return key, [section.to_field() for section in sections]
