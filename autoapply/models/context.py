"""Knowledge-source and grant context data models.

Everything here is a read-only input to a resolution pass: the engine never
mutates a profile, a document extraction or a prior application.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class FunderType(Enum):
    FEDERAL = "federal"
    FOUNDATION = "foundation"
    CORPORATE = "corporate"
    STATE = "state"


FEDERAL_ACRONYMS = ("nsf", "nih", "doe", "usda", "sbir", "sttr")
FEDERAL_NAMES = (
    "national science foundation",
    "national institutes of health",
    "department of energy",
    "department of agriculture",
)
CORPORATE_MARKERS = ("inc", "inc.", "corp", "corp.", "corporation", "llc")


@dataclass
class OrganizationProfile:
    """The single structured profile record an organization maintains."""

    name: str
    type: str | None = None
    legal_structure: str | None = None
    ein: str | None = None
    website: str | None = None
    city: str | None = None
    state: str | None = None
    mission: str | None = None
    vision: str | None = None
    problem_statement: str | None = None
    solution: str | None = None
    target_market: str | None = None
    team_size: str | None = None
    founder_background: str | None = None
    annual_revenue: str | None = None
    funding_seeking: str | None = None
    previous_funding: str | None = None

    def get(self, attribute: str) -> str | None:
        value = getattr(self, attribute, None)
        if value is None:
            return None
        text = str(value).strip()
        return text or None


@dataclass
class OrganizationInfo:
    name: str | None = None
    ein: str | None = None
    address: str | None = None
    year_founded: str | None = None


@dataclass
class FinancialData:
    total_revenue: float | None = None
    total_expenses: float | None = None
    net_assets: float | None = None
    fiscal_year: str | None = None
    audit_status: str | None = None


@dataclass
class KeyPerson:
    name: str
    title: str
    qualifications: str | None = None


@dataclass
class TeamData:
    key_personnel: list[KeyPerson] = field(default_factory=list)
    board_members: list[str] = field(default_factory=list)
    total_staff: int | None = None


@dataclass
class ProgramData:
    program_names: list[str] = field(default_factory=list)
    total_served: int | None = None
    geographic_area: str | None = None


@dataclass
class DocumentExtraction:
    """Typed extraction for one uploaded document.

    Produced upstream by the document-intelligence step; ``confidence`` is that
    step's own estimate of the extraction quality (0-1).
    """

    document_id: str
    name: str
    document_type: str
    confidence: float
    organization_info: OrganizationInfo | None = None
    financial_data: FinancialData | None = None
    team_data: TeamData | None = None
    program_data: ProgramData | None = None


class ApplicationStatus(Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    AWARDED = "awarded"
    REJECTED = "rejected"


@dataclass
class PriorApplication:
    """A previously prepared application and the answers it gave."""

    id: str
    grant_title: str
    status: ApplicationStatus
    responses: dict[str, str] = field(default_factory=dict)
    submitted_at: datetime | None = None


@dataclass
class UserContext:
    """Everything the organization has told us, across all three sources."""

    organization: OrganizationProfile | None = None
    documents: list[DocumentExtraction] = field(default_factory=list)
    previous_applications: list[PriorApplication] = field(default_factory=list)


@dataclass
class GrantContext:
    """The grant being applied to; also the signature used to pick a template."""

    title: str
    funder: str
    id: str = ""
    description: str | None = None
    amount: str | None = None
    deadline: datetime | None = None
    type: str | None = None
    category: str | None = None
    requirements: list[str] = field(default_factory=list)

    @property
    def declared_funder_type(self) -> FunderType | None:
        """Funder type when the grant metadata signals one, else None."""
        grant_type = (self.type or "").lower()
        funder = self.funder.lower()
        funder_words = re.findall(r"[a-z0-9.]+", funder)

        if "federal" in grant_type or (
            any(word in FEDERAL_ACRONYMS for word in funder_words)
            or any(name in funder for name in FEDERAL_NAMES)
        ):
            return FunderType.FEDERAL
        if "foundation" in grant_type or "foundation" in funder or "trust" in funder_words:
            return FunderType.FOUNDATION
        if "corporate" in grant_type or any(marker in funder_words for marker in CORPORATE_MARKERS):
            return FunderType.CORPORATE
        if "state" in grant_type or funder.startswith("state of"):
            return FunderType.STATE
        return None

    @property
    def funder_type(self) -> FunderType:
        # Foundation tone is the most forgiving default.
        return self.declared_funder_type or FunderType.FOUNDATION
