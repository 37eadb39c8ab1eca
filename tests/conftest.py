"""Pytest configuration and shared fixtures.

The engine and the HTTP app are driven by ``FakeBackend``, an in-process
generation backend whose failures, delays and payloads are scripted per field
label.
"""

from __future__ import annotations

import asyncio
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from autoapply.backends.base import (
    GenerationError,
    GenerationRequest,
    GenerationResponse,
    GenerationTask,
)
from autoapply.config import Settings
from autoapply.main import app, get_engine
from autoapply.models.context import (
    ApplicationStatus,
    DocumentExtraction,
    FinancialData,
    GrantContext,
    OrganizationInfo,
    OrganizationProfile,
    PriorApplication,
    UserContext,
)
from autoapply.models.field import Field, InputKind, LengthUnit
from autoapply.orchestrator.engine import AutoApplyEngine

GENERATED_TEXT = (
    "In 2024 Riverbend Learning Lab served 1,200 students across Travis County. "
    "Our approach pairs certified tutors with weekly progress data, and the "
    "program will measure reading gains each quarter against district benchmarks."
)


class FakeBackend:
    """Scripted generation backend keyed by the field label (first line of the question)."""

    name = "Fake"

    def __init__(
        self,
        fail: set[str] | None = None,
        empty: set[str] | None = None,
        slow: set[str] | None = None,
        delay: float = 0.0,
        quality_score: float = 80.0,
        content: str = GENERATED_TEXT,
    ) -> None:
        self.fail = fail or set()
        self.empty = empty or set()
        self.slow = slow or set()
        self.delay = delay
        self.quality_score = quality_score
        self.content = content
        self.calls: list[GenerationRequest] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.completed = 0

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        label = request.question.split("\n", 1)[0]
        self.calls.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay if label in self.slow else 0)
            if label in self.fail:
                raise GenerationError(f"scripted failure for {label}")
            self.completed += 1
            if label in self.empty:
                return GenerationResponse(content="   ")
            if request.task is GenerationTask.CRITIQUE:
                return GenerationResponse(
                    content=GENERATED_TEXT,
                    quality_score=72,
                    feedback=["Open with the strongest outcome figure."],
                )
            return GenerationResponse(
                content=self.content,
                quality_score=self.quality_score,
                alternatives=["Riverbend Learning Lab closes reading gaps for 1,200 students."],
            )
        finally:
            self.in_flight -= 1


def make_settings(**overrides) -> Settings:
    values = {"generation_concurrency": 2, "generation_timeout": 1.0}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def narrative_field(field_id: str, label: str, words: int = 500, required: bool = True) -> Field:
    return Field(
        id=field_id,
        label=label,
        input_kind=InputKind.TEXTAREA,
        required=required,
        max_length=words,
        length_unit=LengthUnit.WORDS,
    )


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def test_settings():
    return make_settings()


@pytest.fixture
def engine(fake_backend, test_settings):
    return AutoApplyEngine(fake_backend, test_settings)


@pytest.fixture
def profile():
    return OrganizationProfile(
        name="Riverbend Learning Lab",
        type="nonprofit",
        ein="12-3456789",
        website="https://riverbend.example.org",
        city="Austin",
        state="TX",
        mission="We close early reading gaps for children in Central Texas.",
        problem_statement="Forty percent of third graders in our district read below grade level.",
    )


@pytest.fixture
def documents():
    return [
        DocumentExtraction(
            document_id="doc-990",
            name="2023 Form 990",
            document_type="990",
            confidence=0.9,
            organization_info=OrganizationInfo(name="Riverbend Learning Lab Inc", ein="98-7654321"),
            financial_data=FinancialData(total_revenue=1250000.0, total_expenses=1100000.0),
        ),
    ]


@pytest.fixture
def previous_applications():
    return [
        PriorApplication(
            id="app-1",
            grant_title="Literacy Fund 2023",
            status=ApplicationStatus.AWARDED,
            responses={"evaluation_plan": "We track DIBELS scores three times a year."},
            submitted_at=datetime(2023, 5, 1),
        ),
    ]


@pytest.fixture
def user_context(profile, documents, previous_applications):
    return UserContext(
        organization=profile,
        documents=documents,
        previous_applications=previous_applications,
    )


@pytest.fixture
def grant():
    return GrantContext(
        id="grant-1",
        title="Community Literacy Grant",
        funder="Hartwell Family Foundation",
        amount="$50,000",
        requirements=["Serve Travis County residents"],
    )


@pytest.fixture
def client(engine):
    app.dependency_overrides[get_engine] = lambda: engine
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
