"""Tests for bounded concurrent generation dispatch."""

import asyncio

import pytest

from autoapply.analysis.classifier import analyze_field
from autoapply.backends.base import GenerationError
from autoapply.models.context import GrantContext, UserContext
from autoapply.orchestrator.dispatcher import GenerationDispatcher
from autoapply.orchestrator.narrative import build_generation_request

from conftest import FakeBackend, narrative_field

LABELS = ["Project Description", "Evaluation Plan", "Sustainability Plan", "Goals and Objectives", "Risks and Mitigation"]


def requests_for(labels):
    grant = GrantContext(title="Literacy Grant", funder="Hartwell Family Foundation")
    out = []
    for i, label in enumerate(labels):
        field = analyze_field(narrative_field(f"f{i}", label))
        out.append((field.id, build_generation_request(field, grant, UserContext())))
    return out


def test_concurrency_is_bounded():
    backend = FakeBackend(slow=set(LABELS), delay=0.02)
    dispatcher = GenerationDispatcher(backend, concurrency=2, timeout=1.0)
    outcome = asyncio.run(dispatcher.dispatch(requests_for(LABELS)))
    assert len(outcome.responses) == 5
    assert outcome.failures == {}
    assert backend.max_in_flight == 2


def test_failures_are_isolated_per_field():
    backend = FakeBackend(fail={"Evaluation Plan"})
    dispatcher = GenerationDispatcher(backend, concurrency=3, timeout=1.0)
    outcome = asyncio.run(dispatcher.dispatch(requests_for(LABELS)))
    assert set(outcome.failures) == {"f1"}
    assert "scripted failure" in outcome.failures["f1"]
    assert set(outcome.responses) == {"f0", "f2", "f3", "f4"}


def test_timeout_fails_only_the_slow_field():
    backend = FakeBackend(slow={"Sustainability Plan"}, delay=0.5)
    dispatcher = GenerationDispatcher(backend, concurrency=5, timeout=0.05)
    outcome = asyncio.run(dispatcher.dispatch(requests_for(LABELS)))
    assert outcome.failures == {"f2": "the writing assistant timed out"}
    assert len(outcome.responses) == 4


def test_abandoned_pass_lets_in_flight_calls_finish():
    backend = FakeBackend(slow={"Project Description", "Evaluation Plan"}, delay=0.1)
    dispatcher = GenerationDispatcher(backend, concurrency=2, timeout=1.0)

    async def scenario():
        task = asyncio.create_task(dispatcher.dispatch(requests_for(LABELS[:2])))
        await asyncio.sleep(0.02)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        await asyncio.sleep(0.2)

    asyncio.run(scenario())
    assert backend.completed == 2


def test_single_generate_wraps_unexpected_errors():
    class Broken:
        name = "Broken"

        async def generate(self, request):
            raise RuntimeError("socket closed")

    dispatcher = GenerationDispatcher(Broken(), timeout=1.0)
    _, request = requests_for(LABELS[:1])[0]
    with pytest.raises(GenerationError, match="socket closed"):
        asyncio.run(dispatcher.generate(request))


def test_single_generate_times_out():
    backend = FakeBackend(slow={"Project Description"}, delay=0.5)
    dispatcher = GenerationDispatcher(backend, timeout=0.05)
    _, request = requests_for(LABELS[:1])[0]
    with pytest.raises(GenerationError, match="timed out"):
        asyncio.run(dispatcher.generate(request))


def test_concurrency_must_be_positive():
    with pytest.raises(ValueError):
        GenerationDispatcher(FakeBackend(), concurrency=0)
