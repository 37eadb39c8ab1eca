"""Generation dispatcher — fans field requests out to the generation backend."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from autoapply.backends.base import (
    GenerationBackend,
    GenerationError,
    GenerationRequest,
    GenerationResponse,
)

logger = logging.getLogger(__name__)


@dataclass
class DispatchOutcome:
    """Per-field results of one bulk pass; a field is in exactly one of the maps."""

    responses: dict[str, GenerationResponse] = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)


class GenerationDispatcher:
    """Dispatches generation requests concurrently, bounded by a semaphore."""

    def __init__(self, backend: GenerationBackend, concurrency: int = 3, timeout: float = 90.0) -> None:
        if concurrency < 1:
            raise ValueError("Concurrency must be at least 1")
        self.backend = backend
        self.concurrency = concurrency
        self.timeout = timeout

    async def dispatch(self, requests: list[tuple[str, GenerationRequest]]) -> DispatchOutcome:
        """Generate every request, isolating failures per field.

        Failed or timed-out fields are logged and reported in ``failures``;
        they never fail the pass. If the caller is cancelled, in-flight calls
        run to completion and their results are dropped.
        """
        semaphore = asyncio.Semaphore(self.concurrency)
        tasks = [self._run_bounded(semaphore, field_id, req) for field_id, req in requests]
        batch = asyncio.gather(*tasks, return_exceptions=True)
        outcomes = await asyncio.shield(batch)

        result = DispatchOutcome()
        for (field_id, _), outcome in zip(requests, outcomes):
            if isinstance(outcome, BaseException):
                reason = _describe_failure(outcome)
                logger.error("Generation for %s failed: %s", field_id, reason)
                result.failures[field_id] = reason
            else:
                result.responses[field_id] = outcome
        logger.info(
            "Generation pass finished: %d succeeded, %d failed",
            len(result.responses), len(result.failures),
        )
        return result

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Run one request outside any bulk pass, raising GenerationError on failure."""
        try:
            return await asyncio.wait_for(self.backend.generate(request), self.timeout)
        except GenerationError:
            raise
        except Exception as exc:
            raise GenerationError(_describe_failure(exc)) from exc

    async def _run_bounded(
        self, semaphore: asyncio.Semaphore, field_id: str, request: GenerationRequest
    ) -> GenerationResponse:
        async with semaphore:
            logger.info("Dispatching %s to %s", field_id, self.backend.name)
            response = await asyncio.wait_for(self.backend.generate(request), self.timeout)
            logger.info("Backend %s returned %d characters for %s", self.backend.name, len(response.content), field_id)
            return response


def _describe_failure(exc: BaseException) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return "the writing assistant timed out"
    if isinstance(exc, asyncio.CancelledError):
        return "the request was cancelled"
    return str(exc) or type(exc).__name__
