"""
ProviderChain – ordered, strictly sequential fallback across providers.

Each handle is tried once, in priority order, under its own timeout. Empty
responses, provider errors, timeouts and sanitizer rejections all advance to
the next handle; the first accepted payload ends the chain.
"""
from __future__ import annotations

import asyncio
import time
from typing import Callable, List, Sequence

from loguru import logger

from app.core.exceptions import ProviderFailure
from app.core.interfaces.text_provider import (
    EmptyResponse,
    GenerationOutcome,
    Prompt,
    ProviderError,
    ProviderHandle,
    Success,
    Timeout,
)
from app.services.generation.types import (
    ChainResult,
    Exhausted,
    ProviderAttempt,
    SanitizedPayload,
    Validated,
)


Acceptor = Callable[[str], SanitizedPayload]


class ProviderChain:
    """Drive an ordered list of provider handles until one yields a valid payload"""

    def __init__(self, handles: Sequence[ProviderHandle]):
        # sorted() is stable: equal priorities keep their configured order
        self.handles: List[ProviderHandle] = sorted(handles, key=lambda h: h.priority)

    async def run(self, prompt: Prompt, accept: Acceptor) -> ChainResult:
        """
        Try every handle in order

        Args:
            prompt: Prompt passed unchanged to each provider
            accept: Turns raw content into a payload or raises ProviderFailure

        Returns:
            Validated on the first accepted payload, Exhausted otherwise
        """
        attempts: List[ProviderAttempt] = []
        last_failure = "No providers configured"

        for handle in self.handles:
            logger.info(f"🤖 Trying provider {handle.id} (timeout {handle.timeout_budget:g}s)")
            started = time.perf_counter()
            outcome = await self._invoke(handle, prompt)

            if isinstance(outcome, Success):
                try:
                    sanitized = accept(outcome.raw_content)
                except ProviderFailure as error:
                    outcome = ProviderError(reason=f"Rejected by sanitizer: {error}")
                except Exception as error:  # malformed output must not escape the chain
                    logger.exception(f"💥 Sanitizer crashed on output from {handle.id}")
                    outcome = ProviderError(
                        reason=f"Rejected by sanitizer: {error.__class__.__name__}: {error}"
                    )
                else:
                    attempts.append(ProviderAttempt(
                        provider_id=handle.id,
                        outcome="success",
                        elapsed=time.perf_counter() - started,
                    ))
                    logger.info(f"✅ Provider {handle.id} produced a valid payload")
                    return Validated(payload=sanitized, provider_id=handle.id, attempts=attempts)

            last_failure = f"{handle.id}: {outcome.reason}"
            attempts.append(ProviderAttempt(
                provider_id=handle.id,
                outcome=outcome.kind,
                reason=outcome.reason,
                elapsed=time.perf_counter() - started,
            ))
            logger.warning(f"⏭️ Provider {handle.id} failed ({outcome.kind}): {outcome.reason}")

        logger.warning(f"❌ Provider chain exhausted after {len(attempts)} attempts")
        return Exhausted(last_failure_reason=last_failure, attempts=attempts)

    @staticmethod
    async def _invoke(handle: ProviderHandle, prompt: Prompt) -> GenerationOutcome:
        """Call one provider and classify whatever happens"""
        try:
            outcome = await asyncio.wait_for(
                handle.provider.attempt(prompt, handle.timeout_budget),
                timeout=handle.timeout_budget,
            )
        except asyncio.TimeoutError:
            return Timeout(timeout_budget=handle.timeout_budget)
        except Exception as error:  # providers should not raise; classify if they do
            return ProviderError(reason=f"{error.__class__.__name__}: {error}")

        if isinstance(outcome, Success) and not outcome.raw_content.strip():
            return EmptyResponse()
        if not isinstance(outcome, (Success, EmptyResponse, ProviderError, Timeout)):
            return ProviderError(reason=f"Unexpected outcome type {type(outcome).__name__}")
        return outcome

    def describe(self) -> List[dict]:
        return [
            {
                "id": handle.id,
                "priority": handle.priority,
                "timeout_budget": handle.timeout_budget,
                "service": handle.provider.get_service_name(),
                "available": handle.provider.is_available(),
            }
            for handle in self.handles
        ]
