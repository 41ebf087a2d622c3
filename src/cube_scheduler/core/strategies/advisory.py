"""
Advisory strategy.

Sends the request to an injected async client, validates the bounded
response and builds the output from it.  Any capability failure (no
client, timeout, transport error, malformed or out-of-bound response)
becomes the deterministic result tagged formula_fallback.
"""

import asyncio
from dataclasses import replace
from typing import Any, Awaitable, Callable

from loguru import logger
from pydantic import ValidationError

from ..advisory import AdvisoryAdjustment, apply_adjustment, build_advisory_request
from ..config import ADVISORY_TIMEOUT_SECONDS
from ..constraints import enforce_hard_constraints
from ..errors import AdvisoryUnavailableError
from ..models import JITInput, JITOutput, StrategyTag
from .base import JITGenerator
from .formula import FormulaStrategy

# Receives the request body, returns the raw (unvalidated) response body
AdvisoryClient = Callable[[dict[str, Any]], Awaitable[Any]]


class AdvisoryStrategy(JITGenerator):
    name = "advisory"
    description = "Advisory-service generator — requires network, falls back to formula"

    def __init__(
        self,
        client: AdvisoryClient | None = None,
        timeout: float = ADVISORY_TIMEOUT_SECONDS,
        fallback: FormulaStrategy | None = None,
    ) -> None:
        self._client = client
        self._timeout = timeout
        self._fallback = fallback or FormulaStrategy()

    async def _request_adjustment(self, inp: JITInput) -> AdvisoryAdjustment:
        if self._client is None:
            raise AdvisoryUnavailableError("No advisory client configured")
        request = build_advisory_request(inp)
        try:
            raw = await asyncio.wait_for(self._client(request), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise AdvisoryUnavailableError(f"Advisory call timed out after {self._timeout}s") from e
        except AdvisoryUnavailableError:
            raise
        except Exception as e:
            raise AdvisoryUnavailableError(f"Advisory call failed: {e}") from e

        if isinstance(raw, AdvisoryAdjustment):
            return raw
        try:
            return AdvisoryAdjustment.model_validate(raw)
        except ValidationError as e:
            raise AdvisoryUnavailableError(f"Malformed advisory response: {e.error_count()} error(s)") from e

    async def generate_strict(self, inp: JITInput) -> JITOutput:
        """
        Advisory output without fallback.

        Raises:
            AdvisoryUnavailableError: On any capability failure
        """
        adjustment = await self._request_adjustment(inp)
        output = enforce_hard_constraints(apply_adjustment(adjustment, inp), inp)
        return replace(output, strategy=StrategyTag.ADVISORY)

    async def generate(self, inp: JITInput) -> JITOutput:
        try:
            return await self.generate_strict(inp)
        except AdvisoryUnavailableError as e:
            logger.warning("Advisory strategy unavailable, using formula fallback: {}", e)
            fallback = await self._fallback.generate(inp)
            return replace(fallback, strategy=StrategyTag.FORMULA_FALLBACK)
