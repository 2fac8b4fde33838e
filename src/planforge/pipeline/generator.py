"""Client for the external text-generation service.

The service takes a markdown document and returns a markdown document. It is
called twice per pipeline: notes to PRD, then PRD to tasks. Transport
failures are classified as transient (retried with jittered exponential
backoff) or permanent (raised at once).
"""

import asyncio
import random
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, Self

import httpx

from src.planforge.core.config import Settings, get_settings
from src.planforge.core.exceptions import (
    EmptyOutputError,
    GeneratorUnavailableError,
    PermanentError,
)
from src.planforge.core.logging import get_logger

logger = get_logger(__name__)

_TRANSIENT_STATUS_CODES = frozenset({408, 425, 429, 500, 502, 503, 504})


class Generator(Protocol):
    """What the orchestrator needs from a generator."""

    async def synthesize_prd(self, aggregated_markdown: str) -> str: ...

    async def synthesize_tasks(self, prd_markdown: str) -> str: ...


class GeneratorTransientError(Exception):
    """Timeout, rate limit or network failure; the call may succeed if retried."""


class GeneratorPermanentError(Exception):
    """Malformed input, policy rejection or unusable response."""


class GeneratorClient:
    """httpx adapter for the generation service with timeout and retry policy.

    Usage:
        async with GeneratorClient.from_settings() as generator:
            prd = await generator.synthesize_prd(document)
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        timeout: float = 60.0,
        max_attempts: int = 3,
        backoff_base: float = 0.5,
        backoff_factor: float = 2.0,
        backoff_jitter: float = 0.2,
        http_client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: random.Random | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base
        self.backoff_factor = backoff_factor
        self.backoff_jitter = backoff_jitter
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._owns_client = http_client is None
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client = http_client or httpx.AsyncClient(headers=headers, timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **kwargs: Any) -> Self:
        settings = settings or get_settings()
        return cls(
            settings.generator_url,
            api_key=settings.generator_api_key,
            timeout=settings.generator_timeout_seconds,
            max_attempts=settings.generator_max_attempts,
            backoff_base=settings.generator_backoff_base_ms / 1000,
            backoff_factor=settings.generator_backoff_factor,
            backoff_jitter=settings.generator_backoff_jitter,
            **kwargs,
        )

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def synthesize_prd(self, aggregated_markdown: str) -> str:
        """Turn aggregated notes into a PRD."""
        return await self._call("prd", aggregated_markdown)

    async def synthesize_tasks(self, prd_markdown: str) -> str:
        """Turn a PRD into task markdown."""
        return await self._call("tasks", prd_markdown)

    def backoff_delay(self, attempt: int) -> float:
        """Delay before retry number `attempt` (1-based), jittered by +/- backoff_jitter."""
        delay = self.backoff_base * self.backoff_factor ** (attempt - 1)
        jitter = self._rng.uniform(-self.backoff_jitter, self.backoff_jitter)
        return max(0.0, delay * (1 + jitter))

    async def _call(self, operation: str, document: str) -> str:
        last_error: GeneratorTransientError | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                output = await self._request(operation, document)
            except GeneratorTransientError as e:
                last_error = e
                if attempt == self.max_attempts:
                    break
                delay = self.backoff_delay(attempt)
                logger.warning(
                    "Generator call failed, retrying",
                    operation=operation,
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    retry_in=round(delay, 3),
                    error=str(e),
                )
                await self._sleep(delay)
                continue
            except GeneratorPermanentError as e:
                logger.error("Generator rejected request", operation=operation, error=str(e))
                raise PermanentError(f"Generator rejected {operation} request: {e}") from e

            if not output.strip():
                logger.error("Generator returned empty output", operation=operation)
                raise EmptyOutputError(f"Generator returned empty {operation} markdown")
            logger.info("Generator call succeeded", operation=operation, attempt=attempt)
            return output

        logger.error(
            "Generator retries exhausted",
            operation=operation,
            attempts=self.max_attempts,
            error=str(last_error),
        )
        raise GeneratorUnavailableError(
            f"Generator unavailable for {operation} after {self.max_attempts} attempts: {last_error}"
        ) from last_error

    async def _request(self, operation: str, document: str) -> str:
        url = f"{self.base_url}/{operation}"
        try:
            async with asyncio.timeout(self.timeout):
                response = await self._client.post(url, json={"markdown": document})
        except (TimeoutError, httpx.TimeoutException) as e:
            raise GeneratorTransientError(f"timed out after {self.timeout}s") from e
        except httpx.TransportError as e:
            raise GeneratorTransientError(f"network error: {e!r}") from e

        if response.status_code in _TRANSIENT_STATUS_CODES:
            raise GeneratorTransientError(f"HTTP {response.status_code}")
        if response.is_error:
            raise GeneratorPermanentError(f"HTTP {response.status_code}: {response.text[:200]}")

        try:
            payload = response.json()
        except ValueError as e:
            raise GeneratorPermanentError("response is not JSON") from e
        markdown = payload.get("markdown") if isinstance(payload, dict) else None
        if not isinstance(markdown, str):
            raise GeneratorPermanentError("response has no 'markdown' string")
        return markdown
