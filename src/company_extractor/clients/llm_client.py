"""Claude API wrapper with server-side web search and backoff retries."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import anthropic
import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from company_extractor.errors import is_retryable_error

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"
WEB_SEARCH_TOOL = "web_search_20250305"


@dataclass
class SearchResponse:
    """Web-grounded response from the LLM including citation URLs."""

    text: str
    sources: list[str] = field(default_factory=list)
    input_tokens: int = 0
    output_tokens: int = 0


class LLMClient:
    """Async Claude API client with exponential-backoff retries.

    A failed call is retried while the error looks like quota exhaustion or a
    transient service failure. Attempt ``n`` (0-based) waits
    ``backoff_base * 2**n`` seconds plus up to ``jitter`` seconds of random
    jitter. After ``max_attempts`` calls the last error is re-raised as is.
    """

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float | None = None,
        *,
        max_attempts: int = 5,
        backoff_base: float = 3.0,
        jitter: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        http_client: httpx.AsyncClient | None = None,
    ):
        # backoff is owned by tenacity; the SDK itself must not retry
        kwargs: dict = {"max_retries": 0}
        if api_key is not None:
            kwargs["api_key"] = api_key
        if timeout is not None:
            kwargs["timeout"] = timeout
        if http_client is not None:
            kwargs["http_client"] = http_client
        self.client = anthropic.AsyncAnthropic(**kwargs)
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base
        self.jitter = jitter
        self._sleep = sleep
        self._token_log: list[tuple[str, int, int]] = []  # (model, input_tokens, output_tokens)

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff_base, exp_base=2)
            + wait_random(0, self.jitter),
            retry=retry_if_exception(is_retryable_error),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            sleep=self._sleep,
            reraise=True,
        )

    async def _call_api(self, **kwargs) -> anthropic.types.Message:
        """Make the actual API call with retry logic."""
        retrying = self._retrying()
        try:
            async for attempt in retrying:
                with attempt:
                    return await self.client.messages.create(**kwargs)
        finally:
            logger.debug("LLM call finished after %s attempt(s)", retrying.statistics.get("attempt_number"))

    async def generate_with_search(
        self,
        prompt: str,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 8192,
        max_searches: int = 5,
    ) -> SearchResponse:
        """Send a prompt with live web search enabled.

        Returns the concatenated text blocks and every citation URL found in
        the search results and text citations, in content order.
        """
        logger.debug("LLM search call: model=%s", model)
        try:
            message = await self._call_api(
                model=model,
                max_tokens=max_tokens,
                messages=[{"role": "user", "content": prompt}],
                tools=[{
                    "type": WEB_SEARCH_TOOL,
                    "name": "web_search",
                    "max_uses": max_searches,
                }],
            )
        except Exception:
            logger.error("LLM call failed", exc_info=True)
            raise
        input_tokens = message.usage.input_tokens
        output_tokens = message.usage.output_tokens
        logger.debug("LLM response: %d input, %d output tokens", input_tokens, output_tokens)
        self._token_log.append((model, input_tokens, output_tokens))
        return SearchResponse(
            text=_collect_text(message.content),
            sources=_collect_sources(message.content),
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )

    def get_token_summary(self) -> dict:
        """Return accumulated token usage and reset the log."""
        summary = {
            "input": sum(t[1] for t in self._token_log),
            "output": sum(t[2] for t in self._token_log),
            "calls": list(self._token_log),
        }
        self._token_log.clear()
        return summary


def _collect_text(content) -> str:
    return "".join(
        block.text for block in content or [] if getattr(block, "type", None) == "text"
    )


def _collect_sources(content) -> list[str]:
    """Citation URLs from search result blocks and text citations."""
    sources: list[str] = []
    for block in content or []:
        block_type = getattr(block, "type", None)
        if block_type == "web_search_tool_result":
            results = getattr(block, "content", None)
            # a failed search carries an error object instead of a result list
            if isinstance(results, list):
                sources.extend(r.url for r in results if getattr(r, "url", None))
        elif block_type == "text":
            citations = getattr(block, "citations", None) or []
            sources.extend(c.url for c in citations if getattr(c, "url", None))
    return sources
