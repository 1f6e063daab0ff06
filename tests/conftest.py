"""Shared test fixtures."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import pytest

from company_extractor.clients.llm_client import LLMClient, SearchResponse
from company_extractor.models.company import CompanyRecord, normalize_record

_ERROR_CLASSES = {
    400: anthropic.BadRequestError,
    429: anthropic.RateLimitError,
    500: anthropic.InternalServerError,
}


def make_api_error(status_code: int, message: str, error_type: str) -> anthropic.APIStatusError:
    """Build a real SDK status error the way the client raises it."""
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    response = httpx.Response(status_code, request=request)
    body = {"type": "error", "error": {"type": error_type, "message": message}}
    cls = _ERROR_CLASSES.get(status_code, anthropic.APIStatusError)
    return cls(message, response=response, body=body)


def make_api_message(
    text: str = "",
    blocks: list | None = None,
    input_tokens: int = 100,
    output_tokens: int = 50,
) -> MagicMock:
    """Build a mock anthropic Message-like object."""
    message = MagicMock()
    message.usage.input_tokens = input_tokens
    message.usage.output_tokens = output_tokens
    message.content = blocks if blocks is not None else [
        SimpleNamespace(type="text", text=text, citations=None)
    ]
    return message


class RecordingSleep:
    """Async stand-in for asyncio.sleep that records requested waits."""

    def __init__(self):
        self.waits: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.waits.append(seconds)


@pytest.fixture
def quota_error() -> anthropic.APIStatusError:
    return make_api_error(429, "Rate limit exceeded for this organization", "rate_limit_error")


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def acme_record() -> CompanyRecord:
    return normalize_record(
        {
            "companyName": "Acme Inc",
            "officialWebsite": "https://acme.com",
            "email1": "info@acme.com",
            "industry": "Manufacturing",
            "location": "Springfield, USA",
            "foundedYear": 1947,
        },
        sources=["https://acme.com/about"],
    )


@pytest.fixture
def globex_record() -> CompanyRecord:
    return normalize_record(
        {
            "companyName": "Globex",
            "officialWebsite": "https://globex.example",
            "email1": "hello@globex.example",
            "email2": "sales@globex.example",
        }
    )


@pytest.fixture
def mock_llm_client() -> LLMClient:
    """Create a mock LLM client."""
    client = AsyncMock(spec=LLMClient)
    client.generate_with_search = AsyncMock(
        return_value=SearchResponse(text="[]", sources=[], input_tokens=100, output_tokens=50)
    )
    return client


@pytest.fixture
def api_error():
    """Factory fixture: api_error(status_code, message, error_type)."""
    return make_api_error


@pytest.fixture
def api_message():
    """Factory fixture: api_message(text=..., blocks=...)."""
    return make_api_message
