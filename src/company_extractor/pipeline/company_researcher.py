"""Company Researcher - extracts company fields using web-grounded search."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from company_extractor.clients.llm_client import DEFAULT_MODEL, LLMClient
from company_extractor.models.company import (
    NO_DATA,
    NO_EMAIL,
    WEBSITE_NOT_FOUND,
    CompanyRecord,
    normalize_record,
)
from company_extractor.models.fields import label_for, validate_field_ids
from company_extractor.utils.json_parser import extract_json_array

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = """\
Perform advanced research for these entities: {entities}

STRICT PROCESSING LOGIC:
1. For each input, find the OFFICIAL company website.
2. Extract precisely these fields as requested:
{fields}

FALLBACK VALUES:
- Use '{website_missing}' if no official site is identified.
- Use '{email_missing}' for missing contact addresses.
- Use '{data_missing}' for other missing fields.

RULES:
- No hallucinations. Search the live web for every entity; do not answer from memory.
- Emails must be verified from the company's own domain.
- Return one object per input, in the same order as the inputs.
- Use the field ids above as the JSON keys.
- Return the data as a JSON array of objects inside a ```json markdown code block."""


@dataclass
class ResearchResult:
    """Records parsed from one research call plus the call's citation URLs."""

    records: list[CompanyRecord]
    sources: list[str] = field(default_factory=list)


class CompanyResearcher:
    def __init__(
        self,
        llm: LLMClient,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 8192,
        max_searches: int = 5,
    ):
        self.llm = llm
        self.model = model
        self.max_tokens = max_tokens
        self.max_searches = max_searches

    async def extract(self, inputs: list[str], field_ids: list[str]) -> list[CompanyRecord]:
        """Research a group of companies and return one record per parsed object."""
        return (await self.research(inputs, field_ids)).records

    async def research(self, inputs: list[str], field_ids: list[str]) -> ResearchResult:
        """Like ``extract``, but keeps the call's sources even when no record parsed.

        Raises ParseError when the answer holds no JSON array. Upstream errors
        surface after the client's retries are exhausted.
        """
        if not inputs:
            raise ValueError("inputs must not be empty")
        field_ids = validate_field_ids(field_ids)

        prompt = self.build_prompt(inputs, field_ids)
        response = await self.llm.generate_with_search(
            prompt=prompt,
            model=self.model,
            max_tokens=self.max_tokens,
            max_searches=self.max_searches,
        )

        items = extract_json_array(response.text)
        records = []
        for item in items:
            if not isinstance(item, dict):
                logger.warning("Skipping non-object item in research answer: %r", item)
                continue
            records.append(normalize_record(item, response.sources))
        logger.info(
            "Researched %d input(s): %d record(s), %d source(s)",
            len(inputs), len(records), len(response.sources),
        )
        return ResearchResult(records, list(response.sources))

    def build_prompt(self, inputs: list[str], field_ids: list[str]) -> str:
        fields = "\n".join(f"- {fid} ({label_for(fid)})" for fid in field_ids)
        return PROMPT_TEMPLATE.format(
            entities=", ".join(inputs),
            fields=fields,
            website_missing=WEBSITE_NOT_FOUND,
            email_missing=NO_EMAIL,
            data_missing=NO_DATA,
        )
