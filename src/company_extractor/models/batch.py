"""Batch request and sync status models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, field_validator

from company_extractor.models.fields import validate_field_ids


class SyncStatus(str, Enum):
    IDLE = "idle"
    SYNCING = "syncing"
    SUCCESS = "success"
    ERROR = "error"


def parse_inputs(raw_text: str) -> list[str]:
    """Split pasted multi-line text into trimmed, non-blank inputs."""
    return [line.strip() for line in raw_text.splitlines() if line.strip()]


class BatchRequest(BaseModel):
    inputs: list[str]
    field_ids: list[str]

    @field_validator("inputs")
    @classmethod
    def _clean_inputs(cls, value: list[str]) -> list[str]:
        cleaned = [v.strip() for v in value if v and v.strip()]
        if not cleaned:
            raise ValueError("At least one company name or URL is required")
        return cleaned

    @field_validator("field_ids")
    @classmethod
    def _known_fields(cls, value: list[str]) -> list[str]:
        return validate_field_ids(value)

    @classmethod
    def from_text(cls, raw_text: str, field_ids) -> BatchRequest:
        return cls(inputs=parse_inputs(raw_text), field_ids=list(field_ids))
