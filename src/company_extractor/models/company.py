"""Pydantic model for one researched company."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

UNKNOWN_NAME = "Unknown"
WEBSITE_NOT_FOUND = "WEBSITE NOT FOUND"
NO_EMAIL = "NO EMAIL"
NO_DATA = "NO DATA"

# field id -> value used when the upstream payload has nothing for it
FALLBACKS: dict[str, str] = {
    "companyName": UNKNOWN_NAME,
    "officialWebsite": WEBSITE_NOT_FOUND,
    "email1": NO_EMAIL,
    "email2": NO_EMAIL,
    "industry": NO_DATA,
    "location": NO_DATA,
    "linkedin": NO_DATA,
    "phone": NO_DATA,
    "foundedYear": NO_DATA,
    "companySize": NO_DATA,
}


class CompanyRecord(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    company_name: str = Field(default=UNKNOWN_NAME, alias="companyName")
    official_website: str = Field(default=WEBSITE_NOT_FOUND, alias="officialWebsite")
    email1: str = NO_EMAIL
    email2: str = NO_EMAIL
    industry: str = NO_DATA
    location: str = NO_DATA
    linkedin: str = NO_DATA
    phone: str = NO_DATA
    founded_year: str = Field(default=NO_DATA, alias="foundedYear")
    company_size: str = Field(default=NO_DATA, alias="companySize")
    sources: list[str] = Field(default_factory=list)

    def get(self, field_id: str) -> str:
        """Return a field value by its catalog id (e.g. ``"foundedYear"``)."""
        return self.model_dump(by_alias=True)[field_id]

    @classmethod
    def unresolved(cls, raw_input: str, sources=()) -> CompanyRecord:
        """Placeholder for an input the upstream answer left out."""
        return cls(companyName=raw_input, sources=list(sources))


def normalize_record(raw: dict, sources=()) -> CompanyRecord:
    """Build a CompanyRecord from one parsed upstream object.

    Absent or falsy values take the field's sentinel. Lists (e.g. several
    emails in one field) are joined with ``", "``. Other present values are
    kept as they are, with non-string scalars converted via ``str()``.
    """
    values: dict[str, str] = {}
    for field_id, fallback in FALLBACKS.items():
        value = raw.get(field_id)
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(v) for v in value if v)
        if not value:
            values[field_id] = fallback
        elif isinstance(value, str):
            values[field_id] = value
        else:
            values[field_id] = str(value)
    return CompanyRecord(**values, sources=list(sources))
