"""Catalog of extractable company fields and output-mode presets."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class FieldDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str


class OutputMode(str, Enum):
    FULL_DETAILS = "FULL_DETAILS"
    ONLY_EMAILS = "ONLY_EMAILS"
    CUSTOM = "CUSTOM"


AVAILABLE_FIELDS: tuple[FieldDescriptor, ...] = (
    FieldDescriptor(id="companyName", label="Company Name"),
    FieldDescriptor(id="officialWebsite", label="Official Website"),
    FieldDescriptor(id="email1", label="Email ID 1"),
    FieldDescriptor(id="email2", label="Email ID 2"),
    FieldDescriptor(id="industry", label="Industry"),
    FieldDescriptor(id="location", label="Location"),
    FieldDescriptor(id="linkedin", label="LinkedIn"),
    FieldDescriptor(id="phone", label="Phone / Contact"),
    FieldDescriptor(id="foundedYear", label="Founded Year"),
    FieldDescriptor(id="companySize", label="Company Size"),
)

FIELD_IDS: tuple[str, ...] = tuple(f.id for f in AVAILABLE_FIELDS)
EMAIL_FIELD_IDS: tuple[str, ...] = ("companyName", "email1", "email2")

_LABELS = {f.id: f.label for f in AVAILABLE_FIELDS}


def label_for(field_id: str) -> str:
    """Human label for a field id; unknown ids are returned unchanged."""
    return _LABELS.get(field_id, field_id)


def validate_field_ids(field_ids) -> list[str]:
    """Check a user selection against the catalog.

    Returns the ids in catalog order without duplicates. Raises ValueError
    for an empty selection or an unknown id.
    """
    selected = set(field_ids)
    unknown = sorted(selected - set(FIELD_IDS))
    if unknown:
        raise ValueError(f"Unknown field id(s): {', '.join(unknown)}")
    if not selected:
        raise ValueError("At least one field must be selected")
    return [fid for fid in FIELD_IDS if fid in selected]


def fields_for_mode(mode: OutputMode | str, custom=None) -> list[str]:
    """Resolve an output mode to the ordered list of field ids it extracts."""
    mode = OutputMode(mode)
    if mode is OutputMode.FULL_DETAILS:
        return list(FIELD_IDS)
    if mode is OutputMode.ONLY_EMAILS:
        return list(EMAIL_FIELD_IDS)
    return validate_field_ids(custom or [])
