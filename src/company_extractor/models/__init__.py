"""Data models for the company extractor."""

from company_extractor.models.batch import BatchRequest, SyncStatus, parse_inputs
from company_extractor.models.company import (
    NO_DATA,
    NO_EMAIL,
    UNKNOWN_NAME,
    WEBSITE_NOT_FOUND,
    CompanyRecord,
    normalize_record,
)
from company_extractor.models.fields import (
    AVAILABLE_FIELDS,
    FIELD_IDS,
    FieldDescriptor,
    OutputMode,
    fields_for_mode,
    validate_field_ids,
)

__all__ = [
    "AVAILABLE_FIELDS",
    "BatchRequest",
    "CompanyRecord",
    "FIELD_IDS",
    "FieldDescriptor",
    "NO_DATA",
    "NO_EMAIL",
    "OutputMode",
    "SyncStatus",
    "UNKNOWN_NAME",
    "WEBSITE_NOT_FOUND",
    "fields_for_mode",
    "normalize_record",
    "parse_inputs",
    "validate_field_ids",
]
