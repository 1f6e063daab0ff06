"""Export module for company-extractor."""
from company_extractor.export.tabular import (
    export_filename,
    headers_for,
    to_csv,
    to_tsv,
)

__all__ = ["export_filename", "headers_for", "to_csv", "to_tsv"]
