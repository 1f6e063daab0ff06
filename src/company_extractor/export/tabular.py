"""CSV and TSV renderings of extraction results."""

from __future__ import annotations

import csv
import io
from datetime import datetime

from company_extractor.models.company import CompanyRecord
from company_extractor.models.fields import label_for

GROUP_SIZE = 10


def grouped(values: list[str], group_size: int = GROUP_SIZE) -> list[str]:
    """Insert a blank separator column after every ``group_size`` columns.

    No separator follows the final column.
    """
    result: list[str] = []
    for i, value in enumerate(values, 1):
        result.append(value)
        if i % group_size == 0 and i != len(values):
            result.append("")
    return result


def headers_for(field_ids: list[str]) -> list[str]:
    return grouped([label_for(fid) for fid in field_ids])


def rows_for(records: list[CompanyRecord], field_ids: list[str]) -> list[list[str]]:
    return [grouped([record.get(fid) or "" for fid in field_ids]) for record in records]


def to_csv(records: list[CompanyRecord], field_ids: list[str]) -> str:
    """Plain header row plus one fully quoted row per record."""
    buf = io.StringIO()
    buf.write(",".join(headers_for(field_ids)) + "\n")
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows(rows_for(records, field_ids))
    return buf.getvalue().rstrip("\n")


def to_tsv(records: list[CompanyRecord], field_ids: list[str]) -> str:
    """Tab-separated data rows only, for pasting into a spreadsheet."""
    return "\n".join("\t".join(row) for row in rows_for(records, field_ids))


def export_filename(now: datetime | None = None) -> str:
    now = now or datetime.now()
    return f"extraction_{int(now.timestamp() * 1000)}.csv"
