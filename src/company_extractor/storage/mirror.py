"""Best-effort mirror of extraction results into a remote table."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol

from company_extractor.config import MirrorConfig
from company_extractor.models.company import CompanyRecord

logger = logging.getLogger(__name__)

CONFLICT_KEY = "official_website"
NOT_CONFIGURED = "No persistence configuration"


class MirrorSink(Protocol):
    async def upsert(self, rows: list[dict], on_conflict: str) -> None: ...


@dataclass
class SaveResult:
    configured: bool
    saved: int = 0
    error: str | None = None


def to_row(record: CompanyRecord, updated_at: str) -> dict:
    """Map a record onto the snake_case table schema."""
    return {
        "company_name": record.company_name,
        "official_website": record.official_website,
        "email1": record.email1,
        "email2": record.email2,
        "industry": record.industry,
        "location": record.location,
        "linkedin": record.linkedin,
        "phone": record.phone,
        "founded_year": record.founded_year,
        "company_size": record.company_size,
        "sources": list(record.sources),
        "updated_at": updated_at,
    }


class PersistenceMirror:
    """Upserts records keyed on their official website.

    Without a sink every save is a no-op that reports the missing
    configuration. Sink failures are logged and re-raised unchanged.
    """

    def __init__(self, sink: MirrorSink | None = None):
        self.sink = sink

    @property
    def configured(self) -> bool:
        return self.sink is not None

    async def save(self, records: list[CompanyRecord]) -> SaveResult:
        if self.sink is None:
            logger.warning("Persistence mirror not configured; skipping save")
            return SaveResult(configured=False, error=NOT_CONFIGURED)
        if not records:
            return SaveResult(configured=True)

        updated_at = datetime.now(timezone.utc).isoformat()
        # one row per key: a single upsert cannot touch the same row twice
        rows_by_key = {r.official_website: to_row(r, updated_at) for r in records}
        rows = list(rows_by_key.values())
        try:
            await self.sink.upsert(rows, on_conflict=CONFLICT_KEY)
        except Exception:
            logger.error("Mirror save failed", exc_info=True)
            raise
        logger.info("Mirrored %d row(s)", len(rows))
        return SaveResult(configured=True, saved=len(rows))


def build_mirror(config: MirrorConfig) -> PersistenceMirror:
    """Pick the sink named by the config.

    ``auto`` uses Supabase when SUPABASE_URL and SUPABASE_KEY are set and
    runs without a mirror otherwise.
    """
    backend = config.backend
    if backend == "auto":
        has_supabase = os.environ.get("SUPABASE_URL") and os.environ.get("SUPABASE_KEY")
        backend = "supabase" if has_supabase else "none"

    if backend == "supabase":
        from company_extractor.storage.supabase_sink import SupabaseSink

        return PersistenceMirror(SupabaseSink(table=config.table))
    if backend == "sqlite":
        from company_extractor.storage.sqlite_sink import SQLiteSink

        return PersistenceMirror(SQLiteSink(db_path=config.resolved_sqlite_path, table=config.table))
    return PersistenceMirror()
