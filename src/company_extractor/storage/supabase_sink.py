"""Supabase table sink for the persistence mirror."""

from __future__ import annotations

import asyncio
import logging
import os

from supabase import Client, create_client

from company_extractor.errors import PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_TABLE = "company_extractions"


class SupabaseSink:
    """Upserts rows into a Supabase (PostgREST) table."""

    def __init__(
        self,
        url: str | None = None,
        key: str | None = None,
        table: str = DEFAULT_TABLE,
        client: Client | None = None,
    ):
        if client is None:
            url = url or os.environ.get("SUPABASE_URL")
            key = key or os.environ.get("SUPABASE_KEY")
            if not url or not key:
                raise PersistenceError(
                    "Supabase credentials required. Set SUPABASE_URL and SUPABASE_KEY "
                    "env vars or pass url/key."
                )
            client = create_client(url, key)
        self.client = client
        self.table = table

    async def upsert(self, rows: list[dict], on_conflict: str) -> None:
        # the supabase client is synchronous; keep the event loop free
        await asyncio.to_thread(self._upsert_sync, rows, on_conflict)

    def _upsert_sync(self, rows: list[dict], on_conflict: str) -> None:
        logger.debug("Upserting %d row(s) into %s", len(rows), self.table)
        self.client.table(self.table).upsert(rows, on_conflict=on_conflict).execute()
