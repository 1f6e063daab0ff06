"""Batch orchestrator - drives research and mirroring chunk by chunk."""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from company_extractor.errors import BatchFailure, describe_failure
from company_extractor.models.batch import BatchRequest, SyncStatus
from company_extractor.models.company import CompanyRecord
from company_extractor.pipeline.company_researcher import CompanyResearcher
from company_extractor.storage.mirror import PersistenceMirror

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 2


@dataclass
class BatchOutcome:
    """Result of one batch run, complete or not."""

    records: list[CompanyRecord] = field(default_factory=list)
    chunks_total: int = 0
    chunks_completed: int = 0
    sync_failures: int = 0
    cancelled: bool = False
    failure: BatchFailure | None = None
    elapsed_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.failure is None and not self.cancelled


def chunk_inputs(inputs: list[str], size: int = DEFAULT_CHUNK_SIZE) -> list[list[str]]:
    """Split inputs into contiguous groups of ``size``; the last may be shorter."""
    if size < 1:
        raise ValueError(f"chunk size must be >= 1, got {size}")
    return [list(inputs[i : i + size]) for i in range(0, len(inputs), size)]


def align_records(
    chunk: list[str],
    records: list[CompanyRecord],
    sources: list[str] | None = None,
) -> list[CompanyRecord]:
    """Pad a short research answer with unresolved placeholders.

    The upstream is asked for one object per input in input order, so missing
    trailing entries are filled from the inputs they were meant for, carrying
    the call's ``sources`` (by default those of the first record). Extra
    records are kept.
    """
    if len(records) > len(chunk):
        logger.warning("Got %d records for %d inputs; keeping all", len(records), len(chunk))
        return records
    if len(records) < len(chunk):
        if sources is None:
            sources = records[0].sources if records else []
        missing = chunk[len(records):]
        logger.warning("No record returned for %s; marking unresolved", ", ".join(missing))
        return records + [CompanyRecord.unresolved(name, sources) for name in missing]
    return records


async def _emit(callback: Callable | None, value) -> None:
    if callback is None:
        return
    result = callback(value)
    if inspect.isawaitable(result):
        await result


class BatchOrchestrator:
    """Runs a batch strictly sequentially: research, publish, mirror, next chunk.

    A research failure stops the batch; results published so far stay in the
    outcome. A mirror failure only flips the sync status to ``error``.
    """

    def __init__(
        self,
        researcher: CompanyResearcher,
        mirror: PersistenceMirror | None = None,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
        self.researcher = researcher
        self.mirror = mirror
        self.chunk_size = chunk_size

    async def run(
        self,
        inputs: list[str],
        field_ids: list[str],
        *,
        on_partial_result: Callable | None = None,
        on_sync_status: Callable | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> BatchOutcome:
        """Research ``inputs`` chunk by chunk.

        Args:
            inputs: Company names or URLs, already trimmed.
            field_ids: Catalog ids to extract.
            on_partial_result: Called with the full accumulated record list
                after every chunk.
            on_sync_status: Called with each SyncStatus change of the mirror.
            cancel_event: Checked before each chunk; once set, the batch
                stops and reports ``cancelled``.
        """
        start = time.monotonic()
        chunks = chunk_inputs(inputs, self.chunk_size)
        outcome = BatchOutcome(chunks_total=len(chunks))
        mirror = self.mirror if self.mirror is not None and self.mirror.configured else None

        await _emit(on_sync_status, SyncStatus.IDLE)

        for index, chunk in enumerate(chunks, 1):
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Batch cancelled before chunk %d/%d", index, len(chunks))
                outcome.cancelled = True
                break

            logger.info("Chunk %d/%d: %s", index, len(chunks), ", ".join(chunk))
            try:
                result = await self.researcher.research(chunk, field_ids)
            except Exception as exc:
                logger.error("Chunk %d/%d failed; stopping batch", index, len(chunks), exc_info=True)
                outcome.failure = describe_failure(exc)
                break

            records = align_records(chunk, result.records, result.sources)
            outcome.records.extend(records)
            outcome.chunks_completed += 1
            await _emit(on_partial_result, list(outcome.records))

            if mirror is not None and not await self._sync(mirror, records, on_sync_status):
                outcome.sync_failures += 1

        outcome.elapsed_seconds = time.monotonic() - start
        return outcome

    async def submit(
        self,
        raw_text: str,
        field_ids: list[str],
        **kwargs,
    ) -> BatchOutcome:
        """Run a batch from pasted multi-line text."""
        request = BatchRequest.from_text(raw_text, field_ids)
        return await self.run(request.inputs, request.field_ids, **kwargs)

    async def _sync(
        self,
        mirror: PersistenceMirror,
        records: list[CompanyRecord],
        on_sync_status: Callable | None,
    ) -> bool:
        await _emit(on_sync_status, SyncStatus.SYNCING)
        try:
            await mirror.save(records)
        except Exception:
            logger.error("Mirror sync failed for chunk", exc_info=True)
            await _emit(on_sync_status, SyncStatus.ERROR)
            return False
        await _emit(on_sync_status, SyncStatus.SUCCESS)
        return True
