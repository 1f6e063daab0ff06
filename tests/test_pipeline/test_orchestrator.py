"""Tests for the batch orchestrator."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from company_extractor.errors import ErrorKind, ParseError
from company_extractor.models.batch import SyncStatus
from company_extractor.models.company import NO_EMAIL, CompanyRecord, normalize_record
from company_extractor.pipeline.company_researcher import CompanyResearcher, ResearchResult
from company_extractor.pipeline.orchestrator import (
    BatchOrchestrator,
    BatchOutcome,
    align_records,
    chunk_inputs,
)
from company_extractor.storage.mirror import PersistenceMirror

SCENARIO_INPUTS = ["Acme Inc", "example.com", "Globex"]
SCENARIO_FIELDS = ["companyName", "email1"]


def _echo_records(chunk, field_ids):
    """One record per input, with the requested fields filled in."""
    return [
        normalize_record({"companyName": name, "email1": f"info@{name.split()[0].lower()}.com"})
        for name in chunk
    ]


def _echo_result(chunk, field_ids):
    return ResearchResult(_echo_records(chunk, field_ids), ["https://search.example"])


@pytest.fixture
def researcher():
    mock = AsyncMock(spec=CompanyResearcher)
    mock.research = AsyncMock(side_effect=_echo_result)
    return mock


class _Sink:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    async def upsert(self, rows, on_conflict):
        self.calls.append((rows, on_conflict))
        if self.error is not None:
            raise self.error


class TestChunkInputs:
    @pytest.mark.parametrize("n", [1, 2, 3, 4, 7])
    def test_covers_every_input_once_in_order(self, n):
        inputs = [f"company-{i}" for i in range(n)]
        chunks = chunk_inputs(inputs, 2)

        assert [item for chunk in chunks for item in chunk] == inputs
        assert all(len(c) == 2 for c in chunks[:-1])
        assert len(chunks[-1]) in (1, 2)
        assert len(chunks[-1]) == (1 if n % 2 else 2)

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            chunk_inputs(["a"], 0)


class TestAlignRecords:
    def test_short_answer_padded_with_unresolved(self, acme_record):
        aligned = align_records(["Acme Inc", "Initech"], [acme_record])

        assert len(aligned) == 2
        assert aligned[1].company_name == "Initech"
        assert aligned[1].email1 == NO_EMAIL
        assert aligned[1].sources == acme_record.sources

    def test_extra_records_kept(self, acme_record, globex_record):
        aligned = align_records(["Acme Inc"], [acme_record, globex_record])
        assert aligned == [acme_record, globex_record]

    def test_empty_answer_keeps_call_sources(self):
        aligned = align_records(["Acme Inc", "Initech"], [], ["https://acme.com", "https://initech.example"])

        assert [r.company_name for r in aligned] == ["Acme Inc", "Initech"]
        assert all(r.sources == ["https://acme.com", "https://initech.example"] for r in aligned)


class TestRun:
    async def test_scenario_publishes_incrementally(self, researcher):
        published = []
        orchestrator = BatchOrchestrator(researcher)

        outcome = await orchestrator.run(
            SCENARIO_INPUTS,
            SCENARIO_FIELDS,
            on_partial_result=lambda records: published.append(records),
        )

        assert isinstance(outcome, BatchOutcome)
        assert outcome.ok
        assert [call.args[0] for call in researcher.research.await_args_list] == [
            ["Acme Inc", "example.com"],
            ["Globex"],
        ]
        assert [len(p) for p in published] == [2, 3]
        assert outcome.chunks_total == 2
        assert outcome.chunks_completed == 2
        for record in outcome.records:
            assert record.company_name != "Unknown"
            assert record.email1.startswith("info@")
            assert isinstance(record.sources, list)

    async def test_published_lists_are_snapshots(self, researcher):
        published = []
        orchestrator = BatchOrchestrator(researcher)

        await orchestrator.run(SCENARIO_INPUTS, SCENARIO_FIELDS, on_partial_result=published.append)

        assert len(published[0]) == 2

    async def test_async_callbacks_are_awaited(self, researcher):
        on_partial = AsyncMock()
        on_sync = AsyncMock()
        orchestrator = BatchOrchestrator(researcher, PersistenceMirror(_Sink()))

        await orchestrator.run(
            SCENARIO_INPUTS, SCENARIO_FIELDS, on_partial_result=on_partial, on_sync_status=on_sync
        )

        assert on_partial.await_count == 2
        assert on_sync.await_count == 5

    async def test_research_failure_aborts_and_keeps_results(self, researcher, quota_error):
        researcher.research.side_effect = [
            _echo_result(["Acme Inc", "example.com"], SCENARIO_FIELDS),
            quota_error,
        ]
        published = []
        orchestrator = BatchOrchestrator(researcher)

        outcome = await orchestrator.run(
            SCENARIO_INPUTS + ["Initech", "Umbrella"],
            SCENARIO_FIELDS,
            on_partial_result=published.append,
        )

        assert researcher.research.await_count == 2
        assert len(outcome.records) == 2
        assert len(published) == 1
        assert not outcome.ok
        assert outcome.failure.is_quota is True
        assert outcome.failure.kind is ErrorKind.QUOTA
        assert outcome.failure.cause is quota_error

    async def test_stale_credential_failure_needs_reauth(self, researcher):
        researcher.research.side_effect = Exception("Requested entity was not found.")
        orchestrator = BatchOrchestrator(researcher)

        outcome = await orchestrator.run(SCENARIO_INPUTS, SCENARIO_FIELDS)

        assert outcome.failure.needs_reauth is True
        assert outcome.failure.is_quota is False

    async def test_parse_failure_is_generic(self, researcher):
        researcher.research.side_effect = ParseError("Could not extract JSON from text: 429 ...")
        orchestrator = BatchOrchestrator(researcher)

        outcome = await orchestrator.run(SCENARIO_INPUTS, SCENARIO_FIELDS)

        assert outcome.failure.kind is ErrorKind.PARSE
        assert outcome.failure.is_quota is False
        assert "fewer items" in outcome.failure.message

    async def test_mirror_saves_each_chunk(self, researcher):
        sink = _Sink()
        statuses = []
        orchestrator = BatchOrchestrator(researcher, PersistenceMirror(sink))

        outcome = await orchestrator.run(
            SCENARIO_INPUTS, SCENARIO_FIELDS, on_sync_status=statuses.append
        )

        assert [len(rows) for rows, _ in sink.calls] == [2, 1]
        assert all(key == "official_website" for _, key in sink.calls) is True
        assert statuses == [
            SyncStatus.IDLE,
            SyncStatus.SYNCING,
            SyncStatus.SUCCESS,
            SyncStatus.SYNCING,
            SyncStatus.SUCCESS,
        ]
        assert outcome.sync_failures == 0

    async def test_mirror_failure_does_not_abort_batch(self, researcher):
        statuses = []
        orchestrator = BatchOrchestrator(researcher, PersistenceMirror(_Sink(RuntimeError("db down"))))

        outcome = await orchestrator.run(
            SCENARIO_INPUTS, SCENARIO_FIELDS, on_sync_status=statuses.append
        )

        assert outcome.ok
        assert len(outcome.records) == 3
        assert outcome.sync_failures == 2
        assert statuses == [
            SyncStatus.IDLE,
            SyncStatus.SYNCING,
            SyncStatus.ERROR,
            SyncStatus.SYNCING,
            SyncStatus.ERROR,
        ]

    async def test_unconfigured_mirror_still_completes(self, researcher):
        statuses = []
        published = []
        orchestrator = BatchOrchestrator(researcher, PersistenceMirror())

        outcome = await orchestrator.run(
            SCENARIO_INPUTS,
            SCENARIO_FIELDS,
            on_partial_result=published.append,
            on_sync_status=statuses.append,
        )

        assert outcome.ok
        assert [len(p) for p in published] == [2, 3]
        assert statuses == [SyncStatus.IDLE]

    async def test_cancel_between_chunks(self, researcher):
        cancel = asyncio.Event()
        orchestrator = BatchOrchestrator(researcher)

        outcome = await orchestrator.run(
            SCENARIO_INPUTS,
            SCENARIO_FIELDS,
            on_partial_result=lambda records: cancel.set(),
            cancel_event=cancel,
        )

        assert outcome.cancelled is True
        assert not outcome.ok
        assert researcher.research.await_count == 1
        assert len(outcome.records) == 2

    async def test_short_answer_is_padded(self, researcher):
        researcher.research.side_effect = lambda chunk, field_ids: ResearchResult(
            _echo_records(chunk[:1], field_ids), ["https://search.example"]
        )
        orchestrator = BatchOrchestrator(researcher)

        outcome = await orchestrator.run(["Acme Inc", "Initech"], SCENARIO_FIELDS)

        assert [r.company_name for r in outcome.records] == ["Acme Inc", "Initech"]
        assert isinstance(outcome.records[1], CompanyRecord)
        assert outcome.records[1].sources == ["https://search.example"]

    async def test_empty_answer_padded_with_call_sources(self, researcher):
        researcher.research.side_effect = lambda chunk, field_ids: ResearchResult([], ["https://acme.com/contact"])
        orchestrator = BatchOrchestrator(researcher)

        outcome = await orchestrator.run(["Acme Inc", "Initech"], SCENARIO_FIELDS)

        assert [r.company_name for r in outcome.records] == ["Acme Inc", "Initech"]
        assert all(r.sources == ["https://acme.com/contact"] for r in outcome.records)

    async def test_custom_chunk_size(self, researcher):
        orchestrator = BatchOrchestrator(researcher, chunk_size=3)

        outcome = await orchestrator.run(SCENARIO_INPUTS, SCENARIO_FIELDS)

        assert researcher.research.await_count == 1
        assert outcome.chunks_total == 1


class TestSubmit:
    async def test_submit_parses_raw_text(self, researcher):
        orchestrator = BatchOrchestrator(researcher)

        outcome = await orchestrator.submit("  Acme Inc \n\n example.com\n   \nGlobex\n", SCENARIO_FIELDS)

        assert [r.company_name for r in outcome.records] == SCENARIO_INPUTS

    async def test_submit_rejects_blank_text(self, researcher):
        orchestrator = BatchOrchestrator(researcher)
        with pytest.raises(ValueError):
            await orchestrator.submit("\n   \n", SCENARIO_FIELDS)
