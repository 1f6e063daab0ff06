"""Streamlit Web UI for company-extractor.

Paste company names or URLs, pick the fields, and watch the results table
grow chunk by chunk while each chunk is mirrored to the database.
"""

from __future__ import annotations

import asyncio
import logging
import os

logger = logging.getLogger(__name__)

import nest_asyncio
import streamlit as st
from dotenv import load_dotenv

load_dotenv()
nest_asyncio.apply()

# Streamlit Cloud: sync st.secrets → os.environ so backend clients can read them
for key in ("ANTHROPIC_API_KEY", "SUPABASE_URL", "SUPABASE_KEY"):
    if key not in os.environ:
        try:
            os.environ[key] = st.secrets[key]
        except Exception:
            pass

from company_extractor.clients.credentials import CredentialOutcome, EnvCredentialProvider
from company_extractor.clients.llm_client import LLMClient
from company_extractor.config import load_config
from company_extractor.errors import PersistenceError
from company_extractor.export.tabular import export_filename, headers_for, to_csv, to_tsv
from company_extractor.models.batch import SyncStatus, parse_inputs
from company_extractor.models.fields import (
    AVAILABLE_FIELDS,
    OutputMode,
    fields_for_mode,
    label_for,
)
from company_extractor.pipeline.company_researcher import CompanyResearcher
from company_extractor.pipeline.orchestrator import BatchOrchestrator
from company_extractor.storage.mirror import PersistenceMirror, build_mirror
from company_extractor.utils.logging_setup import init_logging

st.set_page_config(
    page_title="AI Company Data Extractor",
    page_icon=":mag:",
    layout="wide",
)

SYNC_BADGES = {
    SyncStatus.IDLE: ":gray[Cloud sync ready]",
    SyncStatus.SYNCING: ":orange[Syncing...]",
    SyncStatus.SUCCESS: ":green[All data synced]",
    SyncStatus.ERROR: ":red[Sync error]",
}

MODE_LABELS = {
    "Full details": OutputMode.FULL_DETAILS,
    "Only emails": OutputMode.ONLY_EMAILS,
    "Custom": OutputMode.CUSTOM,
}

config = load_config()
init_logging(config.logging.level)

if "credentials" not in st.session_state:
    st.session_state.credentials = EnvCredentialProvider()
credentials: EnvCredentialProvider = st.session_state.credentials


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_mirror() -> PersistenceMirror:
    try:
        return build_mirror(config.mirror)
    except PersistenceError:
        logger.exception("Mirror configuration failed")
        return PersistenceMirror()


def _rows(records, field_ids) -> list[dict]:
    return [{label_for(fid): r.get(fid) for fid in field_ids} for r in records]


# ---------------------------------------------------------------------------
# Sidebar - API key
# ---------------------------------------------------------------------------

with st.sidebar:
    st.title("AI Company Data Extractor")
    personal_key = st.text_input("Personal API key (optional)", type="password")
    if st.button("Use personal key", disabled=not personal_key):
        credentials.select_credential(personal_key)
    outcome_label = credentials.select_credential()
    if outcome_label is CredentialOutcome.PERSONAL:
        st.success("Personal key active")
    elif outcome_label is CredentialOutcome.MISSING:
        st.warning("No API key configured")

# ---------------------------------------------------------------------------
# Form
# ---------------------------------------------------------------------------

raw_text = st.text_area(
    "Company names or URLs (one per line)",
    height=200,
    placeholder="Acme Inc\nexample.com\nGlobex",
)
mode_label = st.radio("Output", list(MODE_LABELS), horizontal=True)
custom_fields: list[str] = []
if MODE_LABELS[mode_label] is OutputMode.CUSTOM:
    custom_fields = st.multiselect(
        "Fields",
        [f.id for f in AVAILABLE_FIELDS],
        format_func=label_for,
    )

inputs = parse_inputs(raw_text)
can_run = bool(inputs) and (MODE_LABELS[mode_label] is not OutputMode.CUSTOM or custom_fields)

if st.button("Extract", type="primary", disabled=not can_run):
    field_ids = fields_for_mode(MODE_LABELS[mode_label], custom_fields)
    llm = LLMClient(
        api_key=credentials.api_key,
        timeout=config.llm.timeout,
        max_attempts=config.llm.max_attempts,
        backoff_base=config.llm.backoff_base,
        jitter=config.llm.jitter,
    )
    orchestrator = BatchOrchestrator(
        CompanyResearcher(
            llm,
            model=config.llm.model,
            max_tokens=config.llm.max_tokens,
            max_searches=config.llm.max_searches,
        ),
        _get_mirror(),
        chunk_size=config.batch.chunk_size,
    )

    sync_slot = st.empty()
    table_slot = st.empty()

    def on_partial_result(records):
        table_slot.dataframe(_rows(records, field_ids), use_container_width=True)

    def on_sync_status(status: SyncStatus):
        sync_slot.markdown(SYNC_BADGES[status])

    with st.spinner(f"Researching {len(inputs)} companies..."):
        outcome = asyncio.run(
            orchestrator.run(
                inputs,
                field_ids,
                on_partial_result=on_partial_result,
                on_sync_status=on_sync_status,
            )
        )
    if outcome.failure is not None and outcome.failure.needs_reauth:
        credentials.clear()
    st.session_state["outcome"] = outcome
    st.session_state["field_ids"] = field_ids

# ---------------------------------------------------------------------------
# Results (survive rerun after download click)
# ---------------------------------------------------------------------------

if "outcome" in st.session_state:
    outcome = st.session_state["outcome"]
    field_ids = st.session_state["field_ids"]

    if outcome.failure is not None:
        st.error(outcome.failure.message)
        if outcome.failure.is_quota:
            st.info(
                "The default shared API key has reached its request limit. "
                "Enter your own key in the sidebar to continue."
            )

    if outcome.records:
        st.subheader(f"{len(outcome.records)} companies extracted")
        st.dataframe(_rows(outcome.records, field_ids), use_container_width=True)
        st.download_button(
            label="Export CSV",
            data=to_csv(outcome.records, field_ids).encode("utf-8"),
            file_name=export_filename(),
            mime="text/csv",
        )
        with st.expander("Copy data (tab separated)"):
            st.caption(" | ".join(h for h in headers_for(field_ids) if h))
            st.code(to_tsv(outcome.records, field_ids), language=None)
